"""CLI error handling and decorators."""

from __future__ import annotations

import functools
from typing import Any, Callable

import typer

from pwsem.errors import PwsemError


def handle_error(msg: str) -> None:
    """Print an error message and exit."""
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(1)


def report_errors(f: Callable) -> Callable:
    """Turn pwsem errors and unreadable inputs into a one-line message and exit 1."""

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return f(*args, **kwargs)
        except (PwsemError, FileNotFoundError) as err:
            handle_error(str(err))

    return wrapper
