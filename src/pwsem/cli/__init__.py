"""pwsem CLI -- typer-based command interface.

Commands:
    pwsem evaluate MODEL DATA     d-sep tests, Fisher's C and fit indices
    pwsem basis-set MODEL DATA    List the independence claims to be tested
    pwsem families                List registered model families
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import pandas as pd
import typer

from pwsem.adapters import available_families
from pwsem.adapters.base import quiet_fit_warnings
from pwsem.cli._errors import report_errors
from pwsem.cli._model import ModelFile
from pwsem.engine import PiecewiseSEM
from pwsem.observability import ObservabilityConfig, setup_logging
from pwsem.report import render_report, report_to_dict

app = typer.Typer(
    name="pwsem",
    help="Test piecewise structural equation models: d-separation, Fisher's C, AIC.",
    no_args_is_help=True,
)


def _load(model: Path, data: Path, **overrides: object) -> PiecewiseSEM:
    spec = ModelFile.load(model)
    frame = pd.read_csv(data)
    with quiet_fit_warnings():
        equations = spec.fit(frame)
    return PiecewiseSEM(equations, config=spec.config(**overrides))


@app.callback()
@report_errors
def _setup(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at INFO level."),
) -> None:
    config = ObservabilityConfig()
    if verbose:
        config.log_level = "INFO"
    setup_logging(config)


@app.command()
@report_errors
def evaluate(
    model: Path = typer.Argument(..., help="YAML model file."),
    data: Path = typer.Argument(..., help="CSV dataset."),
    adjust_p: Optional[bool] = typer.Option(None, "--adjust-p/--no-adjust-p", help="Full-model df for p-values."),
    conserve: Optional[bool] = typer.Option(None, "--conserve/--no-conserve", help="Test both claim orientations."),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Parallel refit threads."),
    n_obs: Optional[int] = typer.Option(None, "--n", help="Sample size for AICc/BIC."),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of tables."),
) -> None:
    """Run d-sep tests and print the goodness-of-fit report."""
    psem = _load(
        model,
        data,
        adjust_p=adjust_p,
        conserve=conserve,
        max_workers=workers,
        n_obs=n_obs,
    )
    report = psem.evaluate()
    if as_json:
        typer.echo(json.dumps(report_to_dict(report), indent=2, default=str))
    else:
        typer.echo(render_report(report), nl=False)


@app.command("basis-set")
@report_errors
def basis_set(
    model: Path = typer.Argument(..., help="YAML model file."),
    data: Path = typer.Argument(..., help="CSV dataset."),
) -> None:
    """List the independence claims implied by the model."""
    claims = _load(model, data).basis_set()
    if not claims:
        typer.echo("Basis set is empty (saturated model).")
        return
    for i, claim in enumerate(claims, 1):
        typer.echo(f"{i:>3}. {claim}")


@app.command()
def families() -> None:
    """List registered model families."""
    for name in available_families():
        typer.echo(name)


def main() -> None:
    """Entry point for the pwsem CLI."""
    app()
