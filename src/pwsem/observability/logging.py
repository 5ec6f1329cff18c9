"""Structured logging for the d-sep engine.

Engine modules emit named events with key/value fields::

    logger = get_logger(__name__)
    logger.info("dsep.claim_excluded", claim="A _||_ D | C", reason="refit_failed")

Events are structlog event dicts carried on ordinary stdlib records, so
the ``pwsem`` logger's level and handlers decide what is kept. Modules
that log with plain ``logging.getLogger(__name__)`` share the same
handler and come out in the same shape.

``setup_logging()`` is optional. Without it, records propagate to
whatever the host application configured.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import structlog

from pwsem.errors import ConfigError
from pwsem.observability.config import ObservabilityConfig

ROOT_LOGGER = "pwsem"
DEFAULT_JSONL_PATH = "pwsem.jsonl"

# Applied to structlog events before they become records, and to plain
# stdlib records inside the formatter.
_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]

_handler: logging.Handler | None = None


def get_logger(name: str = ROOT_LOGGER, **initial_values: Any) -> Any:
    """Return a structlog logger bound to the stdlib logger *name*.

    Does not touch structlog's global configuration, so a host
    application's own structlog setup is left alone.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        **initial_values,
    )


def _renderer(config: ObservabilityConfig) -> Any:
    fmt = "json" if config.log_destination == "jsonl" else config.log_format
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=False)
    raise ConfigError(f"Unknown log format: {config.log_format!r}. Available: console, json")


def _open_handler(config: ObservabilityConfig) -> logging.Handler:
    if config.log_destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if config.log_destination == "jsonl":
        path = Path(config.jsonl_path or DEFAULT_JSONL_PATH)
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, mode="a", encoding="utf-8")
    raise ConfigError(
        f"Unknown log destination: {config.log_destination!r}. Available: stderr, jsonl"
    )


def setup_logging(config: ObservabilityConfig | None = None) -> logging.Handler:
    """Attach one rendering handler to the ``pwsem`` logger.

    Calling again replaces the handler installed by the previous call.
    Handlers added by anyone else are left in place.
    """
    global _handler
    config = config or ObservabilityConfig()

    level = logging.getLevelName(config.log_level.upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {config.log_level!r}")
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(config),
        ],
    )

    shutdown_logging()
    handler = _open_handler(config)
    handler.setFormatter(formatter)
    pwsem_logger = logging.getLogger(ROOT_LOGGER)
    pwsem_logger.addHandler(handler)
    pwsem_logger.setLevel(level)
    _handler = handler
    return handler


def shutdown_logging() -> None:
    """Detach and close the handler from ``setup_logging()``; reset the level."""
    global _handler
    if _handler is None:
        return
    pwsem_logger = logging.getLogger(ROOT_LOGGER)
    pwsem_logger.removeHandler(_handler)
    pwsem_logger.setLevel(logging.NOTSET)
    _handler.close()
    _handler = None
