"""Logging configuration, env-var driven.

Nothing is required: without any variables set, WARNING and above go to
stderr through the console renderer.

    Level:       PWSEM_LOG_LEVEL=WARNING (default) | DEBUG | INFO | ERROR
    Destination: PWSEM_LOG_DESTINATION=stderr (default) | jsonl
    Renderer:    PWSEM_LOG_FORMAT=console (default) | json
    JSONL file:  PWSEM_LOG_PATH=pwsem.jsonl (default)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class ObservabilityConfig:
    """Logging configuration, env-var driven."""

    log_level: str = field(default_factory=lambda: os.environ.get("PWSEM_LOG_LEVEL", "WARNING"))

    log_destination: str = field(
        default_factory=lambda: os.environ.get("PWSEM_LOG_DESTINATION", "stderr")
    )  # "stderr" | "jsonl"

    log_format: str = field(
        default_factory=lambda: os.environ.get("PWSEM_LOG_FORMAT", "console")
    )  # "console" | "json"; jsonl always renders json

    jsonl_path: str | None = field(default_factory=lambda: os.environ.get("PWSEM_LOG_PATH"))
