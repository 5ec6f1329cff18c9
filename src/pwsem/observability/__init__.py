"""pwsem observability: structured engine events over stdlib logging.

Public API:
    setup_logging(cfg)   -- Attach a rendering handler to the ``pwsem`` logger
    get_logger(name)     -- Structured logger for engine events
    shutdown_logging()   -- Detach and close the handler
"""

from pwsem.observability.config import ObservabilityConfig
from pwsem.observability.logging import (
    ROOT_LOGGER,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "ROOT_LOGGER",
    "ObservabilityConfig",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
