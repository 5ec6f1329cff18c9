"""Exception and warning taxonomy.

Structural problems (a cyclic equation set, bad configuration) are
fatal. Per-claim problems (RefitFailure, UntestableClaimWarning) are
caught by the d-sep tester and surface as exclusions in the report.
InsufficientDataError only voids the AICc figure.
"""

from __future__ import annotations

from collections.abc import Sequence


class PwsemError(Exception):
    """Base class for all pwsem errors."""


class CyclicStructureError(PwsemError, ValueError):
    """The equation set implies a directed cycle."""

    def __init__(self, cycle: Sequence[tuple[str, str]]) -> None:
        self.cycle = list(cycle)
        path = " -> ".join([u for u, _ in self.cycle] + [self.cycle[0][0]]) if self.cycle else ""
        super().__init__(f"Equations imply a directed cycle: {path}")


class FitError(PwsemError):
    """A model could not be estimated."""


class RefitFailure(FitError):
    """An augmented d-sep model failed to converge or was degenerate."""


class InsufficientDataError(PwsemError, ValueError):
    """Too few observations for the small-sample corrected AIC."""


class ConfigError(PwsemError, ValueError):
    """Invalid analysis configuration or model description."""


class UntestableClaimWarning(UserWarning):
    """A claim has no endpoint that is a response in any equation."""
