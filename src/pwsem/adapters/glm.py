"""Generalized linear model adapter (statsmodels GLM, IRLS)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pandas as pd
import statsmodels.api as sm

from pwsem.errors import FitError

from .base import StatsmodelsAdapter

_GLM_FAMILIES: dict[str, Any] = {
    "gaussian": sm.families.Gaussian,
    "binomial": sm.families.Binomial,
    "poisson": sm.families.Poisson,
    "gamma": sm.families.Gamma,
    "inverse_gaussian": sm.families.InverseGaussian,
    "negative_binomial": sm.families.NegativeBinomial,
}

# Families whose dispersion is fixed at 1 rather than estimated.
_FIXED_SCALE = frozenset({"binomial", "poisson", "negative_binomial"})


@dataclass(eq=False)
class GLMAdapter(StatsmodelsAdapter):
    """GLM with a named error family and its canonical link.

    p-values are the Wald tests statsmodels reports for the family; the
    coefficient df is the residual df, as for linear models.
    """

    glm_family: str = "gaussian"

    family = "glm"

    def __post_init__(self) -> None:
        if self.glm_family not in _GLM_FAMILIES:
            raise FitError(
                f"Unknown GLM family {self.glm_family!r}. Available: {sorted(_GLM_FAMILIES)}"
            )
        super().__post_init__()

    def _fit(self, y: pd.Series, X: pd.DataFrame) -> Any:
        fam = _GLM_FAMILIES[self.glm_family]()
        return sm.GLM(y, X, family=fam).fit()

    def parameter_count(self) -> int:
        extra = 0 if self.glm_family in _FIXED_SCALE else 1
        return len(self._params()) + extra
