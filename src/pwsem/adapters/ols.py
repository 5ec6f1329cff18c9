"""Ordinary least squares adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pandas as pd
import statsmodels.api as sm

from .base import StatsmodelsAdapter


@dataclass(eq=False)
class OLSAdapter(StatsmodelsAdapter):
    """Linear model fitted by OLS; coefficient df is the residual df (n - p)."""

    family = "ols"

    def _fit(self, y: pd.Series, X: pd.DataFrame) -> Any:
        return sm.OLS(y, X).fit()
