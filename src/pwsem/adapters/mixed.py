"""Linear mixed-effects adapter (statsmodels MixedLM).

statsmodels reports Wald z-tests for mixed models. For d-sep tests the
small-sample behaviour matters, so coefficients are tested against a t
distribution with between-within denominator df:

* a fixed effect that is constant within every group (the intercept
  included) is a between-group term and gets ``G - p_between`` df;
* every other fixed effect gets ``n - G - p_within`` df.

G is the number of groups, p_between / p_within count the fixed effects
on each level.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import stats

from pwsem.errors import FitError
from pwsem.types import Coefficient

from .base import INTERCEPT, StatsmodelsAdapter


@dataclass(eq=False)
class MixedLMAdapter(StatsmodelsAdapter):
    """Gaussian mixed model with random intercepts (and optional slopes).

    Args:
        groups: Column holding the grouping factor.
        random_slopes: Predictors that also get a random slope per group.
        reml: Fit by REML (default) rather than ML.
    """

    groups: str = ""
    random_slopes: tuple[str, ...] = field(default_factory=tuple)
    reml: bool = True

    family = "mixed"

    def __post_init__(self) -> None:
        if not self.groups:
            raise FitError("MixedLMAdapter requires a grouping column")
        self.random_slopes = tuple(self.random_slopes)
        super().__post_init__()

    @property
    def random_structure(self) -> str | None:
        terms = " + ".join(["1", *self.random_slopes])
        return f"({terms} | {self.groups})"

    def _extra_columns(self) -> list[str]:
        cols = [self.groups]
        cols += [s for s in self.random_slopes if s not in self.predictors]
        return cols

    def _fit(self, y: pd.Series, X: pd.DataFrame) -> Any:
        exog_re = None
        if self.random_slopes:
            exog_re = sm.add_constant(
                self._frame[list(self.random_slopes)].astype(float),
                has_constant="add",
            )
        model = sm.MixedLM(y, X, groups=self._frame[self.groups], exog_re=exog_re)
        return model.fit(reml=self.reml)

    # ------------------------------------------------------------------
    # Denominator df
    # ------------------------------------------------------------------

    @cached_property
    def _ddf(self) -> dict[str, float]:
        frame = self._frame
        grouped = frame.groupby(self.groups)
        n_groups = grouped.ngroups
        n = len(frame)

        between = [INTERCEPT]
        within: list[str] = []
        for name in self.predictors:
            if (grouped[name].nunique() <= 1).all():
                between.append(name)
            else:
                within.append(name)

        df_between = max(n_groups - len(between), 1)
        df_within = max(n - n_groups - len(within), 1)
        ddf = {name: float(df_between) for name in between}
        ddf.update({name: float(df_within) for name in within})
        return ddf

    def _coefficient_df(self, name: str) -> float:
        return self._ddf[name]

    def _params(self) -> pd.Series:
        return self.result.fe_params

    def _bse(self) -> pd.Series:
        return self.result.bse_fe

    def coefficient_table(self) -> dict[str, Coefficient]:
        params = self._params()
        bse = self._bse()
        table: dict[str, Coefficient] = {}
        for name in self.predictors:
            est = float(params[name])
            se = float(bse[name])
            df = self._coefficient_df(name)
            t = est / se if se > 0 else np.nan
            p = float(2.0 * stats.t.sf(abs(t), df)) if np.isfinite(t) else np.nan
            table[name] = Coefficient(
                estimate=est, std_error=se, statistic=float(t), df=df, p_value=p
            )
        return table

    def parameter_count(self) -> int:
        # fixed effects + random-effects covariance + variance components + residual
        r = self.result
        return int(r.k_fe + r.k_re2 + r.k_vc + 1)

    def predict(self, new_data: pd.DataFrame, with_se: bool = False) -> pd.DataFrame:
        """Population-level (fixed effects only) predictions."""
        X = self._design(new_data)
        beta = self._params()
        fit = X.to_numpy() @ beta.to_numpy()
        out = pd.DataFrame({"fit": fit}, index=new_data.index)
        if with_se:
            k_fe = len(beta)
            cov = np.asarray(self.result.cov_params())[:k_fe, :k_fe]
            Xa = X.to_numpy()
            out["se"] = np.sqrt(np.einsum("ij,jk,ik->i", Xa, cov, Xa))
        return out
