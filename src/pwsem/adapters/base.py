"""ModelAdapter protocol and the shared statsmodels implementation.

The d-sep engine programs against ``ModelAdapter`` only. Each concrete
family (OLS, GLM, mixed, GLS, phylogenetic GLS) is a dataclass that
builds its design from named DataFrame columns, estimates once in
``__post_init__``, and never changes afterwards. ``refit_with_extra``
goes through ``dataclasses.replace`` so the refit is a fresh adapter
over the same data and the same random/correlation structure.
"""

from __future__ import annotations

import logging
import math
import warnings
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Protocol, runtime_checkable

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning as SmConvergenceWarning,
)
from statsmodels.tools.sm_exceptions import (
    HessianInversionWarning,
    PerfectSeparationWarning,
)

from pwsem.errors import FitError, RefitFailure
from pwsem.types import Coefficient

logger = logging.getLogger(__name__)

INTERCEPT = "const"

_FIT_WARNINGS: tuple[type[Warning], ...] = (
    SmConvergenceWarning,
    PerfectSeparationWarning,
    HessianInversionWarning,
    RuntimeWarning,
)


@contextmanager
def quiet_fit_warnings() -> Iterator[None]:
    """Ignore statsmodels estimation warnings while the block runs.

    The filter list is process-wide: enter this from the thread that owns
    a batch of fits, never from inside pool workers.
    """
    with warnings.catch_warnings():
        for category in _FIT_WARNINGS:
            warnings.simplefilter("ignore", category)
        yield


@runtime_checkable
class ModelAdapter(Protocol):
    """Capability interface over one fitted structured equation."""

    @property
    def family(self) -> str: ...

    @property
    def response(self) -> str: ...

    @property
    def predictors(self) -> tuple[str, ...]: ...

    @property
    def random_structure(self) -> str | None: ...

    @property
    def nobs(self) -> int: ...

    def coefficient_table(self) -> dict[str, Coefficient]: ...

    def log_likelihood(self) -> float: ...

    def parameter_count(self) -> int: ...

    def refit_with_extra(
        self,
        variable: str,
        covariates: Sequence[str] = (),
    ) -> ModelAdapter: ...

    def predict(self, new_data: pd.DataFrame, with_se: bool = False) -> pd.DataFrame: ...


@dataclass(eq=False)
class StatsmodelsAdapter:
    """Common machinery for adapters backed by a statsmodels results object.

    Subclasses implement ``_fit(y, X)`` and may override ``_extra_columns``,
    ``_converged``, ``_coefficient_df`` and ``parameter_count``.
    """

    data: pd.DataFrame = field(repr=False)
    response: str
    predictors: tuple[str, ...]

    family: ClassVar[str] = ""

    result: Any = field(init=False, repr=False, default=None)
    _frame: pd.DataFrame = field(init=False, repr=False, default=None)

    def __post_init__(self) -> None:
        self.predictors = tuple(self.predictors)
        if self.response in self.predictors:
            raise FitError(f"{self.response!r} cannot predict itself")
        if len(set(self.predictors)) != len(self.predictors):
            raise FitError(f"Duplicate predictors in {self.formula}")
        self._frame = self._complete_cases()
        self.result = self._estimate()

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def random_structure(self) -> str | None:
        return None

    @property
    def formula(self) -> str:
        rhs = " + ".join(self.predictors) if self.predictors else "1"
        return f"{self.response} ~ {rhs}"

    @property
    def nobs(self) -> int:
        return len(self._frame)

    # ------------------------------------------------------------------
    # Estimation
    # ------------------------------------------------------------------

    def _extra_columns(self) -> list[str]:
        """Non-predictor columns the family needs (groups, taxa, ...)."""
        return []

    def _complete_cases(self) -> pd.DataFrame:
        columns = list(dict.fromkeys([self.response, *self.predictors, *self._extra_columns()]))
        missing = [c for c in columns if c not in self.data.columns]
        if missing:
            raise FitError(f"Columns not in data: {', '.join(missing)}")
        frame = self.data[columns].dropna()
        if len(frame) <= len(self.predictors) + 1:
            raise FitError(
                f"Insufficient complete rows for {self.formula}: {len(frame)}"
            )
        return frame

    def _design(self, frame: pd.DataFrame) -> pd.DataFrame:
        try:
            X = frame[list(self.predictors)].astype(float)
        except (TypeError, ValueError) as err:
            raise FitError(f"Non-numeric predictor in {self.formula}: {err}") from err
        return sm.add_constant(X, has_constant="add", prepend=True)

    def _estimate(self) -> Any:
        try:
            y = self._frame[self.response].astype(float)
        except (TypeError, ValueError) as err:
            raise FitError(f"Non-numeric response {self.response!r}: {err}") from err
        X = self._design(self._frame)

        rank = np.linalg.matrix_rank(X.to_numpy())
        if rank < X.shape[1]:
            raise FitError(
                f"Rank-deficient design for {self.formula} (rank {rank} < {X.shape[1]})"
            )

        try:
            result = self._fit(y, X)
        except (np.linalg.LinAlgError, ValueError, OverflowError) as err:
            raise FitError(f"Estimation failed for {self.formula}: {err}") from err

        if not self._converged(result):
            raise FitError(f"Estimation did not converge for {self.formula}")
        return result

    def _fit(self, y: pd.Series, X: pd.DataFrame) -> Any:
        raise NotImplementedError

    def _converged(self, result: Any) -> bool:
        return bool(getattr(result, "converged", True))

    # ------------------------------------------------------------------
    # Coefficients and likelihood
    # ------------------------------------------------------------------

    def _coefficient_df(self, name: str) -> float:
        return float(self.result.df_resid)

    def _params(self) -> pd.Series:
        return self.result.params

    def _bse(self) -> pd.Series:
        return self.result.bse

    def coefficient_table(self) -> dict[str, Coefficient]:
        """Predictor name -> estimate, SE, test statistic, df, p-value.

        The intercept is not included.
        """
        params = self._params()
        bse = self._bse()
        stats = self.result.tvalues
        pvalues = self.result.pvalues
        return {
            name: Coefficient(
                estimate=float(params[name]),
                std_error=float(bse[name]),
                statistic=float(stats[name]),
                df=self._coefficient_df(name),
                p_value=float(pvalues[name]),
            )
            for name in self.predictors
        }

    def log_likelihood(self) -> float:
        return float(self.result.llf)

    def parameter_count(self) -> int:
        # fixed effects plus the residual variance
        return len(self._params()) + 1

    # ------------------------------------------------------------------
    # Refit and prediction
    # ------------------------------------------------------------------

    def refit_with_extra(
        self,
        variable: str,
        covariates: Sequence[str] = (),
    ) -> StatsmodelsAdapter:
        """Fit a new model with *covariates* and then *variable* appended.

        Covariates already in the model are skipped. The original adapter
        is left untouched.

        Raises:
            RefitFailure: The augmented model could not be estimated, or
                the new coefficient has a non-finite standard error.
        """
        if variable == self.response or variable in self.predictors:
            raise RefitFailure(f"{variable!r} is already part of {self.formula}")

        extra = [
            c
            for c in dict.fromkeys(covariates)
            if c not in self.predictors and c not in (self.response, variable)
        ]
        predictors = (*self.predictors, *extra, variable)
        try:
            refit = replace(self, predictors=predictors)
        except FitError as err:
            raise RefitFailure(str(err)) from err

        row = refit.coefficient_table()[variable]
        if not (math.isfinite(row.std_error) and row.std_error > 0):
            raise RefitFailure(
                f"Degenerate standard error for {variable!r} in {refit.formula}"
            )
        logger.debug("Refit %s", refit.formula)
        return refit

    def predict(self, new_data: pd.DataFrame, with_se: bool = False) -> pd.DataFrame:
        """Predicted response (on the response scale) for *new_data*."""
        X = self._design(new_data)
        frame = self.result.get_prediction(X).summary_frame()
        out = pd.DataFrame({"fit": np.asarray(frame["mean"])}, index=new_data.index)
        if with_se:
            out["se"] = np.asarray(frame["mean_se"])
        return out
