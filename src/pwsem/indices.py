"""FitIndexCalculator: information criteria from Fisher's C.

K counts every estimated parameter across the equation set plus one per
tested claim. n is the analysis sample size.

    AIC  = C + 2K
    AICc = AIC + 2K(K + 1) / (n - K - 1)
    BIC  = C + K ln(n)
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from .adapters.base import ModelAdapter
from .errors import InsufficientDataError
from .types import CStatistic, FitIndices

logger = logging.getLogger(__name__)


def aicc(c: float, k_params: int, n_obs: int) -> float:
    """Small-sample corrected AIC.

    Raises:
        InsufficientDataError: If n - K - 1 <= 0.
    """
    denom = n_obs - k_params - 1
    if denom <= 0:
        raise InsufficientDataError(
            f"AICc undefined: n - K - 1 = {n_obs} - {k_params} - 1 = {denom}"
        )
    return c + 2 * k_params + 2 * k_params * (k_params + 1) / denom


@dataclass
class FitIndexCalculator:
    """Derives AIC, AICc and BIC for one equation set.

    Args:
        equations: Every equation in the model, tested or not.
        n_obs: Sample size; defaults to the largest equation ``nobs``.
    """

    equations: Sequence[ModelAdapter]
    n_obs: int | None = None

    @property
    def model_parameters(self) -> int:
        return sum(eq.parameter_count() for eq in self.equations)

    @property
    def sample_size(self) -> int:
        if self.n_obs is not None:
            return int(self.n_obs)
        return max((eq.nobs for eq in self.equations), default=0)

    def log_likelihood(self) -> float:
        return math.fsum(eq.log_likelihood() for eq in self.equations)

    def full_model_df(self) -> float:
        """Residual df of the whole model: n minus all estimated parameters, at least 1."""
        return float(max(self.sample_size - self.model_parameters, 1))

    def compute(self, c_stat: CStatistic) -> FitIndices:
        """Indices for *c_stat*. An undefined AICc is recorded, not raised."""
        k_params = self.model_parameters + c_stat.k
        n = self.sample_size

        aicc_value: float | None
        aicc_error: str | None = None
        try:
            aicc_value = aicc(c_stat.c, k_params, n)
        except InsufficientDataError as err:
            logger.warning("%s", err)
            aicc_value, aicc_error = None, str(err)

        bic = c_stat.c + k_params * math.log(n) if n > 0 else math.nan
        return FitIndices(
            aic=c_stat.c + 2 * k_params,
            aicc=aicc_value,
            bic=bic,
            k_params=k_params,
            n_obs=n,
            likelihood_df=c_stat.df,
            model_df=k_params,
            log_likelihood=self.log_likelihood(),
            aicc_error=aicc_error,
        )
