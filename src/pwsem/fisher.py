"""FisherCAggregator: combine claim p-values into Fisher's C.

    C  = -2 * sum(ln p_i)        df = 2k
    p  = P(chi2_{2k} >= C)

A large p-value fails to reject the hypothesized DAG: the data are
consistent with every omitted path being unnecessary. A small p-value
says at least one omitted path is causally important.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from scipy.stats import chi2

from .types import CStatistic, DSepResult

P_VALUE_FLOOR = 2e-16
"""p-values below this are raised to it so ln(p) stays finite."""


def clamp_p_value(p: float) -> float:
    """Clamp *p* into [P_VALUE_FLOOR, 1].

    Raises:
        ValueError: If *p* is NaN or outside [0, 1].
    """
    if math.isnan(p) or p < 0.0 or p > 1.0:
        raise ValueError(f"p-value must lie in [0, 1], got {p!r}")
    return max(p, P_VALUE_FLOOR)


def fisher_c(p_values: Iterable[float]) -> CStatistic:
    """Fisher's C for a sequence of independent p-values.

    With no p-values (a saturated DAG) C = 0, df = 0 and p = 1.
    """
    ps = [clamp_p_value(float(p)) for p in p_values]
    k = len(ps)
    if k == 0:
        return CStatistic(c=0.0, df=0, p_value=1.0, k=0)

    c = 0.0 - 2.0 * math.fsum(math.log(p) for p in ps)
    df = 2 * k
    return CStatistic(c=c, df=df, p_value=float(chi2.sf(c, df)), k=k)


class FisherCAggregator:
    """Aggregates tested d-sep results; excluded claims never reach here."""

    def aggregate(self, results: Iterable[DSepResult]) -> CStatistic:
        return fisher_c(r.p_value for r in results)
