"""Shared type system: enums and frozen dataclasses for one analysis run.

Every other pwsem module imports from here. All result types are frozen
so a finished FitReport can be shared across threads and hashed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

# =============================================================================
# Enums
# =============================================================================


class ExclusionReason(StrEnum):
    """Why a basis-set claim did not contribute a p-value."""

    UNTESTABLE = "untestable"
    REFIT_FAILED = "refit_failed"
    CORRELATED_ERROR = "correlated_error"


# =============================================================================
# Dataclasses
# =============================================================================


@dataclass(frozen=True)
class Coefficient:
    """One row of a fitted model's coefficient table."""

    estimate: float
    std_error: float
    statistic: float
    df: float
    p_value: float


@dataclass(frozen=True, order=True)
class IndependenceClaim:
    """``a`` is independent of ``b`` given ``conditioning``.

    Endpoints are stored in lexicographic order so two claims about the
    same pair compare equal regardless of how they were discovered.
    """

    a: str
    b: str
    conditioning: frozenset[str] = field(default_factory=frozenset, compare=False)

    def __post_init__(self) -> None:
        if self.a == self.b:
            raise ValueError(f"Claim endpoints must differ, got {self.a!r} twice")
        if self.a > self.b:
            a, b = self.b, self.a
            object.__setattr__(self, "a", a)
            object.__setattr__(self, "b", b)

    @property
    def pair(self) -> frozenset[str]:
        return frozenset({self.a, self.b})

    @property
    def key(self) -> tuple[str, str, tuple[str, ...]]:
        """Canonical identity, conditioning set included."""
        return (self.a, self.b, tuple(sorted(self.conditioning)))

    def other(self, vertex: str) -> str:
        """The endpoint that is not *vertex*."""
        if vertex == self.a:
            return self.b
        if vertex == self.b:
            return self.a
        raise ValueError(f"{vertex!r} is not an endpoint of {self}")

    def __str__(self) -> str:
        if self.conditioning:
            return f"{self.a} _||_ {self.b} | {', '.join(sorted(self.conditioning))}"
        return f"{self.a} _||_ {self.b}"


@dataclass(frozen=True)
class DSepResult:
    """Outcome of testing one claim by refitting ``response ~ ... + predictor``."""

    claim: IndependenceClaim
    response: str
    predictor: str
    estimate: float
    std_error: float
    df: float
    p_value: float
    adjusted: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "independ.claim": str(self.claim),
            "response": self.response,
            "predictor": self.predictor,
            "conditioning": sorted(self.claim.conditioning),
            "estimate": self.estimate,
            "std_error": self.std_error,
            "df": self.df,
            "p_value": self.p_value,
            "adjusted": self.adjusted,
        }


@dataclass(frozen=True)
class ExcludedClaim:
    """A claim left out of the C statistic, with the reason recorded."""

    claim: IndependenceClaim
    reason: ExclusionReason
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "independ.claim": str(self.claim),
            "reason": self.reason.value,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class CStatistic:
    """Fisher's C with its chi-square reference distribution."""

    c: float
    df: int
    p_value: float
    k: int

    def to_dict(self) -> dict[str, Any]:
        return {"fisher_c": self.c, "df": self.df, "p_value": self.p_value, "k": self.k}


@dataclass(frozen=True)
class FitIndices:
    """Information criteria derived from C and the parameter count.

    ``aicc`` is None when the small-sample correction is undefined
    (n - K - 1 <= 0); ``aicc_error`` then explains why.
    """

    aic: float
    aicc: float | None
    bic: float
    k_params: int
    n_obs: int
    likelihood_df: int
    model_df: int
    log_likelihood: float = math.nan
    aicc_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "AIC": self.aic,
            "AICc": self.aicc,
            "BIC": self.bic,
            "K": self.k_params,
            "n": self.n_obs,
            "likelihood_df": self.likelihood_df,
            "model_df": self.model_df,
            "log_likelihood": self.log_likelihood,
            "aicc_error": self.aicc_error,
        }


@dataclass(frozen=True)
class FitReport:
    """Terminal output of one analysis run.

    Interpretation of ``p_value``: a large value fails to reject the
    hypothesized DAG (no important omitted paths); a small value means
    at least one omitted path is causally important.
    """

    claims: tuple[DSepResult, ...]
    excluded: tuple[ExcludedClaim, ...]
    c_statistic: CStatistic
    indices: FitIndices

    @property
    def c(self) -> float:
        return self.c_statistic.c

    @property
    def df(self) -> int:
        return self.c_statistic.df

    @property
    def p_value(self) -> float:
        return self.c_statistic.p_value

    @property
    def aic(self) -> float:
        return self.indices.aic

    @property
    def aicc(self) -> float | None:
        return self.indices.aicc

    @property
    def likelihood_df(self) -> int:
        return self.indices.likelihood_df

    @property
    def model_df(self) -> int:
        return self.indices.model_df

    @property
    def n_excluded(self) -> int:
        return len(self.excluded)

    @property
    def untestable(self) -> tuple[ExcludedClaim, ...]:
        return tuple(e for e in self.excluded if e.reason == ExclusionReason.UNTESTABLE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dsep": [r.to_dict() for r in self.claims],
            "excluded": [e.to_dict() for e in self.excluded],
            "n_excluded": self.n_excluded,
            "c_statistic": self.c_statistic.to_dict(),
            "indices": self.indices.to_dict(),
        }
