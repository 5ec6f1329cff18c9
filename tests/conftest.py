"""Shared fixtures for pwsem tests.

StubAdapter: a scripted ModelAdapter whose refits return preset p-values,
so engine logic is tested without fitting anything.
Simulated datasets for the statsmodels-backed adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

import numpy as np
import pandas as pd
import pytest

from pwsem.errors import RefitFailure
from pwsem.types import Coefficient

# =============================================================================
# Stub adapter
# =============================================================================


@dataclass(eq=False)
class StubAdapter:
    """ModelAdapter double.

    ``p_values`` maps an added predictor to the p-value its refit reports;
    ``fail_on`` lists added predictors whose refit raises RefitFailure.
    ``refits`` is shared between an adapter and its refits.
    """

    response: str
    predictors: tuple[str, ...] = ()
    p_values: dict[str, float] = field(default_factory=dict)
    fail_on: frozenset[str] = frozenset()
    n: int = 100
    llf: float = -50.0
    refits: list[tuple[str, tuple[str, ...]]] = field(default_factory=list)
    family: str = "stub"
    random_structure: str | None = None

    def __post_init__(self) -> None:
        self.predictors = tuple(self.predictors)

    @property
    def nobs(self) -> int:
        return self.n

    def coefficient_table(self) -> dict[str, Coefficient]:
        df = float(self.n - len(self.predictors) - 1)
        return {
            p: Coefficient(
                estimate=0.1,
                std_error=0.05,
                statistic=2.0,
                df=df,
                p_value=self.p_values.get(p, 0.5),
            )
            for p in self.predictors
        }

    def log_likelihood(self) -> float:
        return self.llf

    def parameter_count(self) -> int:
        # intercept + slopes + residual variance
        return len(self.predictors) + 2

    def refit_with_extra(self, variable, covariates=()):
        if variable in self.fail_on:
            raise RefitFailure(f"{self.response} ~ ... + {variable} did not converge")
        extra = [c for c in covariates if c not in self.predictors and c != variable]
        preds = (*self.predictors, *extra, variable)
        self.refits.append((self.response, preds))
        return replace(self, predictors=preds)

    def predict(self, new_data, with_se=False):
        out = pd.DataFrame({"fit": np.zeros(len(new_data))}, index=new_data.index)
        if with_se:
            out["se"] = 0.0
        return out


def stub(response: str, *predictors: str, **kwargs) -> StubAdapter:
    return StubAdapter(response=response, predictors=tuple(predictors), **kwargs)


# =============================================================================
# Equation-set fixtures
# =============================================================================


@pytest.fixture
def chain_equations() -> list[StubAdapter]:
    """A -> B -> C -> D.

    Basis set: (A, C | B), (A, D | C), (B, D | A, C), tested on C, D, D.
    """
    return [
        stub("B", "A"),
        stub("C", "B", p_values={"A": 0.80}),
        stub("D", "C", p_values={"A": 0.65, "B": 0.40}),
    ]


@pytest.fixture
def saturated_equations() -> list[StubAdapter]:
    """A -> B, A -> C, B -> C: every pair adjacent."""
    return [stub("B", "A"), stub("C", "A", "B")]


@pytest.fixture
def collider_equations() -> list[StubAdapter]:
    """A -> C <- B with A, B both exogenous."""
    return [stub("C", "A", "B")]


# =============================================================================
# Simulated data
# =============================================================================


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240611)


@pytest.fixture
def chain_data(rng) -> pd.DataFrame:
    """Gaussian chain A -> B -> C -> D, n = 200."""
    n = 200
    a = rng.normal(size=n)
    b = 0.6 * a + rng.normal(size=n)
    c = 0.6 * b + rng.normal(size=n)
    d = 0.6 * c + rng.normal(size=n)
    return pd.DataFrame({"A": a, "B": b, "C": c, "D": d})


@pytest.fixture
def shortcut_data(rng) -> pd.DataFrame:
    """A -> B -> C plus a strong direct A -> C path the chain model omits."""
    n = 300
    a = rng.normal(size=n)
    b = 0.5 * a + rng.normal(size=n)
    c = 0.5 * b + 1.5 * a + rng.normal(scale=0.5, size=n)
    return pd.DataFrame({"A": a, "B": b, "C": c})


@pytest.fixture
def grouped_data(rng) -> pd.DataFrame:
    """12 sites x 25 plots; ``w`` is a site-level covariate, ``x`` varies by plot."""
    n_sites, per_site = 12, 25
    site = np.repeat(np.arange(n_sites), per_site)
    w_site = rng.normal(size=n_sites)
    u_site = rng.normal(scale=1.0, size=n_sites)
    x = rng.normal(size=n_sites * per_site)
    w = w_site[site]
    y = 1.0 + 0.8 * x + 0.5 * w + u_site[site] + rng.normal(scale=0.7, size=site.size)
    z = 0.7 * y + rng.normal(size=site.size)
    return pd.DataFrame({"site": site, "x": x, "w": w, "y": y, "z": z})


@pytest.fixture
def make_stub():
    """Factory: ``make_stub("C", "A", "B", p_values={...})``."""
    return stub
