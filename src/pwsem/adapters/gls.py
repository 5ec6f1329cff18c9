"""Generalized least squares adapters.

``GLSAdapter`` takes an explicit residual covariance matrix aligned with
the rows of ``data``. ``PhylogeneticGLSAdapter`` builds that matrix from
a phylogenetic (Brownian motion) covariance keyed by taxon, optionally
scaled by Pagel's lambda, which can be fixed or estimated by maximum
likelihood.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
import statsmodels.api as sm
from scipy import optimize

from pwsem.errors import FitError

from .base import StatsmodelsAdapter


@dataclass(eq=False)
class GLSAdapter(StatsmodelsAdapter):
    """Linear model with correlated residuals, ``Var(e) = scale * sigma``.

    Args:
        sigma: n x n matrix (ndarray rows in data order, or a DataFrame
            indexed on both axes by ``data.index``).
        correlation: Label describing the structure, for reporting.
    """

    sigma: Any = None
    correlation: str = "user"

    family = "gls"

    def __post_init__(self) -> None:
        if self.sigma is None:
            raise FitError("GLSAdapter requires a residual covariance matrix")
        super().__post_init__()

    @property
    def random_structure(self) -> str | None:
        return f"correlation={self.correlation}"

    def _sigma_for(self, frame: pd.DataFrame) -> np.ndarray:
        if isinstance(self.sigma, pd.DataFrame):
            try:
                return self.sigma.loc[frame.index, frame.index].to_numpy(dtype=float)
            except KeyError as err:
                raise FitError(f"sigma is missing rows for {self.formula}: {err}") from err

        sigma = np.asarray(self.sigma, dtype=float)
        if sigma.shape != (len(self.data), len(self.data)):
            raise FitError(
                f"sigma has shape {sigma.shape}, expected {(len(self.data), len(self.data))}"
            )
        if not self.data.index.is_unique:
            raise FitError("GLS with an ndarray sigma needs a unique data index")
        pos = self.data.index.get_indexer(frame.index)
        return sigma[np.ix_(pos, pos)]

    def _fit(self, y: pd.Series, X: pd.DataFrame) -> Any:
        return sm.GLS(y, X, sigma=self._sigma_for(self._frame)).fit()


@dataclass(eq=False)
class PhylogeneticGLSAdapter(GLSAdapter):
    """PGLS: GLS whose residual covariance follows a phylogeny.

    Args:
        taxon: Column naming each row's taxon.
        covariance: Phylogenetic covariance (shared branch lengths),
            a DataFrame indexed on both axes by taxon label.
        pagel_lambda: Multiplier on the off-diagonal covariances.
        estimate_lambda: Re-estimate lambda by ML on every fit.
    """

    taxon: str = "taxon"
    covariance: pd.DataFrame | None = None
    pagel_lambda: float = 1.0
    estimate_lambda: bool = False

    family = "pgls"

    def __post_init__(self) -> None:
        if self.covariance is None:
            raise FitError("PhylogeneticGLSAdapter requires a phylogenetic covariance")
        if not 0.0 <= self.pagel_lambda <= 1.0:
            raise FitError(f"pagel_lambda must lie in [0, 1], got {self.pagel_lambda}")
        # placeholder so GLSAdapter's check passes; the real matrix is per-fit
        self.sigma = self.covariance
        self.correlation = "brownian"
        super().__post_init__()

    @property
    def random_structure(self) -> str | None:
        mode = "estimated" if self.estimate_lambda else "fixed"
        return f"correlation=brownian, lambda={self.pagel_lambda:.3g} ({mode})"

    def _extra_columns(self) -> list[str]:
        return [self.taxon]

    def _phylo_block(self, frame: pd.DataFrame) -> np.ndarray:
        taxa = frame[self.taxon].astype(str)
        absent = sorted(set(taxa) - set(map(str, self.covariance.index)))
        if absent:
            raise FitError(f"Taxa not in covariance matrix: {', '.join(absent[:5])}")
        cov = self.covariance.copy()
        cov.index = cov.index.map(str)
        cov.columns = cov.columns.map(str)
        return cov.loc[taxa, taxa].to_numpy(dtype=float)

    @staticmethod
    def _scaled(block: np.ndarray, lam: float) -> np.ndarray:
        scaled = block * lam
        np.fill_diagonal(scaled, np.diag(block))
        return scaled

    def _fit(self, y: pd.Series, X: pd.DataFrame) -> Any:
        block = self._phylo_block(self._frame)

        if self.estimate_lambda:

            def neg_llf(lam: float) -> float:
                return -sm.GLS(y, X, sigma=self._scaled(block, lam)).fit().llf

            opt = optimize.minimize_scalar(neg_llf, bounds=(0.0, 1.0), method="bounded")
            self.pagel_lambda = float(opt.x)

        return sm.GLS(y, X, sigma=self._scaled(block, self.pagel_lambda)).fit()

    def parameter_count(self) -> int:
        return super().parameter_count() + (1 if self.estimate_lambda else 0)
