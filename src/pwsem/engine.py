"""PiecewiseSEM: one analysis run from an equation set to a FitReport.

Usage::

    from pwsem import AnalysisConfig, PiecewiseSEM, fit_equation

    model = PiecewiseSEM(
        [
            fit_equation("ols", df, "B", ["A"]),
            fit_equation("ols", df, "C", ["B"]),
        ],
        config=AnalysisConfig(adjust_p=False),
    )
    report = model.evaluate()

Pipeline: ImpliedDAG -> basis set -> d-sep refits -> Fisher's C -> fit
indices. Per-claim failures become exclusions; only a cyclic equation
set aborts the run.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .adapters.base import ModelAdapter
from .basis import BasisSetEnumerator
from .config import AnalysisConfig
from .dag import ImpliedDAG
from .dsep import DSepTester
from .fisher import FisherCAggregator
from .indices import FitIndexCalculator
from .observability import get_logger
from .types import DSepResult, ExcludedClaim, FitReport, IndependenceClaim

logger = get_logger(__name__)


@dataclass
class PiecewiseSEM:
    """A piecewise SEM: fitted equations plus the options for testing them."""

    equations: Sequence[ModelAdapter]
    config: AnalysisConfig = field(default_factory=AnalysisConfig)
    _dag: ImpliedDAG | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.equations = tuple(self.equations)
        if not self.equations:
            raise ValueError("PiecewiseSEM needs at least one equation")

    @property
    def dag(self) -> ImpliedDAG:
        """The implied DAG (raises CyclicStructureError on a cyclic model)."""
        if self._dag is None:
            self._dag = ImpliedDAG.from_equations(self.equations)
        return self._dag

    def _enumerator(self) -> BasisSetEnumerator:
        return BasisSetEnumerator(
            dag=self.dag,
            additional_variables=self.config.additional_variables,
            correlated_errors=self.config.correlated_errors,
        )

    def basis_set(self) -> list[IndependenceClaim]:
        return self._enumerator().enumerate()

    def _indices(self) -> FitIndexCalculator:
        return FitIndexCalculator(equations=self.equations, n_obs=self.config.n_obs)

    def dsep(self) -> tuple[list[DSepResult], list[ExcludedClaim]]:
        """Test the basis set. Correlated-error claims come back excluded."""
        claims, set_aside = self._enumerator().partition()
        tester = DSepTester(
            equations=self.equations,
            dag=self.dag,
            adjust_p=self.config.adjust_p,
            full_model_df=self._indices().full_model_df() if self.config.adjust_p else None,
            conserve=self.config.conserve,
            directions=self.config.directions,
            max_workers=self.config.max_workers,
            progress=self.config.progress,
        )
        tested, excluded = tester.test_all(claims)
        return tested, [*set_aside, *excluded]

    def evaluate(self) -> FitReport:
        """Run the full pipeline and build the report."""
        tested, excluded = self.dsep()
        c_stat = FisherCAggregator().aggregate(tested)
        indices = self._indices().compute(c_stat)

        logger.info(
            "evaluate.finished",
            fisher_c=c_stat.c,
            df=c_stat.df,
            p_value=c_stat.p_value,
            tested=len(tested),
            excluded=len(excluded),
        )
        for e in excluded:
            logger.info(
                "evaluate.excluded", claim=str(e.claim), reason=e.reason.value, detail=e.detail
            )

        return FitReport(
            claims=tuple(tested),
            excluded=tuple(sorted(excluded, key=lambda e: (e.claim.a, e.claim.b))),
            c_statistic=c_stat,
            indices=indices,
        )


def evaluate(
    equations: Sequence[ModelAdapter],
    config: AnalysisConfig | None = None,
) -> FitReport:
    """Functional shorthand for ``PiecewiseSEM(equations, config).evaluate()``."""
    return PiecewiseSEM(equations, config=config or AnalysisConfig()).evaluate()
