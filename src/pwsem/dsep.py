"""DSepTester: test basis-set claims by refitting the response-side equation.

A claim (u, v | S) is tested on the equation of whichever endpoint is a
response, with S and then the other endpoint added as predictors. The
new coefficient's significance is the claim's p-value. Claims that
cannot be tested are returned as ExcludedClaim, never dropped.
"""

from __future__ import annotations

import logging
import math
import warnings
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from scipy import stats

from .adapters.base import ModelAdapter, quiet_fit_warnings
from .dag import ImpliedDAG
from .errors import RefitFailure, UntestableClaimWarning
from .observability import get_logger
from .types import DSepResult, ExcludedClaim, ExclusionReason, IndependenceClaim

logger = get_logger(__name__)

ClaimOutcome = DSepResult | ExcludedClaim


@dataclass
class DSepTester:
    """Refits equations to test independence claims.

    Args:
        equations: The equation set the claims were derived from.
        dag: Implied DAG; built from ``equations`` when omitted.
        adjust_p: Recompute p-values against ``full_model_df``.
        full_model_df: Denominator df of the whole model, required when
            ``adjust_p`` is set.
        conserve: When both endpoints are responses, test both
            orientations and keep the smaller p-value.
        directions: (cause, effect) pairs fixing which endpoint is the
            response for that pair.
        max_workers: Thread pool size; 1 tests claims sequentially.
        progress: Log each claim at INFO instead of DEBUG.
    """

    equations: Sequence[ModelAdapter]
    dag: ImpliedDAG | None = None
    adjust_p: bool = False
    full_model_df: float | None = None
    conserve: bool = False
    directions: frozenset[tuple[str, str]] = field(default_factory=frozenset)
    max_workers: int = 1
    progress: bool = False

    def __post_init__(self) -> None:
        self.equations = list(self.equations)
        if self.dag is None:
            self.dag = ImpliedDAG.from_equations(self.equations)
        if self.adjust_p and not self.full_model_df:
            raise ValueError("adjust_p requires full_model_df")
        self.directions = frozenset(tuple(d) for d in self.directions)
        self._topo_rank = {v: i for i, v in enumerate(self.dag.topological_order())}

    # ------------------------------------------------------------------
    # Response-side selection
    # ------------------------------------------------------------------

    def _forced_response(self, claim: IndependenceClaim) -> str | None:
        for cause, effect in self.directions:
            if {cause, effect} == {claim.a, claim.b}:
                return effect
        return None

    def _best_equation(self, claim: IndependenceClaim, response: str) -> ModelAdapter | None:
        """Among equations for *response*, prefer one already conditioning on S."""
        best: ModelAdapter | None = None
        for eq in self.equations:
            if eq.response != response:
                continue
            if best is None or (
                claim.conditioning <= set(eq.predictors)
                and not claim.conditioning <= set(best.predictors)
            ):
                best = eq
        return best

    def response_candidates(self, claim: IndependenceClaim) -> list[ModelAdapter]:
        """Candidate equations, best first.

        Order of preference: predictor set already contains the
        conditioning set; downstream in topological order; greater name.
        """
        forced = self._forced_response(claim)
        endpoints = [forced] if forced else [claim.a, claim.b]
        found: list[ModelAdapter] = []
        for v in endpoints:
            eq = self._best_equation(claim, v)
            if eq is not None:
                found.append(eq)
        return sorted(
            found,
            key=lambda eq: (
                claim.conditioning <= set(eq.predictors),
                self._topo_rank.get(eq.response, -1),
                eq.response,
            ),
            reverse=True,
        )

    # ------------------------------------------------------------------
    # Testing
    # ------------------------------------------------------------------

    def _refit(self, claim: IndependenceClaim, eq: ModelAdapter) -> DSepResult:
        other = claim.other(eq.response)
        covariates = sorted(claim.conditioning - {eq.response, other})
        refit = eq.refit_with_extra(other, covariates=covariates)
        row = refit.coefficient_table()[other]

        p_value, df, adjusted = row.p_value, row.df, False
        if self.adjust_p:
            df = float(self.full_model_df)
            p_value = float(2.0 * stats.t.sf(abs(row.estimate / row.std_error), df))
            adjusted = True
        if not math.isfinite(p_value):
            raise RefitFailure(f"Non-finite p-value for {other!r} in {eq.response!r} model")

        return DSepResult(
            claim=claim,
            response=eq.response,
            predictor=other,
            estimate=row.estimate,
            std_error=row.std_error,
            df=df,
            p_value=p_value,
            adjusted=adjusted,
        )

    def test_claim(self, claim: IndependenceClaim) -> ClaimOutcome:
        """Test one claim; failures come back as ExcludedClaim."""
        candidates = self.response_candidates(claim)
        if not candidates:
            detail = f"neither {claim.a!r} nor {claim.b!r} is a response in any equation"
            logger.info(
                "dsep.claim_excluded",
                claim=str(claim),
                reason=ExclusionReason.UNTESTABLE.value,
                detail=detail,
            )
            warnings.warn(
                f"Untestable claim {claim}: {detail}", UntestableClaimWarning, stacklevel=2
            )
            return ExcludedClaim(claim=claim, reason=ExclusionReason.UNTESTABLE, detail=detail)

        both_sides = (
            self.conserve
            and self._forced_response(claim) is None
            and len({eq.response for eq in candidates}) == 2
        )
        to_try = candidates if both_sides else candidates[:1]

        results: list[DSepResult] = []
        failures: list[str] = []
        for eq in to_try:
            try:
                results.append(self._refit(claim, eq))
            except RefitFailure as err:
                logger.warning(
                    "dsep.refit_failed", claim=str(claim), response=eq.response, error=str(err)
                )
                failures.append(f"{eq.response}: {err}")

        if not results:
            detail = "; ".join(failures)
            logger.info(
                "dsep.claim_excluded",
                claim=str(claim),
                reason=ExclusionReason.REFIT_FAILED.value,
                detail=detail,
            )
            return ExcludedClaim(claim=claim, reason=ExclusionReason.REFIT_FAILED, detail=detail)

        best = min(results, key=lambda r: r.p_value)
        logger.debug(
            "dsep.claim_tested",
            claim=str(claim),
            response=best.response,
            predictor=best.predictor,
            p_value=best.p_value,
        )
        return best

    def test_all(
        self,
        claims: Sequence[IndependenceClaim],
    ) -> tuple[list[DSepResult], list[ExcludedClaim]]:
        """Test every claim; outcomes stay in claim order."""
        total = len(claims)
        level = logging.INFO if self.progress else logging.DEBUG

        def run(indexed: tuple[int, IndependenceClaim]) -> ClaimOutcome:
            i, claim = indexed
            logger.log(level, "dsep.claim_started", index=i + 1, total=total, claim=str(claim))
            return self.test_claim(claim)

        # The pool is joined inside the block, so any filter changes made in
        # workers (statsmodels result properties enter catch_warnings too) are
        # discarded when it restores the caller's list.
        with quiet_fit_warnings():
            if self.max_workers > 1 and total > 1:
                with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                    outcomes = list(pool.map(run, enumerate(claims)))
            else:
                outcomes = [run(item) for item in enumerate(claims)]

        tested = [o for o in outcomes if isinstance(o, DSepResult)]
        excluded = [o for o in outcomes if isinstance(o, ExcludedClaim)]
        return tested, excluded
