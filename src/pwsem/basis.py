"""BasisSetEnumerator: the independence claims implied by an ImpliedDAG.

For every unordered pair of non-adjacent vertices (u, v) the claim is

    u _||_ v | (parents(u) | parents(v)) - {u, v}

which is Shipley's union basis set. Each claim is testable by adding one
endpoint to the equation of the other.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from .dag import ImpliedDAG
from .types import ExcludedClaim, ExclusionReason, IndependenceClaim

logger = logging.getLogger(__name__)


@dataclass
class BasisSetEnumerator:
    """Enumerates the basis set of a DAG.

    Args:
        dag: The implied DAG.
        additional_variables: Extra variables to pair with every vertex
            they are not adjacent to (nested / extended model comparisons).
        correlated_errors: Pairs declared to share correlated errors; their
            claims are set aside rather than tested.
    """

    dag: ImpliedDAG
    additional_variables: frozenset[str] = field(default_factory=frozenset)
    correlated_errors: frozenset[frozenset[str]] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        self.additional_variables = frozenset(self.additional_variables)
        self.correlated_errors = frozenset(frozenset(p) for p in self.correlated_errors)

    def conditioning_set(self, u: str, v: str) -> frozenset[str]:
        return (self.dag.parents(u) | self.dag.parents(v)) - {u, v}

    def _claims_for(self, pairs: Iterable[tuple[str, str]]) -> dict[tuple[str, str], IndependenceClaim]:
        claims: dict[tuple[str, str], IndependenceClaim] = {}
        for u, v in pairs:
            if u == v or self.dag.is_adjacent(u, v):
                continue
            claim = IndependenceClaim(u, v, self.conditioning_set(u, v))
            claims.setdefault((claim.a, claim.b), claim)
        return claims

    def enumerate(self) -> list[IndependenceClaim]:
        """All claims to test, sorted by (a, b)."""
        claims, _ = self.partition()
        return claims

    def partition(self) -> tuple[list[IndependenceClaim], list[ExcludedClaim]]:
        """Split the basis set into claims to test and correlated-error exclusions."""
        vertices = sorted(self.dag.vertices)
        claims = self._claims_for(itertools.combinations(vertices, 2))

        extras = sorted(self.additional_variables)
        extra_pairs = [(x, v) for x in extras for v in vertices]
        for key, claim in self._claims_for(extra_pairs).items():
            claims.setdefault(key, claim)

        kept: list[IndependenceClaim] = []
        excluded: list[ExcludedClaim] = []
        for key in sorted(claims):
            claim = claims[key]
            if claim.pair in self.correlated_errors:
                excluded.append(
                    ExcludedClaim(
                        claim=claim,
                        reason=ExclusionReason.CORRELATED_ERROR,
                        detail=f"{claim.a} ~~ {claim.b} declared as correlated errors",
                    )
                )
            else:
                kept.append(claim)

        logger.debug(
            "Basis set: %d claims, %d set aside for correlated errors", len(kept), len(excluded)
        )
        return kept, excluded
