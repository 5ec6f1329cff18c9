"""ImpliedDAG: the directed graph implied by a set of structured equations.

Wraps networkx.DiGraph. Vertices are every response and predictor name;
each equation contributes predictor -> response edges.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import networkx as nx

from .adapters.base import ModelAdapter
from .errors import CyclicStructureError

logger = logging.getLogger(__name__)


@dataclass
class ImpliedDAG:
    """Acyclic directed graph implied by an equation set."""

    _graph: nx.DiGraph = field(default_factory=nx.DiGraph, repr=False)
    _responses: frozenset[str] = field(default_factory=frozenset)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_equations(cls, equations: Iterable[ModelAdapter]) -> ImpliedDAG:
        """Union the predictor -> response edges of every equation.

        Equations sharing a response (multi-group designs) merge into a
        single parent set for that response.

        Raises:
            CyclicStructureError: The edges contain a directed cycle.
        """
        edges: list[tuple[str, str]] = []
        responses: set[str] = set()
        for eq in equations:
            responses.add(eq.response)
            edges.extend((p, eq.response) for p in eq.predictors)
        return cls.from_edges(edges, responses=responses)

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[tuple[str, str]],
        responses: Iterable[str] = (),
    ) -> ImpliedDAG:
        """Build from explicit (cause, effect) pairs (useful for testing)."""
        graph = nx.DiGraph()
        resp = set(responses)
        for u, v in edges:
            graph.add_edge(u, v)
            resp.add(v)
        graph.add_nodes_from(resp)

        try:
            cycle = nx.find_cycle(graph)
        except nx.NetworkXNoCycle:
            pass
        else:
            raise CyclicStructureError([(u, v) for u, v, *_ in cycle])

        dag = cls(_graph=graph, _responses=frozenset(resp))
        logger.debug(
            "Implied DAG: %d vertices, %d edges", graph.number_of_nodes(), graph.number_of_edges()
        )
        return dag

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def graph(self) -> nx.DiGraph:
        """The underlying networkx DiGraph."""
        return self._graph

    @property
    def vertices(self) -> frozenset[str]:
        return frozenset(self._graph.nodes)

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    @property
    def responses(self) -> frozenset[str]:
        """Vertices that are the response of at least one equation."""
        return self._responses

    @property
    def exogenous(self) -> frozenset[str]:
        """Source vertices: no incoming edges."""
        return frozenset(v for v in self._graph.nodes if self._graph.in_degree(v) == 0)

    def parents(self, vertex: str) -> frozenset[str]:
        """Direct causes; empty for exogenous or unknown vertices."""
        if vertex not in self._graph:
            return frozenset()
        return frozenset(self._graph.predecessors(vertex))

    def children(self, vertex: str) -> frozenset[str]:
        if vertex not in self._graph:
            return frozenset()
        return frozenset(self._graph.successors(vertex))

    def is_adjacent(self, u: str, v: str) -> bool:
        """True if there is an edge between u and v in either direction."""
        return self._graph.has_edge(u, v) or self._graph.has_edge(v, u)

    def topological_order(self) -> list[str]:
        """Deterministic topological sort (ties broken by name)."""
        return list(nx.lexicographical_topological_sort(self._graph))

    def edges(self) -> list[tuple[str, str]]:
        return sorted(self._graph.edges)
