"""Tests for ImpliedDAG."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pwsem.dag import ImpliedDAG
from pwsem.errors import CyclicStructureError


class TestFromEquations:
    def test_chain(self, chain_equations):
        dag = ImpliedDAG.from_equations(chain_equations)
        assert dag.vertices == frozenset({"A", "B", "C", "D"})
        assert dag.edge_count == 3
        assert dag.edges() == [("A", "B"), ("B", "C"), ("C", "D")]

    def test_responses_and_exogenous(self, chain_equations):
        dag = ImpliedDAG.from_equations(chain_equations)
        assert dag.responses == frozenset({"B", "C", "D"})
        assert dag.exogenous == frozenset({"A"})

    def test_parents_children(self, chain_equations):
        dag = ImpliedDAG.from_equations(chain_equations)
        assert dag.parents("C") == frozenset({"B"})
        assert dag.parents("A") == frozenset()
        assert dag.children("B") == frozenset({"C"})
        assert dag.parents("unknown") == frozenset()

    def test_adjacency_is_symmetric(self, chain_equations):
        dag = ImpliedDAG.from_equations(chain_equations)
        assert dag.is_adjacent("A", "B")
        assert dag.is_adjacent("B", "A")
        assert not dag.is_adjacent("A", "C")

    def test_shared_response_merges_parents(self, make_stub):
        dag = ImpliedDAG.from_equations([make_stub("Y", "A"), make_stub("Y", "B")])
        assert dag.parents("Y") == frozenset({"A", "B"})

    def test_intercept_only_equation_adds_vertex(self, make_stub):
        dag = ImpliedDAG.from_equations([make_stub("Y")])
        assert dag.vertices == frozenset({"Y"})
        assert dag.responses == frozenset({"Y"})


class TestCycles:
    def test_two_cycle(self, make_stub):
        with pytest.raises(CyclicStructureError) as info:
            ImpliedDAG.from_equations([make_stub("A", "B"), make_stub("B", "A")])
        assert len(info.value.cycle) == 2
        assert "cycle" in str(info.value)

    def test_three_cycle(self):
        with pytest.raises(CyclicStructureError):
            ImpliedDAG.from_edges([("A", "B"), ("B", "C"), ("C", "A")])

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            ImpliedDAG.from_edges([("A", "B"), ("B", "A")])


class TestTopologicalOrder:
    def test_deterministic(self):
        dag = ImpliedDAG.from_edges([("X", "Y"), ("A", "Y"), ("M", "Y")])
        assert dag.topological_order() == ["A", "M", "X", "Y"]

    @given(st.permutations([("A", "B"), ("B", "C"), ("A", "D"), ("D", "C")]))
    def test_independent_of_edge_order(self, edges):
        dag = ImpliedDAG.from_edges(edges)
        assert dag.topological_order() == ["A", "B", "D", "C"]
