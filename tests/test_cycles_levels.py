"""
pytest suite for cycle detection and topological levels.
"""

import pytest

from conftest import CHAIN, DIAMOND, make_path
from pathgraph.cycles import (
    describe_cycle,
    ensure_acyclic,
    find_cycle,
    has_cycle,
    would_create_cycle,
)
from pathgraph.errors import GraphInvalidError
from pathgraph.graph import build_graph, build_prerequisite_graph, path_edges
from pathgraph.levels import calculate_levels, count_levels, group_by_level
from pathgraph.models import LearningNode, LearningPath


# =========================================================================
# Test: Graph construction
# =========================================================================


class TestGraphConstruction:
    """Tests for building networkx graphs from paths."""

    def test_node_order_preserved(self):
        path = make_path(CHAIN, nodes=["C", "A", "B"])
        assert list(build_graph(path).nodes) == ["C", "A", "B"]

    def test_implicit_prerequisite_edges(self):
        """Prerequisite lists contribute edges after stored connections."""
        path = LearningPath(
            id="p",
            title="Implicit",
            nodes=[
                LearningNode(id="A", title="A"),
                LearningNode(id="B", title="B", prerequisites=["A"]),
                LearningNode(id="C", title="C", prerequisites=["B", "ghost"]),
            ],
        )
        assert path_edges(path) == [
            ("A", "B", "prerequisite"),
            ("B", "C", "prerequisite"),
        ]

    def test_duplicate_pairs_collapsed(self):
        path = make_path([("A", "B"), ("A", "B")])
        assert path_edges(path) == [("A", "B", "prerequisite")]

    def test_optional_edges_excluded_from_prerequisite_view(self):
        path = make_path([("A", "B")], kind="optional")
        G = build_graph(path)
        assert G.number_of_edges() == 1
        assert build_prerequisite_graph(path).number_of_edges() == 0


# =========================================================================
# Test: Cycle detection
# =========================================================================


class TestCycleDetection:
    """The detector reports a cycle iff one exists among prerequisite edges."""

    @pytest.mark.parametrize(
        "edges",
        [
            [("A", "B"), ("B", "A")],
            [("A", "B"), ("B", "C"), ("C", "A")],
            [("A", "B"), ("B", "C"), ("C", "D"), ("D", "B")],
        ],
    )
    def test_cyclic_fixtures(self, edges):
        G = build_prerequisite_graph(make_path(edges))
        assert has_cycle(G) is True
        cycle = find_cycle(G)
        assert cycle
        # Consecutive edges chain into a closed loop
        for (_, v), (u, _) in zip(cycle, cycle[1:] + cycle[:1]):
            assert v == u

    @pytest.mark.parametrize("edges", [[], CHAIN, DIAMOND])
    def test_acyclic_fixtures(self, edges):
        G = build_prerequisite_graph(make_path(edges, nodes=["A", "B", "C", "D"]))
        assert has_cycle(G) is False
        assert find_cycle(G) == []

    def test_optional_edges_never_form_cycles(self):
        path = make_path([("A", "B")])
        path.connections.append(
            path.connections[0].model_copy(
                update={"from_id": "B", "to_id": "A", "type": "optional"}
            )
        )
        assert has_cycle(build_prerequisite_graph(path)) is False

    def test_would_create_cycle_back_edge(self):
        G = build_prerequisite_graph(make_path(CHAIN))
        assert would_create_cycle(G, "C", "A") is True
        assert would_create_cycle(G, "B", "A") is True

    def test_would_create_cycle_forward_edge(self):
        G = build_prerequisite_graph(make_path(CHAIN))
        assert would_create_cycle(G, "A", "C") is False

    def test_self_edge_is_cyclic(self):
        G = build_prerequisite_graph(make_path(CHAIN))
        assert would_create_cycle(G, "B", "B") is True

    def test_unknown_endpoint(self):
        G = build_prerequisite_graph(make_path(CHAIN))
        assert would_create_cycle(G, "A", "Z") is False

    def test_describe_cycle(self):
        assert describe_cycle([("A", "B"), ("B", "A")]) == "A -> B -> A"
        assert describe_cycle([]) == ""

    def test_ensure_acyclic_raises(self):
        G = build_prerequisite_graph(make_path([("A", "B"), ("B", "A")]))
        with pytest.raises(GraphInvalidError) as exc_info:
            ensure_acyclic(G)
        assert len(exc_info.value.cycle) == 2


# =========================================================================
# Test: Levels
# =========================================================================


class TestLevels:
    """Tests for longest-chain topological levels."""

    def test_chain(self):
        levels = calculate_levels(build_prerequisite_graph(make_path(CHAIN)))
        assert levels == {"A": 0, "B": 1, "C": 2}

    def test_diamond(self):
        levels = calculate_levels(build_prerequisite_graph(make_path(DIAMOND)))
        assert levels == {"A": 0, "B": 1, "C": 1, "D": 2}

    def test_longest_chain_wins(self):
        """A -> D directly and A -> B -> C -> D: D sits below C."""
        edges = [("A", "D"), ("A", "B"), ("B", "C"), ("C", "D")]
        levels = calculate_levels(build_prerequisite_graph(make_path(edges)))
        assert levels["D"] == 3

    def test_cyclic_graph_rejected(self):
        G = build_prerequisite_graph(make_path([("A", "B"), ("B", "A")]))
        with pytest.raises(GraphInvalidError):
            calculate_levels(G)

    def test_count_levels(self):
        assert count_levels({}) == 0
        assert count_levels({"A": 0}) == 1
        assert count_levels({"A": 0, "B": 1, "C": 1, "D": 2}) == 3

    def test_group_by_level_stable_order(self):
        path = make_path(DIAMOND, nodes=["A", "C", "B", "D"])
        G = build_prerequisite_graph(path)
        rows = group_by_level(G, calculate_levels(G))
        assert rows == [["A"], ["C", "B"], ["D"]]

    def test_isolated_nodes_level_zero(self):
        G = build_prerequisite_graph(make_path([], nodes=["X", "Y"]))
        assert calculate_levels(G) == {"X": 0, "Y": 0}
