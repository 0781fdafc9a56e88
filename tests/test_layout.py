"""
pytest suite for the layout engine: heuristic, three algorithms, dispatch.

Force layouts are deterministic for a given seed.
"""

import json
import logging
import math

import pytest

from conftest import CHAIN, DIAMOND, make_path
from pathgraph.config import LayoutConfig
from pathgraph.errors import GraphInvalidError
from pathgraph.graph import build_graph
from pathgraph.layout import (
    circular_layout,
    compute_layout,
    force_layout,
    get_suggested_layout,
    hierarchical_layout,
)
from pathgraph.utils import seed_from_path_id, timed


def _coords(positions):
    return {n: (p.x, p.y) for n, p in positions.items()}


# =========================================================================
# Test: Heuristic
# =========================================================================


class TestSuggestedLayout:
    """``get_suggested_layout`` is a pure function of graph shape."""

    def test_empty_and_single(self):
        assert get_suggested_layout(build_graph(make_path([], nodes=[]))) == "circular"
        assert get_suggested_layout(build_graph(make_path([], nodes=["A"]))) == "circular"

    def test_all_same_level(self):
        G = build_graph(make_path([], nodes=["A", "B", "C"]))
        assert get_suggested_layout(G) == "circular"

    def test_chain_is_hierarchical(self):
        assert get_suggested_layout(build_graph(make_path(CHAIN))) == "hierarchical"

    def test_tree_is_hierarchical(self):
        G = build_graph(make_path([("A", "B"), ("A", "C"), ("B", "D")]))
        assert get_suggested_layout(G) == "hierarchical"

    def test_diamond_is_force(self):
        assert get_suggested_layout(build_graph(make_path(DIAMOND))) == "force"

    def test_deterministic(self):
        G = build_graph(make_path(DIAMOND))
        assert {get_suggested_layout(G) for _ in range(5)} == {"force"}


# =========================================================================
# Test: Hierarchical
# =========================================================================


class TestHierarchical:
    """Rows by level, centred on x = 0."""

    def test_chain_column(self):
        positions = hierarchical_layout(build_graph(make_path(CHAIN)))
        assert _coords(positions) == {
            "A": (0.0, 0.0),
            "B": (0.0, 200.0),
            "C": (0.0, 400.0),
        }

    def test_diamond_rows(self):
        positions = hierarchical_layout(build_graph(make_path(DIAMOND)))
        assert _coords(positions) == {
            "A": (0.0, 0.0),
            "B": (-75.0, 200.0),
            "C": (75.0, 200.0),
            "D": (0.0, 400.0),
        }

    def test_custom_spacing(self):
        config = LayoutConfig(node_spacing=10, level_spacing=20)
        positions = hierarchical_layout(build_graph(make_path(DIAMOND)), config)
        assert _coords(positions)["C"] == (5.0, 20.0)

    def test_byte_identical_reruns(self):
        G = build_graph(make_path(DIAMOND))
        first = json.dumps({n: p.model_dump() for n, p in hierarchical_layout(G).items()})
        second = json.dumps({n: p.model_dump() for n, p in hierarchical_layout(G).items()})
        assert first == second


# =========================================================================
# Test: Circular
# =========================================================================


class TestCircular:
    """One circle around the origin."""

    def test_four_nodes_quarter_turns(self):
        positions = circular_layout(build_graph(make_path([], nodes=["A", "B", "C", "D"])))
        radii = [math.hypot(p.x, p.y) for p in positions.values()]
        assert all(math.isclose(r, radii[0]) for r in radii)
        angles = [math.degrees(math.atan2(p.y, p.x)) % 360 for p in positions.values()]
        assert [round(a) for a in angles] == [0, 90, 180, 270]

    def test_radius_minimum(self):
        positions = circular_layout(build_graph(make_path([], nodes=["A", "B"])))
        assert math.isclose(math.hypot(positions["A"].x, positions["A"].y), 100.0)

    def test_radius_grows_with_sqrt_n(self):
        nodes = [f"n{i}" for i in range(16)]
        positions = circular_layout(build_graph(make_path([], nodes=nodes)))
        assert math.isclose(math.hypot(positions["n0"].x, positions["n0"].y), 240.0)

    def test_empty(self):
        assert circular_layout(build_graph(make_path([], nodes=[]))) == {}


# =========================================================================
# Test: Force-directed
# =========================================================================


class TestForce:
    """Seeded, bounded spring/repulsion relaxation."""

    def test_reproducible_for_same_seed(self):
        G = build_graph(make_path(DIAMOND))
        seed = seed_from_path_id("path-1")
        assert _coords(force_layout(G, seed=seed)) == _coords(force_layout(G, seed=seed))

    def test_different_graphs_differ(self):
        seed = seed_from_path_id("path-1")
        chain = build_graph(make_path([("A", "B"), ("B", "C"), ("C", "D")]))
        star = build_graph(make_path([("A", "B"), ("A", "C"), ("A", "D")]))
        assert _coords(force_layout(chain, seed=seed)) != _coords(force_layout(star, seed=seed))

    def test_different_seeds_differ(self):
        G = build_graph(make_path(DIAMOND))
        assert _coords(force_layout(G, seed=1)) != _coords(force_layout(G, seed=2))

    def test_clamped_to_bounding_box(self):
        config = LayoutConfig(bounding_box=100, repulsion=1e6)
        nodes = [f"n{i}" for i in range(8)]
        positions = force_layout(build_graph(make_path([], nodes=nodes)), config, seed=7)
        for p in positions.values():
            assert -50.0 <= p.x <= 50.0
            assert -50.0 <= p.y <= 50.0

    def test_connected_nodes_pulled_together(self):
        """Springs keep an edge's endpoints closer than the initial spread."""
        G = build_graph(make_path([("A", "B")]))
        positions = force_layout(G, seed=3)
        dist = math.hypot(positions["A"].x - positions["B"].x, positions["A"].y - positions["B"].y)
        assert dist < 400.0

    def test_single_and_empty(self):
        assert force_layout(build_graph(make_path([], nodes=[]))) == {}
        assert set(force_layout(build_graph(make_path([], nodes=["A"])))) == {"A"}


# =========================================================================
# Test: Dispatch
# =========================================================================


class TestComputeLayout:
    """Dispatch and precondition checks."""

    @pytest.mark.parametrize("algorithm", ["hierarchical", "circular", "force"])
    def test_every_node_positioned(self, algorithm):
        G = build_graph(make_path(DIAMOND))
        positions = compute_layout(G, algorithm, seed=11)
        assert set(positions) == {"A", "B", "C", "D"}

    def test_cyclic_graph_rejected(self):
        G = build_graph(make_path([("A", "B"), ("B", "A")]))
        with pytest.raises(GraphInvalidError):
            compute_layout(G, "circular")

    def test_unknown_algorithm(self):
        with pytest.raises(ValueError):
            compute_layout(build_graph(make_path(CHAIN)), "spiral")

    def test_seed_from_path_id_stable(self):
        assert seed_from_path_id("abc") == seed_from_path_id("abc")
        assert seed_from_path_id("abc") != seed_from_path_id("abd")

    def test_timed_logs_failed_step(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="pathgraph.utils"):
            with pytest.raises(RuntimeError):
                with timed("broken step"):
                    raise RuntimeError("boom")
        assert "broken step finished in" in caplog.text
