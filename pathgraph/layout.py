"""
2-D layouts of learning-path graphs.

Three pure algorithms map a graph (``pathgraph.graph.build_graph``) to
``{node_id: Position}``:

- ``hierarchical``: one row per topological level, rows centred on x = 0.
- ``circular``:     all nodes on one circle around the origin.
- ``force``:        bounded spring/repulsion relaxation seeded from the
  path id, clamped to a bounding box.

``get_suggested_layout`` picks a default per graph shape and
``compute_layout`` dispatches by name after checking the acyclicity
precondition. Every algorithm is deterministic: node order is graph
insertion order and coordinates are rounded to 6 decimals.
"""

import logging
import math
from typing import Callable, Dict, Optional

import networkx as nx
import numpy as np

from pathgraph.config import DEFAULT_CONFIG, LayoutConfig
from pathgraph.cycles import ensure_acyclic
from pathgraph.graph import prerequisite_view
from pathgraph.levels import calculate_levels, count_levels, group_by_level
from pathgraph.models import LayoutAlgorithm, Position
from pathgraph.utils import timed

logger = logging.getLogger(__name__)

Positions = Dict[str, Position]
LayoutFn = Callable[[nx.DiGraph, LayoutConfig, int], Positions]

_DECIMALS = 6


def _pos(x: float, y: float) -> Position:
    # round() leaves -0.0 behind; adding 0.0 normalises it.
    return Position(x=round(float(x), _DECIMALS) + 0.0, y=round(float(y), _DECIMALS) + 0.0)


# =========================================================================
# Heuristic
# =========================================================================


def get_suggested_layout(G: nx.DiGraph) -> LayoutAlgorithm:
    """Pick a default algorithm from the shape of *G*.

    - ≤ 1 node, or every node on the same level → ``circular``
    - every node has at most one incoming edge (chains, trees) → ``hierarchical``
    - anything denser → ``force``

    Requires an acyclic prerequisite subgraph.
    """
    if len(G) <= 1:
        return "circular"
    levels = calculate_levels(prerequisite_view(G))
    if count_levels(levels) <= 1:
        return "circular"
    if max(d for _, d in G.in_degree()) <= 1:
        return "hierarchical"
    return "force"


# =========================================================================
# Algorithms
# =========================================================================


def hierarchical_layout(
    G: nx.DiGraph, config: LayoutConfig = DEFAULT_CONFIG, seed: int = 0
) -> Positions:
    """Rows by level; ``y = level_spacing * level``, ``x`` steps by ``node_spacing``."""
    levels = calculate_levels(prerequisite_view(G))
    positions: Positions = {}
    for level, row in enumerate(group_by_level(G, levels)):
        start_x = -(len(row) - 1) * config.node_spacing / 2
        for index, node_id in enumerate(row):
            positions[node_id] = _pos(
                start_x + index * config.node_spacing,
                level * config.level_spacing,
            )
    return positions


def circular_layout(
    G: nx.DiGraph, config: LayoutConfig = DEFAULT_CONFIG, seed: int = 0
) -> Positions:
    """Evenly spaced on one circle; the radius grows with ``sqrt(n)``."""
    n = len(G)
    if n == 0:
        return {}
    radius = max(config.min_radius, config.radius_per_sqrt_node * math.sqrt(n))
    positions: Positions = {}
    for index, node_id in enumerate(G.nodes):
        angle = 2 * math.pi * index / n
        positions[node_id] = _pos(radius * math.cos(angle), radius * math.sin(angle))
    return positions


def force_layout(
    G: nx.DiGraph, config: LayoutConfig = DEFAULT_CONFIG, seed: int = 0
) -> Positions:
    """Spring/repulsion relaxation over a fixed number of iterations.

    Per iteration every pair of nodes repels with magnitude
    ``repulsion / distance`` and every edge pulls its endpoints toward
    ``rest_length`` with strength ``spring_strength``. Each node's
    displacement is capped by a step size that cools linearly to zero.
    Initial positions come from ``numpy.random.default_rng(seed)``.
    """
    nodes = list(G.nodes)
    n = len(nodes)
    if n == 0:
        return {}

    rng = np.random.default_rng(seed)
    pos = (rng.random((n, 2)) - 0.5) * config.initial_spread

    index = {node_id: i for i, node_id in enumerate(nodes)}
    edges = np.array(
        [(index[u], index[v]) for u, v in G.edges], dtype=np.intp
    ).reshape(-1, 2)
    src, tgt = edges[:, 0], edges[:, 1]

    iterations = config.force_iterations
    for it in range(iterations):
        step = config.initial_step * (1.0 - it / iterations)

        # delta[i, j] = pos[i] - pos[j]
        delta = pos[:, None, :] - pos[None, :, :]
        dist = np.maximum(np.linalg.norm(delta, axis=-1), 1e-2)
        disp = ((config.repulsion / dist ** 2)[:, :, None] * delta).sum(axis=1)

        if len(edges):
            d = pos[tgt] - pos[src]
            length = np.maximum(np.linalg.norm(d, axis=1), 1e-2)
            pull = (config.spring_strength * (length - config.rest_length) / length)[:, None] * d
            np.add.at(disp, src, pull)
            np.add.at(disp, tgt, -pull)

        mag = np.linalg.norm(disp, axis=1)
        scale = np.where(mag > step, step / np.maximum(mag, 1e-12), 1.0)
        pos = pos + disp * scale[:, None]

    half = config.bounding_box / 2
    pos = np.clip(pos, -half, half)
    return {node_id: _pos(pos[i, 0], pos[i, 1]) for i, node_id in enumerate(nodes)}


LAYOUT_ALGORITHMS: Dict[str, LayoutFn] = {
    "hierarchical": hierarchical_layout,
    "circular": circular_layout,
    "force": force_layout,
}


# =========================================================================
# Dispatch
# =========================================================================


def compute_layout(
    G: nx.DiGraph,
    algorithm: LayoutAlgorithm,
    config: Optional[LayoutConfig] = None,
    seed: int = 0,
) -> Positions:
    """Run *algorithm* on *G*.

    Raises:
        ValueError: unknown algorithm name.
        GraphInvalidError: the prerequisite subgraph contains a cycle.
    """
    try:
        layout_fn = LAYOUT_ALGORITHMS[algorithm]
    except KeyError:
        raise ValueError(
            f"Unknown layout algorithm {algorithm!r}; "
            f"expected one of {sorted(LAYOUT_ALGORITHMS)}"
        ) from None

    ensure_acyclic(prerequisite_view(G))

    with timed(f"{algorithm} layout"):
        positions = layout_fn(G, config or DEFAULT_CONFIG, seed)
    logger.info(
        "Computed %s layout for %d node(s), %d edge(s).",
        algorithm, G.number_of_nodes(), G.number_of_edges(),
    )
    return positions
