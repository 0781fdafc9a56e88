"""
Topological levels of a prerequisite graph.

Level of a node = 0 if it has no prerequisites, otherwise
``1 + max(level of each direct prerequisite)``, the length of the longest
prerequisite chain ending at it.
"""

import logging
from typing import Dict, List

import networkx as nx

from pathgraph.cycles import ensure_acyclic
from pathgraph.errors import GraphInvalidError

logger = logging.getLogger(__name__)


def calculate_levels(G: nx.DiGraph) -> Dict[str, int]:
    """Return ``{node_id: level}`` in graph node order.

    One topological pass, O(V+E).

    Raises:
        GraphInvalidError: if *G* contains a cycle.
    """
    try:
        order = list(nx.topological_sort(G))
    except nx.NetworkXUnfeasible:
        ensure_acyclic(G)
        # find_cycle and topological_sort disagree: never expected.
        raise GraphInvalidError("Prerequisite graph is not a DAG")

    levels: Dict[str, int] = {}
    for node in order:
        preds = list(G.predecessors(node))
        levels[node] = 1 + max(levels[p] for p in preds) if preds else 0

    return {n: levels[n] for n in G.nodes}


def count_levels(levels: Dict[str, int]) -> int:
    """Number of distinct levels (``max + 1``; 0 for an empty graph)."""
    if not levels:
        return 0
    return max(levels.values()) + 1


def group_by_level(G: nx.DiGraph, levels: Dict[str, int]) -> List[List[str]]:
    """Rows of node ids per level, each row in graph node order."""
    rows: List[List[str]] = [[] for _ in range(count_levels(levels))]
    for node in G.nodes:
        rows[levels[node]].append(node)
    return rows
