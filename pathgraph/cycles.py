"""
Cycle detection over prerequisite graphs.

Two entry points:

- ``would_create_cycle``: guards a single prospective edge ``from -> to``
  by asking whether ``from`` is already reachable from ``to``.
- ``find_cycle`` / ``has_cycle``: whole-graph search (DFS colouring, via
  ``networkx.find_cycle``), also used as the precondition of level and
  layout computation through ``ensure_acyclic``.

All functions take a graph whose edges are already restricted to the
prerequisite kind (see ``pathgraph.graph.prerequisite_view``).
"""

import logging
from typing import List, Tuple

import networkx as nx

from pathgraph.errors import GraphInvalidError

logger = logging.getLogger(__name__)


def would_create_cycle(G: nx.DiGraph, from_id: str, to_id: str) -> bool:
    """Return ``True`` if adding ``from_id -> to_id`` would close a cycle.

    Reachability search from *to_id* along existing edges; O(V+E).
    Endpoints absent from *G* cannot be on a cycle yet.
    """
    if from_id == to_id:
        return True
    if from_id not in G or to_id not in G:
        return False
    return nx.has_path(G, to_id, from_id)


def find_cycle(G: nx.DiGraph) -> List[Tuple[str, str]]:
    """Return the edges of one directed cycle in *G*, or ``[]`` if acyclic."""
    try:
        cycle = nx.find_cycle(G, orientation="original")
    except nx.NetworkXNoCycle:
        return []
    # cycle is list of (u, v, direction)
    return [(u, v) for u, v, _ in cycle]


def has_cycle(G: nx.DiGraph) -> bool:
    """Return ``True`` iff *G* contains a directed cycle."""
    return bool(find_cycle(G))


def describe_cycle(cycle: List[Tuple[str, str]]) -> str:
    """Render ``[(a, b), (b, a)]`` as ``'a -> b -> a'``."""
    if not cycle:
        return ""
    nodes = [u for u, _ in cycle] + [cycle[-1][1]]
    return " -> ".join(nodes)


def ensure_acyclic(G: nx.DiGraph) -> None:
    """Raise ``GraphInvalidError`` naming the cycle if *G* is not a DAG."""
    cycle = find_cycle(G)
    if cycle:
        raise GraphInvalidError(
            f"Prerequisite graph contains a cycle: {describe_cycle(cycle)}",
            cycle=cycle,
        )
