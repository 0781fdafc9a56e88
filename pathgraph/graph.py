"""
Graph construction for learning paths.

A ``LearningPath`` is turned into an id-keyed ``networkx.DiGraph``. Nodes
are inserted in path order (the stable ordering key used by every layout),
edges carry a ``kind`` attribute (``prerequisite`` | ``optional``).

The edge set of a path is the union of its stored connections and the
implicit prerequisite edges ``p -> n`` derived from each node's
prerequisite list. Edges whose endpoints are not nodes of the path are
left out; the validator reports them.
"""

import logging
from typing import List, Set, Tuple

import networkx as nx

from pathgraph.models import LearningPath

logger = logging.getLogger(__name__)

Edge = Tuple[str, str, str]


def path_edges(path: LearningPath) -> List[Edge]:
    """Return ``(from, to, kind)`` triples: stored first, implicit after.

    Repeated ordered pairs are collapsed to their first occurrence.
    """
    node_ids = set(path.node_ids())
    seen: Set[Tuple[str, str]] = set()
    edges: List[Edge] = []

    for conn in path.connections:
        if conn.pair in seen:
            continue
        if conn.from_id not in node_ids or conn.to_id not in node_ids:
            continue
        seen.add(conn.pair)
        edges.append((conn.from_id, conn.to_id, conn.type))

    for node in path.nodes:
        for prereq in node.prerequisites:
            pair = (prereq, node.id)
            if prereq not in node_ids or pair in seen:
                continue
            seen.add(pair)
            edges.append((prereq, node.id, "prerequisite"))

    return edges


def build_graph(path: LearningPath) -> nx.DiGraph:
    """Build the full connection graph of *path* (both edge kinds)."""
    G = nx.DiGraph(path_id=path.id)
    for node in path.nodes:
        G.add_node(node.id, title=node.title, type=node.type)
    for src, tgt, kind in path_edges(path):
        G.add_edge(src, tgt, kind=kind)
    return G


def prerequisite_view(G: nx.DiGraph) -> nx.DiGraph:
    """Read-only view of *G* restricted to ``prerequisite`` edges."""
    return nx.subgraph_view(
        G, filter_edge=lambda u, v: G[u][v].get("kind") == "prerequisite"
    )


def build_prerequisite_graph(path: LearningPath) -> nx.DiGraph:
    """Shortcut for ``prerequisite_view(build_graph(path))``."""
    return prerequisite_view(build_graph(path))
