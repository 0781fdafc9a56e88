"""
Shared fixtures and helpers for the Learning-Path Graph Engine tests.

All fixtures are small hand-built graphs: no network, no randomness
outside the seeded force layout.
"""

import os
import sys
from typing import Iterable, Optional, Sequence, Tuple

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from pathgraph.models import Connection, LearningNode, LearningPath
from pathgraph.service import PathService


def make_path(
    edges: Iterable[Tuple[str, str]] = (),
    nodes: Optional[Sequence[str]] = None,
    path_id: str = "path-1",
    kind: str = "prerequisite",
) -> LearningPath:
    """Build a ``LearningPath`` from ``(from, to)`` pairs.

    Node order is *nodes* if given, else first appearance in *edges*.
    """
    edges = list(edges)
    if nodes is None:
        nodes = list(dict.fromkeys(n for pair in edges for n in pair))
    return LearningPath(
        id=path_id,
        title="Test path",
        nodes=[LearningNode(id=n, title=f"Node {n}") for n in nodes],
        connections=[Connection(from_id=a, to_id=b, type=kind) for a, b in edges],
    )


CHAIN = [("A", "B"), ("B", "C")]
DIAMOND = [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")]


@pytest.fixture()
def service():
    return PathService()


@pytest.fixture()
def chain_path(service):
    """Stored path A -> B -> C."""
    path = service.create({"title": "Chain"})
    for node_id in ("A", "B", "C"):
        service.add_node(path.id, {"id": node_id, "title": f"Node {node_id}"})
    service.connect_nodes(path.id, "A", "B")
    service.connect_nodes(path.id, "B", "C")
    return path
