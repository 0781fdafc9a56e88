"""
Path Service: the public façade of the Learning-Path Graph Engine.

Owns the learning paths (node and connection tables) and the position side
table keyed by ``(path_id, node_id)``. Every mutation is validated before it
is committed, so a failed call leaves the path exactly as it was.

Layouts and levels are pull-based: they are computed on
``get_path_layout`` / ``auto_layout`` / ``calculate_levels``, never after
each mutation. Cached positions may therefore be stale until the next
layout run.

Persistence is the caller's job (see ``pathgraph.store``); the service
performs no I/O.
"""

import logging
import math
import uuid
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union

import networkx as nx

from pathgraph.config import DEFAULT_CONFIG, LayoutConfig
from pathgraph.cycles import ensure_acyclic, find_cycle, would_create_cycle
from pathgraph.errors import (
    CycleDetectedError,
    DuplicateEdgeError,
    DuplicateNodeError,
    EdgeNotFoundError,
    GraphInvalidError,
    NotFoundError,
    SelfLoopError,
)
from pathgraph.graph import build_graph, path_edges, prerequisite_view
from pathgraph.layout import LAYOUT_ALGORITHMS, compute_layout, get_suggested_layout
from pathgraph.levels import calculate_levels, count_levels
from pathgraph.models import (
    Connection,
    ConnectionKind,
    LayoutAlgorithm,
    LayoutConnection,
    LayoutMetadata,
    LayoutNode,
    LearningNode,
    LearningPath,
    PathLayout,
    PathSpec,
    Position,
    ValidationResult,
)
from pathgraph.utils import seed_from_path_id
from pathgraph.validator import validate_path

logger = logging.getLogger(__name__)

PositionKey = Tuple[str, str]


class PathService:
    """In-memory learning-path store with DAG-guarded mutations.

    Not thread-safe: callers serialise mutating calls per path.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self._paths: Dict[str, LearningPath] = {}
        self._positions: Dict[PositionKey, Position] = {}
        self._manual: Set[PositionKey] = set()

    # =====================================================================
    # Paths
    # =====================================================================

    def create(self, spec: Union[PathSpec, Mapping[str, Any]]) -> LearningPath:
        """Create a path with a generated id from *spec*.

        Pre-populated nodes and connections must satisfy the graph
        invariants; the matching error is raised otherwise.
        """
        if not isinstance(spec, PathSpec):
            spec = PathSpec.model_validate(spec)
        spec = spec.model_copy(deep=True)
        path = LearningPath(
            id=str(uuid.uuid4()),
            title=spec.title,
            description=spec.description,
            nodes=spec.nodes,
            connections=spec.connections,
            metadata=spec.metadata,
        )
        _check_invariants(path)
        self._paths[path.id] = path
        logger.info(
            "Created path %s (%r) with %d node(s), %d connection(s).",
            path.id, path.title, len(path.nodes), len(path.connections),
        )
        return path

    def load_path(self, path: LearningPath) -> LearningPath:
        """Register an externally loaded path, replacing any in-memory copy.

        Cached positions of a replaced path are dropped.
        """
        path = path.model_copy(deep=True)
        _check_invariants(path)
        if path.id in self._paths:
            self._clear_positions(path.id)
        self._paths[path.id] = path
        logger.debug("Loaded path %s (%d node(s)).", path.id, len(path.nodes))
        return path

    def get_path(self, path_id: str) -> LearningPath:
        return self._get(path_id)

    def list_paths(self) -> List[str]:
        return list(self._paths)

    # =====================================================================
    # Node mutations
    # =====================================================================

    def add_node(self, path_id: str, node: Union[LearningNode, Mapping[str, Any]]) -> None:
        """Append *node* to the path; its position stays unset."""
        path = self._get(path_id)
        if not isinstance(node, LearningNode):
            node = LearningNode.model_validate(node)
        node = node.model_copy(deep=True)

        if path.get_node(node.id) is not None:
            logger.warning("Rejected add_node: %s already in path %s.", node.id, path_id)
            raise DuplicateNodeError(path_id, node.id)
        if node.id in node.prerequisites:
            logger.warning("Rejected add_node: %s lists itself.", node.id)
            raise SelfLoopError(path_id, node.id)

        candidate = path.model_copy(deep=True)
        candidate.nodes.append(node)
        cycle = find_cycle(prerequisite_view(build_graph(candidate)))
        if cycle:
            logger.warning(
                "Rejected add_node: %s would close a cycle in path %s.",
                node.id, path_id,
            )
            raise CycleDetectedError(path_id, cycle[0][0], cycle[0][1], cycle)

        path.nodes.append(node)
        logger.debug("Added node %s to path %s.", node.id, path_id)

    def remove_node(self, path_id: str, node_id: str) -> None:
        """Remove a node, its connections, prerequisite references and position."""
        path = self._get(path_id)
        node = self._get_node(path, node_id)

        path.nodes.remove(node)
        path.connections[:] = [
            c for c in path.connections if node_id not in (c.from_id, c.to_id)
        ]
        for other in path.nodes:
            if node_id in other.prerequisites:
                other.prerequisites = [p for p in other.prerequisites if p != node_id]
        self._positions.pop((path_id, node_id), None)
        self._manual.discard((path_id, node_id))
        logger.debug("Removed node %s from path %s.", node_id, path_id)

    def move_node(
        self,
        path_id: str,
        node_id: str,
        position: Union[Position, Mapping[str, float]],
    ) -> None:
        """Pin *node_id* at *position*; only ``auto_layout`` overrides it."""
        path = self._get(path_id)
        self._get_node(path, node_id)
        key = (path_id, node_id)
        self._positions[key] = Position.model_validate(position).model_copy()
        self._manual.add(key)

    # =====================================================================
    # Edge mutations
    # =====================================================================

    def connect_nodes(
        self,
        path_id: str,
        from_id: str,
        to_id: str,
        kind: ConnectionKind = "prerequisite",
    ) -> Connection:
        """Add ``from_id -> to_id``; rejected up front if it would break the DAG."""
        if kind not in ("prerequisite", "optional"):
            raise ValueError(f"Unknown connection kind {kind!r}")
        path = self._get(path_id)
        self._get_node(path, from_id)
        target = self._get_node(path, to_id)

        if from_id == to_id:
            logger.warning("Rejected self-loop on %s in path %s.", from_id, path_id)
            raise SelfLoopError(path_id, from_id)

        G = build_graph(path)
        if G.has_edge(from_id, to_id):
            logger.warning(
                "Rejected duplicate connection %s -> %s in path %s.",
                from_id, to_id, path_id,
            )
            raise DuplicateEdgeError(path_id, from_id, to_id)

        if kind == "prerequisite" and would_create_cycle(
            prerequisite_view(G), from_id, to_id
        ):
            logger.warning(
                "Rejected connection %s -> %s in path %s: circular dependency.",
                from_id, to_id, path_id,
            )
            raise CycleDetectedError(path_id, from_id, to_id)

        conn = Connection(from_id=from_id, to_id=to_id, type=kind)
        path.connections.append(conn)
        if kind == "prerequisite" and from_id not in target.prerequisites:
            target.prerequisites.append(from_id)
        logger.debug("Connected %s -> %s (%s) in path %s.", from_id, to_id, kind, path_id)
        return conn

    def disconnect_nodes(self, path_id: str, from_id: str, to_id: str) -> None:
        """Remove ``from_id -> to_id``; ``EdgeNotFoundError`` if absent."""
        path = self._get(path_id)
        target = self._get_node(path, to_id)

        # Dangling prerequisite ids are not edges.
        if not any((u, v) == (from_id, to_id) for u, v, _ in path_edges(path)):
            raise EdgeNotFoundError(path_id, from_id, to_id)

        path.connections[:] = [c for c in path.connections if c.pair != (from_id, to_id)]
        if from_id in target.prerequisites:
            target.prerequisites = [p for p in target.prerequisites if p != from_id]
        logger.debug("Disconnected %s -> %s in path %s.", from_id, to_id, path_id)

    # =====================================================================
    # Analysis
    # =====================================================================

    def validate(self, path: Union[LearningPath, str]) -> ValidationResult:
        """Structural validation; accepts a path object or a stored path id."""
        if isinstance(path, str):
            path = self._get(path)
        return validate_path(path)

    def calculate_levels(self, path_id: str) -> Dict[str, int]:
        G = self._checked_graph(path_id)
        return calculate_levels(prerequisite_view(G))

    def get_suggested_layout(self, path_id: str) -> LayoutAlgorithm:
        return get_suggested_layout(self._checked_graph(path_id))

    # =====================================================================
    # Layout
    # =====================================================================

    def get_position(self, path_id: str, node_id: str) -> Optional[Position]:
        position = self._positions.get((path_id, node_id))
        return position.model_copy() if position is not None else None

    def is_manually_positioned(self, path_id: str, node_id: str) -> bool:
        return (path_id, node_id) in self._manual

    def get_path_layout(self, path_id: str) -> PathLayout:
        """Return the cached layout, computing the suggested one where unset.

        Nodes that already have a position (from an earlier layout run or
        ``move_node``) keep it; only unset nodes are filled in. A filled
        node whose computed slot is already occupied is shifted right by
        ``node_spacing`` until it is clear of every placed node.
        """
        path = self._get(path_id)
        G = self._checked_graph(path_id)
        suggested = get_suggested_layout(G)

        missing = [n for n in G.nodes if (path_id, n) not in self._positions]
        if missing:
            positions = compute_layout(
                G, suggested, self.config, seed_from_path_id(path_id)
            )
            spacing = self.config.node_spacing
            placed = [p for (pid, _), p in self._positions.items() if pid == path_id]
            planned = [positions[n] for n in missing]
            for node_id in missing:
                position = positions[node_id]
                if _crowded(position, placed, spacing):
                    position = _free_slot(position, placed + planned, spacing)
                    planned.append(position)
                    placed.append(position)
                self._positions[(path_id, node_id)] = position
            logger.debug(
                "Filled %d unset position(s) in path %s using %s layout.",
                len(missing), path_id, suggested,
            )

        levels = calculate_levels(prerequisite_view(G))
        nodes = [
            LayoutNode(
                id=node.id,
                title=node.title,
                type=node.type,
                position=self._positions[(path_id, node.id)].model_copy(),
                prerequisites=list(node.prerequisites),
                status=node.status,
            )
            for node in path.nodes
        ]
        connections = [
            LayoutConnection(from_id=src, to_id=tgt, type=kind)
            for src, tgt, kind in path_edges(path)
        ]
        metadata = LayoutMetadata(
            total_nodes=len(nodes),
            total_connections=len(connections),
            levels=count_levels(levels),
            suggested_layout=suggested,
        )
        return PathLayout(nodes=nodes, connections=connections, metadata=metadata)

    def auto_layout(self, path_id: str, algorithm: LayoutAlgorithm) -> Dict[str, Position]:
        """Recompute with *algorithm*, overwriting every position (manual too)."""
        if algorithm not in LAYOUT_ALGORITHMS:
            raise ValueError(
                f"Unknown layout algorithm {algorithm!r}; "
                f"expected one of {sorted(LAYOUT_ALGORITHMS)}"
            )
        G = self._checked_graph(path_id)
        positions = compute_layout(
            G, algorithm, self.config, seed_from_path_id(path_id)
        )

        self._clear_positions(path_id)
        for node_id, position in positions.items():
            self._positions[(path_id, node_id)] = position
        logger.info(
            "Auto-layout %s applied to path %s (%d node(s)).",
            algorithm, path_id, len(positions),
        )
        return {n: p.model_copy() for n, p in positions.items()}

    # =====================================================================
    # Internals
    # =====================================================================

    def _get(self, path_id: str) -> LearningPath:
        try:
            return self._paths[path_id]
        except KeyError:
            raise NotFoundError("path", path_id) from None

    @staticmethod
    def _get_node(path: LearningPath, node_id: str) -> LearningNode:
        node = path.get_node(node_id)
        if node is None:
            raise NotFoundError("node", node_id, path.id)
        return node

    def _checked_graph(self, path_id: str) -> nx.DiGraph:
        """Graph of a stored path, asserting the DAG invariant still holds."""
        G = build_graph(self._get(path_id))
        try:
            ensure_acyclic(prerequisite_view(G))
        except GraphInvalidError:
            # Mutations are guarded, so a cycle here means the path object
            # was modified behind the service's back.
            logger.error("Stored path %s violates the DAG invariant.", path_id)
            raise
        return G

    def _clear_positions(self, path_id: str) -> None:
        for key in [k for k in self._positions if k[0] == path_id]:
            del self._positions[key]
        self._manual = {k for k in self._manual if k[0] != path_id}


def _crowded(position: Position, others: List[Position], spacing: float) -> bool:
    return any(
        math.hypot(position.x - p.x, position.y - p.y) < spacing / 2 for p in others
    )


def _free_slot(position: Position, taken: List[Position], spacing: float) -> Position:
    """First slot right of *position*, in ``spacing`` steps, clear of all *taken*."""
    x = position.x + spacing
    while _crowded(Position(x=x, y=position.y), taken, spacing):
        x += spacing
    return Position(x=round(x, 6), y=position.y)


def _check_invariants(path: LearningPath) -> None:
    """Raise the matching error if *path* breaks a graph invariant.

    Also records every ``prerequisite`` connection in its target's
    prerequisite list.
    """
    seen_nodes: Set[str] = set()
    for node in path.nodes:
        if node.id in seen_nodes:
            raise DuplicateNodeError(path.id, node.id)
        seen_nodes.add(node.id)
        if node.id in node.prerequisites:
            raise SelfLoopError(path.id, node.id)

    seen_pairs: Set[Tuple[str, str]] = set()
    for conn in path.connections:
        for end in (conn.from_id, conn.to_id):
            if end not in seen_nodes:
                raise NotFoundError("node", end, path.id)
        if conn.from_id == conn.to_id:
            raise SelfLoopError(path.id, conn.from_id)
        if conn.pair in seen_pairs:
            raise DuplicateEdgeError(path.id, conn.from_id, conn.to_id)
        seen_pairs.add(conn.pair)

    for conn in path.connections:
        target = path.get_node(conn.to_id)
        if conn.type == "prerequisite":
            if conn.from_id not in target.prerequisites:
                target.prerequisites.append(conn.from_id)
        elif conn.from_id in target.prerequisites:
            raise DuplicateEdgeError(path.id, conn.from_id, conn.to_id)

    cycle = find_cycle(prerequisite_view(build_graph(path)))
    if cycle:
        raise CycleDetectedError(path.id, cycle[0][0], cycle[0][1], cycle)
