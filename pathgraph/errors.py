"""
Exception taxonomy for the Learning-Path Graph Engine.

Every mutating operation is all-or-nothing: when one of these is raised
the path is unchanged. Validation findings are returned as data
(``ValidationResult``), never raised.
"""

from typing import List, Optional, Sequence, Tuple


class PathGraphError(Exception):
    """Base class for all engine errors."""


class NotFoundError(PathGraphError):
    """Unknown path id or node id."""

    def __init__(self, kind: str, ident: str, path_id: Optional[str] = None):
        self.kind = kind
        self.ident = ident
        self.path_id = path_id
        where = f" in path {path_id}" if path_id and kind != "path" else ""
        super().__init__(f"{kind.capitalize()} not found: {ident}{where}")


class DuplicateNodeError(PathGraphError):
    def __init__(self, path_id: str, node_id: str):
        self.path_id = path_id
        self.node_id = node_id
        super().__init__(f"Node {node_id} already exists in path {path_id}")


class DuplicateEdgeError(PathGraphError):
    def __init__(self, path_id: str, from_id: str, to_id: str):
        self.path_id = path_id
        self.from_id = from_id
        self.to_id = to_id
        super().__init__(
            f"Connection {from_id} -> {to_id} already exists in path {path_id}"
        )


class CycleDetectedError(PathGraphError):
    """Insertion would close a directed cycle in the prerequisite graph."""

    def __init__(
        self,
        path_id: str,
        from_id: str,
        to_id: str,
        cycle: Optional[Sequence[Tuple[str, str]]] = None,
    ):
        self.path_id = path_id
        self.from_id = from_id
        self.to_id = to_id
        self.cycle: List[Tuple[str, str]] = list(cycle or [])
        super().__init__(
            f"Connection {from_id} -> {to_id} would create a circular "
            f"dependency in path {path_id}"
        )


class SelfLoopError(CycleDetectedError):
    def __init__(self, path_id: str, node_id: str):
        super().__init__(path_id, node_id, node_id, [(node_id, node_id)])
        self.args = (f"Node {node_id} cannot be its own prerequisite",)


class EdgeNotFoundError(PathGraphError):
    def __init__(self, path_id: str, from_id: str, to_id: str):
        self.path_id = path_id
        self.from_id = from_id
        self.to_id = to_id
        super().__init__(
            f"Connection {from_id} -> {to_id} not found in path {path_id}"
        )


class GraphInvalidError(PathGraphError):
    """Levels or layout requested on a structurally broken (cyclic) graph."""

    def __init__(self, message: str, cycle: Optional[Sequence[Tuple[str, str]]] = None):
        self.cycle: List[Tuple[str, str]] = list(cycle or [])
        super().__init__(message)
