"""
Pydantic models for the Learning-Path Graph Engine.

Graph records: learning paths, learning nodes, connections, positions.
Results: validation verdicts and the ``PathLayout`` visualization contract.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# =========================================================================
# Literals
# =========================================================================

ConnectionKind = Literal["prerequisite", "optional"]
NodeStatus = Literal["active", "completed", "locked"]
LayoutAlgorithm = Literal["hierarchical", "force", "circular"]


# =========================================================================
# Graph records
# =========================================================================


class Position(BaseModel):
    """A 2-D coordinate in layout space."""

    x: float = 0.0
    y: float = 0.0


class LearningNode(BaseModel):
    """A single unit of learning (course, module, assessment, ...)."""

    id: str
    title: str
    type: str = "module"
    prerequisites: List[str] = Field(default_factory=list)
    status: NodeStatus = "active"


class Connection(BaseModel):
    """Directed edge ``from -> to``; ``from`` must be completed first."""

    model_config = ConfigDict(populate_by_name=True)

    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")
    type: ConnectionKind = "prerequisite"

    @property
    def pair(self):
        return (self.from_id, self.to_id)


class PathSpec(BaseModel):
    """Input to ``PathService.create`` (a path without an id)."""

    title: str
    description: Optional[str] = None
    nodes: List[LearningNode] = Field(default_factory=list)
    connections: List[Connection] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class LearningPath(PathSpec):
    """A learning path: owned nodes, owned connections, metadata."""

    id: str

    def get_node(self, node_id: str) -> Optional[LearningNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]


# =========================================================================
# Results
# =========================================================================


class ValidationResult(BaseModel):
    """Verdict of the structural validator.

    ``issues`` lists errors first, then advisory warnings. Only errors
    affect ``valid``.
    """

    valid: bool
    issues: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "issues": list(self.issues)}


class LayoutNode(BaseModel):
    id: str
    title: str
    type: str
    position: Position
    prerequisites: List[str] = Field(default_factory=list)
    status: NodeStatus = "active"


class LayoutConnection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")
    type: ConnectionKind = "prerequisite"


class LayoutMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_nodes: int = Field(alias="totalNodes")
    total_connections: int = Field(alias="totalConnections")
    levels: int
    suggested_layout: LayoutAlgorithm = Field(alias="suggestedLayout")


class PathLayout(BaseModel):
    """Layout snapshot handed to serialization and UI layers."""

    nodes: List[LayoutNode] = Field(default_factory=list)
    connections: List[LayoutConnection] = Field(default_factory=list)
    metadata: LayoutMetadata

    def to_dict(self) -> Dict[str, Any]:
        """Serialise with the wire field names (``from``, ``totalNodes``, ...)."""
        return self.model_dump(by_alias=True)
