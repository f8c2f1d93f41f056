"""
Workflow Data Models — nodes, edges, history and metadata.

These are the serializable structures behind the canvas. The
``GraphStore`` owns live instances; ``serialization`` converts them
to and from the portable JSON document.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


def _now_ms() -> int:
    return int(time.time() * 1000)


class Position(BaseModel):
    """Canvas coordinate. Never validated against canvas bounds."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0


class WorkflowNode(BaseModel):
    """A node placed on the workflow canvas.

    ``type`` references a registered ``NodeType.node_type``.
    ``data`` holds the type-specific fields; keys the registry does
    not know about are carried along untouched.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    position: Position = Field(default_factory=Position)
    data: Dict[str, Any] = Field(default_factory=dict)


EdgeCurve = Literal["default", "straight", "smoothstep", "step", "custom"]


class WorkflowEdge(BaseModel):
    """A directed edge between two nodes.

    ``source_handle`` selects the branch of a multi-output node
    (``"true"`` / ``"false"`` for conditions); ``None`` otherwise.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    source: str
    target: str
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")
    label: Optional[str] = None
    type: Optional[EdgeCurve] = None
    style: Optional[Dict[str, Any]] = None


# ── History ──


class NodeHistoryEntry(BaseModel):
    node_id: str
    timestamp: int = Field(default_factory=_now_ms)
    type: Optional[str] = None
    changes: Optional[Dict[str, Any]] = None


class EdgeHistoryEntry(BaseModel):
    edge_id: str
    timestamp: int = Field(default_factory=_now_ms)
    source: str
    target: str


class NodeHistory(BaseModel):
    created: List[NodeHistoryEntry] = Field(default_factory=list)
    updated: List[NodeHistoryEntry] = Field(default_factory=list)
    deleted: List[NodeHistoryEntry] = Field(default_factory=list)


class EdgeHistory(BaseModel):
    created: List[EdgeHistoryEntry] = Field(default_factory=list)
    deleted: List[EdgeHistoryEntry] = Field(default_factory=list)


class WorkflowHistory(BaseModel):
    """Append-only audit trail of node and edge lifecycle events."""

    nodes: NodeHistory = Field(default_factory=NodeHistory)
    edges: EdgeHistory = Field(default_factory=EdgeHistory)


class WorkflowMetadata(BaseModel):
    created_at: int = Field(default_factory=_now_ms)
    last_modified: int = Field(default_factory=_now_ms)
    version: int = 1
    total_nodes: int = 0
    total_edges: int = 0

    def touch(self, total_nodes: int, total_edges: int) -> None:
        """Bump the version and refresh counters after a committed mutation."""
        self.last_modified = _now_ms()
        self.version += 1
        self.total_nodes = total_nodes
        self.total_edges = total_edges


IssueType = Literal["missing_connection", "invalid_config", "circular_dependency"]


class ValidationIssue(BaseModel):
    node_id: str
    type: IssueType
    message: str
    timestamp: int = Field(default_factory=_now_ms)
