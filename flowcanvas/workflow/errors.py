"""
Workflow Errors.

Every failure inside the graph core is a rejected operation: the
store is left exactly as it was and one of these is raised for the
caller to present (toast, inline message, …).
"""

from __future__ import annotations

from typing import List, Optional


class WorkflowError(Exception):
    """Base class for all rejected graph operations."""


class InvalidType(WorkflowError):
    """A node type not present in the registry was requested."""

    def __init__(self, node_type: str) -> None:
        super().__init__(f"Unknown node type: {node_type!r}")
        self.node_type = node_type


class UnknownNode(WorkflowError):
    """An edge endpoint does not reference an existing node."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Unknown node: {node_id!r}")
        self.node_id = node_id


class InvalidHandle(WorkflowError):
    """A source handle is not one of the source node type's outputs."""

    def __init__(self, node_id: str, handle: Optional[str], allowed: List[str]) -> None:
        if allowed:
            msg = f"Node {node_id!r} has no output handle {handle!r} (expected one of {allowed})"
        else:
            msg = f"Node {node_id!r} has a single output; got handle {handle!r}"
        super().__init__(msg)
        self.node_id = node_id
        self.handle = handle
        self.allowed = allowed


class BranchOccupied(WorkflowError):
    """A branch handle already has a connection and the policy is ``reject``."""

    def __init__(self, node_id: str, handle: Optional[str], edge_id: str) -> None:
        super().__init__(
            f"Handle {handle!r} of node {node_id!r} is already connected by edge {edge_id!r}"
        )
        self.node_id = node_id
        self.handle = handle
        self.edge_id = edge_id


class InvalidEdgeAttribute(WorkflowError):
    """An edge label, curve type or style value failed validation."""

    def __init__(self, edge_id: Optional[str], problems: List[str]) -> None:
        target = f"edge {edge_id!r}" if edge_id else "new edge"
        super().__init__(f"Invalid attributes for {target}: " + "; ".join(problems))
        self.edge_id = edge_id
        self.problems = list(problems)


class DocumentError(WorkflowError):
    """Base class for import failures."""

    def __init__(self, message: str, problems: Optional[List[str]] = None) -> None:
        self.problems = list(problems or [])
        if self.problems:
            message = f"{message}: " + "; ".join(self.problems)
        super().__init__(message)


class MalformedDocument(DocumentError):
    """The document is not structurally a workflow (bad JSON, missing fields)."""


class ImportRejected(DocumentError):
    """The document is well-formed but violates graph invariants."""
