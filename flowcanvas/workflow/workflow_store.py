"""
Graph Store — the authoritative in-memory workflow graph.

Owns every node and edge, the current selection, and the
bookkeeping the editor surfaces (dirty flag, history, metadata).
All mutation goes through this class; each public mutator either
commits completely or raises a ``WorkflowError`` and leaves the
store untouched.

Consumers (canvas, config panel, table view) are handed a store
instance and observe it through ``subscribe``.
"""

from __future__ import annotations

import copy
from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from flowcanvas.config.editor_config import EditorConfig, get_editor_config
from flowcanvas.workflow.errors import (
    BranchOccupied,
    ImportRejected,
    InvalidEdgeAttribute,
    InvalidHandle,
    InvalidType,
    UnknownNode,
)
from flowcanvas.workflow.nodes import NodeRegistry, get_node_registry
from flowcanvas.workflow.workflow_inspector import validate_workflow
from flowcanvas.workflow.workflow_model import (
    EdgeHistoryEntry,
    NodeHistoryEntry,
    Position,
    ValidationIssue,
    WorkflowEdge,
    WorkflowHistory,
    WorkflowMetadata,
    WorkflowNode,
)

logger = getLogger(__name__)

PositionLike = Union[Position, Mapping[str, float], Tuple[float, float], None]

_EDGE_ATTRS = ("label", "type", "style")


@dataclass
class StoreEvent:
    """Change notification delivered to subscribers."""
    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)


Listener = Callable[[StoreEvent], None]


def as_position(value: PositionLike) -> Position:
    if value is None:
        return Position()
    if isinstance(value, Position):
        return value
    if isinstance(value, Mapping):
        return Position(x=value.get("x", 0.0), y=value.get("y", 0.0))
    x, y = value
    return Position(x=x, y=y)


def find_invariant_violations(
    nodes: Iterable[WorkflowNode],
    edges: Iterable[WorkflowEdge],
    registry: Optional[NodeRegistry] = None,
) -> List[str]:
    """Check a candidate graph against the store invariants.

    Returns a list of problems (empty = valid): duplicate node or
    edge ids, unknown node types, dangling edge endpoints, invalid
    source handles and occupied branch handles.
    """
    reg = registry or get_node_registry()
    nodes = list(nodes)
    edges = list(edges)
    problems: List[str] = []

    node_counts = Counter(n.id for n in nodes)
    for node_id, count in node_counts.items():
        if count > 1:
            problems.append(f"Duplicate node id: {node_id}")

    by_id = {n.id: n for n in nodes}
    for node in nodes:
        if node.type not in reg:
            problems.append(f"Node {node.id} has unknown type: {node.type}")

    edge_counts = Counter(e.id for e in edges)
    for edge_id, count in edge_counts.items():
        if count > 1:
            problems.append(f"Duplicate edge id: {edge_id}")

    occupied: Dict[Tuple[str, str], str] = {}
    for edge in edges:
        if edge.source not in by_id:
            problems.append(f"Edge {edge.id} references unknown source node: {edge.source}")
        if edge.target not in by_id:
            problems.append(f"Edge {edge.id} references unknown target node: {edge.target}")
        source = by_id.get(edge.source)
        node_cls = reg.get(source.type) if source is not None else None
        if node_cls is None:
            continue
        handles = node_cls.handle_ids()
        if not handles:
            if edge.source_handle is not None:
                problems.append(
                    f"Edge {edge.id} uses handle {edge.source_handle!r} on single-output node {edge.source}"
                )
            continue
        if edge.source_handle not in handles:
            problems.append(
                f"Edge {edge.id} uses invalid handle {edge.source_handle!r} on node {edge.source}"
            )
            continue
        key = (edge.source, edge.source_handle)
        if key in occupied:
            problems.append(
                f"Handle {edge.source_handle!r} of node {edge.source} is used by "
                f"edges {occupied[key]} and {edge.id}"
            )
        else:
            occupied[key] = edge.id

    return problems


class GraphStore:
    """Mutable workflow graph: nodes, edges and selection."""

    def __init__(
        self,
        registry: Optional[NodeRegistry] = None,
        config: Optional[EditorConfig] = None,
    ) -> None:
        self._registry = registry or get_node_registry()
        self._config = config or get_editor_config()

        self._nodes: Dict[str, WorkflowNode] = {}
        self._edges: Dict[str, WorkflowEdge] = {}
        self._selected_node_id: Optional[str] = None
        self._config_panel_open = False
        self._node_seq = 0
        self._edge_seq = 0
        self._listeners: List[Listener] = []

        self.workflow_name: str = self._config.default_workflow_name
        self.is_dirty = False
        self.history = WorkflowHistory()
        self.metadata = WorkflowMetadata()
        self.validation_errors: List[ValidationIssue] = []

    @property
    def registry(self) -> NodeRegistry:
        return self._registry

    @property
    def config(self) -> EditorConfig:
        return self._config

    # ── Queries ──

    @property
    def nodes(self) -> List[WorkflowNode]:
        """Snapshot of all nodes in insertion order."""
        return [n.model_copy(deep=True) for n in self._nodes.values()]

    @property
    def edges(self) -> List[WorkflowEdge]:
        """Snapshot of all edges in insertion order."""
        return [e.model_copy(deep=True) for e in self._edges.values()]

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        node = self._nodes.get(node_id)
        return node.model_copy(deep=True) if node is not None else None

    def get_edge(self, edge_id: str) -> Optional[WorkflowEdge]:
        edge = self._edges.get(edge_id)
        return edge.model_copy(deep=True) if edge is not None else None

    def get_edges_from(self, node_id: str) -> List[WorkflowEdge]:
        return [e.model_copy(deep=True) for e in self._edges.values() if e.source == node_id]

    def get_edges_to(self, node_id: str) -> List[WorkflowEdge]:
        return [e.model_copy(deep=True) for e in self._edges.values() if e.target == node_id]

    @property
    def selected_node_id(self) -> Optional[str]:
        return self._selected_node_id

    @property
    def selected_node(self) -> Optional[WorkflowNode]:
        if self._selected_node_id is None:
            return None
        return self.get_node(self._selected_node_id)

    @property
    def is_config_panel_open(self) -> bool:
        return self._config_panel_open

    # ── Subscriptions ──

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, kind: str, **payload: Any) -> None:
        event = StoreEvent(kind=kind, payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Store listener failed on '{kind}' event")

    def _commit(self, kind: str, **payload: Any) -> None:
        """Mark a graph mutation as applied and tell subscribers."""
        self.is_dirty = True
        self.metadata.touch(len(self._nodes), len(self._edges))
        logger.debug(f"{kind}: {payload}")
        self._notify(kind, **payload)

    # ── History ──

    def _record(self, entries: list, entry: Any) -> None:
        limit = self._config.history_limit
        if limit <= 0:
            return
        entries.append(entry)
        if len(entries) > limit:
            del entries[: len(entries) - limit]

    def _record_edge_deleted(self, edge: WorkflowEdge) -> None:
        self._record(
            self.history.edges.deleted,
            EdgeHistoryEntry(edge_id=edge.id, source=edge.source, target=edge.target),
        )

    # ── Id allocation ──

    def _next_node_id(self) -> str:
        while True:
            self._node_seq += 1
            candidate = f"{self._config.node_id_prefix}{self._node_seq}"
            if candidate not in self._nodes:
                return candidate

    def _next_edge_id(self) -> str:
        while True:
            self._edge_seq += 1
            candidate = f"{self._config.edge_id_prefix}{self._edge_seq}"
            if candidate not in self._edges:
                return candidate

    @staticmethod
    def _max_suffix(ids: Iterable[str], prefix: str) -> int:
        best = 0
        for item in ids:
            if item.startswith(prefix) and item[len(prefix):].isdigit():
                best = max(best, int(item[len(prefix):]))
        return best

    # ── Nodes ──

    def add_node(
        self,
        node_type: str,
        initial_data: Optional[Mapping[str, Any]] = None,
        position: PositionLike = None,
    ) -> str:
        """Add a node of ``node_type``; returns its new id.

        Fields missing from ``initial_data`` are filled from the type's
        defaults. Raises ``InvalidType`` for unregistered types.
        """
        try:
            node_cls = self._registry.require(node_type)
        except InvalidType as e:
            logger.warning(f"add_node rejected: {e}")
            raise

        data = node_cls.default_data()
        data.update(copy.deepcopy(dict(initial_data or {})))
        node = WorkflowNode(
            id=self._next_node_id(),
            type=node_type,
            position=as_position(position),
            data=data,
        )
        self._nodes[node.id] = node
        self._record(
            self.history.nodes.created,
            NodeHistoryEntry(node_id=node.id, type=node_type),
        )
        self._commit("node_added", node_id=node.id, node_type=node_type)
        return node.id

    def update_node(self, node_id: str, partial_data: Mapping[str, Any]) -> bool:
        """Shallow-merge ``partial_data`` into the node's data.

        Returns False (and changes nothing) if the node does not exist.
        """
        node = self._nodes.get(node_id)
        if node is None:
            return False
        changes = copy.deepcopy(dict(partial_data))
        old = copy.deepcopy(node.data)
        node.data = {**node.data, **changes}
        self._record(
            self.history.nodes.updated,
            NodeHistoryEntry(node_id=node_id, type=node.type, changes={"old": old, "new": changes}),
        )
        self._commit("node_updated", node_id=node_id, changes=changes)
        return True

    def move_node(self, node_id: str, position: PositionLike) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.position = as_position(position)
        self._commit("node_moved", node_id=node_id, position=node.position.model_dump())
        return True

    def delete_node(self, node_id: str) -> bool:
        """Remove a node together with every edge touching it."""
        node = self._nodes.pop(node_id, None)
        if node is None:
            return False

        removed = [e for e in self._edges.values() if e.source == node_id or e.target == node_id]
        for edge in removed:
            del self._edges[edge.id]
            self._record_edge_deleted(edge)

        if self._selected_node_id == node_id:
            self._selected_node_id = None
            self._config_panel_open = False

        self._record(
            self.history.nodes.deleted,
            NodeHistoryEntry(node_id=node_id, type=node.type),
        )
        self._commit(
            "node_deleted",
            node_id=node_id,
            removed_edges=[e.id for e in removed],
        )
        return True

    def duplicate_node(self, node_id: str) -> Optional[str]:
        """Copy a node's type and data next to the original; returns the new id."""
        original = self._nodes.get(node_id)
        if original is None:
            return None
        offset = self._config.duplicate_offset
        node = WorkflowNode(
            id=self._next_node_id(),
            type=original.type,
            position=Position(x=original.position.x + offset, y=original.position.y + offset),
            data=copy.deepcopy(original.data),
        )
        self._nodes[node.id] = node
        self._record(
            self.history.nodes.created,
            NodeHistoryEntry(node_id=node.id, type=node.type),
        )
        self._commit("node_added", node_id=node.id, node_type=node.type, duplicate_of=node_id)
        return node.id

    # ── Edges ──

    def _check_handle(self, node: WorkflowNode, handle: Optional[str]) -> None:
        allowed = self._registry.require(node.type).handle_ids()
        if allowed and handle in allowed:
            return
        if not allowed and handle is None:
            return
        raise InvalidHandle(node.id, handle, allowed)

    def _find_branch_edge(self, source: str, handle: Optional[str]) -> Optional[WorkflowEdge]:
        for edge in self._edges.values():
            if edge.source == source and edge.source_handle == handle:
                return edge
        return None

    def _validated_edge(self, edge_id: Optional[str], fields: Dict[str, Any]) -> WorkflowEdge:
        try:
            return WorkflowEdge.model_validate(fields)
        except ValidationError as e:
            problems = [
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            error = InvalidEdgeAttribute(edge_id, problems)
            logger.warning(f"Edge change rejected: {error}")
            raise error from e

    def add_edge(
        self,
        source: str,
        target: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
        **attrs: Any,
    ) -> str:
        """Connect ``source`` to ``target``; returns the edge id.

        Raises ``UnknownNode`` for a missing endpoint and ``InvalidHandle``
        for a handle the source type does not expose. For branching
        nodes an occupied handle is either replaced or rejected with
        ``BranchOccupied`` depending on ``EditorConfig.branch_policy``.
        Re-adding an identical connection returns the existing edge.
        Attribute values that fail validation raise ``InvalidEdgeAttribute``.
        """
        for node_id in (source, target):
            if node_id not in self._nodes:
                logger.warning(f"add_edge rejected: unknown node {node_id}")
                raise UnknownNode(node_id)

        src = self._nodes[source]
        try:
            self._check_handle(src, source_handle)
        except InvalidHandle as e:
            logger.warning(f"add_edge rejected: {e}")
            raise

        unknown = set(attrs) - set(_EDGE_ATTRS)
        if unknown:
            raise TypeError(f"Unexpected edge attributes: {sorted(unknown)}")
        candidate = self._validated_edge(None, {
            "id": "",
            "source": source,
            "target": target,
            "source_handle": source_handle,
            "target_handle": target_handle,
            **attrs,
        })

        for existing in self._edges.values():
            if (existing.source, existing.source_handle, existing.target) == (source, source_handle, target):
                return existing.id

        replaced: Optional[WorkflowEdge] = None
        if self._registry.require(src.type).is_branching():
            replaced = self._find_branch_edge(source, source_handle)
            if replaced is not None and self._config.branch_policy == "reject":
                logger.warning(
                    f"add_edge rejected: handle {source_handle!r} of {source} is occupied"
                )
                raise BranchOccupied(source, source_handle, replaced.id)

        edge = candidate.model_copy(update={"id": self._next_edge_id()})

        if replaced is not None:
            del self._edges[replaced.id]
            self._record_edge_deleted(replaced)

        self._edges[edge.id] = edge
        self._record(
            self.history.edges.created,
            EdgeHistoryEntry(edge_id=edge.id, source=source, target=target),
        )
        self._commit(
            "edge_added",
            edge_id=edge.id,
            replaced_edge=replaced.id if replaced is not None else None,
        )
        return edge.id

    def update_edge(self, edge_id: str, **attrs: Any) -> bool:
        """Change presentation attributes (label, curve type, style) of an edge.

        Raises ``InvalidEdgeAttribute`` and keeps the edge as it was when
        a new value fails validation.
        """
        edge = self._edges.get(edge_id)
        if edge is None:
            return False
        unknown = set(attrs) - set(_EDGE_ATTRS)
        if unknown:
            raise TypeError(f"Only {list(_EDGE_ATTRS)} can be updated, got {sorted(unknown)}")
        updated = self._validated_edge(edge_id, {**edge.model_dump(), **attrs})
        self._edges[edge_id] = updated
        self._commit("edge_updated", edge_id=edge_id, changes=attrs)
        return True

    def delete_edge(self, edge_id: str) -> bool:
        edge = self._edges.pop(edge_id, None)
        if edge is None:
            return False
        self._record_edge_deleted(edge)
        self._commit("edge_deleted", edge_id=edge_id)
        return True

    # ── Selection / panel ──

    def select(self, node_id: Optional[str]) -> None:
        """Set or clear the selection. Unknown ids are ignored."""
        if node_id is not None and node_id not in self._nodes:
            logger.debug(f"select ignored: unknown node {node_id}")
            return
        if node_id == self._selected_node_id:
            return
        self._selected_node_id = node_id
        self._config_panel_open = node_id is not None
        self._notify("selection_changed", node_id=node_id)

    def set_config_panel_open(self, is_open: bool) -> None:
        """Open or close the config panel. Closing clears the selection."""
        if not is_open:
            self.select(None)
            self._config_panel_open = False
        elif self._selected_node_id is not None and not self._config_panel_open:
            self._config_panel_open = True
            self._notify("selection_changed", node_id=self._selected_node_id)

    # ── Bulk operations ──

    def replace_all(self, nodes: Iterable[WorkflowNode], edges: Iterable[WorkflowEdge]) -> None:
        """Atomically replace the whole graph.

        The candidate graph is validated first; on any violation
        ``ImportRejected`` is raised and nothing changes.
        """
        new_nodes = [n.model_copy(deep=True) for n in nodes]
        new_edges = [e.model_copy(deep=True) for e in edges]

        problems = find_invariant_violations(new_nodes, new_edges, self._registry)
        if problems:
            logger.warning(f"replace_all rejected: {len(problems)} problem(s)")
            raise ImportRejected("Workflow rejected", problems)

        self._nodes = {n.id: n for n in new_nodes}
        self._edges = {e.id: e for e in new_edges}
        self._selected_node_id = None
        self._config_panel_open = False
        self._node_seq = max(self._node_seq, self._max_suffix(self._nodes, self._config.node_id_prefix))
        self._edge_seq = max(self._edge_seq, self._max_suffix(self._edges, self._config.edge_id_prefix))
        self.validation_errors = []

        logger.info(f"Graph replaced: {len(self._nodes)} nodes, {len(self._edges)} edges")
        self._commit("replaced", total_nodes=len(self._nodes), total_edges=len(self._edges))

    def reset(self) -> None:
        """Clear the graph back to an empty, saved, untitled workflow."""
        self._nodes = {}
        self._edges = {}
        self._selected_node_id = None
        self._config_panel_open = False
        self.workflow_name = self._config.default_workflow_name
        self.validation_errors = []
        self.metadata.touch(0, 0)
        self.is_dirty = False
        self._notify("reset")

    def set_workflow_name(self, name: str) -> None:
        self.workflow_name = name
        self.is_dirty = True
        self._notify("renamed", name=name)

    def mark_saved(self) -> None:
        self.is_dirty = False
        self._notify("saved")

    # ── Validation ──

    def validate(self) -> List[ValidationIssue]:
        """Run the workflow inspector and keep the result on the store."""
        self.validation_errors = validate_workflow(
            self._nodes.values(), self._edges.values(), self._registry
        )
        self._notify("validated", issues=len(self.validation_errors))
        return list(self.validation_errors)


# ── Singleton ──

_store_instance: Optional[GraphStore] = None


def get_graph_store() -> GraphStore:
    """Return the process-wide GraphStore, created empty on first use."""
    global _store_instance
    if _store_instance is None:
        _store_instance = GraphStore()
        logger.info("GraphStore initialized")
    return _store_instance
