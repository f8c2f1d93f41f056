"""
Workflow Inspector — read-only validation and summary of a graph.

Produces the issue list shown next to nodes in the editor and the
structured report behind the table view:

* ``missing_connection``   — isolated nodes, unwired branch handles
* ``invalid_config``       — node data failing its type's data model
* ``circular_dependency``  — nodes that can reach themselves

Nothing here mutates the graph.
"""

from __future__ import annotations

from collections import Counter
from logging import getLogger
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Set

from flowcanvas.workflow.nodes import NodeRegistry, get_node_registry
from flowcanvas.workflow.workflow_model import (
    ValidationIssue,
    WorkflowEdge,
    WorkflowNode,
)

if TYPE_CHECKING:
    from flowcanvas.workflow.workflow_store import GraphStore

logger = getLogger(__name__)


# ====================================================================
# Validation
# ====================================================================


def _nodes_on_cycles(nodes: List[WorkflowNode], edges: List[WorkflowEdge]) -> List[str]:
    adjacency: Dict[str, Set[str]] = {n.id: set() for n in nodes}
    for edge in edges:
        if edge.source in adjacency and edge.target in adjacency:
            adjacency[edge.source].add(edge.target)

    on_cycle: List[str] = []
    for start in adjacency:
        stack = list(adjacency[start])
        seen: Set[str] = set()
        while stack:
            current = stack.pop()
            if current == start:
                on_cycle.append(start)
                break
            if current in seen:
                continue
            seen.add(current)
            stack.extend(adjacency[current])
    return on_cycle


def validate_workflow(
    nodes: Iterable[WorkflowNode],
    edges: Iterable[WorkflowEdge],
    registry: Optional[NodeRegistry] = None,
) -> List[ValidationIssue]:
    """Return every issue found in the graph (empty = clean)."""
    reg = registry or get_node_registry()
    nodes = list(nodes)
    edges = list(edges)
    issues: List[ValidationIssue] = []

    connected: Set[str] = set()
    for edge in edges:
        connected.add(edge.source)
        connected.add(edge.target)

    for node in nodes:
        node_cls = reg.get(node.type)
        name = node.data.get("name") or node.id

        if node_cls is None:
            issues.append(ValidationIssue(
                node_id=node.id,
                type="invalid_config",
                message=f"Node '{name}' has unknown type '{node.type}'.",
            ))
            continue

        if len(nodes) > 1 and node.id not in connected:
            issues.append(ValidationIssue(
                node_id=node.id,
                type="missing_connection",
                message=f"Node '{name}' is disconnected (no edges).",
            ))

        used = {e.source_handle for e in edges if e.source == node.id}
        for port in node_cls.output_ports:
            if port.id not in used:
                issues.append(ValidationIssue(
                    node_id=node.id,
                    type="missing_connection",
                    message=f"Node '{name}' has no connection on its '{port.label}' branch.",
                ))

        for param in node_cls.parameters:
            if param.required and not node.data.get(param.name):
                issues.append(ValidationIssue(
                    node_id=node.id,
                    type="invalid_config",
                    message=f"Node '{name}' is missing required field '{param.label}'.",
                ))
        for error in node_cls.validate_data(node.data):
            issues.append(ValidationIssue(
                node_id=node.id,
                type="invalid_config",
                message=f"Node '{name}': {error}",
            ))

    for node_id in _nodes_on_cycles(nodes, edges):
        issues.append(ValidationIssue(
            node_id=node_id,
            type="circular_dependency",
            message=f"Node '{node_id}' is part of a cycle.",
        ))

    if issues:
        logger.debug(f"Workflow validation found {len(issues)} issue(s)")
    return issues


# ====================================================================
# Report
# ====================================================================


def inspect_workflow(
    store: "GraphStore",
    registry: Optional[NodeRegistry] = None,
) -> Dict[str, Any]:
    """Build a structured report of the store's graph.

    Returns a dict containing:
        - ``summary``    : counts and condition-branch coverage
        - ``nodes``      : per-node rows (table view)
        - ``edges``      : per-edge rows
        - ``validation`` : issue list as dicts
    """
    reg = registry or store.registry
    nodes = store.nodes
    edges = store.edges
    issues = validate_workflow(nodes, edges, reg)

    node_rows: List[Dict[str, Any]] = []
    branches_total = 0
    branches_wired = 0
    for node in nodes:
        node_cls = reg.get(node.type)
        outgoing = [e for e in edges if e.source == node.id]
        incoming = [e for e in edges if e.target == node.id]
        handles = node_cls.handle_ids() if node_cls else []
        wired = sorted({e.source_handle for e in outgoing if e.source_handle in handles})
        branches_total += len(handles)
        branches_wired += len(wired)
        node_rows.append({
            "id": node.id,
            "type": node.type,
            "label": node_cls.label if node_cls else node.type,
            "name": node.data.get("name", ""),
            "position": node.position.model_dump(),
            "incoming": len(incoming),
            "outgoing": len(outgoing),
            "branches": {h: h in wired for h in handles},
            "selected": node.id == store.selected_node_id,
        })

    edge_rows = [
        {
            "id": e.id,
            "source": e.source,
            "target": e.target,
            "sourceHandle": e.source_handle,
            "label": e.label,
        }
        for e in edges
    ]

    summary = {
        "workflow_name": store.workflow_name,
        "total_nodes": len(nodes),
        "total_edges": len(edges),
        "nodes_by_type": dict(Counter(n.type for n in nodes)),
        "branches_total": branches_total,
        "branches_wired": branches_wired,
        "is_dirty": store.is_dirty,
        "version": store.metadata.version,
        "is_valid": not issues,
    }

    return {
        "summary": summary,
        "nodes": node_rows,
        "edges": edge_rows,
        "validation": [i.model_dump() for i in issues],
    }
