"""
Workflow Engine — graph model behind the visual workflow builder.

Architecture:
    nodes/             — BaseNode + all registered node types
    workflow_model     — Data models for nodes, edges, history, metadata
    workflow_store     — GraphStore, the single owner of graph state
    canvas             — Pointer-gesture state machine
    config_panel       — Selected-node editor projection
    serialization      — JSON document export / import
    workflow_inspector — Validation issues and graph report
    templates          — Pre-built workflow documents
"""

from flowcanvas.workflow.errors import (
    BranchOccupied,
    DocumentError,
    ImportRejected,
    InvalidEdgeAttribute,
    InvalidHandle,
    InvalidType,
    MalformedDocument,
    UnknownNode,
    WorkflowError,
)
from flowcanvas.workflow.nodes import (
    BaseNode,
    NodeParameter,
    NodeRegistry,
    OutputPort,
    get_node_registry,
    register_all_nodes,
    register_node,
)
from flowcanvas.workflow.workflow_model import (
    Position,
    ValidationIssue,
    WorkflowEdge,
    WorkflowNode,
)
from flowcanvas.workflow.workflow_store import GraphStore, StoreEvent, get_graph_store
from flowcanvas.workflow.canvas import CanvasController, GestureState
from flowcanvas.workflow.config_panel import ConfigPanel, FieldView, NodeSnapshot
from flowcanvas.workflow.serialization import (
    export_store,
    export_workflow,
    import_into,
    import_workflow,
    load_document,
    save_document,
)
from flowcanvas.workflow.workflow_inspector import inspect_workflow, validate_workflow
from flowcanvas.workflow.templates import list_templates, load_template

__all__ = [
    "BranchOccupied",
    "DocumentError",
    "ImportRejected",
    "InvalidEdgeAttribute",
    "InvalidHandle",
    "InvalidType",
    "MalformedDocument",
    "UnknownNode",
    "WorkflowError",
    "BaseNode",
    "NodeParameter",
    "NodeRegistry",
    "OutputPort",
    "get_node_registry",
    "register_all_nodes",
    "register_node",
    "Position",
    "ValidationIssue",
    "WorkflowEdge",
    "WorkflowNode",
    "GraphStore",
    "StoreEvent",
    "get_graph_store",
    "CanvasController",
    "GestureState",
    "ConfigPanel",
    "FieldView",
    "NodeSnapshot",
    "export_store",
    "export_workflow",
    "import_into",
    "import_workflow",
    "load_document",
    "save_document",
    "inspect_workflow",
    "validate_workflow",
    "list_templates",
    "load_template",
]
