"""
Serialization Gateway — export / import of the workflow document.

The document is plain JSON with two top-level lists::

    {
      "nodes": [{"id", "type", "position": {"x", "y"}, "data": {...}}],
      "edges": [{"id", "source", "target", "sourceHandle", ...}]
    }

Field names are stable so that ``import_workflow(export_workflow(g))``
reproduces ``g`` exactly. Keys inside ``data`` that no node type
declares are carried through untouched.

Reading from disk is the only suspension point (``load_document``);
validation and ``GraphStore.replace_all`` run synchronously after it,
so an import is applied completely or not at all.
"""

from __future__ import annotations

import asyncio
import json
from logging import getLogger
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from pydantic import ValidationError

from flowcanvas.workflow.errors import ImportRejected, MalformedDocument
from flowcanvas.workflow.nodes import NodeRegistry
from flowcanvas.workflow.workflow_model import WorkflowEdge, WorkflowNode
from flowcanvas.workflow.workflow_store import GraphStore, find_invariant_violations

logger = getLogger(__name__)

Document = Dict[str, Any]


# ====================================================================
# Export
# ====================================================================


def _edge_to_dict(edge: WorkflowEdge) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": edge.id,
        "source": edge.source,
        "target": edge.target,
        "sourceHandle": edge.source_handle,
    }
    if edge.target_handle is not None:
        d["targetHandle"] = edge.target_handle
    for attr in ("label", "type", "style"):
        value = getattr(edge, attr)
        if value is not None:
            d[attr] = value
    return d


def export_workflow(nodes: Iterable[WorkflowNode], edges: Iterable[WorkflowEdge]) -> Document:
    """Build the portable document for the given nodes and edges."""
    return {
        "nodes": [n.model_dump(mode="json") for n in nodes],
        "edges": [_edge_to_dict(e) for e in edges],
    }


def export_store(store: GraphStore) -> Document:
    return export_workflow(store.nodes, store.edges)


def dumps(document: Document, indent: Optional[int] = 2) -> str:
    return json.dumps(document, indent=indent or None, ensure_ascii=False)


def loads(text: str) -> Document:
    """Parse document text. Raises ``MalformedDocument`` for invalid JSON."""
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, TypeError, RecursionError) as e:
        logger.warning(f"Import failed: document is not valid JSON ({type(e).__name__})")
        raise MalformedDocument("Document is not valid JSON", [str(e) or type(e).__name__]) from e
    return document


# ====================================================================
# Import
# ====================================================================


def _parse_items(document: Mapping[str, Any], key: str, model: Any) -> Tuple[List[Any], List[str]]:
    raw = document.get(key)
    if not isinstance(raw, list):
        return [], [f"'{key}' must be a list"]

    items: List[Any] = []
    problems: List[str] = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            problems.append(f"{key}[{index}] must be an object")
            continue
        try:
            items.append(model.model_validate(item))
        except ValidationError as e:
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"])
                problems.append(f"{key}[{index}].{loc}: {err['msg']}")
    return items, problems


def _check_required_node_fields(raw_nodes: List[Any]) -> List[str]:
    # ``position`` and ``data`` have model defaults but are required in a document
    problems: List[str] = []
    for index, item in enumerate(raw_nodes):
        if isinstance(item, Mapping):
            for key in ("position", "data"):
                if key not in item:
                    problems.append(f"nodes[{index}].{key}: Field required")
    return problems


def import_workflow(
    document: Any,
    registry: Optional[NodeRegistry] = None,
) -> Tuple[List[WorkflowNode], List[WorkflowEdge]]:
    """Parse and validate a document into node and edge lists.

    Raises ``MalformedDocument`` when the document does not have the
    expected shape, and ``ImportRejected`` when it is well-formed but
    breaks a graph invariant (duplicate ids, dangling edges, unknown
    node types, bad or doubly-used branch handles).
    """
    if not isinstance(document, Mapping):
        raise MalformedDocument("Document must be a JSON object")

    nodes, node_problems = _parse_items(document, "nodes", WorkflowNode)
    edges, edge_problems = _parse_items(document, "edges", WorkflowEdge)
    if isinstance(document.get("nodes"), list):
        node_problems += _check_required_node_fields(document["nodes"])

    problems = node_problems + edge_problems
    if problems:
        logger.warning(f"Import failed: {len(problems)} structural problem(s)")
        raise MalformedDocument("Malformed workflow document", problems)

    violations = find_invariant_violations(nodes, edges, registry)
    if violations:
        logger.warning(f"Import rejected: {len(violations)} invariant violation(s)")
        raise ImportRejected("Workflow rejected", violations)

    return nodes, edges


def import_into(store: GraphStore, document: Any) -> None:
    """Validate ``document`` and replace the store's graph with it.

    On any failure the store is left unchanged.
    """
    nodes, edges = import_workflow(document, store.registry)
    store.replace_all(nodes, edges)
    logger.info(f"Imported workflow: {len(nodes)} nodes, {len(edges)} edges")


# ====================================================================
# Sources and sinks
# ====================================================================


class DocumentSource(Protocol):
    """Anything a document can be read from."""

    def read_text(self) -> str: ...


class DocumentSink(Protocol):
    """Anything a document can be handed to."""

    def write_text(self, text: str) -> None: ...


class FileSource:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8")


class FileSink:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def write_text(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")


class MemorySource:
    def __init__(self, text: str) -> None:
        self.text = text

    def read_text(self) -> str:
        return self.text


class MemorySink:
    """Collects written documents; handy for downloads and tests."""

    def __init__(self) -> None:
        self.writes: List[str] = []

    def write_text(self, text: str) -> None:
        self.writes.append(text)

    @property
    def last(self) -> Optional[str]:
        return self.writes[-1] if self.writes else None


async def load_document(source: DocumentSource) -> Document:
    """Read and parse a document without blocking the event loop."""
    try:
        text = await asyncio.to_thread(source.read_text)
    except UnicodeDecodeError as e:
        logger.warning(f"Import failed: document is not UTF-8 text ({e.reason})")
        raise MalformedDocument("Document is not valid UTF-8", [str(e)]) from e
    return loads(text)


async def import_from(store: GraphStore, source: DocumentSource) -> None:
    """Load a document from ``source`` and apply it to ``store``."""
    document = await load_document(source)
    import_into(store, document)


def save_document(store: GraphStore, sink: DocumentSink) -> Document:
    """Export the store, hand the JSON text to ``sink`` and return the document."""
    document = export_store(store)
    sink.write_text(dumps(document, indent=store.config.export_indent))
    logger.info(f"Exported workflow '{store.workflow_name}'")
    return document
