"""
Data Nodes — documents, databases and knowledge-base lookups.

The knowledge-base search node only stores its query settings;
ingestion and retrieval live outside the editor.
"""

from __future__ import annotations

from pydantic import Field

from flowcanvas.workflow.nodes.base import (
    BaseNode,
    NodeData,
    NodeParameter,
    register_node,
)


class DocumentData(NodeData):
    template: str = ""


@register_node
class DocumentNode(BaseNode):
    node_type = "document"
    label = "Document"
    description = "Generate a document from a template"
    category = "data"
    icon = "file-text"
    color = "#059669"

    parameters = [
        NodeParameter(name="name", label="Name", required=True),
        NodeParameter(name="template", label="Template", type="text", default=""),
    ]

    data_model = DocumentData


class DatabaseData(NodeData):
    connection: str = ""
    query: str = ""


@register_node
class DatabaseNode(BaseNode):
    node_type = "database"
    label = "Database"
    description = "Run a query against a configured connection"
    category = "data"
    icon = "database"
    color = "#7c3aed"

    parameters = [
        NodeParameter(name="name", label="Name", required=True),
        NodeParameter(name="connection", label="Connection", default=""),
        NodeParameter(name="query", label="Query", type="expression", default=""),
    ]

    data_model = DatabaseData


class KbSearchData(NodeData):
    question: str = ""
    variable: str = ""
    chunkLimit: int = Field(default=3, ge=1, le=10)
    minScore: float = Field(default=0.0, ge=0.0, le=1.0)


@register_node
class KbSearchNode(BaseNode):
    """Search the knowledge base and store the answer in a variable."""

    node_type = "kb-search"
    label = "KB Search"
    description = "Query the knowledge base"
    category = "data"
    icon = "search"
    color = "#0891b2"

    parameters = [
        NodeParameter(name="name", label="Name", required=True),
        NodeParameter(name="question", label="Question", type="text", default=""),
        NodeParameter(
            name="variable",
            label="Result Variable",
            default="",
            description="Variable receiving the search result.",
        ),
        NodeParameter(name="chunkLimit", label="Chunk Limit", type="number", default=3, min=1, max=10),
        NodeParameter(name="minScore", label="Minimum Score", type="number", default=0.0, min=0.0, max=1.0),
    ]

    data_model = KbSearchData
