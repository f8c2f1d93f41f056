"""
Task Nodes — human or automated work items.
"""

from __future__ import annotations

from typing import Literal, Optional

from flowcanvas.workflow.nodes.base import (
    BaseNode,
    NodeData,
    NodeParameter,
    register_node,
)

PRIORITY_OPTIONS = [
    {"value": "low", "label": "Low"},
    {"value": "medium", "label": "Medium"},
    {"value": "high", "label": "High"},
]


class TaskData(NodeData):
    description: str = ""
    assignee: Optional[str] = None
    priority: Literal["low", "medium", "high"] = "medium"


@register_node
class TaskNode(BaseNode):
    """A unit of work assigned to someone."""

    node_type = "task"
    label = "Task"
    description = "A work item with an assignee and priority"
    category = "general"
    icon = "check-square"
    color = "#ff0072"

    parameters = [
        NodeParameter(name="name", label="Name", required=True),
        NodeParameter(name="description", label="Description", type="text", default=""),
        NodeParameter(name="assignee", label="Assignee"),
        NodeParameter(
            name="priority",
            label="Priority",
            type="select",
            default="medium",
            options=PRIORITY_OPTIONS,
        ),
    ]

    data_model = TaskData
