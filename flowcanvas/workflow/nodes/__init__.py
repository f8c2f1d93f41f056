"""
Workflow Nodes Package.

Auto-registers all node types into the global NodeRegistry.
Import this package to ensure all types are available.
"""

from logging import getLogger

from flowcanvas.workflow.nodes.base import (
    BaseNode,
    NodeData,
    NodeParameter,
    NodeRegistry,
    OutputPort,
    get_node_registry,
    register_node,
)

# Import all node modules to trigger registration
from flowcanvas.workflow.nodes import task_nodes          # noqa: F401
from flowcanvas.workflow.nodes import logic_nodes         # noqa: F401
from flowcanvas.workflow.nodes import notification_nodes  # noqa: F401
from flowcanvas.workflow.nodes import data_nodes          # noqa: F401


def register_all_nodes() -> NodeRegistry:
    """Ensure all node types are registered and return the registry.

    The module-level imports above trigger ``@register_node``;
    this provides an explicit entry point for application startup.
    """
    registry = get_node_registry()
    getLogger(__name__).info(
        f"Workflow node types registered: {len(registry.list_all())}"
    )
    return registry


__all__ = [
    "BaseNode",
    "NodeData",
    "NodeParameter",
    "NodeRegistry",
    "OutputPort",
    "get_node_registry",
    "register_all_nodes",
    "register_node",
]
