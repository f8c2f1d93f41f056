"""
Logic Nodes — branching nodes.

A condition node evaluates an expression (authored in the expression
editor, executed elsewhere) and leaves through exactly one of its
``true`` / ``false`` handles. Each handle carries at most one edge.
"""

from __future__ import annotations


from flowcanvas.workflow.nodes.base import (
    BaseNode,
    NodeData,
    NodeParameter,
    OutputPort,
    register_node,
)


class ConditionData(NodeData):
    condition: str = ""


@register_node
class ConditionNode(BaseNode):
    """Branch on a boolean expression."""

    node_type = "condition"
    label = "Condition"
    description = "Route the flow to the true or false branch"
    category = "logic"
    icon = "fork"
    color = "#0041d0"

    parameters = [
        NodeParameter(
            name="name",
            label="Name",
            type="string",
            required=True,
        ),
        NodeParameter(
            name="condition",
            label="Condition",
            type="expression",
            default="",
            description="Expression evaluated at run time, e.g. 'age > 18'.",
        ),
    ]

    output_ports = [
        OutputPort(id="true", label="True", description="Condition holds"),
        OutputPort(id="false", label="False", description="Condition does not hold"),
    ]

    data_model = ConditionData
