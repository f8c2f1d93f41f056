"""
Config Panel — edit the data of the selected node.

The panel is a projection of the store: it reads a snapshot of the
selected node and writes through a single commit callback. Every
field change is committed immediately, so closing the panel never
loses anything.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from logging import getLogger
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from flowcanvas.workflow.nodes import NodeParameter
from flowcanvas.workflow.workflow_store import GraphStore

logger = getLogger(__name__)

Commit = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class NodeSnapshot:
    """Read-only view of a node handed to the panel."""
    id: str
    type: str
    position: Tuple[float, float]
    data: Mapping[str, Any]


@dataclass(frozen=True)
class FieldView:
    """A registry field paired with the node's current value."""
    parameter: NodeParameter
    value: Any

    @property
    def name(self) -> str:
        return self.parameter.name


class ConfigPanel:
    """Side panel bound to the store's selected node."""

    def __init__(self, store: GraphStore) -> None:
        self.store = store

    @property
    def is_open(self) -> bool:
        return self.store.is_config_panel_open and self.store.selected_node_id is not None

    @property
    def node(self) -> Optional[NodeSnapshot]:
        if not self.is_open:
            return None
        node = self.store.selected_node
        if node is None:
            return None
        return NodeSnapshot(
            id=node.id,
            type=node.type,
            position=(node.position.x, node.position.y),
            data=MappingProxyType(copy.deepcopy(node.data)),
        )

    def fields(self) -> List[FieldView]:
        """Fields to render for the selected node, in registry order."""
        snapshot = self.node
        if snapshot is None:
            return []
        node_cls = self.store.registry.require(snapshot.type)
        return [
            FieldView(parameter=p, value=snapshot.data.get(p.name, p.default))
            for p in node_cls.parameters
        ]

    def extra_fields(self) -> Dict[str, Any]:
        """Data keys the node type does not declare; kept but not rendered."""
        snapshot = self.node
        if snapshot is None:
            return {}
        node_cls = self.store.registry.require(snapshot.type)
        declared = {p.name for p in node_cls.parameters}
        return {k: v for k, v in snapshot.data.items() if k not in declared}

    def commit(self, partial_data: Mapping[str, Any]) -> bool:
        """Merge ``partial_data`` into the selected node. No-op when closed."""
        node_id = self.store.selected_node_id
        if not self.is_open or node_id is None:
            return False
        return self.store.update_node(node_id, partial_data)

    def set_field(self, name: str, value: Any) -> bool:
        """Commit one field after checking it against its declared domain.

        Raises ``ValueError`` for a select value outside its options or a
        number outside its bounds.
        """
        snapshot = self.node
        if snapshot is None:
            return False
        param = self.store.registry.require(snapshot.type).get_parameter(name)
        if param is not None:
            _check_value(param, value)
        return self.commit({name: value})

    def binding(self) -> Tuple[Optional[NodeSnapshot], Commit]:
        """The ``(snapshot, commit)`` pair handed to a panel renderer."""
        return self.node, self.commit

    def close(self) -> None:
        self.store.set_config_panel_open(False)


def _check_value(param: NodeParameter, value: Any) -> None:
    if param.type == "select" and param.options:
        allowed = param.option_values()
        if value is not None and value not in allowed:
            raise ValueError(f"{param.label} must be one of {allowed}, got {value!r}")
    elif param.type == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{param.label} must be a number, got {value!r}")
        if param.min is not None and value < param.min:
            raise ValueError(f"{param.label} must be >= {param.min}")
        if param.max is not None and value > param.max:
            raise ValueError(f"{param.label} must be <= {param.max}")
