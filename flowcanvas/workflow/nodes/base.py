"""
Node Type Base — the registry contract every canvas node implements.

A node type is a ``BaseNode`` subclass decorated with
``@register_node``. It declares:

    - display metadata (label, icon, color, category)
    - ``parameters``   — the fields the config panel renders
    - ``output_ports`` — branch handles; empty for single-output nodes
    - ``data_model``   — pydantic model validating the node's ``data``

Adding a node type means adding one class; the registry is filled at
import time and never mutated while the editor runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from flowcanvas.workflow.errors import InvalidType

logger = getLogger(__name__)


@dataclass(frozen=True)
class NodeParameter:
    """One editable field of a node's ``data``.

    ``type`` is a presentation hint for the config panel:
    ``string``, ``text``, ``expression``, ``select`` or ``number``.
    """
    name: str
    label: str
    type: str = "string"
    default: Any = None
    required: bool = False
    description: str = ""
    options: List[Dict[str, str]] = field(default_factory=list)
    min: Optional[float] = None
    max: Optional[float] = None
    group: str = "general"

    def option_values(self) -> List[str]:
        return [o["value"] for o in self.options]


@dataclass(frozen=True)
class OutputPort:
    """A named output handle on a multi-branch node."""
    id: str
    label: str
    description: str = ""


class NodeData(BaseModel):
    """Base data model. Unknown keys are allowed and preserved."""

    model_config = ConfigDict(extra="allow")

    name: str = ""


class BaseNode:
    """Static description of a node type."""

    node_type: str = ""
    label: str = ""
    description: str = ""
    category: str = "general"
    icon: str = ""
    color: str = "#6b7280"

    parameters: List[NodeParameter] = []
    output_ports: List[OutputPort] = []
    data_model: Type[NodeData] = NodeData

    @classmethod
    def handle_ids(cls) -> List[str]:
        return [p.id for p in cls.output_ports]

    @classmethod
    def is_branching(cls) -> bool:
        return bool(cls.output_ports)

    @classmethod
    def get_parameter(cls, name: str) -> Optional[NodeParameter]:
        for p in cls.parameters:
            if p.name == name:
                return p
        return None

    @classmethod
    def default_data(cls) -> Dict[str, Any]:
        """Fresh ``data`` for a newly added node of this type."""
        data: Dict[str, Any] = {"name": cls.label}
        for p in cls.parameters:
            if p.name != "name" and p.default is not None:
                data[p.name] = p.default
        return data

    @classmethod
    def validate_data(cls, data: Dict[str, Any]) -> List[str]:
        """Check ``data`` against ``data_model``; returns error messages."""
        try:
            cls.data_model.model_validate(data)
        except ValidationError as e:
            return [
                f"{'.'.join(str(loc) for loc in err['loc']) or 'data'}: {err['msg']}"
                for err in e.errors()
            ]
        return []

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Serialize the type description for a node palette."""
        return {
            "node_type": cls.node_type,
            "label": cls.label,
            "description": cls.description,
            "category": cls.category,
            "icon": cls.icon,
            "color": cls.color,
            "parameters": [
                {
                    "name": p.name,
                    "label": p.label,
                    "type": p.type,
                    "default": p.default,
                    "required": p.required,
                    "description": p.description,
                    "options": p.options,
                    "min": p.min,
                    "max": p.max,
                    "group": p.group,
                }
                for p in cls.parameters
            ],
            "output_ports": [
                {"id": p.id, "label": p.label, "description": p.description}
                for p in cls.output_ports
            ],
        }


class NodeRegistry:
    """Lookup table from ``node_type`` to its ``BaseNode`` class."""

    def __init__(self) -> None:
        self._types: Dict[str, Type[BaseNode]] = {}

    def register(self, node_cls: Type[BaseNode]) -> None:
        if not node_cls.node_type:
            raise ValueError(f"{node_cls.__name__} does not declare node_type")
        existing = self._types.get(node_cls.node_type)
        if existing is not None and existing is not node_cls:
            raise ValueError(
                f"Node type '{node_cls.node_type}' already registered by {existing.__name__}"
            )
        self._types[node_cls.node_type] = node_cls
        logger.debug(f"Registered node type: {node_cls.node_type}")

    def get(self, node_type: str) -> Optional[Type[BaseNode]]:
        return self._types.get(node_type)

    def require(self, node_type: str) -> Type[BaseNode]:
        """Like ``get`` but raises ``InvalidType`` for unknown types."""
        node_cls = self._types.get(node_type)
        if node_cls is None:
            raise InvalidType(node_type)
        return node_cls

    def __contains__(self, node_type: object) -> bool:
        return node_type in self._types

    def types(self) -> List[str]:
        return list(self._types)

    def list_all(self) -> List[Type[BaseNode]]:
        return list(self._types.values())

    def list_by_category(self) -> Dict[str, List[Type[BaseNode]]]:
        grouped: Dict[str, List[Type[BaseNode]]] = {}
        for node_cls in self._types.values():
            grouped.setdefault(node_cls.category, []).append(node_cls)
        return grouped

    def default_data(self, node_type: str) -> Dict[str, Any]:
        return self.require(node_type).default_data()

    def validate_data(self, node_type: str, data: Dict[str, Any]) -> List[str]:
        return self.require(node_type).validate_data(data)


# ── Singleton ──

_registry = NodeRegistry()


def get_node_registry() -> NodeRegistry:
    """Return the global NodeRegistry.

    Importing ``flowcanvas.workflow.nodes`` populates it.
    """
    return _registry


def register_node(node_cls: Type[BaseNode]) -> Type[BaseNode]:
    """Class decorator registering a node type in the global registry."""
    _registry.register(node_cls)
    return node_cls
