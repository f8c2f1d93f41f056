"""
Config Base — dataclass settings with field metadata.

Every settings group is a ``@dataclass`` subclass of ``BaseConfig``
decorated with ``@register_config``. Class-level metadata describes
how each field is presented and validated by a settings UI.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from logging import getLogger
from typing import Any, Callable, Dict, List, Optional, Type

logger = getLogger(__name__)


class FieldType(str, Enum):
    """Presentation type of a config field."""
    STRING = "string"
    PASSWORD = "password"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"


@dataclass
class ConfigField:
    """UI / validation metadata for one config field."""
    name: str
    field_type: FieldType
    label: str
    description: str = ""
    default: Any = None
    required: bool = False
    placeholder: str = ""
    options: List[Dict[str, str]] = field(default_factory=list)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    group: str = "general"
    secure: bool = False
    apply_change: Optional[Callable[[Any, Any], None]] = None

    def check(self, value: Any) -> Optional[str]:
        """Return an error message if ``value`` is outside this field's domain."""
        if self.required and value in (None, ""):
            return f"{self.label} is required"
        if self.field_type == FieldType.SELECT and self.options:
            allowed = [o["value"] for o in self.options]
            if value not in allowed:
                return f"{self.label} must be one of {allowed}"
        if self.field_type == FieldType.NUMBER:
            if self.min_value is not None and value < self.min_value:
                return f"{self.label} must be >= {self.min_value}"
            if self.max_value is not None and value > self.max_value:
                return f"{self.label} must be <= {self.max_value}"
        return None


@dataclass
class BaseConfig:
    """Base class for all settings groups."""

    @classmethod
    def get_default_instance(cls) -> "BaseConfig":
        return cls()

    @classmethod
    def get_config_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_display_name(cls) -> str:
        return cls.get_config_name()

    @classmethod
    def get_description(cls) -> str:
        return ""

    @classmethod
    def get_category(cls) -> str:
        return "general"

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return []

    def validate(self) -> List[str]:
        """Check current values against the field metadata."""
        errors: List[str] = []
        for meta in self.get_fields_metadata():
            message = meta.check(getattr(self, meta.name, None))
            if message:
                errors.append(message)
        return errors

    def update(self, **changes: Any) -> None:
        """Apply changes, firing each field's ``apply_change`` hook."""
        known = {f.name for f in fields(self)}
        hooks = {m.name: m.apply_change for m in self.get_fields_metadata()}
        for name, value in changes.items():
            if name not in known:
                raise KeyError(f"Unknown config field: {name}")
            old = getattr(self, name)
            setattr(self, name, value)
            hook = hooks.get(name)
            if hook is not None:
                hook(old, value)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ── Registry ──

_CONFIG_REGISTRY: Dict[str, Type[BaseConfig]] = {}


def register_config(cls: Type[BaseConfig]) -> Type[BaseConfig]:
    """Class decorator: make a settings group discoverable by name."""
    name = cls.get_config_name()
    if name in _CONFIG_REGISTRY and _CONFIG_REGISTRY[name] is not cls:
        logger.warning(f"Config '{name}' re-registered by {cls.__name__}")
    _CONFIG_REGISTRY[name] = cls
    return cls


def get_config_class(name: str) -> Optional[Type[BaseConfig]]:
    return _CONFIG_REGISTRY.get(name)


def list_config_classes() -> List[Type[BaseConfig]]:
    return list(_CONFIG_REGISTRY.values())
