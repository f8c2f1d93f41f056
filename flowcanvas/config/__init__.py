"""
Config Package.

Settings groups are dataclasses registered with ``@register_config``.
"""

from flowcanvas.config.base import (
    BaseConfig,
    ConfigField,
    FieldType,
    get_config_class,
    list_config_classes,
    register_config,
)
from flowcanvas.config.editor_config import (
    EditorConfig,
    configure_logging,
    get_editor_config,
)

__all__ = [
    "BaseConfig",
    "ConfigField",
    "FieldType",
    "get_config_class",
    "list_config_classes",
    "register_config",
    "EditorConfig",
    "configure_logging",
    "get_editor_config",
]
