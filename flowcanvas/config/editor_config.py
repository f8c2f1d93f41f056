"""
Workflow Editor Configuration.

Controls id allocation, the branch-replacement policy for
condition nodes, duplication offset, history size and export
formatting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from flowcanvas.config.base import BaseConfig, ConfigField, FieldType, register_config
from flowcanvas.config.env_utils import env_sync, read_env_defaults

logger = logging.getLogger(__name__)

BRANCH_POLICY_OPTIONS = [
    {"value": "replace", "label": "Replace existing connection"},
    {"value": "reject", "label": "Reject new connection"},
]

LOG_LEVEL_OPTIONS = [
    {"value": level, "label": level.title()}
    for level in ("DEBUG", "INFO", "WARNING", "ERROR")
]



def _apply_log_level(old: str, new: str) -> None:
    env_sync("FLOWCANVAS_LOG_LEVEL")(old, new)
    logging.getLogger("flowcanvas").setLevel(new)


@register_config
@dataclass
class EditorConfig(BaseConfig):
    """Graph editor behaviour settings."""

    node_id_prefix: str = "n"
    edge_id_prefix: str = "e"
    branch_policy: str = "replace"
    duplicate_offset: float = 20.0
    history_limit: int = 500
    export_indent: int = 2
    default_workflow_name: str = "Untitled Workflow"
    log_level: str = "INFO"

    _ENV_MAP = {
        "node_id_prefix": "FLOWCANVAS_NODE_ID_PREFIX",
        "edge_id_prefix": "FLOWCANVAS_EDGE_ID_PREFIX",
        "branch_policy": "FLOWCANVAS_BRANCH_POLICY",
        "duplicate_offset": "FLOWCANVAS_DUPLICATE_OFFSET",
        "history_limit": "FLOWCANVAS_HISTORY_LIMIT",
        "export_indent": "FLOWCANVAS_EXPORT_INDENT",
        "default_workflow_name": "FLOWCANVAS_WORKFLOW_NAME",
        "log_level": "FLOWCANVAS_LOG_LEVEL",
    }

    @classmethod
    def get_default_instance(cls) -> "EditorConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls(**defaults)

    @classmethod
    def get_config_name(cls) -> str:
        return "editor"

    @classmethod
    def get_display_name(cls) -> str:
        return "Workflow Editor"

    @classmethod
    def get_description(cls) -> str:
        return "Node/edge id allocation, branch connection policy and export formatting."

    @classmethod
    def get_category(cls) -> str:
        return "general"

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            ConfigField(
                name="node_id_prefix",
                field_type=FieldType.STRING,
                label="Node ID Prefix",
                description="Prefix for generated node ids (n1, n2, …)",
                default="n",
                required=True,
                group="ids",
                apply_change=env_sync("FLOWCANVAS_NODE_ID_PREFIX"),
            ),
            ConfigField(
                name="edge_id_prefix",
                field_type=FieldType.STRING,
                label="Edge ID Prefix",
                description="Prefix for generated edge ids (e1, e2, …)",
                default="e",
                required=True,
                group="ids",
                apply_change=env_sync("FLOWCANVAS_EDGE_ID_PREFIX"),
            ),
            ConfigField(
                name="branch_policy",
                field_type=FieldType.SELECT,
                label="Branch Policy",
                description="What happens when a second edge leaves an occupied branch handle",
                default="replace",
                options=BRANCH_POLICY_OPTIONS,
                group="graph",
                apply_change=env_sync("FLOWCANVAS_BRANCH_POLICY"),
            ),
            ConfigField(
                name="duplicate_offset",
                field_type=FieldType.NUMBER,
                label="Duplicate Offset",
                description="Canvas offset applied to duplicated nodes",
                default=20.0,
                min_value=0,
                group="canvas",
                apply_change=env_sync("FLOWCANVAS_DUPLICATE_OFFSET"),
            ),
            ConfigField(
                name="history_limit",
                field_type=FieldType.NUMBER,
                label="History Limit",
                description="Maximum records kept per history list",
                default=500,
                min_value=0,
                max_value=100000,
                group="graph",
                apply_change=env_sync("FLOWCANVAS_HISTORY_LIMIT"),
            ),
            ConfigField(
                name="export_indent",
                field_type=FieldType.NUMBER,
                label="Export Indent",
                description="JSON indentation for exported documents",
                default=2,
                min_value=0,
                max_value=8,
                group="export",
                apply_change=env_sync("FLOWCANVAS_EXPORT_INDENT"),
            ),
            ConfigField(
                name="default_workflow_name",
                field_type=FieldType.STRING,
                label="Default Workflow Name",
                default="Untitled Workflow",
                group="graph",
                apply_change=env_sync("FLOWCANVAS_WORKFLOW_NAME"),
            ),
            ConfigField(
                name="log_level",
                field_type=FieldType.SELECT,
                label="Log Level",
                default="INFO",
                options=LOG_LEVEL_OPTIONS,
                group="logging",
                apply_change=_apply_log_level,
            ),
        ]


_editor_config: Optional[EditorConfig] = None


def get_editor_config() -> EditorConfig:
    """Return the process-wide EditorConfig, created from env on first use."""
    global _editor_config
    if _editor_config is None:
        _editor_config = EditorConfig.get_default_instance()
        for error in _editor_config.validate():
            logger.warning(f"Editor config: {error}")
    return _editor_config


def configure_logging(config: Optional[EditorConfig] = None) -> None:
    """Apply ``log_level`` to the root logging configuration."""
    cfg = config or get_editor_config()
    logging.basicConfig(
        level=cfg.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("flowcanvas").setLevel(cfg.log_level)
