"""Tests for node type registration and lookups."""

import pytest

from flowcanvas.workflow import InvalidType, NodeRegistry, get_node_registry
from flowcanvas.workflow.nodes.logic_nodes import ConditionNode


class TestNodeRegistry:

    def test_builtin_types(self):
        registry = get_node_registry()
        assert set(registry.types()) == {
            "task", "condition", "notification", "document", "email", "database", "kb-search",
        }

    def test_only_condition_branches(self):
        registry = get_node_registry()
        branching = [cls.node_type for cls in registry.list_all() if cls.is_branching()]
        assert branching == ["condition"]
        assert ConditionNode.handle_ids() == ["true", "false"]

    def test_require_unknown(self):
        with pytest.raises(InvalidType) as exc_info:
            get_node_registry().require("teleport")
        assert exc_info.value.node_type == "teleport"

    def test_duplicate_registration(self):
        registry = NodeRegistry()
        registry.register(ConditionNode)
        registry.register(ConditionNode)

        class OtherCondition(ConditionNode):
            pass

        with pytest.raises(ValueError):
            registry.register(OtherCondition)

    def test_default_data(self):
        registry = get_node_registry()
        assert registry.default_data("kb-search") == {
            "name": "KB Search",
            "question": "",
            "variable": "",
            "chunkLimit": 3,
            "minScore": 0.0,
        }
        assert registry.default_data("notification") == {"name": "Notification"}

    def test_validate_data(self):
        registry = get_node_registry()
        assert registry.validate_data("task", {"name": "t", "priority": "high"}) == []
        assert registry.validate_data("task", {"priority": "urgent"})
        assert registry.validate_data("notification", {"channel": "fax"})

    def test_palette_grouping(self):
        grouped = get_node_registry().list_by_category()
        assert [cls.node_type for cls in grouped["logic"]] == ["condition"]
        palette = ConditionNode.to_dict()
        assert [p["id"] for p in palette["output_ports"]] == ["true", "false"]
        assert palette["parameters"][0]["name"] == "name"
