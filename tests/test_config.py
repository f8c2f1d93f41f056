"""Tests for editor settings."""

import logging
import os

import pytest

import flowcanvas.config.editor_config as editor_config_module
from flowcanvas.config import (
    EditorConfig,
    get_config_class,
    get_editor_config,
    list_config_classes,
)


class TestEditorConfig:

    def test_defaults(self):
        config = EditorConfig()
        assert config.branch_policy == "replace"
        assert config.validate() == []
        assert config.to_dict()["node_id_prefix"] == "n"

    def test_registered(self):
        assert get_config_class("editor") is EditorConfig
        assert EditorConfig in list_config_classes()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("FLOWCANVAS_BRANCH_POLICY", "reject")
        monkeypatch.setenv("FLOWCANVAS_HISTORY_LIMIT", "10")
        monkeypatch.setenv("FLOWCANVAS_DUPLICATE_OFFSET", "32.5")
        config = EditorConfig.get_default_instance()
        assert config.branch_policy == "reject"
        assert config.history_limit == 10
        assert config.duplicate_offset == 32.5

    def test_invalid_env_value_ignored(self, monkeypatch):
        monkeypatch.setenv("FLOWCANVAS_EXPORT_INDENT", "wide")
        assert EditorConfig.get_default_instance().export_indent == 2

    def test_validate_reports_bad_values(self):
        config = EditorConfig(branch_policy="sideways", export_indent=20)
        assert len(config.validate()) == 2

    def test_update_runs_hooks(self, monkeypatch):
        monkeypatch.delenv("FLOWCANVAS_LOG_LEVEL", raising=False)
        config = EditorConfig()
        logger = logging.getLogger("flowcanvas")
        previous = logger.level
        try:
            config.update(log_level="DEBUG")
            assert logger.level == logging.DEBUG
            assert os.environ["FLOWCANVAS_LOG_LEVEL"] == "DEBUG"
        finally:
            logger.setLevel(previous)

    def test_update_unknown_field(self):
        with pytest.raises(KeyError):
            EditorConfig().update(zoom=2)

    def test_update_mirrors_env(self, monkeypatch):
        monkeypatch.delenv("FLOWCANVAS_BRANCH_POLICY", raising=False)
        monkeypatch.delenv("FLOWCANVAS_HISTORY_LIMIT", raising=False)
        EditorConfig().update(branch_policy="reject", history_limit=25)
        assert os.environ["FLOWCANVAS_BRANCH_POLICY"] == "reject"
        fresh = EditorConfig.get_default_instance()
        assert fresh.branch_policy == "reject"
        assert fresh.history_limit == 25

    def test_invalid_env_value_is_reported(self, monkeypatch, caplog):
        monkeypatch.setenv("FLOWCANVAS_BRANCH_POLICY", "foo")
        monkeypatch.setattr(editor_config_module, "_editor_config", None)
        with caplog.at_level(logging.WARNING, logger="flowcanvas.config.editor_config"):
            config = get_editor_config()
        assert config.branch_policy == "foo"
        assert any("Branch Policy" in r.getMessage() for r in caplog.records)
