"""Shared fixtures for the workflow editor tests."""

import pytest

from flowcanvas.config import EditorConfig
from flowcanvas.workflow import CanvasController, ConfigPanel, GraphStore


@pytest.fixture
def config():
    return EditorConfig()


@pytest.fixture
def store(config):
    return GraphStore(config=config)


@pytest.fixture
def canvas(store):
    return CanvasController(store)


@pytest.fixture
def panel(store):
    return ConfigPanel(store)


@pytest.fixture
def age_check(store):
    """Condition n1 with its true branch wired to notification n2."""
    n1 = store.add_node("condition", {"name": "Check age", "condition": "age > 18"}, {"x": 0, "y": 0})
    n2 = store.add_node("notification", {"name": "Notify"}, {"x": 0, "y": 150})
    e1 = store.add_edge(n1, n2, "true")
    return n1, n2, e1
