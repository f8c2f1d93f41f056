"""Tests for GraphStore mutations and invariants."""

import pytest

from flowcanvas.config import EditorConfig
from flowcanvas.workflow import (
    BranchOccupied,
    GraphStore,
    ImportRejected,
    InvalidEdgeAttribute,
    InvalidHandle,
    InvalidType,
    Position,
    UnknownNode,
    WorkflowEdge,
    WorkflowNode,
    export_store,
)


def assert_invariants(store: GraphStore) -> None:
    node_ids = [n.id for n in store.nodes]
    assert len(node_ids) == len(set(node_ids))
    for edge in store.edges:
        assert store.has_node(edge.source)
        assert store.has_node(edge.target)
    branches = [(e.source, e.source_handle) for e in store.edges if e.source_handle is not None]
    assert len(branches) == len(set(branches))
    if store.selected_node_id is not None:
        assert store.has_node(store.selected_node_id)


class TestAddNode:

    def test_ids_are_sequential(self, store):
        assert store.add_node("condition") == "n1"
        assert store.add_node("notification") == "n2"

    def test_defaults_filled_and_overridden(self, store):
        node_id = store.add_node("condition", {"condition": "x > 1"})
        node = store.get_node(node_id)
        assert node.type == "condition"
        assert node.data == {"name": "Condition", "condition": "x > 1"}
        assert node.position == Position(x=0, y=0)

    def test_notification_channel_starts_unset(self, store):
        node_id = store.add_node("notification", {"name": "Notify"})
        assert store.get_node(node_id).data == {"name": "Notify"}
        exported = export_store(store)["nodes"][0]["data"]
        assert "channel" not in exported

    def test_position_forms(self, store):
        a = store.add_node("task", position={"x": 5, "y": 6})
        b = store.add_node("task", position=(7, 8))
        assert store.get_node(a).position == Position(x=5, y=6)
        assert store.get_node(b).position == Position(x=7, y=8)

    def test_unknown_type_rejected(self, store):
        with pytest.raises(InvalidType):
            store.add_node("teleport")
        assert store.nodes == []
        assert store.metadata.version == 1

    def test_ids_never_reused(self, store):
        first = store.add_node("task")
        store.delete_node(first)
        assert store.add_node("task") != first

    def test_caller_data_is_copied(self, store):
        data = {"name": "T", "tags": ["a"]}
        node_id = store.add_node("task", data)
        data["tags"].append("b")
        assert store.get_node(node_id).data["tags"] == ["a"]


class TestUpdateAndMove:

    def test_update_is_shallow_merge(self, store):
        node_id = store.add_node("notification", {"name": "Notify", "channel": "sms"})
        assert store.update_node(node_id, {"recipients": "ops", "channel": "slack"})
        data = store.get_node(node_id).data
        assert data["name"] == "Notify"
        assert data["recipients"] == "ops"
        assert data["channel"] == "slack"

    def test_update_missing_is_noop(self, store):
        version = store.metadata.version
        assert store.update_node("nope", {"name": "x"}) is False
        assert store.metadata.version == version

    def test_update_never_changes_type(self, store):
        node_id = store.add_node("task")
        store.update_node(node_id, {"type": "condition"})
        node = store.get_node(node_id)
        assert node.type == "task"
        assert node.data["type"] == "condition"

    def test_move(self, store):
        node_id = store.add_node("task")
        assert store.move_node(node_id, {"x": -1e6, "y": 3.5})
        assert store.get_node(node_id).position == Position(x=-1e6, y=3.5)
        assert store.move_node("missing", (0, 0)) is False

    def test_snapshots_do_not_leak(self, store):
        node_id = store.add_node("task")
        snapshot = store.get_node(node_id)
        snapshot.data["name"] = "mutated"
        assert store.get_node(node_id).data["name"] == "Task"


class TestDeleteNode:

    def test_cascades_only_touching_edges(self, store):
        a = store.add_node("task")
        b = store.add_node("task")
        c = store.add_node("task")
        ab = store.add_edge(a, b)
        bc = store.add_edge(b, c)
        ca = store.add_edge(c, a)
        store.delete_node(a)
        assert [e.id for e in store.edges] == [bc]
        assert store.get_edge(ab) is None
        assert store.get_edge(ca) is None
        assert_invariants(store)

    def test_clears_selection(self, store):
        node_id = store.add_node("task")
        store.select(node_id)
        store.delete_node(node_id)
        assert store.selected_node_id is None
        assert store.is_config_panel_open is False

    def test_keeps_other_selection(self, store):
        a = store.add_node("task")
        b = store.add_node("task")
        store.select(b)
        store.delete_node(a)
        assert store.selected_node_id == b

    def test_missing_is_noop(self, store):
        assert store.delete_node("n99") is False


class TestAddEdge:

    def test_unknown_endpoint(self, store):
        a = store.add_node("task")
        with pytest.raises(UnknownNode):
            store.add_edge(a, "ghost")
        with pytest.raises(UnknownNode):
            store.add_edge("ghost", a)
        assert store.edges == []

    def test_condition_requires_branch_handle(self, store):
        cond = store.add_node("condition")
        task = store.add_node("task")
        with pytest.raises(InvalidHandle):
            store.add_edge(cond, task)
        with pytest.raises(InvalidHandle):
            store.add_edge(cond, task, "maybe")
        assert store.edges == []

    def test_single_output_rejects_handle(self, store):
        a = store.add_node("task")
        b = store.add_node("task")
        with pytest.raises(InvalidHandle):
            store.add_edge(a, b, "true")

    def test_second_edge_on_branch_replaces_first(self, store, age_check):
        n1, n2, e1 = age_check
        n3 = store.add_node("task")
        e2 = store.add_edge(n1, n3, "true")
        true_edges = [e for e in store.get_edges_from(n1) if e.source_handle == "true"]
        assert [e.id for e in true_edges] == [e2]
        assert store.get_edge(e1) is None
        assert_invariants(store)

    def test_both_branches_coexist(self, store, age_check):
        n1, n2, _ = age_check
        n3 = store.add_node("task")
        store.add_edge(n1, n3, "false")
        assert {e.source_handle for e in store.get_edges_from(n1)} == {"true", "false"}

    def test_reject_policy(self):
        store = GraphStore(config=EditorConfig(branch_policy="reject"))
        n1 = store.add_node("condition")
        n2 = store.add_node("task")
        n3 = store.add_node("task")
        e1 = store.add_edge(n1, n2, "true")
        with pytest.raises(BranchOccupied) as exc_info:
            store.add_edge(n1, n3, "true")
        assert exc_info.value.edge_id == e1
        assert [e.id for e in store.edges] == [e1]

    def test_identical_connection_returns_existing(self, store):
        a = store.add_node("task")
        b = store.add_node("task")
        first = store.add_edge(a, b)
        assert store.add_edge(a, b) == first
        assert len(store.edges) == 1

    def test_fan_out_from_single_output(self, store):
        a = store.add_node("task")
        b = store.add_node("task")
        c = store.add_node("task")
        store.add_edge(a, b)
        store.add_edge(a, c)
        assert len(store.get_edges_from(a)) == 2

    def test_edge_attributes(self, store):
        a = store.add_node("task")
        b = store.add_node("task")
        edge_id = store.add_edge(a, b, label="next", type="step")
        assert store.update_edge(edge_id, style={"stroke": "#ff0000", "strokeWidth": 2})
        edge = store.get_edge(edge_id)
        assert edge.label == "next"
        assert edge.type == "step"
        assert edge.style == {"stroke": "#ff0000", "strokeWidth": 2}

    def test_update_edge_cannot_move_endpoints(self, store):
        a = store.add_node("task")
        b = store.add_node("task")
        edge_id = store.add_edge(a, b)
        with pytest.raises(TypeError):
            store.update_edge(edge_id, target=a)

    def test_invalid_curve_type_rejected(self, store):
        a = store.add_node("task")
        b = store.add_node("task")
        version = store.metadata.version
        with pytest.raises(InvalidEdgeAttribute) as exc_info:
            store.add_edge(a, b, type="bezier")
        assert exc_info.value.edge_id is None
        assert store.edges == []
        assert store.metadata.version == version
        assert store.add_edge(a, b) == "e1"

    def test_invalid_update_keeps_edge(self, store):
        a = store.add_node("task")
        b = store.add_node("task")
        edge_id = store.add_edge(a, b, type="step")
        with pytest.raises(InvalidEdgeAttribute) as exc_info:
            store.update_edge(edge_id, type="bezier", label="next")
        assert exc_info.value.edge_id == edge_id
        edge = store.get_edge(edge_id)
        assert edge.type == "step"
        assert edge.label is None

    def test_delete_edge(self, store, age_check):
        _, _, e1 = age_check
        assert store.delete_edge(e1)
        assert store.delete_edge(e1) is False
        assert store.edges == []


class TestSelection:

    def test_select_and_clear(self, store):
        node_id = store.add_node("task")
        store.select(node_id)
        assert store.selected_node_id == node_id
        assert store.is_config_panel_open
        store.select(None)
        assert store.selected_node_id is None
        assert not store.is_config_panel_open

    def test_unknown_id_keeps_prior_selection(self, store):
        node_id = store.add_node("task")
        store.select(node_id)
        store.select("does-not-exist")
        assert store.selected_node_id == node_id

    def test_selection_is_not_a_graph_change(self, store):
        node_id = store.add_node("task")
        store.mark_saved()
        version = store.metadata.version
        store.select(node_id)
        assert store.is_dirty is False
        assert store.metadata.version == version

    def test_closing_panel_clears_selection(self, store):
        node_id = store.add_node("task")
        store.select(node_id)
        store.set_config_panel_open(False)
        assert store.selected_node_id is None


class TestReplaceAll:

    def test_rejects_dangling_edge_and_keeps_graph(self, store, age_check):
        before = export_store(store)
        nodes = [WorkflowNode(id="a", type="task")]
        edges = [WorkflowEdge(id="x", source="a", target="b")]
        with pytest.raises(ImportRejected):
            store.replace_all(nodes, edges)
        assert export_store(store) == before

    def test_rejects_duplicate_ids(self, store):
        nodes = [WorkflowNode(id="a", type="task"), WorkflowNode(id="a", type="email")]
        with pytest.raises(ImportRejected) as exc_info:
            store.replace_all(nodes, [])
        assert any("Duplicate node id" in p for p in exc_info.value.problems)

    def test_rejects_double_branch(self, store):
        nodes = [
            WorkflowNode(id="c", type="condition"),
            WorkflowNode(id="a", type="task"),
            WorkflowNode(id="b", type="task"),
        ]
        edges = [
            WorkflowEdge(id="x", source="c", target="a", sourceHandle="true"),
            WorkflowEdge(id="y", source="c", target="b", sourceHandle="true"),
        ]
        with pytest.raises(ImportRejected):
            store.replace_all(nodes, edges)

    def test_replaces_and_advances_ids(self, store, age_check):
        n1, _, _ = age_check
        store.select(n1)
        store.replace_all([WorkflowNode(id="n7", type="task")], [])
        assert [n.id for n in store.nodes] == ["n7"]
        assert store.selected_node_id is None
        assert store.add_node("task") == "n8"


class TestBookkeeping:

    def test_history_and_metadata(self, store, age_check):
        n1, n2, e1 = age_check
        store.update_node(n2, {"channel": "push"})
        store.delete_node(n1)
        history = store.history
        assert [h.node_id for h in history.nodes.created] == [n1, n2]
        assert history.nodes.updated[0].changes["new"] == {"channel": "push"}
        assert [h.node_id for h in history.nodes.deleted] == [n1]
        assert [h.edge_id for h in history.edges.deleted] == [e1]
        assert store.metadata.total_nodes == 1
        assert store.metadata.total_edges == 0
        assert store.metadata.version == 6

    def test_history_limit(self):
        store = GraphStore(config=EditorConfig(history_limit=2))
        for _ in range(4):
            store.add_node("task")
        assert [h.node_id for h in store.history.nodes.created] == ["n3", "n4"]

    def test_dirty_flag(self, store):
        assert store.is_dirty is False
        store.add_node("task")
        assert store.is_dirty is True
        store.mark_saved()
        assert store.is_dirty is False
        store.set_workflow_name("Onboarding")
        assert store.is_dirty is True
        assert store.workflow_name == "Onboarding"

    def test_reset(self, store, age_check):
        store.set_workflow_name("Something")
        store.reset()
        assert store.nodes == []
        assert store.edges == []
        assert store.workflow_name == "Untitled Workflow"
        assert store.is_dirty is False
        assert store.add_node("task") == "n3"

    def test_duplicate_node(self, store):
        node_id = store.add_node("email", {"to": "a@b.c"}, (10, 10))
        copy_id = store.duplicate_node(node_id)
        copy = store.get_node(copy_id)
        assert copy.type == "email"
        assert copy.data == store.get_node(node_id).data
        assert copy.position == Position(x=30, y=30)
        assert store.duplicate_node("missing") is None


class TestSubscriptions:

    def test_events_delivered_and_unsubscribe(self, store):
        events = []
        unsubscribe = store.subscribe(events.append)
        node_id = store.add_node("task")
        store.select(node_id)
        unsubscribe()
        store.delete_node(node_id)
        assert [e.kind for e in events] == ["node_added", "selection_changed"]
        assert events[0].payload["node_id"] == node_id

    def test_failing_listener_does_not_break_store(self, store):
        seen = []

        def broken(_event):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(seen.append)
        node_id = store.add_node("task")
        assert store.has_node(node_id)
        assert len(seen) == 1


class TestInvariantsUnderSequences:

    def test_mixed_operations(self, store):
        ids = [store.add_node(t) for t in ("condition", "task", "notification", "condition", "email")]
        store.add_edge(ids[0], ids[1], "true")
        store.add_edge(ids[0], ids[2], "false")
        store.add_edge(ids[0], ids[4], "true")
        store.add_edge(ids[3], ids[0], "false")
        store.add_edge(ids[1], ids[3])
        store.select(ids[3])
        assert_invariants(store)
        store.delete_node(ids[3])
        assert_invariants(store)
        store.delete_node(ids[0])
        assert_invariants(store)
        assert store.edges == []


def test_reference_scenario(store):
    n1 = store.add_node("condition", {"name": "Check age", "condition": "age > 18"}, {"x": 0, "y": 0})
    n2 = store.add_node("notification", {"name": "Notify"}, {"x": 0, "y": 150})
    assert (n1, n2) == ("n1", "n2")
    store.add_edge(n1, n2, "true")

    document = export_store(store)
    assert len(document["nodes"]) == 2
    assert len(document["edges"]) == 1

    store.delete_node(n1)
    assert [n.id for n in store.nodes] == ["n2"]
    assert store.edges == []
