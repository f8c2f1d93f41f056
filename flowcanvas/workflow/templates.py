"""
Pre-built Workflow Templates.

Factory functions returning ready-made workflow documents. A
template is loaded through the regular import path, so it is
validated exactly like a user-supplied file.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Callable, Dict, List, Optional

from flowcanvas.workflow.serialization import Document, import_into
from flowcanvas.workflow.workflow_store import GraphStore

logger = getLogger(__name__)


# ============================================================================
# Age Check (condition with both branches wired)
# ============================================================================


def create_age_check_template() -> Document:
    """Condition node routing adults and minors to different notifications.

    Topology::
        n1 Check age ─true──▶ n2 Notify adult
                     └false─▶ n3 Notify guardian
    """
    nodes: List[Dict[str, Any]] = []
    edges: List[Dict[str, Any]] = []

    def _add(ntype: str, nid: str, x: float, y: float, data: Dict[str, Any]) -> None:
        nodes.append({"id": nid, "type": ntype, "position": {"x": x, "y": y}, "data": data})

    def _edge(eid: str, src: str, tgt: str, handle: Optional[str] = None) -> None:
        edges.append({"id": eid, "source": src, "target": tgt, "sourceHandle": handle})

    _add("condition", "n1", 0, 0, {"name": "Check age", "condition": "age > 18"})
    _add("notification", "n2", -160, 150,
         {"name": "Notify adult", "recipients": "user@example.com", "channel": "email"})
    _add("notification", "n3", 160, 150,
         {"name": "Notify guardian", "recipients": "guardian@example.com", "channel": "sms"})

    _edge("e1", "n1", "n2", "true")
    _edge("e2", "n1", "n3", "false")

    return {"nodes": nodes, "edges": edges}


# ============================================================================
# Support Ticket Triage
# ============================================================================


def create_ticket_triage_template() -> Document:
    """Look up the knowledge base, then escalate or answer by email.

    Topology::
        n1 Search KB → n2 Answer found? ─true──▶ n3 Reply by email
                                        └false─▶ n4 Escalate task → n5 Notify team
    """
    nodes: List[Dict[str, Any]] = []
    edges: List[Dict[str, Any]] = []

    def _add(ntype: str, nid: str, x: float, y: float, data: Dict[str, Any]) -> None:
        nodes.append({"id": nid, "type": ntype, "position": {"x": x, "y": y}, "data": data})

    def _edge(eid: str, src: str, tgt: str, handle: Optional[str] = None) -> None:
        edges.append({"id": eid, "source": src, "target": tgt, "sourceHandle": handle})

    _add("kb-search", "n1", 0, 0, {
        "name": "Search KB",
        "question": "{ticket.body}",
        "variable": "kb_answer",
        "chunkLimit": 3,
        "minScore": 0.5,
    })
    _add("condition", "n2", 0, 150, {"name": "Answer found?", "condition": "kb_answer != ''"})
    _add("email", "n3", -200, 300, {
        "name": "Reply by email",
        "to": "{ticket.requester}",
        "subject": "Re: {ticket.subject}",
        "body": "{kb_answer}",
    })
    _add("task", "n4", 200, 300, {
        "name": "Escalate",
        "description": "Answer the ticket manually",
        "assignee": "support-lead",
        "priority": "high",
    })
    _add("notification", "n5", 200, 450,
         {"name": "Notify team", "recipients": "#support", "channel": "slack"})

    _edge("e1", "n1", "n2")
    _edge("e2", "n2", "n3", "true")
    _edge("e3", "n2", "n4", "false")
    _edge("e4", "n4", "n5")

    return {"nodes": nodes, "edges": edges}


# ── Registry ──

_TEMPLATES: Dict[str, Callable[[], Document]] = {
    "age-check": create_age_check_template,
    "ticket-triage": create_ticket_triage_template,
}


def list_templates() -> List[str]:
    return list(_TEMPLATES)


def load_template(store: GraphStore, name: str) -> None:
    """Replace the store's graph with the named template."""
    factory = _TEMPLATES.get(name)
    if factory is None:
        raise KeyError(f"Unknown workflow template: {name}")
    import_into(store, factory())
    logger.info(f"Loaded workflow template '{name}'")
