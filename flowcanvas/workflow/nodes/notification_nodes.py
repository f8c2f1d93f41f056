"""
Notification Nodes — outbound messages.
"""

from __future__ import annotations

from typing import Literal, Optional

from flowcanvas.workflow.nodes.base import (
    BaseNode,
    NodeData,
    NodeParameter,
    register_node,
)

CHANNEL_OPTIONS = [
    {"value": "email", "label": "Email"},
    {"value": "sms", "label": "SMS"},
    {"value": "push", "label": "Push Notification"},
    {"value": "slack", "label": "Slack"},
]


class NotificationData(NodeData):
    recipients: Optional[str] = None
    channel: Optional[Literal["email", "sms", "push", "slack"]] = None


@register_node
class NotificationNode(BaseNode):
    """Notify recipients over a selectable channel."""

    node_type = "notification"
    label = "Notification"
    description = "Send a notification over email, SMS, push or Slack"
    category = "messaging"
    icon = "bell"
    color = "#1a192b"

    parameters = [
        NodeParameter(name="name", label="Name", required=True),
        NodeParameter(
            name="recipients",
            label="Recipients",
            type="string",
            description="Comma-separated list of recipients.",
        ),
        NodeParameter(
            name="channel",
            label="Channel",
            type="select",
            options=CHANNEL_OPTIONS,
            description="Delivery channel. Unset until the user picks one.",
        ),
    ]

    data_model = NotificationData


class EmailData(NodeData):
    to: str = ""
    subject: str = ""
    body: str = ""


@register_node
class EmailNode(BaseNode):
    """Send a single email."""

    node_type = "email"
    label = "Email"
    description = "Send an email message"
    category = "messaging"
    icon = "mail"
    color = "#2563eb"

    parameters = [
        NodeParameter(name="name", label="Name", required=True),
        NodeParameter(name="to", label="To", default=""),
        NodeParameter(name="subject", label="Subject", default=""),
        NodeParameter(name="body", label="Body", type="text", default=""),
    ]

    data_model = EmailData
