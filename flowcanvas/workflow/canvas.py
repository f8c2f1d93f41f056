"""
Canvas Controller — pointer gestures to store mutations.

The host UI forwards pointer events (node id and/or canvas
coordinates, no toolkit types) and the controller turns them into
``GraphStore`` calls. Gestures are a three-state machine::

    IDLE ──drag_start──▶ DRAGGING_NODE ──drag_stop──▶ IDLE   (one move_node)
    IDLE ──connect_start──▶ DRAWING_EDGE ──connect_end──▶ IDLE   (add_edge or nothing)

Intermediate pointer positions stay in the controller as preview
state; only the final result of a gesture reaches the store.
"""

from __future__ import annotations

from enum import Enum
from logging import getLogger
from typing import Optional

from flowcanvas.workflow.workflow_model import Position
from flowcanvas.workflow.workflow_store import GraphStore, PositionLike, as_position

logger = getLogger(__name__)


class GestureState(str, Enum):
    IDLE = "idle"
    DRAGGING_NODE = "dragging_node"
    DRAWING_EDGE = "drawing_edge"


class CanvasController:
    """Translate canvas interactions into graph mutations."""

    def __init__(self, store: GraphStore, default_position: PositionLike = None) -> None:
        self.store = store
        self.default_position = as_position(default_position)
        self.state = GestureState.IDLE

        self._drag_node_id: Optional[str] = None
        self._drag_offset = Position()
        self.drag_preview: Optional[Position] = None

        self._connect_source: Optional[str] = None
        self._connect_handle: Optional[str] = None
        self.connect_cursor: Optional[Position] = None

    # ── Selection ──

    def on_node_click(self, node_id: str) -> None:
        self.store.select(node_id)

    def on_pane_click(self) -> None:
        self.cancel()
        self.store.select(None)

    # ── Node drag ──

    def on_node_drag_start(self, node_id: str, pointer: PositionLike) -> bool:
        """Begin dragging ``node_id``; ``pointer`` is the grab point."""
        node = self.store.get_node(node_id)
        if node is None:
            return False
        self.cancel()
        grab = as_position(pointer)
        self._drag_node_id = node_id
        self._drag_offset = Position(x=grab.x - node.position.x, y=grab.y - node.position.y)
        self.drag_preview = node.position
        self.state = GestureState.DRAGGING_NODE
        return True

    def on_pointer_move(self, pointer: PositionLike) -> None:
        """Track the pointer during a gesture. Never touches the store."""
        pos = as_position(pointer)
        if self.state == GestureState.DRAGGING_NODE:
            self.drag_preview = Position(
                x=pos.x - self._drag_offset.x,
                y=pos.y - self._drag_offset.y,
            )
        elif self.state == GestureState.DRAWING_EDGE:
            self.connect_cursor = pos

    def on_node_drag_stop(self, pointer: PositionLike = None) -> Optional[Position]:
        """Finish the drag and commit the final position; returns it."""
        if self.state != GestureState.DRAGGING_NODE:
            return None
        if pointer is not None:
            self.on_pointer_move(pointer)
        node_id, final = self._drag_node_id, self.drag_preview
        self._reset_drag()
        if node_id is None or final is None:
            return None
        if not self.store.move_node(node_id, final):
            logger.debug(f"Dragged node {node_id} disappeared before drop")
            return None
        return final

    def on_node_drag(self, node_id: str, position: PositionLike) -> bool:
        """Host callback carrying a node's final dragged position."""
        return self.store.move_node(node_id, position)

    def _reset_drag(self) -> None:
        self._drag_node_id = None
        self._drag_offset = Position()
        self.drag_preview = None
        self.state = GestureState.IDLE

    # ── Edge drawing ──

    def on_connect_start(self, source: str, source_handle: Optional[str] = None) -> bool:
        """Begin drawing an edge from an output handle of ``source``."""
        if not self.store.has_node(source):
            return False
        self.cancel()
        self._connect_source = source
        self._connect_handle = source_handle
        self.state = GestureState.DRAWING_EDGE
        return True

    def on_connect_end(self, target: Optional[str]) -> Optional[str]:
        """Drop the edge on ``target``'s input region.

        ``None``, an unknown node, or the source node itself abandon the
        gesture without touching the store. Otherwise the edge is added
        and its id returned; store errors propagate to the caller.
        """
        if self.state != GestureState.DRAWING_EDGE:
            return None
        source, handle = self._connect_source, self._connect_handle
        self._reset_connect()
        if source is None or target is None or target == source or not self.store.has_node(target):
            logger.debug(f"Connection from {source} abandoned (drop target: {target})")
            return None
        return self.on_connect(source, target, handle)

    def on_connect(self, source: str, target: str, source_handle: Optional[str] = None) -> str:
        """Host callback for a completed connection."""
        return self.store.add_edge(source, target, source_handle)

    def _reset_connect(self) -> None:
        self._connect_source = None
        self._connect_handle = None
        self.connect_cursor = None
        self.state = GestureState.IDLE

    def cancel(self) -> None:
        """Abandon any gesture in progress."""
        if self.state == GestureState.DRAGGING_NODE:
            self._reset_drag()
        elif self.state == GestureState.DRAWING_EDGE:
            self._reset_connect()

    # ── Toolbar / keyboard / context menu ──

    def add_node(self, node_type: str, position: PositionLike = None) -> str:
        pos = as_position(position) if position is not None else self.default_position
        node_id = self.store.add_node(node_type, None, pos)
        logger.info(f"Added a new {node_type} node to the workflow ({node_id})")
        return node_id

    def delete_selected(self) -> bool:
        """Delete/Backspace: remove the selected node."""
        node_id = self.store.selected_node_id
        if node_id is None:
            return False
        return self.store.delete_node(node_id)

    def duplicate(self, node_id: str) -> Optional[str]:
        return self.store.duplicate_node(node_id)

    def remove_edge(self, edge_id: str) -> bool:
        return self.store.delete_edge(edge_id)
