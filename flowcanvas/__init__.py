"""
flowcanvas — workflow graph editor core.

Owns the node/edge model behind the visual workflow builder:
the graph store, node type registry, canvas gestures, the node
config panel, and JSON import/export.
"""

__version__ = "0.1.0"
