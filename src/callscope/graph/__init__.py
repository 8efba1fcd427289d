"""Call graph construction, traversal and layout."""

from callscope.graph.builder import build_graph
from callscope.graph.layout import (
    GraphvizLayoutEngine,
    LayoutEngine,
    LayoutEngineError,
    MalformedLayoutOutputError,
    PlainLayout,
    apply_layout,
    layout_graph,
    normalize_positions,
    parse_plain_layout,
)
from callscope.graph.models import (
    CallersMap,
    CallGraph,
    Edge,
    Method,
    Node,
    NodeNotFoundError,
)
from callscope.graph.traversal import (
    TraversalDirection,
    get_callers_map_for_method,
    get_callers_map_for_scope,
    get_downstream_callees_map,
    get_upstream_callers_map,
    invert_callees_map,
    merge_callers_maps,
)

__all__ = [
    "build_graph",
    "GraphvizLayoutEngine",
    "LayoutEngine",
    "LayoutEngineError",
    "MalformedLayoutOutputError",
    "PlainLayout",
    "apply_layout",
    "layout_graph",
    "normalize_positions",
    "parse_plain_layout",
    "CallersMap",
    "CallGraph",
    "Edge",
    "Method",
    "Node",
    "NodeNotFoundError",
    "TraversalDirection",
    "get_callers_map_for_method",
    "get_callers_map_for_scope",
    "get_downstream_callees_map",
    "get_upstream_callers_map",
    "invert_callees_map",
    "merge_callers_maps",
]
