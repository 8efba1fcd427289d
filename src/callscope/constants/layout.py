"""Graph layout constants.

The layout is produced by Graphviz in its "plain" output format:
https://graphviz.org/docs/outputs/plain/
"""

# =============================================================================
# Graphviz Invocation
# =============================================================================
# Layout program and rank direction. "LR" ranks callers to the left of their
# callees.

LAYOUT_PROG = "dot"
RANK_DIR = "LR"
PLAIN_FORMAT = "plain"

# =============================================================================
# Plain Format Markers
# =============================================================================
# First token of the lines the parser reads. All other lines (edge, stop) are
# ignored.

PLAIN_GRAPH_MARKER = "graph"
PLAIN_NODE_MARKER = "node"

# =============================================================================
# Grid Scaling
# =============================================================================
# Normalized coordinates are multiplied by these factors so the canvas can
# stretch the vertical axis relative to the horizontal one.

GRID_SCALE_X = 1.0
GRID_SCALE_Y = 2.0
