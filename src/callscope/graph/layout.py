"""Graph layout with Graphviz.

The graph is described to Graphviz through pydot in a stable order, laid
out as a left-to-right ranked digraph, and read back in the "plain" output
format. Node positions are normalized to the drawing's bounding box before
being written onto the graph's nodes.
"""

import logging
import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import pydot

from callscope.cancellation import CancellationToken, check_cancelled
from callscope.config import get_settings_or_defaults
from callscope.constants import PLAIN_FORMAT, PLAIN_GRAPH_MARKER, PLAIN_NODE_MARKER
from callscope.graph.models import CallGraph, Node

logger = logging.getLogger(__name__)


class MalformedLayoutOutputError(Exception):
    """Raised when layout text cannot be parsed."""

    pass


class LayoutEngineError(Exception):
    """Raised when the layout program cannot be run or fails."""

    pass


@dataclass
class PlainLayout:
    """Parsed plain-format layout, in layout engine units."""

    width: float
    height: float
    # Maps node ID -> (x, y), in output order
    positions: dict[str, tuple[float, float]] = field(default_factory=dict)


def get_sorted_nodes(graph: CallGraph) -> list[Node]:
    """Nodes ordered by method name, then node ID."""
    return sorted(graph.get_nodes(), key=lambda n: (n.method.name, n.id))


def to_pydot(graph: CallGraph, rank_dir: str = "LR") -> pydot.Dot:
    """Describe a call graph to Graphviz.

    Nodes are declared in stable order, each followed by its outgoing
    edges to callees in the same order, so identical graphs always produce
    identical descriptions.
    """
    dot = pydot.Dot(graph_type="digraph", rankdir=rank_dir)
    nodes = get_sorted_nodes(graph)

    for node in nodes:
        dot.add_node(pydot.Node(node.id, label=node.method.name))

    for node in nodes:
        callees = sorted(
            {edge.target for edge in node.leaving_edges.values()},
            key=lambda n: (n.method.name, n.id),
        )
        for callee in callees:
            dot.add_edge(pydot.Edge(node.id, callee.id))

    return dot


class LayoutEngine(ABC):
    """Black box turning a graph description into plain-format layout text."""

    @abstractmethod
    def render_plain(self, dot: pydot.Dot) -> str:
        """Lay out the graph and return the plain-format output."""
        pass


class GraphvizLayoutEngine(LayoutEngine):
    """Runs a Graphviz program through pydot."""

    def __init__(self, prog: str | None = None):
        self.prog = prog or get_settings_or_defaults().layout.prog

    def render_plain(self, dot: pydot.Dot) -> str:
        try:
            output = dot.create(prog=self.prog, format=PLAIN_FORMAT)
        except (OSError, AssertionError) as e:
            raise LayoutEngineError(f"Graphviz '{self.prog}' failed: {e}") from e
        return output.decode("utf-8")


def _parse_float(token: str, line_number: int, line: str) -> float:
    try:
        return float(token)
    except ValueError as e:
        raise MalformedLayoutOutputError(
            f"Line {line_number}: expected a number, got {token!r}: {line!r}"
        ) from e


def parse_plain_layout(text: str) -> PlainLayout:
    """Parse Graphviz plain output.

    Reads the "graph <scale> <width> <height>" line and every
    "node <id> <x> <y> ..." line; other lines and trailing fields are
    ignored.

    Raises:
        MalformedLayoutOutputError: If the graph line is missing, its size
            is not two positive numbers, or a node line is incomplete.
    """
    size: tuple[float, float] | None = None
    positions: dict[str, tuple[float, float]] = {}

    for line_number, line in enumerate(text.splitlines(), start=1):
        try:
            tokens = shlex.split(line)
        except ValueError as e:
            raise MalformedLayoutOutputError(f"Line {line_number}: {e}: {line!r}") from e
        if not tokens:
            continue

        if tokens[0] == PLAIN_GRAPH_MARKER:
            if len(tokens) < 4:
                raise MalformedLayoutOutputError(
                    f"Line {line_number}: graph line needs a width and height: {line!r}"
                )
            width = _parse_float(tokens[2], line_number, line)
            height = _parse_float(tokens[3], line_number, line)
            if width <= 0 or height <= 0:
                raise MalformedLayoutOutputError(
                    f"Line {line_number}: graph size must be positive, got {width} x {height}"
                )
            if size is None:
                size = (width, height)

        elif tokens[0] == PLAIN_NODE_MARKER:
            if len(tokens) < 4:
                raise MalformedLayoutOutputError(
                    f"Line {line_number}: node line needs an ID and a position: {line!r}"
                )
            x = _parse_float(tokens[2], line_number, line)
            y = _parse_float(tokens[3], line_number, line)
            positions[tokens[1]] = (x, y)

    if size is None:
        raise MalformedLayoutOutputError("Layout output has no graph line")

    return PlainLayout(width=size[0], height=size[1], positions=positions)


def normalize_positions(
    layout: PlainLayout, grid_scale_x: float, grid_scale_y: float
) -> dict[str, tuple[float, float]]:
    """Scale positions to the bounding box, then by the grid scales."""
    return {
        node_id: (grid_scale_x * x / layout.width, grid_scale_y * y / layout.height)
        for node_id, (x, y) in layout.positions.items()
    }


def apply_layout(
    graph: CallGraph, text: str, grid_scale_x: float, grid_scale_y: float
) -> None:
    """Parse layout text and assign normalized coordinates to the graph.

    No coordinate is written unless the whole text parses and every node
    it names exists in the graph.

    Raises:
        MalformedLayoutOutputError: If the text cannot be parsed.
        NodeNotFoundError: If the text names a node missing from the graph.
    """
    positions = normalize_positions(parse_plain_layout(text), grid_scale_x, grid_scale_y)
    nodes = {node_id: graph.get_node(node_id) for node_id in positions}
    for node_id, (x, y) in positions.items():
        nodes[node_id].set_coordinate(x, y)


def layout_graph(
    graph: CallGraph,
    engine: LayoutEngine | None = None,
    grid_scale_x: float | None = None,
    grid_scale_y: float | None = None,
    rank_dir: str | None = None,
    cancel_token: CancellationToken | None = None,
) -> None:
    """Compute a layout for the graph and write it onto its nodes.

    Args:
        graph: Graph to lay out, modified in place.
        engine: Layout engine. Defaults to Graphviz.
        grid_scale_x: Horizontal scale. Defaults to settings.
        grid_scale_y: Vertical scale. Defaults to settings.
        rank_dir: Graphviz rank direction. Defaults to settings.
        cancel_token: Checked before the engine is invoked.
    """
    if graph.is_empty():
        return

    settings = get_settings_or_defaults().layout
    if engine is None:
        engine = GraphvizLayoutEngine(settings.prog)
    if grid_scale_x is None:
        grid_scale_x = settings.grid_scale_x
    if grid_scale_y is None:
        grid_scale_y = settings.grid_scale_y
    if rank_dir is None:
        rank_dir = settings.rank_dir

    dot = to_pydot(graph, rank_dir.upper())
    check_cancelled(cancel_token)
    logger.debug(f"Running {engine.__class__.__name__} on {graph.number_of_nodes()} nodes")
    text = engine.render_plain(dot)
    check_cancelled(cancel_token)

    apply_layout(graph, text, grid_scale_x, grid_scale_y)
