"""Data models for the call graph."""

import hashlib
from dataclasses import dataclass, field

import networkx as nx


class NodeNotFoundError(KeyError):
    """Raised when a node ID or method has no node in the graph."""

    pass


@dataclass(frozen=True)
class Method:
    """A callable unit in the analyzed code. Identity is the ID alone."""

    id: str  # e.g., "auth/handler.py::LoginView.post"
    name: str = field(compare=False)
    file_path: str = field(default="", compare=False)
    line_start: int = field(default=0, compare=False)
    line_end: int = field(default=0, compare=False)
    parent: str | None = field(default=None, compare=False)  # e.g., "LoginView"
    signature: str | None = field(default=None, compare=False)

    @property
    def qualified_name(self) -> str:
        """Name qualified by its enclosing class/function."""
        if self.parent:
            return f"{self.parent}.{self.name}"
        return self.name


# Mapping of { callee => callers }
CallersMap = dict[Method, set[Method]]


def make_node_id(method: Method) -> str:
    """Create a node ID for a method that Graphviz accepts unquoted."""
    digest = hashlib.sha1(method.id.encode("utf-8")).hexdigest()
    return f"m{digest[:16]}"


def make_edge_id(source_id: str, target_id: str) -> str:
    """Create an edge ID from the ordered pair of node IDs."""
    return f"{source_id}->{target_id}"


@dataclass(eq=False)
class Node:
    """A node in the call graph wrapping exactly one method."""

    id: str
    method: Method
    x: float | None = None
    y: float | None = None
    # Keyed by edge ID
    leaving_edges: dict[str, "Edge"] = field(default_factory=dict, repr=False)
    entering_edges: dict[str, "Edge"] = field(default_factory=dict, repr=False)

    @property
    def has_coordinate(self) -> bool:
        """True once a layout has been applied."""
        return self.x is not None and self.y is not None

    def set_coordinate(self, x: float, y: float) -> None:
        self.x = x
        self.y = y


@dataclass(eq=False)
class Edge:
    """A directed edge meaning "source calls target"."""

    id: str
    source: Node
    target: Node


class CallGraph:
    """Nodes and edges of one analysis run.

    Backed by a NetworkX DiGraph keyed by node ID; each graph node carries
    its Node under the "node" attribute and each graph edge its Edge under
    the "edge" attribute.
    """

    def __init__(self) -> None:
        self._graph = nx.DiGraph()
        self._node_ids: dict[Method, str] = {}

    def add_node(self, method: Method) -> Node:
        """Return the node for a method, creating it on first use."""
        node_id = self._node_ids.get(method)
        if node_id is not None:
            return self._graph.nodes[node_id]["node"]

        node_id = make_node_id(method)
        node = Node(id=node_id, method=method)
        self._graph.add_node(node_id, node=node)
        self._node_ids[method] = node_id
        return node

    def add_edge(self, source: Method, target: Method) -> Edge:
        """Add a "source calls target" edge, adding missing endpoints."""
        source_node = self.add_node(source)
        target_node = self.add_node(target)

        if self._graph.has_edge(source_node.id, target_node.id):
            return self._graph.edges[source_node.id, target_node.id]["edge"]

        edge = Edge(
            id=make_edge_id(source_node.id, target_node.id),
            source=source_node,
            target=target_node,
        )
        self._graph.add_edge(source_node.id, target_node.id, edge=edge)
        source_node.leaving_edges[edge.id] = edge
        target_node.entering_edges[edge.id] = edge
        return edge

    def get_node(self, node_id: str) -> Node:
        """Look up a node by ID.

        Raises:
            NodeNotFoundError: If no node has this ID.
        """
        if not self._graph.has_node(node_id):
            raise NodeNotFoundError(node_id)
        return self._graph.nodes[node_id]["node"]

    def get_node_for_method(self, method: Method) -> Node:
        """Look up the node wrapping a method.

        Raises:
            NodeNotFoundError: If the method has no node.
        """
        node_id = self._node_ids.get(method)
        if node_id is None:
            raise NodeNotFoundError(method.id)
        return self._graph.nodes[node_id]["node"]

    def has_node(self, node_id: str) -> bool:
        return self._graph.has_node(node_id)

    def has_edge(self, source_id: str, target_id: str) -> bool:
        return self._graph.has_edge(source_id, target_id)

    def get_nodes(self) -> list[Node]:
        return [node for _, node in self._graph.nodes(data="node")]

    def get_edges(self) -> list[Edge]:
        return [edge for _, _, edge in self._graph.edges(data="edge")]

    def get_callers(self, node_id: str) -> list[Node]:
        """Nodes with an edge into the given node."""
        if not self._graph.has_node(node_id):
            raise NodeNotFoundError(node_id)
        return [self._graph.nodes[source]["node"] for source in self._graph.predecessors(node_id)]

    def get_callees(self, node_id: str) -> list[Node]:
        """Nodes the given node has an edge to."""
        if not self._graph.has_node(node_id):
            raise NodeNotFoundError(node_id)
        return [self._graph.nodes[target]["node"] for target in self._graph.successors(node_id)]

    def number_of_nodes(self) -> int:
        return self._graph.number_of_nodes()

    def number_of_edges(self) -> int:
        return self._graph.number_of_edges()

    def is_empty(self) -> bool:
        return self._graph.number_of_nodes() == 0

    def to_networkx(self) -> nx.DiGraph:
        """Export a copy with plain attributes, for analysis with NetworkX."""
        G = nx.DiGraph()
        for node in self.get_nodes():
            G.add_node(
                node.id,
                method_id=node.method.id,
                name=node.method.name,
                file_path=node.method.file_path,
                line_start=node.method.line_start,
                x=node.x,
                y=node.y,
            )
        for edge in self.get_edges():
            G.add_edge(edge.source.id, edge.target.id, id=edge.id)
        return G

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON output."""
        nodes = sorted(self.get_nodes(), key=lambda n: (n.method.name, n.id))
        edges = sorted(self.get_edges(), key=lambda e: (e.source.id, e.target.id))
        return {
            "nodes": [
                {
                    "id": n.id,
                    "method_id": n.method.id,
                    "name": n.method.name,
                    "qualified_name": n.method.qualified_name,
                    "file_path": n.method.file_path,
                    "line_start": n.method.line_start,
                    "line_end": n.method.line_end,
                    "signature": n.method.signature,
                    "x": n.x,
                    "y": n.y,
                }
                for n in nodes
            ],
            "edges": [
                {
                    "id": e.id,
                    "source": e.source.id,
                    "target": e.target.id,
                }
                for e in edges
            ],
        }
