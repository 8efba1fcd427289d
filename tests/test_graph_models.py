"""Call graph model tests."""

import pytest

from callscope.graph.models import CallGraph, Method, NodeNotFoundError, make_node_id


def test_method_identity_is_its_id():
    """Methods with the same ID are equal whatever their other fields."""
    a = Method(id="a.py::f", name="f", line_start=1)
    b = Method(id="a.py::f", name="f", line_start=99)

    assert a == b
    assert hash(a) == hash(b)
    assert a != Method(id="b.py::f", name="f")


def test_method_qualified_name():
    """Qualified name includes the parent."""
    assert Method(id="a.py::User.save", name="save", parent="User").qualified_name == "User.save"
    assert Method(id="a.py::save", name="save").qualified_name == "save"


def test_node_ids_are_stable_and_unquoted():
    """Node IDs depend only on the method ID and are plain identifiers."""
    method = Method(id="pkg/mod.py::Class.method", name="method")

    node_id = make_node_id(method)

    assert node_id == make_node_id(Method(id="pkg/mod.py::Class.method", name="other"))
    assert node_id.isidentifier()


def test_add_node_is_idempotent():
    """Adding the same method twice yields one node."""
    graph = CallGraph()
    method = Method(id="a.py::f", name="f")

    first = graph.add_node(method)
    second = graph.add_node(Method(id="a.py::f", name="f"))

    assert first is second
    assert len(graph.get_nodes()) == 1


def test_new_nodes_have_no_coordinate():
    """Coordinates stay unset until a layout is applied."""
    graph = CallGraph()

    node = graph.add_node(Method(id="a.py::f", name="f"))

    assert node.x is None and node.y is None
    assert not node.has_coordinate


def test_add_edge_deduplicates():
    """Adding the same edge twice yields one edge in every view."""
    graph = CallGraph()
    caller = Method(id="a.py::caller", name="caller")
    callee = Method(id="a.py::callee", name="callee")

    first = graph.add_edge(caller, callee)
    second = graph.add_edge(caller, callee)

    assert first is second
    assert len(graph.get_edges()) == 1
    caller_node = graph.get_node_for_method(caller)
    callee_node = graph.get_node_for_method(callee)
    assert list(caller_node.leaving_edges) == [first.id]
    assert list(callee_node.entering_edges) == [first.id]
    assert caller_node.entering_edges == {}
    assert callee_node.leaving_edges == {}


def test_add_edge_adds_missing_endpoints():
    """Edges create the nodes they connect."""
    graph = CallGraph()
    caller = Method(id="a.py::caller", name="caller")
    callee = Method(id="a.py::callee", name="callee")

    edge = graph.add_edge(caller, callee)

    assert graph.number_of_nodes() == 2
    assert edge.source.method == caller
    assert edge.target.method == callee
    assert graph.has_edge(edge.source.id, edge.target.id)
    assert not graph.has_edge(edge.target.id, edge.source.id)


def test_self_call_edge():
    """A recursive method gets a single edge to itself."""
    graph = CallGraph()
    method = Method(id="a.py::recurse", name="recurse")

    edge = graph.add_edge(method, method)

    assert graph.number_of_nodes() == 1
    assert edge.source is edge.target
    assert graph.get_callers(edge.source.id) == [edge.source]


def test_get_node_unknown_id_raises():
    """Looking up a missing node raises NodeNotFoundError."""
    graph = CallGraph()

    with pytest.raises(NodeNotFoundError):
        graph.get_node("missing")

    with pytest.raises(NodeNotFoundError):
        graph.get_node_for_method(Method(id="a.py::f", name="f"))


def test_callers_and_callees():
    """Adjacency queries follow edge direction."""
    graph = CallGraph()
    a = Method(id="a.py::a", name="a")
    b = Method(id="a.py::b", name="b")
    c = Method(id="a.py::c", name="c")
    graph.add_edge(a, b)
    graph.add_edge(c, b)

    b_id = graph.get_node_for_method(b).id

    assert {n.method for n in graph.get_callers(b_id)} == {a, c}
    assert graph.get_callees(b_id) == []


def test_to_dict_is_sorted():
    """Serialized nodes are ordered by name and carry coordinates."""
    graph = CallGraph()
    zeta = Method(id="a.py::zeta", name="zeta", file_path="a.py", line_start=3)
    alpha = Method(id="b.py::alpha", name="alpha", file_path="b.py", line_start=7)
    graph.add_edge(zeta, alpha)
    graph.get_node_for_method(alpha).set_coordinate(0.5, 1.0)

    data = graph.to_dict()

    assert [n["name"] for n in data["nodes"]] == ["alpha", "zeta"]
    assert data["nodes"][0]["x"] == 0.5
    assert data["nodes"][0]["file_path"] == "b.py"
    assert data["nodes"][1]["x"] is None
    assert len(data["edges"]) == 1
    assert data["edges"][0]["source"] == graph.get_node_for_method(zeta).id


def test_to_networkx_copies_structure():
    """Exported NetworkX graph mirrors nodes and edges."""
    graph = CallGraph()
    a = Method(id="a.py::a", name="a")
    b = Method(id="a.py::b", name="b")
    graph.add_edge(a, b)

    G = graph.to_networkx()

    a_id = graph.get_node_for_method(a).id
    b_id = graph.get_node_for_method(b).id
    assert G.has_edge(a_id, b_id)
    assert G.nodes[a_id]["method_id"] == "a.py::a"
