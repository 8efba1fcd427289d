"""Call graph construction tests."""

from conftest import make_method

from callscope.graph.builder import build_graph


def test_build_graph_adds_caller_to_callee_edges():
    """Each caller gets an edge to its callee."""
    helper = make_method("util.py::helper")
    step = make_method("service.py::Service.step")
    use = make_method("extra.py::use")

    graph = build_graph({helper: {step, use}})

    assert graph.number_of_nodes() == 3
    helper_id = graph.get_node_for_method(helper).id
    assert graph.has_edge(graph.get_node_for_method(step).id, helper_id)
    assert graph.has_edge(graph.get_node_for_method(use).id, helper_id)


def test_build_graph_keeps_uncalled_keys():
    """Methods without callers still get a node."""
    lonely = make_method("a.py::lonely")

    graph = build_graph({lonely: set()})

    assert graph.number_of_nodes() == 1
    assert graph.number_of_edges() == 0


def test_build_graph_one_node_per_method():
    """A method appearing as key and caller gets one node."""
    a = make_method("a.py::a")
    b = make_method("a.py::b")
    c = make_method("a.py::c")

    graph = build_graph({b: {a}, c: {b, a}, a: set()})

    assert graph.number_of_nodes() == 3
    assert graph.number_of_edges() == 3


def test_build_empty_graph():
    """An empty mapping gives an empty graph."""
    graph = build_graph({})

    assert graph.is_empty()
