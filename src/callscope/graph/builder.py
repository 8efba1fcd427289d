"""Build a call graph from a callee -> callers mapping."""

import logging

from callscope.graph.models import CallersMap, CallGraph

logger = logging.getLogger(__name__)


def build_graph(callers_map: CallersMap) -> CallGraph:
    """Build a directed call graph.

    Every method appearing as a key or among the callers gets exactly one
    node, and every (caller, callee) pair exactly one edge, however often it
    appears in the mapping.

    Args:
        callers_map: Mapping of { callee => callers }.

    Returns:
        CallGraph with an edge from each caller to its callee.
    """
    graph = CallGraph()

    for callee, callers in callers_map.items():
        graph.add_node(callee)
        for caller in callers:
            graph.add_edge(caller, callee)

    logger.debug(
        f"Built graph with {graph.number_of_nodes()} nodes and {graph.number_of_edges()} edges"
    )
    return graph
