"""Upstream/downstream expansion of the call relation.

All functions here produce or combine CallersMaps ({ callee => callers }),
the input of build_graph(). Expansion proceeds one distance level at a
time over a frontier of methods; a method is expanded at most once, which
guarantees termination on cyclic call graphs.
"""

import logging
import time
from collections.abc import Callable, Collection, Iterable
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import TYPE_CHECKING

from callscope.cancellation import CancellationToken, check_cancelled
from callscope.graph.models import CallersMap, Method

if TYPE_CHECKING:
    from callscope.resolver.base import MethodResolver
    from callscope.scope import SearchScope

logger = logging.getLogger(__name__)


class TraversalDirection(Enum):
    """Which side of a focal method to expand."""

    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"
    UPSTREAM_DOWNSTREAM = "upstream_downstream"

    @property
    def label(self) -> str:
        return {
            TraversalDirection.UPSTREAM: "Only upstream",
            TraversalDirection.DOWNSTREAM: "Only downstream",
            TraversalDirection.UPSTREAM_DOWNSTREAM: "Only upstream & downstream",
        }[self]

    @property
    def includes_upstream(self) -> bool:
        return self in (TraversalDirection.UPSTREAM, TraversalDirection.UPSTREAM_DOWNSTREAM)

    @property
    def includes_downstream(self) -> bool:
        return self in (TraversalDirection.DOWNSTREAM, TraversalDirection.UPSTREAM_DOWNSTREAM)


def merge_callers_maps(*maps: CallersMap) -> CallersMap:
    """Merge mappings by key-wise set union.

    Inputs are left untouched; values for a shared key are combined, never
    overwritten.
    """
    merged: CallersMap = {}
    for mapping in maps:
        for key, values in mapping.items():
            merged.setdefault(key, set()).update(values)
    return merged


def invert_callees_map(callees_map: dict[Method, set[Method]]) -> CallersMap:
    """Turn { caller => callees } into { callee => callers }."""
    callers_map: CallersMap = {}
    for caller, callees in callees_map.items():
        for callee in callees:
            callers_map.setdefault(callee, set()).add(caller)
    return callers_map


def count_callers(callers_map: CallersMap) -> int:
    """Total number of (callee, caller) pairs in a mapping."""
    return sum(len(callers) for callers in callers_map.values())


def _gather(
    methods: Iterable[Method],
    lookup: Callable[[Method], set[Method]],
    cancel_token: CancellationToken | None,
    max_workers: int,
) -> dict[Method, set[Method]]:
    """Run lookup for every method, checking for cancellation per method.

    With max_workers > 1 the lookups run on a bounded thread pool. Results
    are keyed by method, so the outcome does not depend on completion order.
    """
    ordered = sorted(methods, key=lambda m: m.id)

    if max_workers <= 1 or len(ordered) <= 1:
        results = {}
        for method in ordered:
            check_cancelled(cancel_token)
            results[method] = lookup(method)
        return results

    def run_lookup(method: Method) -> set[Method]:
        check_cancelled(cancel_token)
        return lookup(method)

    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="callscope-lookup")
    try:
        futures = {method: executor.submit(run_lookup, method) for method in ordered}
        return {method: future.result() for method, future in futures.items()}
    finally:
        executor.shutdown(wait=True, cancel_futures=True)


def get_direct_callers(
    method: Method,
    resolver: "MethodResolver",
    scope: "SearchScope",
    known_methods: Collection[Method] | None = None,
) -> set[Method]:
    """Methods containing a reference to the given method.

    References that are not nested in a (known) method are dropped.
    """
    callers = set()
    for site in resolver.find_references(method, scope):
        caller = resolver.containing_method(site, known_methods)
        if caller is None:
            logger.debug(f"Unattributed reference to {method.id} at {site.file_path}:{site.line}")
            continue
        callers.add(caller)
    return callers


def _expand(
    methods: Iterable[Method],
    lookup: Callable[[Method], set[Method]],
    seen: set[Method],
    cancel_token: CancellationToken | None,
    max_workers: int,
    direction: str,
) -> dict[Method, set[Method]]:
    """Level-by-level expansion shared by both directions.

    Each level looks up every frontier method, marks the frontier as seen
    and moves on to the neighbours not seen yet.
    """
    result: dict[Method, set[Method]] = {}
    frontier = set(methods)
    level = 0

    while frontier:
        direct = _gather(frontier, lookup, cancel_token, max_workers)
        seen.update(frontier)
        result = merge_callers_maps(result, direct)
        frontier = {
            neighbour
            for neighbours in direct.values()
            for neighbour in neighbours
            if neighbour not in seen
        }
        level += 1
        logger.debug(f"{direction} level {level}: {len(frontier)} methods to expand next")

    return result


def get_upstream_callers_map(
    methods: Iterable[Method],
    resolver: "MethodResolver",
    scope: "SearchScope",
    seen: set[Method] | None = None,
    cancel_token: CancellationToken | None = None,
    max_workers: int = 1,
) -> CallersMap:
    """Expand callers transitively.

    Args:
        methods: Methods to start from.
        resolver: Source of references.
        scope: Boundary for reference searches.
        seen: Methods already expanded; updated in place.
        cancel_token: Checked once per method.
        max_workers: Parallel reference lookups per level.

    Returns:
        Mapping of { callee => callers } for every method reached.
    """
    if seen is None:
        seen = set()
    return _expand(
        methods,
        lambda method: get_direct_callers(method, resolver, scope),
        seen,
        cancel_token,
        max_workers,
        "upstream",
    )


def get_downstream_callees_map(
    methods: Iterable[Method],
    resolver: "MethodResolver",
    seen: set[Method] | None = None,
    cancel_token: CancellationToken | None = None,
    max_workers: int = 1,
) -> dict[Method, set[Method]]:
    """Expand callees transitively.

    Returns:
        Mapping of { caller => callees } for every method reached.
    """
    if seen is None:
        seen = set()
    return _expand(
        methods,
        resolver.callees_of,
        seen,
        cancel_token,
        max_workers,
        "downstream",
    )


def get_callers_map_for_method(
    method: Method,
    direction: TraversalDirection,
    resolver: "MethodResolver",
    scope: "SearchScope",
    cancel_token: CancellationToken | None = None,
    max_workers: int = 1,
) -> CallersMap:
    """Callers map of everything reachable from one focal method.

    The downstream { caller => callees } result is inverted before it is
    merged with the upstream result. The focal method is always a key.
    """
    upstream: CallersMap = {}
    downstream: dict[Method, set[Method]] = {}

    if direction.includes_upstream:
        upstream = get_upstream_callers_map(
            {method}, resolver, scope, set(), cancel_token, max_workers
        )
    if direction.includes_downstream:
        downstream = get_downstream_callees_map(
            {method}, resolver, set(), cancel_token, max_workers
        )

    callers_map = merge_callers_maps({method: set()}, upstream, invert_callees_map(downstream))
    logger.info(
        f"found {len(callers_map)} methods and {count_callers(callers_map)} callers in total"
    )
    return callers_map


def get_callers_map_for_scope(
    resolver: "MethodResolver",
    scope: "SearchScope",
    cancel_token: CancellationToken | None = None,
    max_workers: int = 1,
) -> CallersMap:
    """One-level callers map of every method in a scope.

    Only methods inside the scope count as callers. Every method in the
    scope is a key, including those nobody calls.
    """
    all_methods = resolver.find_all_methods(scope)
    logger.info(f"found {len(all_methods)} methods in scope")

    def lookup(method: Method) -> set[Method]:
        start = time.perf_counter()
        callers = get_direct_callers(method, resolver, scope, all_methods)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"{elapsed_ms:.0f} milliseconds for method {method.name}")
        return callers

    callers_map = _gather(all_methods, lookup, cancel_token, max_workers)
    logger.info(
        f"found {len(callers_map)} methods and {count_callers(callers_map)} callers in total"
    )
    return callers_map
