"""Python resolver tests against a small on-disk project."""

from pathlib import Path

import pytest

from callscope.graph.traversal import TraversalDirection, get_callers_map_for_method
from callscope.resolver import PythonResolver, containing_method
from callscope.resolver.base import ReferenceSite
from callscope.parsing.models import ReferenceType
from callscope.graph.models import Method
from callscope.scope import ScopeSelection, SearchScope, get_search_scope

WHOLE = SearchScope.whole_project()


@pytest.fixture
def resolver(sample_project: Path) -> PythonResolver:
    return PythonResolver(sample_project)


def names(methods) -> set[str]:
    return {m.qualified_name for m in methods}


def test_find_all_methods(resolver: PythonResolver):
    """Every function and method in the project is found."""
    methods = resolver.find_all_methods(WHOLE)

    assert names(methods) == {
        "Service.run",
        "Service.step",
        "main",
        "helper",
        "recurse",
        "use",
        "test_main",
        "loose",
    }


def test_find_all_methods_in_scope(resolver: PythonResolver):
    """Scopes restrict methods to their roots."""
    methods = resolver.find_all_methods(SearchScope(roots=frozenset({"lib"})))

    assert names(methods) == {"use"}


def test_find_references_across_files(resolver: PythonResolver):
    """Calls from other files are found and attributed to their method."""
    helper = resolver.get_method("app/util.py::helper")

    sites = resolver.find_references(helper, WHOLE)

    assert {site.file_path for site in sites} == {"app/service.py", "lib/extra.py"}
    callers = {resolver.containing_method(site) for site in sites}
    assert names(callers) == {"Service.step", "use"}


def test_self_calls_resolve(resolver: PythonResolver):
    """self.step() inside Service.run references Service.step."""
    step = resolver.get_method("app/service.py::Service.step")

    sites = resolver.find_references(step, WHOLE)

    assert [site.target for site in sites] == ["self.step"]
    assert names(site.enclosing[0] for site in sites) == {"Service.run"}


def test_recursion_is_a_self_reference(resolver: PythonResolver):
    """A recursive function is among its own callers and callees."""
    recurse = resolver.get_method("app/util.py::recurse")

    assert resolver.callees_of(recurse) == {recurse}
    callers = {resolver.containing_method(s) for s in resolver.find_references(recurse, WHOLE)}
    assert callers == {recurse}


def test_callees_of(resolver: PythonResolver):
    """Callees are the methods referenced from a method's own body."""
    main = resolver.get_method("app/service.py::main")
    run = resolver.get_method("app/service.py::Service.run")

    assert names(resolver.callees_of(main)) == {"Service.run"}
    assert names(resolver.callees_of(run)) == {"Service.step"}


def test_scope_excludes_test_references(resolver: PythonResolver, sample_project: Path):
    """Without-tests scope hides references made from test files."""
    main = resolver.get_method("app/service.py::main")
    scope = get_search_scope(sample_project, ScopeSelection.parse("whole-project-without-tests"))

    assert resolver.find_references(main, WHOLE)
    assert resolver.find_references(main, scope) == []


def test_focused_upstream_over_project(resolver: PythonResolver):
    """Upstream of helper reaches the test through the call chain."""
    helper = resolver.get_method("app/util.py::helper")

    callers_map = get_callers_map_for_method(
        helper, TraversalDirection.UPSTREAM, resolver, WHOLE
    )

    assert names(callers_map) == {"helper", "Service.step", "use", "Service.run", "main", "test_main"}


def test_get_method_unknown_id(resolver: PythonResolver):
    """Unknown IDs give None."""
    assert resolver.get_method("app/util.py::missing") is None


def test_syntax_errors_are_skipped(sample_project: Path):
    """Files that do not parse are left out of the index."""
    (sample_project / "app" / "broken.py").write_text("def broken(:\n")

    resolver = PythonResolver(sample_project)

    assert "app/broken.py" not in resolver.index.files
    assert resolver.get_method("app/util.py::helper") is not None


def test_refresh_picks_up_changes(resolver: PythonResolver, sample_project: Path):
    """refresh() re-parses the project on next use."""
    assert resolver.get_method("lib/extra.py::added") is None
    (sample_project / "lib" / "extra.py").write_text("def added():\n    pass\n")

    assert resolver.get_method("lib/extra.py::added") is None
    resolver.refresh()
    assert resolver.get_method("lib/extra.py::added") is not None


def test_containing_method_is_depth_bounded():
    """Only max_depth enclosing methods are considered."""
    inner = Method(id="a.py::outer.inner", name="inner")
    outer = Method(id="a.py::outer", name="outer")
    site = ReferenceSite(
        file_path="a.py",
        line=3,
        target="helper",
        reference_type=ReferenceType.CALLS,
        enclosing=(inner, outer),
    )

    assert containing_method(site) == inner
    assert containing_method(site, known_methods={outer}) == outer
    assert containing_method(site, known_methods={outer}, max_depth=1) is None
    assert containing_method(site, known_methods=set()) is None
