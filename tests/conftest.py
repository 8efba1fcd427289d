"""Shared pytest fixtures for all tests."""

from pathlib import Path

import pytest

from callscope.config import load_settings
from callscope.graph.models import Method
from callscope.parsing.models import ReferenceType
from callscope.resolver.base import MethodResolver, ReferenceSite


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    """Run every test against schema defaults unless it configures a workspace."""
    for name in (
        "WORKSPACE_PATH",
        "CALLSCOPE_CONFIG",
        "CALLSCOPE_MAX_WORKERS",
        "CALLSCOPE_LAYOUT_PROG",
    ):
        monkeypatch.delenv(name, raising=False)
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def make_method(method_id: str) -> Method:
    """Create a method from an ID like "pkg/mod.py::Class.name"."""
    file_path, _, qualname = method_id.partition("::")
    parent, _, name = qualname.rpartition(".")
    return Method(id=method_id, name=name, file_path=file_path, parent=parent or None)


class InMemoryResolver(MethodResolver):
    """Resolver over an explicit list of "caller calls callee" pairs.

    Calls are given as (caller, callee) methods; a caller of None records a
    module-level reference that no method contains.
    """

    def __init__(self, methods: list[Method], calls: list[tuple[Method | None, Method]]):
        self.methods = {m.id: m for m in methods}
        self.calls = calls
        self.reference_queries: list[Method] = []

    def find_all_methods(self, scope):
        return {m for m in self.methods.values() if scope.contains(m.file_path)}

    def find_references(self, method, scope):
        self.reference_queries.append(method)
        sites = []
        for line, (caller, callee) in enumerate(self.calls, start=1):
            if callee != method:
                continue
            file_path = caller.file_path if caller is not None else "main.py"
            if not scope.contains(file_path):
                continue
            sites.append(
                ReferenceSite(
                    file_path=file_path,
                    line=line,
                    target=callee.name,
                    reference_type=ReferenceType.CALLS,
                    enclosing=(caller,) if caller is not None else (),
                )
            )
        return sites

    def callees_of(self, method):
        return {callee for caller, callee in self.calls if caller == method}

    def get_method(self, method_id):
        return self.methods.get(method_id)


@pytest.fixture
def cycle_resolver():
    """A calls B, B calls C, C calls A."""
    a = make_method("cycle.py::a")
    b = make_method("cycle.py::b")
    c = make_method("cycle.py::c")
    return InMemoryResolver([a, b, c], [(a, b), (b, c), (c, a)])


SAMPLE_FILES = {
    "app/__init__.py": "",
    "app/service.py": '''\
from app.util import helper


class Service:
    """Runs the steps."""

    def run(self):
        return self.step()

    def step(self):
        return helper(1)


def main():
    Service().run()
''',
    "app/util.py": '''\
def helper(x):
    return x + 1


def recurse(n):
    if n > 0:
        return recurse(n - 1)
    return n
''',
    "lib/extra.py": '''\
from app.util import helper


def use():
    return helper(2)
''',
    "tests/test_service.py": '''\
from app.service import main


def test_main():
    main()
''',
    "loose.py": '''\
def loose():
    pass
''',
}


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """Write a small Python project with two modules and a test module."""
    project = tmp_path / "project"
    for relative, content in SAMPLE_FILES.items():
        path = project / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return project
