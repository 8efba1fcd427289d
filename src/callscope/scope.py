"""Analysis scope selection and resolution.

A scope selection (whole project with or without tests, one module, one
directory) resolves to two things: the source roots whose files are
enumerated, and a SearchScope that bounds reference searches. Both are
recomputed on every run since the project and the selection can change
between runs.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from callscope.repo.file_filter import FileFilter, is_test_file

logger = logging.getLogger(__name__)


class NoActiveScopeError(Exception):
    """Raised when a scope selection resolves to no source roots."""

    pass


class ScopeKind(Enum):
    """Kinds of analysis scope."""

    WHOLE_PROJECT_WITH_TESTS = "whole-project-with-tests"
    WHOLE_PROJECT_WITHOUT_TESTS = "whole-project-without-tests"
    MODULE = "module"
    DIRECTORY = "directory"

    @property
    def label(self) -> str:
        """Human-readable label."""
        return {
            ScopeKind.WHOLE_PROJECT_WITH_TESTS: "Whole project (test files included)",
            ScopeKind.WHOLE_PROJECT_WITHOUT_TESTS: "Whole project (test files excluded)",
            ScopeKind.MODULE: "Module",
            ScopeKind.DIRECTORY: "Directory",
        }[self]


@dataclass(frozen=True)
class ScopeSelection:
    """A user's choice of analysis scope."""

    kind: ScopeKind = ScopeKind.WHOLE_PROJECT_WITH_TESTS
    module_name: str | None = None
    directory: str | None = None

    @classmethod
    def parse(cls, value: str) -> "ScopeSelection":
        """Parse the string form of a selection.

        Accepts "whole-project-with-tests", "whole-project-without-tests",
        "module:<name>" and "directory:<path>".

        Raises:
            ValueError: If the value names no known scope kind.
        """
        value = value.strip()
        kind_str, sep, argument = value.partition(":")
        try:
            kind = ScopeKind(kind_str)
        except ValueError as e:
            raise ValueError(f"Unknown scope: {value!r}") from e

        if kind == ScopeKind.MODULE:
            return cls(kind=kind, module_name=argument.strip())
        if kind == ScopeKind.DIRECTORY:
            return cls(kind=kind, directory=argument.strip())
        if sep:
            raise ValueError(f"Scope {kind.value!r} takes no argument")
        return cls(kind=kind)

    @property
    def label(self) -> str:
        """Label describing where a graph was built from."""
        if self.kind == ScopeKind.MODULE:
            return f"{self.kind.label} [{self.module_name or ''}]"
        if self.kind == ScopeKind.DIRECTORY:
            return f"{self.kind.label} [{self.directory or ''}]"
        return self.kind.label

    def __str__(self) -> str:
        if self.kind == ScopeKind.MODULE:
            return f"{self.kind.value}:{self.module_name or ''}"
        if self.kind == ScopeKind.DIRECTORY:
            return f"{self.kind.value}:{self.directory or ''}"
        return self.kind.value


@dataclass(frozen=True)
class Module:
    """A top-level source directory of the project."""

    name: str
    root: Path


@dataclass(frozen=True)
class SearchScope:
    """Boundary for reference searches.

    Roots are paths relative to the project root using forward slashes;
    the empty string stands for the whole project.
    """

    roots: frozenset[str]
    exclude_tests: bool = False

    @classmethod
    def whole_project(cls) -> "SearchScope":
        return cls(roots=frozenset({""}))

    def is_empty(self) -> bool:
        return not self.roots

    def contains(self, file_path: str) -> bool:
        """Check whether a project-relative file path is inside the scope."""
        if self.exclude_tests and is_test_file(file_path):
            return False
        for root in self.roots:
            if root == "" or file_path == root or file_path.startswith(root + "/"):
                return True
        return False


def get_top_level_directory(file_path: str) -> str | None:
    """Extract the top-level directory from a relative file path.

    Returns:
        Directory name (e.g. "api" for "api/routes.py"), or None for files
        in the project root.
    """
    parts = file_path.split("/")
    return parts[0] if len(parts) > 1 else None


def discover_modules(project_root: Path, file_filter: FileFilter | None = None) -> list[Module]:
    """Find the modules of a project.

    A module is a top-level directory containing at least one source file.

    Args:
        project_root: Project root directory.
        file_filter: Filter used to enumerate source files.

    Returns:
        Modules sorted by name.
    """
    if file_filter is None:
        file_filter = FileFilter(project_root)

    names = {
        directory
        for directory in (get_top_level_directory(f) for f in file_filter.get_files())
        if directory is not None
    }
    return [Module(name=name, root=project_root / name) for name in sorted(names)]


def get_selected_modules(modules: list[Module], module_name: str | None) -> list[Module]:
    """Modules matching the selected name; empty when the name is stale."""
    return [module for module in modules if module.name == module_name]


def _resolve_directory(project_root: Path, directory: str | None) -> Path | None:
    """Look up a directory selection, or None if it is blank or unusable."""
    if not directory or not directory.strip():
        return None

    path = Path(directory.strip()).expanduser()
    if not path.is_absolute():
        path = project_root / path
    path = path.resolve()

    if not path.exists():
        logger.info(f"Directory scope not found: {directory}")
        return None
    try:
        path.relative_to(project_root.resolve())
    except ValueError:
        logger.warning(f"Directory scope is outside the project: {directory}")
        return None
    return path


def get_source_roots(
    project_root: Path,
    selection: ScopeSelection,
    file_filter: FileFilter | None = None,
) -> set[Path]:
    """Map a scope selection to the roots whose files are enumerated.

    Args:
        project_root: Project root directory.
        selection: The selected scope.
        file_filter: Filter used for module discovery.

    Returns:
        Set of absolute root paths, possibly empty.
    """
    if selection.kind == ScopeKind.WHOLE_PROJECT_WITH_TESTS:
        return {project_root.resolve()}

    if selection.kind == ScopeKind.WHOLE_PROJECT_WITHOUT_TESTS:
        modules = discover_modules(project_root, file_filter)
        return {module.root.resolve() for module in modules}

    if selection.kind == ScopeKind.MODULE:
        modules = discover_modules(project_root, file_filter)
        selected = get_selected_modules(modules, selection.module_name)
        if not selected:
            logger.info(f"Module not found: {selection.module_name}")
        return {module.root.resolve() for module in selected}

    if selection.kind == ScopeKind.DIRECTORY:
        root = _resolve_directory(project_root, selection.directory)
        return {root} if root is not None else set()

    return set()


def get_search_scope(
    project_root: Path,
    selection: ScopeSelection,
    file_filter: FileFilter | None = None,
) -> SearchScope:
    """Map a scope selection to the boundary used for reference searches.

    Test files are excluded for the whole-project-without-tests selection.
    Directory selections do not filter test files.
    """
    base = project_root.resolve()
    roots = frozenset(
        "" if root == base else root.relative_to(base).as_posix()
        for root in get_source_roots(project_root, selection, file_filter)
    )
    return SearchScope(
        roots=roots,
        exclude_tests=selection.kind == ScopeKind.WHOLE_PROJECT_WITHOUT_TESTS,
    )
