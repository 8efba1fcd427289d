"""Method resolver for Python projects, built on the ast-based parser."""

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path

from callscope.config import get_settings_or_defaults
from callscope.graph.models import Method
from callscope.parsing.models import ParsedFile
from callscope.parsing.python_parser import PythonParser
from callscope.repo.file_filter import FileFilter
from callscope.resolver.base import MethodResolver, ReferenceSite
from callscope.resolver.symbols import SymbolTable
from callscope.scope import SearchScope

logger = logging.getLogger(__name__)


@dataclass
class ProjectIndex:
    """Methods and resolved references of every source file in a project."""

    files: list[str] = field(default_factory=list)
    # Maps method ID -> method
    methods: dict[str, Method] = field(default_factory=dict)
    # Maps method ID -> sites referencing it
    references: dict[str, list[ReferenceSite]] = field(default_factory=dict)
    # Maps method ID -> IDs of methods its own body references
    callees: dict[str, set[str]] = field(default_factory=dict)


class PythonResolver(MethodResolver):
    """Resolves methods and references by parsing a project's Python files.

    The project is parsed once, on first use, and the index is shared by
    all queries. Create a new resolver (or call refresh()) to pick up
    source changes.
    """

    def __init__(
        self,
        project_root: Path,
        file_filter: FileFilter | None = None,
        parser: PythonParser | None = None,
        max_nesting_depth: int | None = None,
    ):
        self.project_root = project_root
        self._file_filter = file_filter or FileFilter(project_root)
        self._parser = parser or PythonParser()
        if max_nesting_depth is None:
            max_nesting_depth = get_settings_or_defaults().analysis.max_nesting_depth
        self.max_nesting_depth = max_nesting_depth
        self._lock = threading.Lock()
        self._index: ProjectIndex | None = None

    @property
    def index(self) -> ProjectIndex:
        """The project index, built on first access."""
        with self._lock:
            if self._index is None:
                self._index = self._build_index()
            return self._index

    def refresh(self) -> None:
        """Discard the index so the next query re-parses the project."""
        with self._lock:
            self._index = None

    def find_all_methods(self, scope: SearchScope) -> set[Method]:
        return {m for m in self.index.methods.values() if scope.contains(m.file_path)}

    def find_references(self, method: Method, scope: SearchScope) -> list[ReferenceSite]:
        sites = self.index.references.get(method.id, [])
        return [site for site in sites if scope.contains(site.file_path)]

    def callees_of(self, method: Method) -> set[Method]:
        index = self.index
        return {index.methods[callee_id] for callee_id in index.callees.get(method.id, ())}

    def get_method(self, method_id: str) -> Method | None:
        return self.index.methods.get(method_id)

    def _parse_files(self) -> list[ParsedFile]:
        parsed_files = []
        for relative in self._file_filter.get_files():
            try:
                content = (self.project_root / relative).read_text(
                    encoding="utf-8", errors="replace"
                )
            except OSError as e:
                logger.warning(f"Could not read {relative}: {e}")
                continue

            result = self._parser.parse(Path(relative), content)
            if not result.ok or result.file is None:
                logger.warning(f"Skipping {relative}: {result.error}")
                continue
            parsed_files.append(result.file)
        return parsed_files

    def _build_index(self) -> ProjectIndex:
        parsed_files = self._parse_files()
        symbol_table = SymbolTable.from_parsed_files(parsed_files)

        methods: dict[str, Method] = {}
        for file in parsed_files:
            for symbol in file.symbols:
                if not symbol.is_callable:
                    continue
                method_id = file.symbol_id(symbol)
                methods[method_id] = Method(
                    id=method_id,
                    name=symbol.name,
                    file_path=file.path,
                    line_start=symbol.start_line,
                    line_end=symbol.end_line,
                    parent=symbol.parent,
                    signature=symbol.signature,
                )

        references: dict[str, list[ReferenceSite]] = defaultdict(list)
        callees: dict[str, set[str]] = defaultdict(set)
        unresolved = 0

        for file in parsed_files:
            for ref in file.references:
                target_ids = symbol_table.resolve(ref.target, file.path, ref.enclosing_class)
                if not target_ids:
                    unresolved += 1
                    continue

                site = ReferenceSite(
                    file_path=file.path,
                    line=ref.line,
                    target=ref.target,
                    reference_type=ref.reference_type,
                    enclosing=tuple(methods[i] for i in ref.enclosing if i in methods),
                )
                for target_id in target_ids:
                    references[target_id].append(site)
                    if ref.enclosing:
                        callees[ref.enclosing[0]].add(target_id)

        logger.info(
            f"Indexed {len(parsed_files)} files: {len(methods)} methods, "
            f"{sum(len(s) for s in references.values())} references"
        )
        logger.debug(f"{unresolved} names did not resolve to a project method")

        return ProjectIndex(
            files=[file.path for file in parsed_files],
            methods=methods,
            references=dict(references),
            callees=dict(callees),
        )
