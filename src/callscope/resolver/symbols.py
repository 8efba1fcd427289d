"""Project-wide symbol table for resolving referenced names to definitions."""

from dataclasses import dataclass, field

from callscope.constants import SELF_RECEIVERS
from callscope.parsing.models import ParsedFile, ParsedSymbol, SymbolType


@dataclass
class SymbolTable:
    """Index of all code definitions for reference resolution."""

    # Maps simple name -> list of fully qualified IDs
    _by_name: dict[str, list[str]] = field(default_factory=dict)
    # Maps qualified name (e.g., "User.save") -> list of fully qualified IDs
    _by_qualified: dict[str, list[str]] = field(default_factory=dict)
    # Maps full ID -> symbol metadata
    _symbols: dict[str, ParsedSymbol] = field(default_factory=dict)
    # Maps full ID -> file path
    _file_paths: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_parsed_files(cls, files: list[ParsedFile]) -> "SymbolTable":
        """Build symbol table from parsed files."""
        table = cls()

        for file in files:
            for symbol in file.symbols:
                full_id = file.symbol_id(symbol)
                table._by_name.setdefault(symbol.name, []).append(full_id)
                table._by_qualified.setdefault(symbol.qualified_name, []).append(full_id)
                table._symbols[full_id] = symbol
                table._file_paths[full_id] = file.path

        return table

    def resolve(
        self,
        target: str,
        file_path: str | None = None,
        enclosing_class: str | None = None,
    ) -> list[str]:
        """Resolve referenced text to the IDs of the functions it may denote.

        Resolution order:
            1. self.name / cls.name against the enclosing class
            2. the exact qualified name ("helper", "User.save")
            3. the trailing "Class.method" pair of a dotted name
            4. the simple name; for dotted names only when it is unambiguous

        Candidates defined in the referencing file win over the rest.
        References to a class resolve to its __init__ when it has one.

        Args:
            target: Referenced text, e.g., "verify", "self.save", "models.User".
            file_path: File the reference occurs in.
            enclosing_class: Qualified name of the nearest enclosing class.

        Returns:
            IDs of matching functions and methods; empty when unresolved.
        """
        parts = target.split(".")
        candidates: list[str] = []

        if parts[0] in SELF_RECEIVERS and len(parts) == 2 and enclosing_class:
            candidates = self._by_qualified.get(f"{enclosing_class}.{parts[1]}", [])
            if candidates and file_path is not None:
                same_file = [c for c in candidates if self._file_paths[c] == file_path]
                candidates = same_file or candidates

        if not candidates:
            candidates = self._by_qualified.get(target, [])

        if not candidates and len(parts) > 2:
            candidates = self._by_qualified.get(".".join(parts[-2:]), [])

        if not candidates:
            by_name = self._by_name.get(parts[-1], [])
            is_self = parts[0] in SELF_RECEIVERS
            if len(parts) == 1 or is_self or len(self._callables(by_name)) == 1:
                candidates = by_name

        if file_path is not None and len(candidates) > 1:
            same_file = [c for c in candidates if self._file_paths[c] == file_path]
            candidates = same_file or candidates

        return self._callables(candidates)

    def _callables(self, ids: list[str]) -> list[str]:
        """Keep functions and methods, mapping classes to their __init__."""
        result: list[str] = []
        for symbol_id in ids:
            symbol = self._symbols[symbol_id]
            if symbol.symbol_type == SymbolType.CLASS:
                symbol_id = f"{symbol_id}.__init__"
                symbol = self._symbols.get(symbol_id)
                if symbol is None:
                    continue
            if symbol.is_callable and symbol_id not in result:
                result.append(symbol_id)
        return result
