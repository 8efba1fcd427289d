"""Data models for code parsing."""

from dataclasses import dataclass, field
from enum import Enum


class ReferenceType(Enum):
    """Types of references from one code entity to another."""

    CALLS = "calls"  # f(...), obj.f(...)
    REFERENCES = "references"  # f passed as a value, obj.f without a call


class SymbolType(Enum):
    """Types of code symbols that can be extracted."""

    FUNCTION = "function"
    METHOD = "method"
    CLASS = "class"


@dataclass
class ParsedSymbol:
    """A parsed code symbol (function, method or class)."""

    name: str
    symbol_type: SymbolType
    start_line: int
    end_line: int
    signature: str | None = None
    parent: str | None = None  # Dotted name of the enclosing class/function

    @property
    def qualified_name(self) -> str:
        """Name qualified by its enclosing classes and functions."""
        if self.parent:
            return f"{self.parent}.{self.name}"
        return self.name

    @property
    def is_callable(self) -> bool:
        """True for functions and methods."""
        return self.symbol_type in (SymbolType.FUNCTION, SymbolType.METHOD)


@dataclass
class Reference:
    """A reference from the code at one location to a (not yet resolved) name."""

    source: str  # e.g., "auth/handler.py::login" or "auth/handler.py::<module>"
    target: str  # Referenced text, e.g., "verify" or "self.save"
    reference_type: ReferenceType
    line: int
    # IDs of the enclosing functions, innermost first. Empty at module level.
    enclosing: list[str] = field(default_factory=list)
    # Qualified name of the nearest enclosing class, used for self/cls receivers.
    enclosing_class: str | None = None


@dataclass
class ParsedFile:
    """Result of parsing a single file."""

    path: str
    symbols: list[ParsedSymbol]
    references: list[Reference] = field(default_factory=list)

    def symbol_id(self, symbol: ParsedSymbol) -> str:
        """Create the project-wide ID for a symbol defined in this file."""
        return f"{self.path}::{symbol.qualified_name}"


@dataclass
class ParseResult:
    """Result of a parse operation (success or failure)."""

    ok: bool
    file: ParsedFile | None
    error: str | None
    path: str | None = None

    @classmethod
    def success(cls, parsed_file: ParsedFile) -> "ParseResult":
        """Create a successful parse result."""
        return cls(ok=True, file=parsed_file, error=None, path=parsed_file.path)

    @classmethod
    def failure(cls, path: str, error: str) -> "ParseResult":
        """Create a failed parse result."""
        return cls(ok=False, file=None, error=error, path=path)
