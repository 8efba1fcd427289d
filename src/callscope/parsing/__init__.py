"""Code parsing utilities."""

from callscope.parsing.models import (
    ParsedSymbol,
    SymbolType,
    ParsedFile,
    ParseResult,
    Reference,
    ReferenceType,
)
from callscope.parsing.base import BaseParser
from callscope.parsing.python_parser import PythonParser

__all__ = [
    "ParsedSymbol",
    "SymbolType",
    "ParsedFile",
    "ParseResult",
    "Reference",
    "ReferenceType",
    "BaseParser",
    "PythonParser",
]
