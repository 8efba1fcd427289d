"""Method and reference resolution."""

from callscope.resolver.base import MethodResolver, ReferenceSite, containing_method
from callscope.resolver.python_resolver import ProjectIndex, PythonResolver
from callscope.resolver.symbols import SymbolTable

__all__ = [
    "MethodResolver",
    "ReferenceSite",
    "containing_method",
    "ProjectIndex",
    "PythonResolver",
    "SymbolTable",
]
