"""Python AST parser using the built-in ast module."""

import ast
from pathlib import Path

from callscope.constants import MODULE_SCOPE_NAME
from callscope.parsing.base import BaseParser
from callscope.parsing.models import (
    ParsedFile,
    ParsedSymbol,
    ParseResult,
    Reference,
    ReferenceType,
    SymbolType,
)


class PythonParser(BaseParser):
    """Parser for Python source files using the ast module."""

    def parse(self, file_path: Path, content: str) -> ParseResult:
        """Parse Python file content and extract symbols and references.

        Args:
            file_path: Path to the file, relative to the project root.
            content: File content as string.

        Returns:
            ParseResult with extracted symbols or error.
        """
        path = file_path.as_posix()
        try:
            tree = ast.parse(content, filename=path)
        except (SyntaxError, ValueError) as e:
            return ParseResult.failure(path, f"Syntax error: {e}")

        collector = _SymbolCollector(self, path)
        collector.visit(tree)

        parsed_file = ParsedFile(
            path=path,
            symbols=collector.symbols,
            references=collector.references,
        )

        return ParseResult.success(parsed_file)

    def parse_string(self, code: str, filename: str = "<string>") -> ParseResult:
        """Convenience method to parse a string of Python code.

        Args:
            code: Python source code as string.
            filename: Filename to use for symbol IDs and error messages.

        Returns:
            ParseResult with extracted symbols or error.
        """
        return self.parse(Path(filename), code)

    def _parse_function(
        self,
        node: ast.FunctionDef | ast.AsyncFunctionDef,
        parent: str | None,
        symbol_type: SymbolType,
    ) -> ParsedSymbol:
        """Parse a function or async function definition."""
        return ParsedSymbol(
            name=node.name,
            symbol_type=symbol_type,
            start_line=node.lineno,
            end_line=node.end_lineno or node.lineno,
            signature=self._build_signature(node),
            parent=parent,
        )

    def _parse_class(self, node: ast.ClassDef, parent: str | None) -> ParsedSymbol:
        """Parse a class definition (its methods are collected separately)."""
        return ParsedSymbol(
            name=node.name,
            symbol_type=SymbolType.CLASS,
            start_line=node.lineno,
            end_line=node.end_lineno or node.lineno,
            signature=self._build_class_signature(node),
            parent=parent,
        )

    def _get_attribute_name(self, node: ast.Attribute) -> str:
        """Get the full dotted name from an Attribute node.

        Args:
            node: The AST attribute node.

        Returns:
            Dotted name string (e.g., 'self.save'). Components that are not
            plain names (calls, subscripts) are dropped.
        """
        parts = []
        current: ast.expr = node

        while isinstance(current, ast.Attribute):
            parts.append(current.attr)
            current = current.value

        if isinstance(current, ast.Name):
            parts.append(current.id)

        return ".".join(reversed(parts))

    def _build_signature(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> str:
        """Build a human-readable function signature."""
        args = node.args
        params = []

        num_defaults = len(args.defaults)
        positional = args.posonlyargs + args.args
        first_default_idx = len(positional) - num_defaults

        for i, arg in enumerate(positional):
            param = self._format_arg(arg)
            if i >= first_default_idx:
                default = ast.unparse(args.defaults[i - first_default_idx])
                param = f"{param}={default}"
            params.append(param)
            if args.posonlyargs and i == len(args.posonlyargs) - 1:
                params.append("/")

        if args.vararg:
            params.append(f"*{self._format_arg(args.vararg)}")
        elif args.kwonlyargs:
            params.append("*")

        for arg, kw_default in zip(args.kwonlyargs, args.kw_defaults):
            param = self._format_arg(arg)
            if kw_default is not None:
                param = f"{param}={ast.unparse(kw_default)}"
            params.append(param)

        if args.kwarg:
            params.append(f"**{self._format_arg(args.kwarg)}")

        prefix = "async def" if isinstance(node, ast.AsyncFunctionDef) else "def"
        sig = f"{prefix} {node.name}({', '.join(params)})"

        if node.returns:
            sig += f" -> {ast.unparse(node.returns)}"

        return sig

    def _format_arg(self, arg: ast.arg) -> str:
        """Format a function argument with optional type annotation."""
        if arg.annotation:
            return f"{arg.arg}: {ast.unparse(arg.annotation)}"
        return arg.arg

    def _build_class_signature(self, node: ast.ClassDef) -> str:
        """Build a class signature including base classes."""
        bases = [ast.unparse(base) for base in node.bases]
        keywords = [f"{kw.arg}={ast.unparse(kw.value)}" for kw in node.keywords]

        all_parts = bases + keywords
        if all_parts:
            return f"class {node.name}({', '.join(all_parts)})"
        return f"class {node.name}"


class _SymbolCollector(ast.NodeVisitor):
    """Walks a module collecting definitions and the references made inside them.

    Keeps a stack of enclosing definitions so that every reference records
    the chain of functions it is nested in and the nearest enclosing class.
    """

    def __init__(self, parser: PythonParser, path: str):
        self.parser = parser
        self.path = path
        self.symbols: list[ParsedSymbol] = []
        self.references: list[Reference] = []
        # (kind, name) frames, outermost first; kind is "class" or "function"
        self._frames: list[tuple[str, str]] = []

    def _qualname(self) -> str | None:
        if not self._frames:
            return None
        return ".".join(name for _, name in self._frames)

    def _enclosing_functions(self) -> list[str]:
        """IDs of enclosing functions, innermost first."""
        ids = []
        for depth in range(len(self._frames), 0, -1):
            kind, _ = self._frames[depth - 1]
            if kind == "function":
                qualname = ".".join(name for _, name in self._frames[:depth])
                ids.append(f"{self.path}::{qualname}")
        return ids

    def _enclosing_class(self) -> str | None:
        for depth in range(len(self._frames), 0, -1):
            kind, _ = self._frames[depth - 1]
            if kind == "class":
                return ".".join(name for _, name in self._frames[:depth])
        return None

    def _add_reference(self, target: str, reference_type: ReferenceType, line: int) -> None:
        if not target:
            return
        enclosing = self._enclosing_functions()
        source = enclosing[0] if enclosing else f"{self.path}::{MODULE_SCOPE_NAME}"
        self.references.append(
            Reference(
                source=source,
                target=target,
                reference_type=reference_type,
                line=line,
                enclosing=enclosing,
                enclosing_class=self._enclosing_class(),
            )
        )

    def _visit_receiver(self, node: ast.expr) -> None:
        """Visit what an attribute chain hangs off, skipping plain names."""
        while isinstance(node, ast.Attribute):
            node = node.value
        if not isinstance(node, ast.Name):
            self.visit(node)

    def _visit_function(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        # Decorators and defaults are evaluated in the enclosing scope
        for decorator in node.decorator_list:
            self.visit(decorator)
        for default in node.args.defaults:
            self.visit(default)
        for kw_default in node.args.kw_defaults:
            if kw_default is not None:
                self.visit(kw_default)

        in_class = bool(self._frames) and self._frames[-1][0] == "class"
        symbol_type = SymbolType.METHOD if in_class else SymbolType.FUNCTION
        self.symbols.append(self.parser._parse_function(node, self._qualname(), symbol_type))

        self._frames.append(("function", node.name))
        for statement in node.body:
            self.visit(statement)
        self._frames.pop()

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        self._visit_function(node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        self._visit_function(node)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        for decorator in node.decorator_list:
            self.visit(decorator)
        for keyword in node.keywords:
            self.visit(keyword.value)

        self.symbols.append(self.parser._parse_class(node, self._qualname()))

        self._frames.append(("class", node.name))
        for statement in node.body:
            self.visit(statement)
        self._frames.pop()

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        if isinstance(func, ast.Name):
            self._add_reference(func.id, ReferenceType.CALLS, node.lineno)
        elif isinstance(func, ast.Attribute):
            target = self.parser._get_attribute_name(func)
            self._add_reference(target, ReferenceType.CALLS, node.lineno)
            self._visit_receiver(func.value)
        else:
            self.visit(func)

        for arg in node.args:
            self.visit(arg)
        for keyword in node.keywords:
            self.visit(keyword.value)

    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, ast.Load):
            self._add_reference(node.id, ReferenceType.REFERENCES, node.lineno)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        if isinstance(node.ctx, ast.Load):
            target = self.parser._get_attribute_name(node)
            self._add_reference(target, ReferenceType.REFERENCES, node.lineno)
        self._visit_receiver(node.value)
