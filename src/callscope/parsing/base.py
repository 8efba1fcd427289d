"""Base parser interface."""

from abc import ABC, abstractmethod
from pathlib import Path

from callscope.parsing.models import ParseResult


class BaseParser(ABC):
    """Abstract base class for source parsers."""

    @abstractmethod
    def parse(self, file_path: Path, content: str) -> ParseResult:
        """Parse file content and extract symbols and references.

        Args:
            file_path: Path to the file, relative to the project root.
            content: File content as string.

        Returns:
            ParseResult with extracted symbols or error.
        """
        pass
