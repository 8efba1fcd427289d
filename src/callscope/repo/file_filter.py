"""Source file enumeration with default excludes and ignore file support."""

import fnmatch
import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from callscope.config import get_settings_or_defaults
from callscope.constants import PYTHON_EXTENSIONS

logger = logging.getLogger(__name__)


DEFAULT_EXCLUDES = [
    # Hidden files and directories (dotfiles/dotdirs)
    # This catches .git, .venv, .tox, .mypy_cache, .pytest_cache, etc.
    ".*",
    # Environments and caches
    "venv",
    "env",
    "site-packages",
    "__pycache__",
    "*.pyc",
    "node_modules",
    # Build outputs
    "build",
    "dist",
    "*.egg-info",
]

# Patterns that indicate test files
TEST_PATTERNS = [
    r"^tests?/",  # tests/ or test/ directory
    r"/tests?/",  # tests/ or test/ subdirectory
    r"(^|/)test_[^/]+\.pyi?$",  # test_*.py files
    r"_test\.pyi?$",  # *_test.py files
    r"(^|/)conftest\.py$",  # pytest fixtures
]


def is_test_file(file_path: str) -> bool:
    """Check if a relative file path represents a test file."""
    for pattern in TEST_PATTERNS:
        if re.search(pattern, file_path):
            return True
    return False


class FileFilter:
    """Filter project files based on patterns, extensions and size limits."""

    def __init__(
        self,
        repo_path: Path,
        max_file_size_kb: Optional[int] = None,
        extra_excludes: list[str] | None = None,
        ignore_path: Optional[Path] = None,
        extensions: Iterable[str] | None = None,
    ):
        """Initialize file filter.

        Args:
            repo_path: Path to project root.
            max_file_size_kb: Maximum file size in KB. If None, uses settings.
            extra_excludes: Additional exclude patterns.
            ignore_path: Path to ignore file. If None, uses the project root
                with the ignore filename from settings.
            extensions: File extensions to keep. If None, Python sources
                (and stubs, unless disabled in settings).
        """
        self.repo_path = repo_path

        settings = get_settings_or_defaults()
        if max_file_size_kb is None:
            max_file_size_kb = settings.files.max_file_size_kb
        self.max_file_size_bytes = max_file_size_kb * 1024
        self.binary_check_bytes = settings.files.binary_check_bytes
        self.minified_threshold = settings.files.minified_line_length

        if extensions is None:
            extensions = [
                ext
                for ext in PYTHON_EXTENSIONS
                if ext != ".pyi" or settings.analysis.include_stubs
            ]
        self.extensions = {ext.lower() for ext in extensions}

        # Build exclude patterns
        self.exclude_patterns = list(DEFAULT_EXCLUDES)
        if extra_excludes:
            self.exclude_patterns.extend(extra_excludes)

        if ignore_path is None:
            ignore_path = repo_path / settings.paths.ignore_file

        if ignore_path.exists():
            for line in ignore_path.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    self.exclude_patterns.append(line)

    def _is_excluded(self, path: str) -> bool:
        """Check if path matches any exclude pattern.

        Args:
            path: Relative file path.

        Returns:
            True if path should be excluded.
        """
        parts = path.split("/")

        for pattern in self.exclude_patterns:
            # Trailing slash means directory: match any path component
            if pattern.endswith("/"):
                dir_pattern = pattern.rstrip("/")
                for part in parts:
                    if fnmatch.fnmatch(part, dir_pattern):
                        return True
            # Patterns containing "/" match as path prefixes
            elif "/" in pattern:
                if path.startswith(pattern + "/") or path == pattern:
                    return True
                if fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(path, pattern + "/*"):
                    return True
            else:
                for part in parts:
                    if fnmatch.fnmatch(part, pattern):
                        return True
                if fnmatch.fnmatch(path, pattern):
                    return True

        return False

    def _is_binary(self, file_path: Path) -> bool:
        """Check if file appears to be binary."""
        try:
            with open(file_path, "rb") as f:
                chunk = f.read(self.binary_check_bytes)
                return b"\x00" in chunk
        except OSError:
            return True

    def _is_minified(self, file_path: Path) -> bool:
        """Check if file appears to be generated based on line length.

        Samples the first 20 lines and checks whether the average length
        exceeds the configured threshold.
        """
        try:
            content = file_path.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            return False
        lines = content.split("\n")[:20]
        if not lines:
            return False
        avg_length = sum(len(line) for line in lines) / len(lines)
        return avg_length > self.minified_threshold

    def get_files(self, roots: Iterable[Path] | None = None) -> list[str]:
        """Get source files to analyze.

        Args:
            roots: Directories (or single files) to enumerate. Defaults to
                the project root. Roots outside the project are ignored.

        Returns:
            Sorted list of file paths relative to the project root, using
            forward slashes.
        """
        if roots is None:
            roots = [self.repo_path]

        files: set[str] = set()
        base = self.repo_path.resolve()

        for root in roots:
            root = Path(root).resolve()
            try:
                root.relative_to(base)
            except ValueError:
                logger.warning(f"Skipping root outside project: {root}")
                continue

            candidates = [root] if root.is_file() else root.rglob("*")
            for file_path in candidates:
                if not file_path.is_file():
                    continue
                if file_path.suffix.lower() not in self.extensions:
                    continue

                relative = file_path.relative_to(base).as_posix()

                if self._is_excluded(relative):
                    continue

                try:
                    if file_path.stat().st_size > self.max_file_size_bytes:
                        logger.debug(f"Skipping large file: {relative}")
                        continue
                except OSError:
                    continue

                if self._is_binary(file_path):
                    continue

                if self._is_minified(file_path):
                    logger.debug(f"Skipping generated file: {relative}")
                    continue

                files.add(relative)

        return sorted(files)
