"""Project file discovery."""

from callscope.repo.file_filter import DEFAULT_EXCLUDES, FileFilter, is_test_file

__all__ = [
    "DEFAULT_EXCLUDES",
    "FileFilter",
    "is_test_file",
]
