"""Source file discovery constants.

These settings control which files take part in call graph analysis. Only
Python sources are indexed; everything else in the project is ignored.
"""

# =============================================================================
# Source Files
# =============================================================================
# Extensions the Python resolver parses. Stub files are included so that
# methods declared only in stubs still show up as call targets.

PYTHON_EXTENSIONS = (".py", ".pyi")

# =============================================================================
# Size Limits
# =============================================================================
# Files larger than MAX_FILE_SIZE_KB are skipped. Huge generated modules
# dominate parse time while contributing little to a readable call graph.

MAX_FILE_SIZE_KB = 500

# =============================================================================
# Binary / Minified Detection
# =============================================================================
# The first BINARY_CHECK_BYTES of a file are read and checked for null
# characters. Files whose average line length exceeds MINIFIED_AVG_LINE_LENGTH
# are treated as generated.

BINARY_CHECK_BYTES = 1024
MINIFIED_AVG_LINE_LENGTH = 500

# =============================================================================
# Ignore File
# =============================================================================
# Optional file in the project root listing extra exclude patterns, one per
# line, using the same syntax as the default excludes.

IGNORE_FILE_NAME = ".callscopeignore"
