"""Configuration constants.

Re-exports all constants for convenient importing:
    from callscope.constants import MAX_NESTING_DEPTH, PLAIN_GRAPH_MARKER
"""

from callscope.constants.analysis import *  # noqa: F403
from callscope.constants.files import *  # noqa: F403
from callscope.constants.layout import *  # noqa: F403
