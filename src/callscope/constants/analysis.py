"""Call graph analysis constants."""

# =============================================================================
# Reference Resolution
# =============================================================================
# Upper bound on how many enclosing functions are walked when looking for the
# method that contains a reference site. Real code rarely nests more than a
# handful of functions deep; the bound guarantees the walk terminates.

MAX_NESTING_DEPTH = 32

# Receiver names that refer to the enclosing class inside a method body.
SELF_RECEIVERS = frozenset({"self", "cls"})

# Name of the pseudo-symbol used as the source of module-level references.
MODULE_SCOPE_NAME = "<module>"

# =============================================================================
# Concurrency
# =============================================================================
# Number of reference lookups run in parallel within one expansion level.
# A value of 1 runs every lookup on the calling thread.

MAX_WORKERS = 4
