"""Resolver interface the call graph engine depends on."""

from abc import ABC, abstractmethod
from collections.abc import Collection
from dataclasses import dataclass

from callscope.constants import MAX_NESTING_DEPTH
from callscope.graph.models import Method
from callscope.parsing.models import ReferenceType
from callscope.scope import SearchScope


@dataclass(frozen=True)
class ReferenceSite:
    """A location where a method is mentioned."""

    file_path: str
    line: int
    target: str  # Referenced text, e.g., "self.save"
    reference_type: ReferenceType
    # Enclosing methods, innermost first
    enclosing: tuple[Method, ...] = ()


def containing_method(
    site: ReferenceSite,
    known_methods: Collection[Method] | None = None,
    max_depth: int = MAX_NESTING_DEPTH,
) -> Method | None:
    """Find the nearest method enclosing a reference site.

    Walks outward through the site's enclosing methods and returns the first
    one in known_methods (any method when known_methods is None). The walk
    visits at most max_depth ancestors.

    Args:
        site: The reference site.
        known_methods: Methods eligible as callers.
        max_depth: Maximum number of enclosing methods to visit.

    Returns:
        The containing method, or None when the site is not nested in any
        eligible method (e.g., module-level code).
    """
    for depth, method in enumerate(site.enclosing):
        if depth >= max_depth:
            break
        if known_methods is None or method in known_methods:
            return method
    return None


class MethodResolver(ABC):
    """Source of methods and references for call graph construction."""

    max_nesting_depth: int = MAX_NESTING_DEPTH

    @abstractmethod
    def find_all_methods(self, scope: SearchScope) -> set[Method]:
        """All methods defined inside the scope."""
        pass

    @abstractmethod
    def find_references(self, method: Method, scope: SearchScope) -> list[ReferenceSite]:
        """All sites inside the scope where the method is used."""
        pass

    @abstractmethod
    def callees_of(self, method: Method) -> set[Method]:
        """Methods used directly by the method's own body."""
        pass

    @abstractmethod
    def get_method(self, method_id: str) -> Method | None:
        """Look up a method by ID."""
        pass

    def containing_method(
        self,
        site: ReferenceSite,
        known_methods: Collection[Method] | None = None,
    ) -> Method | None:
        """Nearest enclosing method of a site that belongs to known_methods."""
        return containing_method(site, known_methods, self.max_nesting_depth)
