"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field, field_validator

from callscope.graph.traversal import TraversalDirection
from callscope.scope import ScopeSelection


class CallGraphRequest(BaseModel):
    """Request to graph a whole scope."""

    scope: str = Field(
        "whole-project-with-tests",
        description=(
            "whole-project-with-tests, whole-project-without-tests, "
            "module:<name> or directory:<path>"
        ),
    )

    @field_validator("scope")
    @classmethod
    def validate_scope(cls, value: str) -> str:
        ScopeSelection.parse(value)
        return value

    @property
    def selection(self) -> ScopeSelection:
        return ScopeSelection.parse(self.scope)


class FocusRequest(CallGraphRequest):
    """Request to graph what is reachable from one method."""

    method_id: str = Field(..., min_length=1, description="e.g. pkg/mod.py::Class.method")
    direction: TraversalDirection = TraversalDirection.UPSTREAM_DOWNSTREAM


class GraphNode(BaseModel):
    """A node with its normalized position."""

    id: str
    method_id: str
    name: str
    qualified_name: str
    file_path: str
    line_start: int
    line_end: int
    signature: str | None = None
    x: float | None = None
    y: float | None = None


class GraphEdge(BaseModel):
    """A "source calls target" edge."""

    id: str
    source: str
    target: str


class CallGraphResponse(BaseModel):
    """Outcome of a completed or empty run."""

    status: str
    source_label: str
    message: str | None = None
    method_count: int = 0
    caller_count: int = 0
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)


class ModulesResponse(BaseModel):
    """Modules available for module scope."""

    modules: list[str]
