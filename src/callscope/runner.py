"""Analysis runs: scope -> callers map -> graph -> layout.

A CallGraphRunner owns at most one current run. Starting a run cancels the
previous one without waiting for it; each run ends with exactly one
immutable RunResult. This module is the run boundary: failures from the
resolver and layout layers are caught here and reported as a RunStatus.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from callscope.cancellation import CancellationToken, CancelledRunError, check_cancelled
from callscope.config import Config, get_settings_or_defaults
from callscope.graph.builder import build_graph
from callscope.graph.layout import (
    GraphvizLayoutEngine,
    LayoutEngine,
    MalformedLayoutOutputError,
    layout_graph,
)
from callscope.graph.models import CallersMap, CallGraph
from callscope.graph.traversal import (
    TraversalDirection,
    count_callers,
    get_callers_map_for_method,
    get_callers_map_for_scope,
)
from callscope.repo.file_filter import FileFilter
from callscope.resolver.base import MethodResolver
from callscope.resolver.python_resolver import PythonResolver
from callscope.scope import (
    NoActiveScopeError,
    ScopeSelection,
    discover_modules,
    get_search_scope,
)

logger = logging.getLogger(__name__)


class UnknownMethodError(Exception):
    """Raised when a focused run names a method the resolver does not know."""

    pass


class RunStatus(Enum):
    """Outcome of a run."""

    COMPLETED = "completed"
    EMPTY = "empty"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class RunRequest:
    """What to analyze.

    Without a focus method the whole selected scope is graphed; with one,
    only what is reachable from it in the given direction.
    """

    selection: ScopeSelection = field(default_factory=ScopeSelection)
    focus_method_id: str | None = None
    direction: TraversalDirection = TraversalDirection.UPSTREAM_DOWNSTREAM

    @property
    def is_focused(self) -> bool:
        return self.focus_method_id is not None


@dataclass(frozen=True)
class RunResult:
    """Final outcome of one run."""

    status: RunStatus
    source_label: str
    graph: CallGraph | None = None
    message: str | None = None
    method_count: int = 0
    caller_count: int = 0


class RunHandle:
    """A started run: its cancellation token and, eventually, its result."""

    def __init__(self, request: RunRequest):
        self.request = request
        self.token = CancellationToken()
        self._done = threading.Event()
        self._result: RunResult | None = None
        self._thread: threading.Thread | None = None

    def cancel(self) -> None:
        """Request cancellation. Does not wait for the run to stop."""
        self.token.cancel()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def result(self, timeout: float | None = None) -> RunResult | None:
        """Wait for the run to finish.

        Returns:
            The run's result, or None if it is still running after timeout.
        """
        self._done.wait(timeout)
        return self._result

    def _finish(self, result: RunResult) -> None:
        self._result = result
        self._done.set()


class CallGraphRunner:
    """Runs call graph analyses over one project."""

    def __init__(
        self,
        project_root: Path,
        resolver: MethodResolver | None = None,
        layout_engine: LayoutEngine | None = None,
        settings: Config | None = None,
    ):
        self.project_root = project_root
        self.settings = settings or get_settings_or_defaults()
        self.file_filter = FileFilter(
            project_root,
            max_file_size_kb=self.settings.files.max_file_size_kb,
            ignore_path=project_root / self.settings.paths.ignore_file,
        )
        # Shared by every run when given; otherwise each run parses afresh
        self.resolver = resolver
        self.layout_engine = layout_engine or GraphvizLayoutEngine(self.settings.layout.prog)
        self._lock = threading.Lock()
        self._current: RunHandle | None = None

    @property
    def current(self) -> RunHandle | None:
        """The most recently started run."""
        return self._current

    def list_modules(self) -> list[str]:
        """Names of the project's modules, for module scope selection."""
        return [module.name for module in discover_modules(self.project_root, self.file_filter)]

    def start(
        self,
        request: RunRequest,
        on_result: Callable[[RunResult], None] | None = None,
        background: bool = True,
    ) -> RunHandle:
        """Start a run, cancelling the one in progress.

        Args:
            request: What to analyze.
            on_result: Called once with the result unless the run is
                cancelled.
            background: Run on a worker thread. When False the run
                completes before start() returns.

        Returns:
            Handle of the new run.
        """
        handle = RunHandle(request)
        with self._lock:
            previous = self._current
            self._current = handle
            if previous is not None and not previous.done:
                logger.info("Cancelling previous run")
                previous.cancel()

        def work() -> None:
            result = self.run(request, handle.token)
            with self._lock:
                # A run cancelled after its last check still reports nothing
                if handle.token.is_cancelled and result.status != RunStatus.CANCELLED:
                    logger.info("Run superseded, discarding its result")
                    result = RunResult(status=RunStatus.CANCELLED, source_label=result.source_label)
                handle._finish(result)
            if on_result is not None and result.status != RunStatus.CANCELLED:
                on_result(result)

        if background:
            handle._thread = threading.Thread(target=work, name="callscope-run", daemon=True)
            handle._thread.start()
        else:
            work()
        return handle

    def run(self, request: RunRequest, token: CancellationToken | None = None) -> RunResult:
        """Execute a run on the calling thread.

        Never raises: every failure becomes a RunResult with a status.
        """
        label = self._source_label(request)
        logger.info(label)

        try:
            callers_map = self._gather(request, token)
            check_cancelled(token)

            logger.info("Building graph")
            graph = build_graph(callers_map)
            check_cancelled(token)

            if not graph.is_empty():
                logger.info("Getting layout from Graphviz")
                layout_graph(
                    graph,
                    engine=self.layout_engine,
                    grid_scale_x=self.settings.layout.grid_scale_x,
                    grid_scale_y=self.settings.layout.grid_scale_y,
                    rank_dir=self.settings.layout.rank_dir,
                    cancel_token=token,
                )
            check_cancelled(token)
        except NoActiveScopeError as e:
            logger.info(str(e))
            return RunResult(
                status=RunStatus.EMPTY, source_label=label, graph=CallGraph(), message=str(e)
            )
        except CancelledRunError:
            logger.info("Run cancelled")
            return RunResult(status=RunStatus.CANCELLED, source_label=label)
        except UnknownMethodError as e:
            logger.warning(str(e))
            return RunResult(status=RunStatus.FAILED, source_label=label, message=str(e))
        except MalformedLayoutOutputError as e:
            logger.error(f"Unreadable layout output: {e}")
            return RunResult(
                status=RunStatus.FAILED,
                source_label=label,
                message=f"Could not read the layout output: {e}",
            )
        except Exception as e:
            logger.exception("Call graph run failed")
            return RunResult(
                status=RunStatus.FAILED,
                source_label=label,
                message=f"Call graph run failed: {e}",
            )

        logger.debug(f"Nodes: {sorted(node.method.id for node in graph.get_nodes())}")
        logger.debug(f"Edges: {sorted(edge.id for edge in graph.get_edges())}")

        return RunResult(
            status=RunStatus.EMPTY if graph.is_empty() else RunStatus.COMPLETED,
            source_label=label,
            graph=graph,
            method_count=len(callers_map),
            caller_count=count_callers(callers_map),
        )

    def _gather(self, request: RunRequest, token: CancellationToken | None) -> CallersMap:
        scope = get_search_scope(self.project_root, request.selection, self.file_filter)
        if scope.is_empty():
            raise NoActiveScopeError(f"No source roots for {request.selection.label}")
        check_cancelled(token)

        resolver = self._make_resolver()
        max_workers = self.settings.analysis.max_workers
        if not request.is_focused:
            return get_callers_map_for_scope(resolver, scope, token, max_workers)

        method = resolver.get_method(request.focus_method_id)
        if method is None:
            raise UnknownMethodError(f"Unknown method: {request.focus_method_id}")
        return get_callers_map_for_method(
            method, request.direction, resolver, scope, token, max_workers
        )

    def _make_resolver(self) -> MethodResolver:
        if self.resolver is not None:
            return self.resolver
        return PythonResolver(
            self.project_root,
            file_filter=self.file_filter,
            max_nesting_depth=self.settings.analysis.max_nesting_depth,
        )

    def _source_label(self, request: RunRequest) -> str:
        if request.is_focused:
            return (
                f"Source: {request.direction.label} of {request.focus_method_id} "
                f"({request.selection.label})"
            )
        return f"Source: {request.selection.label}"
