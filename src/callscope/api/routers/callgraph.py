"""Call graph endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from callscope.api.deps import get_runner
from callscope.api.schemas import (
    CallGraphRequest,
    CallGraphResponse,
    FocusRequest,
    GraphEdge,
    GraphNode,
    ModulesResponse,
)
from callscope.runner import CallGraphRunner, RunRequest, RunResult, RunStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/callgraph", tags=["callgraph"])


async def _execute(runner: CallGraphRunner, request: RunRequest) -> CallGraphResponse:
    """Start a run and wait for it off the event loop."""
    handle = runner.start(request)
    result = await asyncio.to_thread(handle.result)
    return _to_response(result)


def _to_response(result: RunResult | None) -> CallGraphResponse:
    if result is None or result.status == RunStatus.CANCELLED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Run was superseded by a newer run",
        )
    if result.status == RunStatus.FAILED:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.message or "Call graph run failed",
        )

    data = result.graph.to_dict() if result.graph is not None else {"nodes": [], "edges": []}
    return CallGraphResponse(
        status=result.status.value,
        source_label=result.source_label,
        message=result.message,
        method_count=result.method_count,
        caller_count=result.caller_count,
        nodes=[GraphNode(**node) for node in data["nodes"]],
        edges=[GraphEdge(**edge) for edge in data["edges"]],
    )


@router.get("/modules", response_model=ModulesResponse)
async def list_modules(runner: CallGraphRunner = Depends(get_runner)) -> ModulesResponse:
    """List the workspace's modules."""
    modules = await asyncio.to_thread(runner.list_modules)
    return ModulesResponse(modules=modules)


@router.post("", response_model=CallGraphResponse)
async def build_call_graph(
    request: CallGraphRequest,
    runner: CallGraphRunner = Depends(get_runner),
) -> CallGraphResponse:
    """
    Graph every method in a scope with its direct callers.

    Returns 409 if a newer run superseded this one, 500 if the run failed.
    """
    return await _execute(runner, RunRequest(selection=request.selection))


@router.post("/focus", response_model=CallGraphResponse)
async def build_focused_call_graph(
    request: FocusRequest,
    runner: CallGraphRunner = Depends(get_runner),
) -> CallGraphResponse:
    """
    Graph the callers and/or callees reachable from one method.

    Returns 409 if a newer run superseded this one, 500 if the run failed.
    """
    logger.info(f"Focused run on {request.method_id} ({request.direction.value})")
    return await _execute(
        runner,
        RunRequest(
            selection=request.selection,
            focus_method_id=request.method_id,
            direction=request.direction,
        ),
    )
