from __future__ import annotations

import asyncio

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from loguru import logger
from sse_starlette.sse import EventSourceResponse

from app.agents.orchestrator import AnswerOrchestrator, new_request_id
from app.config import settings
from app.models.schemas import ErrorResponse, SearchRequest
from app.services import logger as log_service
from app.services.errors import ConfigurationError
from app.services.event_channel import EventChannel

router = APIRouter(prefix="/api", tags=["search"])


@router.post(
    "/search",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def search(request: SearchRequest):
    """Stream search progress, sources, the cited answer and follow-ups as SSE."""
    request_id = new_request_id()
    query = request.resolve_query()
    if not query:
        return JSONResponse({"error": "Query is required"}, status_code=400)

    try:
        settings.require_configured()
    except ConfigurationError as exc:
        return JSONResponse({"error": exc.message}, status_code=500)

    try:
        orchestrator = AnswerOrchestrator(request_id=request_id)
    except Exception as exc:
        logger.error(f"Route error | request_id={request_id} error={exc}")
        return JSONResponse(
            {"error": "Search failed", "message": str(exc) or "Unknown error"},
            status_code=500,
        )

    channel = EventChannel(transient_backlog=settings.transient_event_backlog)
    log_service.log_event(
        event_type="search_started",
        message="Search started",
        request_id=request_id,
        query=query[:100],
        turns=len(request.messages),
    )

    async def event_generator():
        task = asyncio.create_task(orchestrator.run(query, channel, request.messages))
        try:
            async for event in channel:
                yield event.to_sse()
        finally:
            if not task.done():
                # Client went away before the pipeline finished.
                task.cancel()

    return EventSourceResponse(event_generator())
