"""Agent endpoint.

``POST /api/agent1``
    Body ``{"query": str}``.  Runs the enhance -> retrieve -> generate
    workflow and returns ``{"answer": str}``.  An empty or whitespace-only
    query is rejected with HTTP 400 ``VALIDATION_ERROR``; workflow failures
    surface as HTTP 500 ``INTERNAL_SERVER_ERROR`` through the application's
    exception handler.
"""

from __future__ import annotations

from typing import Annotated, Union

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from rag_service.agent.workflow import AgentWorkflow
from rag_service.api.dependencies import get_workflow
from rag_service.core.schemas.agent import AgentRequest, AgentResponse, ErrorResponse

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["agent"])

EMPTY_QUERY_MESSAGE = "Query cannot be empty or only whitespace"


@router.post(
    "/agent1",
    response_model=AgentResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def agent_handler(
    payload: AgentRequest,
    workflow: Annotated[AgentWorkflow, Depends(get_workflow)],
) -> Union[AgentResponse, JSONResponse]:
    """Answer a natural-language query from freshly scraped web pages."""
    logger.info("agent_request", query=payload.query)

    if not payload.is_valid():
        logger.warning("agent_request_rejected", reason="empty_query")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error="VALIDATION_ERROR", message=EMPTY_QUERY_MESSAGE).model_dump(),
        )

    context = await workflow.run(payload.query)
    logger.info(
        "agent_response",
        enhanced_query=context.enhanced_query,
        sources=len(context.search_results),
    )
    return AgentResponse(answer=context.answer or "")
