"""
Chat endpoint.
"""

from fastapi import APIRouter, Depends
from loguru import logger

from concierge.core.dependencies import get_orchestrator
from concierge.schemas.chat import ChatRequest, ChatResponse, ErrorResponse
from concierge.services.orchestrator import ConversationOrchestrator

router = APIRouter()


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(
    payload: ChatRequest,
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
):
    """
    Send a message to the shopping assistant.

    The caller owns the conversation: prior turns travel in `history` on
    every request and nothing is stored server-side.
    """
    logger.info(f"Chat request with {len(payload.history)} history turns")
    result = await orchestrator.respond(payload.message, payload.history)
    if result.tool_call:
        logger.info(f"Answered after tool call {result.tool_call.name}")
    return ChatResponse(text=result.text)
