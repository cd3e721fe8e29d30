"""AI companion chat routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ...models.auth import MessageResponse
from ...models.chat import (
    ChatHistory,
    ChatRequest,
    ChatResponse,
    ConversationStats,
    PersonalInsights,
)
from ...services.chat import ChatService
from ...services.errors import ServiceError
from ...services.llm import LLMClient, get_llm_client
from ...services.vector_service import VectorService, get_vector_service
from ..middleware import AuthContext, get_auth_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


def get_chat_service(
    vectors: VectorService = Depends(get_vector_service),
    llm: LLMClient = Depends(get_llm_client),
) -> ChatService:
    return ChatService(vectors, llm)


@router.post("/message", response_model=ChatResponse)
async def send_message(
    body: ChatRequest,
    auth: AuthContext = Depends(get_auth_context),
    chat: ChatService = Depends(get_chat_service),
):
    """Reply to a message using related diary entries as context."""
    try:
        return await chat.send_message(auth.user_id, body.message)
    except (HTTPException, ServiceError):
        raise
    except Exception as e:
        logger.exception(f"Chat message failed for user {auth.user_id}")
        raise HTTPException(status_code=500, detail=f"Failed to process chat message: {str(e)}")


@router.get("/history", response_model=ChatHistory)
async def history(
    limit: int = Query(50, ge=1, le=100),
    auth: AuthContext = Depends(get_auth_context),
    chat: ChatService = Depends(get_chat_service),
):
    return chat.get_history(auth.user_id, limit)


@router.delete("/history", response_model=MessageResponse)
async def clear_history(
    auth: AuthContext = Depends(get_auth_context),
    chat: ChatService = Depends(get_chat_service),
):
    chat.clear_history(auth.user_id)
    return MessageResponse(message="Chat history cleared successfully")


@router.get("/stats", response_model=ConversationStats)
async def stats(
    auth: AuthContext = Depends(get_auth_context),
    chat: ChatService = Depends(get_chat_service),
):
    return chat.get_stats(auth.user_id)


@router.get("/insights", response_model=PersonalInsights)
async def personal_insights(
    auth: AuthContext = Depends(get_auth_context),
    chat: ChatService = Depends(get_chat_service),
):
    """Typed observations about the caller's journaling patterns."""
    try:
        return chat.get_personal_insights(auth.user_id)
    except Exception as e:
        logger.exception(f"Personal insights failed for user {auth.user_id}")
        raise HTTPException(status_code=500, detail=f"Failed to generate insights: {str(e)}")


__all__ = ["router", "get_chat_service"]
