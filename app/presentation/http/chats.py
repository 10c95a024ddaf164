"""Chats API endpoints."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from app.application.context import RequestContext
from app.application.pagination import paginated
from app.application.services.chat_service import ChatService
from app.domain.entities import Chat
from app.presentation.http.deps import get_chat_service, get_request_context
from app.presentation.http.schemas import CamelModel, envelope

router = APIRouter(prefix="/chats", tags=["chats"])


# Request/Response models
class CreateChatRequest(CamelModel):
    """Request to create a chat."""

    title: str = Field(..., min_length=1, max_length=255)
    source: Literal["web", "mobile", "api", "widget"] = "web"
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class UpdateChatRequest(CamelModel):
    """Partial chat update; metadata is merged."""

    title: str | None = Field(None, min_length=1, max_length=255)
    tags: list[str] | None = None
    metadata: dict[str, Any] | None = None
    is_active: bool | None = None


class ChatResponse(CamelModel):
    """Chat response."""

    id: UUID
    user_id: UUID
    organization_id: UUID
    title: str
    source: str
    tags: list[str]
    metadata: dict[str, Any]
    is_active: bool
    created_at: datetime
    updated_at: datetime


def chat_to_response(chat: Chat) -> dict[str, Any]:
    return ChatResponse.model_validate(chat).dump()


# Endpoints
@router.post("", status_code=201)
async def create_chat(
    request: CreateChatRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """Create a chat owned by the caller."""
    chat = await service.create(
        ctx,
        request.title,
        source=request.source,
        tags=request.tags,
        metadata=request.metadata,
    )
    return envelope("Chat created successfully", chat_to_response(chat))


@router.get("")
async def list_chats(
    is_active: bool | None = Query(None, alias="isActive"),
    ctx: RequestContext = Depends(get_request_context),
    service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """List chats visible to the caller, newest first."""
    chats, total = await service.list_chats(ctx, is_active=is_active)
    return paginated(
        [chat_to_response(chat) for chat in chats],
        total,
        ctx.pagination,
        "Chats retrieved successfully",
    )


@router.get("/search")
async def search_chats(
    query: str = Query(..., min_length=1),
    ctx: RequestContext = Depends(get_request_context),
    service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """Search chats by title or tag."""
    chats, total = await service.search(ctx, query)
    return paginated(
        [chat_to_response(chat) for chat in chats],
        total,
        ctx.pagination,
        "Chats retrieved successfully",
    )


@router.get("/{chat_id}")
async def get_chat(
    chat_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    chat = await service.get(ctx, chat_id)
    return envelope("Chat retrieved successfully", chat_to_response(chat))


@router.put("/{chat_id}")
async def update_chat(
    chat_id: UUID,
    request: UpdateChatRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    chat = await service.update(
        ctx,
        chat_id,
        title=request.title,
        tags=request.tags,
        metadata=request.metadata,
        is_active=request.is_active,
    )
    return envelope("Chat updated successfully", chat_to_response(chat))


@router.delete("/{chat_id}")
async def delete_chat(
    chat_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    """Delete a chat and its messages."""
    await service.delete(ctx, chat_id)
    return envelope("Chat deleted successfully")
