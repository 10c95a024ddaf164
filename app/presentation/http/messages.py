"""Messages API endpoints."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import Field

from app.application.context import RequestContext
from app.application.pagination import paginated
from app.application.services.message_service import MessageService
from app.domain.entities import Message
from app.presentation.http.deps import get_message_service, get_request_context
from app.presentation.http.schemas import CamelModel, envelope

router = APIRouter(prefix="/messages", tags=["messages"])

MessageRoleName = Literal["system", "user", "assistant", "function", "tool"]


# Request/Response models
class MessageRequest(CamelModel):
    """A message to append to a chat."""

    role: MessageRoleName
    content: str
    name: str | None = None
    function_call: dict[str, Any] | None = None
    tool_calls: list[Any] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    tokens: int = Field(0, ge=0)
    prompt_tokens: int = Field(0, ge=0)
    completion_tokens: int = Field(0, ge=0)
    latency: float = Field(0, ge=0)


class BatchMessagesRequest(CamelModel):
    messages: list[MessageRequest]


class UpdateMessageRequest(CamelModel):
    """Content replacement and metadata merge."""

    content: str | None = None
    metadata: dict[str, Any] | None = None


class MessageResponse(CamelModel):
    """Message response."""

    id: UUID
    chat_id: UUID
    user_id: UUID
    organization_id: UUID
    role: str
    content: str
    name: str | None
    function_call: dict[str, Any] | None
    tool_calls: list[Any] | None
    metadata: dict[str, Any]
    tokens: int
    prompt_tokens: int
    completion_tokens: int
    latency: float
    created_at: datetime
    updated_at: datetime


def message_to_response(message: Message) -> dict[str, Any]:
    return MessageResponse.model_validate(message).dump()


# Endpoints
@router.post("/batch/{chat_id}", status_code=201)
async def add_messages_batch(
    chat_id: UUID,
    request: BatchMessagesRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> dict[str, Any]:
    """Append several messages to a chat at once."""
    messages = await service.add_batch(
        ctx, chat_id, [item.model_dump() for item in request.messages]
    )
    return envelope(
        "Messages added successfully",
        [message_to_response(message) for message in messages],
    )


@router.post("/{chat_id}", status_code=201)
async def add_message(
    chat_id: UUID,
    request: MessageRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> dict[str, Any]:
    message = await service.add(ctx, chat_id, request.model_dump())
    return envelope("Message added successfully", message_to_response(message))


@router.get("/{chat_id}")
async def list_messages(
    chat_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> dict[str, Any]:
    """List a chat's messages, oldest first."""
    messages, total = await service.list_messages(ctx, chat_id)
    return paginated(
        [message_to_response(message) for message in messages],
        total,
        ctx.pagination,
        "Messages retrieved successfully",
    )


@router.get("/{chat_id}/{message_id}")
async def get_message(
    chat_id: UUID,
    message_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> dict[str, Any]:
    message = await service.get(ctx, chat_id, message_id)
    return envelope("Message retrieved successfully", message_to_response(message))


@router.put("/{chat_id}/{message_id}")
async def update_message(
    chat_id: UUID,
    message_id: UUID,
    request: UpdateMessageRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> dict[str, Any]:
    message = await service.update(
        ctx,
        chat_id,
        message_id,
        content=request.content,
        metadata=request.metadata,
    )
    return envelope("Message updated successfully", message_to_response(message))


@router.delete("/{chat_id}/{message_id}")
async def delete_message(
    chat_id: UUID,
    message_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    service: MessageService = Depends(get_message_service),
) -> dict[str, Any]:
    await service.delete(ctx, chat_id, message_id)
    return envelope("Message deleted successfully")
