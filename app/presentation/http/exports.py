"""Exports API endpoints (JSON only)."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.application.context import RequestContext
from app.application.services.export_service import ExportService
from app.presentation.http.chats import chat_to_response
from app.presentation.http.deps import get_export_context, get_export_service
from app.presentation.http.messages import message_to_response
from app.presentation.http.schemas import envelope

router = APIRouter(prefix="/exports", tags=["exports"])


@router.get("/chats")
async def export_chats(
    user_id: UUID | None = Query(None, alias="userId"),
    ctx: RequestContext = Depends(get_export_context),
    service: ExportService = Depends(get_export_service),
) -> dict[str, Any]:
    """Export chats with their messages (admin)."""
    exports = await service.chats_with_messages(ctx, user_id=user_id)
    data = [
        {
            **chat_to_response(item.chat),
            "messages": [message_to_response(message) for message in item.messages],
        }
        for item in exports
    ]

    metadata: dict[str, Any] = {
        "totalChats": len(exports),
        "totalMessages": sum(len(item.messages) for item in exports),
    }
    if ctx.window is not None:
        metadata["startDate"] = ctx.window.start.isoformat()
        metadata["endDate"] = ctx.window.end.isoformat()
    return envelope("Chats exported successfully", data, metadata=metadata)


@router.get("/users/activity")
async def export_user_activity(
    ctx: RequestContext = Depends(get_export_context),
    service: ExportService = Depends(get_export_service),
) -> dict[str, Any]:
    """Export every user of the organization with its chat count (admin)."""
    rows = await service.user_activity(ctx)
    data = [
        {
            "userId": str(row.user_id),
            "username": row.username,
            "email": row.email,
            "role": row.role,
            "isActive": row.is_active,
            "firstName": row.first_name,
            "lastName": row.last_name,
            "chatCount": row.chat_count,
            "createdAt": row.created_at.isoformat(),
            "updatedAt": row.updated_at.isoformat(),
        }
        for row in rows
    ]
    return envelope(
        "User activity exported successfully",
        data,
        metadata={"totalUsers": len(data)},
    )
