from __future__ import annotations

from fastapi import APIRouter, Query

from adopte_chat.api.deps import CurrentAdmin, UoWDep
from adopte_chat.api.v1.schemas.admin import (
    AdminConversationListResponse,
    BroadcastRequest,
    BroadcastResponse,
    CleanupResponse,
    DirectMessageRequest,
    DirectMessageResponse,
)
from adopte_chat.application.dto.conversation import AdminConversationFilterDTO
from adopte_chat.application.dto.message import SendBroadcastDTO, SendDirectMessageDTO
from adopte_chat.config import settings
from adopte_chat.domain.value_objects.enums import ConversationContext
from adopte_chat.services import admin_service, conversation_service

router = APIRouter(prefix="/api/v1/chat/admin", tags=["admin"])


@router.get("/conversations", response_model=AdminConversationListResponse)
async def list_conversations(
    admin: CurrentAdmin,
    uow: UoWDep,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.ADMIN_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: str | None = Query(None, max_length=200),
    context: ConversationContext | None = Query(None),
) -> AdminConversationListResponse:
    filters = AdminConversationFilterDTO(page=page, limit=limit, search=search, context=context)
    result = await admin_service.list_admin_conversations(admin, filters, uow)
    return AdminConversationListResponse.model_validate(result, from_attributes=True)


@router.post("/messages/broadcast", response_model=BroadcastResponse, status_code=201)
async def send_broadcast(
    body: BroadcastRequest,
    admin: CurrentAdmin,
    uow: UoWDep,
) -> BroadcastResponse:
    data = SendBroadcastDTO(
        topic=body.subject,
        content=body.content,
        target_role=body.target_role,
        expires_at=body.expires_at,
    )
    result = await admin_service.send_broadcast(admin, data, uow)
    return BroadcastResponse.model_validate(result, from_attributes=True)


@router.post("/messages/direct", response_model=DirectMessageResponse, status_code=201)
async def send_direct_message(
    body: DirectMessageRequest,
    admin: CurrentAdmin,
    uow: UoWDep,
) -> DirectMessageResponse:
    data = SendDirectMessageDTO(
        recipient_id=body.recipient_id,
        topic=body.subject,
        content=body.content,
        is_read_only=body.is_read_only,
    )
    conv = await admin_service.send_direct_message(admin, data, uow)
    return DirectMessageResponse(conversation_id=conv.id)


@router.post("/conversations/cleanup-expired", response_model=CleanupResponse)
async def cleanup_expired(admin: CurrentAdmin, uow: UoWDep) -> CleanupResponse:
    expired = await conversation_service.cleanup_expired_conversations(uow)
    return CleanupResponse(expired=expired)
