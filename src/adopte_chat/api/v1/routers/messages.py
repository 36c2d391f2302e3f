from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from adopte_chat.api.deps import CurrentPrincipal, UoWDep
from adopte_chat.api.v1.schemas.message import MessageResponse, SendMessageRequest
from adopte_chat.application.dto.conversation import MessageSummary
from adopte_chat.config import settings
from adopte_chat.services import message_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["messages"])


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=settings.MAX_PAGE_SIZE),
) -> list[MessageResponse]:
    messages = await message_service.list_messages(
        conversation_id, principal, page, limit, uow,
    )
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    conversation_id: UUID,
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MessageResponse:
    msg = await message_service.send_message(conversation_id, principal, body.content, uow)
    return MessageResponse.model_validate(MessageSummary.from_message(msg), from_attributes=True)
