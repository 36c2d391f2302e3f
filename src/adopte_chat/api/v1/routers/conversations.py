from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query

from adopte_chat.api.deps import CurrentPrincipal, UoWDep
from adopte_chat.api.v1.schemas.conversation import (
    AccessResponse,
    ConversationListResponse,
    ConversationResponse,
)
from adopte_chat.application.dto.conversation import ConversationFilterDTO
from adopte_chat.application.policies.visibility import CONVERSATION_NOT_FOUND
from adopte_chat.config import settings
from adopte_chat.domain.value_objects.enums import ConversationContext, ConversationStatus
from adopte_chat.services import conversation_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["conversations"])


@router.get("", response_model=ConversationListResponse)
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    context: ConversationContext | None = Query(None),
    status: ConversationStatus | None = Query(None),
) -> ConversationListResponse:
    filters = ConversationFilterDTO(page=page, limit=limit, context=context, status=status)
    result = await conversation_service.get_user_conversations(principal.user_id, filters, uow)
    return ConversationListResponse.model_validate(result, from_attributes=True)


@router.get("/broadcasts", response_model=ConversationListResponse)
async def list_broadcasts(
    principal: CurrentPrincipal,
    uow: UoWDep,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> ConversationListResponse:
    filters = ConversationFilterDTO(page=page, limit=limit)
    result = await conversation_service.get_broadcast_conversations_for_user(
        principal.user_id, filters, uow,
    )
    return ConversationListResponse.model_validate(result, from_attributes=True)


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    result = await conversation_service.is_conversation_accessible(
        conversation_id, principal.user_id, uow,
    )
    if not result.accessible:
        code = 404 if result.reason == CONVERSATION_NOT_FOUND else 403
        raise HTTPException(status_code=code, detail=result.reason)
    return ConversationResponse.model_validate(result.conversation, from_attributes=True)


@router.get("/{conversation_id}/access", response_model=AccessResponse)
async def check_access(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> AccessResponse:
    result = await conversation_service.is_conversation_accessible(
        conversation_id, principal.user_id, uow,
    )
    return AccessResponse.model_validate(result, from_attributes=True)
