from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from adopte_chat.api.v1.schemas.common import PaginationResponse
from adopte_chat.api.v1.schemas.message import MessageResponse, UserSummaryResponse
from adopte_chat.domain.value_objects.enums import (
    BroadcastTarget,
    ConversationContext,
    ConversationStatus,
)


class ParticipantResponse(BaseModel):
    id: str
    user_id: str
    conversation_id: UUID
    joined_at: datetime
    user: UserSummaryResponse | None

    model_config = {"from_attributes": True}


class ContextDetailsResponse(BaseModel):
    type: str
    status: str | None = None
    company_name: str | None = None
    offer_title: str | None = None
    target: BroadcastTarget | None = None

    model_config = {"from_attributes": True}


class ConversationResponse(BaseModel):
    id: UUID
    topic: str
    context: ConversationContext
    status: ConversationStatus
    is_read_only: bool
    is_broadcast: bool
    broadcast_target: BroadcastTarget | None
    expires_at: datetime | None
    participants: list[ParticipantResponse]
    last_message: MessageResponse | None
    context_details: ContextDetailsResponse | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ConversationListResponse(BaseModel):
    conversations: list[ConversationResponse]
    pagination: PaginationResponse

    model_config = {"from_attributes": True}


class AccessResponse(BaseModel):
    accessible: bool
    reason: str | None = None
    conversation: ConversationResponse | None = None

    model_config = {"from_attributes": True}
