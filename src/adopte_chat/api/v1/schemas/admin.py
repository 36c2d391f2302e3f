from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from adopte_chat.api.v1.schemas.common import PaginationResponse
from adopte_chat.api.v1.schemas.message import MessageResponse
from adopte_chat.domain.value_objects.enums import ConversationContext, ConversationStatus, Role


class BroadcastRequest(BaseModel):
    subject: str = Field(default="Broadcast Message", min_length=1, max_length=255)
    content: str = Field(min_length=1, max_length=5000)
    target_role: Literal["STUDENT", "COMPANY", "ALL"] | None = None
    expires_at: datetime | None = None


class BroadcastResponse(BaseModel):
    conversation_id: UUID
    sent_to: int

    model_config = {"from_attributes": True}


class DirectMessageRequest(BaseModel):
    recipient_id: UUID
    subject: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1, max_length=5000)
    is_read_only: bool = False


class DirectMessageResponse(BaseModel):
    conversation_id: UUID


class AdminParticipantResponse(BaseModel):
    id: str
    email: str
    role: Role
    name: str

    model_config = {"from_attributes": True}


class AdminConversationResponse(BaseModel):
    id: UUID
    topic: str
    context: ConversationContext
    status: ConversationStatus
    participants: list[AdminParticipantResponse]
    last_message: MessageResponse | None
    message_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AdminConversationListResponse(BaseModel):
    conversations: list[AdminConversationResponse]
    pagination: PaginationResponse

    model_config = {"from_attributes": True}


class CleanupResponse(BaseModel):
    expired: int
