from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from adopte_chat.domain.value_objects.enums import Role


class UserSummaryResponse(BaseModel):
    id: str
    email: str
    role: Role
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None

    model_config = {"from_attributes": True}


class SendMessageRequest(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class MessageResponse(BaseModel):
    id: UUID
    conversation_id: UUID
    sender_id: UUID | str
    content: str
    created_at: datetime
    sender: UserSummaryResponse | None = None

    model_config = {"from_attributes": True}
