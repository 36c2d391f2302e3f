from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ConversationExpired:
    conversation_id: UUID
    expires_at: datetime | None
    expired_at: datetime
