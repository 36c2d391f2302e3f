from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ConversationCreated:
    conversation_id: UUID
    created_by: UUID
    context: str
    participant_ids: tuple[UUID, ...]
    broadcast_target: str | None = None
