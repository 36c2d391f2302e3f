from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    topic: str
    context: str
    status: str
    is_read_only: bool
    is_broadcast: bool
    broadcast_target: str | None
    expires_at: datetime | None
    created_at: datetime
    updated_at: datetime
