from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class SendBroadcastDTO:
    topic: str
    content: str
    target_role: str | None = None  # STUDENT | COMPANY | ALL
    expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class SendDirectMessageDTO:
    recipient_id: UUID
    topic: str
    content: str
    is_read_only: bool = False
