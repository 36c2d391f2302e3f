from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from adopte_chat.application.dto.events import OutboxEventDTO


@dataclass(frozen=True, slots=True)
class OutboxRecord:
    """Pending event as seen by the outbox worker."""

    id: int
    event_type: str
    payload: dict[str, Any]
    attempts: int


class OutboxWriter(Protocol):
    async def add(self, event: OutboxEventDTO) -> None: ...

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]: ...

    async def mark_sent(self, ids: list[int]) -> None: ...

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None: ...
