from __future__ import annotations

from typing import Protocol
from uuid import UUID

from adopte_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Message]: ...


class MessageWriter(Protocol):
    async def create(self, message: Message) -> Message: ...
