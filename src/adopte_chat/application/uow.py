from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from adopte_chat.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from adopte_chat.application.repositories.message import MessageReader, MessageWriter
from adopte_chat.application.repositories.outbox import OutboxWriter
from adopte_chat.application.repositories.participant import ParticipantWriter
from adopte_chat.application.repositories.user import UserReader


class UnitOfWork(Protocol):
    conversations: ConversationReader
    conversations_w: ConversationWriter
    participants_w: ParticipantWriter
    messages: MessageReader
    messages_w: MessageWriter
    users: UserReader
    outbox: OutboxWriter

    def savepoint(self) -> AbstractAsyncContextManager[None]:
        """Nested transaction; rolled back alone if the block raises."""
        ...

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
