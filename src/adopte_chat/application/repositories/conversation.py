from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from adopte_chat.application.dto.conversation import (
    AdminConversationFilterDTO,
    ConversationFilterDTO,
    ConversationRecord,
)
from adopte_chat.domain.entities.conversation import Conversation
from adopte_chat.domain.entities.user import User


class ConversationReader(Protocol):
    async def get_record(self, conversation_id: UUID) -> ConversationRecord | None:
        """Load a conversation with participants, last message and linked context rows."""
        ...

    async def list_visible(
        self, user: User, filters: ConversationFilterDTO
    ) -> list[ConversationRecord]:
        """Direct conversations the user takes part in plus broadcasts addressed to them,
        newest activity first."""
        ...

    async def count_visible(self, user: User, filters: ConversationFilterDTO) -> int: ...

    async def list_broadcasts(
        self, role: str, filters: ConversationFilterDTO
    ) -> list[ConversationRecord]:
        """Broadcasts whose target audience includes ``role``."""
        ...

    async def count_broadcasts(self, role: str) -> int: ...

    async def list_expirable(self, now: datetime) -> list[Conversation]:
        """Active conversations whose ``expires_at`` is before ``now``."""
        ...

    async def list_for_admin(
        self, filters: AdminConversationFilterDTO
    ) -> list[ConversationRecord]: ...

    async def count_for_admin(self, filters: AdminConversationFilterDTO) -> int: ...


class ConversationWriter(Protocol):
    async def create(self, conversation: Conversation) -> Conversation: ...

    async def touch(self, conversation_id: UUID, ts: datetime) -> None: ...

    async def mark_expired(self, conversation_id: UUID) -> bool:
        """Flip an ACTIVE conversation to EXPIRED. False if it was no longer ACTIVE."""
        ...
