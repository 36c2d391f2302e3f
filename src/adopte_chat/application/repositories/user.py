from __future__ import annotations

from typing import Protocol
from uuid import UUID

from adopte_chat.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...

    async def count_active(self, role: str | None = None) -> int:
        """Number of active accounts, optionally restricted to one role."""
        ...
