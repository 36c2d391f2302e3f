from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from adopte_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
