from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class User:
    """Read-only projection of a platform account and its display profile."""

    id: UUID
    email: str
    role: str
    is_active: bool = True
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None

    @property
    def display_name(self) -> str:
        if self.first_name or self.last_name:
            return f"{self.first_name or ''} {self.last_name or ''}".strip()
        return self.company_name or "Unknown"
