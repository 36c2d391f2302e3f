from __future__ import annotations

from typing import Protocol

from adopte_chat.domain.entities.participant import Participant


class ParticipantWriter(Protocol):
    async def add(self, participant: Participant) -> None: ...
