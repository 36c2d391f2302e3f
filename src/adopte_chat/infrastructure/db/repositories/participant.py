from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from adopte_chat.domain.entities.participant import Participant
from adopte_chat.infrastructure.db.mappers import participant as mapper


class ParticipantWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, participant: Participant) -> None:
        model = mapper.entity_to_model(participant)
        self._session.add(model)
        await self._session.flush()
