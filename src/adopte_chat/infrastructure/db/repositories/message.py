from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from adopte_chat.domain.entities.message import Message
from adopte_chat.infrastructure.db.mappers import message as mapper
from adopte_chat.infrastructure.db.models.message import MessageModel
from adopte_chat.infrastructure.db.models.user import UserModel

SENDER_OPTIONS = selectinload(MessageModel.sender).options(
    selectinload(UserModel.student_profile),
    selectinload(UserModel.company),
)


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_messages(
        self,
        conversation_id: UUID,
        *,
        offset: int = 0,
        limit: int = 50,
    ) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .options(SENDER_OPTIONS)
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        await self._session.flush()
        # keep the sender projection the caller already resolved
        return Message(
            id=model.id,
            conversation_id=model.conversation_id,
            sender_id=model.sender_id,
            content=model.content,
            created_at=model.created_at,
            sender=message.sender,
        )
