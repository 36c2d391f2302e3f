from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from uuid import UUID

from sqlalchemy import ColumnElement, and_, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from adopte_chat.application.dto.conversation import (
    AdminConversationFilterDTO,
    ConversationFilterDTO,
    ConversationRecord,
)
from adopte_chat.application.policies.visibility import broadcast_targets_for_role
from adopte_chat.domain.entities.conversation import Conversation
from adopte_chat.domain.entities.message import Message
from adopte_chat.domain.entities.user import User
from adopte_chat.domain.value_objects.enums import ConversationStatus
from adopte_chat.infrastructure.db.mappers import conversation as mapper
from adopte_chat.infrastructure.db.mappers import message as message_mapper
from adopte_chat.infrastructure.db.models.context import (
    AdoptionRequestModel,
    ApplicationModel,
    OfferModel,
)
from adopte_chat.infrastructure.db.models.conversation import ConversationModel
from adopte_chat.infrastructure.db.models.message import MessageModel
from adopte_chat.infrastructure.db.models.participant import ParticipantModel
from adopte_chat.infrastructure.db.models.user import UserModel
from adopte_chat.infrastructure.db.repositories.message import SENDER_OPTIONS

_RECORD_OPTIONS = (
    selectinload(ConversationModel.participants)
    .selectinload(ParticipantModel.user)
    .options(
        selectinload(UserModel.student_profile),
        selectinload(UserModel.company),
    ),
    selectinload(ConversationModel.adoption_request).selectinload(AdoptionRequestModel.company),
    selectinload(ConversationModel.application)
    .selectinload(ApplicationModel.offer)
    .selectinload(OfferModel.company),
)


def _is_participant(user_id: UUID) -> ColumnElement[bool]:
    return exists().where(
        ParticipantModel.conversation_id == ConversationModel.id,
        ParticipantModel.user_id == user_id,
    )


def _visible_to(user: User) -> ColumnElement[bool]:
    """SQL form of ``policies.visibility.is_listed_for``."""
    member = _is_participant(user.id)
    return or_(
        and_(ConversationModel.is_broadcast.is_(False), member),
        and_(
            ConversationModel.is_broadcast.is_(True),
            or_(
                ConversationModel.broadcast_target.in_(broadcast_targets_for_role(user.role)),
                member,
            ),
        ),
    )


def _broadcast_for(role: str) -> ColumnElement[bool]:
    return and_(
        ConversationModel.is_broadcast.is_(True),
        ConversationModel.broadcast_target.in_(broadcast_targets_for_role(role)),
    )


def _user_conditions(user: User, filters: ConversationFilterDTO) -> list[ColumnElement[bool]]:
    conditions = [_visible_to(user)]
    if filters.context:
        conditions.append(ConversationModel.context == filters.context.value)
    if filters.status:
        conditions.append(ConversationModel.status == filters.status.value)
    return conditions


def _admin_conditions(filters: AdminConversationFilterDTO) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if filters.search:
        conditions.append(
            or_(
                ConversationModel.topic.icontains(filters.search, autoescape=True),
                exists().where(
                    MessageModel.conversation_id == ConversationModel.id,
                    MessageModel.content.icontains(filters.search, autoescape=True),
                ),
            )
        )
    if filters.context:
        conditions.append(ConversationModel.context == filters.context.value)
    return conditions


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_record(self, conversation_id: UUID) -> ConversationRecord | None:
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .options(*_RECORD_OPTIONS)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        last = await self._last_messages([model.id])
        return mapper.model_to_record(model, last_message=last.get(model.id))

    async def list_visible(
        self, user: User, filters: ConversationFilterDTO,
    ) -> list[ConversationRecord]:
        return await self._page(_user_conditions(user, filters), filters.offset, filters.limit)

    async def count_visible(self, user: User, filters: ConversationFilterDTO) -> int:
        return await self._count(_user_conditions(user, filters))

    async def list_broadcasts(
        self, role: str, filters: ConversationFilterDTO,
    ) -> list[ConversationRecord]:
        return await self._page([_broadcast_for(role)], filters.offset, filters.limit)

    async def count_broadcasts(self, role: str) -> int:
        return await self._count([_broadcast_for(role)])

    async def list_expirable(self, now: datetime) -> list[Conversation]:
        stmt = select(ConversationModel).where(
            ConversationModel.status == ConversationStatus.ACTIVE,
            ConversationModel.expires_at.is_not(None),
            ConversationModel.expires_at < now,
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_for_admin(
        self, filters: AdminConversationFilterDTO,
    ) -> list[ConversationRecord]:
        records = await self._page(_admin_conditions(filters), filters.offset, filters.limit)
        counts = await self._message_counts([r.conversation.id for r in records])
        return [replace(r, message_count=counts.get(r.conversation.id, 0)) for r in records]

    async def count_for_admin(self, filters: AdminConversationFilterDTO) -> int:
        return await self._count(_admin_conditions(filters))

    async def _page(
        self,
        conditions: list[ColumnElement[bool]],
        offset: int,
        limit: int,
    ) -> list[ConversationRecord]:
        stmt = (
            select(ConversationModel)
            .where(*conditions)
            .options(*_RECORD_OPTIONS)
            .order_by(ConversationModel.updated_at.desc(), ConversationModel.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()
        last = await self._last_messages([m.id for m in models])
        return [mapper.model_to_record(m, last_message=last.get(m.id)) for m in models]

    async def _count(self, conditions: list[ColumnElement[bool]]) -> int:
        stmt = select(func.count()).select_from(ConversationModel).where(*conditions)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def _last_messages(self, conversation_ids: list[UUID]) -> dict[UUID, Message]:
        """Newest message per conversation, one query for the whole page."""
        if not conversation_ids:
            return {}
        ranked = (
            select(
                MessageModel.id,
                func.row_number()
                .over(
                    partition_by=MessageModel.conversation_id,
                    order_by=(MessageModel.created_at.desc(), MessageModel.id.desc()),
                )
                .label("rn"),
            )
            .where(MessageModel.conversation_id.in_(conversation_ids))
            .subquery()
        )
        stmt = (
            select(MessageModel)
            .join(ranked, ranked.c.id == MessageModel.id)
            .where(ranked.c.rn == 1)
            .options(SENDER_OPTIONS)
        )
        result = await self._session.execute(stmt)
        return {
            m.conversation_id: message_mapper.model_to_entity(m)
            for m in result.scalars().all()
        }

    async def _message_counts(self, conversation_ids: list[UUID]) -> dict[UUID, int]:
        if not conversation_ids:
            return {}
        stmt = (
            select(MessageModel.conversation_id, func.count(MessageModel.id))
            .where(MessageModel.conversation_id.in_(conversation_ids))
            .group_by(MessageModel.conversation_id)
        )
        result = await self._session.execute(stmt)
        return {cid: int(n) for cid, n in result.all()}


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, conversation: Conversation) -> Conversation:
        model = mapper.entity_to_model(conversation)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def touch(self, conversation_id: UUID, ts: datetime) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(updated_at=ts)
        )
        await self._session.execute(stmt)

    async def mark_expired(self, conversation_id: UUID) -> bool:
        stmt = (
            update(ConversationModel)
            .where(
                ConversationModel.id == conversation_id,
                ConversationModel.status == ConversationStatus.ACTIVE,
            )
            # expiry is not activity: keep the listing order untouched
            .values(status=ConversationStatus.EXPIRED, updated_at=ConversationModel.updated_at)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1
