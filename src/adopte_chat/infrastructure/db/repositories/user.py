from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from adopte_chat.domain.entities.user import User
from adopte_chat.infrastructure.db.mappers import user as mapper
from adopte_chat.infrastructure.db.models.user import UserModel


class UserReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        stmt = (
            select(UserModel)
            .where(UserModel.id == user_id)
            .options(selectinload(UserModel.student_profile), selectinload(UserModel.company))
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def count_active(self, role: str | None = None) -> int:
        stmt = select(func.count()).select_from(UserModel).where(UserModel.is_active.is_(True))
        if role:
            stmt = stmt.where(UserModel.role == role)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())
