from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from adopte_chat.application.dto.events import OutboxEventDTO
from adopte_chat.application.repositories.outbox import OutboxRecord
from adopte_chat.infrastructure.db.models.outbox import OutboxMessageModel


class OutboxWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, event: OutboxEventDTO) -> None:
        model = OutboxMessageModel(
            event_type=event.event_type,
            conversation_id=event.payload.get("conversation_id"),
            payload=event.payload,
        )
        self._session.add(model)
        await self._session.flush()

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        """Claim a batch of due records; concurrent workers skip locked rows."""
        stmt = (
            select(OutboxMessageModel)
            .where(
                OutboxMessageModel.status.in_(["pending", "failed"]),
                (
                    OutboxMessageModel.next_retry_at.is_(None)
                    | (OutboxMessageModel.next_retry_at <= datetime.now(timezone.utc))
                ),
            )
            .order_by(OutboxMessageModel.created_at.asc())
            .limit(batch_size)
            .with_for_update(skip_locked=True)
        )
        result = await self._session.execute(stmt)
        rows = result.scalars().all()

        if rows:
            await self._session.execute(
                update(OutboxMessageModel)
                .where(OutboxMessageModel.id.in_([r.id for r in rows]))
                .values(status="processing")
            )
            await self._session.flush()

        return [
            OutboxRecord(
                id=r.id,
                event_type=r.event_type,
                payload=r.payload,
                attempts=r.attempts,
            )
            for r in rows
        ]

    async def mark_sent(self, ids: list[int]) -> None:
        if not ids:
            return
        await self._session.execute(
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id.in_(ids))
            .values(status="sent")
        )

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        await self._session.execute(
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id == record_id)
            .values(
                status="failed",
                attempts=OutboxMessageModel.attempts + 1,
                next_retry_at=next_retry_at,
            )
        )
