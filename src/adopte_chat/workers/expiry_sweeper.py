"""Expiry sweeper: periodically moves overdue conversations to EXPIRED."""
from __future__ import annotations

import asyncio
import logging

from adopte_chat.config import settings
from adopte_chat.infrastructure.db.session import AsyncSessionLocal
from adopte_chat.infrastructure.db.uow import SqlAlchemyUoW
from adopte_chat.services.conversation_service import cleanup_expired_conversations

logger = logging.getLogger(__name__)


async def sweep_once() -> int:
    async with AsyncSessionLocal() as session:
        async with SqlAlchemyUoW(session) as uow:
            return await cleanup_expired_conversations(uow)


async def run_expiry_sweeper() -> None:
    logger.info("Expiry sweeper started (interval=%.1fs)", settings.EXPIRY_SWEEP_INTERVAL)
    while True:
        try:
            await sweep_once()
        except Exception:
            logger.exception("Expiry sweep failed")
        await asyncio.sleep(settings.EXPIRY_SWEEP_INTERVAL)


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(run_expiry_sweeper())


if __name__ == "__main__":
    main()
