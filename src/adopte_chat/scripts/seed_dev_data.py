"""Seed development data: a few accounts, an admin message and a broadcast."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

from adopte_chat.application.dto.message import SendBroadcastDTO, SendDirectMessageDTO
from adopte_chat.application.dto.principal import Principal
from adopte_chat.domain.value_objects.enums import Role
from adopte_chat.infrastructure.db.models.user import (
    CompanyModel,
    StudentProfileModel,
    UserModel,
)
from adopte_chat.infrastructure.db.session import AsyncSessionLocal
from adopte_chat.infrastructure.db.uow import SqlAlchemyUoW
from adopte_chat.services import admin_service

logger = logging.getLogger(__name__)


async def seed() -> None:
    async with AsyncSessionLocal() as session:
        admin_id, student_id, company_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        session.add_all([
            UserModel(id=admin_id, email="admin@adopte.dev", role=Role.ADMIN),
            UserModel(id=student_id, email="student@adopte.dev", role=Role.STUDENT),
            UserModel(id=company_id, email="company@adopte.dev", role=Role.COMPANY),
        ])
        await session.flush()
        session.add_all([
            StudentProfileModel(user_id=student_id, first_name="Camille", last_name="Martin"),
            CompanyModel(user_id=company_id, name="Acme Robotics"),
        ])
        await session.commit()

        uow = SqlAlchemyUoW(session)
        admin = Principal(user_id=admin_id, role=Role.ADMIN)

        direct = await admin_service.send_direct_message(
            admin,
            SendDirectMessageDTO(
                recipient_id=student_id,
                topic="Welcome",
                content="Welcome aboard! Let us know if you need anything.",
            ),
            uow,
        )
        broadcast = await admin_service.send_broadcast(
            admin,
            SendBroadcastDTO(
                topic="Maintenance window",
                content="The platform will be unavailable Sunday night.",
                target_role="ALL",
                expires_at=datetime.now(timezone.utc) + timedelta(days=7),
            ),
            uow,
        )
        logger.info(
            "Seeded direct conversation %s and broadcast %s (%d recipients)",
            direct.id, broadcast.conversation_id, broadcast.sent_to,
        )


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
