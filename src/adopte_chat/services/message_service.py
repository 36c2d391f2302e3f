from __future__ import annotations

import uuid

from adopte_chat.application.dto.conversation import MessageSummary
from adopte_chat.application.dto.events import OutboxEventDTO
from adopte_chat.application.dto.principal import Principal
from adopte_chat.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from adopte_chat.application.policies.visibility import (
    CONVERSATION_NOT_FOUND,
    check_access,
    check_can_post,
)
from adopte_chat.application.ports.clock import Clock, system_clock
from adopte_chat.application.uow import UnitOfWork
from adopte_chat.domain.entities.message import Message
from adopte_chat.domain.events.message_created import MessageCreated
from adopte_chat.services.conversation_service import summarize_message


async def send_message(
    conversation_id: uuid.UUID,
    principal: Principal,
    content: str,
    uow: UnitOfWork,
    clock: Clock = system_clock,
) -> Message:
    """Post a message into an existing conversation the caller may write to."""
    if not content or not content.strip():
        raise ValidationError("Message content must not be empty")

    record = await uow.conversations.get_record(conversation_id)
    if record is None:
        raise NotFoundError(CONVERSATION_NOT_FOUND)
    user = await uow.users.get_by_id(principal.user_id)

    now = clock.now()
    decision = check_can_post(record, user, now)
    if not decision.accessible:
        raise ForbiddenError(decision.reason or "")

    msg = await uow.messages_w.create(
        Message(
            id=uuid.uuid4(),
            conversation_id=conversation_id,
            sender_id=principal.user_id,
            content=content.strip(),
            created_at=now,
            sender=user,
        )
    )
    await uow.conversations_w.touch(conversation_id, msg.created_at)
    await uow.outbox.add(
        OutboxEventDTO.from_event(
            "chat.message_created",
            MessageCreated(
                message_id=msg.id,
                conversation_id=msg.conversation_id,
                sender_id=msg.sender_id,
                content=msg.content,
            ),
        )
    )
    await uow.commit()
    return msg


async def list_messages(
    conversation_id: uuid.UUID,
    principal: Principal,
    page: int,
    limit: int,
    uow: UnitOfWork,
) -> list[MessageSummary]:
    """Messages oldest first. Viewing is allowed whatever the conversation status."""
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be >= 1")

    record = await uow.conversations.get_record(conversation_id)
    if record is None:
        raise NotFoundError(CONVERSATION_NOT_FOUND)
    user = await uow.users.get_by_id(principal.user_id)

    decision = check_access(record, user)
    if not decision.accessible:
        raise ForbiddenError(decision.reason or "")
    assert user is not None

    messages = await uow.messages.list_messages(
        conversation_id, offset=(page - 1) * limit, limit=limit,
    )
    return [summarize_message(m, record, user) for m in messages]
