from __future__ import annotations

import logging
import uuid
from datetime import datetime

from adopte_chat.application.dto.conversation import (
    AdminConversationFilterDTO,
    AdminConversationPage,
    AdminConversationSummary,
    AdminParticipantSummary,
    BroadcastResult,
    MessageSummary,
    PaginationDTO,
)
from adopte_chat.application.dto.events import OutboxEventDTO
from adopte_chat.application.dto.message import SendBroadcastDTO, SendDirectMessageDTO
from adopte_chat.application.dto.principal import Principal
from adopte_chat.application.exceptions import NotFoundError, ValidationError
from adopte_chat.application.policies.admin import assert_admin
from adopte_chat.application.policies.visibility import resolve_broadcast_target
from adopte_chat.application.ports.clock import Clock, system_clock
from adopte_chat.application.uow import UnitOfWork
from adopte_chat.domain.entities.conversation import Conversation
from adopte_chat.domain.entities.message import Message
from adopte_chat.domain.entities.participant import Participant
from adopte_chat.domain.events.conversation_created import ConversationCreated
from adopte_chat.domain.value_objects.enums import (
    BroadcastTarget,
    ConversationContext,
    ConversationStatus,
    Role,
)

logger = logging.getLogger(__name__)

_ROLE_BY_TARGET: dict[str, str | None] = {
    BroadcastTarget.ALL: None,
    BroadcastTarget.STUDENTS: Role.STUDENT,
    BroadcastTarget.COMPANIES: Role.COMPANY,
}


async def _open_conversation(
    uow: UnitOfWork,
    *,
    topic: str,
    context: ConversationContext,
    member_ids: list[uuid.UUID],
    sender_id: uuid.UUID,
    content: str,
    now: datetime,
    is_read_only: bool = False,
    broadcast_target: BroadcastTarget | None = None,
    expires_at: datetime | None = None,
) -> Conversation:
    conversation = await uow.conversations_w.create(
        Conversation(
            id=uuid.uuid4(),
            topic=topic,
            context=context,
            status=ConversationStatus.ACTIVE,
            is_read_only=is_read_only or broadcast_target is not None,
            is_broadcast=broadcast_target is not None,
            broadcast_target=broadcast_target,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
    )
    for member_id in member_ids:
        await uow.participants_w.add(
            Participant(conversation_id=conversation.id, user_id=member_id, joined_at=now)
        )
    await uow.messages_w.create(
        Message(
            id=uuid.uuid4(),
            conversation_id=conversation.id,
            sender_id=sender_id,
            content=content,
            created_at=now,
        )
    )
    return conversation


async def send_broadcast(
    principal: Principal,
    data: SendBroadcastDTO,
    uow: UnitOfWork,
    clock: Clock = system_clock,
) -> BroadcastResult:
    """Open a read-only broadcast for a role-based audience.

    Only the sending admin is stored as a participant; recipients are
    matched by role when they list their conversations.
    """
    assert_admin(principal)
    if not data.content.strip():
        raise ValidationError("Message content must not be empty")

    target = resolve_broadcast_target(data.target_role)
    recipients = await uow.users.count_active(_ROLE_BY_TARGET[target])
    if recipients == 0:
        raise ValidationError(f"No users found for target role: {data.target_role or 'ALL'}")

    conversation = await _open_conversation(
        uow,
        topic=data.topic,
        context=ConversationContext.BROADCAST,
        member_ids=[principal.user_id],
        sender_id=principal.user_id,
        content=data.content,
        now=clock.now(),
        broadcast_target=target,
        expires_at=data.expires_at,
    )
    await uow.outbox.add(
        OutboxEventDTO.from_event(
            "chat.broadcast_created",
            ConversationCreated(
                conversation_id=conversation.id,
                created_by=principal.user_id,
                context=conversation.context,
                participant_ids=(principal.user_id,),
                broadcast_target=target,
            ),
        )
    )
    await uow.commit()
    logger.info(
        "Admin %s broadcast %s to %s (%d recipients)",
        principal.user_id, conversation.id, target, recipients,
    )
    return BroadcastResult(conversation_id=conversation.id, sent_to=recipients)


async def send_direct_message(
    principal: Principal,
    data: SendDirectMessageDTO,
    uow: UnitOfWork,
    clock: Clock = system_clock,
) -> Conversation:
    assert_admin(principal)
    if not data.content.strip():
        raise ValidationError("Message content must not be empty")
    if data.recipient_id == principal.user_id:
        raise ValidationError("Cannot send a message to yourself")

    recipient = await uow.users.get_by_id(data.recipient_id)
    if recipient is None:
        raise NotFoundError("User not found")

    members = [principal.user_id, recipient.id]
    conversation = await _open_conversation(
        uow,
        topic=data.topic,
        context=ConversationContext.ADMIN_MESSAGE,
        member_ids=members,
        sender_id=principal.user_id,
        content=data.content,
        now=clock.now(),
        is_read_only=data.is_read_only,
    )
    await uow.outbox.add(
        OutboxEventDTO.from_event(
            "chat.conversation_created",
            ConversationCreated(
                conversation_id=conversation.id,
                created_by=principal.user_id,
                context=conversation.context,
                participant_ids=tuple(members),
            ),
        )
    )
    await uow.commit()
    return conversation


async def list_admin_conversations(
    principal: Principal,
    filters: AdminConversationFilterDTO,
    uow: UnitOfWork,
) -> AdminConversationPage:
    assert_admin(principal)
    if filters.page < 1 or filters.limit < 1:
        raise ValidationError("page and limit must be >= 1")

    records = await uow.conversations.list_for_admin(filters)
    total = await uow.conversations.count_for_admin(filters)

    conversations = []
    for record in records:
        conv = record.conversation
        others = [
            AdminParticipantSummary(
                id=str(p.user.id),
                email=p.user.email,
                role=p.user.role,
                name=p.user.display_name,
            )
            for p in record.participants
            if p.user is not None and p.user_id != principal.user_id
        ]
        conversations.append(
            AdminConversationSummary(
                id=conv.id,
                topic=conv.topic,
                context=conv.context,
                status=conv.status,
                participants=others,
                last_message=(
                    MessageSummary.from_message(record.last_message)
                    if record.last_message
                    else None
                ),
                message_count=record.message_count,
                created_at=conv.created_at,
                updated_at=conv.updated_at,
            )
        )

    return AdminConversationPage(
        conversations=conversations,
        pagination=PaginationDTO.build(filters.page, filters.limit, total),
    )
