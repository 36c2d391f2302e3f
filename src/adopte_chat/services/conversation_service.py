from __future__ import annotations

import dataclasses
import logging
import uuid

from adopte_chat.application.dto.conversation import (
    AccessResult,
    ContextDetails,
    ConversationFilterDTO,
    ConversationPage,
    ConversationRecord,
    ConversationSummary,
    MessageSummary,
    PaginationDTO,
    ParticipantSummary,
    UserSummary,
)
from adopte_chat.application.dto.events import OutboxEventDTO
from adopte_chat.application.exceptions import NotFoundError, ValidationError
from adopte_chat.application.policies.visibility import check_access, hides_sender
from adopte_chat.application.ports.clock import Clock, system_clock
from adopte_chat.application.uow import UnitOfWork
from adopte_chat.domain.entities.message import Message
from adopte_chat.domain.entities.user import User
from adopte_chat.domain.events.conversation_expired import ConversationExpired
from adopte_chat.domain.value_objects.enums import ConversationContext, Role

logger = logging.getLogger(__name__)

ANONYMOUS_ID = "anonymous"
ANONYMOUS_EMAIL = "admin@system"
ANONYMOUS_USER = UserSummary(id=ANONYMOUS_ID, email=ANONYMOUS_EMAIL, role=Role.ADMIN)


def _validate_page(filters: ConversationFilterDTO) -> None:
    if filters.page < 1:
        raise ValidationError("page must be >= 1")
    if filters.limit < 1:
        raise ValidationError("limit must be >= 1")


async def _require_user(user_id: uuid.UUID, uow: UnitOfWork) -> User:
    user = await uow.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _anonymous_participant(record: ConversationRecord) -> ParticipantSummary:
    conversation = record.conversation
    return ParticipantSummary(
        id=ANONYMOUS_ID,
        user_id=ANONYMOUS_ID,
        conversation_id=conversation.id,
        joined_at=conversation.created_at,
        user=ANONYMOUS_USER,
    )


def _participants(record: ConversationRecord, viewer: User) -> list[ParticipantSummary]:
    if hides_sender(record, viewer):
        return [_anonymous_participant(record)]
    return [
        ParticipantSummary(
            id=f"{p.conversation_id}:{p.user_id}",
            user_id=str(p.user_id),
            conversation_id=p.conversation_id,
            joined_at=p.joined_at,
            user=UserSummary.from_user(p.user) if p.user else None,
        )
        for p in record.participants
    ]


def summarize_message(
    message: Message, record: ConversationRecord, viewer: User,
) -> MessageSummary:
    summary = MessageSummary.from_message(message)
    if hides_sender(record, viewer):
        return dataclasses.replace(summary, sender_id=ANONYMOUS_ID, sender=ANONYMOUS_USER)
    return summary


def _context_details(record: ConversationRecord) -> ContextDetails | None:
    conversation = record.conversation
    if conversation.context == ConversationContext.ADOPTION_REQUEST:
        link = record.adoption_request
        return ContextDetails(
            type="adoption_request",
            status=link.status if link else None,
            company_name=link.company_name if link else None,
        )
    if conversation.context == ConversationContext.OFFER:
        app = record.application
        return ContextDetails(
            type="offer",
            status=app.status if app else None,
            offer_title=app.offer_title if app else None,
            company_name=app.company_name if app else None,
        )
    if conversation.context == ConversationContext.BROADCAST:
        return ContextDetails(type="broadcast", target=conversation.broadcast_target)
    return None


def shape_conversation(
    record: ConversationRecord,
    viewer: User,
    *,
    context_details: ContextDetails | None = None,
) -> ConversationSummary:
    conversation = record.conversation
    return ConversationSummary(
        id=conversation.id,
        topic=conversation.topic,
        context=conversation.context,
        status=conversation.status,
        is_read_only=conversation.is_read_only,
        is_broadcast=conversation.is_broadcast,
        broadcast_target=conversation.broadcast_target,
        expires_at=conversation.expires_at,
        participants=_participants(record, viewer),
        last_message=(
            summarize_message(record.last_message, record, viewer)
            if record.last_message
            else None
        ),
        context_details=context_details or _context_details(record),
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


async def get_user_conversations(
    user_id: uuid.UUID,
    filters: ConversationFilterDTO,
    uow: UnitOfWork,
) -> ConversationPage:
    """Direct conversations of the user plus broadcasts addressed to them."""
    _validate_page(filters)
    user = await _require_user(user_id, uow)

    records = await uow.conversations.list_visible(user, filters)
    total = await uow.conversations.count_visible(user, filters)

    return ConversationPage(
        conversations=[shape_conversation(r, user) for r in records],
        pagination=PaginationDTO.build(filters.page, filters.limit, total),
    )


async def get_broadcast_conversations_for_user(
    user_id: uuid.UUID,
    filters: ConversationFilterDTO,
    uow: UnitOfWork,
) -> ConversationPage:
    """Broadcast inbox: only broadcasts whose target matches the user's role."""
    _validate_page(filters)
    user = await _require_user(user_id, uow)

    records = await uow.conversations.list_broadcasts(user.role, filters)
    total = await uow.conversations.count_broadcasts(user.role)

    return ConversationPage(
        conversations=[
            shape_conversation(
                r,
                user,
                context_details=ContextDetails(
                    type="broadcast", target=r.conversation.broadcast_target
                ),
            )
            for r in records
        ],
        pagination=PaginationDTO.build(filters.page, filters.limit, total),
    )


async def is_conversation_accessible(
    conversation_id: uuid.UUID,
    user_id: uuid.UUID,
    uow: UnitOfWork,
) -> AccessResult:
    record = await uow.conversations.get_record(conversation_id)
    user = await uow.users.get_by_id(user_id) if record is not None else None

    decision = check_access(record, user)
    if not decision.accessible:
        return AccessResult(accessible=False, reason=decision.reason)

    assert record is not None and user is not None
    return AccessResult(accessible=True, conversation=shape_conversation(record, user))


async def cleanup_expired_conversations(
    uow: UnitOfWork,
    clock: Clock = system_clock,
) -> int:
    """Move every ACTIVE conversation past its ``expires_at`` to EXPIRED.

    Each row is flipped in its own savepoint so one failure does not stop
    the sweep. Returns how many rows this call actually transitioned.
    """
    now = clock.now()
    candidates = await uow.conversations.list_expirable(now)

    expired = 0
    for conversation in candidates:
        try:
            async with uow.savepoint():
                if not await uow.conversations_w.mark_expired(conversation.id):
                    continue
                await uow.outbox.add(
                    OutboxEventDTO.from_event(
                        "chat.conversation_expired",
                        ConversationExpired(
                            conversation_id=conversation.id,
                            expires_at=conversation.expires_at,
                            expired_at=now,
                        ),
                    )
                )
        except Exception:
            logger.exception("Failed to expire conversation %s", conversation.id)
            continue
        expired += 1

    await uow.commit()
    if expired:
        logger.info("Expired %d of %d conversations", expired, len(candidates))
    return expired
