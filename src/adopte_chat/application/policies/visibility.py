"""Who sees a conversation, who may open it, and who may write in it.

Broadcast audiences are never stored: the creator admin is the only
participant row and everyone else is matched by role at read time.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from adopte_chat.application.dto.conversation import ConversationRecord
from adopte_chat.application.exceptions import ValidationError
from adopte_chat.domain.entities.user import User
from adopte_chat.domain.value_objects.enums import BroadcastTarget, ConversationStatus, Role

CONVERSATION_NOT_FOUND = "Conversation not found"
USER_NOT_FOUND = "User not found"
NOT_A_PARTICIPANT = "Not a participant"
WRONG_BROADCAST_ROLE = "Broadcast not intended for your role"
NOT_ACTIVE = "Conversation is no longer active"
READ_ONLY = "Conversation is read-only"

_ROLE_TARGETS: dict[str, tuple[BroadcastTarget, ...]] = {
    Role.STUDENT: (BroadcastTarget.ALL, BroadcastTarget.STUDENTS),
    Role.COMPANY: (BroadcastTarget.ALL, BroadcastTarget.COMPANIES),
    Role.ADMIN: (BroadcastTarget.ALL,),
}

_TARGET_BY_ROLE: dict[str, BroadcastTarget] = {
    Role.STUDENT: BroadcastTarget.STUDENTS,
    Role.COMPANY: BroadcastTarget.COMPANIES,
}


@dataclass(frozen=True, slots=True)
class AccessDecision:
    accessible: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> AccessDecision:
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> AccessDecision:
        return cls(False, reason)


def broadcast_targets_for_role(role: str) -> tuple[BroadcastTarget, ...]:
    """Broadcast targets whose audience includes users of ``role``."""
    return _ROLE_TARGETS.get(role, (BroadcastTarget.ALL,))


def resolve_broadcast_target(target_role: str | None) -> BroadcastTarget:
    """Map an admin-facing role choice (STUDENT / COMPANY / ALL / None) to a target."""
    if target_role is None:
        return BroadcastTarget.ALL
    if target_role in BroadcastTarget.__members__.values():
        return BroadcastTarget(target_role)
    if target_role not in _TARGET_BY_ROLE:
        raise ValidationError(f"Invalid target role: {target_role}")
    return _TARGET_BY_ROLE[target_role]


def role_matches_target(role: str, target: str | None) -> bool:
    return target is not None and target in broadcast_targets_for_role(role)


def is_listed_for(record: ConversationRecord, user: User) -> bool:
    conversation = record.conversation
    is_member = record.has_participant(user.id)
    if not conversation.is_broadcast:
        return is_member
    return is_member or role_matches_target(user.role, conversation.broadcast_target)


def check_access(record: ConversationRecord | None, user: User | None) -> AccessDecision:
    if record is None:
        return AccessDecision.deny(CONVERSATION_NOT_FOUND)
    if user is None:
        return AccessDecision.deny(USER_NOT_FOUND)

    conversation = record.conversation
    if conversation.is_broadcast:
        # The creator keeps access to archived and expired broadcasts.
        if user.role == Role.ADMIN and record.has_participant(user.id):
            return AccessDecision.allow()
        if not role_matches_target(user.role, conversation.broadcast_target):
            return AccessDecision.deny(WRONG_BROADCAST_ROLE)
        return AccessDecision.allow()

    if not record.has_participant(user.id):
        return AccessDecision.deny(NOT_A_PARTICIPANT)
    return AccessDecision.allow()


def is_closed(record: ConversationRecord, now: datetime) -> bool:
    """Not ACTIVE any more, or past its deadline and waiting for the sweep."""
    conversation = record.conversation
    if conversation.status != ConversationStatus.ACTIVE:
        return True
    return conversation.expires_at is not None and conversation.expires_at < now


def check_can_post(
    record: ConversationRecord | None,
    user: User | None,
    now: datetime,
) -> AccessDecision:
    decision = check_access(record, user)
    if not decision.accessible:
        return decision
    assert record is not None and user is not None

    if is_closed(record, now):
        return AccessDecision.deny(NOT_ACTIVE)
    if record.conversation.is_read_only:
        if user.role != Role.ADMIN or not record.has_participant(user.id):
            return AccessDecision.deny(READ_ONLY)
    return AccessDecision.allow()


def hides_sender(record: ConversationRecord, viewer: User) -> bool:
    """Broadcast recipients never learn which admin sent it."""
    return record.conversation.is_broadcast and viewer.role != Role.ADMIN
