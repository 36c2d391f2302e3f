"""Shared test fixtures."""
from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from adopte_chat.application.dto.conversation import (
    AdminConversationFilterDTO,
    ConversationFilterDTO,
    ConversationRecord,
)
from adopte_chat.application.dto.events import OutboxEventDTO
from adopte_chat.application.dto.principal import Principal
from adopte_chat.application.policies.visibility import (
    broadcast_targets_for_role,
    is_listed_for,
)
from adopte_chat.application.repositories.outbox import OutboxRecord
from adopte_chat.domain.entities.context_link import AdoptionRequestLink, ApplicationLink
from adopte_chat.domain.entities.conversation import Conversation
from adopte_chat.domain.entities.message import Message
from adopte_chat.domain.entities.participant import Participant
from adopte_chat.domain.entities.user import User
from adopte_chat.domain.value_objects.enums import (
    ConversationContext,
    ConversationStatus,
    Role,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = NOW) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now


def make_user(
    role: str = Role.STUDENT,
    *,
    user_id: UUID | None = None,
    email: str | None = None,
    is_active: bool = True,
    first_name: str | None = None,
    last_name: str | None = None,
    company_name: str | None = None,
) -> User:
    uid = user_id or uuid.uuid4()
    return User(
        id=uid,
        email=email or f"{str(role).lower()}-{uid.hex[:8]}@example.com",
        role=role,
        is_active=is_active,
        first_name=first_name,
        last_name=last_name,
        company_name=company_name,
    )


def make_conversation(
    *,
    conversation_id: UUID | None = None,
    topic: str = "Hello",
    context: str = ConversationContext.ADMIN_MESSAGE,
    status: str = ConversationStatus.ACTIVE,
    is_read_only: bool = False,
    broadcast_target: str | None = None,
    expires_at: datetime | None = None,
    updated_at: datetime | None = None,
) -> Conversation:
    is_broadcast = broadcast_target is not None
    return Conversation(
        id=conversation_id or uuid.uuid4(),
        topic=topic,
        context=ConversationContext.BROADCAST if is_broadcast else context,
        status=status,
        is_read_only=is_read_only or is_broadcast,
        is_broadcast=is_broadcast,
        broadcast_target=broadcast_target,
        expires_at=expires_at,
        created_at=NOW - timedelta(days=1),
        updated_at=updated_at or NOW - timedelta(days=1),
    )


def make_message(
    *,
    conversation_id: UUID,
    sender_id: UUID,
    content: str = "hello",
    created_at: datetime | None = None,
) -> Message:
    return Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        sender_id=sender_id,
        content=content,
        created_at=created_at or NOW - timedelta(hours=1),
    )


@dataclass
class FakeStore:
    conversations: dict[UUID, Conversation] = field(default_factory=dict)
    participants: list[Participant] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    users: dict[UUID, User] = field(default_factory=dict)
    adoption_requests: dict[UUID, AdoptionRequestLink] = field(default_factory=dict)
    applications: dict[UUID, ApplicationLink] = field(default_factory=dict)

    def record(self, conversation: Conversation) -> ConversationRecord:
        cid = conversation.id
        participants = tuple(
            replace(p, user=self.users.get(p.user_id))
            for p in self.participants
            if p.conversation_id == cid
        )
        messages = [m for m in self.messages if m.conversation_id == cid]
        last = max(messages, key=lambda m: m.created_at, default=None)
        if last is not None:
            last = replace(last, sender=self.users.get(last.sender_id))
        return ConversationRecord(
            conversation=conversation,
            participants=participants,
            last_message=last,
            adoption_request=self.adoption_requests.get(cid),
            application=self.applications.get(cid),
            message_count=len(messages),
        )

    def ordered(self) -> list[Conversation]:
        return sorted(
            self.conversations.values(),
            key=lambda c: (-c.updated_at.timestamp(), str(c.id)),
        )


@dataclass
class FakeConversationReader:
    _store: FakeStore

    async def get_record(self, conversation_id: UUID) -> ConversationRecord | None:
        conversation = self._store.conversations.get(conversation_id)
        return self._store.record(conversation) if conversation else None

    def _visible(self, user: User, filters: ConversationFilterDTO) -> list[ConversationRecord]:
        records = [self._store.record(c) for c in self._store.ordered()]
        return [
            r for r in records
            if is_listed_for(r, user)
            and (filters.context is None or r.conversation.context == filters.context)
            and (filters.status is None or r.conversation.status == filters.status)
        ]

    async def list_visible(
        self, user: User, filters: ConversationFilterDTO,
    ) -> list[ConversationRecord]:
        return self._visible(user, filters)[filters.offset:filters.offset + filters.limit]

    async def count_visible(self, user: User, filters: ConversationFilterDTO) -> int:
        return len(self._visible(user, filters))

    def _broadcasts(self, role: str) -> list[ConversationRecord]:
        targets = broadcast_targets_for_role(role)
        return [
            self._store.record(c)
            for c in self._store.ordered()
            if c.is_broadcast and c.broadcast_target in targets
        ]

    async def list_broadcasts(
        self, role: str, filters: ConversationFilterDTO,
    ) -> list[ConversationRecord]:
        return self._broadcasts(role)[filters.offset:filters.offset + filters.limit]

    async def count_broadcasts(self, role: str) -> int:
        return len(self._broadcasts(role))

    async def list_expirable(self, now: datetime) -> list[Conversation]:
        return [
            c for c in self._store.conversations.values()
            if c.status == ConversationStatus.ACTIVE
            and c.expires_at is not None
            and c.expires_at < now
        ]

    def _admin(self, filters: AdminConversationFilterDTO) -> list[ConversationRecord]:
        needle = (filters.search or "").lower()
        out = []
        for c in self._store.ordered():
            if filters.context is not None and c.context != filters.context:
                continue
            if needle and needle not in c.topic.lower() and not any(
                m.conversation_id == c.id and needle in m.content.lower()
                for m in self._store.messages
            ):
                continue
            out.append(self._store.record(c))
        return out

    async def list_for_admin(
        self, filters: AdminConversationFilterDTO,
    ) -> list[ConversationRecord]:
        return self._admin(filters)[filters.offset:filters.offset + filters.limit]

    async def count_for_admin(self, filters: AdminConversationFilterDTO) -> int:
        return len(self._admin(filters))


@dataclass
class FakeConversationWriter:
    _store: FakeStore
    fail_on: set[UUID] = field(default_factory=set)

    async def create(self, conversation: Conversation) -> Conversation:
        self._store.conversations[conversation.id] = conversation
        return conversation

    async def touch(self, conversation_id: UUID, ts: datetime) -> None:
        conv = self._store.conversations[conversation_id]
        self._store.conversations[conversation_id] = replace(conv, updated_at=ts)

    async def mark_expired(self, conversation_id: UUID) -> bool:
        if conversation_id in self.fail_on:
            raise RuntimeError("database unavailable")
        conv = self._store.conversations.get(conversation_id)
        if conv is None or conv.status != ConversationStatus.ACTIVE:
            return False
        self._store.conversations[conversation_id] = replace(
            conv, status=ConversationStatus.EXPIRED,
        )
        return True


@dataclass
class FakeParticipantWriter:
    _store: FakeStore

    async def add(self, participant: Participant) -> None:
        self._store.participants.append(participant)


@dataclass
class FakeMessageReader:
    _store: FakeStore

    async def list_messages(
        self, conversation_id: UUID, *, offset: int = 0, limit: int = 50,
    ) -> list[Message]:
        messages = sorted(
            (m for m in self._store.messages if m.conversation_id == conversation_id),
            key=lambda m: m.created_at,
        )
        return [
            replace(m, sender=self._store.users.get(m.sender_id))
            for m in messages[offset:offset + limit]
        ]


@dataclass
class FakeMessageWriter:
    _store: FakeStore

    async def create(self, message: Message) -> Message:
        self._store.messages.append(message)
        return message


@dataclass
class FakeUserReader:
    _store: FakeStore

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._store.users.get(user_id)

    async def count_active(self, role: str | None = None) -> int:
        return sum(
            1 for u in self._store.users.values()
            if u.is_active and (role is None or u.role == role)
        )


@dataclass
class FakeOutboxWriter:
    _records: list[OutboxEventDTO] = field(default_factory=list)
    pending: list[OutboxRecord] = field(default_factory=list)
    sent: list[int] = field(default_factory=list)
    failed: list[tuple[int, datetime]] = field(default_factory=list)

    async def add(self, event: OutboxEventDTO) -> None:
        self._records.append(event)

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        batch, self.pending = self.pending[:batch_size], self.pending[batch_size:]
        return batch

    async def mark_sent(self, ids: list[int]) -> None:
        self.sent.extend(ids)

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        self.failed.append((record_id, next_retry_at))

    @property
    def event_types(self) -> list[str]:
        return [r.event_type for r in self._records]


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    store: FakeStore = field(default_factory=FakeStore)
    outbox: FakeOutboxWriter = field(default_factory=FakeOutboxWriter)
    _committed: bool = False

    def __post_init__(self) -> None:
        self.conversations = FakeConversationReader(self.store)
        self.conversations_w = FakeConversationWriter(self.store)
        self.participants_w = FakeParticipantWriter(self.store)
        self.messages = FakeMessageReader(self.store)
        self.messages_w = FakeMessageWriter(self.store)
        self.users = FakeUserReader(self.store)

    def add_user(self, user: User) -> User:
        self.store.users[user.id] = user
        return user

    def add_conversation(
        self,
        conversation: Conversation,
        members: list[User] | tuple[User, ...] = (),
    ) -> Conversation:
        self.store.conversations[conversation.id] = conversation
        for member in members:
            self.store.participants.append(
                Participant(
                    conversation_id=conversation.id,
                    user_id=member.id,
                    joined_at=conversation.created_at,
                )
            )
        return conversation

    def add_message(self, message: Message) -> Message:
        self.store.messages.append(message)
        return message

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        yield

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        pass


def principal_for(user: User) -> Principal:
    return Principal(user_id=user.id, role=Role(user.role))


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def student() -> User:
    return make_user(Role.STUDENT, first_name="Camille", last_name="Martin")


@pytest.fixture
def company() -> User:
    return make_user(Role.COMPANY, company_name="Acme Robotics")


@pytest.fixture
def admin() -> User:
    return make_user(Role.ADMIN, email="admin@example.com", first_name="Ada", last_name="Admin")


@pytest.fixture
def uow(student: User, company: User, admin: User) -> FakeUoW:
    fake = FakeUoW()
    for user in (student, company, admin):
        fake.add_user(user)
    return fake


@pytest.fixture
def admin_principal(admin: User) -> Principal:
    return principal_for(admin)


@pytest.fixture
def student_principal(student: User) -> Principal:
    return principal_for(student)


def outbox_payloads(uow: FakeUoW, event_type: str) -> list[dict[str, Any]]:
    return [r.payload for r in uow.outbox._records if r.event_type == event_type]
