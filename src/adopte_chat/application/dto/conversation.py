from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from adopte_chat.domain.entities.context_link import AdoptionRequestLink, ApplicationLink
from adopte_chat.domain.entities.conversation import Conversation
from adopte_chat.domain.entities.message import Message
from adopte_chat.domain.entities.participant import Participant
from adopte_chat.domain.entities.user import User
from adopte_chat.domain.value_objects.enums import ConversationContext, ConversationStatus


@dataclass(frozen=True, slots=True)
class ConversationFilterDTO:
    page: int = 1
    limit: int = 20
    context: ConversationContext | None = None
    status: ConversationStatus | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True, slots=True)
class AdminConversationFilterDTO:
    page: int = 1
    limit: int = 15
    search: str | None = None
    context: ConversationContext | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True, slots=True)
class ConversationRecord:
    """A conversation loaded together with everything needed to decide and shape it."""

    conversation: Conversation
    participants: tuple[Participant, ...] = ()
    last_message: Message | None = None
    adoption_request: AdoptionRequestLink | None = None
    application: ApplicationLink | None = None
    message_count: int = 0

    def has_participant(self, user_id: UUID) -> bool:
        return any(p.user_id == user_id for p in self.participants)


@dataclass(frozen=True, slots=True)
class UserSummary:
    id: str
    email: str
    role: str
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None

    @classmethod
    def from_user(cls, user: User) -> UserSummary:
        return cls(
            id=str(user.id),
            email=user.email,
            role=user.role,
            first_name=user.first_name,
            last_name=user.last_name,
            company_name=user.company_name,
        )


@dataclass(frozen=True, slots=True)
class ParticipantSummary:
    id: str
    user_id: str
    conversation_id: UUID
    joined_at: datetime
    user: UserSummary | None


@dataclass(frozen=True, slots=True)
class MessageSummary:
    id: UUID
    conversation_id: UUID
    sender_id: UUID | str
    content: str
    created_at: datetime
    sender: UserSummary | None = None

    @classmethod
    def from_message(cls, message: Message) -> MessageSummary:
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            content=message.content,
            created_at=message.created_at,
            sender=UserSummary.from_user(message.sender) if message.sender else None,
        )


@dataclass(frozen=True, slots=True)
class ContextDetails:
    type: str
    status: str | None = None
    company_name: str | None = None
    offer_title: str | None = None
    target: str | None = None


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    id: UUID
    topic: str
    context: str
    status: str
    is_read_only: bool
    is_broadcast: bool
    broadcast_target: str | None
    expires_at: datetime | None
    participants: list[ParticipantSummary]
    last_message: MessageSummary | None
    context_details: ContextDetails | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class PaginationDTO:
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> PaginationDTO:
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


@dataclass(frozen=True, slots=True)
class ConversationPage:
    conversations: list[ConversationSummary] = field(default_factory=list)
    pagination: PaginationDTO = field(default_factory=lambda: PaginationDTO(1, 20, 0, 0))


@dataclass(frozen=True, slots=True)
class AccessResult:
    accessible: bool
    reason: str | None = None
    conversation: ConversationSummary | None = None


@dataclass(frozen=True, slots=True)
class AdminParticipantSummary:
    id: str
    email: str
    role: str
    name: str


@dataclass(frozen=True, slots=True)
class AdminConversationSummary:
    id: UUID
    topic: str
    context: str
    status: str
    participants: list[AdminParticipantSummary]
    last_message: MessageSummary | None
    message_count: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class AdminConversationPage:
    conversations: list[AdminConversationSummary]
    pagination: PaginationDTO


@dataclass(frozen=True, slots=True)
class BroadcastResult:
    conversation_id: UUID
    sent_to: int
