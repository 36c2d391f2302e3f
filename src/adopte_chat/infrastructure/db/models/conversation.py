from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Index, String, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from adopte_chat.infrastructure.db.base import Base


class ConversationModel(Base):
    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    context: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="ACTIVE", server_default=text("'ACTIVE'"),
    )
    is_read_only: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )
    is_broadcast: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )
    broadcast_target: Mapped[str | None] = mapped_column(String(20), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
        onupdate=text("now()"),
    )

    # relationships
    participants = relationship("ParticipantModel", back_populates="conversation", lazy="noload")
    messages = relationship("MessageModel", back_populates="conversation", lazy="noload")
    adoption_request = relationship(
        "AdoptionRequestModel", back_populates="conversation", uselist=False, lazy="noload",
    )
    application = relationship(
        "ApplicationModel", back_populates="conversation", uselist=False, lazy="noload",
    )

    __table_args__ = (
        Index("ix_conversations_updated_at", updated_at.desc()),
        Index("ix_conversations_broadcast", "is_broadcast", "broadcast_target"),
        Index("ix_conversations_status_expires", "status", "expires_at"),
    )
