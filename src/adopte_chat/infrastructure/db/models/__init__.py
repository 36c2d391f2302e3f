"""Import all models so Alembic can discover them via Base.metadata."""
from adopte_chat.infrastructure.db.models.context import (
    AdoptionRequestModel,
    ApplicationModel,
    OfferModel,
)
from adopte_chat.infrastructure.db.models.conversation import ConversationModel
from adopte_chat.infrastructure.db.models.message import MessageModel
from adopte_chat.infrastructure.db.models.outbox import OutboxMessageModel
from adopte_chat.infrastructure.db.models.participant import ParticipantModel
from adopte_chat.infrastructure.db.models.user import (
    CompanyModel,
    StudentProfileModel,
    UserModel,
)

__all__ = [
    "AdoptionRequestModel",
    "ApplicationModel",
    "CompanyModel",
    "ConversationModel",
    "MessageModel",
    "OfferModel",
    "OutboxMessageModel",
    "ParticipantModel",
    "StudentProfileModel",
    "UserModel",
]
