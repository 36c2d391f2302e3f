from __future__ import annotations

from adopte_chat.application.dto.conversation import ConversationRecord
from adopte_chat.domain.entities.context_link import AdoptionRequestLink, ApplicationLink
from adopte_chat.domain.entities.conversation import Conversation
from adopte_chat.domain.entities.message import Message
from adopte_chat.infrastructure.db.mappers import participant as participant_mapper
from adopte_chat.infrastructure.db.models.context import AdoptionRequestModel, ApplicationModel
from adopte_chat.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        topic=model.topic,
        context=model.context,
        status=model.status,
        is_read_only=model.is_read_only,
        is_broadcast=model.is_broadcast,
        broadcast_target=model.broadcast_target,
        expires_at=model.expires_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_model(entity: Conversation) -> ConversationModel:
    return ConversationModel(
        id=entity.id,
        topic=entity.topic,
        context=entity.context,
        status=entity.status,
        is_read_only=entity.is_read_only,
        is_broadcast=entity.is_broadcast,
        broadcast_target=entity.broadcast_target,
        expires_at=entity.expires_at,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )


def _adoption_request_link(model: AdoptionRequestModel | None) -> AdoptionRequestLink | None:
    if model is None:
        return None
    return AdoptionRequestLink(
        status=model.status,
        company_name=model.company.name if model.company else None,
    )


def _application_link(model: ApplicationModel | None) -> ApplicationLink | None:
    if model is None:
        return None
    offer = model.offer
    return ApplicationLink(
        status=model.status,
        offer_title=offer.title if offer else None,
        company_name=offer.company.name if offer and offer.company else None,
    )


def model_to_record(
    model: ConversationModel,
    *,
    last_message: Message | None = None,
    message_count: int = 0,
) -> ConversationRecord:
    """Requires participants (with users) and context links to be eagerly loaded."""
    return ConversationRecord(
        conversation=model_to_entity(model),
        participants=tuple(participant_mapper.model_to_entity(p) for p in model.participants),
        last_message=last_message,
        adoption_request=_adoption_request_link(model.adoption_request),
        application=_application_link(model.application),
        message_count=message_count,
    )
