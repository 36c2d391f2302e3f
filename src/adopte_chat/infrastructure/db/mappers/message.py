from __future__ import annotations

from adopte_chat.domain.entities.message import Message
from adopte_chat.infrastructure.db.mappers import user as user_mapper
from adopte_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_id=model.sender_id,
        content=model.content,
        created_at=model.created_at,
        sender=user_mapper.model_to_entity(model.sender) if model.sender else None,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        conversation_id=entity.conversation_id,
        sender_id=entity.sender_id,
        content=entity.content,
        created_at=entity.created_at,
    )
