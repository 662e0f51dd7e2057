from __future__ import annotations

from taskboard_realtime.domain.entities.message import Message
from taskboard_realtime.domain.value_objects.attachment import FileDescriptor
from taskboard_realtime.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        sender_id=model.user_id,
        text=model.text,
        file=FileDescriptor.from_dict(model.file) if model.file else None,
        created_at=model.created_at,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        user_id=entity.sender_id,
        text=entity.text,
        file=entity.file.to_dict() if entity.file else None,
        created_at=entity.created_at,
    )
