from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from taskboard_realtime.application.exceptions import NotFoundError, ValidationError
from taskboard_realtime.application.uow import UnitOfWork
from taskboard_realtime.domain.entities.message import MAX_TEXT_LENGTH, Message
from taskboard_realtime.domain.entities.user import User
from taskboard_realtime.domain.value_objects.attachment import FileDescriptor


async def send_message(
    sender_id: str,
    text: str | None,
    file: FileDescriptor | None,
    uow: UnitOfWork,
) -> tuple[Message, User]:
    """Persist a chat message and return it with its sender's display data."""
    text = (text or "").strip()
    if not text and file is None:
        raise ValidationError("Message must have text or a file")
    if len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(f"Message cannot be more than {MAX_TEXT_LENGTH} characters")

    sender = await uow.users.get_by_id(sender_id)
    if sender is None:
        raise NotFoundError("User not found")

    msg = Message(
        id=uuid.uuid4(),
        sender_id=sender.id,
        text=text,
        file=file,
        created_at=datetime.now(timezone.utc),
    )
    msg = await uow.messages_w.create(msg)
    await uow.commit()
    return msg, sender


async def list_recent(
    limit: int,
    uow: UnitOfWork,
) -> list[tuple[Message, User | None]]:
    messages = await uow.messages.list_recent(limit)
    senders = await uow.users.get_many(sorted({m.sender_id for m in messages}))
    return [(m, senders.get(m.sender_id)) for m in messages]


def message_payload(message: Message, sender: User | None) -> dict[str, Any]:
    """Wire shape shared by the socket events and the REST history."""
    return {
        "id": str(message.id),
        "text": message.text,
        "file": message.file.to_dict() if message.file else None,
        "user": {
            "id": message.sender_id,
            "name": sender.name if sender else None,
            "avatar": sender.avatar if sender else None,
        },
        "created_at": message.created_at.isoformat(),
    }
