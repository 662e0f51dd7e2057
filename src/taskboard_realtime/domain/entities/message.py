from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from taskboard_realtime.domain.value_objects.attachment import FileDescriptor

MAX_TEXT_LENGTH = 1000


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    sender_id: str
    text: str
    file: FileDescriptor | None
    created_at: datetime
