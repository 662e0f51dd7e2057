from __future__ import annotations

from typing import Protocol
from uuid import UUID

from taskboard_realtime.domain.entities.message import Message


class MessageReader(Protocol):
    async def get_by_id(self, message_id: UUID) -> Message | None: ...

    async def list_all(self) -> list[Message]:
        """Full history, oldest first."""
        ...

    async def list_recent(self, limit: int = 50) -> list[Message]:
        """The newest `limit` messages, oldest first."""
        ...


class MessageWriter(Protocol):
    async def create(self, message: Message) -> Message: ...
