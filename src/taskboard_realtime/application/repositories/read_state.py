from __future__ import annotations

from typing import Collection, Iterable, Protocol


class ReadAckRepository(Protocol):
    """Persistent per-user set of acknowledged message ids."""

    async def list_for_users(self, user_ids: Collection[str]) -> dict[str, set[str]]: ...

    async def add_many(self, user_id: str, message_ids: Iterable[str]) -> None: ...


class ReadAckStore(Protocol):
    """Read-acknowledgement sets consumed by the unread-count engine."""

    async def ensure(self, user_id: str) -> None: ...

    async def add(self, user_id: str, message_ids: Iterable[str]) -> None: ...

    async def snapshot(self, user_ids: Collection[str]) -> dict[str, set[str]]: ...
