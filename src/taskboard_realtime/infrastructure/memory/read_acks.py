from __future__ import annotations

from typing import Collection, Iterable


class InMemoryReadAckStore:
    """Read acknowledgements kept in process memory.

    Everything is lost on restart: after a restart the whole history counts
    as unread again.
    """

    def __init__(self) -> None:
        self._acks: dict[str, set[str]] = {}

    async def ensure(self, user_id: str) -> None:
        self._acks.setdefault(user_id, set())

    async def add(self, user_id: str, message_ids: Iterable[str]) -> None:
        self._acks.setdefault(user_id, set()).update(message_ids)

    async def snapshot(self, user_ids: Collection[str]) -> dict[str, set[str]]:
        return {uid: set(self._acks.get(uid, ())) for uid in user_ids}
