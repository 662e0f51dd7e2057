from __future__ import annotations

from typing import Protocol

from taskboard_realtime.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: str) -> User | None: ...

    async def get_many(self, user_ids: list[str]) -> dict[str, User]: ...
