from __future__ import annotations

from typing import Collection, Iterable

from taskboard_realtime.application.uow import UnitOfWorkFactory


class DatabaseReadAckStore:
    """Read acknowledgements persisted in the `message_reads` table."""

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    async def ensure(self, user_id: str) -> None:
        # Rows are created on first acknowledgement.
        return None

    async def add(self, user_id: str, message_ids: Iterable[str]) -> None:
        ids = list(message_ids)
        if not ids:
            return
        async with self._uow_factory() as uow:
            await uow.read_acks.add_many(user_id, ids)
            await uow.commit()

    async def snapshot(self, user_ids: Collection[str]) -> dict[str, set[str]]:
        async with self._uow_factory() as uow:
            return await uow.read_acks.list_for_users(user_ids)
