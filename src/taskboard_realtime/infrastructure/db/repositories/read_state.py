from __future__ import annotations

from typing import Collection, Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard_realtime.infrastructure.db.models.message_read import MessageReadModel


class ReadAckRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_users(self, user_ids: Collection[str]) -> dict[str, set[str]]:
        acks: dict[str, set[str]] = {uid: set() for uid in user_ids}
        if not acks:
            return acks
        stmt = select(MessageReadModel.user_id, MessageReadModel.message_id).where(
            MessageReadModel.user_id.in_(list(acks)),
        )
        result = await self._session.execute(stmt)
        for user_id, message_id in result.all():
            acks[user_id].add(str(message_id))
        return acks

    async def add_many(self, user_id: str, message_ids: Iterable[str]) -> None:
        rows = [
            {"user_id": user_id, "message_id": UUID(mid)}
            for mid in dict.fromkeys(message_ids)
        ]
        if not rows:
            return
        stmt = pg_insert(MessageReadModel).values(rows).on_conflict_do_nothing(
            index_elements=["user_id", "message_id"],
        )
        await self._session.execute(stmt)
