"""Unread message counts per (viewer, sender) pair of online users.

Counts are recomputed from the full message history on every trigger instead
of being maintained incrementally, so a missed event or a reconnect can never
leave a client with drifted numbers. The cost is O(messages x online users)
per recomputation, which bounds how far this scales.
"""
from __future__ import annotations

import logging
import uuid
from typing import AbstractSet, Iterable, Mapping, Sequence

from taskboard_realtime.application.exceptions import NotFoundError, ValidationError
from taskboard_realtime.application.repositories.read_state import ReadAckStore
from taskboard_realtime.application.uow import UnitOfWorkFactory
from taskboard_realtime.domain.entities.message import Message
from taskboard_realtime.infrastructure.ws.manager import ConnectionManager

logger = logging.getLogger(__name__)

UNREAD_COUNTS_EVENT = "unread:counts"

UnreadCounts = dict[str, dict[str, int]]


def compute_unread_counts(
    messages: Iterable[Message],
    online_user_ids: Sequence[str],
    read_sets: Mapping[str, AbstractSet[str]],
) -> UnreadCounts:
    """Return ``counts[viewer][sender]`` for every pair of distinct online users.

    Messages whose sender is not online are not counted.
    """
    online = list(dict.fromkeys(online_user_ids))
    online_set = set(online)
    counts: UnreadCounts = {
        viewer: {sender: 0 for sender in online if sender != viewer}
        for viewer in online
    }
    for message in messages:
        sender = message.sender_id
        if sender not in online_set:
            continue
        message_id = str(message.id)
        for viewer in online:
            if viewer == sender:
                continue
            if message_id not in read_sets.get(viewer, ()):
                counts[viewer][sender] += 1
    return counts


class UnreadCountEngine:
    def __init__(
        self,
        manager: ConnectionManager,
        read_acks: ReadAckStore,
        uow_factory: UnitOfWorkFactory,
    ) -> None:
        self._manager = manager
        self._read_acks = read_acks
        self._uow_factory = uow_factory

    async def ensure_read_set(self, user_id: str) -> None:
        await self._read_acks.ensure(user_id)

    async def recompute_and_push(self) -> None:
        """Push every online user's counts to their personal channel.

        Best-effort: failures are logged, the next trigger recomputes anyway.
        """
        online = self._manager.registry.online_user_ids()
        if not online:
            return
        try:
            counts = await self._compute(online)
        except Exception:
            logger.exception("Error calculating unread counts")
            return
        for viewer in online:
            await self._manager.send_to_user(viewer, UNREAD_COUNTS_EVENT, counts[viewer])

    async def mark_read(self, user_id: str, message_ids: Sequence[str]) -> None:
        """Acknowledge messages as read by ``user_id`` and push fresh counts.

        Every id must refer to an existing message; otherwise nothing is
        recorded.
        """
        ids = await self._resolve_existing(message_ids)
        await self._read_acks.add(user_id, ids)
        logger.debug("User %s acknowledged %d message(s)", user_id, len(ids))
        await self.recompute_and_push()

    async def counts_for(self, user_id: str) -> dict[str, int]:
        online = self._manager.registry.online_user_ids()
        if user_id not in online:
            online.append(user_id)
        counts = await self._compute(online)
        return counts[user_id]

    async def _compute(self, online: list[str]) -> UnreadCounts:
        async with self._uow_factory() as uow:
            messages = await uow.messages.list_all()
        read_sets = await self._read_acks.snapshot(online)
        return compute_unread_counts(messages, online, read_sets)

    async def _resolve_existing(self, message_ids: Sequence[str]) -> list[str]:
        parsed: list[uuid.UUID] = []
        for raw in dict.fromkeys(message_ids):
            try:
                parsed.append(uuid.UUID(str(raw)))
            except ValueError:
                raise ValidationError(f"Invalid message id: {raw}") from None
        if not parsed:
            return []
        async with self._uow_factory() as uow:
            for message_id in parsed:
                if await uow.messages.get_by_id(message_id) is None:
                    raise NotFoundError(f"Message not found with id of {message_id}")
        return [str(mid) for mid in parsed]
