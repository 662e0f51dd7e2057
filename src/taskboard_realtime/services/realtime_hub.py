"""Presence, channels and live chat on top of the connection manager.

One hub is created per process and shared by every WebSocket handler.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

from taskboard_realtime.application.exceptions import (
    AppError,
    ForbiddenError,
    UnauthenticatedError,
    ValidationError,
)
from taskboard_realtime.application.ports.realtime import RealtimeConnection
from taskboard_realtime.application.uow import UnitOfWorkFactory
from taskboard_realtime.domain.value_objects.attachment import FileDescriptor
from taskboard_realtime.domain.value_objects.channels import (
    GLOBAL_CHANNEL,
    typing_channel,
    user_channel,
)
from taskboard_realtime.infrastructure.ws.manager import ConnectionManager
from taskboard_realtime.infrastructure.ws.registry import ConnectionRegistry, OnlineUser
from taskboard_realtime.services import message_service
from taskboard_realtime.services.unread_service import UnreadCountEngine

logger = logging.getLogger(__name__)


class RealtimeHub:
    def __init__(
        self,
        manager: ConnectionManager,
        unread: UnreadCountEngine,
        uow_factory: UnitOfWorkFactory,
    ) -> None:
        self.manager = manager
        self.unread = unread
        self._uow_factory = uow_factory

    @property
    def registry(self) -> ConnectionRegistry:
        return self.manager.registry

    async def connect(self, conn: RealtimeConnection) -> None:
        await self.manager.connect(conn)

    async def disconnect(self, connection_id: str) -> None:
        user, went_offline = self.manager.disconnect(connection_id)
        if user is None:
            logger.debug("Client disconnected: %s", connection_id)
            return
        logger.info("User disconnected: %s (%s)", user.username, user.user_id)
        if went_offline:
            await self.manager.broadcast("user:offline", user.as_payload())

    async def authenticate(self, connection_id: str, user_id: str, username: str) -> None:
        conn = self.manager.get(connection_id)
        if conn is None:
            return
        if not user_id:
            raise ValidationError("userId is required")
        if conn.principal is not None and conn.principal.user_id != user_id:
            raise ForbiddenError("userId does not match the connection token")

        previous = self.registry.get(connection_id)
        if previous is not None and previous.user_id != user_id:
            self.manager.leave(connection_id, user_channel(previous.user_id))
            _, went_offline = self.registry.detach(connection_id)
            if went_offline:
                await self.manager.broadcast(
                    "user:offline", previous.as_payload(), exclude=connection_id,
                )

        user = OnlineUser(user_id=user_id, username=username)
        first_connection = self.registry.attach(connection_id, user)
        logger.info("User authenticated: %s (%s)", username, user_id)

        if first_connection:
            await self.manager.broadcast("user:online", user.as_payload(), exclude=connection_id)

        self.manager.join(connection_id, user_channel(user_id))
        self.manager.join(connection_id, GLOBAL_CHANNEL)

        others = self.registry.online_users(exclude_user_id=user_id)
        await self.manager.send(connection_id, "users:online", [u.as_payload() for u in others])

        await self.unread.ensure_read_set(user_id)
        await self.unread.recompute_and_push()

    def join(self, connection_id: str, channel: str) -> None:
        logger.debug("Socket %s joined %s", connection_id, channel)
        self.manager.join(connection_id, channel)

    def leave(self, connection_id: str, channel: str) -> None:
        logger.debug("Socket %s left %s", connection_id, channel)
        self.manager.leave(connection_id, channel)

    async def typing(self, connection_id: str, task_key: str, is_typing: bool) -> None:
        user = self._require_user(connection_id)
        await self.manager.publish(
            typing_channel(task_key),
            "comment:typing",
            {"taskId": task_key, "user": user.as_payload(), "isTyping": is_typing},
            exclude=connection_id,
        )

    async def send_message(
        self,
        connection_id: str,
        text: str | None,
        file: FileDescriptor | None,
        temp_id: Any = None,
    ) -> None:
        user = self._require_user(connection_id)
        try:
            async with self._uow_factory() as uow:
                message, sender = await message_service.send_message(
                    user.user_id, text, file, uow,
                )
        except AppError:
            raise
        except Exception as exc:
            logger.exception("Error sending message for %s", user.user_id)
            raise AppError(f"Failed to send message: {exc}") from exc

        payload = message_service.message_payload(message, sender)
        echo = payload if temp_id is None else {**payload, "tempId": temp_id}
        # The sender may have disconnected while the store was busy.
        await self.manager.send(connection_id, "newMessage", echo)
        await self.manager.broadcast("newMessage", payload, exclude=connection_id)
        await self.unread.recompute_and_push()

    async def mark_read(self, connection_id: str, message_ids: Sequence[str]) -> None:
        user = self._require_user(connection_id)
        await self.unread.mark_read(user.user_id, message_ids)

    async def request_unread(self, connection_id: str) -> None:
        logger.debug("Unread counts requested by %s", connection_id)
        await self.unread.recompute_and_push()

    def _require_user(self, connection_id: str) -> OnlineUser:
        user = self.registry.get(connection_id)
        if user is None:
            raise UnauthenticatedError()
        return user
