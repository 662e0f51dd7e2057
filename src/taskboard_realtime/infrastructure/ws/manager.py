"""In-process WebSocket connection manager and channel router."""
from __future__ import annotations

import logging
from typing import Any, Iterable

from taskboard_realtime.application.ports.realtime import RealtimeConnection
from taskboard_realtime.domain.value_objects.channels import user_channel
from taskboard_realtime.infrastructure.ws.registry import ConnectionRegistry, OnlineUser

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks live connections, their owners and their channel subscriptions.

    Delivery is best-effort: a connection that fails to receive is logged and
    skipped, the rest of the fan-out still goes out. Dead connections are
    removed by their own read loop, not here.
    """

    def __init__(self) -> None:
        self.registry = ConnectionRegistry()
        self._connections: dict[str, RealtimeConnection] = {}
        self._channels: dict[str, dict[str, None]] = {}
        self._memberships: dict[str, set[str]] = {}

    async def connect(self, conn: RealtimeConnection) -> None:
        await conn.accept()
        self._connections[conn.id] = conn
        self._memberships[conn.id] = set()
        logger.debug("WS connected: %s (total=%d)", conn.id, len(self._connections))

    def disconnect(self, connection_id: str) -> tuple[OnlineUser | None, bool]:
        """Forget a connection. Returns (user, went_offline) from the registry."""
        self._connections.pop(connection_id, None)
        for channel in self._memberships.pop(connection_id, set()):
            self._drop_member(channel, connection_id)
        user, went_offline = self.registry.detach(connection_id)
        logger.debug("WS disconnected: %s (user=%s)", connection_id, user.user_id if user else None)
        return user, went_offline

    def get(self, connection_id: str) -> RealtimeConnection | None:
        return self._connections.get(connection_id)

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._connections

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def join(self, connection_id: str, channel: str) -> None:
        if connection_id not in self._connections:
            return
        # dict keeps subscription order, so fan-out order is stable
        self._channels.setdefault(channel, {})[connection_id] = None
        self._memberships[connection_id].add(channel)

    def leave(self, connection_id: str, channel: str) -> None:
        memberships = self._memberships.get(connection_id)
        if memberships is not None:
            memberships.discard(channel)
        self._drop_member(channel, connection_id)

    def members(self, channel: str) -> list[str]:
        return list(self._channels.get(channel, {}))

    def channels_of(self, connection_id: str) -> frozenset[str]:
        return frozenset(self._memberships.get(connection_id, ()))

    async def publish(
        self,
        channel: str,
        event: str,
        data: Any,
        *,
        exclude: str | None = None,
    ) -> None:
        """Send an event to every subscriber of a channel."""
        targets = [cid for cid in self._channels.get(channel, {}) if cid != exclude]
        await self._deliver(targets, event, data)

    async def broadcast(self, event: str, data: Any, *, exclude: str | None = None) -> None:
        """Send an event to every live connection."""
        targets = [cid for cid in self._connections if cid != exclude]
        await self._deliver(targets, event, data)

    async def send_to_user(self, user_id: str, event: str, data: Any) -> None:
        await self.publish(user_channel(user_id), event, data)

    async def send(self, connection_id: str, event: str, data: Any) -> None:
        """Unicast. Silently does nothing if the connection is gone."""
        await self._deliver([connection_id], event, data)

    async def _deliver(self, connection_ids: Iterable[str], event: str, data: Any) -> None:
        for cid in connection_ids:
            conn = self._connections.get(cid)
            if conn is None:
                continue
            try:
                await conn.send(event, data)
            except Exception:
                logger.warning("Failed to deliver %s to %s", event, cid, exc_info=True)

    def _drop_member(self, channel: str, connection_id: str) -> None:
        members = self._channels.get(channel)
        if members is None:
            return
        members.pop(connection_id, None)
        if not members:
            del self._channels[channel]
