"""Connection registry: which connections belong to which online user."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class OnlineUser:
    user_id: str
    username: str

    def as_payload(self) -> dict[str, str]:
        return {"userId": self.user_id, "username": self.username}


class ConnectionRegistry:
    """Two maps kept in lockstep.

    A user id is a key of ``_by_user`` iff at least one connection id in
    ``_by_connection`` points at it. Methods never await, so every update is
    atomic with respect to the event loop.
    """

    def __init__(self) -> None:
        self._by_connection: dict[str, OnlineUser] = {}
        self._by_user: dict[str, set[str]] = {}

    def attach(self, connection_id: str, user: OnlineUser) -> bool:
        """Bind a connection to a user. Returns True on the user's first connection."""
        previous = self._by_connection.get(connection_id)
        if previous is not None and previous.user_id != user.user_id:
            self.detach(connection_id)
        self._by_connection[connection_id] = user
        connections = self._by_user.get(user.user_id)
        if connections is None:
            self._by_user[user.user_id] = {connection_id}
            return True
        connections.add(connection_id)
        return False

    def detach(self, connection_id: str) -> tuple[OnlineUser | None, bool]:
        """Unbind a connection. Returns (user, went_offline)."""
        user = self._by_connection.pop(connection_id, None)
        if user is None:
            return None, False
        connections = self._by_user.get(user.user_id)
        if connections is not None:
            connections.discard(connection_id)
            if not connections:
                del self._by_user[user.user_id]
                return user, True
        return user, False

    def get(self, connection_id: str) -> OnlineUser | None:
        return self._by_connection.get(connection_id)

    def is_online(self, user_id: str) -> bool:
        return user_id in self._by_user

    def connections_of(self, user_id: str) -> frozenset[str]:
        return frozenset(self._by_user.get(user_id, ()))

    def online_user_ids(self) -> list[str]:
        return list(self._by_user)

    def online_users(self, *, exclude_user_id: str | None = None) -> list[OnlineUser]:
        """One entry per online user, in order of first connection."""
        seen: dict[str, OnlineUser] = {}
        for user in self._by_connection.values():
            if user.user_id == exclude_user_id or user.user_id in seen:
                continue
            seen[user.user_id] = user
        return list(seen.values())

    def __len__(self) -> int:
        return len(self._by_user)
