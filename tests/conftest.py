"""Shared test fixtures."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Collection, Iterable
from uuid import UUID

import pytest

from taskboard_realtime.application.dto.principal import Principal
from taskboard_realtime.domain.entities.message import Message
from taskboard_realtime.domain.entities.user import User
from taskboard_realtime.infrastructure.memory.read_acks import InMemoryReadAckStore
from taskboard_realtime.infrastructure.ws.manager import ConnectionManager
from taskboard_realtime.services.realtime_hub import RealtimeHub
from taskboard_realtime.services.unread_service import UnreadCountEngine

_BASE_TIME = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def make_message(
    *,
    sender_id: str = "u1",
    text: str = "hello",
    message_id: UUID | None = None,
    minute: int = 0,
) -> Message:
    return Message(
        id=message_id or uuid.uuid4(),
        sender_id=sender_id,
        text=text,
        file=None,
        created_at=_BASE_TIME + timedelta(minutes=minute),
    )


@dataclass
class FakeUserReader:
    _users: dict[str, User] = field(default_factory=dict)

    async def get_by_id(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def get_many(self, user_ids: list[str]) -> dict[str, User]:
        return {uid: self._users[uid] for uid in user_ids if uid in self._users}


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    async def get_by_id(self, message_id: UUID) -> Message | None:
        for m in self._messages:
            if m.id == message_id:
                return m
        return None

    async def list_all(self) -> list[Message]:
        return sorted(self._messages, key=lambda m: (m.created_at, m.id))

    async def list_recent(self, limit: int = 50) -> list[Message]:
        return (await self.list_all())[-limit:]


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    fail_with: Exception | None = None

    async def create(self, message: Message) -> Message:
        if self.fail_with is not None:
            raise self.fail_with
        self._reader._messages.append(message)
        return message


@dataclass
class FakeReadAckRepo:
    _acks: dict[str, set[str]] = field(default_factory=dict)

    async def list_for_users(self, user_ids: Collection[str]) -> dict[str, set[str]]:
        return {uid: set(self._acks.get(uid, ())) for uid in user_ids}

    async def add_many(self, user_id: str, message_ids: Iterable[str]) -> None:
        self._acks.setdefault(user_id, set()).update(message_ids)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests. Doubles as its own factory: ``lambda: uow``."""

    users: FakeUserReader = field(default_factory=FakeUserReader)
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    read_acks: FakeReadAckRepo = field(default_factory=FakeReadAckRepo)
    commits: int = 0
    rollbacks: int = 0

    def __post_init__(self) -> None:
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    def add_user(self, user_id: str, name: str | None = None) -> User:
        user = User(id=user_id, name=name or user_id.upper())
        self.users._users[user_id] = user
        return user

    def add_message(self, message: Message) -> Message:
        self.messages._messages.append(message)
        return message

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    async def __aenter__(self) -> FakeUoW:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            await self.rollback()


@dataclass
class FakeConnection:
    """Records every envelope the server sends to it."""

    id: str
    principal: Principal | None = None
    sent: list[tuple[str, Any]] = field(default_factory=list)
    accepted: bool = False
    broken: bool = False

    async def accept(self) -> None:
        self.accepted = True

    async def send(self, event: str, data: Any) -> None:
        if self.broken:
            raise RuntimeError("connection reset")
        self.sent.append((event, data))

    def events(self, name: str) -> list[Any]:
        return [data for event, data in self.sent if event == name]

    def last(self, name: str) -> Any:
        matching = self.events(name)
        assert matching, f"{self.id} never received {name}"
        return matching[-1]

    def clear(self) -> None:
        self.sent.clear()


def build_hub(uow: FakeUoW) -> RealtimeHub:
    manager = ConnectionManager()
    engine = UnreadCountEngine(manager, InMemoryReadAckStore(), lambda: uow)
    return RealtimeHub(manager, engine, lambda: uow)


@pytest.fixture
def uow() -> FakeUoW:
    fake = FakeUoW()
    fake.add_user("u1", "Alice")
    fake.add_user("u2", "Bob")
    fake.add_user("u3", "Carol")
    return fake


@pytest.fixture
def hub(uow: FakeUoW) -> RealtimeHub:
    return build_hub(uow)


@pytest.fixture
def user_principal() -> Principal:
    return Principal(user_id="u1")
