from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Callable, Protocol

from taskboard_realtime.application.repositories.message import MessageReader, MessageWriter
from taskboard_realtime.application.repositories.read_state import ReadAckRepository
from taskboard_realtime.application.repositories.user import UserReader


class UnitOfWork(Protocol):
    users: UserReader
    messages: MessageReader
    messages_w: MessageWriter
    read_acks: ReadAckRepository

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...


UnitOfWorkFactory = Callable[[], AbstractAsyncContextManager[UnitOfWork]]
