from __future__ import annotations

from typing import Any, Protocol

from taskboard_realtime.application.dto.principal import Principal


class RealtimeConnection(Protocol):
    """One client transport session as seen by the connection manager."""

    id: str
    principal: Principal | None

    async def accept(self) -> None: ...

    async def send(self, event: str, data: Any) -> None: ...
