from __future__ import annotations

import uuid
from typing import Any

from fastapi import WebSocket

from taskboard_realtime.application.dto.principal import Principal
from taskboard_realtime.infrastructure.ws.protocol import encode


class WsConnection:
    """A FastAPI WebSocket plus the identity verified during the handshake."""

    def __init__(self, websocket: WebSocket, principal: Principal | None = None) -> None:
        self.id = uuid.uuid4().hex
        self.principal = principal
        self._ws = websocket

    async def accept(self) -> None:
        await self._ws.accept()

    async def send(self, event: str, data: Any) -> None:
        await self._ws.send_text(encode(event, data))

    def __repr__(self) -> str:
        user = self.principal.user_id if self.principal else None
        return f"<WsConnection {self.id} user={user}>"
