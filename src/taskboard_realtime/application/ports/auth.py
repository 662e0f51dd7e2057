from __future__ import annotations

from typing import Protocol

from taskboard_realtime.application.dto.principal import Principal


class TokenVerifier(Protocol):
    """Turns a bearer token (REST header or `?token=` on the socket handshake) into a principal.

    Implementations raise on a missing, malformed or expired token.
    """

    async def verify(self, token: str) -> Principal: ...
