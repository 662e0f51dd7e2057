from __future__ import annotations

import jwt

from taskboard_realtime.application.dto.principal import Principal


class HS256Verifier:
    """Verify JWTs signed with the main backend's shared secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        return Principal.from_claims(claims)
