from __future__ import annotations

import asyncio
import logging

import jwt
from jwt import PyJWKClient

from taskboard_realtime.application.dto.principal import Principal

logger = logging.getLogger(__name__)

ASYMMETRIC_ALGORITHMS = ["RS256", "ES256"]


class JWKSVerifier:
    """Verify JWTs against keys published on a JWKS endpoint."""

    def __init__(self, jwks_url: str) -> None:
        self._jwks_url = jwks_url
        self._jwk_client = PyJWKClient(jwks_url, cache_keys=True)

    async def verify(self, token: str) -> Principal:
        # Key lookup may hit the network; keep it off the event loop.
        signing_key = await asyncio.to_thread(
            self._jwk_client.get_signing_key_from_jwt, token,
        )
        claims = jwt.decode(token, signing_key.key, algorithms=ASYMMETRIC_ALGORITHMS)
        logger.debug("Verified token for subject %s via %s", claims.get("sub"), self._jwks_url)
        return Principal.from_claims(claims)
