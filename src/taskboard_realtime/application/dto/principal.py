from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: str

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> Principal:
        # Tokens issued by the main backend carry the user id as "id".
        subject = claims.get("sub", claims.get("id"))
        if subject is None or str(subject) == "":
            raise ValueError("Token has no subject")
        return cls(user_id=str(subject))
