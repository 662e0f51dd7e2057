from __future__ import annotations

from dataclasses import dataclass

DEFAULT_AVATAR = "https://api.dicebear.com/7.x/avataaars/svg"


@dataclass(frozen=True, slots=True)
class User:
    """Display data of a user account owned by the main backend."""

    id: str
    name: str
    avatar: str = DEFAULT_AVATAR
