"""Channel naming for the realtime router."""
from __future__ import annotations

from enum import StrEnum

GLOBAL_CHANNEL = "global"


class ChannelKind(StrEnum):
    BOARD = "board"
    TASK = "task"
    USER = "user"


def board_channel(board_id: str) -> str:
    return f"{ChannelKind.BOARD}:{board_id}"


def task_channel(task_id: str) -> str:
    return f"{ChannelKind.TASK}:{task_id}"


def user_channel(user_id: str) -> str:
    return f"{ChannelKind.USER}:{user_id}"


def typing_channel(task_key: str) -> str:
    """Typing in the global chat uses the sentinel key "global"."""
    if task_key == GLOBAL_CHANNEL:
        return GLOBAL_CHANNEL
    return task_channel(task_key)


def is_valid_channel(name: str) -> bool:
    if name == GLOBAL_CHANNEL:
        return True
    kind, sep, ident = name.partition(":")
    return bool(sep) and bool(ident) and kind in ChannelKind.__members__.values()
