"""WebSocket envelope and per-event payload models."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WsInbound(BaseModel):
    """Client → Server."""

    type: str
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str
    data: Any = None


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AuthenticatePayload(_Payload):
    userId: str = Field(min_length=1)
    username: str = ""


class BoardRoomPayload(_Payload):
    boardId: str = Field(min_length=1)


class TaskRoomPayload(_Payload):
    taskId: str = Field(min_length=1)


class TypingPayload(_Payload):
    taskId: str = Field(min_length=1)
    isTyping: bool = False


class FilePayload(_Payload):
    name: str
    url: str
    type: str = "application/octet-stream"
    size: int = 0


class SendMessagePayload(_Payload):
    text: str | None = None
    file: FilePayload | None = None
    tempId: Any = None


class MarkReadPayload(_Payload):
    messageIds: list[str] = []


class EmptyPayload(_Payload):
    pass


INBOUND_PAYLOADS: dict[str, type[_Payload]] = {
    "authenticate": AuthenticatePayload,
    "board:join": BoardRoomPayload,
    "board:leave": BoardRoomPayload,
    "task:join": TaskRoomPayload,
    "task:leave": TaskRoomPayload,
    "comment:typing": TypingPayload,
    "sendMessage": SendMessagePayload,
    "message:read": MarkReadPayload,
    "unread:request": EmptyPayload,
    "ping": EmptyPayload,
}


def encode(event: str, data: Any) -> str:
    return WsOutbound(type=event, data=data).model_dump_json()
