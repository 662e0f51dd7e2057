from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class SenderResponse(BaseModel):
    id: str
    name: str | None
    avatar: str | None


class AttachmentResponse(BaseModel):
    name: str
    url: str
    type: str
    size: int


class MessageResponse(BaseModel):
    id: str
    text: str
    file: AttachmentResponse | None
    user: SenderResponse
    created_at: datetime
    is_current_user: bool = False

    @classmethod
    def from_payload(cls, payload: dict[str, Any], current_user_id: str) -> MessageResponse:
        return cls.model_validate(
            {**payload, "is_current_user": payload["user"]["id"] == current_user_id},
        )


class UnreadCountsResponse(BaseModel):
    counts: dict[str, int]
    total: int
