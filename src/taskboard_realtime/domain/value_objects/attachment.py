from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class FileDescriptor:
    """Metadata returned by the upload endpoint for a chat attachment."""

    name: str
    url: str
    type: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileDescriptor:
        return cls(
            name=str(data["name"]),
            url=str(data["url"]),
            type=str(data.get("type", "application/octet-stream")),
            size=int(data.get("size", 0)),
        )
