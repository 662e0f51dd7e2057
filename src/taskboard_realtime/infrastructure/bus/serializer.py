"""Relay envelope published by the main backend: ``{"event": <name>, "data": {"channel": ..., ...}}``."""
from __future__ import annotations

import json
from typing import Any


def deserialize_event(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    """Parse a relay envelope. Raises ValueError on anything malformed."""
    envelope = json.loads(raw)
    if not isinstance(envelope, dict):
        raise ValueError("Relay envelope must be an object")
    event_type = envelope.get("event")
    data = envelope.get("data")
    if not isinstance(event_type, str) or not event_type:
        raise ValueError("Relay envelope has no event name")
    if not isinstance(data, dict):
        raise ValueError("Relay envelope data must be an object")
    return event_type, data
