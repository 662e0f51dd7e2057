"""Entrypoint: python -m taskboard_realtime"""
from __future__ import annotations

import uvicorn

from taskboard_realtime.config import settings


def main() -> None:
    uvicorn.run(
        "taskboard_realtime.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
        # Presence and read acknowledgements live in process memory.
        workers=1,
    )


if __name__ == "__main__":
    main()
