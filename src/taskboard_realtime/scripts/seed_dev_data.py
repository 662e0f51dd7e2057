"""Seed development data: creates sample users and chat messages."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

from taskboard_realtime.domain.entities.message import Message
from taskboard_realtime.infrastructure.db.models.user import UserModel
from taskboard_realtime.infrastructure.db.session import AsyncSessionLocal, create_schema
from taskboard_realtime.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

USERS = [
    ("u-alice", "Alice Martin", "alice@example.com"),
    ("u-bob", "Bob Chen", "bob@example.com"),
]


async def seed() -> None:
    await create_schema()
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        for user_id, name, email in USERS:
            session.add(UserModel(id=user_id, name=name, email=email))
        await uow.flush()

        start = datetime.now(timezone.utc) - timedelta(minutes=10)
        messages_data = [
            ("u-alice", "Morning! Sprint board is up."),
            ("u-bob", "Thanks, picking up the login task."),
            ("u-alice", "Ping me when the PR is ready."),
        ]
        for offset, (sender_id, text) in enumerate(messages_data):
            await uow.messages_w.create(
                Message(
                    id=uuid.uuid4(),
                    sender_id=sender_id,
                    text=text,
                    file=None,
                    created_at=start + timedelta(minutes=offset),
                )
            )

        await uow.commit()
        logger.info("Seeded %d users and %d messages", len(USERS), len(messages_data))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
