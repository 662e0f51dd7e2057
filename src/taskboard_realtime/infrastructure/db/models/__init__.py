"""Import all models so they register on Base.metadata."""
from taskboard_realtime.infrastructure.db.models.message import MessageModel
from taskboard_realtime.infrastructure.db.models.message_read import MessageReadModel
from taskboard_realtime.infrastructure.db.models.user import UserModel

__all__ = [
    "MessageModel",
    "MessageReadModel",
    "UserModel",
]
