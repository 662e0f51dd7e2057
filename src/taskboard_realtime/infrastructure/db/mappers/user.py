from __future__ import annotations

from taskboard_realtime.domain.entities.user import User
from taskboard_realtime.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(id=model.id, name=model.name, avatar=model.avatar)
