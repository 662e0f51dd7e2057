from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from taskboard_realtime.domain.entities.user import DEFAULT_AVATAR
from taskboard_realtime.infrastructure.db.base import Base


class UserModel(Base):
    """Read-only view of the accounts table owned by the main backend."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    avatar: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        default=DEFAULT_AVATAR,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
