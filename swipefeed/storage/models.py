"""SQLAlchemy ORM models for SwipeFeed."""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from swipefeed.storage.db import Base


class UserProfile(Base):
    """Serialized taste profile per user."""

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    profile_json: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    reset_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class Swipe(Base):
    """Latest swipe outcome of a user on an item."""

    __tablename__ = "swipes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    item_id: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_swipes_user_item"),
        CheckConstraint("action IN ('like', 'pass', 'save')", name="ck_swipes_action"),
        Index("ix_swipes_user_id", "user_id"),
    )
