"""Vote model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import String, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base

if TYPE_CHECKING:
    from backend.app.models.user import User
    from backend.app.models.work import Work
    from backend.app.models.theme import Theme

UNSCOPED = ""


class Vote(Base):
    """
    Vote model representing a user's vote on a work, optionally within a theme.

    Attributes:
        id: Unique vote identifier (UUID)
        user_id: Voting user
        work_id: Target work
        theme_id: Theme the vote was cast in (nullable)
        scope: Uniqueness key; the theme id at voting time, or "" when unscoped
        created_at: Creation timestamp
    """

    __tablename__ = "votes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    work_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("works.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    theme_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("themes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    scope: Mapped[str] = mapped_column(String(36), nullable=False, default=UNSCOPED)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        index=True,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", lazy="raise")
    work: Mapped["Work"] = relationship("Work", lazy="raise")
    theme: Mapped["Theme | None"] = relationship("Theme", lazy="raise")

    # One vote per user per work per scope
    __table_args__ = (
        Index("idx_vote_unique", "user_id", "work_id", "scope", unique=True),
    )

    def __repr__(self) -> str:
        return f"<Vote(id={self.id}, work_id={self.work_id}, user_id={self.user_id})>"
