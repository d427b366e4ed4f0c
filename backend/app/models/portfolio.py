"""Portfolio model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import String, Text, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base

if TYPE_CHECKING:
    from backend.app.models.user import User
    from backend.app.models.work import Work


class Portfolio(Base):
    """
    Portfolio model: a member's public collection of works.

    Attributes:
        id: Unique portfolio identifier (UUID)
        user_id: Owning member (one portfolio per user)
        title: Portfolio title
        bio: Free-text biography
        social_media: Social media handle or link
        total_votes: Denormalized sum of the works' vote counts
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    __tablename__ = "portfolios"

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
        unique=True,
        index=True,
    )
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    social_media: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", lazy="raise")
    works: Mapped[list["Work"]] = relationship(
        "Work",
        order_by="Work.created_at",
        viewonly=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Portfolio(id={self.id}, user_id={self.user_id}, total_votes={self.total_votes})>"
