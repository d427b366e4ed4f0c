"""Work and work flag models."""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from sqlalchemy import String, Text, Integer, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base

if TYPE_CHECKING:
    from backend.app.models.user import User
    from backend.app.models.theme import Theme


class WorkCategory(str, Enum):
    """Kinds of creative work a member can upload."""
    PHOTOS = "Photos"
    GRAPHICS = "Graphics"
    VIDEOS = "Videos"


class FlagReason(str, Enum):
    INAPPROPRIATE = "Inappropriate Content"
    COPYRIGHT = "Copyright Violation"
    SPAM = "Spam"
    OTHER = "Other"


class FlagStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"


class Work(Base):
    """
    Work model representing an uploaded photo, graphic or video.

    Attributes:
        id: Unique work identifier (UUID)
        title: Work title
        description: Work description
        category: Photos, Graphics or Videos
        file_url: Where the file is served from
        file_type: MIME type of an uploaded file (nullable)
        file_size: Size in bytes of an uploaded file (nullable)
        tags: Free-form tags
        user_id: Owning user
        portfolio_id: Portfolio listing this work (nullable)
        theme_id: Theme the work was last submitted to (nullable)
        featured: Homepage promotion flag
        feature_start_date: Optional start of the feature window
        feature_end_date: Optional end of the feature window
        vote_count: Denormalized number of votes
        created_at: Upload timestamp
        updated_at: Last modification timestamp
    """

    __tablename__ = "works"
    __table_args__ = (
        Index("idx_work_user_category", "user_id", "category"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    portfolio_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("portfolios.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    theme_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("themes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    feature_start_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    feature_end_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", lazy="raise")
    theme: Mapped["Theme | None"] = relationship("Theme", foreign_keys=[theme_id], lazy="raise")

    def is_featured_at(self, now: datetime) -> bool:
        """Featured flag set and, when a window exists, now falls inside it."""
        if not self.featured:
            return False
        if self.feature_start_date and now < self.feature_start_date:
            return False
        if self.feature_end_date and now > self.feature_end_date:
            return False
        return True

    def __repr__(self) -> str:
        return f"<Work(id={self.id}, title={self.title}, vote_count={self.vote_count})>"


class WorkFlag(Base):
    """A user's report that a work is inappropriate."""

    __tablename__ = "work_flags"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    work_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("works.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reason: Mapped[str] = mapped_column(String(50), nullable=False)
    explanation: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=FlagStatus.PENDING.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )

    def __repr__(self) -> str:
        return f"<WorkFlag(work_id={self.work_id}, reason={self.reason}, status={self.status})>"
