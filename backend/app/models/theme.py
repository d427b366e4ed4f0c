"""Theme and theme submission models."""

import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from sqlalchemy import String, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base

if TYPE_CHECKING:
    from backend.app.models.user import User
    from backend.app.models.work import Work


class ThemeStatus(str, Enum):
    """Theme lifecycle status, derived from the theme's window."""
    UPCOMING = "Upcoming"
    ACTIVE = "Active"
    ENDED = "Ended"


class ThemeCategory(str, Enum):
    """Categories a theme accepts; ALL accepts every work category."""
    PHOTOS = "Photos"
    GRAPHICS = "Graphics"
    VIDEOS = "Videos"
    ALL = "All"


class ThemeSubmission(Base):
    """A work entered into a theme."""

    __tablename__ = "theme_submissions"

    theme_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("themes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    work_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("works.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )


class Theme(Base):
    """
    Theme model representing a time-boxed voting campaign.

    Attributes:
        id: Unique theme identifier (UUID)
        title: Theme title
        description: Theme description
        category: Accepted work category (or All)
        start_date: Window start
        end_date: Window end
        status: Last persisted derived status
        winner_work_id: Highest-voted submission, set once when the theme ends
        created_by: Admin who created the theme (nullable once deleted)
        created_at: Creation timestamp
    """

    __tablename__ = "themes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ThemeStatus.UPCOMING.value,
    )
    # Plain reference: works.theme_id already points the other way
    winner_work_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_by: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )

    # Relationships
    creator: Mapped["User | None"] = relationship("User", lazy="raise")
    winner: Mapped["Work | None"] = relationship(
        "Work",
        primaryjoin="foreign(Theme.winner_work_id) == Work.id",
        viewonly=True,
        lazy="raise",
    )
    submissions: Mapped[list["Work"]] = relationship(
        "Work",
        secondary="theme_submissions",
        order_by="ThemeSubmission.submitted_at",
        viewonly=True,
        lazy="raise",
    )

    def accepts(self, work_category: str) -> bool:
        return self.category == ThemeCategory.ALL.value or self.category == work_category

    def __repr__(self) -> str:
        return f"<Theme(id={self.id}, title={self.title}, status={self.status})>"
