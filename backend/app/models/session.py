"""Login session model."""

from datetime import datetime
from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base


class AuthSession(Base):
    """
    Server-side login session referenced by the signed session cookie.

    Attributes:
        id: Opaque random session identifier
        user_id: Logged-in user
        user_type: Role of the user when the session was created
        created_at: Creation timestamp
        last_seen_at: Last rolling refresh
        expires_at: Moment after which the session is discarded
    """

    __tablename__ = "auth_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )
    last_seen_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def __repr__(self) -> str:
        return f"<AuthSession(user_id={self.user_id}, expires_at={self.expires_at})>"
