"""User model."""

import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base


class UserType(str, Enum):
    """Account role."""
    GUEST = "guest"
    MEMBER = "member"
    ADMIN = "admin"


class Cluster(str, Enum):
    """A member's creative-discipline affiliation."""
    PHOTOGRAPHY = "Photography"
    GRAPHICS = "Graphics"
    VIDEOGRAPHY = "Videography"


class User(Base):
    """
    User model representing a registered account.

    Attributes:
        id: Unique user identifier (UUID)
        name: Display name
        email: Lowercased, unique login address
        user_type: guest, member or admin
        batch_name: Member batch label
        cluster: Member cluster (Photography/Graphics/Videography)
        position: Member position within the organization
        is_approved: Whether the account may log in (members only wait on this)
        is_active: False once an admin archives the account
        last_login: Timestamp of the latest successful login
        created_at: Registration timestamp
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    user_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserType.GUEST.value,
    )
    batch_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cluster: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    position: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN.value

    @property
    def is_member(self) -> bool:
        return self.user_type == UserType.MEMBER.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, user_type={self.user_type})>"
