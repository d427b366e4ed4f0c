"""User and authentication schemas."""

from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator

from backend.app.models.user import Cluster, UserType


class UserSummary(BaseModel):
    """Public subset of a user, embedded in other resources."""

    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    user_type: str = Field(..., description="guest, member or admin")
    cluster: str | None = Field(None, description="Member cluster")
    position: str | None = Field(None, description="Member position")
    batch_name: str | None = Field(None, description="Member batch")

    model_config = {"from_attributes": True}


class UserResponse(UserSummary):
    """Schema for user data in responses."""

    is_approved: bool = Field(..., description="Whether the account may log in")
    is_active: bool = Field(..., description="False once archived")
    last_login: datetime | None = Field(None, description="Latest login")
    created_at: datetime = Field(..., description="Registration timestamp")


class SessionUser(UserResponse):
    """User returned by session verification."""

    has_portfolio: bool = Field(default=False, description="Whether the member has a portfolio")
    portfolio_id: str | None = Field(default=None, description="Portfolio ID when present")


class SignupRequest(BaseModel):
    """Schema for account registration."""

    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: EmailStr = Field(..., description="Email address")
    user_type: UserType = Field(..., description="guest or member")
    batch_name: str | None = Field(default=None, max_length=255)
    cluster: Cluster | None = Field(default=None, description="Member cluster")
    position: str | None = Field(default=None, max_length=255)

    @field_validator("cluster", mode="before")
    @classmethod
    def blank_cluster_to_none(cls, v):
        """Treat an empty cluster as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class LoginRequest(BaseModel):
    """Schema for login by email."""

    email: EmailStr = Field(..., description="Registered email address")


class AuthResponse(BaseModel):
    """Response for signup, login and logout."""

    success: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field(..., description="Human-readable outcome")
    user: UserResponse | None = Field(default=None, description="Affected user")


class VerifyResponse(BaseModel):
    """Response for session verification."""

    success: bool
    message: str | None = None
    user: SessionUser | None = None


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    batch_name: str | None = Field(default=None, max_length=255)
    cluster: Cluster | None = None
    position: str | None = Field(default=None, max_length=255)

    @field_validator("cluster", mode="before")
    @classmethod
    def blank_cluster_to_none(cls, v):
        """Treat an empty cluster as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AdminUserUpdate(ProfileUpdate):
    """Fields an admin may change on any user."""

    email: EmailStr | None = None
    user_type: UserType | None = None
    is_approved: bool | None = None


class UserEnvelope(BaseModel):
    success: bool = True
    message: str | None = None
    user: UserResponse


class UserListResponse(BaseModel):
    """Schema for user list."""

    success: bool = True
    users: list[UserResponse] = Field(..., description="Page of users")
    count: int = Field(..., description="Number of users in this page")
    total: int | None = Field(default=None, description="Number of users matching the filters")


class ClusterDistribution(BaseModel):
    Photography: int = 0
    Graphics: int = 0
    Videography: int = 0


class UserStats(BaseModel):
    total_users: int
    total_members: int
    total_guests: int
    pending_approvals: int
    cluster_distribution: ClusterDistribution
    recent_members: list[UserSummary]


class UserStatsResponse(BaseModel):
    success: bool = True
    stats: UserStats


class InactiveUsersResponse(UserListResponse):
    inactivity_period: str = Field(..., description="Look-back period, e.g. '6 months'")
