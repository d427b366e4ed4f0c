"""Pydantic schemas for API request/response validation."""

from backend.app.schemas.user import (
    UserSummary,
    UserResponse,
    SessionUser,
    SignupRequest,
    LoginRequest,
    AuthResponse,
    VerifyResponse,
    ProfileUpdate,
    AdminUserUpdate,
    UserListResponse,
    UserStatsResponse,
)
from backend.app.schemas.work import (
    WorkCreate,
    WorkUpdate,
    WorkResponse,
    WorkSummary,
    WorkListResponse,
    FeatureWindow,
    FlagCreate,
)
from backend.app.schemas.portfolio import (
    PortfolioCreate,
    PortfolioUpdate,
    PortfolioResponse,
    PortfolioListResponse,
)
from backend.app.schemas.theme import ThemeCreate, ThemeUpdate, ThemeResponse, ThemeListResponse
from backend.app.schemas.vote import VoteCreate, VoteResultResponse, VoteResponse, VoteListResponse

__all__ = [
    "UserSummary",
    "UserResponse",
    "SessionUser",
    "SignupRequest",
    "LoginRequest",
    "AuthResponse",
    "VerifyResponse",
    "ProfileUpdate",
    "AdminUserUpdate",
    "UserListResponse",
    "UserStatsResponse",
    "WorkCreate",
    "WorkUpdate",
    "WorkResponse",
    "WorkSummary",
    "WorkListResponse",
    "FeatureWindow",
    "FlagCreate",
    "PortfolioCreate",
    "PortfolioUpdate",
    "PortfolioResponse",
    "PortfolioListResponse",
    "ThemeCreate",
    "ThemeUpdate",
    "ThemeResponse",
    "ThemeListResponse",
    "VoteCreate",
    "VoteResultResponse",
    "VoteResponse",
    "VoteListResponse",
]
