"""Portfolio-related schemas."""

from datetime import datetime
from pydantic import BaseModel, Field

from backend.app.schemas.user import UserResponse, UserSummary
from backend.app.schemas.work import WorkSummary


class PortfolioCreate(BaseModel):
    """Schema for creating a portfolio."""

    title: str | None = Field(default=None, max_length=255)
    bio: str | None = Field(default=None, max_length=5000)
    social_media: str | None = Field(default=None, max_length=512)


class PortfolioUpdate(PortfolioCreate):
    """Schema for updating a portfolio."""


class PortfolioResponse(BaseModel):
    """Schema for portfolio data in responses."""

    id: str = Field(..., description="Portfolio ID")
    user_id: str = Field(..., description="Owner ID")
    owner: UserSummary | None = Field(None, description="Owner summary")
    title: str | None = None
    bio: str = ""
    social_media: str = ""
    total_votes: int = Field(..., description="Sum of the works' vote counts")
    works: list[WorkSummary] = Field(default_factory=list, description="Works in upload order")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PortfolioEnvelope(BaseModel):
    success: bool = True
    message: str | None = None
    portfolio: PortfolioResponse


class PortfolioListResponse(BaseModel):
    success: bool = True
    portfolios: list[PortfolioResponse]
    count: int


class UserDetailResponse(BaseModel):
    """A user's public profile with their portfolio when they are a member."""

    success: bool = True
    user: UserResponse
    portfolio: PortfolioResponse | None = None


class ProfileResponse(UserDetailResponse):
    """The caller's own profile."""

    works: list[WorkSummary] = Field(default_factory=list, description="Ten most recent works")
    works_count: int = 0


class TotalVotesResponse(BaseModel):
    success: bool = True
    total_votes: int

