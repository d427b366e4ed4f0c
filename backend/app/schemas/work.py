"""Work-related schemas."""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from backend.app.core.utils import to_naive_utc
from backend.app.models.work import FlagReason, WorkCategory
from backend.app.schemas.user import UserSummary


class ThemeRef(BaseModel):
    """Minimal theme reference embedded in works."""

    id: str
    title: str

    model_config = {"from_attributes": True}


class WorkCreate(BaseModel):
    """Schema for creating a work from an already-hosted file."""

    title: str = Field(..., min_length=1, max_length=255, description="Work title")
    description: str = Field(..., min_length=1, description="Work description")
    category: WorkCategory = Field(..., description="Photos, Graphics or Videos")
    file_url: str = Field(..., min_length=1, max_length=1024, description="Location of the work file")
    theme_id: str | None = Field(default=None, description="Theme to submit the work to")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")


class WorkUpdate(BaseModel):
    """Schema for updating a work; featured is honored for admins only."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    category: WorkCategory | None = None
    file_url: str | None = Field(default=None, min_length=1, max_length=1024)
    tags: list[str] | None = None
    featured: bool | None = None


class FeatureWindow(BaseModel):
    """Time-boxed feature request."""

    start_date: datetime = Field(..., description="Feature start")
    end_date: datetime = Field(..., description="Feature end")

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class FlagCreate(BaseModel):
    """Schema for flagging a work."""

    reason: FlagReason = Field(..., description="Why the work is being flagged")
    explanation: str = Field(default="", max_length=2000)


class WorkSummary(BaseModel):
    """Compact work data embedded in portfolios, themes and votes."""

    id: str
    title: str
    category: str
    file_url: str
    user_id: str
    vote_count: int
    featured: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class WorkResponse(BaseModel):
    """Schema for work data in responses."""

    id: str = Field(..., description="Work ID")
    title: str = Field(..., description="Work title")
    description: str = Field(..., description="Work description")
    category: str = Field(..., description="Work category")
    file_url: str = Field(..., description="Where the file is served from")
    file_type: str | None = Field(None, description="MIME type of an uploaded file")
    file_size: int | None = Field(None, description="Size in bytes of an uploaded file")
    tags: list[str] = Field(default_factory=list)
    user_id: str = Field(..., description="Owner ID")
    owner: UserSummary | None = Field(None, description="Owner summary")
    portfolio_id: str | None = Field(None, description="Portfolio listing the work")
    theme_id: str | None = Field(None, description="Theme the work was submitted to")
    theme: ThemeRef | None = Field(None, description="Theme summary")
    featured: bool = Field(..., description="Featured flag")
    feature_start_date: datetime | None = None
    feature_end_date: datetime | None = None
    vote_count: int = Field(..., description="Number of votes")
    created_at: datetime = Field(..., description="Upload timestamp")
    updated_at: datetime = Field(..., description="Last modification")

    model_config = {"from_attributes": True}


class WorkEnvelope(BaseModel):
    success: bool = True
    message: str | None = None
    work: WorkResponse


class WorkListResponse(BaseModel):
    """Schema for work list."""

    success: bool = True
    works: list[WorkResponse] = Field(..., description="List of works")
    count: int = Field(..., description="Number of works returned")


class RankingsResponse(BaseModel):
    success: bool = True
    category: str
    works: list[WorkResponse]


class MessageResponse(BaseModel):
    success: bool = True
    message: str
