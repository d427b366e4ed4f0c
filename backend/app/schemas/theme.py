"""Theme-related schemas."""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from backend.app.core.utils import to_naive_utc
from backend.app.models.theme import ThemeCategory
from backend.app.schemas.user import UserSummary
from backend.app.schemas.work import WorkSummary


class ThemeCreate(BaseModel):
    """Schema for creating a theme."""

    title: str = Field(..., min_length=1, max_length=255, description="Theme title")
    description: str = Field(..., min_length=1, description="Theme description")
    category: ThemeCategory = Field(..., description="Accepted category, or All")
    start_date: datetime = Field(..., description="Window start")
    end_date: datetime = Field(..., description="Window end")

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class ThemeUpdate(BaseModel):
    """Schema for updating a theme. Status is always derived, never set."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    category: ThemeCategory | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v) if v is not None else None


class SubmitWorkRequest(BaseModel):
    work_id: str = Field(..., min_length=1, description="Work to submit")


class ThemeResponse(BaseModel):
    """Schema for theme data in responses."""

    id: str = Field(..., description="Theme ID")
    title: str
    description: str
    category: str
    start_date: datetime
    end_date: datetime
    status: str = Field(..., description="Upcoming, Active or Ended")
    winner_work_id: str | None = None
    winner: WorkSummary | None = None
    created_by: str | None = None
    creator: UserSummary | None = None
    submissions: list[WorkSummary] = Field(default_factory=list)
    submission_count: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}


class ThemeEnvelope(BaseModel):
    success: bool = True
    message: str | None = None
    theme: ThemeResponse | None


class ThemeListResponse(BaseModel):
    success: bool = True
    themes: list[ThemeResponse]
    count: int
