"""Vote-related schemas."""

from datetime import datetime
from pydantic import BaseModel, Field

from backend.app.schemas.user import UserSummary
from backend.app.schemas.work import WorkResponse, WorkSummary


class VoteCreate(BaseModel):
    """Schema for casting a vote."""

    work_id: str = Field(..., min_length=1, description="Work to vote for")
    theme_id: str | None = Field(default=None, description="Theme the vote is cast in")


class VoteResultResponse(BaseModel):
    success: bool = True
    message: str
    vote_count: int = Field(..., description="Work's vote count after the operation")


class VoteCheckResponse(BaseModel):
    success: bool = True
    has_voted: bool


class VoteResponse(BaseModel):
    id: str
    user_id: str
    work_id: str
    theme_id: str | None = None
    created_at: datetime
    user: UserSummary | None = None
    work: WorkSummary | None = None

    model_config = {"from_attributes": True}


class VoteListResponse(BaseModel):
    success: bool = True
    votes: list[VoteResponse]
    count: int
    total_votes: int | None = None


class VoteStats(BaseModel):
    total_votes: int
    unique_voters: int
    unique_works_voted: int
    most_voted_work: WorkResponse | None
    recent_votes: list[VoteResponse]


class VoteStatsResponse(BaseModel):
    success: bool = True
    stats: VoteStats
