from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator
from typing import Dict, List, Optional, Union


class ScoreRecord(BaseModel):
    """Best run for one disk count. ``timestamp`` is epoch milliseconds."""
    model_config = ConfigDict(extra="ignore")

    moves: Union[StrictInt, StrictFloat]
    time: Union[StrictInt, StrictFloat]
    timestamp: Optional[int] = None

    @field_validator("moves")
    @classmethod
    def moves_whole_and_positive(cls, value):
        # JSON may carry 7.0; anything fractional is not a move count
        if isinstance(value, float) and not value.is_integer():
            raise ValueError("moves must be a whole number")
        if value < 1:
            raise ValueError("moves must be positive")
        return int(value)

    @field_validator("time")
    @classmethod
    def time_not_negative(cls, value):
        if value < 0:
            raise ValueError("time must not be negative")
        return value


class ExportPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: int
    exported_at: str = Field(..., alias="exportedAt")
    scores: Dict[str, ScoreRecord]


class LeaderboardEntry(BaseModel):
    """One row of a per-disk-count top list."""
    model_config = ConfigDict(from_attributes=True)

    name: str = Field(..., min_length=1, max_length=3)
    moves: int
    time: int
    timestamp: int


class LeaderboardEntryCreate(BaseModel):
    disk_count: int
    # raw player input, sanitised before it is stored
    name: str = Field(..., max_length=50)
    moves: int
    time_seconds: int


class LeaderboardResponse(BaseModel):
    disk_count: int
    size: int
    entries: List[LeaderboardEntry]


class QualificationResponse(BaseModel):
    disk_count: int
    qualifies: bool
    rank: Optional[int] = None


class SubmissionResponse(BaseModel):
    accepted: bool
    name: str
    rank: Optional[int] = None
    entries: List[LeaderboardEntry]
