"""Pydantic models for request/response validation."""
from datetime import datetime, timezone
from typing import Literal, Optional
from pydantic import BaseModel, Field, validator


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class PollRecord(BaseModel):
    """One participation of a voter in a poll."""

    poll_id: int = Field(..., ge=0, description="Poll identifier")
    vote_date: datetime = Field(default_factory=utc_now, description="When the vote was cast")

    @validator("vote_date")
    def validate_vote_date(cls, v):
        """Treat naive datetimes as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "poll_id": 1,
                "vote_date": "2024-01-15T10:30:00Z"
            }
        }


class PollUpdate(PollRecord):
    """Poll body for path-addressed writes; the path poll id wins."""

    poll_id: Optional[int] = Field(default=None, ge=0, description="Ignored, the path id is used")

    def to_poll(self, poll_id: int) -> PollRecord:
        return PollRecord(poll_id=poll_id, vote_date=self.vote_date)


class Voter(BaseModel):
    """A voter and their ordered voting history."""

    voter_id: int = Field(..., ge=0, description="Unique voter identifier")
    first_name: str = Field(..., description="Voter first name")
    last_name: str = Field(..., description="Voter last name")
    vote_history: list[PollRecord] = Field(
        default_factory=list,
        description="Polls the voter took part in, in insertion order"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "voter_id": 1,
                "first_name": "John",
                "last_name": "Doe",
                "vote_history": [
                    {"poll_id": 1, "vote_date": "2024-01-15T10:30:00Z"}
                ]
            }
        }


class VoterUpdate(BaseModel):
    """Voter body for path-addressed writes; the path voter id wins."""

    voter_id: Optional[int] = Field(default=None, ge=0, description="Ignored, the path id is used")
    first_name: str = Field(..., description="Voter first name")
    last_name: str = Field(..., description="Voter last name")
    vote_history: list[PollRecord] = Field(default_factory=list)

    def to_voter(self, voter_id: int) -> Voter:
        return Voter(
            voter_id=voter_id,
            first_name=self.first_name,
            last_name=self.last_name,
            vote_history=self.vote_history
        )


class HealthResponse(BaseModel):
    """Health check response model."""

    status: Literal["healthy"] = Field(default="healthy", description="Overall health status")
    boot_time: datetime = Field(..., description="When the store was created")
    uptime: str = Field(..., description="Human readable uptime")
    uptime_seconds: float = Field(..., ge=0, description="Uptime in seconds")
    total_api_calls: int = Field(..., description="Requests served since boot")
    total_error_calls: int = Field(..., description="Non-2xx responses since boot")
    timestamp: datetime = Field(default_factory=utc_now, description="Health check timestamp")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "boot_time": "2024-01-15T10:00:00Z",
                "uptime": "0:30:00.123456",
                "uptime_seconds": 1800.123456,
                "total_api_calls": 42,
                "total_error_calls": 3,
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict = Field(default_factory=dict, description="Additional error details")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "ValidationError",
                "message": "Invalid request",
                "details": {"voter_id": ["Input should be a valid integer"]}
            }
        }
