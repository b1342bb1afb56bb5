"""
Pydantic schemas for test session endpoints.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from linxiq.core.datetime_utils import parse_event_timestamp
from linxiq.schemas.results import TestResultResponse


class StartSessionRequest(BaseModel):
    test_id: int = Field(..., description="Assigned test to start or resume")


class ProctoringEvent(BaseModel):
    """A single integrity signal captured by the test client."""

    type: str = Field(
        ..., min_length=1, max_length=64, description="Event type, e.g. tab_switch"
    )
    timestamp: Union[datetime, int, float, str] = Field(
        ..., description="When the event happened (ISO-8601 or epoch seconds/ms)"
    )
    severity: Optional[Literal["high", "medium", "low"]] = Field(
        None, description="Client-assessed severity, if known"
    )
    details: Optional[Dict[str, Any]] = Field(None, description="Free-form context")

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: Union[datetime, int, float, str]) -> str:
        """Store every timestamp as an ISO-8601 UTC string."""
        try:
            return parse_event_timestamp(v).isoformat()
        except (OverflowError, OSError) as e:
            raise ValueError(f"Invalid timestamp: {v!r}") from e

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SubmitSessionRequest(BaseModel):
    """Schema for submitting a session."""

    answers: Dict[str, Optional[str]] = Field(
        default_factory=dict, description="Question ID -> submitted answer"
    )
    time_spent: Optional[int] = Field(
        None, ge=0, description="Seconds spent, as measured by the client"
    )
    proctoring_events: List[ProctoringEvent] = Field(
        default_factory=list, description="Events not yet reported individually"
    )


class TestSessionResponse(BaseModel):
    """Schema for test session response."""

    id: int = Field(..., description="Test session ID")
    user_id: int = Field(..., description="Person taking the test")
    test_id: int = Field(..., description="Test ID")
    assignment_id: Optional[int] = Field(None, description="Owning assignment")
    status: str = Field(..., description="in_progress or completed")
    answers: Dict[str, Any] = Field(default_factory=dict)
    proctoring_events: List[Dict[str, Any]] = Field(default_factory=list)
    started_at: datetime = Field(..., description="Session start timestamp")
    completed_at: Optional[datetime] = Field(
        None, description="Session completion timestamp"
    )
    time_spent: Optional[int] = Field(None, description="Seconds spent")

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class StartSessionResponse(BaseModel):
    session: TestSessionResponse
    resumed: bool = Field(..., description="True when an in-progress session was returned")


class SubmitSessionResponse(BaseModel):
    """
    Outcome of a submit. ``result`` is present only when the caller may see
    the score.
    """

    session_id: int
    result_id: int
    created: bool = Field(..., description="False when this submit was a replay")
    results_visible: bool
    result: Optional[TestResultResponse] = None
