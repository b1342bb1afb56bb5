"""
Pydantic schemas for assignment endpoints.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from linxiq.models import AssignmentStatus


class AssignmentCreate(BaseModel):
    """Schema for assigning a test to a person."""

    person_id: int = Field(..., description="Person who owes the test")
    test_id: int = Field(..., description="Catalog test ID")
    scheduled_at: Optional[datetime] = Field(None, description="Earliest start time")
    due_date: Optional[datetime] = Field(None, description="Completion deadline")
    time_limit: Optional[int] = Field(
        None, ge=1, description="Time limit in minutes (enforced by the client)"
    )
    max_attempts: int = Field(1, ge=1, description="Number of attempts allowed")
    results_visible: bool = Field(
        False, description="Whether the candidate may see their own result"
    )


class AssignmentStatusUpdate(BaseModel):
    status: AssignmentStatus = Field(..., description="Requested status")


class AssignmentVisibilityUpdate(BaseModel):
    results_visible: bool = Field(..., description="Release or hide the result")


class AssignmentResponse(BaseModel):
    """Schema for an assignment."""

    id: int = Field(..., description="Assignment ID")
    user_id: int = Field(..., description="Assigned person")
    test_id: int = Field(..., description="Assigned test")
    status: str = Field(..., description="assigned, started, or completed")
    scheduled_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    time_limit: Optional[int] = None
    max_attempts: int
    results_visible: bool
    created_at: datetime

    class Config:
        """Pydantic configuration."""

        from_attributes = True
