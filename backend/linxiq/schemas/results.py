"""
Pydantic schemas for result and analytics endpoints.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TestResultResponse(BaseModel):
    """Schema for a test result."""

    id: int = Field(..., description="Result ID")
    session_id: int
    user_id: int
    test_id: int
    assignment_id: Optional[int] = None
    score: int = Field(..., description="Number of correct answers")
    percentage: int = Field(..., description="Percentage correct, 0-100")
    passed: bool
    time_spent: Optional[int] = Field(None, description="Seconds spent")
    total_questions: int
    correct_answers: int
    completed_at: datetime
    skill_gap_analysis: Optional[Dict[str, Any]] = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class SkillGapReportResponse(BaseModel):
    result_id: int
    person_id: int
    test_id: int
    completed_at: datetime
    skill_gap_analysis: Dict[str, Any]


class BatchItemResponse(BaseModel):
    result_id: int
    status: str
    error: Optional[str] = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class BatchReportResponse(BaseModel):
    """Per-item outcome of a batch analytics run."""

    total: int
    succeeded: int
    skipped: int
    failed: int
    items: List[BatchItemResponse]

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class ForceRegenerateRequest(BaseModel):
    result_ids: Optional[List[int]] = Field(
        None, description="Results to recompute; all results when omitted"
    )


class InsightResponse(BaseModel):
    result_id: int
    provider: str = Field(..., description="Provider that produced the insight")
    insight: Dict[str, Any]
