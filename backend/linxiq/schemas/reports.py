"""
Pydantic schemas for skill-gap reports.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel


class PersonSkillGapReport(BaseModel):
    person_id: int
    tests_completed: int
    average_score: int
    skill_level: str
    domains: Dict[str, int]
    strength_areas: List[str]
    skill_gaps: List[str]
    recommended_training: List[str]
    overall_risk: str


class OrgSkillGapReport(BaseModel):
    total_results: int
    average_score: int
    domains: Dict[str, int]
    skill_levels: Dict[str, int]
    training_priorities: List[str]
    recommendations: List[str]
    completion_rate: Optional[int] = None
