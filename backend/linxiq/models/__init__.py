"""
Models package for the LinxIQ backend.
"""
from .base import Base, engine, SessionLocal, get_db
from .models import (
    User,
    Test,
    Question,
    TestAssignment,
    TestSession,
    TestResult,
    AssignmentStatus,
    SessionStatus,
    QuestionStatus,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "User",
    "Test",
    "Question",
    "TestAssignment",
    "TestSession",
    "TestResult",
    "AssignmentStatus",
    "SessionStatus",
    "QuestionStatus",
]
