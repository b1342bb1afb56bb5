"""
Database models for the LinxIQ assessment lifecycle.
"""
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    UniqueConstraint,
    Index,
    CheckConstraint,
    text,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum

from .base import Base


class AssignmentStatus(str, enum.Enum):
    """Assignment status enumeration."""

    ASSIGNED = "assigned"
    STARTED = "started"
    COMPLETED = "completed"


class SessionStatus(str, enum.Enum):
    """Test session status enumeration."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class QuestionStatus(str, enum.Enum):
    """Review status of a catalog question."""

    DRAFT = "draft"
    APPROVED = "approved"
    REJECTED = "rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Person who can be assigned tests; also the candidate profile for analytics."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    role = Column(String(32), nullable=False, default="employee")
    department = Column(String(100))
    position = Column(String(100))
    employee_id = Column(String(50))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    assignments = relationship(
        "TestAssignment", back_populates="user", foreign_keys="TestAssignment.user_id"
    )
    test_sessions = relationship("TestSession", back_populates="user")
    test_results = relationship("TestResult", back_populates="user")


class Test(Base):
    """Catalog entry for an assessment."""

    __tablename__ = "tests"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    domain = Column(String(100), nullable=False, index=True)
    level = Column(String(50), nullable=False)
    duration = Column(Integer, nullable=False, default=60)  # minutes
    total_questions = Column(Integer, nullable=False, default=0)
    passing_score = Column(Integer, nullable=True, default=70)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    questions = relationship(
        "Question", back_populates="test", order_by="Question.position"
    )


class Question(Base):
    """Catalog question with its reference answer."""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_type = Column(String(32), nullable=False, default="mcq")
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=True)
    correct_answer = Column(Text, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default=QuestionStatus.APPROVED.value)

    test = relationship("Test", back_populates="questions")

    __table_args__ = (Index("ix_questions_test_position", "test_id", "position"),)


class TestAssignment(Base):
    """Record that a person owes a particular test."""

    __tablename__ = "test_assignments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assigned_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(
        String(16), nullable=False, default=AssignmentStatus.ASSIGNED.value
    )
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    time_limit = Column(Integer, nullable=True)  # minutes
    max_attempts = Column(Integer, nullable=False, default=1)
    results_visible = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    user = relationship("User", back_populates="assignments", foreign_keys=[user_id])
    test = relationship("Test")

    __table_args__ = (
        UniqueConstraint("user_id", "test_id", name="uq_test_assignments_user_test"),
        CheckConstraint(
            "status IN ('assigned', 'started', 'completed')",
            name="ck_test_assignments_status",
        ),
        CheckConstraint("max_attempts >= 1", name="ck_test_assignments_max_attempts"),
    )


class TestSession(Base):
    """One attempt at a test, holding in-progress answers and proctoring events."""

    __tablename__ = "test_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assignment_id = Column(
        Integer, ForeignKey("test_assignments.id", ondelete="SET NULL"), nullable=True
    )
    status = Column(
        String(16), nullable=False, default=SessionStatus.IN_PROGRESS.value, index=True
    )
    answers = Column(JSON, nullable=False, default=dict)
    proctoring_events = Column(JSON, nullable=False, default=list)
    started_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    time_spent = Column(Integer, nullable=True)  # seconds

    user = relationship("User", back_populates="test_sessions")
    test = relationship("Test")
    assignment = relationship("TestAssignment")
    test_result = relationship("TestResult", back_populates="test_session", uselist=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('in_progress', 'completed')", name="ck_test_sessions_status"
        ),
        # At most one in-progress attempt per (person, test). Concurrent starts
        # race on this index, not on a prior SELECT.
        Index(
            "uq_test_sessions_active_attempt",
            "user_id",
            "test_id",
            unique=True,
            sqlite_where=text("status = 'in_progress'"),
            postgresql_where=text("status = 'in_progress'"),
        ),
        Index("ix_test_sessions_user_test_status", "user_id", "test_id", "status"),
    )


class TestResult(Base):
    """Durable outcome of one completed session."""

    __tablename__ = "test_results"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        Integer,
        ForeignKey("test_sessions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assignment_id = Column(
        Integer, ForeignKey("test_assignments.id", ondelete="SET NULL"), nullable=True
    )
    score = Column(Integer, nullable=False)
    percentage = Column(Integer, nullable=False)
    passed = Column(Boolean, nullable=False)
    time_spent = Column(Integer, nullable=True)  # seconds
    total_questions = Column(Integer, nullable=False)
    correct_answers = Column(Integer, nullable=False)
    detailed_results = Column(JSON, nullable=False, default=list)
    skill_gap_analysis = Column(JSON(none_as_null=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    user = relationship("User", back_populates="test_results")
    test = relationship("Test")
    test_session = relationship("TestSession", back_populates="test_result")

    __table_args__ = (
        Index("ix_test_results_user_completed", "user_id", "completed_at"),
    )
