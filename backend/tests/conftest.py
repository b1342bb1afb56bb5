"""
Pytest configuration and shared fixtures for testing.
"""
import os
from pathlib import Path

# Settings require a JWT secret at import time
os.environ.setdefault(
    "JWT_SECRET_KEY", "test-jwt-secret-key-for-unit-tests"  # pragma: allowlist secret
)
os.environ.setdefault("ENV", "test")

from contextlib import asynccontextmanager  # noqa: E402
from typing import Callable, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from linxiq.core.auth import Caller  # noqa: E402
from linxiq.core.permissions import Role  # noqa: E402
from linxiq.core.security import create_access_token  # noqa: E402
from linxiq.main import app  # noqa: E402
from linxiq.models import (  # noqa: E402
    Base,
    Question,
    Test,
    TestAssignment,
    User,
    get_db,
)


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests; tables are managed by the db_session fixture."""
    yield


app.router.lifespan_context = _test_lifespan


# SQLite file inside tests/ regardless of the working directory
_TEST_DB = Path(__file__).parent / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database dependency override.

    Each request gets its own session on the same test database, so data
    created through db_session is visible to endpoints once committed.
    """

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session) -> Callable[..., User]:
    """Factory for people with a given role."""
    counter = {"n": 0}

    def _make(
        role: Role = Role.EMPLOYEE,
        name: Optional[str] = None,
        user_id: Optional[int] = None,
        department: str = "Engineering",
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            id=user_id,
            email=f"{role.value}{n}@example.com",
            name=name or f"{role.value.title()} {n}",
            role=role.value,
            department=department,
            position="Engineer",
            employee_id=f"E{n:04d}",
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_test(db_session) -> Callable[..., Test]:
    """
    Factory for catalog tests with approved questions.

    Question i has correct answer "answer-i".
    """

    def _make(
        domain: str = "python",
        level: str = "Intermediate",
        question_count: int = 5,
        passing_score: Optional[int] = 70,
        test_id: Optional[int] = None,
    ) -> Test:
        test = Test(
            id=test_id,
            title=f"{domain.title()} {level} Assessment",
            domain=domain,
            level=level,
            duration=30,
            total_questions=question_count,
            passing_score=passing_score,
        )
        db_session.add(test)
        db_session.flush()
        for i in range(question_count):
            db_session.add(
                Question(
                    test_id=test.id,
                    question_type="mcq",
                    question_text=f"{domain} question {i}",
                    correct_answer=f"answer-{i}",
                    position=i,
                )
            )
        db_session.commit()
        db_session.refresh(test)
        return test

    return _make


@pytest.fixture
def make_assignment(db_session) -> Callable[..., TestAssignment]:
    def _make(
        user: User,
        test: Test,
        max_attempts: int = 1,
        results_visible: bool = False,
    ) -> TestAssignment:
        assignment = TestAssignment(
            user_id=user.id,
            test_id=test.id,
            max_attempts=max_attempts,
            results_visible=results_visible,
        )
        db_session.add(assignment)
        db_session.commit()
        db_session.refresh(assignment)
        return assignment

    return _make


@pytest.fixture
def employee(make_user) -> User:
    return make_user(Role.EMPLOYEE)


@pytest.fixture
def admin(make_user) -> User:
    return make_user(Role.ADMIN)


@pytest.fixture
def python_test(make_test) -> Test:
    return make_test()


def caller_for(user: User) -> Caller:
    return Caller(person_id=user.id, role=Role(user.role))


def auth_headers_for(user: User) -> Dict[str, str]:
    access_token = create_access_token({"user_id": user.id})
    return {"Authorization": f"Bearer {access_token}"}


def correct_answers(test: Test, count: Optional[int] = None) -> Dict[str, str]:
    """Answers keyed by question id, the first ``count`` of them correct."""
    questions: List[Question] = sorted(test.questions, key=lambda q: q.position)
    count = len(questions) if count is None else count
    return {
        str(q.id): (q.correct_answer if i < count else "wrong")
        for i, q in enumerate(questions)
    }
