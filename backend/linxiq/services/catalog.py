"""
Read-only catalog of tests and their questions.

The lifecycle only needs a test's metadata and its ordered reference
answers. Catalog rows are copied into plain dataclasses so callers never
hold ORM objects belonging to the catalog.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from linxiq.core.config import settings
from linxiq.core.exceptions import CatalogUnavailableError
from linxiq.models import Question, QuestionStatus, Test

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogTest:
    id: int
    title: str
    domain: str
    level: str
    passing_score: int
    total_questions: int


@dataclass(frozen=True)
class CatalogQuestion:
    id: int
    correct_answer: str


class SqlCatalog:
    """Catalog backed by the ``tests`` and ``questions`` tables."""

    def __init__(self, db: Session):
        self.db = db

    def get_test(self, test_id: int) -> Optional[CatalogTest]:
        """
        Fetch test metadata.

        A test without its own passing score uses DEFAULT_PASSING_SCORE.

        Raises:
            CatalogUnavailableError: If the lookup fails at the database level
        """
        try:
            test = self.db.query(Test).filter(Test.id == test_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Catalog lookup failed for test {test_id}: {e}")
            raise CatalogUnavailableError(test_id, str(e)) from e

        if test is None:
            return None

        passing_score = test.passing_score
        if passing_score is None:
            passing_score = settings.DEFAULT_PASSING_SCORE

        return CatalogTest(
            id=test.id,
            title=test.title,
            domain=test.domain,
            level=test.level,
            passing_score=passing_score,
            total_questions=test.total_questions,
        )

    def get_questions(self, test_id: int) -> List[CatalogQuestion]:
        """
        Fetch approved questions for a test, ordered by position then id.

        Raises:
            CatalogUnavailableError: If the lookup fails at the database level
        """
        try:
            rows = (
                self.db.query(Question.id, Question.correct_answer)
                .filter(
                    Question.test_id == test_id,
                    Question.status == QuestionStatus.APPROVED.value,
                )
                .order_by(Question.position, Question.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Catalog question lookup failed for test {test_id}: {e}")
            raise CatalogUnavailableError(test_id, str(e)) from e

        return [CatalogQuestion(id=row.id, correct_answer=row.correct_answer) for row in rows]

    def require_test(self, test_id: int) -> CatalogTest:
        """Like get_test, but a missing test is treated as the catalog being unavailable."""
        test = self.get_test(test_id)
        if test is None:
            raise CatalogUnavailableError(test_id, "test not found in catalog")
        return test
