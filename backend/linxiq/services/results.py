"""
Result store: the durable, idempotent record of completed attempts.

Exactly one TestResult exists per session. create_result() relies on the
unique constraint on ``test_results.session_id``: a concurrent duplicate
insert loses at the database, rolls back, and returns the winner's row.

Skill-gap analysis is attached separately and compute-if-absent. Only the
explicit force path overwrites an existing analysis, and nothing here ever
rewrites a score.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from linxiq.core.auth import Caller
from linxiq.core.datetime_utils import utc_now
from linxiq.core.domain_aggregation import DomainScore, UNKNOWN_DOMAIN
from linxiq.core.exceptions import (
    AnalyticsGenerationFailedError,
    ForbiddenError,
    ResultNotFoundError,
    ResultsHiddenError,
)
from linxiq.core.graceful_failure import graceful_failure
from linxiq.core.permissions import Permission
from linxiq.core.scoring import ScoreResult
from linxiq.core.skill_gap import SecurityPolicy, analyze
from linxiq.models import Test, TestAssignment, TestResult, TestSession, User
from linxiq.services.catalog import SqlCatalog

logger = logging.getLogger(__name__)


@dataclass
class BatchItem:
    result_id: int
    status: str  # "succeeded" | "skipped" | "failed"
    error: Optional[str] = None


@dataclass
class BatchReport:
    """Per-item outcome of a batch analytics run."""

    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    items: List[BatchItem] = field(default_factory=list)

    def record(self, result_id: int, status: str, error: Optional[str] = None) -> None:
        self.items.append(BatchItem(result_id=result_id, status=status, error=error))
        self.total += 1
        if status == "succeeded":
            self.succeeded += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1


class ResultStore:
    """Creates results, attaches analyses, and serves result reads."""

    def __init__(
        self,
        db: Session,
        catalog: Optional[SqlCatalog] = None,
        policy: Optional[SecurityPolicy] = None,
    ):
        self.db = db
        self.catalog = catalog or SqlCatalog(db)
        self.policy = policy

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_result(
        self,
        session: TestSession,
        scored: ScoreResult,
        *,
        completed_at: Optional[datetime] = None,
        with_analysis: bool = True,
    ) -> Tuple[TestResult, bool]:
        """
        Record the result for a completed session, at most once.

        Args:
            session: The completed session being scored
            scored: Output of score_session()
            completed_at: Completion time; the session's, else now
            with_analysis: Attach a skill-gap analysis after the insert commits

        Returns:
            (result, created). ``created`` is False when a result for this
            session already existed, in which case it is returned unchanged.
        """
        existing = self.get_by_session(session.id)
        if existing is not None:
            logger.info(
                f"Result {existing.id} already exists for session {session.id}; "
                "returning it unchanged"
            )
            return existing, False

        result = TestResult(
            session_id=session.id,
            user_id=session.user_id,
            test_id=session.test_id,
            assignment_id=session.assignment_id,
            score=scored.score,
            percentage=scored.percentage,
            passed=scored.passed,
            time_spent=session.time_spent,
            total_questions=scored.total_questions,
            correct_answers=scored.correct_answers,
            detailed_results=scored.detailed_results,
            skill_gap_analysis=None,
            completed_at=completed_at or session.completed_at or utc_now(),
        )
        self.db.add(result)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent submit inserted first; its row is the result
            self.db.rollback()
            winner = self.get_by_session(session.id)
            if winner is None:
                raise
            logger.info(
                f"Concurrent submit for session {session.id} resolved to "
                f"existing result {winner.id}"
            )
            return winner, False

        self.db.refresh(result)
        logger.info(
            f"Created result {result.id} for session {session.id}: "
            f"{result.score}/{result.total_questions} ({result.percentage}%), "
            f"passed={result.passed}",
            extra={"result_id": result.id, "session_id": session.id},
        )

        if with_analysis:
            with graceful_failure(
                "attach skill-gap analysis",
                logger,
                log_level=logging.ERROR,
                context={"result_id": result.id},
            ):
                self.attach_skill_gap_analysis(result.id)

        return result, True

    def build_analysis(self, result: TestResult) -> Dict[str, Any]:
        """
        Derive the skill-gap analysis for a result.

        Raises:
            AnalyticsGenerationFailedError: If the test, candidate, or any
                derivation step is unavailable
        """
        try:
            test = self.catalog.get_test(result.test_id)
            if test is None:
                raise AnalyticsGenerationFailedError(
                    result.id, f"test {result.test_id} not found"
                )

            candidate = self.db.query(User).filter(User.id == result.user_id).first()
            if candidate is None:
                raise AnalyticsGenerationFailedError(
                    result.id, f"person {result.user_id} not found"
                )

            session = (
                self.db.query(TestSession)
                .filter(TestSession.id == result.session_id)
                .first()
            )
            events = list(session.proctoring_events or []) if session else []

            return analyze(result, test, candidate, events, self.policy)
        except AnalyticsGenerationFailedError:
            raise
        except Exception as e:
            raise AnalyticsGenerationFailedError(result.id, str(e)) from e

    def attach_skill_gap_analysis(
        self,
        result_id: int,
        analysis: Optional[Dict[str, Any]] = None,
        *,
        force: bool = False,
    ) -> TestResult:
        """
        Attach an analysis to a result.

        Without ``force`` this is compute-if-absent: an existing analysis is
        left untouched, and the write itself is conditional on the column
        still being empty, so concurrent attaches cannot overwrite each other.
        With ``force`` the analysis is recomputed and overwritten.

        Raises:
            ResultNotFoundError: If the result does not exist
            AnalyticsGenerationFailedError: If the analysis cannot be derived
        """
        result = self.get_by_id(result_id)
        if result.skill_gap_analysis is not None and not force:
            return result

        if analysis is None:
            analysis = self.build_analysis(result)

        query = self.db.query(TestResult).filter(TestResult.id == result_id)
        if not force:
            query = query.filter(TestResult.skill_gap_analysis.is_(None))
        try:
            updated = query.update(
                {TestResult.skill_gap_analysis: analysis}, synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(result)

        if updated:
            logger.info(
                f"{'Recomputed' if force else 'Attached'} skill-gap analysis "
                f"for result {result_id}",
                extra={"result_id": result_id},
            )
        return result

    def generate_missing_analyses(self) -> BatchReport:
        """Compute-if-absent across every result still lacking an analysis."""
        ids = [
            row.id
            for row in self.db.query(TestResult.id)
            .filter(TestResult.skill_gap_analysis.is_(None))
            .order_by(TestResult.id)
            .all()
        ]
        return self._run_batch(ids, force=False)

    def force_recompute_analyses(
        self, result_ids: Optional[Sequence[int]] = None
    ) -> BatchReport:
        """
        Overwrite the analysis of every result in the set (all results when
        ``result_ids`` is None). Scores are never touched.
        """
        if result_ids is None:
            ids = [
                row.id for row in self.db.query(TestResult.id).order_by(TestResult.id)
            ]
        else:
            ids = list(result_ids)
        return self._run_batch(ids, force=True)

    def _run_batch(self, result_ids: Sequence[int], force: bool) -> BatchReport:
        report = BatchReport()
        for result_id in result_ids:
            try:
                result = self.get_by_id(result_id)
                if result.skill_gap_analysis is not None and not force:
                    report.record(result_id, "skipped")
                    continue
                self.attach_skill_gap_analysis(result_id, force=force)
                report.record(result_id, "succeeded")
            except (
                AnalyticsGenerationFailedError,
                ResultNotFoundError,
                SQLAlchemyError,
            ) as e:
                self.db.rollback()
                message = e.message if hasattr(e, "message") else str(e)
                logger.warning(f"Analytics batch item {result_id} failed: {message}")
                report.record(result_id, "failed", message)

        logger.info(
            f"Analytics batch ({'force' if force else 'missing'}) finished: "
            f"{report.succeeded} succeeded, {report.skipped} skipped, "
            f"{report.failed} failed of {report.total}"
        )
        return report

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_session(self, session_id: int) -> Optional[TestResult]:
        return (
            self.db.query(TestResult).filter(TestResult.session_id == session_id).first()
        )

    def get_by_id(self, result_id: int) -> TestResult:
        result = self.db.query(TestResult).filter(TestResult.id == result_id).first()
        if result is None:
            raise ResultNotFoundError(result_id=result_id)
        return result

    def get_by_user(self, person_id: int) -> List[TestResult]:
        """A person's results, most recent first."""
        return (
            self.db.query(TestResult)
            .filter(TestResult.user_id == person_id)
            .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
            .all()
        )

    def get_all(self, limit: int = 100, offset: int = 0) -> List[TestResult]:
        return (
            self.db.query(TestResult)
            .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get_skill_gap_report(self, person_id: int) -> TestResult:
        """
        The person's most recent result with its analysis attached.

        Raises:
            ResultNotFoundError: If the person has no results
            AnalyticsGenerationFailedError: If the analysis is absent and
                cannot be generated now
        """
        latest = (
            self.db.query(TestResult)
            .filter(TestResult.user_id == person_id)
            .order_by(TestResult.completed_at.desc(), TestResult.id.desc())
            .first()
        )
        if latest is None:
            raise ResultNotFoundError(person_id=person_id)
        return self.attach_skill_gap_analysis(latest.id)

    def domain_scores(
        self, person_id: Optional[int] = None, released_only: bool = False
    ) -> List[DomainScore]:
        """
        One DomainScore per result, optionally limited to one person.

        With ``released_only`` only results whose assignment has
        ``results_visible`` set are included.
        """
        query = (
            self.db.query(Test.domain, TestResult.percentage)
            .select_from(TestResult)
            .outerjoin(Test, Test.id == TestResult.test_id)
        )
        if person_id is not None:
            query = query.filter(TestResult.user_id == person_id)
        if released_only:
            query = query.join(
                TestAssignment, TestAssignment.id == TestResult.assignment_id
            ).filter(TestAssignment.results_visible.is_(True))
        rows = query.order_by(TestResult.id).all()
        return [
            DomainScore(domain=domain or UNKNOWN_DOMAIN, percentage=percentage)
            for domain, percentage in rows
        ]

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def is_visible_to(self, result: TestResult, caller: Caller) -> bool:
        """Whether ``caller`` may read the score of ``result``."""
        if caller.can(Permission.VIEW_ALL_RESULTS):
            return True
        if result.user_id != caller.person_id:
            return False
        if result.assignment_id is None:
            return False
        assignment = (
            self.db.query(TestAssignment)
            .filter(TestAssignment.id == result.assignment_id)
            .first()
        )
        return bool(assignment and assignment.results_visible)

    def ensure_visible(self, result: TestResult, caller: Caller) -> TestResult:
        """
        Raises:
            ForbiddenError: If the caller neither owns the result nor may view all
            ResultsHiddenError: If the owner's results have not been released
        """
        if self.is_visible_to(result, caller):
            return result
        if result.user_id != caller.person_id:
            raise ForbiddenError(
                f"Person {caller.person_id} may not read result {result.id}"
            )
        raise ResultsHiddenError(result.id)
