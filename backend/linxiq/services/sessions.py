"""
Session manager: start/resume attempts, collect proctoring events, submit.

Active Session Strategy
=======================
At most one in-progress session may exist per (person, test). The fast path
looks for an existing in-progress session and returns it. Creation is
guarded by the partial unique index ``uq_test_sessions_active_attempt``: if
two starts race past the lookup, the second INSERT fails, the transaction is
rolled back, and the caller receives the winner's session. There is no
read-then-write window that could produce two rows.

Submit Strategy
===============
Submitting first marks the session completed and commits, so a catalog
outage afterwards leaves a completed-but-unscored session that a retry can
score. Result creation is idempotent per session (see ResultStore), so a
retried or concurrent submit returns the same result and never re-scores a
session that already has one.
"""
import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linxiq.core.auth import Caller
from linxiq.core.datetime_utils import utc_now
from linxiq.core.exceptions import (
    AlreadyCompleted,
    AttemptsExhaustedError,
    ForbiddenError,
    NotAssignedError,
    SessionNotFoundError,
    SessionNotInProgressError,
)
from linxiq.core.graceful_failure import graceful_failure
from linxiq.core.permissions import Permission
from linxiq.core.scoring import score_session
from linxiq.models import (
    AssignmentStatus,
    SessionStatus,
    TestAssignment,
    TestResult,
    TestSession,
)
from linxiq.services.assignments import AssignmentLedger
from linxiq.services.catalog import SqlCatalog
from linxiq.services.notifications import LoggingNotifier, Notifier
from linxiq.services.results import ResultStore

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns the session state machine: in_progress --submit--> completed."""

    def __init__(
        self,
        db: Session,
        catalog: Optional[SqlCatalog] = None,
        results: Optional[ResultStore] = None,
        ledger: Optional[AssignmentLedger] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.db = db
        self.catalog = catalog or SqlCatalog(db)
        self.results = results or ResultStore(db, catalog=self.catalog)
        self.ledger = ledger or AssignmentLedger(db)
        self.notifier = notifier or LoggingNotifier()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _find_active_session(self, person_id: int, test_id: int) -> Optional[TestSession]:
        return (
            self.db.query(TestSession)
            .filter(
                TestSession.user_id == person_id,
                TestSession.test_id == test_id,
                TestSession.status == SessionStatus.IN_PROGRESS.value,
            )
            .first()
        )

    def _completed_attempts(self, person_id: int, test_id: int) -> int:
        return (
            self.db.query(TestSession)
            .filter(
                TestSession.user_id == person_id,
                TestSession.test_id == test_id,
                TestSession.status == SessionStatus.COMPLETED.value,
            )
            .count()
        )

    def _load_owned(
        self, caller: Caller, session_id: int, for_update: bool = False
    ) -> TestSession:
        query = self.db.query(TestSession).filter(TestSession.id == session_id)
        if for_update:
            query = query.with_for_update()
        session = query.first()
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.user_id != caller.person_id:
            raise ForbiddenError(
                f"Person {caller.person_id} does not own session {session_id}"
            )
        return session

    def get_session(self, caller: Caller, session_id: int) -> TestSession:
        """
        Read a session. Owners may always read their own; callers holding
        VIEW_ALL_RESULTS may read any.
        """
        if caller.can(Permission.VIEW_ALL_RESULTS):
            session = (
                self.db.query(TestSession).filter(TestSession.id == session_id).first()
            )
            if session is None:
                raise SessionNotFoundError(session_id)
            return session
        return self._load_owned(caller, session_id)

    # ------------------------------------------------------------------
    # Start / resume
    # ------------------------------------------------------------------

    def start_or_resume(self, caller: Caller, test_id: int) -> Tuple[TestSession, bool]:
        """
        Return the caller's in-progress session for a test, creating it if needed.

        Returns:
            (session, created). ``created`` is False when an existing
            in-progress session was resumed.

        Raises:
            NotAssignedError: If the caller has no assignment for the test
            AttemptsExhaustedError: If a new attempt would exceed max_attempts
        """
        person_id = caller.person_id
        assignment = self.ledger.get_for(person_id, test_id)
        if assignment is None:
            raise NotAssignedError(person_id, test_id)

        active = self._find_active_session(person_id, test_id)
        if active is not None:
            logger.info(
                f"Resuming session {active.id} for person {person_id}, test {test_id}",
                extra={
                    "session_id": active.id,
                    "person_id": person_id,
                    "test_id": test_id,
                },
            )
            return active, False

        completed = self._completed_attempts(person_id, test_id)
        if completed >= assignment.max_attempts:
            raise AttemptsExhaustedError(person_id, test_id, assignment.max_attempts)

        session = TestSession(
            user_id=person_id,
            test_id=test_id,
            assignment_id=assignment.id,
            status=SessionStatus.IN_PROGRESS.value,
            answers={},
            proctoring_events=[],
            started_at=utc_now(),
        )
        self.db.add(session)

        try:
            self.db.flush()
        except IntegrityError:
            # A concurrent start inserted first; the unique index kept it single
            self.db.rollback()
            winner = self._find_active_session(person_id, test_id)
            if winner is None:
                raise
            logger.warning(
                f"Concurrent start for person {person_id}, test {test_id} "
                f"resolved to existing session {winner.id}"
            )
            return winner, False

        if assignment.status == AssignmentStatus.ASSIGNED.value:
            self.ledger.apply_status(assignment, AssignmentStatus.STARTED)

        self.db.commit()
        self.db.refresh(session)
        logger.info(
            f"Created session {session.id} for person {person_id}, test {test_id} "
            f"(attempt {completed + 1} of {assignment.max_attempts})",
            extra={
                "session_id": session.id,
                "person_id": person_id,
                "test_id": test_id,
            },
        )
        return session, True

    # ------------------------------------------------------------------
    # Proctoring
    # ------------------------------------------------------------------

    def record_proctoring_event(
        self, caller: Caller, session_id: int, event: Dict[str, Any]
    ) -> TestSession:
        """
        Append one proctoring event. Events are kept in arrival order and
        never deduplicated; analysis orders them by their own timestamps.

        Raises:
            SessionNotFoundError, ForbiddenError, SessionNotInProgressError
        """
        session = self._load_owned(caller, session_id, for_update=True)
        if session.status != SessionStatus.IN_PROGRESS.value:
            raise SessionNotInProgressError(session_id, session.status)

        # Reassign so the JSON column is flagged dirty
        session.proctoring_events = list(session.proctoring_events or []) + [event]
        self.db.commit()
        self.db.refresh(session)
        logger.debug(
            f"Recorded proctoring event '{event.get('type')}' on session {session_id}"
        )
        return session

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    def _complete(
        self,
        session: TestSession,
        answers: Mapping[str, Any],
        time_spent: Optional[int],
        events: Sequence[Dict[str, Any]],
    ) -> None:
        if session.status == SessionStatus.COMPLETED.value:
            existing = self.results.get_by_session(session.id)
            if existing is not None:
                raise AlreadyCompleted(session.id, existing.id)
            # Completed earlier but never scored; score the stored answers
            logger.info(
                f"Session {session.id} is completed without a result; scoring it now"
            )
            return

        merged: Dict[str, Any] = dict(session.answers or {})
        merged.update({str(k): v for k, v in answers.items()})
        session.answers = merged
        if events:
            session.proctoring_events = list(session.proctoring_events or []) + list(
                events
            )
        session.status = SessionStatus.COMPLETED.value
        session.completed_at = utc_now()
        session.time_spent = time_spent
        self.db.commit()
        self.db.refresh(session)

    def submit(
        self,
        caller: Caller,
        session_id: int,
        answers: Mapping[str, Any],
        time_spent: Optional[int] = None,
        events: Optional[Sequence[Dict[str, Any]]] = None,
    ) -> Tuple[TestResult, bool]:
        """
        Complete a session and record its result exactly once.

        Safe to retry: a session that already has a result returns it with
        ``created=False`` and is not re-scored.

        Returns:
            (result, created)

        Raises:
            SessionNotFoundError: If the session does not exist
            ForbiddenError: If the caller does not own the session
            CatalogUnavailableError: If questions or test metadata cannot be
                loaded. The session stays completed and a retry will score it.
        """
        session = self._load_owned(caller, session_id, for_update=True)

        try:
            self._complete(session, answers, time_spent, list(events or []))
        except AlreadyCompleted as done:
            logger.info(
                f"Replayed submit for session {session_id}; returning result "
                f"{done.context['result_id']}",
                extra={
                    "session_id": session_id,
                    "result_id": done.context["result_id"],
                },
            )
            return self.results.get_by_id(done.context["result_id"]), False

        test = self.catalog.require_test(session.test_id)
        questions = self.catalog.get_questions(session.test_id)
        scored = score_session(session.answers or {}, questions, test.passing_score)

        result, created = self.results.create_result(
            session, scored, completed_at=session.completed_at
        )

        assignment = self._complete_assignment(session)

        if created:
            self._notify(result, assignment)
        return result, created

    def _complete_assignment(self, session: TestSession) -> Optional[TestAssignment]:
        if session.assignment_id is None:
            return None
        assignment = self.ledger.get(session.assignment_id)
        if assignment.status != AssignmentStatus.COMPLETED.value:
            self.ledger.apply_status(assignment, AssignmentStatus.COMPLETED)
            self.db.commit()
            self.db.refresh(assignment)
        return assignment

    def _notify(self, result: TestResult, assignment: Optional[TestAssignment]) -> None:
        with graceful_failure(
            "send result notification", logger, context={"result_id": result.id}
        ):
            self.notifier.result_created(result)
        if assignment is not None:
            with graceful_failure(
                "send assignment notification",
                logger,
                context={"assignment_id": assignment.id},
            ):
                self.notifier.assignment_completed(assignment)

