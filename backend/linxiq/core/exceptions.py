"""
Domain exceptions for the assessment lifecycle.

Services raise these; the HTTP layer maps them to status codes in
linxiq.core.error_responses. Nothing in the service layer raises
HTTPException directly, so the lifecycle can also run from batch jobs.
"""
from typing import Any, Optional


class AssessmentError(Exception):
    """Base class for all assessment lifecycle errors."""

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)


class NotAssignedError(AssessmentError):
    """The person has no assignment for the requested test."""

    def __init__(self, person_id: int, test_id: int):
        super().__init__(
            f"Person {person_id} is not assigned test {test_id}",
            person_id=person_id,
            test_id=test_id,
        )


class ForbiddenError(AssessmentError):
    """The caller does not own the resource or lacks the capability."""


class SessionNotFoundError(AssessmentError):
    def __init__(self, session_id: int):
        super().__init__(f"Session {session_id} not found", session_id=session_id)


class AssignmentNotFoundError(AssessmentError):
    def __init__(self, assignment_id: int):
        super().__init__(
            f"Assignment {assignment_id} not found", assignment_id=assignment_id
        )


class ResultNotFoundError(AssessmentError):
    def __init__(self, result_id: Optional[int] = None, person_id: Optional[int] = None):
        if result_id is not None:
            message = f"Result {result_id} not found"
        else:
            message = f"No results found for person {person_id}"
        super().__init__(message, result_id=result_id, person_id=person_id)


class SessionNotInProgressError(AssessmentError):
    """A mutation was attempted on a session that is already completed."""

    def __init__(self, session_id: int, status: str):
        super().__init__(
            f"Session {session_id} is {status}", session_id=session_id, status=status
        )


class AlreadyCompleted(AssessmentError):
    """
    Informational: a submit replayed against a completed session.

    Never surfaces to the client. The submit path catches it and returns the
    existing Result instead.
    """

    def __init__(self, session_id: int, result_id: int):
        super().__init__(
            f"Session {session_id} already has result {result_id}",
            session_id=session_id,
            result_id=result_id,
        )


class CatalogUnavailableError(AssessmentError):
    """The catalog could not supply questions or test metadata. Retryable."""

    def __init__(self, test_id: int, reason: str):
        super().__init__(
            f"Catalog unavailable for test {test_id}: {reason}",
            test_id=test_id,
            reason=reason,
        )


class AnalyticsGenerationFailedError(AssessmentError):
    """Skill-gap analysis could not be produced. Non-fatal to scoring."""

    def __init__(self, result_id: Optional[int], reason: str):
        super().__init__(
            f"Analytics generation failed for result {result_id}: {reason}",
            result_id=result_id,
            reason=reason,
        )


class InvalidTransitionError(AssessmentError):
    def __init__(self, assignment_id: int, current: str, requested: str):
        super().__init__(
            f"Assignment {assignment_id} cannot move from {current} to {requested}",
            assignment_id=assignment_id,
            current=current,
            requested=requested,
        )


class AttemptsExhaustedError(AssessmentError):
    def __init__(self, person_id: int, test_id: int, max_attempts: int):
        super().__init__(
            f"Person {person_id} has used all {max_attempts} attempt(s) for test {test_id}",
            person_id=person_id,
            test_id=test_id,
            max_attempts=max_attempts,
        )


class DuplicateAssignmentError(AssessmentError):
    def __init__(self, person_id: int, test_id: int):
        super().__init__(
            f"Person {person_id} is already assigned test {test_id}",
            person_id=person_id,
            test_id=test_id,
        )


class ResultsHiddenError(AssessmentError):
    """The candidate's results have not been released by an administrator."""

    def __init__(self, result_id: int):
        super().__init__(
            f"Result {result_id} is not visible to the candidate",
            result_id=result_id,
        )
