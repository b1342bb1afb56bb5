"""
Standardized error response messages and HTTP mapping for domain errors.

This module centralizes the user-facing error strings used across the API,
the helpers that raise HTTPException with them, and the exception handler
that turns linxiq.core.exceptions.AssessmentError subclasses into HTTP
responses.

Usage:
    from linxiq.core.error_responses import ErrorMessages, raise_not_found

    if assignment is None:
        raise_not_found(ErrorMessages.ASSIGNMENT_NOT_FOUND)
"""
import logging
from typing import Dict, NoReturn, Optional, Tuple, Type

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from linxiq.core.exceptions import (
    AnalyticsGenerationFailedError,
    AssessmentError,
    AssignmentNotFoundError,
    AttemptsExhaustedError,
    CatalogUnavailableError,
    DuplicateAssignmentError,
    ForbiddenError,
    InvalidTransitionError,
    NotAssignedError,
    ResultNotFoundError,
    ResultsHiddenError,
    SessionNotFoundError,
    SessionNotInProgressError,
)

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying a catalog-dependent call
CATALOG_RETRY_AFTER_SECONDS = 30


class ErrorMessages:
    """User-facing error message catalogue."""

    # Authentication / authorization
    INVALID_TOKEN = "Could not validate credentials"
    INVALID_TOKEN_PAYLOAD = "Invalid token payload"
    USER_NOT_FOUND_AUTH = "User not found"
    UNKNOWN_ROLE = "User role is not recognised"
    INSUFFICIENT_PERMISSIONS = "You do not have permission to perform this action"

    # Assignments
    ASSIGNMENT_NOT_FOUND = "Assignment not found"
    NOT_ASSIGNED = "This test has not been assigned to you"
    DUPLICATE_ASSIGNMENT = "This test is already assigned to this person"
    ATTEMPTS_EXHAUSTED = "You have used all allowed attempts for this test"
    TEST_NOT_FOUND = "Test not found"
    PERSON_NOT_FOUND = "Person not found"

    # Sessions
    SESSION_NOT_FOUND = "Test session not found"
    SESSION_NOT_OWNED = "Not authorized to access this test session"
    SESSION_NOT_IN_PROGRESS = "Test session is not in progress"

    # Results
    RESULT_NOT_FOUND = "Test result not found"
    RESULTS_HIDDEN = "Results for this assessment have not been released yet"
    NO_RESULTS_FOR_PERSON = "No test results found for this person"

    # Catalog
    CATALOG_UNAVAILABLE = (
        "Test content is temporarily unavailable. "
        "Your answers have been saved; please retry shortly."
    )

    # Analytics
    ANALYTICS_UNAVAILABLE = (
        "The skill-gap analysis could not be generated right now. "
        "The score is recorded; please retry later."
    )
    INSIGHTS_UNAVAILABLE = "No insight provider is available right now"

    @staticmethod
    def invalid_transition(current: str, requested: str) -> str:
        """Message for a rejected assignment status change."""
        return f"Cannot change assignment status from '{current}' to '{requested}'."

    @staticmethod
    def missing_permission(permission: str) -> str:
        """Message naming the capability a caller lacks."""
        return f"Missing required permission: {permission}"


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def raise_unauthorized(
    detail: str,
    include_www_authenticate: bool = True,
) -> NoReturn:
    """Raise a 401 Unauthorized exception.

    Args:
        detail: User-facing error message
        include_www_authenticate: Whether to include WWW-Authenticate header
    """
    headers = {"WWW-Authenticate": "Bearer"} if include_www_authenticate else None
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=headers,
    )


def raise_forbidden(detail: str) -> NoReturn:
    """Raise a 403 Forbidden exception."""
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def raise_not_found(detail: str) -> NoReturn:
    """Raise a 404 Not Found exception."""
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def raise_service_unavailable(detail: str, retry_after: Optional[int] = None) -> NoReturn:
    """Raise a 503 Service Unavailable exception, optionally with Retry-After."""
    headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=detail,
        headers=headers,
    )


# ==============================================================================
# Domain Exception Mapping
# ==============================================================================

# Exception type -> (status code, user-facing message). Order matters only in
# that the first matching entry wins for subclasses.
_DOMAIN_ERROR_MAP: Dict[Type[AssessmentError], Tuple[int, str]] = {
    SessionNotFoundError: (status.HTTP_404_NOT_FOUND, ErrorMessages.SESSION_NOT_FOUND),
    AssignmentNotFoundError: (
        status.HTTP_404_NOT_FOUND,
        ErrorMessages.ASSIGNMENT_NOT_FOUND,
    ),
    ResultNotFoundError: (status.HTTP_404_NOT_FOUND, ErrorMessages.RESULT_NOT_FOUND),
    NotAssignedError: (status.HTTP_404_NOT_FOUND, ErrorMessages.NOT_ASSIGNED),
    ForbiddenError: (status.HTTP_403_FORBIDDEN, ErrorMessages.SESSION_NOT_OWNED),
    ResultsHiddenError: (status.HTTP_403_FORBIDDEN, ErrorMessages.RESULTS_HIDDEN),
    AttemptsExhaustedError: (status.HTTP_409_CONFLICT, ErrorMessages.ATTEMPTS_EXHAUSTED),
    DuplicateAssignmentError: (
        status.HTTP_409_CONFLICT,
        ErrorMessages.DUPLICATE_ASSIGNMENT,
    ),
    SessionNotInProgressError: (
        status.HTTP_409_CONFLICT,
        ErrorMessages.SESSION_NOT_IN_PROGRESS,
    ),
    CatalogUnavailableError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorMessages.CATALOG_UNAVAILABLE,
    ),
    AnalyticsGenerationFailedError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorMessages.ANALYTICS_UNAVAILABLE,
    ),
}


def status_for(exc: AssessmentError) -> Tuple[int, str]:
    """Resolve the HTTP status code and message for a domain exception."""
    if isinstance(exc, InvalidTransitionError):
        return (
            status.HTTP_409_CONFLICT,
            ErrorMessages.invalid_transition(
                exc.context["current"], exc.context["requested"]
            ),
        )
    for exc_type, mapping in _DOMAIN_ERROR_MAP.items():
        if isinstance(exc, exc_type):
            return mapping
    return status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message


async def assessment_error_handler(
    request: Request, exc: AssessmentError
) -> JSONResponse:
    """
    Translate a domain exception raised by a service into an HTTP response.

    4xx outcomes are logged at INFO; anything unmapped is logged as an error.
    """
    status_code, detail = status_for(exc)
    headers = None
    if isinstance(exc, CatalogUnavailableError):
        headers = {"Retry-After": str(CATALOG_RETRY_AFTER_SECONDS)}

    log_level = logging.ERROR if status_code >= 500 else logging.INFO
    logger.log(
        log_level,
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
    )
    return JSONResponse(
        status_code=status_code, content={"detail": detail}, headers=headers
    )
