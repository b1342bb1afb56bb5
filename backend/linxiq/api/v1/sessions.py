"""
Test session endpoints: start/resume, proctoring events, submit.
"""
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from linxiq.core.auth import Caller, get_current_caller, require_permission
from linxiq.core.permissions import Permission
from linxiq.models import get_db
from linxiq.schemas.results import TestResultResponse
from linxiq.schemas.sessions import (
    ProctoringEvent,
    StartSessionRequest,
    StartSessionResponse,
    SubmitSessionRequest,
    SubmitSessionResponse,
    TestSessionResponse,
)
from linxiq.services.sessions import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter()


def get_session_manager(db: Session = Depends(get_db)) -> SessionManager:
    return SessionManager(db)


@router.post("/start", response_model=StartSessionResponse)
def start_session(
    payload: StartSessionRequest,
    response: Response,
    caller: Caller = Depends(require_permission(Permission.TAKE_TESTS)),
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Start a new attempt at an assigned test, or resume the one in progress.

    Returns 201 when a session was created and 200 when an existing
    in-progress session was resumed. Concurrent calls resolve to the same
    session.
    """
    session, created = manager.start_or_resume(caller, payload.test_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return StartSessionResponse(
        session=TestSessionResponse.model_validate(session), resumed=not created
    )


@router.get("/{session_id}", response_model=TestSessionResponse)
def get_session(
    session_id: int,
    caller: Caller = Depends(get_current_caller),
    manager: SessionManager = Depends(get_session_manager),
):
    """Fetch a session owned by the caller."""
    return manager.get_session(caller, session_id)


@router.post("/{session_id}/events", response_model=TestSessionResponse)
def record_event(
    session_id: int,
    event: ProctoringEvent,
    caller: Caller = Depends(require_permission(Permission.TAKE_TESTS)),
    manager: SessionManager = Depends(get_session_manager),
):
    """Append a proctoring event to an in-progress session."""
    return manager.record_proctoring_event(caller, session_id, event.to_record())


@router.post("/{session_id}/submit", response_model=SubmitSessionResponse)
def submit_session(
    session_id: int,
    payload: SubmitSessionRequest,
    response: Response,
    caller: Caller = Depends(require_permission(Permission.TAKE_TESTS)),
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Submit answers and complete the session.

    Idempotent: the first submit returns 201; replays return 200 with the
    same result. The score is included only when the caller may see it.
    Returns 503 with Retry-After if the catalog is unavailable; the session
    stays completed and a retry will score it.
    """
    result, created = manager.submit(
        caller,
        session_id,
        payload.answers,
        time_spent=payload.time_spent,
        events=[e.to_record() for e in payload.proctoring_events],
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK

    visible = manager.results.is_visible_to(result, caller)
    return SubmitSessionResponse(
        session_id=session_id,
        result_id=result.id,
        created=created,
        results_visible=visible,
        result=TestResultResponse.model_validate(result) if visible else None,
    )
