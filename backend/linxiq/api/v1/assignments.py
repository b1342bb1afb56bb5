"""
Assignment endpoints.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from linxiq.core.auth import Caller, require_permission
from linxiq.core.error_responses import ErrorMessages, raise_not_found
from linxiq.core.permissions import Permission
from linxiq.models import User, get_db
from linxiq.schemas.assignments import (
    AssignmentCreate,
    AssignmentResponse,
    AssignmentStatusUpdate,
    AssignmentVisibilityUpdate,
)
from linxiq.services.assignments import AssignmentLedger
from linxiq.services.catalog import SqlCatalog

logger = logging.getLogger(__name__)

router = APIRouter()


def get_ledger(db: Session = Depends(get_db)) -> AssignmentLedger:
    return AssignmentLedger(db)


@router.post(
    "", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED
)
def assign_test(
    payload: AssignmentCreate,
    caller: Caller = Depends(require_permission(Permission.ASSIGN_TEST)),
    db: Session = Depends(get_db),
    ledger: AssignmentLedger = Depends(get_ledger),
):
    """
    Assign a test to a person.

    Returns 409 if the person already has this test.
    """
    if db.query(User.id).filter(User.id == payload.person_id).first() is None:
        raise_not_found(ErrorMessages.PERSON_NOT_FOUND)
    if SqlCatalog(db).get_test(payload.test_id) is None:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)

    return ledger.create_assignment(
        payload.person_id,
        payload.test_id,
        assigned_by=caller.person_id,
        scheduled_at=payload.scheduled_at,
        due_date=payload.due_date,
        time_limit=payload.time_limit,
        max_attempts=payload.max_attempts,
        results_visible=payload.results_visible,
    )


@router.get("/mine", response_model=List[AssignmentResponse])
def list_my_assignments(
    caller: Caller = Depends(require_permission(Permission.VIEW_OWN_ASSIGNMENTS)),
    ledger: AssignmentLedger = Depends(get_ledger),
):
    """List the caller's own assignments, newest first."""
    return ledger.list_for_person(caller.person_id)


@router.patch("/{assignment_id}/status", response_model=AssignmentResponse)
def update_assignment_status(
    assignment_id: int,
    payload: AssignmentStatusUpdate,
    caller: Caller = Depends(require_permission(Permission.MANAGE_ASSIGNMENTS)),
    ledger: AssignmentLedger = Depends(get_ledger),
):
    """
    Move an assignment forward.

    Allowed transitions: assigned -> started, started -> completed,
    assigned -> completed. Anything else returns 409.
    """
    return ledger.update_status(assignment_id, payload.status)


@router.patch("/{assignment_id}/visibility", response_model=AssignmentResponse)
def set_results_visibility(
    assignment_id: int,
    payload: AssignmentVisibilityUpdate,
    caller: Caller = Depends(require_permission(Permission.MANAGE_RESULTS)),
    ledger: AssignmentLedger = Depends(get_ledger),
):
    """Release (or hide) the result of an assignment to its candidate."""
    return ledger.toggle_results_visible(assignment_id, payload.results_visible)
