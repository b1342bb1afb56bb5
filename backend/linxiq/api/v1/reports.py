"""
Skill-gap reporting endpoints.

Both reports re-run the domain bucketing in linxiq.core.domain_aggregation
over stored results; nothing here is cached.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from linxiq.core.auth import Caller, get_current_caller, require_permission
from linxiq.core import settings
from linxiq.core.domain_aggregation import build_org_report, build_person_report
from linxiq.core.error_responses import ErrorMessages, raise_forbidden
from linxiq.core.exceptions import ResultNotFoundError, ResultsHiddenError
from linxiq.core.permissions import Permission
from linxiq.models import TestAssignment, get_db
from linxiq.schemas.reports import OrgSkillGapReport, PersonSkillGapReport
from linxiq.services.results import ResultStore

router = APIRouter()


@router.get("/skill-gaps", response_model=OrgSkillGapReport)
def organisation_report(
    caller: Caller = Depends(require_permission(Permission.VIEW_ALL_ANALYTICS)),
    db: Session = Depends(get_db),
):
    """
    Organisation-wide domain averages, skill-level distribution, and
    training priorities. completion_rate is results per assignment.
    """
    points = ResultStore(db).domain_scores()
    assignments = db.query(TestAssignment.id).count()
    return build_org_report(
        points,
        population=assignments,
        threshold=settings.TRAINING_PRIORITY_THRESHOLD,
        limit=settings.TRAINING_PRIORITY_LIMIT,
    )


@router.get("/skill-gaps/{person_id}", response_model=PersonSkillGapReport)
def person_report(
    person_id: int,
    caller: Caller = Depends(get_current_caller),
    db: Session = Depends(get_db),
):
    """
    Domain strengths and gaps for one person across all their results.

    Without view_all_analytics only released results are aggregated, so the
    report never shows a score the person could not read directly.
    """
    sees_all = caller.can(Permission.VIEW_ALL_ANALYTICS)
    if person_id == caller.person_id:
        allowed = sees_all or caller.can(Permission.VIEW_OWN_ANALYTICS)
    else:
        allowed = sees_all
    if not allowed:
        raise_forbidden(ErrorMessages.INSUFFICIENT_PERMISSIONS)

    store = ResultStore(db)
    points = store.domain_scores(person_id, released_only=not sees_all)
    if not points:
        hidden = [] if sees_all else store.get_by_user(person_id)
        if hidden:
            raise ResultsHiddenError(hidden[0].id)
        raise ResultNotFoundError(person_id=person_id)
    return build_person_report(person_id, points)
