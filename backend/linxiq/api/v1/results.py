"""
Result and skill-gap analysis endpoints.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from linxiq.core.auth import Caller, get_current_caller, require_permission
from linxiq.core.error_responses import (
    ErrorMessages,
    raise_forbidden,
    raise_service_unavailable,
)
from linxiq.core.permissions import Permission
from linxiq.core.providers import (
    InsightProvider,
    InsightRequest,
    ProviderExhaustedError,
    TemplateInsightProvider,
    call_with_fallback,
)
from linxiq.core.skill_gap import missed_questions
from linxiq.models import get_db
from linxiq.schemas.results import (
    BatchReportResponse,
    ForceRegenerateRequest,
    InsightResponse,
    SkillGapReportResponse,
    TestResultResponse,
)
from linxiq.services.catalog import SqlCatalog
from linxiq.services.results import ResultStore

logger = logging.getLogger(__name__)

router = APIRouter()


def get_result_store(db: Session = Depends(get_db)) -> ResultStore:
    return ResultStore(db)


def get_insight_providers() -> List[InsightProvider]:
    """Ordered insight providers, most preferred first."""
    return [TemplateInsightProvider()]


@router.get("/mine", response_model=List[TestResultResponse])
def list_my_results(
    caller: Caller = Depends(require_permission(Permission.VIEW_OWN_RESULTS)),
    store: ResultStore = Depends(get_result_store),
):
    """The caller's released results, most recent first."""
    return [r for r in store.get_by_user(caller.person_id) if store.is_visible_to(r, caller)]


@router.get("", response_model=List[TestResultResponse])
def list_all_results(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(require_permission(Permission.VIEW_ALL_RESULTS)),
    store: ResultStore = Depends(get_result_store),
):
    """All results across the organisation, most recent first."""
    return store.get_all(limit=limit, offset=offset)


@router.get("/skill-gap/{person_id}", response_model=SkillGapReportResponse)
def get_skill_gap_report(
    person_id: int,
    caller: Caller = Depends(get_current_caller),
    store: ResultStore = Depends(get_result_store),
):
    """
    Skill-gap analysis of a person's most recent result, generated on first
    request if absent.

    Callers may read their own (once released) or anyone's with
    view_all_analytics.
    """
    if person_id != caller.person_id and not caller.can(Permission.VIEW_ALL_ANALYTICS):
        raise_forbidden(ErrorMessages.INSUFFICIENT_PERMISSIONS)

    result = store.get_skill_gap_report(person_id)
    if not caller.can(Permission.VIEW_ALL_ANALYTICS):
        store.ensure_visible(result, caller)

    return SkillGapReportResponse(
        result_id=result.id,
        person_id=result.user_id,
        test_id=result.test_id,
        completed_at=result.completed_at,
        skill_gap_analysis=result.skill_gap_analysis,
    )


@router.post("/skill-gap/generate-missing", response_model=BatchReportResponse)
def generate_missing_analyses(
    caller: Caller = Depends(require_permission(Permission.MANAGE_RESULTS)),
    store: ResultStore = Depends(get_result_store),
):
    """Generate analyses for every result lacking one. Partial failure is reported per item."""
    return store.generate_missing_analyses()


@router.post("/skill-gap/force-regenerate", response_model=BatchReportResponse)
def force_regenerate_analyses(
    payload: Optional[ForceRegenerateRequest] = Body(None),
    caller: Caller = Depends(require_permission(Permission.MANAGE_RESULTS)),
    store: ResultStore = Depends(get_result_store),
):
    """Recompute and overwrite analyses; scores are untouched."""
    result_ids = payload.result_ids if payload else None
    logger.info(
        f"Person {caller.person_id} forced analytics regeneration "
        f"for {'all results' if result_ids is None else len(result_ids)}"
    )
    return store.force_recompute_analyses(result_ids)


@router.get("/{result_id}", response_model=TestResultResponse)
def get_result(
    result_id: int,
    caller: Caller = Depends(get_current_caller),
    store: ResultStore = Depends(get_result_store),
):
    """Fetch one result, subject to release rules."""
    return store.ensure_visible(store.get_by_id(result_id), caller)


@router.get("/{result_id}/insights", response_model=InsightResponse)
def get_result_insights(
    result_id: int,
    caller: Caller = Depends(get_current_caller),
    store: ResultStore = Depends(get_result_store),
    providers: List[InsightProvider] = Depends(get_insight_providers),
    db: Session = Depends(get_db),
):
    """Narrative insight for a result from the first available provider."""
    result = store.ensure_visible(store.get_by_id(result_id), caller)
    test = SqlCatalog(db).require_test(result.test_id)

    request = InsightRequest(
        result_id=result.id,
        domain=test.domain,
        level=test.level,
        percentage=result.percentage,
        missed_questions=missed_questions(result.detailed_results),
    )
    try:
        response = call_with_fallback(providers, request)
    except ProviderExhaustedError as e:
        logger.error(f"No insight for result {result_id}: {e}")
        raise_service_unavailable(ErrorMessages.INSIGHTS_UNAVAILABLE)

    return InsightResponse(
        result_id=result.id, provider=response.provider, insight=response.insight
    )
