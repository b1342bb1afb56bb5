"""
Skill-gap analysis for a single test result.

analyze() derives a JSON-serializable report from a result, its test, the
candidate profile, and the session's proctoring events. It performs no I/O
and reads no clock, so repeated calls with the same inputs return equal
reports. Every forward-looking figure here is a fixed heuristic of the
percentage, the time spent, and the event count; none is a fitted model.

Skill-level bands (inclusive lower bounds):
    >= 90  expert
    >= 75  advanced
    >= 60  intermediate
    else   beginner

The same 60/75 boundaries decide strength areas (>= 75) and skill gaps
(< 60) both here and in linxiq.core.domain_aggregation.
"""
from collections import Counter
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence

from linxiq.core.config import settings
from linxiq.core.datetime_utils import parse_event_timestamp
from linxiq.core.scoring import percentage_of

EXPERT_THRESHOLD = 90
ADVANCED_THRESHOLD = 75
INTERMEDIATE_THRESHOLD = 60

STRENGTH_THRESHOLD = ADVANCED_THRESHOLD
GAP_THRESHOLD = INTERMEDIATE_THRESHOLD

# Baseline pace used for the speed score
SECONDS_PER_QUESTION = 120

# Width of the sliding window used to find event bursts
EVENT_BURST_WINDOW = timedelta(seconds=60)

MISSED_QUESTION_LIMIT = 3

SEVERITIES = ("high", "medium", "low")

ScoringMode = Literal["auto", "severity", "flat"]


class ResultLike(Protocol):
    score: int
    percentage: int
    passed: bool
    time_spent: Optional[int]
    total_questions: int
    correct_answers: int
    detailed_results: Any
    completed_at: Any


class TestLike(Protocol):
    title: str
    domain: str
    level: str
    total_questions: int


class CandidateLike(Protocol):
    name: str
    email: str
    employee_id: Optional[str]
    department: Optional[str]
    position: Optional[str]


@dataclass(frozen=True)
class SecurityPolicy:
    """How proctoring events are turned into a security score."""

    mode: ScoringMode = "auto"
    high_penalty: int = 10
    medium_penalty: int = 5
    flat_penalty: int = 5

    @classmethod
    def from_settings(cls) -> "SecurityPolicy":
        return cls(
            mode=settings.SECURITY_SCORING_MODE,
            high_penalty=settings.HIGH_SEVERITY_PENALTY,
            medium_penalty=settings.MEDIUM_SEVERITY_PENALTY,
            flat_penalty=settings.FLAT_EVENT_PENALTY,
        )


def classify_skill_level(percentage: int) -> str:
    """Map a percentage to beginner / intermediate / advanced / expert."""
    if percentage >= EXPERT_THRESHOLD:
        return "expert"
    if percentage >= ADVANCED_THRESHOLD:
        return "advanced"
    if percentage >= INTERMEDIATE_THRESHOLD:
        return "intermediate"
    return "beginner"


def _band(percentage: int, low: str, mid: str, high: str) -> str:
    # Three-way split shared by the narrative fields: < 40, < 70, otherwise
    if percentage < 40:
        return low
    if percentage < 70:
        return mid
    return high


def _event_type(event: Dict[str, Any]) -> str:
    return str(event.get("type") or event.get("event_type") or "unknown")


def _event_severity(event: Dict[str, Any]) -> Optional[str]:
    severity = event.get("severity")
    if isinstance(severity, str) and severity.lower() in SEVERITIES:
        return severity.lower()
    return None


def resolve_scoring_mode(
    events: Sequence[Dict[str, Any]], mode: ScoringMode
) -> Literal["severity", "flat"]:
    """
    Pick exactly one deduction mode for a call.

    "auto" uses severity only when every event carries a recognised severity.
    """
    if mode != "auto":
        return mode
    if all(_event_severity(e) is not None for e in events):
        return "severity"
    return "flat"


def security_level_for(violation_count: int) -> str:
    """Band a violation count. The band depends on the count, not the score."""
    if violation_count == 0:
        return "Excellent"
    if violation_count <= 3:
        return "Good"
    if violation_count <= 6:
        return "Fair"
    return "Poor"


_TRUSTWORTHINESS = {
    "Excellent": "High",
    "Good": "Medium-High",
    "Fair": "Medium",
    "Poor": "Low",
}


def _peak_events_per_window(events: Sequence[Dict[str, Any]]) -> int:
    # Order by each event's own timestamp; arrival order is irrelevant
    stamps = []
    for event in events:
        try:
            stamps.append(parse_event_timestamp(event.get("timestamp")))
        except (TypeError, ValueError, OverflowError, OSError):
            continue
    stamps.sort()

    peak = 0
    start = 0
    for end, stamp in enumerate(stamps):
        while stamp - stamps[start] > EVENT_BURST_WINDOW:
            start += 1
        peak = max(peak, end - start + 1)
    return peak


def analyze_security(
    events: Sequence[Dict[str, Any]], policy: Optional[SecurityPolicy] = None
) -> Dict[str, Any]:
    """
    Score proctoring events.

    Starts at 100 and deducts per event (by severity, or a flat amount), with
    a floor of 0. security_level is banded by violation count, so the two can
    disagree: four medium events score 80 yet band as "Fair".
    """
    policy = policy or SecurityPolicy.from_settings()
    events = list(events or [])
    mode = resolve_scoring_mode(events, policy.mode)

    if mode == "severity":
        penalties = {
            "high": policy.high_penalty,
            "medium": policy.medium_penalty,
            "low": 0,
        }
        deduction = sum(penalties.get(_event_severity(e) or "", 0) for e in events)
    else:
        deduction = policy.flat_penalty * len(events)

    violation_count = len(events)
    level = security_level_for(violation_count)
    if violation_count == 0:
        compliance = "Full Compliance"
    elif violation_count <= 3:
        compliance = "Minor Violations"
    else:
        compliance = "Multiple Violations"

    by_type = Counter(_event_type(e) for e in events)
    by_severity = Counter(_event_severity(e) or "unspecified" for e in events)

    return {
        "violation_count": violation_count,
        "overall_security_score": max(0, 100 - deduction),
        "security_level": level,
        "trustworthiness": _TRUSTWORTHINESS[level],
        "proctoring_compliance": compliance,
        "scoring_mode": mode,
        "tab_switch_events": by_type.get("tab_switch", 0),
        "copy_attempts": by_type.get("copy_attempt", 0),
        "dev_tools_attempts": by_type.get("dev_tools", 0),
        "events_by_type": dict(sorted(by_type.items())),
        "events_by_severity": dict(sorted(by_severity.items())),
        "peak_events_per_minute": _peak_events_per_window(events),
    }


def missed_questions(detailed_results: Any) -> List[str]:
    """Summaries of the first few incorrectly answered questions."""
    if not isinstance(detailed_results, list):
        return []
    missed = [r for r in detailed_results if not r.get("is_correct")]
    return [
        f"Question {r.get('question_id')} - {r.get('user_answer') or 'Not answered'}"
        for r in missed[:MISSED_QUESTION_LIMIT]
    ]


def growth_rate(percentage: int) -> float:
    """Projected improvement rate in percent per quarter, 3.0 to 8.0."""
    return round(3.0 + percentage / 20.0, 1)


def speed_score(time_spent: Optional[int], total_questions: int) -> Optional[int]:
    """
    100 at or under the baseline pace, falling proportionally when slower.

    None when no time was recorded.
    """
    if not time_spent or time_spent <= 0:
        return None
    expected = max(total_questions, 0) * SECONDS_PER_QUESTION
    return min(100, percentage_of(expected, time_spent))


def consistency_score(percentage: int, violation_count: int) -> int:
    return max(0, min(100, percentage - 2 * violation_count))


def _predictive_analytics(
    percentage: int, time_spent: Optional[int], total_questions: int, violations: int
) -> Dict[str, Any]:
    return {
        "future_performance": min(100, percentage + 15),
        "promotion_readiness": min(100, percentage + 15),
        "career_track": (
            "Skill Development Track" if percentage < 50 else "Career Advancement Track"
        ),
        "growth_rate": growth_rate(percentage),
        "speed_score": speed_score(time_spent, total_questions),
        "consistency_score": consistency_score(percentage, violations),
        "estimated_time_to_next_level": _band(
            percentage, "12-18 months", "6-12 months", "3-6 months"
        ),
        "learning_curve": _band(
            percentage, "Steep Learning Required", "Steady Progress", "Advanced Mastery"
        ),
        "estimated_time_to_improve": _band(
            percentage, "6-9 months", "3-6 months", "2-3 months"
        ),
    }


def _training_recommendations(
    percentage: int, domain: str, level: str, missed: List[str]
) -> Dict[str, Any]:
    return {
        "priority": "High" if missed else "Medium",
        "focus_areas": missed[:3],
        "suggested_courses": [
            f"Advanced {domain} Training",
            f"{level} Level Certification Prep",
            "Problem Solving and Critical Thinking",
        ],
        "estimated_duration": _band(percentage, "3-6 months", "2-3 months", "1-2 months"),
        "immediate": (
            [f"Address {missed[0]}", "Practice core concepts"]
            if missed
            else ["Continue skill development"]
        ),
        "short_term": [
            f"Advanced {domain} training",
            "Practical project work",
            "Peer collaboration",
        ],
        "long_term": [
            f"{level} certification preparation",
            "Leadership development",
            "Industry best practices",
        ],
    }


def _industry_analysis(percentage: int) -> Dict[str, Any]:
    return {
        "industry_percentile": _band(
            percentage, "Bottom 30%", "Middle 40%", "Top 30%"
        ),
        "competition_level": _band(percentage, "High", "Medium", "Low"),
        "skills_match": percentage,
        "suitable_roles": (
            ["Junior Developer", "QA Analyst", "Support Engineer"]
            if percentage < 40
            else ["Software Engineer", "Full Stack Developer", "DevOps Engineer"]
            if percentage < 70
            else ["Senior Engineer", "Tech Lead", "Solutions Architect"]
        ),
        "growth_potential": _band(percentage, "15-25%", "10-15%", "5-10%"),
    }


def competency_mapping(percentage: int) -> Dict[str, int]:
    return {
        "technical": min(100, percentage + 5),
        "problem_solving": min(100, percentage + 10),
        "domain_knowledge": percentage,
        "practical_application": max(0, percentage - 5),
    }


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def analyze(
    result: ResultLike,
    test: TestLike,
    candidate: CandidateLike,
    events: Optional[Sequence[Dict[str, Any]]] = None,
    policy: Optional[SecurityPolicy] = None,
) -> Dict[str, Any]:
    """
    Build the skill-gap report for one result.

    Args:
        result: Scored result (percentage, score, pass flag, breakdown).
        test: Catalog test the result belongs to.
        candidate: Profile of the person who sat the test.
        events: Proctoring events recorded on the session, if any.
        policy: Security scoring policy; taken from settings when omitted.

    Returns:
        A JSON-serializable dict. Equal inputs give equal outputs.
    """
    percentage = int(result.percentage)
    events = list(events or [])
    missed = missed_questions(result.detailed_results)
    security = analyze_security(events, policy)
    skill_level = classify_skill_level(percentage)

    total_questions = result.total_questions or test.total_questions or 0
    time_spent = result.time_spent

    return {
        "candidate_info": {
            "name": candidate.name,
            "email": candidate.email,
            "employee_id": candidate.employee_id,
            "department": candidate.department,
            "position": candidate.position,
        },
        "test_info": {
            "title": test.title,
            "domain": test.domain,
            "level": test.level,
            "total_questions": test.total_questions,
        },
        "performance_metrics": {
            "score": result.score,
            "percentage": percentage,
            "passed": bool(result.passed),
            "time_spent": time_spent,
            "time_spent_minutes": (time_spent + 30) // 60 if time_spent else None,
            "completed_at": _iso(result.completed_at),
            "correct_answers": result.correct_answers,
            "total_questions": total_questions,
            "accuracy": percentage,
        },
        "domain_performance": {
            "domain": test.domain,
            "level": test.level,
            "score": percentage,
            "passed": bool(result.passed),
        },
        "skill_level": skill_level,
        "skill_gaps": [test.domain] if percentage < GAP_THRESHOLD else [],
        "strength_areas": [test.domain] if percentage >= STRENGTH_THRESHOLD else [],
        "missed_questions": missed,
        "security_analysis": security,
        "predictive_analytics": _predictive_analytics(
            percentage, time_spent, total_questions, security["violation_count"]
        ),
        "training_recommendations": _training_recommendations(
            percentage, test.domain, test.level, missed
        ),
        "industry_analysis": _industry_analysis(percentage),
        "competency_mapping": competency_mapping(percentage),
    }
