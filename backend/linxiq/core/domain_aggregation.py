"""
Domain bucketing across many results.

Reporting consumers re-run these over arbitrary result sets (one person, or
the whole organisation). Inputs are DomainScore points; every function is
pure. Averages round half up, so 64.5 reports as 65.
"""
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, TypedDict

from linxiq.core.skill_gap import (
    GAP_THRESHOLD,
    STRENGTH_THRESHOLD,
    classify_skill_level,
)

UNKNOWN_DOMAIN = "unknown"
DEFAULT_PRIORITY_THRESHOLD = 70
DEFAULT_PRIORITY_LIMIT = 5
RECOMMENDED_TRAINING_LIMIT = 3

SKILL_LEVELS = ("beginner", "intermediate", "advanced", "expert")

ORG_RECOMMENDATIONS = [
    "Focus training on domains scoring below 70%",
    "Implement mentorship programs for skill development",
    "Create targeted learning paths for identified gaps",
    "Schedule regular skill assessments to track progress",
    "Consider external training resources for critical skills",
]


@dataclass(frozen=True)
class DomainScore:
    """One result reduced to what aggregation needs."""

    domain: str
    percentage: int


class PersonReport(TypedDict):
    person_id: int
    tests_completed: int
    average_score: int
    skill_level: str
    domains: Dict[str, int]
    strength_areas: List[str]
    skill_gaps: List[str]
    recommended_training: List[str]
    overall_risk: str


class OrgReport(TypedDict):
    total_results: int
    average_score: int
    domains: Dict[str, int]
    skill_levels: Dict[str, int]
    training_priorities: List[str]
    recommendations: List[str]
    completion_rate: Optional[int]


def rounded_mean(values: Sequence[int]) -> int:
    """Mean of integer values rounded half up; 0 for an empty sequence."""
    count = len(values)
    if count == 0:
        return 0
    return (2 * sum(values) + count) // (2 * count)


def _format_domain(domain: str, average: int) -> str:
    return f"{domain} ({average}% avg)"


def domain_averages(points: Iterable[DomainScore]) -> Dict[str, int]:
    """Average percentage per domain, in first-seen domain order."""
    buckets: "OrderedDict[str, List[int]]" = OrderedDict()
    for point in points:
        buckets.setdefault(point.domain or UNKNOWN_DOMAIN, []).append(point.percentage)
    return {domain: rounded_mean(scores) for domain, scores in buckets.items()}


def training_priorities(
    averages: Dict[str, int],
    threshold: int = DEFAULT_PRIORITY_THRESHOLD,
    limit: int = DEFAULT_PRIORITY_LIMIT,
) -> List[str]:
    """
    Domains averaging below ``threshold``, weakest first, at most ``limit``.

    Ties on score are broken by domain name so the order is stable.
    """
    weak = [(score, domain) for domain, score in averages.items() if score < threshold]
    weak.sort()
    return [_format_domain(domain, score) for score, domain in weak[:limit]]


def classify_domains(averages: Dict[str, int]) -> Dict[str, List[str]]:
    """Split domains into strengths (>= 75) and gaps (< 60); the middle band is neither."""
    strengths = []
    gaps = []
    for domain, score in averages.items():
        if score < GAP_THRESHOLD:
            gaps.append(_format_domain(domain, score))
        elif score >= STRENGTH_THRESHOLD:
            strengths.append(_format_domain(domain, score))
    return {"strength_areas": strengths, "skill_gaps": gaps}


def skill_level_distribution(percentages: Iterable[int]) -> Dict[str, int]:
    """Count of results in each skill-level band."""
    distribution = {level: 0 for level in SKILL_LEVELS}
    for percentage in percentages:
        distribution[classify_skill_level(percentage)] += 1
    return distribution


def _overall_risk(average: int) -> str:
    if average < 50:
        return "High"
    if average < 70:
        return "Medium"
    return "Low"


def build_person_report(person_id: int, points: Sequence[DomainScore]) -> PersonReport:
    """Aggregate one person's results across domains."""
    averages = domain_averages(points)
    split = classify_domains(averages)
    average = rounded_mean([p.percentage for p in points])
    gap_domains = [d for d, score in averages.items() if score < GAP_THRESHOLD]

    return {
        "person_id": person_id,
        "tests_completed": len(points),
        "average_score": average,
        "skill_level": classify_skill_level(average),
        "domains": averages,
        "strength_areas": split["strength_areas"],
        "skill_gaps": split["skill_gaps"],
        "recommended_training": [
            f"Focus on {domain} training and practice"
            for domain in gap_domains[:RECOMMENDED_TRAINING_LIMIT]
        ],
        "overall_risk": _overall_risk(average),
    }


def build_org_report(
    points: Sequence[DomainScore],
    population: Optional[int] = None,
    threshold: int = DEFAULT_PRIORITY_THRESHOLD,
    limit: int = DEFAULT_PRIORITY_LIMIT,
) -> OrgReport:
    """
    Aggregate every result in the organisation.

    Args:
        points: One DomainScore per result.
        population: Number of people eligible to be assessed; completion_rate
            is None when it is not supplied or zero.
        threshold: Training-priority cut-off.
        limit: Maximum number of training priorities.
    """
    averages = domain_averages(points)
    percentages = [p.percentage for p in points]

    completion_rate = None
    if population:
        completion_rate = min(100, (200 * len(points) + population) // (2 * population))

    return {
        "total_results": len(points),
        "average_score": rounded_mean(percentages),
        "domains": averages,
        "skill_levels": skill_level_distribution(percentages),
        "training_priorities": training_priorities(averages, threshold, limit),
        "recommendations": list(ORG_RECOMMENDATIONS),
        "completion_rate": completion_rate,
    }
