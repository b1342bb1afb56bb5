"""
Narrative insight providers and ordered fallback.

Callers pass an explicit, ordered list of providers into call_with_fallback;
there is no module-level notion of a "current" provider. The first provider
to answer wins, and a provider failure only moves on to the next one.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsightRequest:
    """Inputs a provider may use to write a narrative for one result."""

    result_id: int
    domain: str
    level: str
    percentage: int
    missed_questions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class InsightResponse:
    provider: str
    insight: Dict[str, Any]


class ProviderExhaustedError(Exception):
    """Every provider in the list failed.

    Attributes:
        failures: (provider name, exception) pairs in the order they were tried
    """

    def __init__(self, failures: List[Tuple[str, Exception]]):
        self.failures = failures
        if failures:
            summary = "; ".join(f"{name}: {exc}" for name, exc in failures)
        else:
            summary = "no providers configured"
        super().__init__(f"All insight providers failed ({summary})")


class InsightProvider(ABC):
    """Abstract base class for narrative insight providers."""

    name: str = "base"

    @abstractmethod
    def generate_insight(self, request: InsightRequest) -> Dict[str, Any]:
        """
        Produce a narrative insight for a result.

        Raises:
            Exception: If the provider cannot answer
        """


class TemplateInsightProvider(InsightProvider):
    """Deterministic, offline provider built from fixed phrasing bands."""

    name = "template"

    def generate_insight(self, request: InsightRequest) -> Dict[str, Any]:
        p = request.percentage
        gaps = request.missed_questions

        if p < 40:
            assessment = "Foundation level - Focus on core competency building"
            finding = "Strong foundational concepts but needs practical application"
            next_step = "Focus on hands-on practice with real-world projects"
        elif p < 70:
            assessment = "Intermediate level - Ready for advanced challenges"
            finding = "Good technical understanding with room for advanced topics"
            next_step = "Pursue advanced certifications and mentorship opportunities"
        else:
            assessment = "Advanced level - Leadership potential identified"
            finding = "Excellent technical competency with leadership potential"
            next_step = "Consider technical leadership roles and knowledge sharing"

        return {
            "market_position": (
                "Developing skills - Entry to mid-level positioning"
                if p < 50
                else "Strong positioning - Mid to senior level readiness"
            ),
            "overall_assessment": assessment,
            "improvement_areas": gaps[:2],
            "growth_potential": (p + 9) // 10,
            "key_findings": [
                finding,
                (
                    "Multiple skill gaps identified requiring focused training"
                    if len(gaps) > 2
                    else "Limited skill gaps with targeted improvement opportunities"
                ),
                (
                    "Candidate demonstrates exceptional problem-solving abilities"
                    if p > 80
                    else "Consistent performance pattern with clear improvement trajectory"
                ),
            ],
            "recommendations": [
                next_step,
                "Engage in collaborative learning and peer programming sessions",
                f"Strengthen knowledge in {request.domain} domain specifics",
                "Build portfolio projects to demonstrate practical skills",
            ],
        }


def call_with_fallback(
    providers: Sequence[InsightProvider], request: InsightRequest
) -> InsightResponse:
    """
    Try each provider in order and return the first successful insight.

    Args:
        providers: Ordered providers, most preferred first
        request: The insight request passed unchanged to each provider

    Returns:
        InsightResponse naming the provider that answered

    Raises:
        ProviderExhaustedError: If every provider raised (or none were given)
    """
    failures: List[Tuple[str, Exception]] = []
    for provider in providers:
        try:
            insight = provider.generate_insight(request)
        except Exception as e:
            logger.warning(
                f"Insight provider '{provider.name}' failed for result "
                f"{request.result_id}: {e}"
            )
            failures.append((provider.name, e))
            continue

        if failures:
            logger.info(
                f"Insight for result {request.result_id} served by fallback "
                f"provider '{provider.name}' after {len(failures)} failure(s)"
            )
        return InsightResponse(provider=provider.name, insight=insight)

    raise ProviderExhaustedError(failures)
