"""
Tests for the per-result skill-gap analysis.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

import pytest

from linxiq.core.skill_gap import (
    SecurityPolicy,
    analyze,
    analyze_security,
    classify_skill_level,
    consistency_score,
    growth_rate,
    missed_questions,
    resolve_scoring_mode,
    security_level_for,
    speed_score,
)

SEVERITY_POLICY = SecurityPolicy(mode="severity")
FLAT_POLICY = SecurityPolicy(mode="flat")
AUTO_POLICY = SecurityPolicy(mode="auto")


@dataclass
class FakeResult:
    score: int = 5
    percentage: int = 100
    passed: bool = True
    time_spent: Optional[int] = 600
    total_questions: int = 5
    correct_answers: int = 5
    detailed_results: List[Any] = field(default_factory=list)
    completed_at: Any = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


@dataclass
class FakeTest:
    title: str = "Python Intermediate Assessment"
    domain: str = "python"
    level: str = "Intermediate"
    total_questions: int = 5


@dataclass
class FakeCandidate:
    name: str = "Ada Lovelace"
    email: str = "ada@example.com"
    employee_id: Optional[str] = "E0001"
    department: Optional[str] = "Engineering"
    position: Optional[str] = "Engineer"


def event(kind="tab_switch", severity=None, timestamp="2024-03-01T10:00:00Z"):
    e = {"type": kind, "timestamp": timestamp}
    if severity is not None:
        e["severity"] = severity
    return e


class TestClassifySkillLevel:
    @pytest.mark.parametrize(
        "percentage,expected",
        [
            (100, "expert"),
            (90, "expert"),
            (89, "advanced"),
            (75, "advanced"),
            (74, "intermediate"),
            (60, "intermediate"),
            (59, "beginner"),
            (0, "beginner"),
        ],
    )
    def test_band_boundaries(self, percentage, expected):
        assert classify_skill_level(percentage) == expected


class TestSecurityAnalysis:
    """Tests for proctoring event scoring."""

    def test_no_events_is_excellent(self):
        security = analyze_security([], SEVERITY_POLICY)

        assert security["violation_count"] == 0
        assert security["overall_security_score"] == 100
        assert security["security_level"] == "Excellent"
        assert security["trustworthiness"] == "High"
        assert security["proctoring_compliance"] == "Full Compliance"
        assert security["peak_events_per_minute"] == 0

    def test_four_medium_events_score_80_but_band_fair(self):
        """Test that the level bands by count even when the score stays high."""
        events = [event(severity="medium") for _ in range(4)]

        security = analyze_security(events, SEVERITY_POLICY)

        assert security["overall_security_score"] == 80
        assert security["security_level"] == "Fair"
        assert security["trustworthiness"] == "Medium"
        assert security["proctoring_compliance"] == "Multiple Violations"

    def test_high_severity_deducts_ten(self):
        security = analyze_security(
            [event(severity="high"), event(severity="low")], SEVERITY_POLICY
        )

        assert security["overall_security_score"] == 90
        assert security["security_level"] == "Good"
        assert security["events_by_severity"] == {"high": 1, "low": 1}

    def test_flat_mode_ignores_severity(self):
        events = [event(severity="high"), event(severity="high"), event()]

        security = analyze_security(events, FLAT_POLICY)

        assert security["scoring_mode"] == "flat"
        assert security["overall_security_score"] == 85

    def test_score_is_floored_at_zero(self):
        events = [event(severity="high") for _ in range(15)]

        security = analyze_security(events, SEVERITY_POLICY)

        assert security["overall_security_score"] == 0
        assert security["security_level"] == "Poor"
        assert security["trustworthiness"] == "Low"

    def test_event_type_counters(self):
        events = [
            event("tab_switch"),
            event("tab_switch"),
            event("copy_attempt"),
            event("dev_tools"),
            event("right_click"),
        ]

        security = analyze_security(events, FLAT_POLICY)

        assert security["tab_switch_events"] == 2
        assert security["copy_attempts"] == 1
        assert security["dev_tools_attempts"] == 1
        assert security["events_by_type"] == {
            "copy_attempt": 1,
            "dev_tools": 1,
            "right_click": 1,
            "tab_switch": 2,
        }

    def test_peak_uses_event_timestamps_not_arrival_order(self):
        events = [
            event(timestamp="2024-03-01T10:05:00Z"),
            event(timestamp="2024-03-01T10:00:10Z"),
            event(timestamp="2024-03-01T10:00:40Z"),
            event(timestamp="2024-03-01T10:00:00Z"),
        ]

        security = analyze_security(events, FLAT_POLICY)

        assert security["peak_events_per_minute"] == 3

    def test_unparseable_timestamps_are_skipped_for_peak(self):
        events = [event(timestamp="not-a-time"), event(timestamp=None)]

        security = analyze_security(events, FLAT_POLICY)

        assert security["violation_count"] == 2
        assert security["peak_events_per_minute"] == 0


class TestResolveScoringMode:
    def test_auto_with_all_severities_uses_severity(self):
        events = [event(severity="high"), event(severity="low")]
        assert resolve_scoring_mode(events, "auto") == "severity"

    def test_auto_with_missing_severity_uses_flat(self):
        events = [event(severity="high"), event()]
        assert resolve_scoring_mode(events, "auto") == "flat"

    def test_explicit_mode_is_kept(self):
        assert resolve_scoring_mode([event()], "severity") == "severity"

    def test_auto_mode_end_to_end(self):
        security = analyze_security(
            [event(severity="medium"), event()], AUTO_POLICY
        )
        assert security["scoring_mode"] == "flat"
        assert security["overall_security_score"] == 90


class TestSecurityLevelFor:
    @pytest.mark.parametrize(
        "count,expected",
        [(0, "Excellent"), (1, "Good"), (3, "Good"), (4, "Fair"), (6, "Fair"), (7, "Poor")],
    )
    def test_bands(self, count, expected):
        assert security_level_for(count) == expected


class TestHeuristics:
    def test_growth_rate_range(self):
        assert growth_rate(0) == 3.0
        assert growth_rate(100) == 8.0
        assert growth_rate(70) == 6.5

    def test_speed_score(self):
        # 5 questions at 120s each is a 600s baseline
        assert speed_score(600, 5) == 100
        assert speed_score(300, 5) == 100
        assert speed_score(1200, 5) == 50
        assert speed_score(None, 5) is None
        assert speed_score(0, 5) is None

    def test_consistency_score(self):
        assert consistency_score(80, 0) == 80
        assert consistency_score(80, 5) == 70
        assert consistency_score(5, 10) == 0


class TestMissedQuestions:
    def test_lists_first_three_misses(self):
        details = [
            {"question_id": 1, "user_answer": "a", "is_correct": True},
            {"question_id": 2, "user_answer": "b", "is_correct": False},
            {"question_id": 3, "user_answer": None, "is_correct": False},
            {"question_id": 4, "user_answer": "d", "is_correct": False},
            {"question_id": 5, "user_answer": "e", "is_correct": False},
        ]

        assert missed_questions(details) == [
            "Question 2 - b",
            "Question 3 - Not answered",
            "Question 4 - d",
        ]

    def test_non_list_is_empty(self):
        assert missed_questions(None) == []
        assert missed_questions({"oops": True}) == []


class TestAnalyze:
    """Tests for the full analysis report."""

    def test_perfect_result(self):
        report = analyze(FakeResult(), FakeTest(), FakeCandidate(), [], SEVERITY_POLICY)

        assert report["skill_level"] == "expert"
        assert report["strength_areas"] == ["python"]
        assert report["skill_gaps"] == []
        assert report["missed_questions"] == []
        assert report["performance_metrics"]["percentage"] == 100
        assert report["performance_metrics"]["time_spent_minutes"] == 10
        assert report["performance_metrics"]["completed_at"] == "2024-03-01T10:00:00+00:00"
        assert report["candidate_info"]["name"] == "Ada Lovelace"
        assert report["test_info"]["domain"] == "python"
        assert report["security_analysis"]["overall_security_score"] == 100
        assert report["training_recommendations"]["priority"] == "Medium"
        assert report["competency_mapping"]["problem_solving"] == 100

    def test_weak_result_reports_gap(self):
        result = FakeResult(
            score=2,
            percentage=40,
            passed=False,
            correct_answers=2,
            detailed_results=[
                {"question_id": 7, "user_answer": "x", "is_correct": False},
            ],
        )

        report = analyze(result, FakeTest(), FakeCandidate(), [], SEVERITY_POLICY)

        assert report["skill_level"] == "beginner"
        assert report["skill_gaps"] == ["python"]
        assert report["strength_areas"] == []
        assert report["missed_questions"] == ["Question 7 - x"]
        assert report["training_recommendations"]["priority"] == "High"
        assert report["training_recommendations"]["immediate"][0] == "Address Question 7 - x"

    def test_middle_band_is_neither_gap_nor_strength(self):
        report = analyze(
            FakeResult(percentage=65), FakeTest(), FakeCandidate(), [], SEVERITY_POLICY
        )

        assert report["skill_level"] == "intermediate"
        assert report["skill_gaps"] == []
        assert report["strength_areas"] == []

    def test_analysis_is_deterministic(self):
        events = [event(severity="medium"), event("copy_attempt", severity="high")]
        args = (FakeResult(percentage=72), FakeTest(), FakeCandidate(), events, SEVERITY_POLICY)

        assert analyze(*args) == analyze(*args)

    def test_missing_time_spent(self):
        report = analyze(
            FakeResult(time_spent=None), FakeTest(), FakeCandidate(), [], SEVERITY_POLICY
        )

        assert report["performance_metrics"]["time_spent_minutes"] is None
        assert report["predictive_analytics"]["speed_score"] is None
