"""
Assessment scoring.

score_session() is a pure function of the submitted answers and the catalog
questions: no I/O, no clock, no randomness. Resubmitting a session must
reproduce the same numbers, so anything non-deterministic belongs elsewhere.

Matching is exact and case-sensitive. Free-text and coding answers are
expected to be reduced to a canonical form before they reach this module.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

DEFAULT_PASSING_SCORE = 70


class ScorableQuestion(Protocol):
    id: int
    correct_answer: str


@dataclass
class ScoreResult:
    """Output of scoring one session."""

    score: int
    percentage: int
    passed: bool
    correct_answers: int
    total_questions: int
    detailed_results: List[Dict[str, Any]] = field(default_factory=list)


def percentage_of(correct: int, total: int) -> int:
    """
    Whole-number percentage of correct answers, rounding halves up.

    Integer arithmetic keeps 2.5 -> 3 and avoids float drift on values such
    as 7/10. total=0 yields 0.
    """
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def answer_for(answers: Mapping[Any, Any], question_id: int) -> Optional[Any]:
    """Look up the submitted answer for a question, keyed by str or int id."""
    key = str(question_id)
    if key in answers:
        return answers[key]
    return answers.get(question_id)


def score_session(
    answers: Mapping[Any, Any],
    questions: Sequence[ScorableQuestion],
    passing_score: Optional[int] = None,
) -> ScoreResult:
    """
    Score a session's answers against the catalog's reference answers.

    Args:
        answers: Mapping of question id (str or int) to submitted answer.
            Missing or None answers count as incorrect.
        questions: Catalog questions, each with ``id`` and ``correct_answer``.
        passing_score: Pass threshold in percent; DEFAULT_PASSING_SCORE when None.

    Returns:
        ScoreResult with score (= number correct), percentage, pass flag, and
        a per-question breakdown in catalog order.
    """
    threshold = DEFAULT_PASSING_SCORE if passing_score is None else passing_score

    correct = 0
    detailed: List[Dict[str, Any]] = []
    for question in questions:
        submitted = answer_for(answers, question.id)
        is_correct = submitted is not None and submitted == question.correct_answer
        if is_correct:
            correct += 1
        detailed.append(
            {
                "question_id": question.id,
                "user_answer": submitted,
                "correct_answer": question.correct_answer,
                "is_correct": is_correct,
            }
        )

    total = len(questions)
    percentage = percentage_of(correct, total)
    # An empty test never passes, even with a zero threshold
    passed = total > 0 and percentage >= threshold

    return ScoreResult(
        score=correct,
        percentage=percentage,
        passed=passed,
        correct_answers=correct,
        total_questions=total,
        detailed_results=detailed,
    )
