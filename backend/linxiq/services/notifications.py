"""
Lifecycle notifications.

Delivery (email, dashboards) lives outside this service. Notifiers are
invoked after the core transaction has committed, and a failing notifier is
logged and ignored.
"""
import logging
from typing import Protocol

from linxiq.models import TestAssignment, TestResult

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def result_created(self, result: TestResult) -> None: ...

    def assignment_completed(self, assignment: TestAssignment) -> None: ...


class LoggingNotifier:
    """Default notifier: records the event in the application log."""

    def result_created(self, result: TestResult) -> None:
        logger.info(
            f"Result {result.id} created for person {result.user_id} "
            f"(test {result.test_id}, {result.percentage}%, "
            f"{'passed' if result.passed else 'failed'})",
            extra={"result_id": result.id, "person_id": result.user_id},
        )

    def assignment_completed(self, assignment: TestAssignment) -> None:
        logger.info(
            f"Assignment {assignment.id} completed by person {assignment.user_id}",
            extra={"assignment_id": assignment.id, "person_id": assignment.user_id},
        )
