"""
Assignment ledger: who owes which test, and whether they may see the result.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linxiq.core.exceptions import (
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    InvalidTransitionError,
)
from linxiq.models import AssignmentStatus, TestAssignment

logger = logging.getLogger(__name__)

# current status -> statuses it may move to
ALLOWED_TRANSITIONS = {
    AssignmentStatus.ASSIGNED: {AssignmentStatus.STARTED, AssignmentStatus.COMPLETED},
    AssignmentStatus.STARTED: {AssignmentStatus.COMPLETED},
    AssignmentStatus.COMPLETED: set(),
}


class AssignmentLedger:
    """Reads and mutates TestAssignment rows. Callers own the transaction."""

    def __init__(self, db: Session):
        self.db = db

    def create_assignment(
        self,
        person_id: int,
        test_id: int,
        *,
        assigned_by: Optional[int] = None,
        scheduled_at: Optional[datetime] = None,
        due_date: Optional[datetime] = None,
        time_limit: Optional[int] = None,
        max_attempts: int = 1,
        results_visible: bool = False,
    ) -> TestAssignment:
        """
        Assign a test to a person and commit.

        Raises:
            DuplicateAssignmentError: If the person already has this test
        """
        assignment = TestAssignment(
            user_id=person_id,
            test_id=test_id,
            assigned_by=assigned_by,
            status=AssignmentStatus.ASSIGNED.value,
            scheduled_at=scheduled_at,
            due_date=due_date,
            time_limit=time_limit,
            max_attempts=max_attempts,
            results_visible=results_visible,
        )
        self.db.add(assignment)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateAssignmentError(person_id, test_id) from e

        self.db.refresh(assignment)
        logger.info(
            f"Assigned test {test_id} to person {person_id} "
            f"(assignment {assignment.id}, max_attempts={max_attempts})"
        )
        return assignment

    def get(self, assignment_id: int) -> TestAssignment:
        assignment = (
            self.db.query(TestAssignment)
            .filter(TestAssignment.id == assignment_id)
            .first()
        )
        if assignment is None:
            raise AssignmentNotFoundError(assignment_id)
        return assignment

    def get_for(self, person_id: int, test_id: int) -> Optional[TestAssignment]:
        return (
            self.db.query(TestAssignment)
            .filter(
                TestAssignment.user_id == person_id,
                TestAssignment.test_id == test_id,
            )
            .first()
        )

    def list_for_person(self, person_id: int) -> List[TestAssignment]:
        return (
            self.db.query(TestAssignment)
            .filter(TestAssignment.user_id == person_id)
            .order_by(TestAssignment.created_at.desc(), TestAssignment.id.desc())
            .all()
        )

    def apply_status(
        self, assignment: TestAssignment, new_status: AssignmentStatus
    ) -> TestAssignment:
        """
        Move an assignment to ``new_status`` without committing.

        Raises:
            InvalidTransitionError: If the move is not allowed
        """
        current = AssignmentStatus(assignment.status)
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(assignment.id, current.value, new_status.value)

        assignment.status = new_status.value
        logger.info(
            f"Assignment {assignment.id} moved {current.value} -> {new_status.value}"
        )
        return assignment

    def update_status(
        self, assignment_id: int, new_status: AssignmentStatus
    ) -> TestAssignment:
        """
        Change an assignment's status and commit.

        Allowed: assigned -> started, started -> completed, assigned -> completed.

        Raises:
            AssignmentNotFoundError: If the assignment does not exist
            InvalidTransitionError: For any other transition
        """
        assignment = self.get(assignment_id)
        self.apply_status(assignment, new_status)
        self.db.commit()
        self.db.refresh(assignment)
        return assignment

    def toggle_results_visible(
        self, assignment_id: int, visible: bool
    ) -> TestAssignment:
        """Set whether the candidate may read their own result. Status is untouched."""
        assignment = self.get(assignment_id)
        assignment.results_visible = visible
        self.db.commit()
        self.db.refresh(assignment)
        logger.info(f"Assignment {assignment_id} results_visible set to {visible}")
        return assignment
