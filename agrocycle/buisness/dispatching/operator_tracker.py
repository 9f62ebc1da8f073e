"""
OperatorTracker - Domain service for the operator-facing status track

Advances Assignment.operator_status one step at a time through
OperatorStateMachine. The step itself is a compare-and-set on the current
operator_status, so a double-submitted request loses cleanly instead of
applying twice.
"""

from datetime import datetime
from typing import Any, Dict, Optional, TYPE_CHECKING
from agrocycle import db
from agrocycle.buisness.core.guarded_update import guarded_update
from agrocycle.buisness.dispatching.errors import (
    ConcurrencyConflict,
    InvalidTransition,
    ReportLocked,
    ValidationError,
)
from agrocycle.buisness.dispatching.narrator import FulfillmentNarrator
from agrocycle.buisness.dispatching.policies import CompletionReportPolicy, OperatorActorPolicy
from agrocycle.buisness.dispatching.state_machine import AssignmentStateMachine, OperatorStateMachine
from agrocycle.buisness.dispatching.vehicle_registry import VehicleRegistry
from agrocycle.data.dispatching.assignment import Assignment
from agrocycle.data.dispatching.statuses import OperatorStatus, values
from agrocycle.logger import get_logger

if TYPE_CHECKING:
    from agrocycle.buisness.dispatching.context import FulfillmentContext

logger = get_logger("agrocycle.domain.dispatching.operator_tracker")


class OperatorTracker:
    """
    Domain service for operator progress and the completion report.

    Responsibilities:
    - Enforce the strict operator order and the assigned-operator guard
    - Move the hub-facing status to in_progress on accept
    - Free the booking and vehicles on reject
    - Stage and lock the completion report
    """

    def __init__(self, ctx: 'FulfillmentContext'):
        self.ctx = ctx

    def advance(
        self,
        assignment: Assignment,
        next_status: str,
        actor_vehicle_id: int,
        report: Optional[Dict[str, Any]] = None,
        reason: Optional[str] = None,
    ) -> Assignment:
        """
        Move the operator track to its immediate successor.

        Args:
            assignment: Assignment being worked
            next_status: Requested operator status
            actor_vehicle_id: Vehicle id of the acting operator
            report: Completion report fields (required for work_complete)
            reason: Rejection reason

        Raises:
            ActorNotPermitted: actor is not on this assignment
            InvalidTransition: not the immediate successor, or assignment cancelled
            InvalidReport: report missing or malformed at work_complete
            ReportLocked: report sent after work_complete
            ConcurrencyConflict: a concurrent update moved the assignment first
        """
        OperatorActorPolicy.check(assignment, actor_vehicle_id)

        if next_status not in values(OperatorStatus):
            raise ValidationError(f"Unknown operator status: {next_status}")

        if assignment.status == AssignmentStateMachine.CANCELLED:
            raise InvalidTransition(
                f"Assignment {assignment.id} was cancelled; no further operator updates"
            )

        current = assignment.operator_status
        OperatorStateMachine.validate_transition(current, next_status)

        if next_status == OperatorStateMachine.REJECTED:
            return self._reject(assignment, actor_vehicle_id, reason)

        cleaned = CompletionReportPolicy.clean(report)
        if cleaned and not OperatorStateMachine.report_editable(current):
            raise ReportLocked(f"Completion report for assignment {assignment.id} is locked")

        if next_status == OperatorStateMachine.WORK_COMPLETE:
            CompletionReportPolicy.check_complete(assignment, cleaned)

        changes = {
            'operator_status': next_status,
            'updated_by_id': actor_vehicle_id,
            OperatorStateMachine.TIMESTAMP_FIELDS[next_status]: datetime.utcnow(),
        }
        if next_status == OperatorStateMachine.ACCEPTED:
            AssignmentStateMachine.validate_transition(assignment.status, AssignmentStateMachine.IN_PROGRESS)
            changes['status'] = AssignmentStateMachine.IN_PROGRESS

        self._compare_and_set(assignment, current, changes)

        if cleaned:
            self._apply_report(assignment, cleaned)

        if next_status == OperatorStateMachine.WORK_COMPLETE:
            assignment.operator_reported_tonnes = assignment.actual_quantity_tonnes
            self.ctx.add_comment(actor_vehicle_id, FulfillmentNarrator.work_reported(assignment))
        else:
            self.ctx.add_comment(
                actor_vehicle_id, FulfillmentNarrator.operator_progress(assignment, current, next_status)
            )
        db.session.flush()

        logger.info(f"Assignment {assignment.id} operator status {current} -> {next_status}")
        return assignment

    def update_report(self, assignment: Assignment, actor_vehicle_id: int,
                      report: Dict[str, Any]) -> Assignment:
        """
        Stage completion report fields before work_complete; photos append.

        Raises:
            ReportLocked: operator already reached work_complete, or job is no longer active
        """
        OperatorActorPolicy.check(assignment, actor_vehicle_id)

        if not assignment.is_active or not OperatorStateMachine.report_editable(assignment.operator_status):
            raise ReportLocked(
                f"Completion report for assignment {assignment.id} is locked "
                f"({assignment.status}/{assignment.operator_status})"
            )

        cleaned = CompletionReportPolicy.clean(report)
        self._apply_report(assignment, cleaned)
        assignment.updated_by_id = actor_vehicle_id
        db.session.flush()
        return assignment

    def _reject(self, assignment: Assignment, actor_vehicle_id: int, reason: Optional[str]) -> Assignment:
        AssignmentStateMachine.validate_transition(assignment.status, AssignmentStateMachine.CANCELLED)
        self._compare_and_set(
            assignment,
            OperatorStateMachine.PENDING,
            {
                'operator_status': OperatorStateMachine.REJECTED,
                'status': AssignmentStateMachine.CANCELLED,
                'rejection_reason': reason,
                'updated_by_id': actor_vehicle_id,
            },
        )
        VehicleRegistry.release(assignment.vehicle_ids)
        self.ctx.assigner.revert_booking(actor_vehicle_id)
        self.ctx.add_comment(actor_vehicle_id, FulfillmentNarrator.operator_rejected(assignment, reason))
        db.session.flush()

        logger.info(f"Assignment {assignment.id} rejected by operator {actor_vehicle_id}")
        return assignment

    @staticmethod
    def _compare_and_set(assignment: Assignment, expected_operator_status: str, changes: Dict[str, Any]) -> None:
        applied = guarded_update(
            Assignment,
            assignment.id,
            [
                Assignment.operator_status == expected_operator_status,
                Assignment.status != AssignmentStateMachine.CANCELLED,
            ],
            changes,
        )
        if not applied:
            raise ConcurrencyConflict(
                f"Assignment {assignment.id} was updated concurrently; reload and retry"
            )

    @staticmethod
    def _apply_report(assignment: Assignment, cleaned: Dict[str, Any]) -> None:
        for field, value in cleaned.items():
            if field == 'photos':
                assignment.photos = CompletionReportPolicy.merge_photos(assignment.photos, value)
            else:
                setattr(assignment, field, value)
