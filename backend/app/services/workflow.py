"""
Approval and resolution state machine for reports.

Functions here only compute the next snapshot and the audit entry it calls
for; persisting either is the caller's job.
"""

from dataclasses import dataclass
from datetime import date

from app.core.exceptions import BadRequestError, ConflictError, ForbiddenError
from app.models.feedback import ApprovalStatus, ResolutionStatus
from app.schemas.feedback import ApprovalDecision, FeedbackRecord
from app.schemas.user import UserRecord
from app.services.visibility import is_manager_tier

APPROVE_REPORT = "APPROVE_REPORT"
REJECT_REPORT = "REJECT_REPORT"
UPDATE_STATUS = "UPDATE_STATUS"

_DECISION_TARGET = {
    ApprovalDecision.APPROVE: (ApprovalStatus.APPROVED, APPROVE_REPORT),
    ApprovalDecision.REJECT: (ApprovalStatus.REJECTED, REJECT_REPORT),
}

RESOLUTION_MOVES: dict[ResolutionStatus, frozenset[ResolutionStatus]] = {
    ResolutionStatus.OPEN: frozenset(
        {ResolutionStatus.IN_PROGRESS, ResolutionStatus.CLOSED_RESOLVED}
    ),
    ResolutionStatus.IN_PROGRESS: frozenset({ResolutionStatus.CLOSED_RESOLVED}),
    # reopen
    ResolutionStatus.CLOSED_RESOLVED: frozenset({ResolutionStatus.IN_PROGRESS}),
}


@dataclass(frozen=True)
class Transition:
    feedback: FeedbackRecord
    changed: bool
    action: str | None = None
    details: str = ""


def _clean(text: str | None) -> str | None:
    if text is None:
        return None
    return text.strip() or None


def _require_manager(actor: UserRecord) -> None:
    if not is_manager_tier(actor):
        raise ForbiddenError("Only managers and admins can triage reports")


def decide(
    feedback: FeedbackRecord,
    decision: ApprovalDecision,
    actor: UserRecord,
    manager_notes: str | None = None,
    note_to_reporter: str | None = None,
    note_to_receiver: str | None = None,
) -> Transition:
    """Approve or reject a report. Re-applying the current state changes nothing."""
    _require_manager(actor)
    target, action = _DECISION_TARGET[decision]

    notes = _clean(manager_notes)
    if feedback.approval_status == target:
        return Transition(feedback=feedback, changed=False)

    if decision == ApprovalDecision.REJECT and notes is None:
        raise BadRequestError("A rejection reason is required")

    updated = feedback.model_copy(
        update={
            "approval_status": target,
            "manager_notes": notes,
            "manager_name": actor.name,
            "manager_note_to_reporter": _clean(note_to_reporter),
            "manager_note_to_receiver": _clean(note_to_receiver),
        }
    )
    return Transition(
        feedback=updated,
        changed=True,
        action=action,
        details=f"Report {feedback.id} {target.value}.",
    )


def change_resolution(
    feedback: FeedbackRecord,
    target: ResolutionStatus,
    actor: UserRecord,
    today: date | None = None,
) -> Transition:
    """Move an approved report along Open / In Progress / Closed."""
    _require_manager(actor)
    if feedback.approval_status != ApprovalStatus.APPROVED:
        raise ConflictError(
            f"Resolution can only change on approved reports "
            f"(this one is {feedback.approval_status.value})"
        )

    current = feedback.resolution_status
    if current == target:
        return Transition(feedback=feedback, changed=False)
    if target not in RESOLUTION_MOVES[current]:
        raise ConflictError(f"Cannot move a report from {current.value} to {target.value}")

    update: dict = {"resolution_status": target}
    if target == ResolutionStatus.CLOSED_RESOLVED and feedback.resolution_date is None:
        update["resolution_date"] = today or date.today()

    return Transition(
        feedback=feedback.model_copy(update=update),
        changed=True,
        action=UPDATE_STATUS,
        details=f"Report {feedback.id} status {current.value} -> {target.value}.",
    )
