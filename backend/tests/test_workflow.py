from datetime import date

import pytest

from app.core.exceptions import BadRequestError, ConflictError, ForbiddenError
from app.models.feedback import ApprovalStatus, ProcessType, ResolutionStatus
from app.models.user import UserRole
from app.schemas.feedback import ApprovalDecision, FeedbackRecord
from app.schemas.user import UserRecord
from app.services import workflow


@pytest.fixture
def manager():
    return UserRecord(username="mgr", name="Mgr", role=UserRole.MANAGER, is_approved=True)


@pytest.fixture
def report():
    return FeedbackRecord(
        from_user_id="bob",
        to_user_id="alice",
        report_date=date(2026, 10, 1),
        fault_description="Transferred to the wrong team",
        process_type=ProcessType.WRONG_DEPARTMENT,
    )


class TestDecide:
    def test_approve_pending(self, report, manager):
        t = workflow.decide(report, ApprovalDecision.APPROVE, manager, manager_notes="Discuss tone")

        assert t.changed
        assert t.action == workflow.APPROVE_REPORT
        assert t.feedback.approval_status == ApprovalStatus.APPROVED
        assert t.feedback.manager_notes == "Discuss tone"
        assert t.feedback.manager_name == "Mgr"
        assert report.approval_status == ApprovalStatus.PENDING

    def test_reapproving_is_a_no_op(self, report, manager):
        approved = workflow.decide(report, ApprovalDecision.APPROVE, manager).feedback

        again = workflow.decide(approved, ApprovalDecision.APPROVE, manager, manager_notes="new")

        assert not again.changed
        assert again.action is None
        assert again.feedback == approved

    def test_reject_requires_reason(self, report, manager):
        with pytest.raises(BadRequestError):
            workflow.decide(report, ApprovalDecision.REJECT, manager)
        with pytest.raises(BadRequestError):
            workflow.decide(report, ApprovalDecision.REJECT, manager, manager_notes="   ")

    def test_reject_with_reason(self, report, manager):
        t = workflow.decide(
            report,
            ApprovalDecision.REJECT,
            manager,
            manager_notes="Not actionable",
            note_to_reporter="Please add the order number",
        )

        assert t.changed
        assert t.action == workflow.REJECT_REPORT
        assert t.feedback.approval_status == ApprovalStatus.REJECTED
        assert t.feedback.manager_note_to_reporter == "Please add the order number"
        assert t.feedback.manager_note_to_receiver is None

    def test_rerejecting_without_reason_is_a_no_op(self, report, manager):
        rejected = workflow.decide(
            report, ApprovalDecision.REJECT, manager, manager_notes="Not actionable"
        ).feedback

        again = workflow.decide(rejected, ApprovalDecision.REJECT, manager)

        assert not again.changed
        assert again.action is None
        assert again.feedback.manager_notes == "Not actionable"

    def test_regular_user_cannot_decide(self, report):
        user = UserRecord(username="bob", name="Bob", is_approved=True)
        with pytest.raises(ForbiddenError):
            workflow.decide(report, ApprovalDecision.APPROVE, user)


class TestResolution:
    @pytest.fixture
    def approved(self, report, manager):
        return workflow.decide(report, ApprovalDecision.APPROVE, manager).feedback

    def test_pending_report_cannot_move(self, report, manager):
        with pytest.raises(ConflictError):
            workflow.change_resolution(report, ResolutionStatus.IN_PROGRESS, manager)

    def test_open_to_in_progress_to_closed(self, approved, manager):
        started = workflow.change_resolution(approved, ResolutionStatus.IN_PROGRESS, manager)
        closed = workflow.change_resolution(
            started.feedback, ResolutionStatus.CLOSED_RESOLVED, manager, today=date(2026, 10, 5)
        )

        assert started.changed and closed.changed
        assert closed.action == workflow.UPDATE_STATUS
        assert closed.feedback.resolution_status == ResolutionStatus.CLOSED_RESOLVED
        assert closed.feedback.resolution_date == date(2026, 10, 5)
        assert "In Progress -> Closed/Resolved" in closed.details

    def test_reopen_keeps_resolution_date(self, approved, manager):
        closed = workflow.change_resolution(
            approved, ResolutionStatus.CLOSED_RESOLVED, manager, today=date(2026, 10, 5)
        ).feedback

        reopened = workflow.change_resolution(closed, ResolutionStatus.IN_PROGRESS, manager)

        assert reopened.feedback.resolution_status == ResolutionStatus.IN_PROGRESS
        assert reopened.feedback.resolution_date == date(2026, 10, 5)

    def test_cannot_go_back_to_open(self, approved, manager):
        started = workflow.change_resolution(approved, ResolutionStatus.IN_PROGRESS, manager)
        with pytest.raises(ConflictError):
            workflow.change_resolution(started.feedback, ResolutionStatus.OPEN, manager)

    def test_same_status_is_a_no_op(self, approved, manager):
        t = workflow.change_resolution(approved, ResolutionStatus.OPEN, manager)
        assert not t.changed
        assert t.feedback is approved
