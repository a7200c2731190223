import csv
import io
import logging
from collections.abc import Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.models.feedback import ApprovalStatus, ResolutionStatus
from app.schemas.feedback import (
    ApprovalDecision,
    FeedbackCreateRequest,
    FeedbackListResponse,
    FeedbackRecord,
    FeedbackResponse,
    FeedbackScope,
    TransitionResponse,
)
from app.schemas.user import UserRecord
from app.services import store, workflow
from app.services.ai_assistant import AiAssistant
from app.services.audit import AuditService
from app.services.users import name_map
from app.services.visibility import (
    can_view_feedback,
    display_name,
    filter_feedback,
    is_manager_tier,
    search_feedback,
    sender_display_name,
    shows_sender,
)

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "ID",
    "Date",
    "From",
    "To",
    "Type",
    "Description",
    "Priority",
    "Approval",
    "Status",
    "Order #",
    "Case #",
]


def to_response(
    viewer: UserRecord, fb: FeedbackRecord, names: Mapping[str, str]
) -> FeedbackResponse:
    """Render a report for ``viewer``, hiding what their role may not see."""
    sender_visible = shows_sender(viewer, fb)
    manager = is_manager_tier(viewer)
    is_sender = fb.from_user_id == viewer.id

    data = fb.model_dump()
    data.update(
        from_user_id=fb.from_user_id if sender_visible else None,
        from_user_name=sender_display_name(viewer, fb, names),
        to_user_name=display_name(names, fb.to_user_id),
        is_mine=is_sender,
    )
    if not (manager or is_sender):
        data["manager_note_to_reporter"] = None
    if is_sender and not manager:
        data["manager_note_to_receiver"] = None
    return FeedbackResponse(**data)


class FeedbackService:
    @staticmethod
    async def _names(db: AsyncSession) -> dict[str, str]:
        return name_map(await store.users.list(db))

    @staticmethod
    async def _get(db: AsyncSession, feedback_id: str) -> FeedbackRecord:
        feedback = await store.feedbacks.get(db, feedback_id)
        if feedback is None:
            raise NotFoundError("Report not found")
        return feedback

    @staticmethod
    async def submit(
        db: AsyncSession, sender: UserRecord, body: FeedbackCreateRequest
    ) -> FeedbackResponse:
        """File a report about a colleague. It starts Pending and Open."""
        if body.to_user_id == sender.id:
            raise BadRequestError("You cannot file a report about yourself")
        target = await store.users.get(db, body.to_user_id)
        if target is None:
            raise NotFoundError("Reported user not found")

        feedback = FeedbackRecord(
            from_user_id=sender.id,
            approval_status=ApprovalStatus.PENDING,
            resolution_status=ResolutionStatus.OPEN,
            **body.model_dump(),
        )
        await store.feedbacks.upsert(db, feedback)
        await AuditService.record(
            db,
            sender,
            "SUBMIT_REPORT",
            f"Submitted report regarding {target.name}. Type: {feedback.process_type.value}",
        )
        return to_response(sender, feedback, {sender.id: sender.name, target.id: target.name})

    @staticmethod
    async def visible_records(
        db: AsyncSession,
        viewer: UserRecord,
        scope: FeedbackScope = FeedbackScope.MINE,
        search: str | None = None,
        approval: ApprovalStatus | None = None,
    ) -> tuple[list[FeedbackRecord], dict[str, str]]:
        """Reports the viewer may see in ``scope``, newest first, plus the name map."""
        # Reject a forbidden scope before touching the store
        filter_feedback(viewer, [], scope)

        names = await FeedbackService._names(db)
        records = filter_feedback(viewer, await store.feedbacks.list(db), scope)
        if approval is not None:
            records = [fb for fb in records if fb.approval_status == approval]
        if search:
            records = search_feedback(
                viewer,
                records,
                search,
                names,
                match_anonymized_sender=get_settings().SEARCH_MATCHES_ANONYMIZED_SENDER,
            )
        records.sort(key=lambda fb: fb.timestamp, reverse=True)
        return records, names

    @staticmethod
    async def list_for_viewer(
        db: AsyncSession,
        viewer: UserRecord,
        scope: FeedbackScope = FeedbackScope.MINE,
        search: str | None = None,
        approval: ApprovalStatus | None = None,
    ) -> FeedbackListResponse:
        records, names = await FeedbackService.visible_records(
            db, viewer, scope, search, approval
        )
        return FeedbackListResponse(
            items=[to_response(viewer, fb, names) for fb in records],
            total=len(records),
        )

    @staticmethod
    async def get_for_viewer(
        db: AsyncSession, viewer: UserRecord, feedback_id: str
    ) -> FeedbackResponse:
        feedback = await store.feedbacks.get(db, feedback_id)
        # Invisible reports look exactly like missing ones
        if feedback is None or not can_view_feedback(viewer, feedback):
            raise NotFoundError("Report not found")
        return to_response(viewer, feedback, await FeedbackService._names(db))

    @staticmethod
    async def _apply(
        db: AsyncSession, actor: UserRecord, transition: workflow.Transition
    ) -> TransitionResponse:
        if transition.changed:
            await store.feedbacks.upsert(db, transition.feedback)
            await AuditService.record(db, actor, transition.action, transition.details)
        names = await FeedbackService._names(db)
        return TransitionResponse(
            feedback=to_response(actor, transition.feedback, names),
            changed=transition.changed,
        )

    @staticmethod
    async def decide(
        db: AsyncSession,
        actor: UserRecord,
        feedback_id: str,
        decision: ApprovalDecision,
        manager_notes: str | None = None,
        note_to_reporter: str | None = None,
        note_to_receiver: str | None = None,
    ) -> TransitionResponse:
        """Approve or reject a report, then log the decision."""
        if not is_manager_tier(actor):
            raise ForbiddenError("Only managers and admins can triage reports")
        feedback = await FeedbackService._get(db, feedback_id)
        transition = workflow.decide(
            feedback,
            decision,
            actor,
            manager_notes=manager_notes,
            note_to_reporter=note_to_reporter,
            note_to_receiver=note_to_receiver,
        )
        return await FeedbackService._apply(db, actor, transition)

    @staticmethod
    async def change_resolution(
        db: AsyncSession,
        actor: UserRecord,
        feedback_id: str,
        target: ResolutionStatus,
    ) -> TransitionResponse:
        if not is_manager_tier(actor):
            raise ForbiddenError("Only managers and admins can triage reports")
        feedback = await FeedbackService._get(db, feedback_id)
        transition = workflow.change_resolution(feedback, target, actor)
        return await FeedbackService._apply(db, actor, transition)

    @staticmethod
    async def attach_analysis(
        db: AsyncSession,
        actor: UserRecord,
        feedback_id: str,
        assistant: AiAssistant,
    ) -> FeedbackResponse:
        """Run the AI summary over a report and store it on the record."""
        if not is_manager_tier(actor):
            raise ForbiddenError("Only managers and admins can analyze reports")
        feedback = await FeedbackService._get(db, feedback_id)

        text = "\n".join(
            part for part in (feedback.fault_description, feedback.feedback_content) if part
        )
        analysis = await assistant.analyze(text)
        updated = feedback.model_copy(update={"ai_analysis": analysis})
        await store.feedbacks.upsert(db, updated)
        return to_response(actor, updated, await FeedbackService._names(db))

    @staticmethod
    async def export_csv(
        db: AsyncSession,
        viewer: UserRecord,
        scope: FeedbackScope = FeedbackScope.MINE,
        search: str | None = None,
        approval: ApprovalStatus | None = None,
    ) -> str:
        """The viewer's current list as CSV, with the same name redaction."""
        records, names = await FeedbackService.visible_records(
            db, viewer, scope, search, approval
        )
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_HEADERS)
        for fb in records:
            writer.writerow(
                [
                    fb.id,
                    fb.report_date.isoformat(),
                    sender_display_name(viewer, fb, names),
                    display_name(names, fb.to_user_id),
                    fb.process_type.value,
                    fb.fault_description,
                    fb.priority.value,
                    fb.approval_status.value,
                    fb.resolution_status.value,
                    fb.order_number or "",
                    fb.case_number or "",
                ]
            )
        return buffer.getvalue()
