from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_ai_assistant, get_current_manager, get_current_user
from app.database import get_db
from app.models.feedback import ApprovalStatus
from app.schemas.feedback import (
    ApprovalDecisionRequest,
    FeedbackCreateRequest,
    FeedbackListResponse,
    FeedbackResponse,
    FeedbackScope,
    ResolutionUpdateRequest,
    TransitionResponse,
)
from app.schemas.user import UserRecord
from app.services.ai_assistant import AiAssistant
from app.services.feedback import FeedbackService

router = APIRouter(prefix="/feedback", tags=["Feedback"])


@router.post("/", response_model=FeedbackResponse, status_code=201)
async def submit_feedback(
    body: FeedbackCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    """File a report about a colleague. It waits for manager approval."""
    return await FeedbackService.submit(db, current_user, body)


@router.get("/", response_model=FeedbackListResponse)
async def list_feedback(
    scope: FeedbackScope = FeedbackScope.MINE,
    search: str | None = Query(default=None, max_length=200),
    approval: ApprovalStatus | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    """Reports visible to the caller, newest first."""
    return await FeedbackService.list_for_viewer(
        db, current_user, scope=scope, search=search, approval=approval
    )


@router.get("/export")
async def export_feedback(
    scope: FeedbackScope = FeedbackScope.MINE,
    search: str | None = Query(default=None, max_length=200),
    approval: ApprovalStatus | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    """Download the caller's current report list as CSV."""
    content = await FeedbackService.export_csv(
        db, current_user, scope=scope, search=search, approval=approval
    )
    filename = f"feedback_export_{date.today().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{feedback_id}", response_model=FeedbackResponse)
async def get_feedback(
    feedback_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    return await FeedbackService.get_for_viewer(db, current_user, feedback_id)


@router.post("/{feedback_id}/decision", response_model=TransitionResponse)
async def decide_feedback(
    feedback_id: str,
    body: ApprovalDecisionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    """Approve or reject a report. Rejections need a reason."""
    return await FeedbackService.decide(
        db,
        current_user,
        feedback_id,
        body.decision,
        manager_notes=body.manager_notes,
        note_to_reporter=body.note_to_reporter,
        note_to_receiver=body.note_to_receiver,
    )


@router.patch("/{feedback_id}/resolution", response_model=TransitionResponse)
async def update_resolution(
    feedback_id: str,
    body: ResolutionUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
):
    """Resolve, reopen or start work on an approved report."""
    return await FeedbackService.change_resolution(
        db, current_user, feedback_id, body.resolution_status
    )


@router.post("/{feedback_id}/analysis", response_model=FeedbackResponse)
async def analyze_feedback(
    feedback_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_manager),
    assistant: AiAssistant = Depends(get_ai_assistant),
):
    """Attach an AI summary of the report."""
    return await FeedbackService.attach_analysis(db, current_user, feedback_id, assistant)
