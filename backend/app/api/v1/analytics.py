from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_ai_assistant, get_current_user
from app.database import get_db
from app.schemas.ai import AiTextResponse
from app.schemas.analytics import AnalyticsResponse
from app.schemas.user import UserRecord
from app.services import analytics, store
from app.services.ai_assistant import AiAssistant
from app.services.users import name_map
from app.services.visibility import is_manager_tier

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/", response_model=AnalyticsResponse)
async def get_analytics(
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
):
    """Team analytics for managers, personal diagnostics for everyone else."""
    names = name_map(await store.users.list(db))
    feedbacks = await store.feedbacks.list(db)
    return analytics.summarize(current_user, feedbacks, names)


@router.post("/insight", response_model=AiTextResponse)
async def generate_insight(
    db: AsyncSession = Depends(get_db),
    current_user: UserRecord = Depends(get_current_user),
    assistant: AiAssistant = Depends(get_ai_assistant),
):
    """AI root-cause summary over the caller's approved received reports (or the team's)."""
    feedbacks = await store.feedbacks.list(db)
    if not is_manager_tier(current_user):
        feedbacks = [fb for fb in feedbacks if fb.to_user_id == current_user.id]
    text = await assistant.insight(analytics.approved(feedbacks))
    return AiTextResponse(text=text)
