from fastapi import APIRouter, Depends

from app.api.deps import get_ai_assistant, get_current_manager, get_current_user
from app.schemas.ai import AiTextResponse, RefineRequest, TextRequest
from app.schemas.user import UserRecord
from app.services.ai_assistant import AiAssistant

router = APIRouter(prefix="/ai", tags=["AI Assistant"])


@router.post("/refine", response_model=AiTextResponse)
async def refine_text(
    body: RefineRequest,
    _current_user: UserRecord = Depends(get_current_user),
    assistant: AiAssistant = Depends(get_ai_assistant),
):
    """Rewrite draft feedback professionally. Falls back to the draft itself."""
    return AiTextResponse(text=await assistant.refine(body.text, body.category))


@router.post("/analyze", response_model=AiTextResponse)
async def analyze_text(
    body: TextRequest,
    _current_user: UserRecord = Depends(get_current_manager),
    assistant: AiAssistant = Depends(get_ai_assistant),
):
    return AiTextResponse(text=await assistant.analyze(body.text))


@router.post("/coach", response_model=AiTextResponse)
async def coach_text(
    body: TextRequest,
    _current_user: UserRecord = Depends(get_current_manager),
    assistant: AiAssistant = Depends(get_ai_assistant),
):
    """Suggest a coaching tip for the colleague a report is about."""
    return AiTextResponse(text=await assistant.coach(body.text))
