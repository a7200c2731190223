from datetime import date

from pydantic import BaseModel

from app.schemas.feedback import FeedbackResponse


class DashboardStats(BaseModel):
    total: int
    open: int
    critical: int
    resolved: int
    pending_approval: int
    sent: int
    received: int


class DailyVolume(BaseModel):
    day: date
    label: str
    count: int


class TopIssue(BaseModel):
    process_type: str
    count: int


class DashboardResponse(BaseModel):
    stats: DashboardStats
    recent: list[FeedbackResponse]
    weekly_volume: list[DailyVolume]
    top_issue: TopIssue | None = None
    total_users: int
