from collections import Counter
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.feedback import ApprovalStatus, Priority, ResolutionStatus
from app.schemas.dashboard import DailyVolume, DashboardResponse, DashboardStats, TopIssue
from app.schemas.feedback import FeedbackRecord, FeedbackScope
from app.schemas.user import UserRecord
from app.services import store
from app.services.feedback import to_response
from app.services.users import name_map
from app.services.visibility import filter_feedback

RECENT_COUNT = 5
VOLUME_DAYS = 7


def weekly_volume(reports: list[FeedbackRecord], today: date) -> list[DailyVolume]:
    per_day = Counter(fb.report_date for fb in reports)
    days = [today - timedelta(days=offset) for offset in range(VOLUME_DAYS - 1, -1, -1)]
    return [DailyVolume(day=d, label=d.strftime("%a"), count=per_day.get(d, 0)) for d in days]


class DashboardService:
    @staticmethod
    async def overview(
        db: AsyncSession, viewer: UserRecord, today: date | None = None
    ) -> DashboardResponse:
        """Counters and recent activity over the reports ``viewer`` can see."""
        users = await store.users.list(db)
        names = name_map(users)
        reports = filter_feedback(viewer, await store.feedbacks.list(db), FeedbackScope.MINE)
        reports.sort(key=lambda fb: fb.timestamp, reverse=True)

        approved = [fb for fb in reports if fb.approval_status == ApprovalStatus.APPROVED]
        stats = DashboardStats(
            total=len(reports),
            open=sum(1 for fb in approved if fb.resolution_status == ResolutionStatus.OPEN),
            critical=sum(1 for fb in approved if fb.priority == Priority.HIGH),
            resolved=sum(
                1 for fb in reports if fb.resolution_status == ResolutionStatus.CLOSED_RESOLVED
            ),
            pending_approval=sum(
                1 for fb in reports if fb.approval_status == ApprovalStatus.PENDING
            ),
            sent=sum(1 for fb in reports if fb.from_user_id == viewer.id),
            received=sum(1 for fb in reports if fb.to_user_id == viewer.id),
        )

        type_counts = Counter(fb.process_type.value for fb in reports)
        top_issue = None
        if type_counts:
            name, count = type_counts.most_common(1)[0]
            top_issue = TopIssue(process_type=name, count=count)

        return DashboardResponse(
            stats=stats,
            recent=[to_response(viewer, fb, names) for fb in reports[:RECENT_COUNT]],
            weekly_volume=weekly_volume(reports, today or date.today()),
            top_issue=top_issue,
            total_users=len(users),
        )
