"""
Percentage breakdowns and rankings over role-scoped reports.
"""

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone

from app.models.feedback import ApprovalStatus, ProcessType
from app.schemas.analytics import (
    AnalyticsResponse,
    CategoryBreakdown,
    ColleagueImpact,
    ScenarioHotspot,
    TrendSummary,
    TypeCount,
)
from app.schemas.feedback import FeedbackRecord
from app.schemas.user import UserRecord
from app.services.visibility import display_name, is_manager_tier

TRAINING_TYPES = frozenset(
    {
        ProcessType.WRONG_PROCESS,
        ProcessType.WRONG_DEPARTMENT,
        ProcessType.FIRST_POINT_RESOLUTION,
    }
)
BEHAVIORAL_TYPES = frozenset({ProcessType.BEHAVIOR})

TOP_N = 5
TREND_WINDOW = timedelta(days=7)
TREND_TOP_TYPES = 3


def percent(part: int, total: int) -> str:
    """One-decimal percentage as a string; "0" when there is nothing to divide."""
    if total <= 0:
        return "0"
    return f"{part / total * 100:.1f}"


def _ranked(counts: Counter) -> list[tuple]:
    # sorted() is stable, so ties keep first-encountered order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def approved(feedbacks: Iterable[FeedbackRecord]) -> list[FeedbackRecord]:
    return [fb for fb in feedbacks if fb.approval_status == ApprovalStatus.APPROVED]


def category_breakdown(reports: list[FeedbackRecord]) -> CategoryBreakdown:
    """Split approved reports into training, behavioral and execution buckets."""
    training = behavioral = execution = 0
    for fb in reports:
        if fb.process_type in TRAINING_TYPES:
            training += 1
        elif fb.process_type in BEHAVIORAL_TYPES:
            behavioral += 1
        else:
            execution += 1

    total = len(reports)
    return CategoryBreakdown(
        training_count=training,
        execution_count=execution,
        behavioral_count=behavioral,
        training_pct=percent(training, total),
        execution_pct=percent(execution, total),
        behavioral_pct=percent(behavioral, total),
    )


def rejection_rate(sent: list[FeedbackRecord]) -> str:
    rejected = sum(1 for fb in sent if fb.approval_status == ApprovalStatus.REJECTED)
    return percent(rejected, len(sent))


def scenario_hotspots(reports: list[FeedbackRecord], limit: int = TOP_N) -> list[ScenarioHotspot]:
    counts = Counter(fb.scenario_tag.value for fb in reports if fb.scenario_tag)
    return [
        ScenarioHotspot(tag=tag, count=count, pct=percent(count, len(reports)))
        for tag, count in _ranked(counts)[:limit]
    ]


def colleague_impact(
    reports: list[FeedbackRecord], names: Mapping[str, str], limit: int = TOP_N
) -> list[ColleagueImpact]:
    """Most-reported receivers, each with their most frequent process type."""
    totals: Counter = Counter()
    types: dict[str, Counter] = {}
    for fb in reports:
        totals[fb.to_user_id] += 1
        types.setdefault(fb.to_user_id, Counter())[fb.process_type.value] += 1

    impact = []
    for user_id, total in _ranked(totals)[:limit]:
        ranked_types = _ranked(types[user_id])
        impact.append(
            ColleagueImpact(
                user_id=user_id,
                name=display_name(names, user_id),
                total=total,
                primary_issue=ranked_types[0][0] if ranked_types else "N/A",
            )
        )
    return impact


def weekly_trend(reports: list[FeedbackRecord], now: datetime | None = None) -> TrendSummary:
    """Last seven days against the seven before them."""
    now = now or datetime.now(timezone.utc)
    week_start = now - TREND_WINDOW
    prev_start = now - 2 * TREND_WINDOW

    current = [fb for fb in reports if fb.timestamp >= week_start]
    previous = [fb for fb in reports if prev_start <= fb.timestamp < week_start]
    diff = len(current) - len(previous)

    by_type = Counter(fb.process_type.value for fb in current)
    return TrendSummary(
        current=len(current),
        previous=len(previous),
        diff=diff,
        direction="up" if diff > 0 else "down" if diff < 0 else "flat",
        top_types=[
            TypeCount(process_type=name, count=count)
            for name, count in _ranked(by_type)[:TREND_TOP_TYPES]
        ],
    )


def summarize(
    viewer: UserRecord,
    feedbacks: Iterable[FeedbackRecord],
    names: Mapping[str, str],
    now: datetime | None = None,
) -> AnalyticsResponse:
    """
    Analytics for ``viewer``.

    Managers and admins get the whole team; a regular user gets diagnostics
    over the reports they received and a rejection rate over the ones they sent.
    """
    feedbacks = list(feedbacks)
    team_view = is_manager_tier(viewer)
    if team_view:
        received = sent = feedbacks
    else:
        received = [fb for fb in feedbacks if fb.to_user_id == viewer.id]
        sent = [fb for fb in feedbacks if fb.from_user_id == viewer.id]

    valid = approved(received)
    return AnalyticsResponse(
        team_view=team_view,
        total_analyzed=len(valid),
        sent_total=len(sent),
        rejection_rate=rejection_rate(sent),
        categories=category_breakdown(valid),
        top_scenarios=scenario_hotspots(valid),
        top_receivers=colleague_impact(valid, names) if team_view else [],
        trend=weekly_trend(valid, now),
    )
