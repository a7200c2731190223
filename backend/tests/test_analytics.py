from datetime import date, datetime, timedelta, timezone

from app.models.feedback import ApprovalStatus, ProcessType, ScenarioTag
from app.models.user import UserRole
from app.schemas.feedback import FeedbackRecord
from app.schemas.user import UserRecord
from app.services import analytics

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _report(
    process_type=ProcessType.WRONG_PROCESS,
    status=ApprovalStatus.APPROVED,
    sender="bob",
    receiver="alice",
    tag=None,
    age=timedelta(hours=1),
):
    return FeedbackRecord(
        from_user_id=sender,
        to_user_id=receiver,
        report_date=date(2026, 10, 1),
        fault_description="Issue",
        process_type=process_type,
        approval_status=status,
        scenario_tag=tag,
        timestamp=NOW - age,
    )


class TestPercentages:
    def test_zero_total_renders_zero(self):
        assert analytics.percent(0, 0) == "0"

    def test_one_decimal(self):
        assert analytics.percent(1, 3) == "33.3"
        assert analytics.percent(2, 2) == "100.0"

    def test_empty_breakdown(self):
        breakdown = analytics.category_breakdown([])
        assert breakdown.training_pct == breakdown.execution_pct == breakdown.behavioral_pct == "0"

    def test_single_behavioral_report(self):
        breakdown = analytics.category_breakdown([_report(ProcessType.BEHAVIOR)])
        assert breakdown.behavioral_pct == "100.0"
        assert breakdown.training_pct == "0.0"
        assert breakdown.behavioral_count == 1

    def test_buckets(self):
        reports = [
            _report(ProcessType.WRONG_PROCESS),
            _report(ProcessType.FIRST_POINT_RESOLUTION),
            _report(ProcessType.INVESTIGATION),
            _report(ProcessType.BEHAVIOR),
        ]
        breakdown = analytics.category_breakdown(reports)
        assert (breakdown.training_count, breakdown.execution_count, breakdown.behavioral_count) == (
            2,
            1,
            1,
        )
        assert breakdown.training_pct == "50.0"

    def test_rejection_rate(self):
        sent = [
            _report(status=ApprovalStatus.REJECTED),
            _report(status=ApprovalStatus.APPROVED),
            _report(status=ApprovalStatus.PENDING),
        ]
        assert analytics.rejection_rate(sent) == "33.3"
        assert analytics.rejection_rate([]) == "0"


class TestRankings:
    def test_hotspots_keep_first_seen_order_on_ties(self):
        reports = [
            _report(tag=ScenarioTag.PARCEL_DAMAGED),
            _report(tag=ScenarioTag.SHIPMENT_STALLED),
            _report(tag=ScenarioTag.SHIPMENT_STALLED),
            _report(tag=ScenarioTag.PARCEL_DAMAGED),
            _report(tag=ScenarioTag.TRANSFER_TO_RR_DEPT),
            _report(),
        ]

        hotspots = analytics.scenario_hotspots(reports)

        assert [h.tag for h in hotspots] == [
            ScenarioTag.PARCEL_DAMAGED.value,
            ScenarioTag.SHIPMENT_STALLED.value,
            ScenarioTag.TRANSFER_TO_RR_DEPT.value,
        ]
        assert hotspots[0].pct == "33.3"

    def test_colleague_impact(self):
        reports = [
            _report(ProcessType.BEHAVIOR, receiver="alice"),
            _report(ProcessType.BEHAVIOR, receiver="alice"),
            _report(ProcessType.INVESTIGATION, receiver="alice"),
            _report(ProcessType.INVESTIGATION, receiver="carol"),
        ]

        impact = analytics.colleague_impact(reports, {"alice": "Alice"})

        assert [(c.name, c.total, c.primary_issue) for c in impact] == [
            ("Alice", 3, "Behavior"),
            ("Unknown", 1, "Investigation"),
        ]


class TestTrend:
    def test_week_over_week(self):
        reports = [
            _report(ProcessType.BEHAVIOR, age=timedelta(days=1)),
            _report(ProcessType.BEHAVIOR, age=timedelta(days=2)),
            _report(ProcessType.INVESTIGATION, age=timedelta(days=3)),
            _report(age=timedelta(days=9)),
            _report(age=timedelta(days=20)),
        ]

        trend = analytics.weekly_trend(reports, NOW)

        assert (trend.current, trend.previous, trend.diff, trend.direction) == (3, 1, 2, "up")
        assert trend.top_types[0].process_type == "Behavior"
        assert trend.top_types[0].count == 2

    def test_flat_when_empty(self):
        trend = analytics.weekly_trend([], NOW)
        assert trend.direction == "flat"
        assert trend.top_types == []


class TestSummarize:
    def test_user_gets_received_and_sent_diagnostics(self):
        alice = UserRecord(id="alice", username="alice", name="Alice", is_approved=True)
        reports = [
            _report(ProcessType.BEHAVIOR, receiver="alice"),
            _report(ProcessType.BEHAVIOR, receiver="alice", status=ApprovalStatus.PENDING),
            _report(sender="alice", receiver="bob", status=ApprovalStatus.REJECTED),
            _report(sender="carol", receiver="bob"),
        ]

        result = analytics.summarize(alice, reports, {}, now=NOW)

        assert not result.team_view
        assert result.total_analyzed == 1
        assert result.categories.behavioral_pct == "100.0"
        assert result.sent_total == 1
        assert result.rejection_rate == "100.0"
        assert result.top_receivers == []

    def test_manager_gets_team_view(self):
        mgr = UserRecord(username="mgr", name="Mgr", role=UserRole.MANAGER, is_approved=True)
        reports = [_report(receiver="alice"), _report(receiver="bob"), _report(receiver="bob")]

        result = analytics.summarize(mgr, reports, {"bob": "Bob"}, now=NOW)

        assert result.team_view
        assert result.total_analyzed == 3
        assert result.top_receivers[0].name == "Bob"
