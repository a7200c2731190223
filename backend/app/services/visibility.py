"""
Role-scoped visibility rules for reports and audit entries.

Pure functions over snapshots already fetched from the store.
"""

from collections.abc import Iterable, Mapping

from app.core.exceptions import ForbiddenError
from app.models.feedback import ApprovalStatus
from app.models.user import MANAGER_TIER, UserRole
from app.schemas.audit_log import AuditLogRecord
from app.schemas.feedback import FeedbackRecord, FeedbackScope
from app.schemas.user import UserRecord

ANONYMOUS = "Anonymous"
UNKNOWN = "Unknown"


def is_manager_tier(user: UserRecord) -> bool:
    return user.role in MANAGER_TIER


def can_view_feedback(viewer: UserRecord, feedback: FeedbackRecord) -> bool:
    if is_manager_tier(viewer):
        return True
    if feedback.from_user_id == viewer.id:
        return True
    # Subjects only see reports about themselves once a manager approved them
    return (
        feedback.to_user_id == viewer.id
        and feedback.approval_status == ApprovalStatus.APPROVED
    )


def filter_feedback(
    viewer: UserRecord,
    feedbacks: Iterable[FeedbackRecord],
    scope: FeedbackScope = FeedbackScope.MINE,
) -> list[FeedbackRecord]:
    """Return the reports ``viewer`` may see in the given view."""
    if is_manager_tier(viewer):
        return list(feedbacks)
    if scope == FeedbackScope.ALL:
        raise ForbiddenError("The all-reports view requires a manager or admin role")
    return [fb for fb in feedbacks if can_view_feedback(viewer, fb)]


def display_name(names: Mapping[str, str], user_id: str | None) -> str:
    if not user_id:
        return UNKNOWN
    return names.get(user_id) or UNKNOWN


def shows_sender(viewer: UserRecord, feedback: FeedbackRecord) -> bool:
    return is_manager_tier(viewer) or feedback.from_user_id == viewer.id


def sender_display_name(
    viewer: UserRecord, feedback: FeedbackRecord, names: Mapping[str, str]
) -> str:
    if shows_sender(viewer, feedback):
        return display_name(names, feedback.from_user_id)
    return ANONYMOUS


def search_feedback(
    viewer: UserRecord,
    feedbacks: Iterable[FeedbackRecord],
    term: str,
    names: Mapping[str, str],
    match_anonymized_sender: bool = False,
) -> list[FeedbackRecord]:
    """
    Case-insensitive match on receiver name, sender name, fault description
    and order number.

    When the sender is hidden from ``viewer`` only the displayed "Anonymous"
    is matched, unless ``match_anonymized_sender`` is set.
    """
    needle = (term or "").strip().lower()
    feedbacks = list(feedbacks)
    if not needle:
        return feedbacks

    results = []
    for fb in feedbacks:
        if match_anonymized_sender:
            sender = display_name(names, fb.from_user_id)
        else:
            sender = sender_display_name(viewer, fb, names)
        haystack = (
            display_name(names, fb.to_user_id),
            sender,
            fb.fault_description,
            fb.order_number or "",
        )
        if any(needle in field.lower() for field in haystack):
            results.append(fb)
    return results


def filter_audit_logs(
    viewer: UserRecord, logs: Iterable[AuditLogRecord]
) -> list[AuditLogRecord]:
    if viewer.role == UserRole.ADMIN:
        return list(logs)
    if viewer.role == UserRole.MANAGER:
        return [log for log in logs if log.user_role == UserRole.USER]
    raise ForbiddenError("Audit logs are restricted to managers and admins")


def search_audit_logs(
    logs: Iterable[AuditLogRecord],
    term: str | None = None,
    action: str | None = None,
) -> list[AuditLogRecord]:
    results = list(logs)
    if action:
        results = [log for log in results if log.action == action]
    needle = (term or "").strip().lower()
    if needle:
        results = [
            log
            for log in results
            if needle in log.user_name.lower()
            or needle in log.details.lower()
            or needle in log.action.lower()
        ]
    return results
