from app.models.user import User, UserRole
from app.models.feedback import (
    ApprovalStatus,
    Feedback,
    Priority,
    ProcessType,
    ResolutionStatus,
    ScenarioTag,
)
from app.models.audit_log import AuditLog
from app.models.note import Note, NoteColor, NoteFontSize
from app.models.announcement import Announcement, AnnouncementType
from app.models.article import Article

__all__ = [
    "User",
    "UserRole",
    "Feedback",
    "ApprovalStatus",
    "Priority",
    "ProcessType",
    "ResolutionStatus",
    "ScenarioTag",
    "AuditLog",
    "Note",
    "NoteColor",
    "NoteFontSize",
    "Announcement",
    "AnnouncementType",
    "Article",
]
