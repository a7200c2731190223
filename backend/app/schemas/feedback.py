import enum
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from app.models.feedback import (
    ApprovalStatus,
    Priority,
    ProcessType,
    ResolutionStatus,
    ScenarioTag,
)
from app.models.user import new_id
from app.schemas.common import Record, UtcDatetime, utc_now


class FeedbackScope(str, enum.Enum):
    MINE = "mine"
    ALL = "all"


class ApprovalDecision(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


def _blank_tag_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class FeedbackRecord(Record):
    id: str = Field(default_factory=new_id)
    from_user_id: str
    to_user_id: str
    report_date: date
    order_number: str = ""
    case_number: str = ""
    fault_description: str
    process_type: ProcessType
    scenario_tag: ScenarioTag | None = None
    resolution_status: ResolutionStatus = ResolutionStatus.OPEN
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    priority: Priority = Priority.MEDIUM
    feedback_content: str = ""
    additional_notes: str = ""
    resolution_date: date | None = None
    ai_analysis: str | None = None
    manager_notes: str | None = None
    manager_note_to_reporter: str | None = None
    manager_note_to_receiver: str | None = None
    manager_name: str | None = None
    timestamp: UtcDatetime = Field(default_factory=utc_now)

    @field_validator("scenario_tag", mode="before")
    @classmethod
    def normalize_tag(cls, v):
        return _blank_tag_to_none(v)


class FeedbackCreateRequest(BaseModel):
    to_user_id: str
    report_date: date = Field(default_factory=date.today)
    order_number: str = Field(default="", max_length=50, pattern=r"^\d*$")
    case_number: str = Field(default="", max_length=50)
    fault_description: str = Field(min_length=1, max_length=2000)
    process_type: ProcessType
    scenario_tag: ScenarioTag | None = None
    priority: Priority = Priority.MEDIUM
    feedback_content: str = Field(default="", max_length=5000)
    additional_notes: str = Field(default="", max_length=5000)
    resolution_date: date | None = None

    @field_validator("scenario_tag", mode="before")
    @classmethod
    def normalize_tag(cls, v):
        return _blank_tag_to_none(v)


class ApprovalDecisionRequest(BaseModel):
    decision: ApprovalDecision
    manager_notes: str | None = Field(default=None, max_length=2000)
    note_to_reporter: str | None = Field(default=None, max_length=2000)
    note_to_receiver: str | None = Field(default=None, max_length=2000)


class ResolutionUpdateRequest(BaseModel):
    resolution_status: ResolutionStatus


class FeedbackResponse(BaseModel):
    id: str
    from_user_id: str | None
    from_user_name: str
    to_user_id: str
    to_user_name: str
    report_date: date
    order_number: str
    case_number: str
    fault_description: str
    process_type: ProcessType
    scenario_tag: ScenarioTag | None
    resolution_status: ResolutionStatus
    approval_status: ApprovalStatus
    priority: Priority
    feedback_content: str
    additional_notes: str
    resolution_date: date | None
    ai_analysis: str | None
    manager_notes: str | None
    manager_note_to_reporter: str | None
    manager_note_to_receiver: str | None
    manager_name: str | None
    timestamp: datetime
    is_mine: bool = False


class FeedbackListResponse(BaseModel):
    items: list[FeedbackResponse]
    total: int


class TransitionResponse(BaseModel):
    feedback: FeedbackResponse
    changed: bool
