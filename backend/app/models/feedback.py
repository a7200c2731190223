import enum
from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.user import new_id


class ProcessType(str, enum.Enum):
    WRONG_PROCESS = "Wrong Process"
    FIRST_POINT_RESOLUTION = "First Point Resolution"
    WRONG_DEPARTMENT = "Wrong Department"
    INVESTIGATION = "Investigation"
    BEHAVIOR = "Behavior"
    REPLACEMENT_REFUND = "Replacement & Refund"
    RETURN_TO_SENDER = "Return To Sender"
    PROCESS_PENDING_STATUS = "Process/Pending Status"


class ScenarioTag(str, enum.Enum):
    SUPPLIER_REFERRAL = "SUPPLIER REFERRAL (OSO)"
    SLA_BREACH_FULL_RR_RTS = "SLA BREACH (FULL R/R & RTS)"
    SLA_COMPLIANCE_REQUIRED_WAIT = "SLA COMPLIANCE (REQUIRED WAIT)"
    SLA_BREACH_IMMINENT_DELIVERY = "SLA BREACH (IMMINENT DELIVERY)"
    MISSING_ITEM_OH_REVIEW = "MISSING ITEM (OH REVIEW)"
    SHIPPING_ERROR_FAILED_LABEL = "SHIPPING ERROR (FAILED LABEL)"
    TRANSFER_TO_RR_DEPT = "TRANSFER TO R/R DEPT"
    PARCEL_DAMAGED = "PARCEL DAMAGED"
    COLLECTION_FAILURE_NRBD2 = "COLLECTION FAILURE (NRBD2)"
    APPLE_NRBD2_ESCALATION = "APPLE NRBD2 ESCALATION"
    CARRIER_RE_ATTEMPT_ARRANGED = "CARRIER RE-ATTEMPT ARRANGED"
    PENDING_ORDER_CARD_ISSUE = "PENDING ORDER (CARD ISSUE)"
    DELIVERY_DISPUTE_INVESTIGATION = "DELIVERY DISPUTE (INVESTIGATION)"
    RTS_FOLLOW_UP_RR = "RTS FOLLOW-UP (R/R)"
    SLA_BREACH_END_OF_DAY_ATTEMPT = "SLA BREACH (END-OF-DAY ATTEMPT)"
    NRBD2_MANUAL_CONFIRM = "NRBD2 (MANUAL CONFIRM)"
    ITEM_DAMAGED_EXCHANGE = "ITEM DAMAGED (EXCHANGE)"
    DELIVERY_MONITOR_24H_WAIT = "DELIVERY MONITOR (24H WAIT)"
    SHIPMENT_STALLED = "SHIPMENT STALLED (3 DAYS NO UPDATE)"
    LOST_IN_TRANSIT_RTS_REQUIRED = "LOST IN TRANSIT (RTS REQUIRED)"
    PRE_SHIPMENT_LOSS_NO_RTS = "PRE-SHIPMENT LOSS (NO RTS)"


class ResolutionStatus(str, enum.Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    CLOSED_RESOLVED = "Closed/Resolved"


class ApprovalStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class Priority(str, enum.Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


def _enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda x: [e.value for e in x],
    )


class Feedback(Base):
    """A fault report filed by one user about another."""

    __tablename__ = "feedbacks"
    __table_args__ = (
        Index("idx_feedbacks_from_user", "from_user_id"),
        Index("idx_feedbacks_to_user", "to_user_id"),
        Index("idx_feedbacks_timestamp", "timestamp"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    from_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    to_user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    report_date: Mapped[date] = mapped_column(Date, nullable=False)
    order_number: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    case_number: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    fault_description: Mapped[str] = mapped_column(Text, nullable=False)

    process_type: Mapped[ProcessType] = mapped_column(
        _enum_column(ProcessType, "process_type"), nullable=False
    )
    scenario_tag: Mapped[ScenarioTag | None] = mapped_column(
        _enum_column(ScenarioTag, "scenario_tag"), nullable=True
    )
    resolution_status: Mapped[ResolutionStatus] = mapped_column(
        _enum_column(ResolutionStatus, "resolution_status"),
        nullable=False,
        default=ResolutionStatus.OPEN,
    )
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        _enum_column(ApprovalStatus, "approval_status"),
        nullable=False,
        default=ApprovalStatus.PENDING,
    )
    priority: Mapped[Priority] = mapped_column(
        _enum_column(Priority, "priority"), nullable=False, default=Priority.MEDIUM
    )

    feedback_content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    additional_notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    resolution_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    ai_analysis: Mapped[str | None] = mapped_column(Text, nullable=True)
    manager_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    manager_note_to_reporter: Mapped[str | None] = mapped_column(Text, nullable=True)
    manager_note_to_receiver: Mapped[str | None] = mapped_column(Text, nullable=True)
    manager_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Feedback {self.id} {self.approval_status}>"
