import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.user import new_id


class AnnouncementType(str, enum.Enum):
    GENERAL = "GENERAL"
    ALERT = "ALERT"
    SUCCESS = "SUCCESS"
    MAINTENANCE = "MAINTENANCE"
    POLICY = "POLICY"


class Announcement(Base):
    __tablename__ = "announcements"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(String(64), nullable=False)
    author_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_important: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    type: Mapped[AnnouncementType] = mapped_column(
        Enum(AnnouncementType, name="announcement_type", native_enum=False,
             values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=AnnouncementType.GENERAL,
    )
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    text_color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    text_size: Mapped[str | None] = mapped_column(String(10), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
