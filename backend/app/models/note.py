import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.models.user import new_id


class NoteColor(str, enum.Enum):
    YELLOW = "yellow"
    BLUE = "blue"
    GREEN = "green"
    PINK = "pink"
    PURPLE = "purple"
    ORANGE = "orange"


class NoteFontSize(str, enum.Enum):
    SM = "sm"
    BASE = "base"
    LG = "lg"
    XL = "xl"


class Note(Base):
    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    color: Mapped[NoteColor] = mapped_column(
        Enum(NoteColor, name="note_color", native_enum=False,
             values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=NoteColor.YELLOW,
    )
    font_size: Mapped[NoteFontSize] = mapped_column(
        Enum(NoteFontSize, name="note_font_size", native_enum=False,
             values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=NoteFontSize.BASE,
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
