import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from routinedesk.db.base import Base


class ClassType(str, Enum):
    lecture = "lecture"
    practical = "practical"
    tutorial = "tutorial"


class RecurrenceType(str, Enum):
    weekly = "weekly"
    alternate = "alternate"
    custom = "custom"


class WeekPattern(str, Enum):
    odd = "odd"
    even = "even"


class RoutineSlot(Base):
    __tablename__ = "routine_slots"
    __table_args__ = (
        Index(
            "ix_routine_slots_section_position",
            "academic_year_id",
            "program_id",
            "semester",
            "section",
            "day_index",
            "slot_index",
        ),
        Index("ix_routine_slots_day_position", "academic_year_id", "day_index", "slot_index", "is_active"),
        Index("ix_routine_slots_room_position", "room_id", "day_index", "slot_index"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    program_id: Mapped[str] = mapped_column(String(36), nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    section: Mapped[str] = mapped_column(String(20), nullable=False)
    academic_year_id: Mapped[str] = mapped_column(String(36), nullable=False)
    day_index: Mapped[int] = mapped_column(Integer, nullable=False)
    slot_index: Mapped[int] = mapped_column(Integer, nullable=False)

    class_type: Mapped[ClassType] = mapped_column(SAEnum(ClassType, name="class_type"), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    teacher_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    room_id: Mapped[str] = mapped_column(String(36), nullable=False)
    lab_group_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    span_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    span_position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_spanned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    recurrence_type: Mapped[RecurrenceType] = mapped_column(
        SAEnum(RecurrenceType, name="recurrence_type"),
        nullable=False,
        default=RecurrenceType.weekly,
    )
    recurrence_pattern: Mapped[WeekPattern | None] = mapped_column(
        SAEnum(WeekPattern, name="week_pattern"),
        nullable=True,
    )
    recurrence_weeks: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deactivated_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
