from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from routinedesk.db.base import Base


class ScheduleLock(Base):
    """Row locked with SELECT ... FOR UPDATE around every read-check-write cycle.

    One row exists per (academic year, day). Every teacher, room and section
    conflict is confined to a single day, so serializing per day covers all
    three scopes.
    """

    __tablename__ = "schedule_locks"
    __table_args__ = (UniqueConstraint("academic_year_id", "day_index", name="uq_schedule_locks_scope"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    academic_year_id: Mapped[str] = mapped_column(String(36), nullable=False)
    day_index: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
