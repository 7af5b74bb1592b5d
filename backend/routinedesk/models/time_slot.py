from sqlalchemy import Boolean, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from routinedesk.db.base import Base


class TimeSlotDefinition(Base):
    """One entry of the ordered period catalog.

    ``id`` is the canonical slot index referenced by routine slots. Ordering
    always comes from ``sort_order``; the id carries no positional meaning.
    """

    __tablename__ = "time_slot_definitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    label: Mapped[str] = mapped_column(String(50), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    is_break: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    applicable_days: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    program_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    semester: Mapped[int | None] = mapped_column(Integer, nullable=True)
    section: Mapped[str | None] = mapped_column(String(20), nullable=True)
