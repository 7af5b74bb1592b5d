from __future__ import annotations

import logging

from sqlalchemy import func, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from routinedesk.db.base import Base
from routinedesk.db.session import engine as default_engine
import routinedesk.models  # noqa: F401
from routinedesk.models.time_slot import TimeSlotDefinition

logger = logging.getLogger(__name__)

REQUIRED_TABLES: set[str] = {
    "users",
    "teachers",
    "rooms",
    "time_slot_definitions",
    "routine_slots",
    "schedule_locks",
    "activity_logs",
}

# Default institution day: seven teaching periods with a lunch break after the third.
# Ids are not positions: the break (id 7) sorts between period 3 and period 4.
DEFAULT_TIME_SLOTS: list[dict] = [
    {"id": 0, "label": "Period 1", "start_time": "10:15", "end_time": "11:05", "sort_order": 0},
    {"id": 1, "label": "Period 2", "start_time": "11:05", "end_time": "11:55", "sort_order": 1},
    {"id": 2, "label": "Period 3", "start_time": "11:55", "end_time": "12:45", "sort_order": 2},
    {"id": 7, "label": "Break", "start_time": "12:45", "end_time": "13:35", "sort_order": 3, "is_break": True},
    {"id": 3, "label": "Period 4", "start_time": "13:35", "end_time": "14:25", "sort_order": 4},
    {"id": 4, "label": "Period 5", "start_time": "14:25", "end_time": "15:15", "sort_order": 5},
    {"id": 5, "label": "Period 6", "start_time": "15:15", "end_time": "16:05", "sort_order": 6},
    {"id": 6, "label": "Period 7", "start_time": "16:05", "end_time": "16:55", "sort_order": 7},
]


def missing_tables(engine: Engine = default_engine) -> list[str]:
    with engine.connect() as connection:
        existing = set(inspect(connection).get_table_names())
    return sorted(REQUIRED_TABLES - existing)


def seed_default_time_slots(db: Session) -> int:
    count = db.execute(select(func.count()).select_from(TimeSlotDefinition)).scalar_one()
    if count:
        return 0
    for item in DEFAULT_TIME_SLOTS:
        db.add(TimeSlotDefinition(**item))
    db.commit()
    logger.info("Seeded %d default time slot definitions", len(DEFAULT_TIME_SLOTS))
    return len(DEFAULT_TIME_SLOTS)


def ensure_runtime_schema(engine: Engine = default_engine) -> None:
    missing = missing_tables(engine)
    if not missing:
        return
    logger.warning("Creating missing tables at startup: %s", ", ".join(missing))
    Base.metadata.create_all(bind=engine)
    with Session(engine) as db:
        seed_default_time_slots(db)
