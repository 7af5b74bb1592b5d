"""Seed a demo routine for RoutineDesk.

Run:
  PYTHONPATH=backend python scripts/seed_demo_routine.py
"""

from __future__ import annotations

import logging
import os

from sqlalchemy import select
from sqlalchemy.orm import Session

from routinedesk.core.config import get_settings
from routinedesk.core.exceptions import SpanInvalidError
from routinedesk.core.security import get_password_hash
from routinedesk.db.bootstrap import ensure_runtime_schema
from routinedesk.db.session import SessionLocal
from routinedesk.models.room import Room
from routinedesk.models.teacher import Teacher
from routinedesk.models.user import User, UserRole
from routinedesk.schemas.routine import AssignRequest
from routinedesk.services import routine_service

logger = logging.getLogger("seed_demo_routine")

DEFAULT_PASSWORD = os.getenv("SEED_DEFAULT_PASSWORD", "RoutineDesk123!")
ACADEMIC_YEAR = os.getenv("SEED_ACADEMIC_YEAR", "2081-2082").strip() or "2081-2082"
PROGRAM_ID = "bct"

TEACHERS = [
    ("Ram Prasad Sharma", "RPS"),
    ("Sita Karki", "SK"),
    ("Hari Bahadur Thapa", "HBT"),
    ("Gita Adhikari", "GA"),
]
ROOMS = [
    ("Block A 101", False),
    ("Block A 102", False),
    ("Computer Lab 1", True),
    ("Computer Lab 2", True),
]

# (semester, section, day, start slot, span, subject, teachers, room, class type, lab group, week pattern)
CLASSES = [
    (5, "AB", 1, 0, 1, "sub-dsa", ["RPS"], "Block A 101", "lecture", None, None),
    (5, "AB", 1, 1, 1, "sub-os", ["SK"], "Block A 101", "lecture", None, None),
    (5, "AB", 2, 4, 3, "sub-dsa", ["RPS"], "Computer Lab 1", "practical", "A", None),
    (5, "AB", 2, 4, 3, "sub-dsa", ["HBT"], "Computer Lab 2", "practical", "B", None),
    (6, "CD", 1, 0, 1, "sub-math", ["RPS"], "Block A 102", "lecture", None, None),
    (5, "CD", 3, 3, 2, "sub-net", ["GA"], "Computer Lab 1", "practical", None, "odd"),
    (5, "CD", 3, 3, 2, "sub-dbms", ["GA"], "Computer Lab 1", "practical", None, "even"),
]


def _ensure_admin(db: Session) -> User:
    admin = db.execute(select(User).where(User.email == "admin@routinedesk.local")).scalar_one_or_none()
    if admin is None:
        admin = User(
            name="Routine Admin",
            email="admin@routinedesk.local",
            hashed_password=get_password_hash(DEFAULT_PASSWORD),
            role=UserRole.admin,
            department="Administration",
        )
        db.add(admin)
        db.commit()
    return admin


def _ensure_teachers(db: Session) -> dict[str, str]:
    ids = {}
    for name, short_name in TEACHERS:
        teacher = db.execute(select(Teacher).where(Teacher.short_name == short_name)).scalar_one_or_none()
        if teacher is None:
            teacher = Teacher(name=name, short_name=short_name, available_days=[], unavailable_slots=[])
            db.add(teacher)
            db.flush()
        ids[short_name] = teacher.id
    db.commit()
    return ids


def _ensure_rooms(db: Session) -> dict[str, str]:
    ids = {}
    for name, is_lab in ROOMS:
        room = db.execute(select(Room).where(Room.name == name)).scalar_one_or_none()
        if room is None:
            room = Room(name=name, is_lab=is_lab, capacity=24 if is_lab else 48)
            db.add(room)
            db.flush()
        ids[name] = room.id
    db.commit()
    return ids


def seed(db: Session, academic_year_id: str = ACADEMIC_YEAR) -> dict[str, int]:
    """Creates reference data and the demo classes. Classes that already exist are skipped."""
    admin = _ensure_admin(db)
    teacher_ids = _ensure_teachers(db)
    room_ids = _ensure_rooms(db)
    teaching_days = get_settings().teaching_days

    created = 0
    skipped = 0
    for semester, section, day, slot, span, subject, teachers, room, class_type, lab_group, pattern in CLASSES:
        recurrence = {"type": "alternate", "pattern": pattern} if pattern else {"type": "weekly"}
        request = AssignRequest(
            academic_year_id=academic_year_id,
            program_id=PROGRAM_ID,
            semester=semester,
            section=section,
            day_index=day,
            slot_index=slot,
            span_length=span,
            subject_id=subject,
            teacher_ids=[teacher_ids[short_name] for short_name in teachers],
            room_id=room_ids[room],
            class_type=class_type,
            lab_group_id=lab_group,
            recurrence=recurrence,
        )
        try:
            routine_service.assign_class(db, request, teaching_days=teaching_days, actor=admin)
        except SpanInvalidError as exc:
            if exc.reason != SpanInvalidError.PERIOD_CONFLICT:
                raise
            skipped += 1
            continue
        created += 1

    logger.info("Seeded %d class(es), skipped %d already present", created, skipped)
    return {"created": created, "skipped": skipped}


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")
    ensure_runtime_schema()
    with SessionLocal() as db:
        result = seed(db)
    print(f"Academic year {ACADEMIC_YEAR}: {result['created']} created, {result['skipped']} skipped")


if __name__ == "__main__":
    main()
