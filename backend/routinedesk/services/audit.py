from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from routinedesk.models.activity_log import ActivityLog
from routinedesk.models.user import User


def log_activity(
    db: Session,
    *,
    actor: User | None,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    academic_year_id: str | None = None,
    day_index: int | None = None,
    details: dict | None = None,
) -> ActivityLog:
    """Queues an audit row in the caller's transaction; nothing is committed here."""
    record = ActivityLog(
        actor_id=actor.id if actor is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        academic_year_id=academic_year_id,
        day_index=day_index,
        details=details or {},
    )
    db.add(record)
    return record


def day_history(db: Session, academic_year_id: str, day_index: int, limit: int = 100) -> list[ActivityLog]:
    statement = (
        select(ActivityLog)
        .where(ActivityLog.academic_year_id == academic_year_id, ActivityLog.day_index == day_index)
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id)
        .limit(limit)
    )
    return list(db.execute(statement).scalars())
