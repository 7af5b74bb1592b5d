from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import func, inspect, select, text
from sqlalchemy.orm import Session

from routinedesk.api.deps import get_db
from routinedesk.db.bootstrap import REQUIRED_TABLES
from routinedesk.models.time_slot import TimeSlotDefinition

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready(db: Session = Depends(get_db)) -> JSONResponse:
    db_ok = True
    missing_tables: list[str] = []
    time_slot_count = 0
    db_error: str | None = None

    try:
        connection = db.connection()
        connection.execute(text("SELECT 1"))
        table_names = set(inspect(connection).get_table_names())
        missing_tables = sorted(REQUIRED_TABLES - table_names)
        if "time_slot_definitions" in table_names:
            time_slot_count = db.execute(select(func.count()).select_from(TimeSlotDefinition)).scalar_one()
    except Exception as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc)

    ready = db_ok and not missing_tables and time_slot_count > 0
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {
            "ok": db_ok,
            "missing_tables": missing_tables,
            "error": db_error,
        },
        "time_slots": {"configured": time_slot_count},
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
