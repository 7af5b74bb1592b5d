from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from routinedesk.api.deps import get_current_user, get_db, require_admin, require_schedulers
from routinedesk.core.config import get_settings
from routinedesk.models.routine_slot import RecurrenceType, WeekPattern
from routinedesk.models.user import User
from routinedesk.schemas.activity import ActivityLogOut
from routinedesk.schemas.conflict import ConflictResult, SpanDefect
from routinedesk.schemas.routine import (
    AssignmentOut,
    AssignRequest,
    AvailabilityOut,
    ClearOut,
    MoveRequest,
    Recurrence,
    RoutineSlotRecord,
)
from routinedesk.services import audit, routine_service

settings = get_settings()
router = APIRouter()


@router.post("/check", response_model=ConflictResult)
def check_assignment(
    payload: AssignRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ConflictResult:
    return routine_service.check_assignment(db, payload, teaching_days=settings.teaching_days)


@router.post("/assign", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
def assign_class(
    payload: AssignRequest,
    current_user: User = Depends(require_schedulers),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    return routine_service.assign_class(db, payload, teaching_days=settings.teaching_days, actor=current_user)


@router.put("/slots/{slot_id}", response_model=AssignmentOut)
def move_class(
    slot_id: str,
    payload: MoveRequest,
    current_user: User = Depends(require_schedulers),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    return routine_service.move_class(db, slot_id, payload, teaching_days=settings.teaching_days, actor=current_user)


@router.delete("/slots/{slot_id}", response_model=ClearOut)
def clear_slot(
    slot_id: str,
    current_user: User = Depends(require_schedulers),
    db: Session = Depends(get_db),
) -> ClearOut:
    span_id, deactivated = routine_service.clear_slot(db, slot_id, actor=current_user)
    return ClearOut(span_id=span_id, deactivated=deactivated)


@router.delete("/spans/{span_id}", response_model=ClearOut)
def clear_span_group(
    span_id: str,
    current_user: User = Depends(require_schedulers),
    db: Session = Depends(get_db),
) -> ClearOut:
    deactivated = routine_service.clear_span_group(db, span_id, actor=current_user)
    return ClearOut(span_id=span_id, deactivated=deactivated)


@router.get("/slots", response_model=list[RoutineSlotRecord])
def list_slots(
    academic_year_id: str = Query(alias="academicYearId", min_length=1),
    teacher_id: str | None = Query(default=None, alias="teacherId"),
    room_id: str | None = Query(default=None, alias="roomId"),
    program_id: str | None = Query(default=None, alias="programId"),
    semester: int | None = Query(default=None, ge=1, le=8),
    section: str | None = Query(default=None),
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[RoutineSlotRecord]:
    return routine_service.list_slots(
        db,
        academic_year_id=academic_year_id,
        teacher_id=teacher_id,
        room_id=room_id,
        program_id=program_id,
        semester=semester,
        section=section,
        include_inactive=include_inactive,
    )


@router.get("/availability", response_model=AvailabilityOut)
def availability(
    academic_year_id: str = Query(alias="academicYearId", min_length=1),
    day_index: int = Query(alias="dayIndex", ge=0, le=6),
    slot_index: int = Query(alias="slotIndex", ge=0),
    semester: int = Query(ge=1, le=8),
    week_pattern: WeekPattern | None = Query(default=None, alias="weekPattern"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AvailabilityOut:
    recurrence = Recurrence(type=RecurrenceType.alternate, pattern=week_pattern) if week_pattern else None
    return routine_service.availability(
        db,
        academic_year_id=academic_year_id,
        day_index=day_index,
        slot_index=slot_index,
        semester=semester,
        recurrence=recurrence,
    )


@router.get("/integrity", response_model=list[SpanDefect])
def span_integrity(
    academic_year_id: str = Query(alias="academicYearId", min_length=1),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[SpanDefect]:
    return routine_service.reconcile_spans(db, academic_year_id)


@router.get("/history", response_model=list[ActivityLogOut])
def day_history(
    academic_year_id: str = Query(alias="academicYearId", min_length=1),
    day_index: int = Query(alias="dayIndex", ge=0, le=6),
    limit: int = Query(default=100, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ActivityLogOut]:
    return audit.day_history(db, academic_year_id, day_index, limit=limit)
