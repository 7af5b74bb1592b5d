from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from routinedesk.api.deps import get_current_user, get_db, require_schedulers
from routinedesk.models.routine_slot import RoutineSlot
from routinedesk.models.time_slot import TimeSlotDefinition
from routinedesk.models.user import User
from routinedesk.schemas.time_slot import TimeSlotCreate, TimeSlotOut
from routinedesk.services import routine_service

router = APIRouter()


@router.get("/", response_model=list[TimeSlotOut])
def list_time_slots(
    program_id: str | None = Query(default=None, alias="programId"),
    semester: int | None = Query(default=None, ge=1, le=8),
    section: str | None = Query(default=None),
    day_index: int | None = Query(default=None, alias="dayIndex", ge=0, le=6),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TimeSlotOut]:
    catalog = routine_service.load_catalog(
        db,
        program_id=program_id,
        semester=semester,
        section=section.strip().upper() if section else None,
    )
    return catalog.ordered(day_index)


@router.post("/", response_model=TimeSlotOut, status_code=status.HTTP_201_CREATED)
def create_time_slot(
    payload: TimeSlotCreate,
    current_user: User = Depends(require_schedulers),
    db: Session = Depends(get_db),
) -> TimeSlotOut:
    if db.get(TimeSlotDefinition, payload.id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Time slot index already exists")
    return routine_service.create_time_slot(db, payload, actor=current_user)


@router.delete("/{slot_index}")
def delete_time_slot(
    slot_index: int,
    current_user: User = Depends(require_schedulers),
    db: Session = Depends(get_db),
) -> dict:
    definition = db.get(TimeSlotDefinition, slot_index)
    if definition is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Time slot not found")
    in_use = db.execute(
        select(RoutineSlot.id).where(RoutineSlot.slot_index == slot_index, RoutineSlot.is_active.is_(True)).limit(1)
    ).first()
    if in_use is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Time slot is used by active classes")
    db.delete(definition)
    db.commit()
    return {"success": True}
