from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from routinedesk.api.deps import get_current_user, get_db, require_schedulers
from routinedesk.models.teacher import Teacher
from routinedesk.models.user import User
from routinedesk.schemas.teacher import TeacherAvailabilityUpdate, TeacherCreate, TeacherOut

router = APIRouter()


@router.get("/", response_model=list[TeacherOut])
def list_teachers(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> list[TeacherOut]:
    return list(db.execute(select(Teacher).order_by(Teacher.short_name)).scalars())


@router.post("/", response_model=TeacherOut, status_code=status.HTTP_201_CREATED)
def create_teacher(
    payload: TeacherCreate,
    current_user: User = Depends(require_schedulers),
    db: Session = Depends(get_db),
) -> TeacherOut:
    existing = db.execute(select(Teacher).where(Teacher.short_name == payload.short_name)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Teacher short name already exists")
    teacher = Teacher(**payload.model_dump())
    db.add(teacher)
    db.commit()
    db.refresh(teacher)
    return teacher


@router.put("/{teacher_id}/availability", response_model=TeacherOut)
def update_availability(
    teacher_id: str,
    payload: TeacherAvailabilityUpdate,
    current_user: User = Depends(require_schedulers),
    db: Session = Depends(get_db),
) -> TeacherOut:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    data = payload.model_dump(exclude_unset=True)
    if data.get("available_days") is not None:
        teacher.available_days = sorted(set(data["available_days"]))
    if data.get("unavailable_slots") is not None:
        teacher.unavailable_slots = data["unavailable_slots"]
    db.commit()
    db.refresh(teacher)
    return teacher
