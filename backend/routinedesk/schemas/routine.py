from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from routinedesk.models.routine_slot import ClassType, RecurrenceType, RoutineSlot, WeekPattern

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MAX_TEACHING_WEEK = 16


def semester_parity(semester: int) -> WeekPattern:
    return WeekPattern.odd if semester % 2 == 1 else WeekPattern.even


class Recurrence(BaseModel):
    type: RecurrenceType = RecurrenceType.weekly
    pattern: WeekPattern | None = None
    weeks: list[int] = Field(default_factory=list, max_length=MAX_TEACHING_WEEK)

    @field_validator("weeks")
    @classmethod
    def normalize_weeks(cls, value: list[int]) -> list[int]:
        invalid = [week for week in value if week < 1 or week > MAX_TEACHING_WEEK]
        if invalid:
            raise ValueError(f"Week numbers must be between 1 and {MAX_TEACHING_WEEK}")
        return sorted(set(value))

    @model_validator(mode="after")
    def validate_shape(self) -> "Recurrence":
        if self.type == RecurrenceType.weekly and (self.pattern is not None or self.weeks):
            raise ValueError("Weekly recurrence cannot carry a week pattern or week list")
        if self.type == RecurrenceType.alternate:
            if self.pattern is None:
                raise ValueError("Alternate recurrence requires pattern odd or even")
            if self.weeks:
                raise ValueError("Alternate recurrence cannot carry a week list")
        if self.type == RecurrenceType.custom:
            if not self.weeks:
                raise ValueError("Custom recurrence requires at least one week")
            if self.pattern is not None:
                raise ValueError("Custom recurrence cannot carry a week pattern")
        return self

    def applies_to_week(self, week_number: int) -> bool:
        if self.type == RecurrenceType.alternate:
            is_odd_week = week_number % 2 == 1
            return is_odd_week if self.pattern == WeekPattern.odd else not is_odd_week
        if self.type == RecurrenceType.custom:
            return week_number in self.weeks
        return True

    def describe(self) -> str:
        if self.type == RecurrenceType.alternate:
            return f"Alternate weeks ({self.pattern.value})"
        if self.type == RecurrenceType.custom:
            return "Weeks " + ", ".join(str(week) for week in self.weeks)
        return "Weekly"


class RoutineSlotRecord(BaseModel):
    """A routine slot as seen by the conflict engine. ``id`` is None until persisted."""

    id: str | None = None
    program_id: str
    semester: int = Field(ge=1, le=8)
    section: str
    academic_year_id: str
    day_index: int = Field(ge=0, le=6)
    slot_index: int = Field(ge=0)
    class_type: ClassType = ClassType.lecture
    subject_id: str
    teacher_ids: list[str] = Field(default_factory=list)
    room_id: str
    lab_group_id: str | None = None
    span_id: str | None = None
    span_position: int = Field(default=0, ge=0)
    is_spanned: bool = False
    recurrence: Recurrence = Field(default_factory=Recurrence)
    is_active: bool = True
    notes: str | None = None

    @property
    def semester_group(self) -> WeekPattern:
        return semester_parity(self.semester)

    @classmethod
    def from_model(cls, slot: RoutineSlot) -> "RoutineSlotRecord":
        return cls(
            id=slot.id,
            program_id=slot.program_id,
            semester=slot.semester,
            section=slot.section,
            academic_year_id=slot.academic_year_id,
            day_index=slot.day_index,
            slot_index=slot.slot_index,
            class_type=slot.class_type,
            subject_id=slot.subject_id,
            teacher_ids=list(slot.teacher_ids or []),
            room_id=slot.room_id,
            lab_group_id=slot.lab_group_id,
            span_id=slot.span_id,
            span_position=slot.span_position,
            is_spanned=slot.is_spanned,
            recurrence=Recurrence(
                type=slot.recurrence_type,
                pattern=slot.recurrence_pattern,
                weeks=list(slot.recurrence_weeks or []),
            ),
            is_active=slot.is_active,
            notes=slot.notes,
        )

    def to_model_fields(self) -> dict:
        return {
            "program_id": self.program_id,
            "semester": self.semester,
            "section": self.section,
            "academic_year_id": self.academic_year_id,
            "day_index": self.day_index,
            "slot_index": self.slot_index,
            "class_type": self.class_type,
            "subject_id": self.subject_id,
            "teacher_ids": list(self.teacher_ids),
            "room_id": self.room_id,
            "lab_group_id": self.lab_group_id,
            "span_id": self.span_id,
            "span_position": self.span_position,
            "is_spanned": self.is_spanned,
            "recurrence_type": self.recurrence.type,
            "recurrence_pattern": self.recurrence.pattern,
            "recurrence_weeks": list(self.recurrence.weeks),
            "is_active": self.is_active,
            "notes": self.notes,
        }


class ProposedAssignment(BaseModel):
    """A class someone wants to place on the grid, possibly over several periods."""

    program_id: str
    semester: int = Field(ge=1, le=8)
    section: str
    academic_year_id: str
    day_index: int
    slot_indices: list[int]
    subject_id: str
    teacher_ids: list[str] = Field(default_factory=list)
    room_id: str
    class_type: ClassType = ClassType.lecture
    lab_group_id: str | None = None
    recurrence: Recurrence = Field(default_factory=Recurrence)
    notes: str | None = None

    def period(
        self,
        slot_index: int,
        *,
        span_id: str | None = None,
        span_position: int = 0,
        is_spanned: bool = False,
    ) -> RoutineSlotRecord:
        return RoutineSlotRecord(
            program_id=self.program_id,
            semester=self.semester,
            section=self.section,
            academic_year_id=self.academic_year_id,
            day_index=self.day_index,
            slot_index=slot_index,
            class_type=self.class_type,
            subject_id=self.subject_id,
            teacher_ids=list(self.teacher_ids),
            room_id=self.room_id,
            lab_group_id=self.lab_group_id,
            span_id=span_id,
            span_position=span_position,
            is_spanned=is_spanned,
            recurrence=self.recurrence,
            notes=self.notes,
        )


class ConflictScope(BaseModel):
    academic_year_id: str
    teaching_days: list[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4, 5])


def _normalize_section(value: str) -> str:
    trimmed = value.strip().upper()
    if not trimmed:
        raise ValueError("Section cannot be empty")
    return trimmed


def _normalize_teacher_ids(value: list[str]) -> list[str]:
    # Order preserved, duplicates and blanks dropped.
    return list(dict.fromkeys(item.strip() for item in value if item.strip()))


class AssignRequest(BaseModel):
    academic_year_id: str = Field(min_length=1, max_length=36)
    program_id: str = Field(min_length=1, max_length=36)
    semester: int = Field(ge=1, le=8)
    section: str = Field(min_length=1, max_length=20)
    day_index: int = Field(ge=0, le=6)
    slot_index: int = Field(ge=0)
    span_length: int = Field(default=1, ge=1, le=8)
    subject_id: str = Field(min_length=1, max_length=36)
    teacher_ids: list[str] = Field(default_factory=list, max_length=6)
    room_id: str = Field(min_length=1, max_length=36)
    class_type: ClassType = ClassType.lecture
    lab_group_id: str | None = Field(default=None, min_length=1, max_length=36)
    recurrence: Recurrence = Field(default_factory=Recurrence)
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("section")
    @classmethod
    def normalize_section(cls, value: str) -> str:
        return _normalize_section(value)

    @field_validator("teacher_ids")
    @classmethod
    def normalize_teacher_ids(cls, value: list[str]) -> list[str]:
        return _normalize_teacher_ids(value)

    def to_proposal(self, slot_indices: list[int] | None = None) -> ProposedAssignment:
        return ProposedAssignment(
            program_id=self.program_id,
            semester=self.semester,
            section=self.section,
            academic_year_id=self.academic_year_id,
            day_index=self.day_index,
            slot_indices=slot_indices if slot_indices is not None else [self.slot_index],
            subject_id=self.subject_id,
            teacher_ids=self.teacher_ids,
            room_id=self.room_id,
            class_type=self.class_type,
            lab_group_id=self.lab_group_id,
            recurrence=self.recurrence,
            notes=self.notes,
        )


class MoveRequest(BaseModel):
    """Move and/or resize an existing class. Unset fields keep their current values."""

    day_index: int | None = Field(default=None, ge=0, le=6)
    slot_index: int | None = Field(default=None, ge=0)
    span_length: int | None = Field(default=None, ge=1, le=8)
    teacher_ids: list[str] | None = Field(default=None, max_length=6)
    room_id: str | None = Field(default=None, min_length=1, max_length=36)
    recurrence: Recurrence | None = None

    @field_validator("teacher_ids")
    @classmethod
    def normalize_teacher_ids(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return _normalize_teacher_ids(value)


class AssignmentOut(BaseModel):
    span_id: str
    slots: list[RoutineSlotRecord]


class ClearOut(BaseModel):
    span_id: str | None = None
    deactivated: int


class AvailabilityOut(BaseModel):
    day_index: int
    slot_index: int
    busy_teacher_ids: list[str] = Field(default_factory=list)
    busy_room_ids: list[str] = Field(default_factory=list)
    free_room_ids: list[str] = Field(default_factory=list)
