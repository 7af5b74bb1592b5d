from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class ConflictType(str, Enum):
    teacher = "teacher"
    room = "room"
    section = "section"
    teacher_unavailable = "teacher_unavailable"


class ConflictDetail(BaseModel):
    type: ConflictType
    day_index: int
    slot_index: int
    conflicting_slot_id: str | None = None  # None for availability conflicts
    teacher_id: str | None = None
    room_id: str | None = None
    message: str


class ConflictResult(BaseModel):
    is_valid: bool
    conflicts: list[ConflictDetail] = Field(default_factory=list)

    @classmethod
    def from_conflicts(cls, conflicts: list[ConflictDetail]) -> "ConflictResult":
        return cls(is_valid=not conflicts, conflicts=conflicts)

    def of_type(self, conflict_type: ConflictType) -> list[ConflictDetail]:
        return [conflict for conflict in self.conflicts if conflict.type == conflict_type]

    @property
    def conflicting_periods(self) -> list[int]:
        # Conflicts arrive in period order; ids alone carry no order.
        return list(dict.fromkeys(conflict.slot_index for conflict in self.conflicts))


class SpanDefect(BaseModel):
    span_id: str
    kind: Literal["partial_clear", "mismatched_members", "bad_positions", "non_consecutive", "orphan_member"]
    slot_ids: list[str] = Field(default_factory=list)
    message: str
