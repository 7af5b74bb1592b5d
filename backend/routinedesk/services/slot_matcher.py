"""Decides when two slots sitting on the same day and period do not collide.

Every conflict check in the engine goes through :func:`classify_pair`. The
rules are evaluated top to bottom and the first one that matches wins:

==========================================================  =====================
Condition                                                   Exemption
==========================================================  =====================
Semesters belong to different parity tracks (odd vs even)   ``DIFFERENT_TRACK``
Recurrences never meet in the same week                     ``DISJOINT_WEEKS``
Same subject and section, different non-null lab groups     ``PARALLEL_LAB_GROUP``
Anything else                                               ``NONE``
==========================================================  =====================

``DIFFERENT_TRACK`` and ``DISJOINT_WEEKS`` clear every conflict dimension.
``PARALLEL_LAB_GROUP`` only clears the section dimension: each lab group still
needs its own teacher and room.
"""

from __future__ import annotations

from enum import Enum

from routinedesk.models.routine_slot import RecurrenceType
from routinedesk.schemas.conflict import ConflictType
from routinedesk.schemas.routine import MAX_TEACHING_WEEK, Recurrence, RoutineSlotRecord, semester_parity

ALL_WEEKS = frozenset(range(1, MAX_TEACHING_WEEK + 1))


class PairExemption(str, Enum):
    DIFFERENT_TRACK = "different_track"
    DISJOINT_WEEKS = "disjoint_weeks"
    PARALLEL_LAB_GROUP = "parallel_lab_group"
    NONE = "none"

    def exempts(self, dimension: ConflictType) -> bool:
        if self in (PairExemption.DIFFERENT_TRACK, PairExemption.DISJOINT_WEEKS):
            return True
        if self == PairExemption.PARALLEL_LAB_GROUP:
            return dimension == ConflictType.section
        return False


def same_parity_track(semester_a: int, semester_b: int) -> bool:
    return semester_parity(semester_a) == semester_parity(semester_b)


def recurrence_weeks(recurrence: Recurrence) -> frozenset[int]:
    if recurrence.type == RecurrenceType.weekly:
        return ALL_WEEKS
    if recurrence.type == RecurrenceType.custom:
        return frozenset(recurrence.weeks)
    return frozenset(week for week in ALL_WEEKS if recurrence.applies_to_week(week))


def recurrence_weeks_overlap(first: Recurrence, second: Recurrence) -> bool:
    if first.type == RecurrenceType.alternate and second.type == RecurrenceType.alternate:
        return first.pattern == second.pattern
    return bool(recurrence_weeks(first) & recurrence_weeks(second))


def same_section(first: RoutineSlotRecord, second: RoutineSlotRecord) -> bool:
    return (
        first.program_id == second.program_id
        and first.semester == second.semester
        and first.section == second.section
    )


def is_parallel_lab_group(first: RoutineSlotRecord, second: RoutineSlotRecord) -> bool:
    return (
        first.subject_id == second.subject_id
        and same_section(first, second)
        and first.lab_group_id is not None
        and second.lab_group_id is not None
        and first.lab_group_id != second.lab_group_id
    )


_DECISION_TABLE = (
    (lambda a, b: not same_parity_track(a.semester, b.semester), PairExemption.DIFFERENT_TRACK),
    (lambda a, b: not recurrence_weeks_overlap(a.recurrence, b.recurrence), PairExemption.DISJOINT_WEEKS),
    (is_parallel_lab_group, PairExemption.PARALLEL_LAB_GROUP),
)


def classify_pair(first: RoutineSlotRecord, second: RoutineSlotRecord) -> PairExemption:
    for condition, exemption in _DECISION_TABLE:
        if condition(first, second):
            return exemption
    return PairExemption.NONE
