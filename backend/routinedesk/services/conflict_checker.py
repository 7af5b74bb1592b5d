from __future__ import annotations

from typing import Iterable, Mapping

from routinedesk.core.exceptions import RoutineValidationError
from routinedesk.schemas.conflict import ConflictDetail, ConflictResult, ConflictType
from routinedesk.schemas.routine import DAY_NAMES, ConflictScope, ProposedAssignment, RoutineSlotRecord
from routinedesk.schemas.teacher import TeacherOut
from routinedesk.services.slot_matcher import classify_pair, same_section
from routinedesk.services.time_slot_catalog import TimeSlotCatalog

_TYPE_ORDER = {
    ConflictType.section: 0,
    ConflictType.teacher: 1,
    ConflictType.room: 2,
    ConflictType.teacher_unavailable: 3,
}


def validate_proposal(
    proposed: ProposedAssignment,
    scope: ConflictScope,
    catalog: TimeSlotCatalog | None = None,
) -> None:
    """Rejects proposals that cannot be evaluated at all."""
    if not proposed.teacher_ids:
        raise RoutineValidationError("At least one teacher is required")
    if proposed.academic_year_id != scope.academic_year_id:
        raise RoutineValidationError(
            "Proposal belongs to a different academic year than the conflict scope",
            details={"academic_year_id": proposed.academic_year_id, "scope": scope.academic_year_id},
        )
    if proposed.day_index not in scope.teaching_days:
        raise RoutineValidationError(
            f"Day index {proposed.day_index} is not a teaching day",
            details={"day_index": proposed.day_index, "teaching_days": scope.teaching_days},
        )
    if not proposed.slot_indices:
        raise RoutineValidationError("At least one slot index is required")
    if len(set(proposed.slot_indices)) != len(proposed.slot_indices):
        raise RoutineValidationError("Slot indices must not repeat", details={"slot_indices": proposed.slot_indices})
    if catalog is None:
        return

    unknown = [index for index in proposed.slot_indices if catalog.position(proposed.day_index, index) is None]
    if unknown:
        raise RoutineValidationError(
            "Slot index is not a configured period for this day",
            details={"slot_indices": unknown, "day_index": proposed.day_index},
        )
    breaks = [index for index in proposed.slot_indices if catalog.get(index).is_break]
    if breaks:
        raise RoutineValidationError("Classes cannot be assigned to a break", details={"slot_indices": breaks})
    ordered = catalog.sort_indices(proposed.day_index, proposed.slot_indices)
    if not catalog.are_contiguous(proposed.day_index, ordered):
        raise RoutineValidationError(
            "Slot indices must be consecutive periods",
            details={"slot_indices": proposed.slot_indices},
        )


def _teacher_label(teacher_id: str, teachers: Mapping[str, TeacherOut]) -> str:
    teacher = teachers.get(teacher_id)
    return teacher.short_name if teacher is not None else teacher_id


def _where(slot: RoutineSlotRecord) -> str:
    return f"semester {slot.semester} section {slot.section}"


def pair_conflicts(
    proposed: RoutineSlotRecord,
    existing: RoutineSlotRecord,
    *,
    teachers: Mapping[str, TeacherOut] | None = None,
    room_names: Mapping[str, str] | None = None,
) -> list[ConflictDetail]:
    """Conflicts raised by ``existing`` against one period of a proposal."""
    if proposed.day_index != existing.day_index or proposed.slot_index != existing.slot_index:
        return []
    teachers = teachers or {}
    room_names = room_names or {}
    exemption = classify_pair(proposed, existing)
    day_name = DAY_NAMES[proposed.day_index]
    conflicts: list[ConflictDetail] = []

    if same_section(proposed, existing) and not exemption.exempts(ConflictType.section):
        conflicts.append(
            ConflictDetail(
                type=ConflictType.section,
                day_index=proposed.day_index,
                slot_index=proposed.slot_index,
                conflicting_slot_id=existing.id,
                message=f"Section {existing.section} of semester {existing.semester} already has a class on "
                f"{day_name} at slot {existing.slot_index}",
            )
        )

    if not exemption.exempts(ConflictType.teacher):
        shared = [teacher_id for teacher_id in proposed.teacher_ids if teacher_id in existing.teacher_ids]
        for teacher_id in shared:
            conflicts.append(
                ConflictDetail(
                    type=ConflictType.teacher,
                    day_index=proposed.day_index,
                    slot_index=proposed.slot_index,
                    conflicting_slot_id=existing.id,
                    teacher_id=teacher_id,
                    message=f"Teacher {_teacher_label(teacher_id, teachers)} already teaches {_where(existing)} on "
                    f"{day_name} at slot {existing.slot_index}",
                )
            )

    if proposed.room_id == existing.room_id and not exemption.exempts(ConflictType.room):
        room_name = room_names.get(existing.room_id, existing.room_id)
        conflicts.append(
            ConflictDetail(
                type=ConflictType.room,
                day_index=proposed.day_index,
                slot_index=proposed.slot_index,
                conflicting_slot_id=existing.id,
                room_id=existing.room_id,
                message=f"Room {room_name} is already booked by {_where(existing)} on {day_name} "
                f"at slot {existing.slot_index}",
            )
        )
    return conflicts


def slots_conflict(first: RoutineSlotRecord, second: RoutineSlotRecord) -> set[ConflictType]:
    """Conflict dimensions shared by two slots. Symmetric in its arguments."""
    return {conflict.type for conflict in pair_conflicts(first, second)}


def availability_conflicts(period: RoutineSlotRecord, teachers: Mapping[str, TeacherOut]) -> list[ConflictDetail]:
    conflicts: list[ConflictDetail] = []
    day_name = DAY_NAMES[period.day_index]
    for teacher_id in period.teacher_ids:
        teacher = teachers.get(teacher_id)
        if teacher is None:
            continue
        if not teacher.is_available(period.day_index):
            message = f"Teacher {teacher.short_name} is not available on {day_name}"
        else:
            reason = teacher.blocked_reason(period.day_index, period.slot_index)
            if reason is None:
                continue
            message = f"Teacher {teacher.short_name} is unavailable at slot {period.slot_index}: {reason}"
        conflicts.append(
            ConflictDetail(
                type=ConflictType.teacher_unavailable,
                day_index=period.day_index,
                slot_index=period.slot_index,
                teacher_id=teacher_id,
                message=message,
            )
        )
    return conflicts


def check_conflicts(
    proposed: ProposedAssignment,
    existing: Iterable[RoutineSlotRecord],
    *,
    scope: ConflictScope,
    catalog: TimeSlotCatalog | None = None,
    teachers: Mapping[str, TeacherOut] | None = None,
    room_names: Mapping[str, str] | None = None,
    ignore_slot_ids: Iterable[str] = (),
) -> ConflictResult:
    """Evaluates a proposal against the active schedule without mutating anything.

    Every conflict is collected so the caller can show them all at once. The
    result only holds for the snapshot passed in ``existing``; callers must
    repeat the check inside the transaction that writes the slots.
    """
    validate_proposal(proposed, scope, catalog)
    teachers = teachers or {}
    ignored = set(ignore_slot_ids)
    wanted = set(proposed.slot_indices)

    candidates = [
        slot
        for slot in existing
        if slot.is_active
        and slot.academic_year_id == scope.academic_year_id
        and slot.day_index == proposed.day_index
        and slot.slot_index in wanted
        and slot.id not in ignored
    ]

    conflicts: list[ConflictDetail] = []
    for slot_index in proposed.slot_indices:
        period = proposed.period(slot_index)
        for candidate in candidates:
            conflicts.extend(pair_conflicts(period, candidate, teachers=teachers, room_names=room_names))
        conflicts.extend(availability_conflicts(period, teachers))

    period_order = {slot_index: order for order, slot_index in enumerate(proposed.slot_indices)}
    if catalog is not None:
        period_order = {
            slot_index: catalog.position(proposed.day_index, slot_index) for slot_index in proposed.slot_indices
        }
    conflicts.sort(
        key=lambda conflict: (
            period_order[conflict.slot_index],
            _TYPE_ORDER[conflict.type],
            conflict.conflicting_slot_id or "",
            conflict.teacher_id or "",
        )
    )
    return ConflictResult.from_conflicts(conflicts)
