from __future__ import annotations

import uuid
from collections import defaultdict
from typing import Iterable, Mapping

from routinedesk.core.exceptions import RoutineValidationError, SpanIntegrityError, SpanInvalidError
from routinedesk.schemas.conflict import SpanDefect
from routinedesk.schemas.routine import ConflictScope, ProposedAssignment, RoutineSlotRecord
from routinedesk.schemas.teacher import TeacherOut
from routinedesk.services.conflict_checker import check_conflicts
from routinedesk.services.time_slot_catalog import TimeSlotCatalog


def resolve_span_periods(
    catalog: TimeSlotCatalog,
    day_index: int,
    start_slot_index: int,
    span_length: int,
) -> list[int]:
    """Slot indices covered by a span, in period order."""
    if span_length < 1:
        raise SpanInvalidError("Span length must be at least 1", reason=SpanInvalidError.INVALID_LENGTH)

    ordered = catalog.ordered(day_index)
    start = catalog.position(day_index, start_slot_index)
    if start is None:
        raise SpanInvalidError(
            f"Slot {start_slot_index} is not a configured period for this day",
            reason=SpanInvalidError.UNKNOWN_SLOT,
            periods=[start_slot_index],
        )

    teaching_positions = [position for position, entry in enumerate(ordered) if not entry.is_break]
    end = start + span_length - 1
    if not teaching_positions or end > teaching_positions[-1]:
        raise SpanInvalidError(
            f"A {span_length}-period class starting at {catalog.label(start_slot_index)} runs past the last period",
            reason=SpanInvalidError.EXCEEDS_DAY,
            periods=[entry.id for entry in ordered[start:end + 1]],
        )

    window = ordered[start:end + 1]
    breaks = [entry.id for entry in window if entry.is_break]
    if breaks:
        raise SpanInvalidError(
            "Requested periods cross a break",
            reason=SpanInvalidError.CROSSES_BREAK,
            periods=breaks,
        )
    return [entry.id for entry in window]


def plan_span(
    proposed: ProposedAssignment,
    span_length: int,
    *,
    catalog: TimeSlotCatalog,
    existing: Iterable[RoutineSlotRecord],
    scope: ConflictScope,
    teachers: Mapping[str, TeacherOut] | None = None,
    room_names: Mapping[str, str] | None = None,
    ignore_slot_ids: Iterable[str] = (),
    span_id: str | None = None,
) -> list[RoutineSlotRecord]:
    """Expands a proposal starting at its first slot into one record per period.

    Either every period is free and all members are returned, or the whole
    span is rejected with :class:`SpanInvalidError` listing every conflict.
    """
    if len(proposed.slot_indices) != 1:
        raise RoutineValidationError(
            "A span is planned from exactly one starting slot",
            details={"slot_indices": proposed.slot_indices},
        )
    periods = resolve_span_periods(catalog, proposed.day_index, proposed.slot_indices[0], span_length)
    expanded = proposed.model_copy(update={"slot_indices": periods})

    result = check_conflicts(
        expanded,
        existing,
        scope=scope,
        catalog=catalog,
        teachers=teachers,
        room_names=room_names,
        ignore_slot_ids=ignore_slot_ids,
    )
    if not result.is_valid:
        raise SpanInvalidError(
            f"{len(result.conflicts)} conflict(s) in periods {', '.join(str(p) for p in result.conflicting_periods)}",
            reason=SpanInvalidError.PERIOD_CONFLICT,
            periods=result.conflicting_periods,
            conflicts=result.conflicts,
        )

    span_id = span_id or str(uuid.uuid4())
    is_spanned = len(periods) > 1
    return [
        expanded.period(slot_index, span_id=span_id, span_position=position, is_spanned=is_spanned)
        for position, slot_index in enumerate(periods)
    ]


def _member_signature(slot: RoutineSlotRecord) -> tuple:
    return (
        slot.academic_year_id,
        slot.program_id,
        slot.semester,
        slot.section,
        slot.day_index,
        slot.subject_id,
        tuple(sorted(slot.teacher_ids)),
        slot.room_id,
        slot.class_type,
        slot.lab_group_id,
        slot.recurrence.type,
        slot.recurrence.pattern,
        tuple(slot.recurrence.weeks),
        slot.is_spanned,
    )


def _group_defects(span_id: str, members: list[RoutineSlotRecord], catalog: TimeSlotCatalog | None) -> list[SpanDefect]:
    defects: list[SpanDefect] = []
    active = [slot for slot in members if slot.is_active]
    inactive = [slot for slot in members if not slot.is_active]
    if active and inactive:
        defects.append(
            SpanDefect(
                span_id=span_id,
                kind="partial_clear",
                slot_ids=[slot.id for slot in inactive if slot.id],
                message=f"{len(inactive)} of {len(members)} span members are inactive while the rest are active",
            )
        )
    if not active:
        return defects

    active.sort(key=lambda slot: slot.span_position)
    slot_ids = [slot.id for slot in active if slot.id]
    if len(active) == 1:
        if active[0].is_spanned:
            defects.append(
                SpanDefect(
                    span_id=span_id,
                    kind="orphan_member",
                    slot_ids=slot_ids,
                    message="Spanned slot has no active siblings",
                )
            )
        return defects

    if len({_member_signature(slot) for slot in active}) > 1 or not all(slot.is_spanned for slot in active):
        defects.append(
            SpanDefect(
                span_id=span_id,
                kind="mismatched_members",
                slot_ids=slot_ids,
                message="Span members disagree on subject, teachers, room, class type, section or day",
            )
        )
    positions = [slot.span_position for slot in active]
    if positions != list(range(len(active))):
        defects.append(
            SpanDefect(
                span_id=span_id,
                kind="bad_positions",
                slot_ids=slot_ids,
                message=f"Span positions {positions} are not 0..{len(active) - 1}",
            )
        )
    indices = [slot.slot_index for slot in active]
    day_index = active[0].day_index
    if catalog is not None:
        consecutive = catalog.are_contiguous(day_index, indices)
    else:
        consecutive = indices == list(range(indices[0], indices[0] + len(indices)))
    if not consecutive:
        defects.append(
            SpanDefect(
                span_id=span_id,
                kind="non_consecutive",
                slot_ids=slot_ids,
                message=f"Span periods {indices} are not consecutive",
            )
        )
    return defects


def find_span_defects(
    slots: Iterable[RoutineSlotRecord],
    catalog: TimeSlotCatalog | None = None,
) -> list[SpanDefect]:
    groups: dict[str, list[RoutineSlotRecord]] = defaultdict(list)
    for slot in slots:
        if slot.span_id is not None:
            groups[slot.span_id].append(slot)
        elif slot.is_spanned and slot.is_active:
            groups[f"missing-span-{slot.id}"].append(slot)

    defects: list[SpanDefect] = []
    for span_id in sorted(groups):
        defects.extend(_group_defects(span_id, groups[span_id], catalog))
    return defects


def ensure_span_integrity(members: Iterable[RoutineSlotRecord], catalog: TimeSlotCatalog | None = None) -> None:
    defects = find_span_defects(members, catalog)
    if defects:
        raise SpanIntegrityError(
            f"Span integrity violated: {', '.join(sorted({defect.kind for defect in defects}))}",
            defects=defects,
        )
