from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from routinedesk.core.exceptions import (
    ResourceNotFoundError,
    RoutineValidationError,
    ScheduleBusyError,
    SpanInvalidError,
    TimeSlotConflictError,
)
from routinedesk.models.room import Room
from routinedesk.models.routine_slot import RoutineSlot
from routinedesk.models.schedule_lock import ScheduleLock
from routinedesk.models.teacher import Teacher
from routinedesk.models.time_slot import TimeSlotDefinition
from routinedesk.models.user import User
from routinedesk.schemas.conflict import ConflictResult, SpanDefect
from routinedesk.schemas.routine import (
    AssignmentOut,
    AssignRequest,
    AvailabilityOut,
    ConflictScope,
    MoveRequest,
    Recurrence,
    RoutineSlotRecord,
)
from routinedesk.schemas.teacher import TeacherOut
from routinedesk.schemas.time_slot import TimeSlotCreate, TimeSlotOut
from routinedesk.services.audit import log_activity
from routinedesk.services.conflict_checker import check_conflicts
from routinedesk.services.slot_matcher import recurrence_weeks_overlap, same_parity_track
from routinedesk.services.span_resolver import (
    ensure_span_integrity,
    find_span_defects,
    plan_span,
    resolve_span_periods,
)
from routinedesk.services.time_slot_catalog import TimeSlotCatalog

logger = logging.getLogger(__name__)


def lock_schedule_day(db: Session, academic_year_id: str, day_index: int) -> ScheduleLock:
    """Serializes read-check-write cycles touching one day of one academic year."""
    statement = (
        select(ScheduleLock)
        .where(ScheduleLock.academic_year_id == academic_year_id, ScheduleLock.day_index == day_index)
        .with_for_update()
    )
    lock = db.execute(statement).scalar_one_or_none()
    if lock is None:
        lock = ScheduleLock(academic_year_id=academic_year_id, day_index=day_index, version=0)
        db.add(lock)
        try:
            db.flush()
        except IntegrityError as exc:
            db.rollback()
            raise ScheduleBusyError(academic_year_id, day_index) from exc
    lock.version += 1
    return lock


def load_catalog(
    db: Session,
    *,
    program_id: str | None = None,
    semester: int | None = None,
    section: str | None = None,
) -> TimeSlotCatalog:
    definitions = db.execute(select(TimeSlotDefinition)).scalars()
    return TimeSlotCatalog.from_definitions(definitions, program_id=program_id, semester=semester, section=section)


def load_active_slots(db: Session, academic_year_id: str, day_index: int) -> list[RoutineSlotRecord]:
    rows = db.execute(
        select(RoutineSlot)
        .where(
            RoutineSlot.academic_year_id == academic_year_id,
            RoutineSlot.day_index == day_index,
            RoutineSlot.is_active.is_(True),
        )
        .order_by(RoutineSlot.slot_index)
    ).scalars()
    return [RoutineSlotRecord.from_model(row) for row in rows]


def load_teachers(db: Session, teacher_ids: list[str]) -> dict[str, TeacherOut]:
    if not teacher_ids:
        return {}
    rows = db.execute(select(Teacher).where(Teacher.id.in_(teacher_ids))).scalars()
    teachers = {row.id: TeacherOut.model_validate(row) for row in rows if row.is_active}
    unknown = [teacher_id for teacher_id in teacher_ids if teacher_id not in teachers]
    if unknown:
        raise RoutineValidationError("Unknown or inactive teacher id(s)", details={"teacher_ids": unknown})
    return teachers


def load_room_names(db: Session, room_id: str) -> dict[str, str]:
    rooms = {row.id: row.name for row in db.execute(select(Room)).scalars()}
    if room_id not in rooms:
        raise RoutineValidationError("Unknown room id", details={"room_id": room_id})
    return rooms


def _scope(academic_year_id: str, teaching_days: list[int]) -> ConflictScope:
    return ConflictScope(academic_year_id=academic_year_id, teaching_days=teaching_days)


def _catalog_for(db: Session, request: AssignRequest) -> TimeSlotCatalog:
    return load_catalog(db, program_id=request.program_id, semester=request.semester, section=request.section)


def _span_rows(db: Session, span_id: str) -> list[RoutineSlot]:
    return list(
        db.execute(
            select(RoutineSlot).where(RoutineSlot.span_id == span_id).order_by(RoutineSlot.span_position)
        ).scalars()
    )


def _verify_span(db: Session, span_id: str, catalog: TimeSlotCatalog) -> None:
    ensure_span_integrity([RoutineSlotRecord.from_model(row) for row in _span_rows(db, span_id)], catalog)


def _deactivate(rows: list[RoutineSlot], actor: User | None) -> int:
    now = datetime.now(timezone.utc)
    count = 0
    for row in rows:
        if not row.is_active:
            continue
        row.is_active = False
        row.deactivated_at = now
        row.deactivated_by_id = actor.id if actor is not None else None
        count += 1
    return count


def _commit_members(db: Session, members: list[RoutineSlotRecord], actor: User | None) -> list[RoutineSlot]:
    rows = []
    for member in members:
        row = RoutineSlot(**member.to_model_fields(), created_by_id=actor.id if actor is not None else None)
        db.add(row)
        rows.append(row)
    db.flush()
    return rows


def check_assignment(db: Session, request: AssignRequest, *, teaching_days: list[int]) -> ConflictResult:
    """Dry run of :func:`assign_class`; nothing is locked or written."""
    catalog = _catalog_for(db, request)
    periods = resolve_span_periods(catalog, request.day_index, request.slot_index, request.span_length)
    teachers = load_teachers(db, request.teacher_ids)
    room_names = load_room_names(db, request.room_id)
    return check_conflicts(
        request.to_proposal(periods),
        load_active_slots(db, request.academic_year_id, request.day_index),
        scope=_scope(request.academic_year_id, teaching_days),
        catalog=catalog,
        teachers=teachers,
        room_names=room_names,
    )


def assign_class(
    db: Session,
    request: AssignRequest,
    *,
    teaching_days: list[int],
    actor: User | None = None,
) -> AssignmentOut:
    """Checks and commits a class over ``span_length`` periods as one unit.

    Raises :class:`SpanInvalidError` when any period conflicts; nothing is
    written in that case.
    """
    scope = _scope(request.academic_year_id, teaching_days)
    try:
        catalog = _catalog_for(db, request)
        lock_schedule_day(db, request.academic_year_id, request.day_index)
        members = plan_span(
            request.to_proposal(),
            request.span_length,
            catalog=catalog,
            existing=load_active_slots(db, request.academic_year_id, request.day_index),
            scope=scope,
            teachers=load_teachers(db, request.teacher_ids),
            room_names=load_room_names(db, request.room_id),
        )
        rows = _commit_members(db, members, actor)
        span_id = members[0].span_id
        _verify_span(db, span_id, catalog)
        log_activity(
            db,
            actor=actor,
            action="routine.assign",
            entity_type="span",
            entity_id=span_id,
            academic_year_id=request.academic_year_id,
            day_index=request.day_index,
            details={
                "slot_indices": [member.slot_index for member in members],
                "subject_id": request.subject_id,
                "teacher_ids": request.teacher_ids,
                "room_id": request.room_id,
            },
        )
        db.commit()
    except SpanInvalidError as exc:
        db.rollback()
        logger.warning(
            "Rejected assignment of subject %s on day %d slot %d: %s",
            request.subject_id,
            request.day_index,
            request.slot_index,
            exc.message,
        )
        raise
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Assigned subject %s to %s/%s/%s on day %d slots %s (span %s)",
        request.subject_id,
        request.program_id,
        request.semester,
        request.section,
        request.day_index,
        [member.slot_index for member in members],
        span_id,
    )
    return AssignmentOut(span_id=span_id, slots=[RoutineSlotRecord.from_model(row) for row in rows])


def _get_slot(db: Session, slot_id: str) -> RoutineSlot:
    row = db.get(RoutineSlot, slot_id)
    if row is None:
        raise ResourceNotFoundError("Routine slot", slot_id)
    return row


def _active_members(db: Session, row: RoutineSlot) -> list[RoutineSlot]:
    if row.span_id is None:
        return [row]
    return [member for member in _span_rows(db, row.span_id) if member.is_active]


def move_class(
    db: Session,
    slot_id: str,
    changes: MoveRequest,
    *,
    teaching_days: list[int],
    actor: User | None = None,
) -> AssignmentOut:
    """Moves or resizes the class that owns ``slot_id``.

    The class's own periods are ignored while checking the new position. The
    old members are deactivated and the new ones committed in one transaction.
    """
    row = _get_slot(db, slot_id)
    if not row.is_active:
        raise RoutineValidationError("Cannot move a cleared slot", details={"slot_id": slot_id})
    old_members = _active_members(db, row)
    first = old_members[0]
    request = AssignRequest(
        academic_year_id=first.academic_year_id,
        program_id=first.program_id,
        semester=first.semester,
        section=first.section,
        day_index=changes.day_index if changes.day_index is not None else first.day_index,
        slot_index=changes.slot_index if changes.slot_index is not None else first.slot_index,
        span_length=changes.span_length or len(old_members),
        subject_id=first.subject_id,
        teacher_ids=changes.teacher_ids if changes.teacher_ids is not None else list(first.teacher_ids),
        room_id=changes.room_id or first.room_id,
        class_type=first.class_type,
        lab_group_id=first.lab_group_id,
        recurrence=changes.recurrence or RoutineSlotRecord.from_model(first).recurrence,
        notes=first.notes,
    )
    scope = _scope(request.academic_year_id, teaching_days)
    old_span_id = first.span_id
    try:
        catalog = _catalog_for(db, request)
        for day_index in sorted({first.day_index, request.day_index}):
            lock_schedule_day(db, request.academic_year_id, day_index)
        members = plan_span(
            request.to_proposal(),
            request.span_length,
            catalog=catalog,
            existing=load_active_slots(db, request.academic_year_id, request.day_index),
            scope=scope,
            teachers=load_teachers(db, request.teacher_ids),
            room_names=load_room_names(db, request.room_id),
            ignore_slot_ids=[member.id for member in old_members],
        )
        _deactivate(old_members, actor)
        rows = _commit_members(db, members, actor)
        span_id = members[0].span_id
        _verify_span(db, span_id, catalog)
        if old_span_id is not None:
            _verify_span(db, old_span_id, catalog)
        if first.day_index != request.day_index:
            log_activity(
                db,
                actor=actor,
                action="routine.clear",
                entity_type="span",
                entity_id=old_span_id,
                academic_year_id=first.academic_year_id,
                day_index=first.day_index,
                details={
                    "slot_ids": [member.id for member in old_members],
                    "deactivated": len(old_members),
                    "moved_to_span_id": span_id,
                    "moved_to_day_index": request.day_index,
                },
            )
        log_activity(
            db,
            actor=actor,
            action="routine.move",
            entity_type="span",
            entity_id=span_id,
            academic_year_id=request.academic_year_id,
            day_index=request.day_index,
            details={
                "previous_span_id": old_span_id,
                "previous_slot_ids": [member.id for member in old_members],
                "previous_day_index": first.day_index,
                "slot_indices": [member.slot_index for member in members],
            },
        )
        db.commit()
    except SpanInvalidError as exc:
        db.rollback()
        logger.warning("Rejected move of slot %s: %s", slot_id, exc.message)
        raise
    except Exception:
        db.rollback()
        raise

    logger.info("Moved span %s to span %s on day %d", old_span_id, span_id, request.day_index)
    return AssignmentOut(span_id=span_id, slots=[RoutineSlotRecord.from_model(row) for row in rows])


def clear_span_group(db: Session, span_id: str, *, actor: User | None = None) -> int:
    """Deactivates every member of a span. Returns how many were still active."""
    rows = _span_rows(db, span_id)
    if not rows:
        raise ResourceNotFoundError("Span group", span_id)
    first = rows[0]
    try:
        lock_schedule_day(db, first.academic_year_id, first.day_index)
        deactivated = _deactivate(rows, actor)
        db.flush()
        catalog = load_catalog(db, program_id=first.program_id, semester=first.semester, section=first.section)
        _verify_span(db, span_id, catalog)
        if deactivated:
            log_activity(
                db,
                actor=actor,
                action="routine.clear",
                entity_type="span",
                entity_id=span_id,
                academic_year_id=first.academic_year_id,
                day_index=first.day_index,
                details={"slot_ids": [row.id for row in rows], "deactivated": deactivated},
            )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Cleared span %s (%d slot(s) deactivated)", span_id, deactivated)
    return deactivated


def clear_slot(db: Session, slot_id: str, *, actor: User | None = None) -> tuple[str | None, int]:
    """Clears one slot. A member of a span clears the whole span."""
    row = _get_slot(db, slot_id)
    if row.span_id is not None:
        return row.span_id, clear_span_group(db, row.span_id, actor=actor)
    if not row.is_active:
        return None, 0
    try:
        lock_schedule_day(db, row.academic_year_id, row.day_index)
        deactivated = _deactivate([row], actor)
        log_activity(
            db,
            actor=actor,
            action="routine.clear",
            entity_type="slot",
            entity_id=row.id,
            academic_year_id=row.academic_year_id,
            day_index=row.day_index,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Cleared slot %s", slot_id)
    return None, deactivated


def list_slots(
    db: Session,
    *,
    academic_year_id: str,
    teacher_id: str | None = None,
    room_id: str | None = None,
    program_id: str | None = None,
    semester: int | None = None,
    section: str | None = None,
    include_inactive: bool = False,
) -> list[RoutineSlotRecord]:
    statement = select(RoutineSlot).where(RoutineSlot.academic_year_id == academic_year_id)
    if room_id is not None:
        statement = statement.where(RoutineSlot.room_id == room_id)
    if program_id is not None:
        statement = statement.where(RoutineSlot.program_id == program_id)
    if semester is not None:
        statement = statement.where(RoutineSlot.semester == semester)
    if section is not None:
        statement = statement.where(RoutineSlot.section == section.strip().upper())
    if not include_inactive:
        statement = statement.where(RoutineSlot.is_active.is_(True))
    statement = statement.order_by(RoutineSlot.day_index, RoutineSlot.slot_index, RoutineSlot.lab_group_id)
    records = [RoutineSlotRecord.from_model(row) for row in db.execute(statement).scalars()]
    if teacher_id is not None:
        # teacher_ids is a JSON column; membership is checked here to stay portable across databases.
        records = [record for record in records if teacher_id in record.teacher_ids]
    return records


def availability(
    db: Session,
    *,
    academic_year_id: str,
    day_index: int,
    slot_index: int,
    semester: int,
    recurrence: Recurrence | None = None,
) -> AvailabilityOut:
    """Teachers and rooms already taken at a period for the given semester's track."""
    recurrence = recurrence or Recurrence()
    busy = [
        slot
        for slot in load_active_slots(db, academic_year_id, day_index)
        if slot.slot_index == slot_index
        and same_parity_track(slot.semester, semester)
        and recurrence_weeks_overlap(slot.recurrence, recurrence)
    ]
    busy_teachers = sorted({teacher_id for slot in busy for teacher_id in slot.teacher_ids})
    busy_rooms = sorted({slot.room_id for slot in busy})
    all_rooms = [row.id for row in db.execute(select(Room).order_by(Room.name)).scalars()]
    return AvailabilityOut(
        day_index=day_index,
        slot_index=slot_index,
        busy_teacher_ids=busy_teachers,
        busy_room_ids=busy_rooms,
        free_room_ids=[room_id for room_id in all_rooms if room_id not in busy_rooms],
    )


def _group_by_context(rows) -> dict[tuple, list[RoutineSlotRecord]]:
    by_context: dict[tuple, list[RoutineSlotRecord]] = defaultdict(list)
    for row in rows:
        by_context[(row.program_id, row.semester, row.section)].append(RoutineSlotRecord.from_model(row))
    return by_context


def _context_catalog(definitions, context: tuple) -> TimeSlotCatalog:
    program_id, semester, section = context
    return TimeSlotCatalog.from_definitions(definitions, program_id=program_id, semester=semester, section=section)


def reconcile_spans(db: Session, academic_year_id: str) -> list[SpanDefect]:
    """Reports span integrity defects for an academic year. Never repairs them."""
    rows = db.execute(
        select(RoutineSlot).where(
            RoutineSlot.academic_year_id == academic_year_id,
            (RoutineSlot.span_id.is_not(None)) | (RoutineSlot.is_spanned.is_(True)),
        )
    ).scalars()
    definitions = list(db.execute(select(TimeSlotDefinition)).scalars())
    defects: list[SpanDefect] = []
    for context, records in _group_by_context(rows).items():
        defects.extend(find_span_defects(records, _context_catalog(definitions, context)))

    for defect in defects:
        logger.error("Span integrity defect %s in span %s: %s", defect.kind, defect.span_id, defect.message)
    return defects


def catalog_change_defects(db: Session, candidate: TimeSlotOut) -> list[SpanDefect]:
    """Span defects that adding ``candidate`` to the period catalog would introduce.

    Only active spans of the contexts the candidate applies to can change;
    defects that already exist without the candidate are not reported.
    """
    rows = db.execute(
        select(RoutineSlot).where(RoutineSlot.is_active.is_(True), RoutineSlot.is_spanned.is_(True))
    ).scalars()
    definitions = [TimeSlotOut.model_validate(row) for row in db.execute(select(TimeSlotDefinition)).scalars()]
    introduced: list[SpanDefect] = []
    for context, records in _group_by_context(rows).items():
        after_catalog = _context_catalog([*definitions, candidate], context)
        if after_catalog.get(candidate.id) is None:
            continue
        before = find_span_defects(records, _context_catalog(definitions, context))
        known = {(defect.span_id, defect.kind) for defect in before}
        introduced.extend(
            defect
            for defect in find_span_defects(records, after_catalog)
            if (defect.span_id, defect.kind) not in known
        )
    return introduced


def create_time_slot(db: Session, payload: TimeSlotCreate, *, actor: User | None = None) -> TimeSlotDefinition:
    """Adds a period definition unless it would split or cut into a committed span."""
    data = payload.model_dump()
    if data["section"]:
        data["section"] = data["section"].strip().upper()
    candidate = TimeSlotOut(**data)

    defects = catalog_change_defects(db, candidate)
    if defects:
        logger.warning(
            "Rejected time slot %d (%s): would break %d span(s)",
            candidate.id,
            candidate.label,
            len({defect.span_id for defect in defects}),
        )
        raise TimeSlotConflictError(
            f"Time slot {candidate.id} would fall inside {len({defect.span_id for defect in defects})} "
            "committed multi-period class(es)",
            defects=defects,
        )

    definition = TimeSlotDefinition(**data)
    db.add(definition)
    log_activity(
        db,
        actor=actor,
        action="time_slot.create",
        entity_type="time_slot",
        entity_id=str(candidate.id),
        details={"label": candidate.label, "sort_order": candidate.sort_order, "is_break": candidate.is_break},
    )
    db.commit()
    db.refresh(definition)
    logger.info("Added time slot %d (%s) at sort order %d", definition.id, definition.label, definition.sort_order)
    return definition
