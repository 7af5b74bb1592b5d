import pytest

from conftest import ACADEMIC_YEAR, make_proposal, make_slot
from routinedesk.core.exceptions import RoutineValidationError
from routinedesk.schemas.conflict import ConflictType
from routinedesk.schemas.routine import ConflictScope
from routinedesk.schemas.teacher import TeacherOut
from routinedesk.schemas.time_slot import TimeSlotOut
from routinedesk.services.conflict_checker import check_conflicts, slots_conflict
from routinedesk.services.time_slot_catalog import TimeSlotCatalog


def test_teacher_double_booking_is_reported_for_another_section(scope):
    existing = [make_slot(section="CD", room_id="r-9")]
    result = check_conflicts(make_proposal(), existing, scope=scope)

    assert not result.is_valid
    assert [conflict.type for conflict in result.conflicts] == [ConflictType.teacher]
    conflict = result.conflicts[0]
    assert conflict.teacher_id == "t-1"
    assert conflict.conflicting_slot_id == "slot-1"
    assert conflict.message == "Teacher t-1 already teaches semester 5 section CD on Monday at slot 3"


def test_teacher_short_name_is_used_in_messages(scope):
    teachers = {"t-1": TeacherOut(id="t-1", name="Ram Sharma", short_name="rs")}
    existing = [make_slot(section="CD", room_id="r-9")]
    result = check_conflicts(make_proposal(), existing, scope=scope, teachers=teachers)

    assert result.conflicts[0].message.startswith("Teacher RS already teaches")


def test_room_double_booking(scope):
    existing = [make_slot(section="CD", teacher_ids=["t-2"])]
    result = check_conflicts(make_proposal(), existing, scope=scope, room_names={"r-1": "Block A 101"})

    assert [conflict.type for conflict in result.conflicts] == [ConflictType.room]
    assert result.conflicts[0].room_id == "r-1"
    assert result.conflicts[0].message.startswith("Room Block A 101 is already booked by semester 5 section CD")


def test_section_double_booking(scope):
    existing = [make_slot(teacher_ids=["t-2"], room_id="r-2", subject_id="sub-os")]
    result = check_conflicts(make_proposal(), existing, scope=scope)

    assert [conflict.type for conflict in result.conflicts] == [ConflictType.section]
    assert result.conflicts[0].message == "Section AB of semester 5 already has a class on Monday at slot 3"


def test_all_dimensions_are_reported_together(scope):
    result = check_conflicts(make_proposal(), [make_slot()], scope=scope)

    assert [conflict.type for conflict in result.conflicts] == [
        ConflictType.section,
        ConflictType.teacher,
        ConflictType.room,
    ]


def test_every_shared_co_teacher_is_reported(scope):
    existing = [make_slot(section="CD", room_id="r-9", teacher_ids=["t-1", "t-2", "t-3"])]
    proposal = make_proposal(teacher_ids=["t-3", "t-1", "t-4"])
    result = check_conflicts(proposal, existing, scope=scope)

    assert sorted(conflict.teacher_id for conflict in result.of_type(ConflictType.teacher)) == ["t-1", "t-3"]


def test_different_semester_parity_never_conflicts(scope):
    # Odd and even semesters run in different halves of the year.
    existing = [make_slot(semester=4)]
    result = check_conflicts(make_proposal(), existing, scope=scope)

    assert result.is_valid
    assert result.conflicts == []


def test_opposite_alternate_week_lab_shares_teacher_and_room(scope):
    existing = [make_slot(class_type="practical", recurrence={"type": "alternate", "pattern": "odd"})]
    proposal = make_proposal(class_type="practical", recurrence={"type": "alternate", "pattern": "even"})

    assert check_conflicts(proposal, existing, scope=scope).is_valid


def test_parallel_lab_groups_only_skip_the_section_check(scope):
    existing = [make_slot(class_type="practical", lab_group_id="A", room_id="lab-1", teacher_ids=["t-1"])]
    proposal = make_proposal(class_type="practical", lab_group_id="B", room_id="lab-2", teacher_ids=["t-2"])
    assert check_conflicts(proposal, existing, scope=scope).is_valid

    same_room = make_proposal(class_type="practical", lab_group_id="B", room_id="lab-1", teacher_ids=["t-2"])
    result = check_conflicts(same_room, existing, scope=scope)
    assert [conflict.type for conflict in result.conflicts] == [ConflictType.room]


def test_inactive_other_year_and_other_day_slots_are_ignored(scope):
    existing = [
        make_slot(id="inactive", is_active=False),
        make_slot(id="old-year", academic_year_id="ay-2080"),
        make_slot(id="tuesday", day_index=2),
        make_slot(id="other-period", slot_index=4),
    ]
    assert check_conflicts(make_proposal(), existing, scope=scope).is_valid


def test_ignored_slot_ids_are_skipped(scope):
    result = check_conflicts(make_proposal(), [make_slot()], scope=scope, ignore_slot_ids=["slot-1"])
    assert result.is_valid


def test_scenario_teacher_clash_on_sunday_period_four():
    scope = ConflictScope(academic_year_id=ACADEMIC_YEAR)
    existing = [make_slot(id="existing", day_index=0, slot_index=3, teacher_ids=["T1"], section="A")]
    proposal = make_proposal(day_index=0, slot_indices=[3], teacher_ids=["T1"], section="B", room_id="r-2")

    result = check_conflicts(proposal, existing, scope=scope)

    assert not result.is_valid
    assert len(result.conflicts) == 1
    assert result.conflicts[0].type == ConflictType.teacher
    assert result.conflicts[0].conflicting_slot_id == "existing"


def test_check_is_symmetric():
    pairs = [
        (make_slot(id="a"), make_slot(id="b", section="CD")),
        (make_slot(id="a"), make_slot(id="b", teacher_ids=["t-2"])),
        (make_slot(id="a", lab_group_id="A"), make_slot(id="b", lab_group_id="B", room_id="r-2")),
        (make_slot(id="a", semester=3), make_slot(id="b", semester=6)),
    ]
    for first, second in pairs:
        assert slots_conflict(first, second) == slots_conflict(second, first)


def test_multi_period_proposal_checks_each_period(scope, catalog):
    existing = [
        make_slot(id="p5", slot_index=4, section="CD", room_id="r-9"),
        make_slot(id="p6", slot_index=5, section="EF", teacher_ids=["t-8"]),
    ]
    proposal = make_proposal(slot_indices=[3, 4, 5])
    result = check_conflicts(proposal, existing, scope=scope, catalog=catalog)

    assert result.conflicting_periods == [4, 5]
    assert [(conflict.slot_index, conflict.type) for conflict in result.conflicts] == [
        (4, ConflictType.teacher),
        (5, ConflictType.room),
    ]


def test_check_does_not_mutate_existing_slots(scope):
    existing = [make_slot()]
    before = [slot.model_dump() for slot in existing]
    check_conflicts(make_proposal(), existing, scope=scope)
    assert [slot.model_dump() for slot in existing] == before


def test_unavailable_teacher_is_reported(scope):
    teachers = {
        "t-1": TeacherOut(
            id="t-1",
            name="Sita Karki",
            short_name="SK",
            unavailable_slots=[{"day_index": 1, "slot_index": 3, "reason": "Faculty meeting"}],
        )
    }
    result = check_conflicts(make_proposal(), [], scope=scope, teachers=teachers)

    assert [conflict.type for conflict in result.conflicts] == [ConflictType.teacher_unavailable]
    assert result.conflicts[0].conflicting_slot_id is None
    assert result.conflicts[0].message == "Teacher SK is unavailable at slot 3: Faculty meeting"


def test_teacher_outside_available_days_is_reported(scope):
    teachers = {"t-1": TeacherOut(id="t-1", name="Sita Karki", short_name="SK", available_days=[2, 3])}
    result = check_conflicts(make_proposal(), [], scope=scope, teachers=teachers)

    assert result.conflicts[0].message == "Teacher SK is not available on Monday"


@pytest.mark.parametrize(
    "overrides",
    [
        {"teacher_ids": []},
        {"academic_year_id": "ay-2080"},
        {"day_index": 6},
        {"slot_indices": []},
        {"slot_indices": [3, 3]},
    ],
)
def test_malformed_proposals_are_rejected(scope, overrides):
    with pytest.raises(RoutineValidationError):
        check_conflicts(make_proposal(**overrides), [], scope=scope)


@pytest.mark.parametrize("slot_indices", [[42], [7], [2, 3], [3, 5]])
def test_catalog_rejects_unknown_break_and_gapped_periods(scope, catalog, slot_indices):
    with pytest.raises(RoutineValidationError):
        check_conflicts(make_proposal(slot_indices=slot_indices), [], scope=scope, catalog=catalog)


def test_scenario_parity_tracks_on_monday_period_four(scope):
    existing = [make_slot(id="sem5", semester=5, teacher_ids=["T"], room_id="R1")]

    even = make_proposal(semester=6, teacher_ids=["T"], room_id="R2", subject_id="sub-math")
    assert check_conflicts(even, existing, scope=scope).is_valid

    odd = make_proposal(semester=7, teacher_ids=["T"], room_id="R3", subject_id="sub-math")
    result = check_conflicts(odd, existing, scope=scope)
    assert [(conflict.type, conflict.conflicting_slot_id) for conflict in result.conflicts] == [
        (ConflictType.teacher, "sem5")
    ]


def test_conflicts_follow_period_order_not_slot_ids(scope):
    catalog = TimeSlotCatalog(
        [
            TimeSlotOut(id=5, label="First", start_time="07:00", end_time="07:50", sort_order=0),
            TimeSlotOut(id=1, label="Second", start_time="07:50", end_time="08:40", sort_order=1),
        ]
    )
    existing = [
        make_slot(id="late", slot_index=1, section="CD", room_id="r-9"),
        make_slot(id="early", slot_index=5, section="EF", room_id="r-8"),
    ]

    for slot_indices in ([5, 1], [1, 5]):
        result = check_conflicts(
            make_proposal(slot_indices=slot_indices), existing, scope=scope, catalog=catalog
        )
        assert result.conflicting_periods == [5, 1]
        assert [conflict.conflicting_slot_id for conflict in result.conflicts] == ["early", "late"]
