import pytest

from conftest import make_slot
from routinedesk.models.routine_slot import RecurrenceType, WeekPattern
from routinedesk.schemas.conflict import ConflictType
from routinedesk.schemas.routine import Recurrence, semester_parity
from routinedesk.services.slot_matcher import (
    PairExemption,
    classify_pair,
    recurrence_weeks_overlap,
    same_parity_track,
)

ODD_WEEKS = {"type": "alternate", "pattern": "odd"}
EVEN_WEEKS = {"type": "alternate", "pattern": "even"}


@pytest.mark.parametrize(
    "semester, expected",
    [(1, WeekPattern.odd), (3, WeekPattern.odd), (4, WeekPattern.even), (8, WeekPattern.even)],
)
def test_semester_parity(semester, expected):
    assert semester_parity(semester) == expected


def test_same_parity_track():
    assert same_parity_track(5, 7)
    assert same_parity_track(2, 6)
    assert not same_parity_track(3, 4)


def test_recurrence_overlap_rules():
    weekly = Recurrence()
    odd = Recurrence(**ODD_WEEKS)
    even = Recurrence(**EVEN_WEEKS)
    first_half = Recurrence(type="custom", weeks=[1, 2, 3, 4])
    second_half = Recurrence(type="custom", weeks=[9, 10])
    even_only_custom = Recurrence(type="custom", weeks=[2, 4])

    assert recurrence_weeks_overlap(weekly, odd)
    assert recurrence_weeks_overlap(odd, odd)
    assert not recurrence_weeks_overlap(odd, even)
    assert not recurrence_weeks_overlap(first_half, second_half)
    assert recurrence_weeks_overlap(first_half, weekly)
    assert not recurrence_weeks_overlap(even_only_custom, odd)
    assert recurrence_weeks_overlap(even_only_custom, even)


def test_recurrence_applies_to_week():
    odd = Recurrence(**ODD_WEEKS)
    assert odd.applies_to_week(1)
    assert not odd.applies_to_week(2)
    assert Recurrence().applies_to_week(7)
    assert Recurrence(type=RecurrenceType.custom, weeks=[3, 5]).applies_to_week(5)
    assert not Recurrence(type=RecurrenceType.custom, weeks=[3, 5]).applies_to_week(4)


@pytest.mark.parametrize(
    "recurrence",
    [
        {"type": "alternate"},
        {"type": "weekly", "pattern": "odd"},
        {"type": "custom"},
        {"type": "custom", "weeks": [0]},
    ],
)
def test_recurrence_rejects_inconsistent_shapes(recurrence):
    with pytest.raises(ValueError):
        Recurrence(**recurrence)


def test_different_parity_is_first_row():
    # Different tracks win even when the recurrences are disjoint too.
    first = make_slot(semester=3, recurrence=ODD_WEEKS)
    second = make_slot(id="slot-2", semester=4, recurrence=EVEN_WEEKS)
    assert classify_pair(first, second) == PairExemption.DIFFERENT_TRACK


def test_opposite_alternate_weeks_are_exempt():
    first = make_slot(recurrence=ODD_WEEKS)
    second = make_slot(id="slot-2", semester=7, recurrence=EVEN_WEEKS)
    assert classify_pair(first, second) == PairExemption.DISJOINT_WEEKS


def test_same_alternate_pattern_is_not_exempt():
    first = make_slot(recurrence=ODD_WEEKS)
    second = make_slot(id="slot-2", semester=7, recurrence=ODD_WEEKS)
    assert classify_pair(first, second) == PairExemption.NONE


def test_parallel_lab_groups():
    first = make_slot(class_type="practical", lab_group_id="A")
    second = make_slot(id="slot-2", class_type="practical", lab_group_id="B")
    exemption = classify_pair(first, second)

    assert exemption == PairExemption.PARALLEL_LAB_GROUP
    assert exemption.exempts(ConflictType.section)
    assert not exemption.exempts(ConflictType.teacher)
    assert not exemption.exempts(ConflictType.room)


@pytest.mark.parametrize(
    "overrides",
    [
        {"lab_group_id": "A"},  # same group
        {"lab_group_id": None},  # one side without a group
        {"lab_group_id": "B", "subject_id": "sub-os"},  # different subject
        {"lab_group_id": "B", "section": "CD"},  # different section
    ],
)
def test_lab_group_exemption_requires_same_subject_section_and_distinct_groups(overrides):
    first = make_slot(class_type="practical", lab_group_id="A")
    second = make_slot(id="slot-2", class_type="practical", **overrides)
    assert classify_pair(first, second) == PairExemption.NONE


def test_decision_table_is_symmetric():
    pairs = [
        (make_slot(semester=3), make_slot(id="b", semester=4)),
        (make_slot(recurrence=ODD_WEEKS), make_slot(id="b", recurrence=EVEN_WEEKS)),
        (make_slot(lab_group_id="A"), make_slot(id="b", lab_group_id="B")),
        (make_slot(lab_group_id="A"), make_slot(id="b", lab_group_id=None)),
    ]
    for first, second in pairs:
        assert classify_pair(first, second) == classify_pair(second, first)


def test_none_exempts_nothing():
    for dimension in ConflictType:
        assert not PairExemption.NONE.exempts(dimension)
        assert PairExemption.DIFFERENT_TRACK.exempts(dimension)
