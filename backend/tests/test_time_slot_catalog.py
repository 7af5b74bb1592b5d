from routinedesk.schemas.time_slot import TimeSlotOut
from routinedesk.services.time_slot_catalog import TimeSlotCatalog


def _slot(slot_id, sort_order, **extra):
    hour = 7 + sort_order
    return TimeSlotOut(
        id=slot_id,
        label=f"Slot {slot_id}",
        start_time=f"{hour:02d}:00",
        end_time=f"{hour:02d}:50",
        sort_order=sort_order,
        **extra,
    )


def test_default_catalog_orders_by_sort_order(catalog):
    assert [entry.id for entry in catalog.ordered(1)] == [0, 1, 2, 7, 3, 4, 5, 6]
    assert [entry.id for entry in catalog.teaching_slots(1)] == [0, 1, 2, 3, 4, 5, 6]
    assert catalog.position(1, 3) == 4


def test_contiguity_uses_period_order(catalog):
    assert catalog.are_contiguous(1, [4, 5])
    assert catalog.are_contiguous(1, [2, 7, 3])
    assert not catalog.are_contiguous(1, [2, 3])
    assert not catalog.are_contiguous(1, [5, 4])
    assert not catalog.are_contiguous(1, [])
    assert not catalog.are_contiguous(1, [4, 99])


def test_sort_indices_puts_unknown_last(catalog):
    assert catalog.sort_indices(1, [3, 99, 7, 0]) == [0, 7, 3, 99]


def test_context_specific_definitions_are_scoped():
    definitions = [
        _slot(0, 0),
        _slot(1, 1),
        _slot(2, 2, program_id="bct"),
        _slot(3, 3, program_id="bct", semester=5, section="AB"),
        _slot(4, 4, program_id="bel"),
    ]

    bct_ab = TimeSlotCatalog.from_definitions(definitions, program_id="bct", semester=5, section="AB")
    assert [entry.id for entry in bct_ab] == [0, 1, 2, 3]

    bct_cd = TimeSlotCatalog.from_definitions(definitions, program_id="bct", semester=5, section="CD")
    assert [entry.id for entry in bct_cd] == [0, 1, 2]

    unscoped = TimeSlotCatalog.from_definitions(definitions)
    assert [entry.id for entry in unscoped] == [0, 1]


def test_day_restricted_periods_drop_out_of_other_days():
    catalog = TimeSlotCatalog([_slot(0, 0), _slot(1, 1, applicable_days=[5]), _slot(2, 2)])

    assert [entry.id for entry in catalog.ordered(1)] == [0, 2]
    assert catalog.position(1, 1) is None
    assert catalog.are_contiguous(1, [0, 2])
    assert not catalog.are_contiguous(5, [0, 2])


def test_label_falls_back_for_unknown_slots(catalog):
    assert catalog.label(3) == "Period 4 (13:35-14:25)"
    assert catalog.label(99) == "Slot 99"
    assert len(catalog) == 8
