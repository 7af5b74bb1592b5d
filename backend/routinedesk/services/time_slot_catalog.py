from __future__ import annotations

from typing import Iterable, Iterator

from routinedesk.schemas.time_slot import TimeSlotOut


class TimeSlotCatalog:
    """Ordered view over the period definitions that apply to one routine context.

    Slot indices are ids, not positions. Everything that needs "next period"
    or "consecutive periods" goes through :meth:`ordered`, which sorts by
    ``sort_order``.
    """

    def __init__(self, entries: Iterable[TimeSlotOut]) -> None:
        self._entries = sorted(entries, key=lambda entry: (entry.sort_order, entry.id))
        self._by_id = {entry.id: entry for entry in self._entries}

    @classmethod
    def from_definitions(
        cls,
        definitions: Iterable,
        *,
        program_id: str | None = None,
        semester: int | None = None,
        section: str | None = None,
    ) -> "TimeSlotCatalog":
        context = {"program_id": program_id, "semester": semester, "section": section}
        entries = []
        for definition in definitions:
            entry = definition if isinstance(definition, TimeSlotOut) else TimeSlotOut.model_validate(definition)
            if all(getattr(entry, key) is None or getattr(entry, key) == value for key, value in context.items()):
                entries.append(entry)
        return cls(entries)

    def __iter__(self) -> Iterator[TimeSlotOut]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, slot_index: int) -> TimeSlotOut | None:
        return self._by_id.get(slot_index)

    def ordered(self, day_index: int | None = None) -> list[TimeSlotOut]:
        if day_index is None:
            return list(self._entries)
        return [
            entry for entry in self._entries if not entry.applicable_days or day_index in entry.applicable_days
        ]

    def teaching_slots(self, day_index: int) -> list[TimeSlotOut]:
        return [entry for entry in self.ordered(day_index) if not entry.is_break]

    def position(self, day_index: int, slot_index: int) -> int | None:
        for position, entry in enumerate(self.ordered(day_index)):
            if entry.id == slot_index:
                return position
        return None

    def are_contiguous(self, day_index: int, slot_indices: list[int]) -> bool:
        """True when the indices, in the given order, are adjacent periods of the day."""
        if not slot_indices:
            return False
        positions = [self.position(day_index, slot_index) for slot_index in slot_indices]
        if any(position is None for position in positions):
            return False
        start = positions[0]
        return positions == list(range(start, start + len(positions)))

    def sort_indices(self, day_index: int, slot_indices: Iterable[int]) -> list[int]:
        # Unknown indices sink to the end so callers can report them.
        order = {entry.id: position for position, entry in enumerate(self.ordered(day_index))}
        return sorted(slot_indices, key=lambda slot_index: (order.get(slot_index, len(order)), slot_index))

    def label(self, slot_index: int) -> str:
        entry = self.get(slot_index)
        if entry is None:
            return f"Slot {slot_index}"
        return f"{entry.label} ({entry.start_time}-{entry.end_time})"
