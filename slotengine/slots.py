"""Slot identifiers and the ordered slot sequence.

Every addressable position in the storage layout has a string id:

  * plain row slots (bulk and chest sides): ``"{hall}:g:{slice}:{side}:{row}"``
  * members of a multi-item storage unit (mis sides):
    ``"{hall}:m:{slice}:{side}:{unit}:{index}"``

``slice`` counts across all sections of a hall, so a hall with sections of
8 and 4 slices has slices 0..11. ``side`` is 0 for the left flank and 1 for
the right one.

``ordered_slots`` linearizes the layout into the fill order used by the
placement resolver. It is a pure function of the hall configs and the fill
direction, and it is the authority on which slot ids are valid: any
assignment to a slot outside it is discarded by ``retain_valid_assignments``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .types import FILL_DIRECTIONS, HallConfig


@dataclass(frozen=True)
class ParsedSlot:
    kind: str  # "grid" or "mis"
    hall_id: int
    slice: int
    side: int
    row: int = 0  # grid row, or storage unit index for mis slots
    index: int = 0  # position inside the storage unit (mis only)

    @property
    def unit(self) -> int:
        return self.row


def grid_slot_id(hall_id: int, slice_: int, side: int, row: int) -> str:
    return f"{hall_id}:g:{slice_}:{side}:{row}"


def mis_slot_id(
    hall_id: int, slice_: int, side: int, unit: int, index: int
) -> str:
    return f"{hall_id}:m:{slice_}:{side}:{unit}:{index}"


def parse_slot_id(slot_id: str) -> ParsedSlot | None:
    """Decode a slot id, or return None if it is malformed."""
    parts = slot_id.split(":")
    if len(parts) < 2:
        return None
    try:
        numbers = [int(p) for p in parts[2:]]
        hall_id = int(parts[0])
    except ValueError:
        return None
    if parts[1] == "g" and len(numbers) == 3:
        return ParsedSlot("grid", hall_id, *numbers)
    if parts[1] == "m" and len(numbers) == 4:
        return ParsedSlot("mis", hall_id, *numbers)
    return None


def _side_slots(
    hall_id: int,
    first_slice: int,
    slices: int,
    side_index: int,
    side,
    fill_direction: str,
) -> list[str]:
    slice_range = range(first_slice, first_slice + slices)
    if side.is_mis:
        # Storage units stay contiguous whatever the fill direction.
        return [
            mis_slot_id(hall_id, s, side_index, unit, index)
            for s in slice_range
            for unit in range(side.mis_units_per_slice)
            for index in range(side.mis_slots_per_slice)
        ]
    if fill_direction == "row":
        return [
            grid_slot_id(hall_id, s, side_index, row)
            for row in range(side.rows_per_slice)
            for s in slice_range
        ]
    return [
        grid_slot_id(hall_id, s, side_index, row)
        for s in slice_range
        for row in range(side.rows_per_slice)
    ]


def ordered_slots(
    hall_configs: dict[int, HallConfig], fill_direction: str
) -> list[str]:
    """Enumerate every slot id in fill order.

    Halls go in ascending id, sections in order, and within a section the
    left side before the right side. Plain sides follow ``fill_direction``:
    ``"row"`` walks one row across all slices before moving to the next
    row, ``"column"`` finishes a slice before moving to the next slice.
    """
    if fill_direction not in FILL_DIRECTIONS:
        raise ValueError(f"Unknown fill direction: {fill_direction!r}")
    ordered: list[str] = []
    for hall_id in sorted(hall_configs):
        hall = hall_configs[hall_id]
        for section, first_slice in zip(
            hall.sections, hall.section_slice_offsets()
        ):
            for side_index, side in enumerate(section.sides):
                ordered.extend(
                    _side_slots(
                        hall_id,
                        first_slice,
                        section.slices,
                        side_index,
                        side,
                        fill_direction,
                    )
                )
    return ordered


def retain_valid_assignments(
    assignments: dict[str, str], valid_slot_ids: set[str] | frozenset[str]
) -> dict[str, str]:
    """Copy of ``assignments`` without entries for unknown slots."""
    return {
        slot_id: item_id
        for slot_id, item_id in assignments.items()
        if slot_id in valid_slot_ids
    }
