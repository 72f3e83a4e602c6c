"""Drop resolution: turn a drag payload and an anchor slot into assignments.

Resolving a drop happens in two stages, both pure functions of their inputs:

  1. ``resolve_placements`` decides where each incoming item lands.
     Multi-slot moves lifted from the layout first try to keep their shape:
     every item is shifted by the offset between the grabbed slot and the
     anchor, through the ``SlotProjector``. That either succeeds for every
     item or is abandoned entirely, in which case (and for every other kind
     of drop) items are laid out one after another along the ordered slot
     sequence starting at the anchor. Catalog drops skip occupied slots;
     layout moves may land on them and displace what is there.
  2. ``resolve_swaps`` rehomes the displaced items into the slots vacated by
     the move, preferring the slot the displacing item came from, so that a
     plain two-slot drag swaps the two items. If there are not enough vacated
     slots the whole drop is refused (``None``).

``apply_drop`` runs both stages and merges the result into a new assignment
table, or returns None when the drop is refused. A drop that lands every
item where it already is returns a table equal to the input. ``preview_drop``
runs the same stages for drag previews. Neither ever mutates its inputs, so
a preview that is superseded or abandoned leaves no trace.
"""

from __future__ import annotations

import logging
from collections.abc import Container, KeysView
from dataclasses import dataclass, field

from .geometry import GridProjector, SlotProjector, project_offset
from .payload import (
    DragPayload,
    IncomingEntry,
    LayoutGroupPayload,
    incoming_entries,
    is_layout_payload,
)
from .slots import ordered_slots, retain_valid_assignments
from .types import HallConfig

console_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placement:
    slot_id: str
    item_id: str
    kind: str = "place"  # "place" or "swap"


@dataclass
class PlacementContext:
    ordered_slot_ids: list[str]
    known_items: Container[str]
    projector: SlotProjector | None = None
    slot_index: dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.slot_index = {
            slot_id: i for i, slot_id in enumerate(self.ordered_slot_ids)
        }

    @property
    def valid_slot_ids(self) -> KeysView[str]:
        return self.slot_index.keys()

    @staticmethod
    def build(
        hall_configs: dict[int, HallConfig],
        fill_direction: str,
        known_items: Container[str],
        projector: SlotProjector | None = None,
    ) -> PlacementContext:
        return PlacementContext(
            ordered_slot_ids=ordered_slots(hall_configs, fill_direction),
            known_items=known_items,
            projector=(
                projector
                if projector is not None
                else GridProjector(hall_configs)
            ),
        )


def _without_items(
    assignments: dict[str, str], valid_slot_ids, item_ids: set[str]
) -> dict[str, str]:
    """Valid assignments minus any slot holding one of ``item_ids``."""
    return {
        slot_id: item_id
        for slot_id, item_id in retain_valid_assignments(
            assignments, valid_slot_ids
        ).items()
        if item_id not in item_ids
    }


def _shape_placements(
    anchor_slot: str,
    payload: LayoutGroupPayload,
    entries: list[IncomingEntry],
    working: dict[str, str],
    context: PlacementContext,
    allow_occupied: bool,
) -> list[Placement] | None:
    if context.projector is None:
        return None
    placements: list[Placement] = []
    used: set[str] = set()
    for entry in entries:
        if entry.source_slot is None:
            return None
        target = project_offset(
            context.projector,
            entry.source_slot,
            payload.origin_slot,
            anchor_slot,
        )
        if target is None or target not in context.slot_index:
            return None
        if target in used:
            return None
        if not allow_occupied and target in working:
            return None
        used.add(target)
        placements.append(Placement(target, entry.item_id))
    return placements


def _sequential_placements(
    anchor_index: int,
    entries: list[IncomingEntry],
    working: dict[str, str],
    context: PlacementContext,
    allow_occupied: bool,
) -> list[Placement]:
    slots = context.ordered_slot_ids
    placements: list[Placement] = []
    cursor = anchor_index
    for entry in entries:
        if not allow_occupied:
            while cursor < len(slots) and slots[cursor] in working:
                cursor += 1
        if cursor >= len(slots):
            # Items past the end of the layout are dropped.
            break
        placements.append(Placement(slots[cursor], entry.item_id))
        working[slots[cursor]] = entry.item_id
        cursor += 1
    return placements


def resolve_placements(
    anchor_slot: str,
    payload: DragPayload,
    assignments: dict[str, str],
    context: PlacementContext,
) -> list[Placement]:
    """Compute where each incoming item of ``payload`` lands.

    Returns an empty list when the anchor is not a valid slot or none of the
    payload's items are known.
    """
    anchor_index = context.slot_index.get(anchor_slot)
    if anchor_index is None:
        return []
    entries = incoming_entries(payload, context.known_items)
    if not entries:
        return []

    allow_occupied = is_layout_payload(payload)
    working = _without_items(
        assignments,
        context.valid_slot_ids,
        {e.item_id for e in entries},
    )

    if isinstance(payload, LayoutGroupPayload) and len(entries) >= 2:
        shaped = _shape_placements(
            anchor_slot, payload, entries, working, context, allow_occupied
        )
        if shaped is not None:
            return shaped
        console_logger.debug(
            "Shape-preserving move to %s failed, placing sequentially",
            anchor_slot,
        )

    return _sequential_placements(
        anchor_index, entries, working, context, allow_occupied
    )


def resolve_swaps(
    payload: DragPayload,
    entries: list[IncomingEntry],
    placements: list[Placement],
    assignments: dict[str, str],
    valid_slot_ids,
) -> list[Placement] | None:
    """Rehome items displaced by ``placements``.

    Returns the extra ``"swap"`` placements (possibly empty), or None if the
    displaced items cannot all be rehomed, in which case the drop must not
    be applied at all.
    """
    if not is_layout_payload(payload) or not placements:
        return []

    incoming = {e.item_id for e in entries}
    displaced: list[tuple[str, str | None]] = []
    for i, placement in enumerate(placements):
        existing = assignments.get(placement.slot_id)
        if existing and existing not in incoming:
            preferred = entries[i].source_slot if i < len(entries) else None
            displaced.append((existing, preferred))
    if not displaced:
        return []

    simulated = _without_items(assignments, valid_slot_ids, incoming)
    for placement in placements:
        simulated[placement.slot_id] = placement.item_id

    targets = {p.slot_id for p in placements}
    source_slots: list[str] = []
    for entry in entries:
        slot = entry.source_slot
        if slot and slot in valid_slot_ids and slot not in source_slots:
            source_slots.append(slot)
    candidates = [
        slot
        for slot in source_slots
        if slot not in targets and slot not in simulated
    ]
    if len(candidates) < len(displaced):
        return None

    swaps: list[Placement] = []
    used: set[str] = set()
    remaining: list[str] = []
    for item_id, preferred in displaced:
        if preferred in candidates and preferred not in used:
            swaps.append(Placement(preferred, item_id, "swap"))
            used.add(preferred)
        else:
            remaining.append(item_id)

    free = (slot for slot in candidates if slot not in used)
    for item_id in remaining:
        slot = next(free, None)
        if slot is None:
            return None
        swaps.append(Placement(slot, item_id, "swap"))
    return swaps


def preview_drop(
    anchor_slot: str,
    payload: DragPayload,
    assignments: dict[str, str],
    context: PlacementContext,
) -> list[Placement]:
    """Placements plus swaps to highlight while hovering ``anchor_slot``."""
    placements = resolve_placements(anchor_slot, payload, assignments, context)
    swaps = resolve_swaps(
        payload,
        incoming_entries(payload, context.known_items),
        placements,
        assignments,
        context.valid_slot_ids,
    )
    if swaps is None:
        return placements
    return placements + swaps


def apply_drop(
    anchor_slot: str,
    payload: DragPayload,
    assignments: dict[str, str],
    context: PlacementContext,
) -> dict[str, str] | None:
    """Resolve a drop and return the new assignment table.

    Returns None when the drop is refused: invalid anchor, no known items,
    no room, or displaced items that cannot be rehomed.
    """
    entries = incoming_entries(payload, context.known_items)
    if not entries or anchor_slot not in context.slot_index:
        return None
    placements = resolve_placements(anchor_slot, payload, assignments, context)
    if not placements:
        return None
    swaps = resolve_swaps(
        payload, entries, placements, assignments, context.valid_slot_ids
    )
    if swaps is None:
        console_logger.debug(
            "Drop on %s refused: no room to rehome displaced items",
            anchor_slot,
        )
        return None

    result = _without_items(
        assignments, context.valid_slot_ids, {e.item_id for e in entries}
    )
    for placement in placements + swaps:
        result[placement.slot_id] = placement.item_id
    return result


def remove_payload_items(
    payload: DragPayload,
    assignments: dict[str, str],
    valid_slot_ids,
) -> dict[str, str]:
    """Unassign the items of a layout payload dropped onto the library."""
    if not is_layout_payload(payload):
        return retain_valid_assignments(assignments, valid_slot_ids)
    return _without_items(assignments, valid_slot_ids, set(payload.item_ids))
