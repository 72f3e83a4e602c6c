"""Drag payloads: what is being dropped and where it came from.

Three shapes of drag exist:

  * ``CatalogPayload``: one item or a whole category dragged out of the
    item library. Never displaces anything.
  * ``LayoutSinglePayload``: one item lifted from a slot of the layout.
  * ``LayoutGroupPayload``: several selected slots lifted together, with
    the slot the pointer grabbed (``origin_slot``) used to compute relative
    offsets for shape-preserving moves.

``parse_drag_payload`` accepts the in-process JSON form
``{kind, itemIds, source, originSlotId, sourceSlotIds}`` and returns the
matching dataclass, or None when the data cannot be interpreted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class CatalogPayload:
    item_ids: tuple[str, ...]
    kind: str = "item"  # "item" or "category"


@dataclass(frozen=True)
class LayoutSinglePayload:
    item_id: str
    source_slot: str

    @property
    def item_ids(self) -> tuple[str, ...]:
        return (self.item_id,)

    @property
    def source_slots(self) -> tuple[str, ...]:
        return (self.source_slot,)


@dataclass(frozen=True)
class LayoutGroupPayload:
    item_ids: tuple[str, ...]
    source_slots: tuple[str, ...]
    origin_slot: str


DragPayload = Union[CatalogPayload, LayoutSinglePayload, LayoutGroupPayload]


@dataclass(frozen=True)
class IncomingEntry:
    item_id: str
    source_slot: str | None = None


def is_layout_payload(payload: DragPayload) -> bool:
    return isinstance(payload, (LayoutSinglePayload, LayoutGroupPayload))


def payload_source_slots(payload: DragPayload) -> tuple[str | None, ...]:
    """Source slot per item id, or None for every item of a catalog drag."""
    if isinstance(payload, CatalogPayload):
        return (None,) * len(payload.item_ids)
    if isinstance(payload, LayoutSinglePayload):
        return payload.source_slots
    if isinstance(payload, LayoutGroupPayload):
        return payload.source_slots
    raise TypeError(f"Unknown drag payload: {payload!r}")


def incoming_entries(payload: DragPayload, known_items) -> list[IncomingEntry]:
    """Pair item ids with their source slots, dropping unknown and repeated items."""
    entries: list[IncomingEntry] = []
    seen: set[str] = set()
    for item_id, source_slot in zip(
        payload.item_ids, payload_source_slots(payload)
    ):
        if item_id in known_items and item_id not in seen:
            seen.add(item_id)
            entries.append(IncomingEntry(item_id, source_slot))
    return entries


def layout_payload_for(
    slot_items: list[tuple[str, str]], origin_slot: str
) -> LayoutSinglePayload | LayoutGroupPayload:
    """Build the payload for lifting ``(slot, item)`` pairs off the layout."""
    if not slot_items:
        raise ValueError("Nothing to lift")
    if len(slot_items) == 1:
        slot_id, item_id = slot_items[0]
        return LayoutSinglePayload(item_id=item_id, source_slot=slot_id)
    return LayoutGroupPayload(
        item_ids=tuple(item for _, item in slot_items),
        source_slots=tuple(slot for slot, _ in slot_items),
        origin_slot=origin_slot,
    )


def parse_drag_payload(data) -> DragPayload | None:
    if not isinstance(data, dict):
        return None
    kind = data.get("kind")
    raw_ids = data.get("itemIds")
    if kind not in ("item", "category") or not isinstance(raw_ids, list):
        return None
    item_ids = tuple(i for i in raw_ids if isinstance(i, str))
    if not item_ids:
        return None

    if data.get("source") != "layout":
        return CatalogPayload(item_ids=item_ids, kind=kind)

    raw_slots = data.get("sourceSlotIds")
    source_slots = (
        tuple(s for s in raw_slots if isinstance(s, str))
        if isinstance(raw_slots, list)
        else ()
    )
    origin = data.get("originSlotId")
    origin = origin if isinstance(origin, str) else None

    if len(item_ids) == 1:
        source_slot = source_slots[0] if source_slots else origin
        if source_slot is None:
            return None
        return LayoutSinglePayload(item_id=item_ids[0], source_slot=source_slot)
    if origin is None or len(source_slots) != len(item_ids):
        return None
    return LayoutGroupPayload(
        item_ids=item_ids, source_slots=source_slots, origin_slot=origin
    )


def drag_payload_to_dict(payload: DragPayload) -> dict:
    if isinstance(payload, CatalogPayload):
        return {
            "kind": payload.kind,
            "itemIds": list(payload.item_ids),
            "source": "catalog",
        }
    if isinstance(payload, LayoutSinglePayload):
        return {
            "kind": "item",
            "itemIds": [payload.item_id],
            "source": "layout",
            "originSlotId": payload.source_slot,
            "sourceSlotIds": [payload.source_slot],
        }
    if isinstance(payload, LayoutGroupPayload):
        return {
            "kind": "category",
            "itemIds": list(payload.item_ids),
            "source": "layout",
            "originSlotId": payload.origin_slot,
            "sourceSlotIds": list(payload.source_slots),
        }
    raise TypeError(f"Unknown drag payload: {payload!r}")
