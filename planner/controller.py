"""The planner controller: the single owner and mutator of planner state.

Every user action goes through ``PlannerController``. Drag previews are pure
(``preview_drop`` never writes anything). Committed edits follow one path:

    edit → resolve placements → resolve swaps → new PlannerState
         → snapshot → PlannerHistory.record → autosave (background)

Undo and redo ask the history for the neighbouring snapshot and load it into
the state without recording a new entry. Anything that changes the hall
configs or the fill direction rebuilds the placement context (ordered slot
sequence and projector) and drops assignments to slots that no longer exist.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Callable

from slotengine.catalog_io import ItemCatalog
from slotengine.geometry import GridProjector, SlotProjector
from slotengine.history import PlannerHistory
from slotengine.payload import (
    DragPayload,
    LayoutSinglePayload,
    is_layout_payload,
    layout_payload_for,
)
from slotengine.placement import (
    Placement,
    PlacementContext,
    apply_drop,
    preview_drop,
    remove_payload_items,
    resolve_placements,
)
from slotengine.presets import STORAGE_LAYOUT_PRESETS, build_hall_configs
from slotengine.slots import retain_valid_assignments
from slotengine.snapshot import (
    PlannerSnapshot,
    mis_name_key,
    section_name_key,
)
from slotengine.types import (
    HallConfig,
    HallSideConfig,
    MAX_SLICES,
    clamp,
    parse_fill_direction,
)

from .drafts import DraftStore
from .settings import PlannerSettings

console_logger = logging.getLogger(__name__)


@dataclass
class PlannerState:
    storage_layout_preset: str
    fill_direction: str
    hall_configs: dict[int, HallConfig]
    slot_assignments: dict[str, str] = field(default_factory=dict)
    layout_name: str = ""
    hall_names: dict[int, str] = field(default_factory=dict)
    section_names: dict[str, str] = field(default_factory=dict)
    mis_names: dict[str, str] = field(default_factory=dict)
    selected_slots: list[str] = field(default_factory=list)

    @staticmethod
    def from_snapshot(snapshot: PlannerSnapshot) -> PlannerState:
        # Deep copy so in-place edits never reach snapshots held by history.
        return PlannerState(
            storage_layout_preset=snapshot.storage_layout_preset,
            fill_direction=snapshot.fill_direction,
            hall_configs=copy.deepcopy(snapshot.hall_configs),
            slot_assignments=dict(snapshot.slot_assignments),
            layout_name=snapshot.layout_name,
            hall_names=dict(snapshot.hall_names),
            section_names=dict(snapshot.section_names),
            mis_names=dict(snapshot.mis_names),
        )

    def to_snapshot(self) -> PlannerSnapshot:
        return PlannerSnapshot(
            storage_layout_preset=self.storage_layout_preset,
            fill_direction=self.fill_direction,
            hall_configs=copy.deepcopy(self.hall_configs),
            slot_assignments=dict(self.slot_assignments),
            layout_name=self.layout_name,
            hall_names=dict(self.hall_names),
            section_names=dict(self.section_names),
            mis_names=dict(self.mis_names),
        ).normalized()


class PlannerController:
    def __init__(
        self,
        catalog: ItemCatalog,
        snapshot: PlannerSnapshot | None = None,
        settings: PlannerSettings | None = None,
        draft_store: DraftStore | None = None,
        projector_factory: Callable[
            [dict[int, HallConfig]], SlotProjector
        ] = GridProjector,
    ) -> None:
        self.settings = settings or PlannerSettings()
        self.catalog = catalog
        self.draft_store = draft_store
        if draft_store is None and self.settings.draft_path is not None:
            self.draft_store = DraftStore(self.settings.draft_path)
        self._projector_factory = projector_factory
        if snapshot is None:
            preset = self.settings.storage_layout_preset
            snapshot = PlannerSnapshot(
                storage_layout_preset=preset,
                fill_direction=self.settings.fill_direction,
                hall_configs=build_hall_configs(preset),
            )
        self._load_state(snapshot)
        self.history = PlannerHistory(
            self.snapshot(), self.settings.max_history_entries
        )

    # -- state plumbing --------------------------------------------------

    def _load_state(self, snapshot: PlannerSnapshot) -> None:
        self.state = PlannerState.from_snapshot(snapshot)
        self._rebuild_context()

    def _rebuild_context(self) -> None:
        self.context = PlacementContext.build(
            self.state.hall_configs,
            self.state.fill_direction,
            self.catalog,
            self._projector_factory(self.state.hall_configs),
        )
        valid = self.context.valid_slot_ids
        self.state.slot_assignments = retain_valid_assignments(
            self.state.slot_assignments, valid
        )
        self.state.selected_slots = [
            s for s in self.state.selected_slots if s in valid
        ]

    def snapshot(self) -> PlannerSnapshot:
        return self.state.to_snapshot()

    def _commit(self) -> bool:
        """Record the current state; returns True if history grew."""
        recorded = self.history.record(self.snapshot())
        if recorded:
            self._autosave()
        return recorded

    def _autosave(self) -> None:
        if self.draft_store is None:
            return
        self.draft_store.save_in_background(
            self.history.current, self.history.export_state()
        )

    @property
    def ordered_slot_ids(self) -> list[str]:
        return self.context.ordered_slot_ids

    @property
    def used_item_ids(self) -> set[str]:
        return set(self.state.slot_assignments.values())

    # -- drag and drop ---------------------------------------------------

    def select(self, slot_ids: list[str]) -> None:
        valid = self.context.valid_slot_ids
        self.state.selected_slots = [s for s in slot_ids if s in valid]

    def begin_layout_drag(self, slot_id: str) -> DragPayload | None:
        """Lift the item in ``slot_id``, or the whole selection containing it."""
        assignments = self.state.slot_assignments
        if slot_id not in assignments:
            return None
        selected = set(self.state.selected_slots)
        group = [
            (s, assignments[s])
            for s in self.ordered_slot_ids
            if s in selected and s in assignments
        ]
        if slot_id in selected and len(group) > 1:
            return layout_payload_for(group, origin_slot=slot_id)
        self.state.selected_slots = [slot_id]
        return LayoutSinglePayload(
            item_id=assignments[slot_id], source_slot=slot_id
        )

    def preview_drop(
        self, anchor_slot: str, payload: DragPayload
    ) -> list[Placement]:
        return preview_drop(
            anchor_slot, payload, self.state.slot_assignments, self.context
        )

    def drop(self, anchor_slot: str, payload: DragPayload) -> bool:
        """Apply a drop. Returns True only if the layout changed."""
        assignments = self.state.slot_assignments
        result = apply_drop(anchor_slot, payload, assignments, self.context)
        if result is None:
            return False
        if is_layout_payload(payload):
            placements = resolve_placements(
                anchor_slot, payload, assignments, self.context
            )
            self.state.selected_slots = [p.slot_id for p in placements]
        self.state.slot_assignments = result
        return self._commit()

    def drop_on_library(self, payload: DragPayload) -> bool:
        """Dropping layout items back on the library unassigns them."""
        if not is_layout_payload(payload):
            return False
        self.state.slot_assignments = remove_payload_items(
            payload, self.state.slot_assignments, self.context.valid_slot_ids
        )
        self.state.selected_slots = []
        return self._commit()

    def clear_slot(self, slot_id: str) -> bool:
        if slot_id not in self.state.slot_assignments:
            return False
        del self.state.slot_assignments[slot_id]
        self.state.selected_slots = [
            s for s in self.state.selected_slots if s != slot_id
        ]
        return self._commit()

    def clear_layout(self) -> bool:
        self.state.slot_assignments = {}
        self.state.selected_slots = []
        return self._commit()

    # -- configuration ---------------------------------------------------

    def set_fill_direction(self, fill_direction: str) -> bool:
        self.state.fill_direction = parse_fill_direction(fill_direction)
        self._rebuild_context()
        return self._commit()

    def set_storage_layout_preset(self, preset: str) -> bool:
        if preset not in STORAGE_LAYOUT_PRESETS:
            raise ValueError(f"Unknown storage layout preset: {preset!r}")
        self.state.storage_layout_preset = preset
        self.state.hall_configs = build_hall_configs(preset)
        self._rebuild_context()
        return self._commit()

    def _section(self, hall_id: int, section_index: int):
        hall = self.state.hall_configs.get(hall_id)
        if hall is None or not 0 <= section_index < len(hall.sections):
            raise ValueError(f"No section {section_index} in hall {hall_id}")
        return hall.sections[section_index]

    def set_section_slices(
        self, hall_id: int, section_index: int, slices: int
    ) -> bool:
        section = self._section(hall_id, section_index)
        section.slices = int(clamp(slices, 1, MAX_SLICES))
        self._rebuild_context()
        return self._commit()

    def update_side(
        self, hall_id: int, section_index: int, side: int, **changes
    ) -> bool:
        """Change one side of a section.

        Keyword names match the save format (``type``, ``rows_per_slice``,
        ``mis_slots_per_slice``, ``mis_width``); values are clamped. Changing
        the type starts from that type's defaults.
        """
        section = self._section(hall_id, section_index)
        if side not in (0, 1):
            raise ValueError(f"Side must be 0 or 1, got {side!r}")
        current = section.sides[side]
        new_type = changes.get("type", current.type)
        base = (
            HallSideConfig.default_for(new_type).to_dict()
            if new_type != current.type
            else current.to_dict()
        )
        updated = HallSideConfig.from_dict({**base, **changes})
        if side == 0:
            section.side_left = updated
        else:
            section.side_right = updated
        self._rebuild_context()
        return self._commit()

    # -- display names ---------------------------------------------------

    def rename_layout(self, name: str) -> bool:
        self.state.layout_name = name
        return self._commit()

    def rename_hall(self, hall_id: int, name: str) -> bool:
        self.state.hall_names[hall_id] = name
        return self._commit()

    def rename_section(self, hall_id: int, section_index: int, name: str) -> bool:
        self.state.section_names[section_name_key(hall_id, section_index)] = name
        return self._commit()

    def rename_unit(
        self, hall_id: int, slice_: int, side: int, unit: int, name: str
    ) -> bool:
        self.state.mis_names[mis_name_key(hall_id, slice_, side, unit)] = name
        return self._commit()

    # -- history and persistence -----------------------------------------

    def _show_snapshot(self, snapshot: PlannerSnapshot) -> None:
        selected = self.state.selected_slots
        self._load_state(snapshot)
        self.select(selected)

    def undo(self) -> bool:
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._show_snapshot(snapshot)
        self._autosave()
        return True

    def redo(self) -> bool:
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._show_snapshot(snapshot)
        self._autosave()
        return True

    def load_snapshot(self, snapshot: PlannerSnapshot) -> None:
        """Replace the whole layout (e.g. after opening a file)."""
        self._load_state(snapshot)
        self.history = PlannerHistory(
            self.snapshot(), self.settings.max_history_entries
        )
        self._autosave()

    def restore_draft(self) -> bool:
        """Load the autosaved draft and its history, if there is one."""
        if self.draft_store is None:
            return False
        draft = self.draft_store.load()
        if draft is None:
            return False
        self._load_state(draft.snapshot)
        self.history = PlannerHistory.restore(
            draft.history_state,
            self.snapshot(),
            self.settings.max_history_entries,
        )
        console_logger.info(
            "Restored draft saved at %s (%d history entries)",
            draft.saved_at,
            len(self.history.entries),
        )
        return True
