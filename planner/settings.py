"""Planner settings, loadable from a JSON file."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from slotengine.history import MAX_HISTORY_ENTRIES
from slotengine.presets import DEFAULT_PRESET, STORAGE_LAYOUT_PRESETS
from slotengine.types import parse_fill_direction


@dataclass
class PlannerSettings:
    max_history_entries: int = MAX_HISTORY_ENTRIES
    storage_layout_preset: str = DEFAULT_PRESET
    fill_direction: str = "row"
    draft_path: Path | None = None

    @staticmethod
    def from_dict(d: dict) -> PlannerSettings:
        preset = d.get("storage_layout_preset", DEFAULT_PRESET)
        if preset not in STORAGE_LAYOUT_PRESETS:
            raise ValueError(f"Unknown storage layout preset: {preset!r}")
        max_entries = d.get("max_history_entries", MAX_HISTORY_ENTRIES)
        if not isinstance(max_entries, int) or max_entries < 1:
            raise ValueError("max_history_entries must be a positive integer")
        draft_path = d.get("draft_path")
        return PlannerSettings(
            max_history_entries=max_entries,
            storage_layout_preset=preset,
            fill_direction=parse_fill_direction(d.get("fill_direction", "row")),
            draft_path=Path(draft_path) if draft_path else None,
        )

    def to_dict(self) -> dict:
        d: dict = {
            "max_history_entries": self.max_history_entries,
            "storage_layout_preset": self.storage_layout_preset,
            "fill_direction": self.fill_direction,
        }
        if self.draft_path is not None:
            d["draft_path"] = str(self.draft_path)
        return d


def load_settings(path: Path) -> PlannerSettings:
    with open(path) as f:
        return PlannerSettings.from_dict(json.load(f))
