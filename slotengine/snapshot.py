"""Planner snapshots: the complete serializable state at one point in time.

A snapshot holds the storage layout preset, the fill direction, the hall
configs, the slot assignment table, and the user's display-name overrides.
Snapshots are always normalized (names trimmed, empty names dropped, keys
sorted) so that two structurally equal states produce the same content key
(``snapshot_key``), which the history uses to ignore no-op edits.

``diff_snapshots`` / ``apply_snapshot_delta`` are the ``RecordDiffer`` over
the snapshot fields; ``snapshot_delta_to_dict`` / ``snapshot_delta_from_dict``
give their persisted form.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from .delta import Delta, MapField, RecordDiffer, ScalarField
from .presets import STORAGE_LAYOUT_PRESETS
from .types import (
    HallConfig,
    hall_configs_from_dict,
    hall_configs_to_dict,
    parse_fill_direction,
)

SAVE_FILE_VERSION = 1


def section_name_key(hall_id: int, section_index: int) -> str:
    return f"{hall_id}:{section_index}"


def mis_name_key(hall_id: int, slice_: int, side: int, unit: int) -> str:
    return f"{hall_id}:{slice_}:{side}:{unit}"


def _clean_names(names: dict, key_type=str) -> dict:
    """Trimmed, sorted copy without blank keys or values."""
    cleaned = {}
    for key, value in names.items():
        if not isinstance(value, str) or not value.strip():
            continue
        if key_type is int:
            try:
                key = int(key)
            except (TypeError, ValueError):
                continue
            if key <= 0:
                continue
        elif not isinstance(key, str) or not key.strip():
            continue
        cleaned[key] = value.strip()
    return dict(sorted(cleaned.items()))


@dataclass(frozen=True)
class PlannerSnapshot:
    storage_layout_preset: str
    fill_direction: str
    hall_configs: dict[int, HallConfig]
    slot_assignments: dict[str, str] = field(default_factory=dict)
    layout_name: str = ""
    hall_names: dict[int, str] = field(default_factory=dict)
    section_names: dict[str, str] = field(default_factory=dict)
    mis_names: dict[str, str] = field(default_factory=dict)

    def normalized(self) -> PlannerSnapshot:
        return PlannerSnapshot(
            storage_layout_preset=self.storage_layout_preset,
            fill_direction=self.fill_direction,
            hall_configs=dict(sorted(self.hall_configs.items())),
            slot_assignments={
                slot: item
                for slot, item in sorted(self.slot_assignments.items())
                if isinstance(item, str) and item
            },
            layout_name=self.layout_name.strip(),
            hall_names=_clean_names(self.hall_names, int),
            section_names=_clean_names(self.section_names),
            mis_names=_clean_names(self.mis_names),
        )

    def to_dict(self) -> dict:
        return {
            "storage_layout_preset": self.storage_layout_preset,
            "fill_direction": self.fill_direction,
            "hall_configs": hall_configs_to_dict(self.hall_configs),
            "slot_assignments": dict(sorted(self.slot_assignments.items())),
            "label_names": {
                "layout_name": self.layout_name,
                "hall_names": {
                    str(k): v for k, v in sorted(self.hall_names.items())
                },
                "section_names": dict(sorted(self.section_names.items())),
                "mis_names": dict(sorted(self.mis_names.items())),
            },
        }

    @staticmethod
    def from_dict(d: dict) -> PlannerSnapshot:
        """Parse and normalize a snapshot.

        Raises ValueError when the preset, fill direction, or hall configs
        are missing or invalid, or when a ``version`` key is present and
        does not match ``SAVE_FILE_VERSION``. Malformed assignment entries
        and names are dropped rather than rejected.
        """
        if not isinstance(d, dict):
            raise ValueError("Snapshot must be an object")
        if "version" in d and d["version"] != SAVE_FILE_VERSION:
            raise ValueError(f"Unsupported save file version: {d['version']!r}")
        preset = d.get("storage_layout_preset")
        if preset not in STORAGE_LAYOUT_PRESETS:
            raise ValueError(f"Unknown storage layout preset: {preset!r}")
        fill_direction = parse_fill_direction(d.get("fill_direction"))
        hall_configs = hall_configs_from_dict(d.get("hall_configs"))

        raw_assignments = d.get("slot_assignments")
        assignments = {
            slot: item
            for slot, item in (
                raw_assignments.items()
                if isinstance(raw_assignments, dict)
                else ()
            )
            if isinstance(slot, str)
            and slot.strip()
            and isinstance(item, str)
            and item.strip()
        }

        labels = d.get("label_names")
        labels = labels if isinstance(labels, dict) else {}
        layout_name = labels.get("layout_name")

        def name_map(key: str) -> dict:
            value = labels.get(key)
            return value if isinstance(value, dict) else {}

        return PlannerSnapshot(
            storage_layout_preset=preset,
            fill_direction=fill_direction,
            hall_configs=hall_configs,
            slot_assignments=assignments,
            layout_name=layout_name if isinstance(layout_name, str) else "",
            hall_names=name_map("hall_names"),
            section_names=name_map("section_names"),
            mis_names=name_map("mis_names"),
        ).normalized()


def snapshot_key(snapshot: PlannerSnapshot) -> str:
    """Content key: equal for structurally equal snapshots."""
    return json.dumps(snapshot.to_dict(), sort_keys=True, separators=(",", ":"))


SNAPSHOT_DIFFER = RecordDiffer(
    [
        ScalarField("storage_layout_preset"),
        ScalarField("fill_direction"),
        MapField(
            "hall_configs",
            encode=HallConfig.to_dict,
            decode=HallConfig.from_dict,
            decode_key=int,
        ),
        MapField("slot_assignments"),
        ScalarField("layout_name"),
        MapField("hall_names", decode_key=int),
        MapField("section_names"),
        MapField("mis_names"),
    ]
)


def diff_snapshots(old: PlannerSnapshot, new: PlannerSnapshot) -> Delta:
    return SNAPSHOT_DIFFER.diff(old, new)


def apply_snapshot_delta(base: PlannerSnapshot, delta: Delta) -> PlannerSnapshot:
    return SNAPSHOT_DIFFER.apply(base, delta).normalized()


def snapshot_delta_to_dict(delta: Delta) -> dict:
    return SNAPSHOT_DIFFER.to_dict(delta)


def snapshot_delta_from_dict(d) -> Delta:
    return SNAPSHOT_DIFFER.from_dict(d)
