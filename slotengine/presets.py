"""Storage layout presets.

Pure data module with no I/O. Each preset describes the halls that branch
off the storage core; ``build_hall_configs`` turns one into the hall
configuration mapping used everywhere else.
"""

from __future__ import annotations

from typing import Any

from .types import HallConfig, HallSectionConfig, HallSideConfig

DEFAULT_PRESET = "cross"

_BULK = {"type": "bulk", "rows_per_slice": 1}
_CHEST = {"type": "chest", "rows_per_slice": 4}
_MIS = {"type": "mis", "rows_per_slice": 1, "mis_slots_per_slice": 54}


def _hall(name: str, direction: str, slices: int, left: dict, right: dict):
    return {
        "name": name,
        "direction": direction,
        "sections": [{"slices": slices, "side_left": left, "side_right": right}],
    }


# preset -> ordered hall definitions (hall ids are 1-based positions)
STORAGE_LAYOUT_PRESETS: dict[str, list[dict[str, Any]]] = {
    "single": [
        _hall("Main Hall", "east", 16, _CHEST, _CHEST),
    ],
    "double": [
        _hall("East Hall", "east", 16, _CHEST, _CHEST),
        _hall("West Hall", "west", 16, _CHEST, _CHEST),
    ],
    "cross": [
        _hall("North Hall", "north", 8, _BULK, _BULK),
        _hall("East Hall", "east", 16, _CHEST, _CHEST),
        _hall("South Hall", "south", 8, _MIS, _MIS),
        _hall("West Hall", "west", 16, _CHEST, _CHEST),
    ],
    "h": [
        _hall("North Hall", "north", 8, _BULK, _BULK),
        _hall("East Hall", "north", 16, _CHEST, _CHEST),
        _hall("South Hall", "south", 8, _MIS, _MIS),
        _hall("West Hall", "south", 16, _CHEST, _CHEST),
    ],
}


def _normalize_side(side: dict | None) -> HallSideConfig:
    if not side:
        return HallSideConfig.default_for("bulk")
    # Presets leave out the unit grid width; mis sides default to 2 columns.
    return HallSideConfig.from_dict(
        {"mis_width": 2 if side["type"] == "mis" else 1, **side}
    )


def build_hall_configs(preset: str = DEFAULT_PRESET) -> dict[int, HallConfig]:
    """Return fresh hall configs for a named storage layout preset."""
    if preset not in STORAGE_LAYOUT_PRESETS:
        raise ValueError(f"Unknown storage layout preset: {preset!r}")
    configs: dict[int, HallConfig] = {}
    for hall_id, hall in enumerate(STORAGE_LAYOUT_PRESETS[preset], start=1):
        configs[hall_id] = HallConfig(
            name=hall["name"],
            direction=hall["direction"],
            sections=[
                HallSectionConfig(
                    slices=max(1, section["slices"]),
                    side_left=_normalize_side(section.get("side_left")),
                    side_right=_normalize_side(section.get("side_right")),
                )
                for section in hall["sections"]
            ],
        )
    return configs
