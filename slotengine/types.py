"""Data types for hall configurations and the planner JSON schema."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

FILL_DIRECTIONS = ("row", "column")
HALL_TYPES = ("bulk", "chest", "mis")
HALL_DIRECTIONS = ("north", "east", "south", "west")

MAX_SLICES = 200
MAX_ROWS_PER_SLICE = 9
MAX_MIS_UNITS_PER_SLICE = 8
MAX_MIS_SLOTS_PER_SLICE = 200
MAX_MIS_WIDTH = 16


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _to_int(value, fallback: int) -> int:
    """Coerce a JSON value to int, falling back on non-numeric input."""
    if isinstance(value, bool):
        return fallback
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(numeric):
        return fallback
    return int(numeric)


def parse_fill_direction(value) -> str:
    if value not in FILL_DIRECTIONS:
        raise ValueError(f"Unknown fill direction: {value!r}")
    return value


@dataclass
class HallSideConfig:
    type: str = "bulk"
    rows_per_slice: int = 1
    mis_slots_per_slice: int = 54
    mis_width: int = 1

    @property
    def is_mis(self) -> bool:
        return self.type == "mis"

    @property
    def mis_units_per_slice(self) -> int:
        """Storage units stacked in one slice (mis sides reuse the row count)."""
        return self.rows_per_slice if self.is_mis else 0

    @staticmethod
    def default_for(side_type: str) -> HallSideConfig:
        if side_type == "bulk":
            return HallSideConfig("bulk", 1, 54, 1)
        if side_type == "chest":
            return HallSideConfig("chest", 4, 54, 1)
        if side_type == "mis":
            return HallSideConfig("mis", 4, 54, 2)
        raise ValueError(f"Unknown hall side type: {side_type!r}")

    @staticmethod
    def from_dict(d: dict) -> HallSideConfig:
        if not isinstance(d, dict):
            raise ValueError("Hall side must be an object")
        side_type = d.get("type")
        if side_type not in HALL_TYPES:
            raise ValueError(f"Unknown hall side type: {side_type!r}")
        defaults = HallSideConfig.default_for(side_type)
        rows_max = (
            MAX_MIS_UNITS_PER_SLICE if side_type == "mis" else MAX_ROWS_PER_SLICE
        )
        return HallSideConfig(
            type=side_type,
            rows_per_slice=int(
                clamp(
                    _to_int(d.get("rows_per_slice"), defaults.rows_per_slice),
                    1,
                    rows_max,
                )
            ),
            mis_slots_per_slice=int(
                clamp(
                    _to_int(
                        d.get("mis_slots_per_slice"), defaults.mis_slots_per_slice
                    ),
                    1,
                    MAX_MIS_SLOTS_PER_SLICE,
                )
            ),
            mis_width=int(
                clamp(
                    _to_int(d.get("mis_width"), defaults.mis_width),
                    1,
                    MAX_MIS_WIDTH,
                )
            ),
        )

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "rows_per_slice": self.rows_per_slice,
            "mis_slots_per_slice": self.mis_slots_per_slice,
            "mis_width": self.mis_width,
        }


@dataclass
class HallSectionConfig:
    slices: int = 1
    side_left: HallSideConfig = field(default_factory=HallSideConfig)
    side_right: HallSideConfig = field(default_factory=HallSideConfig)

    @property
    def sides(self) -> tuple[HallSideConfig, HallSideConfig]:
        return (self.side_left, self.side_right)

    @staticmethod
    def from_dict(d: dict) -> HallSectionConfig:
        if not isinstance(d, dict):
            raise ValueError("Hall section must be an object")
        return HallSectionConfig(
            slices=int(clamp(_to_int(d.get("slices"), 1), 1, MAX_SLICES)),
            side_left=HallSideConfig.from_dict(d.get("side_left")),
            side_right=HallSideConfig.from_dict(d.get("side_right")),
        )

    def to_dict(self) -> dict:
        return {
            "slices": self.slices,
            "side_left": self.side_left.to_dict(),
            "side_right": self.side_right.to_dict(),
        }


@dataclass
class HallConfig:
    sections: list[HallSectionConfig]
    direction: str = "east"
    name: str | None = None

    @property
    def total_slices(self) -> int:
        return sum(s.slices for s in self.sections)

    def section_slice_offsets(self) -> list[int]:
        """First hall-wide slice index of each section."""
        offsets = []
        start = 0
        for section in self.sections:
            offsets.append(start)
            start += section.slices
        return offsets

    @staticmethod
    def from_dict(d: dict, fallback_direction: str = "east") -> HallConfig:
        if not isinstance(d, dict):
            raise ValueError("Hall config must be an object")
        sections = d.get("sections")
        if not isinstance(sections, list) or not sections:
            raise ValueError("Hall config needs at least one section")
        direction = d.get("direction")
        if direction not in HALL_DIRECTIONS:
            direction = fallback_direction
        name = d.get("name")
        return HallConfig(
            sections=[HallSectionConfig.from_dict(s) for s in sections],
            direction=direction,
            name=name if isinstance(name, str) else None,
        )

    def to_dict(self) -> dict:
        d: dict = {
            "direction": self.direction,
            "sections": [s.to_dict() for s in self.sections],
        }
        if self.name is not None:
            d["name"] = self.name
        return d


def hall_configs_from_dict(d: dict) -> dict[int, HallConfig]:
    """Parse a ``{hall_id: config}`` mapping; hall ids must be positive ints."""
    if not isinstance(d, dict) or not d:
        raise ValueError("Hall configs must be a non-empty object")
    result: dict[int, HallConfig] = {}
    for raw_id, raw_config in d.items():
        try:
            hall_id = int(raw_id)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid hall id: {raw_id!r}") from None
        if hall_id <= 0 or str(hall_id) != str(raw_id).strip():
            raise ValueError(f"Invalid hall id: {raw_id!r}")
        result[hall_id] = HallConfig.from_dict(raw_config)
    return dict(sorted(result.items()))


def hall_configs_to_dict(configs: dict[int, HallConfig]) -> dict:
    return {str(hall_id): configs[hall_id].to_dict() for hall_id in sorted(configs)}


@dataclass
class CatalogItem:
    id: str
    texture_path: str
    creative_tabs: list[str] = field(default_factory=list)
    registration: str = "unknown"
    max_stack_size: int = 64

    @staticmethod
    def from_dict(d: dict) -> CatalogItem:
        registration = d.get("registration")
        if registration not in ("block", "item"):
            registration = "unknown"
        tabs = d.get("creativeTabs")
        return CatalogItem(
            id=d["id"],
            texture_path=d["texturePath"],
            creative_tabs=(
                [t for t in tabs if isinstance(t, str)]
                if isinstance(tabs, list)
                else []
            ),
            registration=registration,
            max_stack_size=_to_int(d.get("maxStackSize"), 64),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "texturePath": self.texture_path,
            "creativeTabs": self.creative_tabs,
            "registration": self.registration,
            "maxStackSize": self.max_stack_size,
        }
