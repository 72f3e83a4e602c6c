"""Slot center projection used by shape-preserving moves.

The placement resolver only needs two questions answered: "where is the
center of this slot?" and "which slot is centered exactly at this point?".
``SlotProjector`` is that boundary. Rendering code is free to supply its own
projector built from real screen geometry; ``GridProjector`` is the default,
a headless projection in abstract cell units derived from the hall configs.

GridProjector layout (all distances in cells, one cell per plain slot):

  * Halls are stacked along y in ascending id, ``HALL_GAP`` apart.
  * Within a hall, x runs along the slices. A slice is one cell wide, or
    ``mis_width`` cells when one of the section's sides holds storage units.
  * The left side fills y from the hall origin, then an ``AISLE_GAP`` aisle,
    then the right side. Storage units are a ``mis_width``-column grid of
    their member slots, stacked per slice with ``UNIT_GAP`` between them.

Points are matched with a millimetre-style key (coordinates rounded to 1e-3)
so float offsets that land "exactly" on a slot center resolve reliably.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from .slots import grid_slot_id, mis_slot_id
from .types import HallConfig, HallSideConfig

Point = tuple[float, float]

HALL_GAP = 2.0
AISLE_GAP = 1.0
UNIT_GAP = 1.0
_KEY_SCALE = 1000


class SlotProjector(Protocol):
    def center(self, slot_id: str) -> Point | None:
        """2D center of a slot, or None if the projector does not know it."""
        ...

    def slot_at(self, point: Point) -> str | None:
        """Slot centered at ``point``, or None if no slot is there."""
        ...


def point_key(point) -> tuple[int, int]:
    x, y = point
    return (round(x * _KEY_SCALE), round(y * _KEY_SCALE))


def _unit_rows(side: HallSideConfig) -> int:
    return -(-side.mis_slots_per_slice // side.mis_width)


def _side_depth(side: HallSideConfig) -> float:
    if side.is_mis:
        units = side.mis_units_per_slice
        return units * _unit_rows(side) + max(0, units - 1) * UNIT_GAP
    return float(side.rows_per_slice)


def _slice_pitch(section) -> float:
    return float(
        max(s.mis_width if s.is_mis else 1 for s in section.sides)
    )


def _grid_centers(
    slice_x: np.ndarray, pitch: float, y0: float, rows: int
) -> np.ndarray:
    """(slices, rows, 2) array of plain slot centers."""
    xs, ys = np.meshgrid(
        slice_x + pitch / 2.0, y0 + np.arange(rows) + 0.5, indexing="ij"
    )
    return np.stack([xs, ys], axis=-1)


def _unit_centers(side: HallSideConfig, x0: float, y0: float) -> np.ndarray:
    """(units, slots, 2) array of storage-unit member centers in one slice."""
    rows, cols = np.divmod(
        np.arange(side.mis_slots_per_slice), side.mis_width
    )
    unit_y = y0 + np.arange(side.mis_units_per_slice) * (
        _unit_rows(side) + UNIT_GAP
    )
    xs = np.broadcast_to(x0 + cols + 0.5, (len(unit_y), len(cols)))
    ys = unit_y[:, None] + rows[None, :] + 0.5
    return np.stack([xs, ys], axis=-1)


def build_slot_centers(
    hall_configs: dict[int, HallConfig],
) -> dict[str, Point]:
    """Compute the GridProjector center of every slot in the layout."""
    centers: dict[str, Point] = {}
    hall_y = 0.0
    for hall_id in sorted(hall_configs):
        hall = hall_configs[hall_id]
        left_depth = max(_side_depth(s.side_left) for s in hall.sections)
        right_depth = max(_side_depth(s.side_right) for s in hall.sections)
        side_y = (hall_y, hall_y + left_depth + AISLE_GAP)

        section_x = 0.0
        for section, first_slice in zip(
            hall.sections, hall.section_slice_offsets()
        ):
            pitch = _slice_pitch(section)
            slice_x = section_x + np.arange(section.slices) * pitch
            for side_index, side in enumerate(section.sides):
                y0 = side_y[side_index]
                if side.is_mis:
                    for offset, x0 in enumerate(slice_x):
                        unit_centers = _unit_centers(side, float(x0), y0)
                        for unit, index in np.ndindex(unit_centers.shape[:2]):
                            x, y = unit_centers[unit, index]
                            centers[
                                mis_slot_id(
                                    hall_id,
                                    first_slice + offset,
                                    side_index,
                                    unit,
                                    index,
                                )
                            ] = (float(x), float(y))
                    continue
                grid = _grid_centers(slice_x, pitch, y0, side.rows_per_slice)
                for offset, row in np.ndindex(grid.shape[:2]):
                    x, y = grid[offset, row]
                    centers[
                        grid_slot_id(
                            hall_id, first_slice + offset, side_index, row
                        )
                    ] = (float(x), float(y))
            section_x += section.slices * pitch

        hall_y = side_y[1] + right_depth + HALL_GAP
    return centers


class GridProjector:
    """Default ``SlotProjector`` over the cell grid described above."""

    def __init__(self, hall_configs: dict[int, HallConfig]) -> None:
        self._centers = build_slot_centers(hall_configs)
        self._by_key = {
            point_key(point): slot_id
            for slot_id, point in self._centers.items()
        }

    def center(self, slot_id: str) -> Point | None:
        return self._centers.get(slot_id)

    def slot_at(self, point: Point) -> str | None:
        return self._by_key.get(point_key(point))


def project_offset(
    projector: SlotProjector,
    source_slot: str,
    origin_slot: str,
    anchor_slot: str,
) -> str | None:
    """Slot reached by moving ``source_slot`` by the origin→anchor offset."""
    source = projector.center(source_slot)
    origin = projector.center(origin_slot)
    anchor = projector.center(anchor_slot)
    if source is None or origin is None or anchor is None:
        return None
    target = np.asarray(source) + (np.asarray(anchor) - np.asarray(origin))
    return projector.slot_at((float(target[0]), float(target[1])))
