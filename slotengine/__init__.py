from .history import PlannerHistory
from .placement import (
    Placement,
    PlacementContext,
    apply_drop,
    preview_drop,
    resolve_placements,
    resolve_swaps,
)
from .slots import ordered_slots
from .snapshot import PlannerSnapshot

__all__ = [
    "Placement",
    "PlacementContext",
    "PlannerHistory",
    "PlannerSnapshot",
    "apply_drop",
    "ordered_slots",
    "preview_drop",
    "resolve_placements",
    "resolve_swaps",
]
