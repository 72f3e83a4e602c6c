from .controller import PlannerController, PlannerState
from .drafts import DraftStore
from .settings import PlannerSettings

__all__ = [
    "DraftStore",
    "PlannerController",
    "PlannerSettings",
    "PlannerState",
]
