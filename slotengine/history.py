"""Undo/redo history stored as snapshot deltas.

The history is a linear log of entries with one cursor. Each entry holds the
``forward`` delta (state before → state after), the ``backward`` delta
(after → before) and the content key of the state after. Only the current
snapshot is kept in full; undo and redo rebuild neighbours by applying the
adjacent entry's delta to it, so an edit costs only the size of what it
changed.

    entries:  [e0] [e1] [e2] [e3]
    cursor:              ^ index == 2 → current == state after e1

``record`` is called with every observed state. A state whose key equals
the current key is a no-op. Otherwise any redo entries past the cursor are
dropped, the new entry appended and the cursor advanced; past
``max_entries`` the oldest entries are discarded and the cursor shifted
with them.

``export_state`` / ``PlannerHistory.restore`` give the persisted form used
by autosave drafts. Restoring replays the whole delta chain against the
recorded keys; any entry that fails to decode or replay discards the entire
history rather than leaving a chain that could corrupt the layout later.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .delta import Delta
from .snapshot import (
    PlannerSnapshot,
    apply_snapshot_delta,
    diff_snapshots,
    snapshot_delta_from_dict,
    snapshot_delta_to_dict,
    snapshot_key,
)

console_logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 50


@dataclass(frozen=True)
class HistoryEntry:
    forward: Delta
    backward: Delta
    key: str

    def to_dict(self) -> dict:
        return {
            "forward": snapshot_delta_to_dict(self.forward),
            "backward": snapshot_delta_to_dict(self.backward),
            "key": self.key,
        }

    @staticmethod
    def from_dict(d) -> HistoryEntry:
        if not isinstance(d, dict) or not isinstance(d.get("key"), str):
            raise ValueError("History entry needs a string key")
        return HistoryEntry(
            forward=snapshot_delta_from_dict(d.get("forward")),
            backward=snapshot_delta_from_dict(d.get("backward")),
            key=d["key"],
        )


class PlannerHistory:
    def __init__(
        self,
        snapshot: PlannerSnapshot,
        max_entries: int = MAX_HISTORY_ENTRIES,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.entries: list[HistoryEntry] = []
        self.index = 0
        self.current = snapshot.normalized()
        self.current_key = snapshot_key(self.current)

    @property
    def can_undo(self) -> bool:
        return self.index > 0

    @property
    def can_redo(self) -> bool:
        return self.index < len(self.entries)

    def record(self, snapshot: PlannerSnapshot) -> bool:
        """Observe a new state. Returns True if an entry was appended."""
        snapshot = snapshot.normalized()
        key = snapshot_key(snapshot)
        if key == self.current_key:
            return False

        forward = diff_snapshots(self.current, snapshot)
        backward = diff_snapshots(snapshot, self.current)
        if not forward or not backward:
            self.current, self.current_key = snapshot, key
            return False

        del self.entries[self.index :]
        self.entries.append(HistoryEntry(forward, backward, key))
        self.index += 1
        overflow = len(self.entries) - self.max_entries
        if overflow > 0:
            del self.entries[:overflow]
            self.index = max(0, self.index - overflow)
        self.current, self.current_key = snapshot, key
        return True

    def undo(self) -> PlannerSnapshot | None:
        """Step back one entry and return the reconstructed snapshot."""
        if not self.can_undo:
            return None
        entry = self.entries[self.index - 1]
        self.current = apply_snapshot_delta(self.current, entry.backward)
        self.current_key = snapshot_key(self.current)
        self.index -= 1
        return self.current

    def redo(self) -> PlannerSnapshot | None:
        """Step forward one entry and return the reconstructed snapshot."""
        if not self.can_redo:
            return None
        entry = self.entries[self.index]
        self.current = apply_snapshot_delta(self.current, entry.forward)
        self.current_key = entry.key
        self.index += 1
        return self.current

    def export_state(self) -> dict:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "index": self.index,
            "current_snapshot": self.current.to_dict(),
        }

    @staticmethod
    def _verify_chain(
        entries: list[HistoryEntry], index: int, current: PlannerSnapshot
    ) -> None:
        """Replay every delta from the cursor; raise ValueError on mismatch."""
        snapshot = current
        for entry in reversed(entries[:index]):
            if snapshot_key(snapshot) != entry.key:
                raise ValueError("History entry key does not match its state")
            snapshot = apply_snapshot_delta(snapshot, entry.backward)
        snapshot = current
        for entry in entries[index:]:
            snapshot = apply_snapshot_delta(snapshot, entry.forward)
            if snapshot_key(snapshot) != entry.key:
                raise ValueError("History entry key does not match its state")

    @classmethod
    def restore(
        cls,
        state,
        live_snapshot: PlannerSnapshot,
        max_entries: int = MAX_HISTORY_ENTRIES,
    ) -> PlannerHistory:
        """Rebuild a history from ``export_state`` output.

        Falls back to a fresh history rooted at ``live_snapshot`` if the
        state is malformed, does not describe ``live_snapshot``, or any
        entry fails to replay.
        """
        history = cls(live_snapshot, max_entries)
        try:
            if not isinstance(state, dict) or not isinstance(
                state.get("entries"), list
            ):
                raise ValueError("History state needs an entries list")
            current = PlannerSnapshot.from_dict(state.get("current_snapshot"))
            if snapshot_key(current) != history.current_key:
                raise ValueError("History does not describe the live layout")
            entries = [HistoryEntry.from_dict(e) for e in state["entries"]]
            index = state.get("index")
            if (
                not isinstance(index, int)
                or isinstance(index, bool)
                or not 0 <= index <= len(entries)
            ):
                raise ValueError(f"Invalid history cursor: {index!r}")
            cls._verify_chain(entries, index, current)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            console_logger.warning(
                "Discarding saved undo history: %s", e
            )
            return history

        # Trim the oldest undo entries first, then surplus redo entries.
        overflow = min(index, max(0, len(entries) - max_entries))
        history.entries = entries[overflow:][:max_entries]
        history.index = index - overflow
        return history
