"""Autosave drafts: the live snapshot plus its undo history, on local disk.

Autosave is fire-and-forget. ``save_in_background`` serializes the draft on
the caller's thread (so later edits cannot leak into it) and writes it from
a daemon thread; a failed write is logged and otherwise ignored, and never
touches the in-memory planner state. Writes go through a temporary file and
``os.replace`` so a crash mid-write leaves the previous draft intact. Each
record gets a sequence number when it is built; a write that reaches the
disk after a newer one has landed is skipped, so a delayed thread can never
put an older draft back.

``load`` returns None for a missing, unreadable, or invalid draft. The
history part is returned raw; ``PlannerHistory.restore`` validates it and
discards it wholesale if any entry is bad.
"""

from __future__ import annotations

import itertools
import json
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from slotengine.snapshot import PlannerSnapshot

console_logger = logging.getLogger(__name__)

DRAFT_FORMAT_VERSION = 1


@dataclass
class PlannerDraft:
    saved_at: str
    snapshot: PlannerSnapshot
    history_state: dict


class DraftStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._sequence = itertools.count(1)
        self._written_seq = 0

    def _build_record(
        self, snapshot: PlannerSnapshot, history_state: dict
    ) -> tuple[int, str]:
        payload = json.dumps(
            {
                "version": DRAFT_FORMAT_VERSION,
                "saved_at": datetime.now(timezone.utc).isoformat(),
                "snapshot": snapshot.to_dict(),
                "history": history_state,
            }
        )
        return next(self._sequence), payload

    def _write(self, seq: int, payload: str) -> bool:
        """Write ``payload`` unless a newer record is already on disk."""
        with self._lock:
            if seq <= self._written_seq:
                console_logger.debug(
                    "Skipping stale draft %d (draft %d already written)",
                    seq,
                    self._written_seq,
                )
                return False
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            with open(tmp_path, "w") as f:
                f.write(payload)
            os.replace(tmp_path, self.path)
            self._written_seq = seq
            return True

    def save(self, snapshot: PlannerSnapshot, history_state: dict) -> None:
        self._write(*self._build_record(snapshot, history_state))

    def save_in_background(
        self, snapshot: PlannerSnapshot, history_state: dict
    ) -> threading.Thread:
        seq, payload = self._build_record(snapshot, history_state)

        def run() -> None:
            try:
                self._write(seq, payload)
            except OSError as e:
                console_logger.warning(
                    "Autosave to %s failed: %s", self.path, e
                )

        thread = threading.Thread(target=run, name="planner-autosave", daemon=True)
        thread.start()
        return thread

    def load(self) -> PlannerDraft | None:
        try:
            with open(self.path) as f:
                raw = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            console_logger.warning("Ignoring unreadable draft %s: %s", self.path, e)
            return None

        if (
            not isinstance(raw, dict)
            or raw.get("version") != DRAFT_FORMAT_VERSION
            or not isinstance(raw.get("saved_at"), str)
            or not isinstance(raw.get("history"), dict)
        ):
            console_logger.warning("Ignoring draft %s with bad header", self.path)
            return None
        try:
            snapshot = PlannerSnapshot.from_dict(raw.get("snapshot"))
        except ValueError as e:
            console_logger.warning("Ignoring draft %s: %s", self.path, e)
            return None
        return PlannerDraft(
            saved_at=raw["saved_at"],
            snapshot=snapshot,
            history_state=raw["history"],
        )

    def clear(self) -> None:
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
