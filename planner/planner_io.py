"""Save and open planner layouts as PNG (with embedded metadata) or JSON.

A save file is the snapshot's JSON plus ``version`` and ``saved_at``. The
PNG form embeds that JSON in a tEXt chunk (key: ``slot_planner_layout``) of
an image supplied by the caller, so one file is both a shareable picture of
the layout and a complete layout that can be opened again. Plain JSON files
are also supported.

Loading is all-or-nothing: a wrong version or any schema failure raises
ValueError and nothing is applied.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from PIL import Image
from PIL.PngImagePlugin import PngInfo

from slotengine.snapshot import SAVE_FILE_VERSION, PlannerSnapshot

console_logger = logging.getLogger(__name__)

METADATA_KEY = "slot_planner_layout"


def build_save_file(
    snapshot: PlannerSnapshot, saved_at: datetime | None = None
) -> dict:
    saved_at = saved_at or datetime.now(timezone.utc)
    return {
        "version": SAVE_FILE_VERSION,
        "saved_at": saved_at.isoformat(),
        **snapshot.to_dict(),
    }


def save_planner_json(snapshot: PlannerSnapshot, path: str) -> None:
    with open(path, "w") as f:
        json.dump(build_save_file(snapshot), f, indent=2)
        f.write("\n")
    console_logger.info("Saved layout to %s", path)


def save_planner_png(
    img: Image.Image, snapshot: PlannerSnapshot, path: str
) -> None:
    """Save an image with the layout save file embedded as a PNG tEXt chunk."""
    info = PngInfo()
    info.add_text(METADATA_KEY, json.dumps(build_save_file(snapshot)))
    img.save(path, pnginfo=info)
    console_logger.info("Saved layout image to %s", path)


def _parse_save_file(data) -> PlannerSnapshot:
    if not isinstance(data, dict) or data.get("version") != SAVE_FILE_VERSION:
        raise ValueError(
            f"Unsupported save file version: "
            f"{data.get('version') if isinstance(data, dict) else None!r}"
        )
    return PlannerSnapshot.from_dict(data)


def load_planner_png(path: str) -> PlannerSnapshot:
    """Load a snapshot from a PNG file's tEXt metadata.

    Raises ValueError if the PNG does not contain layout metadata.
    """
    with Image.open(path) as img:
        text_data = getattr(img, "text", None)
        if not text_data or METADATA_KEY not in text_data:
            raise ValueError(
                f"PNG file does not contain layout metadata (missing '{METADATA_KEY}' chunk)"
            )
        raw = text_data[METADATA_KEY]
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Corrupt layout metadata: {e}") from e
    return _parse_save_file(data)


def load_planner_json(path: str) -> PlannerSnapshot:
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Corrupt layout file: {e}") from e
    return _parse_save_file(data)


def load_planner(path: str) -> PlannerSnapshot:
    """Load a layout from a file, dispatching by extension.

    Supports .png (reads embedded metadata) and .json (reads raw JSON).
    Raises ValueError for unsupported extensions or invalid contents.
    """
    lower = path.lower()
    if lower.endswith(".png"):
        snapshot = load_planner_png(path)
    elif lower.endswith(".json"):
        snapshot = load_planner_json(path)
    else:
        raise ValueError(f"Unsupported file extension: {path}")
    console_logger.info("Opened layout from %s", path)
    return snapshot
