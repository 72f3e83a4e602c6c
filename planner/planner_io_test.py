"""Tests for planner_io save/load helpers."""

import json
from datetime import datetime, timezone

import pytest
from PIL import Image

from slotengine.presets import build_hall_configs
from slotengine.snapshot import PlannerSnapshot

from planner.planner_io import (
    build_save_file,
    load_planner,
    load_planner_json,
    load_planner_png,
    save_planner_json,
    save_planner_png,
)

SAMPLE_SNAPSHOT = PlannerSnapshot(
    storage_layout_preset="double",
    fill_direction="column",
    hall_configs=build_hall_configs("double"),
    slot_assignments={"1:g:0:0:0": "minecraft:stone", "2:g:3:1:2": "minecraft:dirt"},
    layout_name="Base",
    hall_names={1: "Ores"},
).normalized()


def test_save_file_shape():
    saved_at = datetime(2024, 5, 1, tzinfo=timezone.utc)
    data = build_save_file(SAMPLE_SNAPSHOT, saved_at)
    assert data["version"] == 1
    assert data["saved_at"] == "2024-05-01T00:00:00+00:00"
    assert data["fill_direction"] == "column"
    assert data["label_names"]["layout_name"] == "Base"


def test_save_and_load_png_roundtrip(tmp_path):
    """Save a layout in a PNG, load it back, and verify equality."""
    img = Image.new("RGB", (100, 100), "green")
    path = str(tmp_path / "layout.png")

    save_planner_png(img, SAMPLE_SNAPSHOT, path)
    loaded = load_planner_png(path)

    assert loaded == SAMPLE_SNAPSHOT


def test_load_png_missing_chunk(tmp_path):
    """A plain PNG without metadata raises ValueError."""
    img = Image.new("RGB", (100, 100), "red")
    path = str(tmp_path / "plain.png")
    img.save(path)

    with pytest.raises(ValueError, match="slot_planner_layout"):
        load_planner_png(path)


def test_save_and_load_json_roundtrip(tmp_path):
    path = str(tmp_path / "layout.json")
    save_planner_json(SAMPLE_SNAPSHOT, path)
    assert load_planner_json(path) == SAMPLE_SNAPSHOT


def test_load_layout_dispatches_by_extension(tmp_path):
    """load_planner dispatches to PNG or JSON loader based on extension."""
    img = Image.new("RGB", (100, 100), "blue")
    png_path = str(tmp_path / "test.png")
    save_planner_png(img, SAMPLE_SNAPSHOT, png_path)
    assert load_planner(png_path) == SAMPLE_SNAPSHOT

    json_path = str(tmp_path / "TEST.JSON")
    save_planner_json(SAMPLE_SNAPSHOT, json_path)
    assert load_planner(json_path) == SAMPLE_SNAPSHOT


def test_load_layout_unsupported_extension(tmp_path):
    with pytest.raises(ValueError, match="Unsupported file extension"):
        load_planner(str(tmp_path / "layout.txt"))


@pytest.mark.parametrize("version", [None, 0, 2, "1"])
def test_wrong_version_is_rejected(tmp_path, version):
    data = build_save_file(SAMPLE_SNAPSHOT)
    if version is None:
        del data["version"]
    else:
        data["version"] = version
    path = str(tmp_path / "layout.json")
    with open(path, "w") as f:
        json.dump(data, f)
    with pytest.raises(ValueError):
        load_planner_json(path)


def test_corrupt_json(tmp_path):
    path = tmp_path / "layout.json"
    path.write_text("{not json")
    with pytest.raises(ValueError, match="Corrupt"):
        load_planner_json(str(path))


def test_invalid_contents(tmp_path):
    data = build_save_file(SAMPLE_SNAPSHOT)
    data["hall_configs"] = {}
    path = str(tmp_path / "layout.json")
    with open(path, "w") as f:
        json.dump(data, f)
    with pytest.raises(ValueError):
        load_planner_json(path)
