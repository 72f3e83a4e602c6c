"""Tests for item catalog loading."""

import json

import pytest

from slotengine.catalog_io import ItemCatalog, load_catalog

SAMPLE_CATALOG = {
    "items": [
        {
            "id": "minecraft:stone",
            "texturePath": "textures/stone.png",
            "creativeTabs": ["building_blocks", 7],
            "registration": "block",
            "maxStackSize": 64,
        },
        {
            "id": "minecraft:ender_pearl",
            "texturePath": "textures/ender_pearl.png",
            "maxStackSize": 16,
        },
        {"id": "minecraft:air"},
        {"texturePath": "textures/orphan.png"},
        "garbage",
    ]
}


def test_from_dict_skips_entries_without_texture():
    catalog = ItemCatalog.from_dict(SAMPLE_CATALOG)
    assert len(catalog) == 2
    assert "minecraft:stone" in catalog
    assert "minecraft:air" not in catalog


def test_item_fields():
    catalog = ItemCatalog.from_dict(SAMPLE_CATALOG)
    stone = catalog.get("minecraft:stone")
    assert stone.texture_path == "textures/stone.png"
    assert stone.creative_tabs == ["building_blocks"]
    assert stone.registration == "block"

    pearl = catalog.get("minecraft:ender_pearl")
    assert pearl.max_stack_size == 16
    assert pearl.registration == "unknown"
    assert pearl.creative_tabs == []
    assert catalog.get("minecraft:air") is None


def test_first_duplicate_wins():
    catalog = ItemCatalog.from_dict(
        {
            "items": [
                {"id": "a", "texturePath": "first.png"},
                {"id": "a", "texturePath": "second.png"},
            ]
        }
    )
    assert len(catalog) == 1
    assert catalog.get("a").texture_path == "first.png"


def test_from_ids():
    catalog = ItemCatalog.from_ids(["a", "b"])
    assert "a" in catalog and "b" in catalog
    assert "c" not in catalog


@pytest.mark.parametrize("data", [{}, {"items": "x"}, []])
def test_missing_items_list(data):
    with pytest.raises(ValueError):
        ItemCatalog.from_dict(data)


def test_load_catalog(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(SAMPLE_CATALOG))
    catalog = load_catalog(path)
    assert len(catalog) == 2
    assert catalog.get("minecraft:stone").to_dict()["texturePath"] == (
        "textures/stone.png"
    )
