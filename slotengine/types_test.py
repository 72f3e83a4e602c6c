"""Tests for hall configuration types."""

import pytest

from slotengine.types import (
    MAX_MIS_UNITS_PER_SLICE,
    MAX_ROWS_PER_SLICE,
    MAX_SLICES,
    HallConfig,
    HallSectionConfig,
    HallSideConfig,
    hall_configs_from_dict,
    hall_configs_to_dict,
    parse_fill_direction,
)


def _side(side_type="chest", **kw):
    return {"type": side_type, **kw}


def _hall_dict(slices=4, **kw):
    return {
        "sections": [
            {"slices": slices, "side_left": _side(), "side_right": _side()}
        ],
        **kw,
    }


class TestHallSideConfig:
    def test_defaults_per_type(self):
        assert HallSideConfig.from_dict(_side("bulk")).rows_per_slice == 1
        assert HallSideConfig.from_dict(_side("chest")).rows_per_slice == 4
        mis = HallSideConfig.from_dict(_side("mis"))
        assert mis.is_mis
        assert mis.mis_units_per_slice == 4
        assert mis.mis_width == 2

    def test_values_are_clamped(self):
        side = HallSideConfig.from_dict(
            _side("chest", rows_per_slice=99, mis_width=0)
        )
        assert side.rows_per_slice == MAX_ROWS_PER_SLICE
        assert side.mis_width == 1
        mis = HallSideConfig.from_dict(_side("mis", rows_per_slice=99))
        assert mis.rows_per_slice == MAX_MIS_UNITS_PER_SLICE

    def test_non_numeric_values_fall_back(self):
        side = HallSideConfig.from_dict(
            _side("chest", rows_per_slice="lots", mis_slots_per_slice=True)
        )
        assert side.rows_per_slice == 4
        assert side.mis_slots_per_slice == 54

    def test_plain_sides_have_no_units(self):
        assert HallSideConfig("chest", 4).mis_units_per_slice == 0

    @pytest.mark.parametrize("data", [None, {}, {"type": "barrel"}])
    def test_invalid(self, data):
        with pytest.raises(ValueError):
            HallSideConfig.from_dict(data)


class TestHallConfig:
    def test_section_offsets(self):
        hall = HallConfig(
            sections=[HallSectionConfig(3), HallSectionConfig(2), HallSectionConfig(5)]
        )
        assert hall.section_slice_offsets() == [0, 3, 5]
        assert hall.total_slices == 10

    def test_slices_clamped(self):
        hall = HallConfig.from_dict(_hall_dict(slices=10_000))
        assert hall.sections[0].slices == MAX_SLICES

    def test_bad_direction_falls_back(self):
        assert HallConfig.from_dict(_hall_dict(direction="up")).direction == "east"

    def test_needs_sections(self):
        with pytest.raises(ValueError):
            HallConfig.from_dict({"sections": []})

    def test_round_trip(self):
        hall = HallConfig.from_dict(_hall_dict(direction="north", name="Ores"))
        assert HallConfig.from_dict(hall.to_dict()) == hall


class TestHallConfigs:
    def test_ids_are_sorted_ints(self):
        configs = hall_configs_from_dict({"3": _hall_dict(), "1": _hall_dict()})
        assert list(configs) == [1, 3]
        assert list(hall_configs_to_dict(configs)) == ["1", "3"]

    @pytest.mark.parametrize("hall_id", ["0", "-1", "abc", "1.5"])
    def test_invalid_ids(self, hall_id):
        with pytest.raises(ValueError):
            hall_configs_from_dict({hall_id: _hall_dict()})

    def test_empty(self):
        with pytest.raises(ValueError):
            hall_configs_from_dict({})


def test_parse_fill_direction():
    assert parse_fill_direction("column") == "column"
    with pytest.raises(ValueError):
        parse_fill_direction("diagonal")
