"""Tests for drop placement and swap resolution."""

from slotengine.payload import (
    CatalogPayload,
    LayoutGroupPayload,
    LayoutSinglePayload,
    incoming_entries,
)
from slotengine.placement import (
    Placement,
    PlacementContext,
    apply_drop,
    preview_drop,
    remove_payload_items,
    resolve_placements,
    resolve_swaps,
)
from slotengine.presets import build_hall_configs
from slotengine.slots import grid_slot_id, mis_slot_id
from slotengine.types import HallConfig, HallSectionConfig, HallSideConfig

KNOWN = {"a", "b", "c", "d", "x"}


def g(slice_, side, row):
    return grid_slot_id(1, slice_, side, row)


def _context(fill_direction="row"):
    """3 slices, 2 rows per side. Row order: left rows, then right rows."""
    side = HallSideConfig("chest", 2, 54, 1)
    hall = HallConfig(sections=[HallSectionConfig(3, side, side)])
    return PlacementContext.build({1: hall}, fill_direction, KNOWN)


# ---------------------------------------------------------------------------
# Catalog drops
# ---------------------------------------------------------------------------


class TestCatalogDrops:
    def test_sequential_from_anchor(self):
        ctx = _context()
        result = apply_drop(g(0, 0, 0), CatalogPayload(("a", "b")), {}, ctx)
        assert result == {g(0, 0, 0): "a", g(1, 0, 0): "b"}

    def test_follows_column_order(self):
        ctx = _context("column")
        result = apply_drop(g(0, 0, 0), CatalogPayload(("a", "b")), {}, ctx)
        assert result == {g(0, 0, 0): "a", g(0, 0, 1): "b"}

    def test_skips_occupied_slots(self):
        ctx = _context()
        result = apply_drop(
            g(0, 0, 0), CatalogPayload(("a", "b")), {g(1, 0, 0): "x"}, ctx
        )
        assert result == {g(0, 0, 0): "a", g(1, 0, 0): "x", g(2, 0, 0): "b"}

    def test_never_displaces(self):
        ctx = _context()
        last = ctx.ordered_slot_ids[-1]
        assert apply_drop(last, CatalogPayload(("a",)), {last: "x"}, ctx) is None

    def test_item_already_placed_moves(self):
        ctx = _context()
        result = apply_drop(
            g(0, 0, 0), CatalogPayload(("a",)), {g(2, 0, 0): "a"}, ctx
        )
        assert result == {g(0, 0, 0): "a"}

    def test_excess_items_are_dropped(self):
        ctx = _context()
        last = ctx.ordered_slot_ids[-1]
        assert last == g(2, 1, 1)
        result = apply_drop(last, CatalogPayload(("a", "b", "c")), {}, ctx)
        assert result == {last: "a"}

    def test_unknown_items_are_filtered(self):
        ctx = _context()
        result = apply_drop(g(0, 0, 0), CatalogPayload(("zzz", "a")), {}, ctx)
        assert result == {g(0, 0, 0): "a"}

    def test_repeated_items_land_once(self):
        ctx = _context()
        result = apply_drop(g(0, 0, 0), CatalogPayload(("a", "a", "b")), {}, ctx)
        assert result == {g(0, 0, 0): "a", g(1, 0, 0): "b"}

    def test_nothing_known(self):
        ctx = _context()
        payload = CatalogPayload(("zzz",))
        assert resolve_placements(g(0, 0, 0), payload, {}, ctx) == []
        assert apply_drop(g(0, 0, 0), payload, {}, ctx) is None

    def test_invalid_anchor(self):
        ctx = _context()
        assert apply_drop("9:g:0:0:0", CatalogPayload(("a",)), {}, ctx) is None

    def test_inputs_are_not_mutated(self):
        ctx = _context()
        assignments = {g(1, 0, 0): "x"}
        apply_drop(g(0, 0, 0), CatalogPayload(("a", "b")), assignments, ctx)
        preview_drop(g(0, 0, 0), CatalogPayload(("a", "b")), assignments, ctx)
        assert assignments == {g(1, 0, 0): "x"}


# ---------------------------------------------------------------------------
# Layout moves and swaps
# ---------------------------------------------------------------------------


class TestLayoutMoves:
    def test_move_to_empty_slot(self):
        ctx = _context()
        payload = LayoutSinglePayload("a", g(0, 0, 0))
        result = apply_drop(g(2, 1, 0), payload, {g(0, 0, 0): "a"}, ctx)
        assert result == {g(2, 1, 0): "a"}

    def test_two_slot_swap(self):
        ctx = _context()
        assignments = {g(0, 0, 0): "a", g(1, 0, 0): "b"}
        payload = LayoutSinglePayload("a", g(0, 0, 0))
        assert apply_drop(g(1, 0, 0), payload, assignments, ctx) == {
            g(1, 0, 0): "a",
            g(0, 0, 0): "b",
        }
        assert preview_drop(g(1, 0, 0), payload, assignments, ctx) == [
            Placement(g(1, 0, 0), "a"),
            Placement(g(0, 0, 0), "b", "swap"),
        ]

    def test_drop_on_own_slot_changes_nothing(self):
        ctx = _context()
        assignments = {g(0, 0, 0): "a", g(1, 0, 0): "b"}
        payload = LayoutSinglePayload("a", g(0, 0, 0))
        assert apply_drop(g(0, 0, 0), payload, assignments, ctx) == assignments

    def test_block_keeps_its_shape(self):
        ctx = _context()
        assignments = {g(0, 0, 0): "a", g(0, 0, 1): "b"}
        payload = LayoutGroupPayload(("a", "b"), (g(0, 0, 0), g(0, 0, 1)), g(0, 0, 0))
        result = apply_drop(g(2, 0, 0), payload, assignments, ctx)
        assert result == {g(2, 0, 0): "a", g(2, 0, 1): "b"}

    def test_block_falls_back_to_sequential(self):
        # Shifting down by one row would put "b" in the aisle.
        ctx = _context()
        assignments = {g(0, 0, 0): "a", g(0, 0, 1): "b"}
        payload = LayoutGroupPayload(("a", "b"), (g(0, 0, 0), g(0, 0, 1)), g(0, 0, 0))
        result = apply_drop(g(2, 0, 1), payload, assignments, ctx)
        assert result == {g(2, 0, 1): "a", g(0, 1, 0): "b"}

    def test_block_displaces_into_vacated_slots(self):
        ctx = _context()
        assignments = {g(0, 0, 0): "a", g(1, 0, 0): "b", g(2, 0, 0): "c"}
        payload = LayoutGroupPayload(("a", "b"), (g(0, 0, 0), g(1, 0, 0)), g(0, 0, 0))
        result = apply_drop(g(1, 0, 0), payload, assignments, ctx)
        assert result == {g(1, 0, 0): "a", g(2, 0, 0): "b", g(0, 0, 0): "c"}
        # every item still appears exactly once
        assert sorted(result.values()) == ["a", "b", "c"]

    def test_refused_when_displaced_item_has_nowhere_to_go(self):
        ctx = _context()
        assignments = {g(1, 0, 0): "b"}
        payload = LayoutSinglePayload("a", "9:g:0:0:0")
        assert apply_drop(g(1, 0, 0), payload, assignments, ctx) is None
        # the preview still shows the placement, without swaps
        assert preview_drop(g(1, 0, 0), payload, assignments, ctx) == [
            Placement(g(1, 0, 0), "a")
        ]


class TestStorageUnitMoves:
    """Hall 3 of the cross preset: one 54-slot unit per slice, two columns."""

    def _context(self):
        return PlacementContext.build(build_hall_configs("cross"), "row", KNOWN)

    def m(self, slice_, index):
        return mis_slot_id(3, slice_, 0, 0, index)

    def _column_block(self):
        # indices 0, 2, 4 are the first column of the unit grid
        sources = (self.m(0, 0), self.m(0, 2), self.m(0, 4))
        assignments = dict(zip(sources, ("a", "b", "c")))
        payload = LayoutGroupPayload(("a", "b", "c"), sources, self.m(0, 0))
        return assignments, payload

    def test_block_keeps_its_shape_in_another_unit(self):
        ctx = self._context()
        assignments, payload = self._column_block()
        result = apply_drop(self.m(2, 10), payload, assignments, ctx)
        assert result == {
            self.m(2, 10): "a",
            self.m(2, 12): "b",
            self.m(2, 14): "c",
        }

    def test_block_running_off_the_unit_falls_back(self):
        ctx = self._context()
        assignments, payload = self._column_block()
        result = apply_drop(self.m(0, 53), payload, assignments, ctx)
        assert result == {
            self.m(0, 53): "a",
            self.m(1, 0): "b",
            self.m(1, 1): "c",
        }


class TestResolveSwaps:
    def test_catalog_payload_has_no_swaps(self):
        payload = CatalogPayload(("a",))
        placements = [Placement(g(0, 0, 0), "a")]
        assert (
            resolve_swaps(payload, [], placements, {g(0, 0, 0): "x"}, {g(0, 0, 0)})
            == []
        )

    def test_infeasible(self):
        ctx = _context()
        payload = LayoutSinglePayload("a", "9:g:0:0:0")
        placements = [Placement(g(1, 0, 0), "a")]
        entries = incoming_entries(payload, KNOWN)
        assert (
            resolve_swaps(
                payload, entries, placements, {g(1, 0, 0): "b"}, ctx.valid_slot_ids
            )
            is None
        )


def test_remove_payload_items():
    ctx = _context()
    assignments = {g(0, 0, 0): "a", g(1, 0, 0): "b", g(2, 0, 0): "c"}
    payload = LayoutGroupPayload(("a", "b"), (g(0, 0, 0), g(1, 0, 0)), g(0, 0, 0))
    assert remove_payload_items(payload, assignments, ctx.valid_slot_ids) == {
        g(2, 0, 0): "c"
    }
    assert (
        remove_payload_items(CatalogPayload(("c",)), assignments, ctx.valid_slot_ids)
        == assignments
    )
