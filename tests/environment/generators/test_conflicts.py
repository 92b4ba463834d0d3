"""Tests for eviction-based placement of mandatory structures."""

from __future__ import annotations

from tests.helpers import make_context, make_prefab
from townsmith.environment.generators import Plaza
from townsmith.environment.generators.buildings import (
    ALWAYS_OPEN,
    ShopSlot,
    TownProp,
)
from townsmith.environment.generators.pipeline import (
    MandatoryPlacer,
    StampConflict,
    StampedPrefab,
)
from townsmith.environment.tile_types import TileTypeID
from townsmith.util.coordinates import Rect


def carve_house(ctx, rect: Rect):
    ctx.carve_hollow_rect(rect)
    return ctx.add_building(rect, "house")


class TestVictims:
    def test_clear_site_has_no_victims(self) -> None:
        ctx = make_context()
        assert MandatoryPlacer(ctx).victims_for(Rect(5, 5, 6, 4)) == []

    def test_overlapping_house_is_a_victim(self) -> None:
        ctx = make_context()
        house = carve_house(ctx, Rect(8, 8, 6, 4))
        assert MandatoryPlacer(ctx).victims_for(Rect(5, 5, 6, 4)) == [house]

    def test_house_within_margin_is_a_victim(self) -> None:
        """A house touching the site without sharing a cell still blocks it."""
        ctx = make_context()
        house = carve_house(ctx, Rect(11, 5, 6, 4))
        assert MandatoryPlacer(ctx).victims_for(Rect(5, 5, 6, 4)) == [house]

    def test_too_many_victims(self) -> None:
        ctx = make_context()
        carve_house(ctx, Rect(4, 4, 6, 4))
        carve_house(ctx, Rect(12, 4, 6, 4))
        placer = MandatoryPlacer(ctx, max_evictions=1)
        assert placer.victims_for(Rect(6, 5, 10, 6)) is None

    def test_protected_building_blocks(self) -> None:
        ctx = make_context()
        inn = carve_house(ctx, Rect(8, 8, 10, 8))
        placer = MandatoryPlacer(ctx, protected=[inn])
        assert placer.victims_for(Rect(5, 5, 6, 4)) is None

    def test_stray_wall_blocks(self) -> None:
        """Only buildings can be evicted; other blockers make the site unusable."""
        ctx = make_context()
        ctx.tiles[7, 7] = TileTypeID.WALL
        assert MandatoryPlacer(ctx).victims_for(Rect(5, 5, 6, 4)) is None

    def test_plaza_and_bounds(self) -> None:
        ctx = make_context()
        ctx.plaza = Plaza(center=(20, 15), rect=Rect(17, 12, 7, 7))
        placer = MandatoryPlacer(ctx)
        assert placer.victims_for(Rect(15, 10, 6, 4)) is None
        assert placer.victims_for(Rect(1, 1, 6, 4)) is None


class TestPlacePrefab:
    def test_evicts_single_blocking_house(self) -> None:
        ctx = make_context()
        house = carve_house(ctx, Rect(8, 8, 6, 4))
        placer = MandatoryPlacer(ctx)

        result = placer.place_prefab(make_prefab("shop", 7, 5, category="shop"), 6, 6)

        assert isinstance(result, StampedPrefab)
        assert house not in ctx.buildings
        assert ctx.eviction_count == 1
        assert ctx.buildings == [result.building]

    def test_protected_house_survives(self) -> None:
        ctx = make_context()
        house = carve_house(ctx, Rect(8, 8, 6, 4))
        placer = MandatoryPlacer(ctx, protected=[house])

        result = placer.place_prefab(make_prefab("shop", 7, 5, category="shop"), 6, 6)

        assert result is StampConflict.OCCUPIED
        assert ctx.buildings == [house]
        assert ctx.tiles[8, 8] == TileTypeID.WALL
        assert ctx.eviction_count == 0

    def test_out_of_bounds_never_evicts(self) -> None:
        ctx = make_context()
        carve_house(ctx, Rect(2, 2, 6, 4))
        result = MandatoryPlacer(ctx).place_prefab(make_prefab("shop", 7, 5), 1, 1)
        assert result is StampConflict.OUT_OF_BOUNDS
        assert len(ctx.buildings) == 1


class TestPlaceRect:
    def test_carves_hollow_rect(self) -> None:
        ctx = make_context()
        building = MandatoryPlacer(ctx).place_rect(Rect(5, 5, 10, 8), "inn")
        assert building is not None
        assert building.building_type == "inn"
        assert ctx.tiles[5, 5] == TileTypeID.WALL
        assert ctx.tiles[6, 6] == TileTypeID.FLOOR
        assert building.door_positions == []

    def test_evicts_then_carves(self) -> None:
        ctx = make_context()
        house = carve_house(ctx, Rect(6, 6, 6, 4))
        building = MandatoryPlacer(ctx).place_rect(Rect(5, 5, 10, 8), "inn")
        assert building is not None
        assert house not in ctx.buildings
        assert ctx.eviction_count == 1

    def test_blocked_returns_none(self) -> None:
        ctx = make_context()
        ctx.tiles[7, 7] = TileTypeID.WALL
        assert MandatoryPlacer(ctx).place_rect(Rect(5, 5, 10, 8), "inn") is None
        assert ctx.buildings == []


class TestRemoveBuilding:
    def test_drops_tiles_props_slots_and_inn(self) -> None:
        """Removing a building clears everything bound to it."""
        ctx = make_context()
        inn = carve_house(ctx, Rect(5, 5, 8, 6))
        ctx.tiles[9, 10] = TileTypeID.DOOR
        inn.door_positions = [(9, 10)]
        ctx.inn = inn
        ctx.add_prop(TownProp(7, 7, "bed"))
        ctx.add_prop(TownProp(14, 8, "sign"))
        ctx.add_prop(TownProp(30, 20, "well"))
        ctx.shops.append(ShopSlot(inn, (9, 10), (9, 9), "inn", "Inn", ALWAYS_OPEN))

        ctx.remove_building(inn)

        assert ctx.buildings == []
        assert ctx.inn is None
        assert ctx.shops == []
        assert [p.prop_type for p in ctx.props] == ["well"]
        assert ctx.tiles[5, 5] == TileTypeID.FLOOR
        assert ctx.tiles[9, 10] == TileTypeID.FLOOR
