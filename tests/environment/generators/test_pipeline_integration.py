"""Integration tests for the full town pipeline."""

from __future__ import annotations

import dataclasses
import random

import numpy as np
import pytest

from tests.helpers import count_tiles, hollow_rows
from townsmith.environment import tile_types
from townsmith.environment.generators import (
    TownLayout,
    create_pipeline,
    create_town_pipeline,
)
from townsmith.environment.generators.buildings import PrefabRegistry
from townsmith.environment.generators.pipeline.layers.openings import door_candidates
from townsmith.environment.tile_types import TileTypeID

SHOP_LIMITS = {"small": 3, "big": 4, "city": 6}


def fingerprint(layout: TownLayout) -> list[tuple]:
    return [
        (b.building_type, b.footprint, tuple(b.door_positions), b.prefab_id)
        for b in layout.buildings
    ]


# =============================================================================
# Determinism
# =============================================================================


class TestDeterminism:
    def test_same_seed_same_town(self, default_prefabs) -> None:
        a = create_town_pipeline("big", "harbor", prefabs=default_prefabs).generate()
        b = create_town_pipeline("big", "harbor", prefabs=default_prefabs).generate()

        np.testing.assert_array_equal(a.tiles, b.tiles)
        np.testing.assert_array_equal(a.road_mask, b.road_mask)
        assert a.name == b.name
        assert fingerprint(a) == fingerprint(b)
        assert [(s.shop_type, s.door) for s in a.shops] == [
            (s.shop_type, s.door) for s in b.shops
        ]
        assert a.diagnostics == b.diagnostics

    def test_different_seeds_differ(self) -> None:
        a = create_town_pipeline("small", 1).generate()
        b = create_town_pipeline("small", 2).generate()
        assert not np.array_equal(a.tiles, b.tiles)

    def test_external_random_function(self, default_prefabs) -> None:
        """A host-supplied random function drives every draw."""
        layouts = [
            create_town_pipeline(
                "small", prefabs=default_prefabs, rng_source=random.Random(99).random
            ).generate()
            for _ in range(2)
        ]
        np.testing.assert_array_equal(layouts[0].tiles, layouts[1].tiles)
        assert fingerprint(layouts[0]) == fingerprint(layouts[1])

    def test_generate_twice_from_one_pipeline(self) -> None:
        generator = create_pipeline("town", size="small", seed="twice")
        np.testing.assert_array_equal(
            generator.generate().tiles, generator.generate().tiles
        )


# =============================================================================
# Factory
# =============================================================================


class TestFactory:
    def test_unknown_pipeline(self) -> None:
        with pytest.raises(ValueError, match="Unknown pipeline"):
            create_pipeline("village")

    def test_unknown_size(self) -> None:
        with pytest.raises(ValueError, match="Unknown town size"):
            create_town_pipeline("huge")

    def test_castle_is_always_city(self) -> None:
        layout = create_pipeline("castle", size="small", seed=3).generate()
        assert layout.size == "city"
        assert layout.kind == "castle"
        assert (layout.width, layout.height) == (120, 80)
        assert layout.name.startswith("Castle ")
        assert any(b.building_type == "keep" for b in layout.buildings)

    @pytest.mark.parametrize(
        ("size", "dims"), [("small", (60, 40)), ("big", (90, 60)), ("city", (120, 80))]
    )
    def test_grid_sizes(self, size, dims) -> None:
        layout = create_town_pipeline(size, seed=4).generate()
        assert layout.tiles.shape == dims
        assert layout.size == size

    def test_fixed_name_is_kept(self) -> None:
        layout = create_town_pipeline("small", seed=4, name="Millbrook").generate()
        assert layout.name == "Millbrook"

    def test_entry_position_picks_the_gate(self) -> None:
        layout = create_town_pipeline("small", seed=4, entry_pos=(2, 20)).generate()
        assert layout.gate == (1, 20)
        assert layout.gate_door == (0, 20)
        assert layout.tiles[0, 20] == TileTypeID.DOOR


# =============================================================================
# Prefab scenarios
# =============================================================================


class TestPrefabScenarios:
    def test_no_prefabs_means_procedural_buildings(self) -> None:
        """Every building is carved, with one door at a side midpoint."""
        layout = create_town_pipeline("big", seed=8).generate()

        assert layout.buildings
        assert all(b.is_procedural for b in layout.buildings)
        assert layout.diagnostics.prefab_usage == {}
        for building in layout.buildings:
            midpoints = {c.position for c in door_candidates(building.footprint)}
            assert len(building.door_positions) == 1
            assert building.door in midpoints

    def test_oversized_prefab_falls_back_to_procedural(self) -> None:
        huge = {
            "id": "manor",
            "size": {"w": 30, "h": 30},
            "tiles": hollow_rows(30, 30, doors=[(15, 29)]),
        }
        prefabs = PrefabRegistry.from_dict({"houses": [huge]})
        layout = create_town_pipeline("small", seed=8, prefabs=prefabs).generate()

        houses = [b for b in layout.buildings if b.building_type in ("house", "shop")]
        assert houses
        assert all(b.prefab_id is None for b in houses)

    def test_full_catalogue(self, default_prefabs) -> None:
        generator = create_town_pipeline("city", seed=8, prefabs=default_prefabs)
        layout = generator.generate()
        usage = layout.diagnostics.prefab_usage
        assert usage.get("inn") == ("inn_gilded_tankard",)
        assert usage.get("shop")
        assert usage.get("plaza") == ("plaza_village_green",)
        assert layout.inn is not None
        assert layout.inn.prefab_id == "inn_gilded_tankard"

    def test_strict_mode_has_no_procedural_houses(self, default_prefabs) -> None:
        layout = create_town_pipeline(
            "big", seed=8, prefabs=default_prefabs, strict_prefabs=True
        ).generate()
        for building in layout.buildings:
            if building.building_type == "house":
                assert building.prefab_id is not None


# =============================================================================
# Layout contents
# =============================================================================


class TestLayoutContents:
    @pytest.fixture(scope="class")
    def layout(self, default_prefabs) -> TownLayout:
        generator = create_town_pipeline("big", "market", prefabs=default_prefabs)
        return generator.generate()

    def test_shops_within_limit(self, layout) -> None:
        shops = [s for s in layout.shops if not s.is_inn]
        assert 1 <= len(shops) <= SHOP_LIMITS["big"]
        assert len({s.shop_type for s in shops}) == len(shops)

    def test_shop_doors_and_insides(self, layout) -> None:
        for slot in layout.shops:
            assert layout.tiles[slot.door] == TileTypeID.DOOR
            assert slot.door in slot.building.door_positions
            assert slot.building.contains_interior(*slot.inside)
            assert slot.building in layout.buildings

    def test_one_inn_slot(self, layout) -> None:
        inns = [s for s in layout.shops if s.is_inn]
        assert len(inns) == 1
        assert inns[0].building is layout.inn
        assert all(inns[0].schedule.is_open(m) for m in range(0, 1440, 60))

    def test_diagnostics_match_layout(self, layout) -> None:
        diag = layout.diagnostics
        assert diag.building_count == len(layout.buildings)
        assert diag.road_tiles == count_tiles(layout.tiles, TileTypeID.ROAD)
        assert diag.road_mask_cells == int(np.count_nonzero(layout.road_mask))
        assert diag.road_mask_cells >= diag.road_tiles
        assert diag.building_target == 22
        assert diag.unreachable_doors == len(layout.unreachable_doors)
        assert "buildings:" in diag.as_log_line()

    def test_population_targets(self, layout) -> None:
        roamers = min(14, max(6, len(layout.buildings) // 2))
        assert layout.population.roamers == roamers
        assert layout.population.guards == min(3, roamers)

    def test_props_sit_on_floor(self, layout) -> None:
        for prop in layout.props:
            assert layout.tiles[prop.x, prop.y] == TileTypeID.FLOOR, prop

    def test_walkable_outdoor_cells(self, layout) -> None:
        cells = layout.walkable_outdoor_cells()
        walkable = tile_types.get_walkable_map(layout.tiles)
        assert cells
        assert all(layout.outdoor_mask[c] and walkable[c] for c in cells)
        assert layout.gate in cells

    def test_text_dump(self, layout) -> None:
        rows = layout.to_text().split("\n")
        assert len(rows) == layout.height
        assert all(len(row) == layout.width for row in rows)
        assert rows[-1][layout.gate_door[0]] == "+"

    def test_layout_is_frozen(self, layout) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            layout.name = "Elsewhere"  # type: ignore[misc]

    def test_castle_has_more_guards(self, default_prefabs) -> None:
        castle = create_pipeline("castle", seed=3, prefabs=default_prefabs).generate()
        roamers = castle.population.roamers
        assert castle.population.guards == min(6, roamers)
