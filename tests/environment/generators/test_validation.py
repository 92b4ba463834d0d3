"""Tests for the structural layout checks."""

from __future__ import annotations

import dataclasses

import numpy as np
import pytest

from townsmith.environment.generators import TownLayout, validate_layout
from townsmith.environment.generators.buildings import Building
from townsmith.environment.generators.pipeline import create_town_pipeline
from townsmith.environment.generators.validation import (
    DOOR_ROAD_REACH,
    check_border,
    check_door_fronts,
    check_door_reachability,
    check_no_overlap,
    check_plaza_open,
    check_window_spacing,
    outdoor_reachable_from_gate,
    outward_steps,
    reachable_from,
    road_reachable_doors,
)
from townsmith.environment.tile_types import TileTypeID
from townsmith.util.coordinates import Rect, manhattan

PROCEDURAL_SEEDS = [f"proc-{i}" for i in range(10)] + ["millbrook"]


@pytest.fixture(scope="module")
def layout(default_prefabs) -> TownLayout:
    return create_town_pipeline("small", seed=11, prefabs=default_prefabs).generate()


def with_tiles(layout: TownLayout, tiles: np.ndarray) -> TownLayout:
    return dataclasses.replace(layout, tiles=tiles)


class TestReachableFrom:
    def test_wall_splits_the_grid(self) -> None:
        passable = np.ones((6, 4), dtype=bool)
        passable[3, :] = False
        reached = reachable_from(passable, [(0, 0)])
        assert reached[:3, :].all()
        assert not reached[3:, :].any()

    def test_multiple_roots(self) -> None:
        passable = np.ones((6, 4), dtype=bool)
        passable[3, :] = False
        assert reachable_from(passable, [(0, 0), (5, 3)]).sum() == 20

    def test_no_diagonal_steps(self) -> None:
        passable = np.array([[True, False], [False, True]])
        reached = reachable_from(passable, [(0, 0)])
        assert not reached[1, 1]


class TestGeneratedTownsPass:
    """Every generated town passes every check."""

    @pytest.mark.parametrize(
        ("size", "kind"),
        [("small", "town"), ("big", "town"), ("city", "town"), ("city", "castle")],
    )
    @pytest.mark.parametrize("seed", [*range(10), "oakford"])
    def test_with_prefabs(self, default_prefabs, size, kind, seed) -> None:
        layout = create_town_pipeline(
            size, seed, kind=kind, prefabs=default_prefabs
        ).generate()
        assert validate_layout(layout) == []

    @pytest.mark.parametrize(
        ("size", "kind"),
        [("small", "town"), ("big", "town"), ("city", "town"), ("city", "castle")],
    )
    @pytest.mark.parametrize("seed", PROCEDURAL_SEEDS)
    def test_procedural_only(self, size, kind, seed) -> None:
        layout = create_town_pipeline(size, seed, kind=kind).generate()
        assert validate_layout(layout) == []

    def test_side_gate(self, default_prefabs) -> None:
        layout = create_town_pipeline(
            "big", 5, prefabs=default_prefabs, entry_pos=(95, 20), enter_from="W"
        ).generate()
        assert layout.gate == (88, 20)
        assert validate_layout(layout) == []


class TestChecksDetectProblems:
    def test_second_border_door(self, layout) -> None:
        tiles = layout.tiles.copy()
        tiles[0, 5] = TileTypeID.DOOR
        problems = check_border(with_tiles(layout, tiles))
        assert len(problems) == 1
        assert "border doors" in problems[0]

    def test_border_gap(self, layout) -> None:
        tiles = layout.tiles.copy()
        tiles[0, 5] = TileTypeID.FLOOR
        assert any("not Wall" in p for p in check_border(with_tiles(layout, tiles)))

    def test_overlapping_buildings(self, layout) -> None:
        first = layout.buildings[0]
        squatter = Building(id=999, building_type="house", footprint=first.footprint)
        broken = dataclasses.replace(layout, buildings=(*layout.buildings, squatter))
        problems = check_no_overlap(broken)
        assert len(problems) == 1
        assert "999" in problems[0]

    def test_blocked_plaza(self, layout) -> None:
        tiles = layout.tiles.copy()
        tiles[layout.plaza.center] = TileTypeID.WALL
        assert check_plaza_open(with_tiles(layout, tiles)) == [
            "1 plaza cells are not Floor"
        ]

    def test_building_in_plaza(self, layout) -> None:
        cx, cy = layout.plaza.center
        stall = Building(id=998, building_type="shop", footprint=Rect(cx, cy, 6, 4))
        broken = dataclasses.replace(layout, buildings=(stall,))
        assert check_plaza_open(broken) == ["building 998 overlaps the plaza"]

    def test_building_touching_plaza_edge(self, layout) -> None:
        """The plaza keeps a one-cell margin; touching its edge is an overlap."""
        plaza = layout.plaza.rect
        touching = Building(
            id=997, building_type="house", footprint=Rect(plaza.x2, plaza.y1, 5, 4)
        )
        spaced = Building(
            id=996, building_type="house", footprint=Rect(plaza.x2 + 1, plaza.y1, 5, 4)
        )
        assert not plaza.intersects(touching.footprint)
        assert check_plaza_open(dataclasses.replace(layout, buildings=(touching,))) == [
            "building 997 overlaps the plaza"
        ]
        assert check_plaza_open(dataclasses.replace(layout, buildings=(spaced,))) == []

    def test_door_facing_a_wall(self, layout) -> None:
        building = next(b for b in layout.buildings if len(b.door_positions) == 1)
        door = building.door
        (dx, dy), *_ = outward_steps(building.footprint, door)
        front = (door[0] + dx, door[1] + dy)
        tiles = layout.tiles.copy()
        tiles[front] = TileTypeID.WALL
        assert check_door_fronts(layout) == []
        assert check_door_fronts(with_tiles(layout, tiles)) == [
            f"door {door} of building {building.id} faces blocked cell {front}"
        ]

    def test_door_facing_an_indoor_cell(self, layout) -> None:
        building = next(b for b in layout.buildings if len(b.door_positions) == 1)
        door = building.door
        outdoor = np.zeros_like(layout.outdoor_mask)
        broken = dataclasses.replace(layout, outdoor_mask=outdoor)
        problems = check_door_fronts(broken)
        prefix = f"door {door} of building {building.id}"
        assert any(p.startswith(prefix) for p in problems)

    def test_adjacent_windows(self, layout) -> None:
        tiles = layout.tiles.copy()
        tiles[1, 3] = TileTypeID.WINDOW
        tiles[1, 4] = TileTypeID.WINDOW
        problems = check_window_spacing(with_tiles(layout, tiles))
        assert any("next to another window" in p for p in problems)

    def test_window_beside_door(self, layout) -> None:
        tiles = layout.tiles.copy()
        # The default gate door sits in the bottom wall.
        x, y = layout.gate_door
        tiles[x + 1, y] = TileTypeID.WINDOW
        problems = check_window_spacing(with_tiles(layout, tiles))
        assert any("next to a door" in p for p in problems)

    def test_sealed_door(self, layout) -> None:
        building = next(b for b in layout.buildings if len(b.door_positions) == 1)
        door = building.door
        tiles = layout.tiles.copy()
        for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            cell = (door[0] + dx, door[1] + dy)
            if not building.footprint.contains(*cell):
                tiles[cell] = TileTypeID.WALL
        problems = check_door_reachability(with_tiles(layout, tiles))
        assert (
            f"door {door} of building {building.id} is not reachable from the gate"
            in problems
        )

    def test_stranded_outdoor_cell(self, layout) -> None:
        outdoor = layout.outdoor_mask.copy()
        outdoor[0, 0] = True
        broken = dataclasses.replace(layout, outdoor_mask=outdoor)
        problems = outdoor_reachable_from_gate(broken)
        assert problems == ["1 outdoor cells are cut off from the gate, e.g. (0, 0)"]

    def test_doors_off_the_road_network(self, layout) -> None:
        tiles = layout.tiles.copy()
        tiles[tiles == TileTypeID.ROAD] = TileTypeID.FLOOR
        no_roads = dataclasses.replace(
            layout, tiles=tiles, road_mask=np.zeros_like(layout.road_mask)
        )
        doors = [d for b in layout.buildings for d in b.door_positions]
        far = [d for d in doors if manhattan(d, layout.gate) > DOOR_ROAD_REACH]
        problems = road_reachable_doors(no_roads)
        assert len(far) <= len(problems) <= len(doors)
        assert far

    def test_reported_doors_are_excused(self, layout) -> None:
        tiles = layout.tiles.copy()
        tiles[tiles == TileTypeID.ROAD] = TileTypeID.FLOOR
        doors = tuple(d for b in layout.buildings for d in b.door_positions)
        excused = dataclasses.replace(
            layout,
            tiles=tiles,
            road_mask=np.zeros_like(layout.road_mask),
            unreachable_doors=doors,
        )
        assert road_reachable_doors(excused) == []


class TestOutwardSteps:
    def test_side_doors_face_away_from_the_footprint(self) -> None:
        rect = Rect(5, 5, 6, 4)
        assert outward_steps(rect, (7, 8)) == [(0, 1)]
        assert outward_steps(rect, (7, 5)) == [(0, -1)]
        assert outward_steps(rect, (5, 6)) == [(-1, 0)]
        assert outward_steps(rect, (10, 6)) == [(1, 0)]

    def test_corner_has_two_steps(self) -> None:
        assert outward_steps(Rect(5, 5, 6, 4), (5, 5)) == [(-1, 0), (0, -1)]

    def test_interior_cell_has_none(self) -> None:
        assert outward_steps(Rect(5, 5, 6, 4), (7, 6)) == []
