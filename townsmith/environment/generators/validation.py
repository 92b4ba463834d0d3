"""Structural checks for a finished town layout.

Each check returns a list of human-readable problems; an empty list means the
layout passes. They are used by the test suite and by the benchmark script,
and are cheap enough to run on every generated town in development builds.
"""

from __future__ import annotations

import itertools

import numpy as np
import tcod.path

from townsmith import config
from townsmith.environment import tile_types
from townsmith.environment.generators.base import TownLayout
from townsmith.environment.tile_types import TileTypeID
from townsmith.types import Direction, WorldTilePos
from townsmith.util.coordinates import Rect, chebyshev
from townsmith.util.pathfinding import CARDINAL_DIRECTIONS

# A door counts as served by the road network if a road cell lies this close.
DOOR_ROAD_REACH = 2


def reachable_from(passable: np.ndarray, roots: list[WorldTilePos]) -> np.ndarray:
    """Cells reachable from any root over ``passable`` with 4-way moves."""
    cost = np.asarray(passable, dtype=np.int8)
    graph = tcod.path.SimpleGraph(cost=cost, cardinal=1, diagonal=0)
    pathfinder = tcod.path.Pathfinder(graph)
    for root in roots:
        pathfinder.add_root(root)
    pathfinder.resolve()
    distance = pathfinder.distance
    return np.asarray(distance != np.iinfo(distance.dtype).max)


def check_border(layout: TownLayout) -> list[str]:
    """The outer ring is Wall except for exactly one Door, the gate door."""
    tiles = layout.tiles
    problems: list[str] = []
    ring = np.ones(tiles.shape, dtype=bool)
    ring[1:-1, 1:-1] = False
    xs, ys = np.nonzero(ring & (tiles == TileTypeID.DOOR))
    doors = [(int(x), int(y)) for x, y in zip(xs, ys, strict=True)]
    if doors != [layout.gate_door]:
        problems.append(f"border doors {doors}, expected only {layout.gate_door}")
    other = ring & (tiles != TileTypeID.WALL) & (tiles != TileTypeID.DOOR)
    if other.any():
        problems.append(f"{int(np.count_nonzero(other))} border cells are not Wall")
    if not tile_types.get_walkable_map(tiles)[layout.gate]:
        problems.append(f"gate cell {layout.gate} is not walkable")
    return problems


def check_no_overlap(
    layout: TownLayout, margin: int = config.BUILDING_MARGIN
) -> list[str]:
    """No two buildings share a cell or come closer than ``margin`` cells."""
    problems: list[str] = []
    for a, b in itertools.combinations(layout.buildings, 2):
        if a.footprint.overlaps(b.footprint, margin):
            problems.append(
                f"buildings {a.id} {a.footprint} and {b.id} {b.footprint} overlap"
            )
    return problems


def check_plaza_open(
    layout: TownLayout, margin: int = config.PLAZA_MARGIN
) -> list[str]:
    """Every plaza cell is Floor and no building comes within ``margin`` of it."""
    problems: list[str] = []
    rect = layout.plaza.rect
    blocked = int(np.count_nonzero(layout.tiles[rect.as_slices()] != TileTypeID.FLOOR))
    if blocked:
        problems.append(f"{blocked} plaza cells are not Floor")
    for building in layout.buildings:
        if rect.overlaps(building.footprint, margin):
            problems.append(f"building {building.id} overlaps the plaza")
    return problems


def check_window_spacing(layout: TownLayout) -> list[str]:
    """No Window touches a Door or another Window, diagonals included."""
    tiles = layout.tiles
    windows = list(zip(*np.nonzero(tiles == TileTypeID.WINDOW), strict=True))
    doors = list(zip(*np.nonzero(tiles == TileTypeID.DOOR), strict=True))
    problems: list[str] = []
    for i, w in enumerate(windows):
        if any(chebyshev(w, d) < 2 for d in doors):
            problems.append(f"window {tuple(map(int, w))} is next to a door")
        if any(chebyshev(w, o) < 2 for o in windows[i + 1 :]):
            problems.append(f"window {tuple(map(int, w))} is next to another window")
    return problems


def check_door_reachability(layout: TownLayout) -> list[str]:
    """Every building door can be walked to from the gate."""
    reached = reachable_from(tile_types.get_walkable_map(layout.tiles), [layout.gate])
    return [
        f"door {door} of building {b.id} is not reachable from the gate"
        for b in layout.buildings
        for door in b.door_positions
        if not reached[door]
    ]


def outward_steps(footprint: Rect, door: WorldTilePos) -> list[Direction]:
    """Steps from a ring cell that leave ``footprint``; two at a corner."""
    x, y = door
    return [
        (dx, dy)
        for dx, dy in CARDINAL_DIRECTIONS
        if footprint.is_perimeter(x, y) and not footprint.contains(x + dx, y + dy)
    ]


def check_door_fronts(layout: TownLayout) -> list[str]:
    """The cell a door faces is open outdoor ground (Floor or Road)."""
    width, height = layout.tiles.shape
    problems: list[str] = []
    for building in layout.buildings:
        for door in building.door_positions:
            steps = outward_steps(building.footprint, door)
            if not steps:
                problems.append(
                    f"door {door} of building {building.id} is not on its wall ring"
                )
                continue
            fronts = [(door[0] + dx, door[1] + dy) for dx, dy in steps]
            if not any(
                0 <= fx < width
                and 0 <= fy < height
                and layout.tiles[fx, fy] in (TileTypeID.FLOOR, TileTypeID.ROAD)
                and layout.outdoor_mask[fx, fy]
                for fx, fy in fronts
            ):
                problems.append(
                    f"door {door} of building {building.id} faces blocked cell "
                    f"{fronts[0]}"
                )
    return problems


def outdoor_reachable_from_gate(layout: TownLayout) -> list[str]:
    """Every outdoor cell is connected to the gate."""
    outdoor = layout.outdoor_mask | (layout.tiles == TileTypeID.ROAD)
    reached = reachable_from(outdoor, [layout.gate])
    stranded = outdoor & ~reached
    if stranded.any():
        x, y = (int(v[0]) for v in np.nonzero(stranded))
        return [
            f"{int(np.count_nonzero(stranded))} outdoor cells are cut off from the "
            f"gate, e.g. ({x}, {y})"
        ]
    return []


def road_reachable_doors(layout: TownLayout) -> list[str]:
    """Every door not reported as unreachable is served by the road network.

    The network is flooded from the gate over road cells; a door is served
    when a reached road cell lies within ``DOOR_ROAD_REACH`` steps of it.
    """
    network = layout.road_mask | (layout.tiles == TileTypeID.ROAD)
    reached = reachable_from(network, [layout.gate])
    width, height = reached.shape
    excused = set(layout.unreachable_doors)

    def served(door: WorldTilePos) -> bool:
        dx0, dy0 = door
        for dy in range(-DOOR_ROAD_REACH, DOOR_ROAD_REACH + 1):
            for dx in range(-DOOR_ROAD_REACH, DOOR_ROAD_REACH + 1):
                x, y = dx0 + dx, dy0 + dy
                if abs(dx) + abs(dy) > DOOR_ROAD_REACH:
                    continue
                if 0 <= x < width and 0 <= y < height and reached[x, y]:
                    return True
        return False

    return [
        f"door {door} of building {b.id} is not on the road network"
        for b in layout.buildings
        for door in b.door_positions
        if door not in excused and not served(door)
    ]


def validate_layout(layout: TownLayout) -> list[str]:
    """Run every check and return all problems found."""
    return [
        *check_border(layout),
        *check_no_overlap(layout),
        *check_plaza_open(layout),
        *check_window_spacing(layout),
        *check_door_fronts(layout),
        *check_door_reachability(layout),
        *outdoor_reachable_from_gate(layout),
        *road_reachable_doors(layout),
    ]
