"""Doors and windows for buildings that were not authored with them.

Every building without a Door on its wall ring gets exactly one, cut at the
midpoint of one of its four sides. Sides whose outward neighbour is open
Floor are preferred. The inn and the keep take the preferred side nearest the
plaza; other buildings pick one at random.

Procedural buildings then get a few windows on the remaining wall cells,
never adjacent to a door and never adjacent to each other.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from townsmith import config
from townsmith.environment.generators.buildings import Building
from townsmith.environment.generators.pipeline.context import GenerationContext
from townsmith.environment.generators.pipeline.layer import GenerationLayer
from townsmith.environment.tile_types import TileTypeID
from townsmith.types import Direction, WorldTilePos
from townsmith.util.coordinates import Rect, chebyshev, manhattan

logger = logging.getLogger(__name__)

# Buildings whose door faces the plaza and whose window count is reduced.
DISTINGUISHED_TYPES = frozenset({"inn", "keep"})


@dataclass(frozen=True)
class DoorCandidate:
    """A side midpoint where a door may be cut.

    Attributes:
        x: Door cell X (on the wall ring).
        y: Door cell Y.
        outward: Step from the door to the cell outside the building.
    """

    x: int
    y: int
    outward: Direction

    @property
    def position(self) -> WorldTilePos:
        return (self.x, self.y)

    @property
    def outside(self) -> WorldTilePos:
        return (self.x + self.outward[0], self.y + self.outward[1])


def door_candidates(rect: Rect) -> list[DoorCandidate]:
    """Side midpoints in the order top, right, bottom, left."""
    x, y, w, h = rect.x1, rect.y1, rect.width, rect.height
    return [
        DoorCandidate(x + w // 2, y, (0, -1)),
        DoorCandidate(x + w - 1, y + h // 2, (1, 0)),
        DoorCandidate(x + w // 2, y + h - 1, (0, 1)),
        DoorCandidate(x, y + h // 2, (-1, 0)),
    ]


def choose_door(
    ctx: GenerationContext,
    building: Building,
    toward: WorldTilePos | None = None,
) -> DoorCandidate:
    """Pick the door side for ``building``.

    Candidates whose outward cell is Floor are preferred; if none is, all four
    are considered. With ``toward`` the candidate nearest that cell wins,
    otherwise one is drawn from the RNG.
    """
    candidates = door_candidates(building.footprint)
    preferred = [c for c in candidates if ctx.is_floor(*c.outside)] or candidates
    if toward is not None:
        return min(preferred, key=lambda c: manhattan(c.position, toward))
    index = math.floor(ctx.rng.random() * len(preferred)) % len(preferred)
    return preferred[index]


def perimeter_doors(ctx: GenerationContext, rect: Rect) -> list[WorldTilePos]:
    return [pos for pos in rect.perimeter() if ctx.tiles[pos] == TileTypeID.DOOR]


def window_limit(building: Building) -> int:
    fp = building.footprint
    limit = max(1, min(config.MAX_WINDOWS_PER_BUILDING, (fp.width + fp.height) // 12))
    if building.building_type in DISTINGUISHED_TYPES:
        limit = max(1, int(limit * config.DISTINGUISHED_WINDOW_FACTOR))
    return limit


def window_candidates(ctx: GenerationContext, building: Building) -> list[WorldTilePos]:
    """Non-corner Wall cells of the ring that are not next to any door."""
    fp = building.footprint
    doors = perimeter_doors(ctx, fp)
    corners = {(x, y) for x in (fp.x1, fp.last_x) for y in (fp.y1, fp.last_y)}
    return [
        pos
        for pos in fp.perimeter()
        if pos not in corners
        and ctx.tiles[pos] == TileTypeID.WALL
        and all(chebyshev(pos, d) >= 2 for d in doors)
    ]


def cut_windows(ctx: GenerationContext, building: Building) -> list[WorldTilePos]:
    """Cut up to ``window_limit`` windows, spaced at least 2 cells apart."""
    candidates = window_candidates(ctx, building)
    limit = window_limit(building)
    pool = list(candidates)
    chosen: list[WorldTilePos] = []
    attempts = 0
    while pool and len(chosen) < limit and attempts < 2 * len(candidates):
        attempts += 1
        pos = pool.pop(math.floor(ctx.rng.random() * len(pool)) % len(pool))
        if any(chebyshev(pos, w) < 2 for w in chosen):
            continue
        chosen.append(pos)
        ctx.tiles[pos] = TileTypeID.WINDOW
    return chosen


class OpeningsLayer(GenerationLayer):
    """Cuts missing doors, then windows on procedural buildings."""

    def apply(self, ctx: GenerationContext) -> None:
        plaza_center = ctx.plaza.center if ctx.plaza is not None else None
        doors_cut = 0
        for building in ctx.buildings:
            existing = perimeter_doors(ctx, building.footprint)
            if existing:
                if not building.door_positions:
                    building.door_positions = existing
                continue
            toward = None
            if building.building_type in DISTINGUISHED_TYPES:
                toward = plaza_center
            door = choose_door(ctx, building, toward)
            ctx.tiles[door.position] = TileTypeID.DOOR
            building.door_positions = [door.position]
            doors_cut += 1

        windows = 0
        for building in ctx.buildings:
            if building.is_procedural:
                windows += len(cut_windows(ctx, building))
        logger.debug("Openings: %d doors cut, %d windows", doors_cut, windows)
