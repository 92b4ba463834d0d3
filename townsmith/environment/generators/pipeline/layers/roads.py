"""Road network: a main road from the gate to the plaza, spurs to every door.

Roads only run over outdoor cells (Floor that is not inside a building).
Outside the plaza a road cell becomes a ROAD tile; inside the plaza it stays
Floor but is still flagged in the road mask.

Spurs are laid in building order. Each spur starts at the outdoor cell in
front of a door and runs to the nearest cell already on the network, so later
spurs join earlier ones instead of each running back to the plaza.
"""

from __future__ import annotations

import logging

import numpy as np

from townsmith.environment.generators.pipeline.context import GenerationContext
from townsmith.environment.generators.pipeline.layer import GenerationLayer
from townsmith.environment.tile_types import TileTypeID
from townsmith.types import WorldTilePos
from townsmith.util.coordinates import manhattan
from townsmith.util.pathfinding import CARDINAL_DIRECTIONS, find_path, find_path_to_any

logger = logging.getLogger(__name__)

# How far from a blocked door the spur search looks for an outdoor cell.
SPUR_START_RADIUS = 2


def compute_outdoor_mask(ctx: GenerationContext) -> np.ndarray:
    """Floor cells that are not strictly inside any building."""
    outdoor = np.array(ctx.tiles == TileTypeID.FLOOR, order="F")
    for building in ctx.buildings:
        fp = building.footprint
        if fp.width > 2 and fp.height > 2:
            outdoor[fp.x1 + 1 : fp.x2 - 1, fp.y1 + 1 : fp.y2 - 1] = False
    return outdoor


def plaza_goal(ctx: GenerationContext, outdoor: np.ndarray) -> WorldTilePos | None:
    """The plaza centre, or the outdoor plaza cell closest to it."""
    assert ctx.plaza is not None
    center = ctx.plaza.center
    if outdoor[center]:
        return center
    cells = [c for c in ctx.plaza.rect.cells() if outdoor[c]]
    if not cells:
        return None
    return min(cells, key=lambda c: manhattan(c, center))


def spur_start(outdoor: np.ndarray, door: WorldTilePos) -> WorldTilePos | None:
    """Outdoor cell in front of ``door``, else the nearest one within a small radius."""
    width, height = outdoor.shape
    dx0, dy0 = door
    for dx, dy in CARDINAL_DIRECTIONS:
        x, y = dx0 + dx, dy0 + dy
        if 0 <= x < width and 0 <= y < height and outdoor[x, y]:
            return (x, y)

    best: WorldTilePos | None = None
    for y in range(dy0 - SPUR_START_RADIUS, dy0 + SPUR_START_RADIUS + 1):
        for x in range(dx0 - SPUR_START_RADIUS, dx0 + SPUR_START_RADIUS + 1):
            if not (0 <= x < width and 0 <= y < height) or not outdoor[x, y]:
                continue
            if best is None or manhattan((x, y), door) < manhattan(best, door):
                best = (x, y)
    return best


class RoadNetworkLayer(GenerationLayer):
    """Lays the main road and door spurs, and records both masks."""

    def apply(self, ctx: GenerationContext) -> None:
        if ctx.plaza is None or ctx.gate is None:
            return
        outdoor = compute_outdoor_mask(ctx)
        road_mask = np.zeros((ctx.width, ctx.height), dtype=bool, order="F")
        ctx.outdoor_mask = outdoor
        ctx.road_mask = road_mask

        goal = plaza_goal(ctx, outdoor)
        if goal is None:
            logger.warning("Plaza has no outdoor cells; no main road laid")
        else:
            path = find_path(outdoor, ctx.gate, goal)
            if path is None:
                logger.warning("No route from gate %s to plaza %s", ctx.gate, goal)
            else:
                self._mark(ctx, path)

        network = road_mask | (ctx.tiles == TileTypeID.ROAD)
        spurs = 0
        for building in ctx.buildings:
            for door in building.door_positions:
                start = spur_start(outdoor, door)
                if start is None:
                    self._unreachable(ctx, door, "no outdoor cell in front of it")
                    continue
                if network[start]:
                    continue
                path = find_path_to_any(outdoor, start, network)
                if path is None and goal is not None:
                    path = find_path(outdoor, start, goal)
                if path is None:
                    self._unreachable(ctx, door, "no route to the road network")
                    continue
                self._mark(ctx, path)
                for cell in path:
                    network[cell] = True
                spurs += 1

        logger.debug(
            "Roads: %d spurs, %d road tiles, %d unreachable doors",
            spurs,
            int(np.count_nonzero(ctx.tiles == TileTypeID.ROAD)),
            len(ctx.unreachable_doors),
        )

    def _mark(self, ctx: GenerationContext, path: list[WorldTilePos]) -> None:
        assert ctx.plaza is not None and ctx.road_mask is not None
        for x, y in path:
            ctx.road_mask[x, y] = True
            in_plaza = ctx.plaza.rect.contains(x, y)
            if not in_plaza and ctx.tiles[x, y] == TileTypeID.FLOOR:
                ctx.tiles[x, y] = TileTypeID.ROAD

    def _unreachable(
        self, ctx: GenerationContext, door: WorldTilePos, reason: str
    ) -> None:
        ctx.unreachable_doors.append(door)
        logger.warning("Door %s is unreachable: %s", door, reason)
