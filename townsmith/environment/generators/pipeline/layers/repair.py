"""Final consistency pass over building walls and the plaza."""

from __future__ import annotations

import logging

import numpy as np

from townsmith.environment.generators.pipeline.context import GenerationContext
from townsmith.environment.generators.pipeline.layer import GenerationLayer
from townsmith.environment.tile_types import TileTypeID

logger = logging.getLogger(__name__)

OPENING_TILES = (TileTypeID.DOOR, TileTypeID.WINDOW)


def repair_layout(ctx: GenerationContext) -> int:
    """Seal building rings and re-open the plaza.

    Every wall-ring cell that is not a Door or Window becomes Wall, except
    cells inside the plaza, and the plaza is forced back to Floor. Running it
    twice changes nothing the second time.

    Returns:
        The number of cells changed.
    """
    changed = 0
    plaza = ctx.plaza.rect if ctx.plaza is not None else None
    for building in ctx.buildings:
        for x, y in building.footprint.perimeter():
            if plaza is not None and plaza.contains(x, y):
                continue
            tile = ctx.tiles[x, y]
            if tile not in OPENING_TILES and tile != TileTypeID.WALL:
                ctx.tiles[x, y] = TileTypeID.WALL
                changed += 1

    if plaza is not None:
        view = ctx.tiles[plaza.as_slices()]
        changed += int(np.count_nonzero(view != TileTypeID.FLOOR))
        view[...] = TileTypeID.FLOOR
    return changed


class RepairLayer(GenerationLayer):
    def apply(self, ctx: GenerationContext) -> None:
        changed = repair_layout(ctx)
        if changed:
            logger.info("Repair pass fixed %d cells", changed)
