"""Ordinary house placement.

Houses go down in three passes, each bounded:

1. Grid-block scan: the interior is walked in block-sized steps and every
   block that is still entirely Floor gets one house with a footprint drawn
   from the size buckets.
2. Residential fill: random rectangles until the size's fill target is met.
3. Near-plaza top-up: a few random rectangles in each quadrant around the
   plaza until the near-plaza minimum is met.

A house is stamped from a fitting house prefab when one exists, otherwise it
is carved as a hollow rectangle (unless strict prefab mode forbids that).
Doors and windows are cut later by the openings layer.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from townsmith import config
from townsmith.environment.generators.buildings import (
    Building,
    Prefab,
    choose_footprint,
    pick_prefab,
)
from townsmith.environment.generators.pipeline.context import GenerationContext
from townsmith.environment.generators.pipeline.layer import GenerationLayer
from townsmith.environment.generators.pipeline.stamping import (
    PrefabStamper,
    StampedPrefab,
)
from townsmith.environment.tile_types import TileTypeID
from townsmith.util.coordinates import Rect

logger = logging.getLogger(__name__)


def fitting_houses(ctx: GenerationContext, width: int, height: int) -> list[Prefab]:
    """House prefabs that fit a width x height rectangle, barracks excluded."""
    return [
        p
        for p in ctx.prefabs.houses
        if p.fits(width, height) and not p.has_tag("guard_barracks", "barracks")
    ]


def place_house(
    ctx: GenerationContext,
    stamper: PrefabStamper,
    rect: Rect,
    allow_procedural: bool = True,
) -> Building | None:
    """Put one house inside ``rect``, which the caller has checked is clear.

    A fitting prefab is centred in the rectangle (with slip search); without
    one, or if the stamp is rejected, the rectangle itself is carved.
    """
    prefab = pick_prefab(fitting_houses(ctx, rect.width, rect.height), ctx.rng)
    if prefab is not None:
        x = rect.x1 + (rect.width - prefab.width) // 2
        y = rect.y1 + (rect.height - prefab.height) // 2
        result = stamper.stamp_or_slip(prefab, x, y)
        if isinstance(result, StampedPrefab):
            return result.building
        logger.debug(
            "House prefab %r rejected at %s: %s", prefab.id, rect, result.value
        )

    if not allow_procedural or ctx.strict_prefabs:
        return None
    ctx.carve_hollow_rect(rect)
    return ctx.add_building(rect, "house")


class BuildingPlacementLayer(GenerationLayer):
    """Fills the town with houses around the landmarks already placed."""

    def apply(self, ctx: GenerationContext) -> None:
        targets = ctx.town_config.building_targets(ctx.size, ctx.kind)
        stamper = PrefabStamper(ctx)
        if ctx.strict_prefabs and not ctx.prefabs.houses:
            logger.warning("Strict prefab mode with no house prefabs: no houses placed")

        before = len(ctx.buildings)
        self._block_scan(
            ctx,
            stamper,
            targets.block_width,
            targets.block_height,
            targets.max_buildings,
        )
        after_blocks = len(ctx.buildings)
        self._residential_fill(ctx, stamper, targets.residential_fill_target)
        after_fill = len(ctx.buildings)
        self._near_plaza(ctx, stamper, targets.min_buildings_near_plaza)

        logger.debug(
            "Houses placed: blocks=%d fill=%d near_plaza=%d (total %d)",
            after_blocks - before,
            after_fill - after_blocks,
            len(ctx.buildings) - after_fill,
            len(ctx.buildings),
        )
        if len(ctx.buildings) < targets.residential_fill_target:
            logger.info(
                "Town has %d buildings, below the fill target of %d",
                len(ctx.buildings),
                targets.residential_fill_target,
            )

    def _block_scan(
        self,
        ctx: GenerationContext,
        stamper: PrefabStamper,
        block_w: int,
        block_h: int,
        max_buildings: int,
    ) -> None:
        rng = ctx.rng
        step_x = max(8, block_w + 2)
        step_y = max(6, block_h + 2)

        by = 2
        while by < ctx.height - (block_h + 4) and len(ctx.buildings) < max_buildings:
            bx = 2
            while bx < ctx.width - (block_w + 4) and len(ctx.buildings) < max_buildings:
                block = Rect(bx, by, block_w + 1, block_h + 1)
                if np.all(ctx.tiles[block.as_slices()] == TileTypeID.FLOOR):
                    fp = choose_footprint(rng, block_w, block_h)
                    ox = math.floor(rng.random() * max(1, block_w - fp.width))
                    oy = math.floor(rng.random() * max(1, block_h - fp.height))
                    rect = Rect(bx + 1 + ox, by + 1 + oy, fp.width, fp.height)
                    if not ctx.overlaps_plaza(rect) and ctx.is_area_clear(rect):
                        place_house(ctx, stamper, rect)
                bx += step_x
            by += step_y

    def _residential_fill(
        self, ctx: GenerationContext, stamper: PrefabStamper, target: int
    ) -> None:
        rng = ctx.rng
        has_houses = bool(ctx.prefabs.houses)
        for _ in range(config.RESIDENTIAL_FILL_ATTEMPTS):
            if len(ctx.buildings) >= target:
                break
            bw = max(6, min(12, 6 + math.floor(rng.random() * 7)))
            bh = max(4, min(10, 4 + math.floor(rng.random() * 7)))
            bx = 2 + math.floor(rng.random() * (ctx.width - bw - 4))
            by = 2 + math.floor(rng.random() * (ctx.height - bh - 4))
            bx = max(2, min(ctx.width - bw - 3, bx))
            by = max(2, min(ctx.height - bh - 3, by))
            rect = Rect(bx, by, bw, bh)
            if ctx.overlaps_plaza(rect) or not ctx.is_area_clear(rect):
                continue
            if has_houses and not fitting_houses(ctx, bw, bh):
                continue
            place_house(ctx, stamper, rect, allow_procedural=not has_houses)

    def _near_plaza(
        self, ctx: GenerationContext, stamper: PrefabStamper, minimum: int
    ) -> None:
        if ctx.plaza is None or len(ctx.buildings) >= minimum:
            return
        rng = ctx.rng
        width, height = ctx.width, ctx.height
        plaza = ctx.plaza.rect
        px0, py0, px1, py1 = plaza.x1, plaza.y1, plaza.last_x, plaza.last_y
        quadrants = (
            (1, 1, max(2, px0 - 2), max(2, py0 - 2)),
            (min(width - 3, px1 + 2), 1, width - 2, max(2, py0 - 2)),
            (1, min(height - 3, py1 + 2), max(2, px0 - 2), height - 2),
            (min(width - 3, px1 + 2), min(height - 3, py1 + 2), width - 2, height - 2),
        )
        for x0, y0, x1, y1 in quadrants:
            for _ in range(config.NEAR_PLAZA_TRIES_PER_QUADRANT):
                if len(ctx.buildings) >= minimum:
                    return
                bw = max(6, min(10, 6 + math.floor(rng.random() * 5)))
                bh = max(4, min(8, 4 + math.floor(rng.random() * 5)))
                span_x = max(1, x1 - x0 - bw)
                span_y = max(1, y1 - y0 - bh)
                bx = x0 + 1 + math.floor(rng.random() * span_x)
                by = y0 + 1 + math.floor(rng.random() * span_y)
                bx = max(x0 + 1, min(x1 - bw, bx))
                by = max(y0 + 1, min(y1 - bh, by))
                if bx >= x1 - 1 or by >= y1 - 1:
                    continue
                rect = Rect(bx, by, bw, bh)
                if ctx.overlaps_plaza(rect) or not ctx.is_area_clear(rect):
                    continue
                place_house(ctx, stamper, rect)


class PlazaCleanupLayer(GenerationLayer):
    """Removes non-inn buildings that reach into the plaza and re-opens it."""

    def apply(self, ctx: GenerationContext) -> None:
        if ctx.plaza is None:
            return
        rect = ctx.plaza.rect
        for building in ctx.overlapping_buildings(rect, config.PLAZA_MARGIN):
            if building is ctx.inn:
                continue
            logger.warning(
                "Removing building %d at %s: it overlaps the plaza",
                building.id,
                building.footprint,
            )
            ctx.remove_building(building)
        ctx.tiles[rect.as_slices()] = TileTypeID.FLOOR
