"""Central plaza: carving and dressing.

PlazaLayer carves the open square early so every later placement treats it as
a no-build zone. PlazaDressingLayer runs after the buildings are settled and
adds a well, benches and lamps, either from a plaza prefab or from a fixed
fallback arrangement.
"""

from __future__ import annotations

import logging

from townsmith.environment.generators.base import Plaza
from townsmith.environment.generators.buildings import TownProp, pick_prefab
from townsmith.environment.generators.pipeline.context import GenerationContext
from townsmith.environment.generators.pipeline.layer import GenerationLayer
from townsmith.environment.generators.pipeline.stamping import (
    PrefabStamper,
    StampConflict,
    slip_offsets,
)
from townsmith.environment.tile_types import TileTypeID
from townsmith.util.coordinates import Rect

logger = logging.getLogger(__name__)

# Fewer props than this inside the plaza triggers the fallback arrangement.
MIN_PLAZA_PROPS = 3


def plaza_rect(width: int, height: int, plaza_width: int, plaza_height: int) -> Plaza:
    """Compute the plaza centred on the grid, clipped inside the wall ring.

    The rectangle spans ``center - size/2`` to ``center + size/2`` inclusive
    on each axis, so it is one cell wider than the nominal size when the size
    is even.
    """
    cx, cy = width // 2, height // 2
    x0 = max(1, int(cx - plaza_width / 2))
    x1 = min(width - 2, int(cx + plaza_width / 2))
    y0 = max(1, int(cy - plaza_height / 2))
    y1 = min(height - 2, int(cy + plaza_height / 2))
    return Plaza(center=(cx, cy), rect=Rect.from_bounds(x0, y0, x1 + 1, y1 + 1))


def carve_plaza(ctx: GenerationContext, plaza: Plaza) -> None:
    ctx.tiles[plaza.rect.as_slices()] = TileTypeID.FLOOR


class PlazaLayer(GenerationLayer):
    """Carves the plaza and records it on the context.

    Re-applying the layer carves the same rectangle again.
    """

    def apply(self, ctx: GenerationContext) -> None:
        size_cfg = ctx.town_config.size(ctx.size)
        plaza = plaza_rect(
            ctx.width, ctx.height, size_cfg.plaza_width, size_cfg.plaza_height
        )
        carve_plaza(ctx, plaza)
        ctx.plaza = plaza
        logger.debug("Plaza carved at %s", plaza.rect)


class PlazaDressingLayer(GenerationLayer):
    """Adds plaza furniture from a plaza prefab, or a fallback layout."""

    def apply(self, ctx: GenerationContext) -> None:
        if ctx.plaza is None:
            return
        if ctx.kind != "castle" and ctx.prefabs.plazas:
            self._stamp_plaza_prefab(ctx, ctx.plaza)

        rect = ctx.plaza.rect
        inside = sum(1 for p in ctx.props if rect.contains(p.x, p.y))
        if inside < MIN_PLAZA_PROPS:
            self._place_fallback_props(ctx, ctx.plaza)

    def _stamp_plaza_prefab(self, ctx: GenerationContext, plaza: Plaza) -> None:
        rect = plaza.rect
        fitting = [p for p in ctx.prefabs.plazas if p.fits(rect.width, rect.height)]
        prefab = pick_prefab(fitting or ctx.prefabs.plazas, ctx.rng)
        if prefab is None:
            return

        stamper = PrefabStamper(ctx)
        cx, cy = plaza.center
        bx, by = cx - prefab.width // 2, cy - prefab.height // 2
        result = stamper.stamp_plaza(prefab, bx, by)
        if isinstance(result, StampConflict):
            for dx, dy in slip_offsets(2):
                result = stamper.stamp_plaza(prefab, bx + dx, by + dy)
                if not isinstance(result, StampConflict):
                    break
        if isinstance(result, StampConflict):
            logger.info(
                "Plaza prefab %r did not fit (%s); using fallback layout",
                prefab.id,
                result.value,
            )
        else:
            logger.debug("Plaza prefab %r stamped with %d props", prefab.id, result)

    def _place_fallback_props(self, ctx: GenerationContext, plaza: Plaza) -> None:
        cx, cy = plaza.center
        layout = [(0, 0, "well", "Town Well")]
        layout += [
            (dx, dy, "bench", None) for dx, dy in ((2, 0), (-2, 0), (0, 2), (0, -2))
        ]
        layout += [
            (dx, dy, "lamp", None) for dx, dy in ((3, 3), (-3, 3), (3, -3), (-3, -3))
        ]
        for dx, dy, prop_type, name in layout:
            x, y = cx + dx, cy + dy
            if plaza.rect.contains(x, y) and ctx.is_floor(x, y):
                ctx.add_prop(TownProp(x, y, prop_type, name))
