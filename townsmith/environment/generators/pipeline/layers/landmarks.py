"""Mandatory and distinguished structures: inn, castle keep, guard barracks.

The inn is placed before any house so it can claim the space beside the
plaza. The keep follows for castle towns. The barracks goes down after the
houses, at the free spot that best sits between the gate and the plaza.
"""

from __future__ import annotations

import logging

from townsmith import config
from townsmith.environment.generators.buildings import (
    Building,
    Prefab,
    TownProp,
    pick_prefab,
)
from townsmith.environment.generators.pipeline.conflicts import MandatoryPlacer
from townsmith.environment.generators.pipeline.context import GenerationContext
from townsmith.environment.generators.pipeline.layer import GenerationLayer
from townsmith.environment.generators.pipeline.stamping import (
    PrefabStamper,
    StampedPrefab,
)
from townsmith.types import WorldTilePos
from townsmith.util.coordinates import Rect, manhattan

logger = logging.getLogger(__name__)

# Smallest inn rectangle the shrink steps may reach.
MIN_INN_WIDTH = 10
MIN_INN_HEIGHT = 8

# Keeps smaller than this are not worth carving.
MIN_KEEP_WIDTH = 10
MIN_KEEP_HEIGHT = 8

# Barracks site score weights.
BARRACKS_GATE_WEIGHT = 1.2
BARRACKS_PLAZA_WEIGHT = 0.8


def origins_by_plaza_distance(
    ctx: GenerationContext, width: int, height: int
) -> list[WorldTilePos]:
    """Every origin where a width x height rect plus margin fits, nearest plaza first.

    Distance is measured from the rectangle centre to the plaza centre; ties
    keep row-major order.
    """
    assert ctx.plaza is not None
    center = ctx.plaza.center
    origins = [
        (x, y)
        for y in range(2, ctx.height - height - 1)
        for x in range(2, ctx.width - width - 1)
    ]
    origins.sort(
        key=lambda o: manhattan((o[0] + width // 2, o[1] + height // 2), center)
    )
    return origins


def sort_doors_toward(building: Building, target: WorldTilePos) -> None:
    building.door_positions.sort(key=lambda d: manhattan(d, target))


# =============================================================================
# Inn
# =============================================================================


def inn_side_candidates(ctx: GenerationContext, width: int, height: int) -> list[Rect]:
    """Inn rectangles east, west, south and north of the plaza, 2 cells away."""
    assert ctx.plaza is not None
    plaza = ctx.plaza.rect
    cx, cy = ctx.plaza.center
    x_mid = max(2, min(ctx.width - width - 2, cx - width // 2))
    y_mid = max(2, min(ctx.height - height - 2, cy - height // 2))
    return [
        Rect(min(ctx.width - 2 - width, plaza.last_x + 2), y_mid, width, height),
        Rect(max(2, plaza.x1 - 2 - width), y_mid, width, height),
        Rect(x_mid, min(ctx.height - 2 - height, plaza.last_y + 2), width, height),
        Rect(x_mid, max(2, plaza.y1 - 2 - height), width, height),
    ]


def find_inn_rect(ctx: GenerationContext, width: int, height: int) -> Rect | None:
    """First clear plaza-side rectangle, shrinking by 2 cells per step."""
    for _ in range(config.INN_SHRINK_STEPS + 1):
        for rect in inn_side_candidates(ctx, width, height):
            if ctx.is_area_clear(rect) and not ctx.overlaps_plaza(rect):
                return rect
        width = max(MIN_INN_WIDTH, width - 2)
        height = max(MIN_INN_HEIGHT, height - 2)
    return None


class InnLayer(GenerationLayer):
    """Places the inn beside the plaza, from a prefab if one fits."""

    def apply(self, ctx: GenerationContext) -> None:
        if ctx.plaza is None:
            return
        size_cfg = ctx.town_config.size(ctx.size)
        target_w, target_h = size_cfg.inn.target(
            size_cfg.plaza_width, size_cfg.plaza_height
        )
        rect = find_inn_rect(ctx, target_w, target_h)
        placer = MandatoryPlacer(ctx)

        inn: Building | None = None
        if ctx.prefabs.inns:
            inn = self._place_prefab_inn(ctx, placer, rect)
        if inn is None:
            inn = self._place_procedural_inn(ctx, placer, rect)
        if inn is None:
            logger.warning("No room for an inn in %s town %r", ctx.size, ctx.name)
            return

        sort_doors_toward(inn, ctx.plaza.center)
        ctx.inn = inn
        logger.debug(
            "Inn %s placed at %s", inn.prefab_id or "(procedural)", inn.footprint
        )

    def _place_prefab_inn(
        self, ctx: GenerationContext, placer: MandatoryPlacer, rect: Rect | None
    ) -> Building | None:
        inns = sorted(ctx.prefabs.inns, key=lambda p: p.area, reverse=True)
        stamper = placer.stamper

        if rect is not None:
            for prefab in inns:
                if not prefab.fits(rect.width, rect.height):
                    continue
                x = rect.x1 + (rect.width - prefab.width) // 2
                y = rect.y1 + (rect.height - prefab.height) // 2
                result = stamper.stamp_or_slip(prefab, x, y, building_type="inn")
                if isinstance(result, StampedPrefab):
                    return result.building

        # Nothing fit beside the plaza: search outward from it.
        for prefab in inns:
            for x, y in origins_by_plaza_distance(ctx, prefab.width, prefab.height):
                result = placer.place_prefab(prefab, x, y, building_type="inn")
                if isinstance(result, StampedPrefab):
                    return result.building
        logger.info("No inn prefab could be placed; carving a procedural inn")
        return None

    def _place_procedural_inn(
        self, ctx: GenerationContext, placer: MandatoryPlacer, rect: Rect | None
    ) -> Building | None:
        if rect is not None:
            building = placer.place_rect(rect, "inn")
            if building is not None:
                return building
        for x, y in origins_by_plaza_distance(ctx, MIN_INN_WIDTH, MIN_INN_HEIGHT):
            candidate = Rect(x, y, MIN_INN_WIDTH, MIN_INN_HEIGHT)
            building = placer.place_rect(candidate, "inn")
            if building is not None:
                return building
        return None


# =============================================================================
# Castle keep
# =============================================================================


def keep_rect(ctx: GenerationContext, width: int, height: int) -> Rect | None:
    """Keep rectangle centred on the plaza, else beside it; None if nothing fits."""
    assert ctx.plaza is not None
    plaza = ctx.plaza.rect
    cx, cy = ctx.plaza.center

    def clamp_x(x: int) -> int:
        return max(2, min(ctx.width - width - 2, x))

    def clamp_y(y: int) -> int:
        return max(2, min(ctx.height - height - 2, y))

    kx = clamp_x(int(cx - width / 2))
    ky = clamp_y(int(cy - height / 2))
    candidates = [Rect(kx, ky, width, height)]
    candidates += [
        Rect(kx, clamp_y(plaza.last_y + 2), width, height),
        Rect(kx, clamp_y(plaza.y1 - 2 - height), width, height),
        Rect(clamp_x(plaza.last_x + 2), ky, width, height),
        Rect(clamp_x(plaza.x1 - 2 - width), ky, width, height),
    ]
    for rect in candidates:
        if ctx.overlaps_plaza(rect):
            continue
        if ctx.gate is not None and rect.expanded(1).contains(*ctx.gate):
            continue
        if ctx.is_area_clear(rect):
            return rect
    return None


def furnish_keep(ctx: GenerationContext, keep: Building) -> None:
    """Throne hall furniture: throne and runner, hearths, quarters in the corners."""
    inner = keep.interior_bounds
    x0, y0, x1, y1 = inner.x1, inner.y1, inner.last_x, inner.last_y
    mid_x = (x0 + x1) // 2
    mid_y = (y0 + y1) // 2

    # The throne faces the gate.
    gate_above = ctx.gate is not None and ctx.gate[1] < keep.footprint.y1
    throne_y = y1 - 1 if gate_above else y0 + 1
    front = -1 if gate_above else 1

    def put(x: int, y: int, prop_type: str, name: str | None = None) -> None:
        if keep.contains_interior(x, y) and ctx.is_floor(x, y):
            ctx.add_prop(TownProp(x, y, prop_type, name))

    put(mid_x, throne_y, "chair", "Throne")
    put(mid_x - 2, throne_y, "plant")
    put(mid_x + 2, throne_y, "plant")
    put(mid_x, throne_y + front, "table")
    for y in range(y0, y1 + 1):
        put(mid_x, y, "rug")
    put(x0 + 1, mid_y, "fireplace")
    put(x1 - 1, mid_y, "fireplace")
    put(x0, y0, "bed")
    put(x1, y0, "bed")
    put(x0, y1, "chest")
    put(x1, y1, "chest")
    put(x0 + 1, y1, "barrel")
    put(x1 - 1, y1, "barrel")


class CastleKeepLayer(GenerationLayer):
    """Reserves and furnishes the keep in castle towns."""

    def apply(self, ctx: GenerationContext) -> None:
        if ctx.kind != "castle" or ctx.plaza is None:
            return
        size_cfg = ctx.town_config.size(ctx.size)
        width, height = size_cfg.keep.target(
            size_cfg.plaza_width, size_cfg.plaza_height, ctx.width, ctx.height
        )
        if width < MIN_KEEP_WIDTH or height < MIN_KEEP_HEIGHT:
            logger.info("Keep %dx%d is too small; skipping it", width, height)
            return

        rect = keep_rect(ctx, width, height)
        if rect is None:
            logger.warning("No room for a %dx%d keep in %r", width, height, ctx.name)
            return
        ctx.carve_hollow_rect(rect)
        keep = ctx.add_building(rect, "keep", prefab_id="castle_keep")
        furnish_keep(ctx, keep)
        logger.debug("Keep carved at %s", rect)


# =============================================================================
# Guard barracks
# =============================================================================


def best_barracks_origin(ctx: GenerationContext, prefab: Prefab) -> WorldTilePos | None:
    """Clear origin minimising the weighted distance to the gate and the plaza."""
    assert ctx.plaza is not None and ctx.gate is not None
    best: tuple[float, WorldTilePos] | None = None
    for y in range(2, ctx.height - prefab.height - 1):
        for x in range(2, ctx.width - prefab.width - 1):
            rect = Rect(x, y, prefab.width, prefab.height)
            if ctx.overlaps_plaza(rect) or not ctx.is_area_clear(rect):
                continue
            center = (x + prefab.width // 2, y + prefab.height // 2)
            score = BARRACKS_GATE_WEIGHT * manhattan(center, ctx.gate)
            score += BARRACKS_PLAZA_WEIGHT * manhattan(center, ctx.plaza.center)
            if best is None or score < best[0]:
                best = (score, (x, y))
    return best[1] if best else None


class BarracksLayer(GenerationLayer):
    """Places one guard barracks prefab, if the catalogue has one."""

    def apply(self, ctx: GenerationContext) -> None:
        if ctx.plaza is None or ctx.gate is None:
            return
        if any(
            b.building_type == "barracks" or "barracks" in (b.prefab_id or "")
            for b in ctx.buildings
        ):
            return
        prefab = pick_prefab(ctx.prefabs.barracks(), ctx.rng)
        if prefab is None:
            logger.debug("No barracks prefab loaded")
            return

        origin = best_barracks_origin(ctx, prefab)
        if origin is None:
            logger.info("No clear site for barracks prefab %r", prefab.id)
            return
        result = PrefabStamper(ctx).stamp(prefab, *origin, building_type="barracks")
        if isinstance(result, StampedPrefab):
            logger.debug("Barracks %r placed at %s", prefab.id, origin)
        else:
            logger.info(
                "Barracks prefab %r rejected at %s: %s", prefab.id, origin, result.value
            )
