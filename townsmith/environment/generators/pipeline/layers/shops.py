"""Shops: stamping shop prefabs around the plaza and assigning shop slots.

ShopPrefabLayer puts authored shops on the plaza sides (west, east, north,
south in rotation, one shop type each). A shop blocked by a house may evict
that house; the inn and the keep are never evicted.

ShopAssignmentLayer runs after doors are cut and turns buildings into
`ShopSlot` records: one per authored shop prefab, one for the inn, and, unless
strict prefab mode is on, generic shops in the houses nearest the plaza.
"""

from __future__ import annotations

import logging

from townsmith import config
from townsmith.environment.generators.buildings import (
    ALWAYS_OPEN,
    DEFAULT_SHOP_DEFINITIONS,
    Building,
    Prefab,
    ShopSlot,
    pick_prefab,
)
from townsmith.environment.generators.pipeline.conflicts import MandatoryPlacer
from townsmith.environment.generators.pipeline.context import GenerationContext
from townsmith.environment.generators.pipeline.layer import GenerationLayer
from townsmith.environment.generators.pipeline.stamping import (
    PrefabStamper,
    StampConflict,
    StampedPrefab,
    resolve_shop,
)
from townsmith.environment.tile_types import TileTypeID
from townsmith.types import WorldTilePos
from townsmith.util.coordinates import manhattan

logger = logging.getLogger(__name__)

PLAZA_SIDES = ("west", "east", "north", "south")

# Buildings that never host a generic shop.
NON_SHOP_TYPES = frozenset({"inn", "keep", "barracks"})


def shop_anchor(ctx: GenerationContext, prefab: Prefab, side: str) -> WorldTilePos:
    """Origin for ``prefab`` three cells off the given plaza side, centred on it."""
    assert ctx.plaza is not None
    plaza = ctx.plaza.rect
    cx, cy = ctx.plaza.center
    w, h = prefab.width, prefab.height
    x = max(1, min(ctx.width - w - 2, cx - w // 2))
    y = max(1, min(ctx.height - h - 2, cy - h // 2))
    if side == "west":
        x = max(1, plaza.x1 - 3 - w)
    elif side == "east":
        x = min(ctx.width - w - 2, plaza.last_x + 3)
    elif side == "north":
        y = max(1, plaza.y1 - 3 - h)
    else:
        y = min(ctx.height - h - 2, plaza.last_y + 3)
    return x, y


def inside_point(
    ctx: GenerationContext, building: Building, door: WorldTilePos
) -> WorldTilePos:
    """First interior Floor cell next to ``door``, else the interior centre."""
    dx0, dy0 = door
    for dx, dy in ((0, 1), (0, -1), (1, 0), (-1, 0)):
        x, y = dx0 + dx, dy0 + dy
        if building.contains_interior(x, y) and ctx.tiles[x, y] == TileTypeID.FLOOR:
            return (x, y)
    inner = building.interior_bounds
    cx = max(inner.x1, min(inner.last_x, inner.x1 + inner.width // 2))
    cy = max(inner.y1, min(inner.last_y, inner.y1 + inner.height // 2))
    return (cx, cy)


def _shop_key(prefab: Prefab) -> str:
    return (prefab.shop_type or prefab.id).lower()


class ShopPrefabLayer(GenerationLayer):
    """Stamps up to the size's shop limit of distinct shop prefabs."""

    def apply(self, ctx: GenerationContext) -> None:
        if ctx.plaza is None or not ctx.prefabs.shops:
            return
        limit = ctx.town_config.size(ctx.size).shop_limit
        stamper = PrefabStamper(ctx)
        keep = [b for b in ctx.buildings if b.building_type == "keep"]
        placer = MandatoryPlacer(
            ctx, stamper, max_evictions=1, protected=[ctx.inn, *keep]
        )

        used: set[str] = set()
        placed = 0
        for attempt in range(config.SHOP_PLACEMENT_ATTEMPTS):
            if placed >= limit:
                break
            candidates = [p for p in ctx.prefabs.shops if _shop_key(p) not in used]
            prefab = pick_prefab(candidates, ctx.rng)
            if prefab is None:
                break

            side = PLAZA_SIDES[attempt % len(PLAZA_SIDES)]
            x, y = shop_anchor(ctx, prefab, side)
            result = stamper.stamp_or_slip(prefab, x, y, building_type="shop")
            blocked = isinstance(result, StampConflict)
            if blocked and result is not StampConflict.MALFORMED:
                result = placer.place_prefab(prefab, x, y, building_type="shop")
            if isinstance(result, StampedPrefab):
                used.add(_shop_key(prefab))
                placed += 1
                logger.debug("Shop %r placed %s of the plaza", prefab.id, side)
            else:
                logger.debug(
                    "Shop %r rejected %s of the plaza: %s",
                    prefab.id,
                    side,
                    result.value,
                )

        if placed < min(limit, len({_shop_key(p) for p in ctx.prefabs.shops})):
            logger.info("Placed %d of %d shop prefabs", placed, limit)


class ShopAssignmentLayer(GenerationLayer):
    """Builds the shop slot list from shop prefabs, the inn and default shops."""

    def apply(self, ctx: GenerationContext) -> None:
        ctx.shops = []
        for building in ctx.buildings:
            self._assign_prefab_shop(ctx, building)

        inn = ctx.inn
        if inn is not None and not any(s.building is inn for s in ctx.shops):
            if inn.door is None:
                logger.warning("Inn %d has no door; no inn slot created", inn.id)
            else:
                name = "Inn"
                if inn.prefab_id and (prefab := ctx.prefabs.by_id(inn.prefab_id)):
                    name = prefab.name or name
                inside = inside_point(ctx, inn, inn.door)
                ctx.shops.append(
                    ShopSlot(inn, inn.door, inside, "inn", name, ALWAYS_OPEN)
                )

        if not ctx.strict_prefabs:
            self._assign_default_shops(ctx)
        summary = ", ".join(f"{s.shop_type}@{s.door}" for s in ctx.shops)
        logger.debug("Shops: %s", summary or "none")

    def _assign_prefab_shop(self, ctx: GenerationContext, building: Building) -> None:
        if building.prefab_id is None:
            return
        prefab = ctx.prefabs.by_id(building.prefab_id)
        if prefab is None:
            return
        fp = building.footprint
        stamped = resolve_shop(prefab, fp.x1, fp.y1)
        if stamped is None:
            return
        door = stamped.door
        if ctx.tiles[door] != TileTypeID.DOOR:
            if building.door is None:
                return
            door = building.door
        is_inn = stamped.shop_type == "inn" or building is ctx.inn
        ctx.shops.append(
            ShopSlot(
                building=building,
                door=door,
                inside=inside_point(ctx, building, door),
                shop_type="inn" if is_inn else stamped.shop_type,
                name=stamped.name,
                schedule=ALWAYS_OPEN if is_inn else stamped.schedule,
                sign_wanted=stamped.sign_wanted,
            )
        )

    def _assign_default_shops(self, ctx: GenerationContext) -> None:
        assert ctx.plaza is not None
        limit = ctx.town_config.size(ctx.size).shop_limit
        present = {s.shop_type for s in ctx.shops}
        hosts = {id(s.building) for s in ctx.shops}
        center = ctx.plaza.center
        candidates = sorted(
            (
                b
                for b in ctx.buildings
                if b.building_type not in NON_SHOP_TYPES
                and id(b) not in hosts
                and b.door is not None
            ),
            key=lambda b: (manhattan(b.footprint.center(), center), b.id),
        )
        definitions = [
            d
            for d in DEFAULT_SHOP_DEFINITIONS
            if d.shop_type != "inn" and d.shop_type not in present
        ]

        shop_count = sum(1 for s in ctx.shops if not s.is_inn)
        for definition, building in zip(definitions, candidates, strict=False):
            if shop_count >= limit:
                break
            assert building.door is not None
            ctx.shops.append(
                ShopSlot(
                    building=building,
                    door=building.door,
                    inside=inside_point(ctx, building, building.door),
                    shop_type=definition.shop_type,
                    name=definition.name,
                    schedule=definition.schedule,
                )
            )
            shop_count += 1
