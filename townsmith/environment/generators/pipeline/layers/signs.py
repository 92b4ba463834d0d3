"""Signs: one inside each shop that wants one, and a welcome sign at the gate.

Runs last, once shop slots, roads and repairs are final. A shop whose slot has
``sign_wanted`` set keeps exactly one sign, on the free interior Floor cell
nearest its door; prefab-authored signs inside the shop count toward that one
and extra copies are dropped. A shop that wants no sign loses any authored
ones. The town gets a single "Welcome to <name>" sign on open ground beside
the gate.
"""

from __future__ import annotations

import dataclasses
import logging

from townsmith.environment.generators.buildings import ShopSlot, TownProp
from townsmith.environment.generators.pipeline.context import GenerationContext
from townsmith.environment.generators.pipeline.layer import GenerationLayer
from townsmith.environment.tile_types import TileTypeID
from townsmith.types import WorldTilePos
from townsmith.util.coordinates import manhattan

logger = logging.getLogger(__name__)

SIGN = "sign"
WELCOME_PREFIX = "Welcome to "

# How far from the door a shop sign may hang.
SHOP_SIGN_RADIUS = 3
# How far from the gate the welcome sign may stand.
WELCOME_SIGN_RADIUS = 3


def welcome_text(town_name: str) -> str:
    return f"{WELCOME_PREFIX}{town_name or 'our town'}"


def _nearest(cells: list[WorldTilePos], target: WorldTilePos) -> WorldTilePos | None:
    if not cells:
        return None
    return min(cells, key=lambda c: (manhattan(c, target), c[1], c[0]))


def shop_sign_cell(ctx: GenerationContext, slot: ShopSlot) -> WorldTilePos | None:
    """Free interior Floor cell of the shop nearest its door, or None."""
    occupied = {p.position for p in ctx.props}
    dx0, dy0 = slot.door
    cells = [
        (x, y)
        for y in range(dy0 - SHOP_SIGN_RADIUS, dy0 + SHOP_SIGN_RADIUS + 1)
        for x in range(dx0 - SHOP_SIGN_RADIUS, dx0 + SHOP_SIGN_RADIUS + 1)
        if slot.building.contains_interior(x, y)
        and ctx.is_floor(x, y)
        and (x, y) not in occupied
        and (x, y) != slot.inside
    ]
    return _nearest(cells, slot.door)


def welcome_sign_cell(ctx: GenerationContext) -> WorldTilePos | None:
    """Open Floor cell beside the gate, off the road and outside every building."""
    if ctx.gate is None:
        return None
    occupied = {p.position for p in ctx.props}
    interior = ctx.interior_rect()
    gx, gy = ctx.gate
    cells = [
        (x, y)
        for y in range(gy - WELCOME_SIGN_RADIUS, gy + WELCOME_SIGN_RADIUS + 1)
        for x in range(gx - WELCOME_SIGN_RADIUS, gx + WELCOME_SIGN_RADIUS + 1)
        if 0 < manhattan((x, y), ctx.gate) <= WELCOME_SIGN_RADIUS
        and interior.contains(x, y)
        and ctx.tiles[x, y] == TileTypeID.FLOOR
        and (x, y) not in occupied
        and ctx.building_at(x, y) is None
    ]
    return _nearest(cells, ctx.gate)


class SignLayer(GenerationLayer):
    """Settles shop signs and places the welcome sign."""

    def apply(self, ctx: GenerationContext) -> None:
        placed = sum(1 for slot in ctx.shops if self._settle_shop_sign(ctx, slot))

        ctx.props = [
            p
            for p in ctx.props
            if not (p.prop_type == SIGN and (p.name or "").startswith(WELCOME_PREFIX))
        ]
        cell = welcome_sign_cell(ctx)
        if cell is None:
            logger.warning("No free cell beside gate %s for a welcome sign", ctx.gate)
        else:
            ctx.add_prop(TownProp(*cell, SIGN, welcome_text(ctx.name or "")))

        logger.debug(
            "Signs: %d shop signs, welcome sign %s",
            placed,
            "placed" if cell is not None else "missing",
        )

    def _settle_shop_sign(self, ctx: GenerationContext, slot: ShopSlot) -> bool:
        """Leave exactly one sign inside the shop if it wants one, else none.

        Returns True if the shop ends up with a sign.
        """
        building = slot.building
        authored = [
            p
            for p in ctx.props
            if p.prop_type == SIGN and building.contains_interior(p.x, p.y)
        ]
        keep: TownProp | None = None
        if slot.sign_wanted and authored:
            keep = min(authored, key=lambda p: manhattan(p.position, slot.door))
        if authored:
            ctx.props = [p for p in ctx.props if p not in authored]

        if not slot.sign_wanted:
            return False
        if keep is not None:
            ctx.props.append(dataclasses.replace(keep, name=slot.name))
            return True

        cell = shop_sign_cell(ctx, slot)
        if cell is None:
            logger.debug("No room for a sign in %s at %s", slot.name, slot.door)
            return False
        return ctx.add_prop(TownProp(*cell, SIGN, slot.name))
