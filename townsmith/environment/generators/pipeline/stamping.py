"""Atomic prefab stamping with slip search.

`PrefabStamper.stamp()` validates every cell a prefab would touch before it
writes anything. Validation covers bounds, the plaza no-build zone and
occupancy of the footprint plus its building margin. A rejected stamp leaves
the grid untouched and reports why with a `StampConflict` value; callers
decide whether to slip, fall back or give up, and they do the logging.

Slip search retries at origins nudged by 1..N cells in a fixed order:
right, left, down, up, then the four diagonals, for each distance in turn.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

from townsmith import config
from townsmith.environment.generators.buildings import (
    DEFAULT_SCHEDULE,
    Building,
    Prefab,
    ShopSchedule,
    TownProp,
)
from townsmith.environment.generators.buildings.prefabs import (
    PROP_CODES,
    STRUCTURAL_CODES,
)
from townsmith.environment.tile_types import TileTypeID
from townsmith.types import WorldTilePos
from townsmith.util.coordinates import Rect

from .context import GenerationContext

# Prefab category -> semantic building type.
BUILDING_TYPES: dict[str, str] = {
    "house": "house",
    "shop": "shop",
    "inn": "inn",
    "barracks": "barracks",
    "caravan": "caravan",
}

OPENINGS = (TileTypeID.DOOR, TileTypeID.WINDOW)


class StampConflict(Enum):
    """Why a stamp was rejected."""

    OUT_OF_BOUNDS = "out_of_bounds"
    PLAZA = "plaza"
    OCCUPIED = "occupied"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class StampedShop:
    """Shop description resolved to world coordinates at stamp time."""

    shop_type: str
    name: str
    door: WorldTilePos
    schedule: ShopSchedule
    sign_wanted: bool


@dataclass(frozen=True)
class StampedPrefab:
    building: Building
    prefab: Prefab
    shop: StampedShop | None = None


StampResult: TypeAlias = StampedPrefab | StampConflict


def slip_offsets(max_slip: int) -> list[tuple[int, int]]:
    offsets: list[tuple[int, int]] = []
    for d in range(1, max_slip + 1):
        offsets += [(d, 0), (-d, 0), (0, d), (0, -d)]
        offsets += [(d, d), (-d, d), (d, -d), (-d, -d)]
    return offsets


def _counter_vendor(prefab: Prefab) -> str | None:
    if prefab.category == "inn":
        return "inn"
    if prefab.category == "shop":
        return prefab.shop_type or "shop"
    return None


class PrefabStamper:
    """Stamps prefabs onto one generation context.

    Args:
        ctx: The context whose tiles and building list are written.
        margin: Floor buffer required around every stamped footprint.
        plaza_margin: Buffer kept clear around the plaza rectangle.
    """

    def __init__(
        self,
        ctx: GenerationContext,
        margin: int = config.BUILDING_MARGIN,
        plaza_margin: int = config.PLAZA_MARGIN,
    ) -> None:
        self.ctx = ctx
        self.margin = margin
        self.plaza_margin = plaza_margin

    def check(self, prefab: Prefab, x: int, y: int) -> StampConflict | None:
        """Return the first reason ``prefab`` cannot go at (x, y), or None."""
        if len(prefab.tiles) != prefab.height or any(
            len(row) != prefab.width for row in prefab.tiles
        ):
            return StampConflict.MALFORMED
        rect = Rect(x, y, prefab.width, prefab.height)
        area = rect.expanded(self.margin)
        interior = self.ctx.interior_rect()
        if (
            area.x1 < interior.x1
            or area.y1 < interior.y1
            or area.x2 > interior.x2
            or area.y2 > interior.y2
        ):
            return StampConflict.OUT_OF_BOUNDS
        if self.ctx.overlaps_plaza(rect, self.plaza_margin):
            return StampConflict.PLAZA
        if not self.ctx.is_area_clear(rect, self.margin):
            return StampConflict.OCCUPIED
        return None

    def stamp(
        self,
        prefab: Prefab,
        x: int,
        y: int,
        building_type: str | None = None,
    ) -> StampResult:
        """Stamp ``prefab`` with its top-left corner at (x, y).

        All-or-nothing: on conflict nothing is written.
        """
        conflict = self.check(prefab, x, y)
        if conflict is not None:
            return conflict

        ctx = self.ctx
        rect = Rect(x, y, prefab.width, prefab.height)

        # Stage tiles and embedded props, then commit.
        staged_tiles: list[tuple[int, int, TileTypeID]] = []
        staged_props: list[TownProp] = []
        vendor = _counter_vendor(prefab)
        for dy, row in enumerate(prefab.tiles):
            for dx, code in enumerate(row):
                wx, wy = x + dx, y + dy
                if code in PROP_CODES:
                    prop_type = PROP_CODES[code]
                    staged_tiles.append((wx, wy, TileTypeID.FLOOR))
                    staged_props.append(
                        TownProp(
                            wx,
                            wy,
                            prop_type,
                            vendor=vendor if prop_type == "counter" else None,
                        )
                    )
                else:
                    staged_tiles.append((wx, wy, STRUCTURAL_CODES[code]))

        for wx, wy, tile in staged_tiles:
            ctx.tiles[wx, wy] = tile

        # Solid perimeter: anything on the ring that is not an opening is wall.
        for px, py in rect.perimeter():
            if ctx.tiles[px, py] not in OPENINGS:
                ctx.tiles[px, py] = TileTypeID.WALL

        for door in prefab.doors:
            ctx.tiles[x + door.x, y + door.y] = TileTypeID.DOOR

        doors = [pos for pos in rect.perimeter() if ctx.tiles[pos] == TileTypeID.DOOR]
        # Inns rely on their authored doors only.
        if not doors and prefab.category != "inn":
            bottom_center = (x + prefab.width // 2, y + prefab.height - 1)
            ctx.tiles[bottom_center] = TileTypeID.DOOR
            doors = [bottom_center]

        staged_props += [
            TownProp(x + p.x, y + p.y, p.prop_type, p.name, p.vendor)
            for p in prefab.props
        ]
        # Ring cells forced to Wall or Door lose their props.
        for prop in staged_props:
            if ctx.tiles[prop.x, prop.y] == TileTypeID.FLOOR:
                ctx.add_prop(prop)

        building = ctx.add_building(
            rect,
            building_type or BUILDING_TYPES.get(prefab.category, "house"),
            door_positions=doors,
            prefab_id=prefab.id,
            prefab_category=prefab.category,
        )
        ctx.record_prefab_usage(prefab.category, prefab.id)
        return StampedPrefab(building, prefab, resolve_shop(prefab, x, y))

    def try_slip_stamp(
        self,
        prefab: Prefab,
        x: int,
        y: int,
        max_slip: int = config.SLIP_DISTANCE,
        building_type: str | None = None,
    ) -> StampResult:
        """Retry ``stamp`` at nudged origins; return the first success.

        The direct origin is not retried. On total failure the conflict from
        the last origin tried is returned.
        """
        result: StampResult = StampConflict.OUT_OF_BOUNDS
        for dx, dy in slip_offsets(max_slip):
            result = self.stamp(prefab, x + dx, y + dy, building_type)
            if isinstance(result, StampedPrefab):
                return result
        return result

    def stamp_or_slip(
        self,
        prefab: Prefab,
        x: int,
        y: int,
        max_slip: int = config.SLIP_DISTANCE,
        building_type: str | None = None,
    ) -> StampResult:
        result = self.stamp(prefab, x, y, building_type)
        if isinstance(result, StampedPrefab) or result is StampConflict.MALFORMED:
            return result
        return self.try_slip_stamp(prefab, x, y, max_slip, building_type)

    def stamp_plaza(self, prefab: Prefab, x: int, y: int) -> int | StampConflict:
        """Stamp a plaza prefab: every tile resolves to Floor, props only.

        Returns:
            The number of props added, or the conflict.
        """
        ctx = self.ctx
        if len(prefab.tiles) != prefab.height or any(
            len(row) != prefab.width for row in prefab.tiles
        ):
            return StampConflict.MALFORMED
        rect = Rect(x, y, prefab.width, prefab.height)
        interior = ctx.interior_rect()
        if (
            rect.x1 < interior.x1
            or rect.y1 < interior.y1
            or rect.x2 > interior.x2
            or rect.y2 > interior.y2
        ):
            return StampConflict.OUT_OF_BOUNDS
        if not ctx.is_area_clear(rect, margin=0):
            return StampConflict.OCCUPIED

        staged: list[TownProp] = []
        for dy, row in enumerate(prefab.tiles):
            for dx, code in enumerate(row):
                if code in PROP_CODES:
                    staged.append(TownProp(x + dx, y + dy, PROP_CODES[code]))
        staged += [
            TownProp(x + p.x, y + p.y, p.prop_type, p.name) for p in prefab.props
        ]

        ctx.tiles[rect.as_slices()] = TileTypeID.FLOOR
        added = sum(1 for prop in staged if ctx.add_prop(prop))
        ctx.record_prefab_usage(prefab.category, prefab.id)
        return added


def resolve_shop(prefab: Prefab, x: int, y: int) -> StampedShop | None:
    """Shop description of ``prefab`` stamped at (x, y), or None.

    The name falls back from the prefab name to the sign text to the
    capitalised shop type. The door is the authored main door, else the
    bottom-centre cell.
    """
    shop_type = prefab.shop_type
    if shop_type is None:
        return None
    meta = prefab.shop
    name = prefab.name or (meta.sign_text if meta else None) or shop_type.capitalize()
    main = prefab.main_door()
    if main is not None:
        door = (x + main.x, y + main.y)
    else:
        door = (x + prefab.width // 2, y + prefab.height - 1)
    schedule = DEFAULT_SCHEDULE
    if meta is not None and meta.has_schedule_override:
        schedule = ShopSchedule.from_strings(
            meta.open_time, meta.close_time, meta.always_open
        )
    return StampedShop(
        shop_type=shop_type,
        name=name,
        door=door,
        schedule=schedule,
        sign_wanted=meta.sign if meta else True,
    )
