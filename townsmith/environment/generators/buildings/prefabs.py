"""Authored building templates (prefabs) and the registry that holds them.

A prefab is a fixed-size grid of tile codes plus metadata: door positions,
explicit props, and an optional shop description. Records are validated once
at load time and converted to immutable `Prefab` objects; generation code
never sees raw dictionaries.

Registry data uses the same shape as the game's prefab data file:

    {
        "houses":   [ {...}, ... ],
        "shops":    [ {...}, ... ],
        "inns":     [ {...}, ... ],
        "plazas":   [ {...}, ... ],
        "caravans": [ {...}, ... ],
        "barracks": [ {...}, ... ]
    }

Each record looks like:

    {
        "id": "cottage_small",
        "category": "house",
        "size": {"w": 7, "h": 5},
        "tiles": [["WALL", "WALL", ...], ...],
        "doors": [{"x": 3, "y": 4, "role": "main"}],
        "props": [{"x": 2, "y": 2, "type": "bed"}],
        "shop": {"type": "bakery", "schedule": {"open": "06:00", "close": "15:00"}}
    }
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from townsmith.environment.tile_types import TileTypeID
from townsmith.util.rng import RNG

logger = logging.getLogger(__name__)


class PrefabError(ValueError):
    """Raised when a prefab record is malformed."""


# Structural tile codes. STAIRS lands as plain floor: upper storeys are not
# generated.
STRUCTURAL_CODES: dict[str, TileTypeID] = {
    "WALL": TileTypeID.WALL,
    "FLOOR": TileTypeID.FLOOR,
    "DOOR": TileTypeID.DOOR,
    "WINDOW": TileTypeID.WINDOW,
    "STAIRS": TileTypeID.FLOOR,
}

# Furniture codes: the tile becomes floor and a prop is recorded on it.
PROP_CODES: dict[str, str] = {
    "BED": "bed",
    "TABLE": "table",
    "CHAIR": "chair",
    "SHELF": "shelf",
    "RUG": "rug",
    "FIREPLACE": "fireplace",
    "CHEST": "chest",
    "CRATE": "crate",
    "BARREL": "barrel",
    "PLANT": "plant",
    "COUNTER": "counter",
    "STALL": "stall",
    "LAMP": "lamp",
    "WELL": "well",
    "BENCH": "bench",
    "SIGN": "sign",
    "QUEST_BOARD": "quest_board",
}

# Registry group name -> category assigned to records that omit one.
CATEGORY_GROUPS: dict[str, str] = {
    "houses": "house",
    "shops": "shop",
    "inns": "inn",
    "plazas": "plaza",
    "caravans": "caravan",
    "barracks": "barracks",
}


@dataclass(frozen=True)
class PrefabDoor:
    x: int
    y: int
    role: str | None = None


@dataclass(frozen=True)
class PrefabProp:
    x: int
    y: int
    prop_type: str
    name: str | None = None
    vendor: str | None = None


@dataclass(frozen=True)
class ShopMeta:
    """Shop description carried by shop prefabs.

    Attributes:
        shop_type: Shop kind, e.g. "blacksmith".
        sign: Whether the shop wants a sign by its door.
        sign_text: Optional sign caption, used as the name fallback.
        open_time: Opening time as "HH:MM", if overridden.
        close_time: Closing time as "HH:MM", if overridden.
        always_open: Schedule override for round-the-clock shops.
    """

    shop_type: str
    sign: bool = True
    sign_text: str | None = None
    open_time: str | None = None
    close_time: str | None = None
    always_open: bool = False

    @property
    def has_schedule_override(self) -> bool:
        return bool(self.open_time or self.close_time or self.always_open)


@dataclass(frozen=True)
class Prefab:
    """An immutable authored building template.

    Attributes:
        id: Unique identifier.
        category: "house", "shop", "inn", "plaza", "caravan" or "barracks".
        width: Footprint width in tiles.
        height: Footprint height in tiles.
        tiles: Row-major tile codes, ``tiles[y][x]``.
        doors: Door positions relative to the prefab origin.
        props: Explicit props relative to the prefab origin.
        shop: Shop description, if the prefab hosts a shop.
        name: Display name.
        tags: Free-form tags (e.g., "guard_barracks").
    """

    id: str
    category: str
    width: int
    height: int
    tiles: tuple[tuple[str, ...], ...]
    doors: tuple[PrefabDoor, ...] = ()
    props: tuple[PrefabProp, ...] = ()
    shop: ShopMeta | None = None
    name: str | None = None
    tags: tuple[str, ...] = field(default=())

    @property
    def area(self) -> int:
        return self.width * self.height

    def fits(self, width: int, height: int) -> bool:
        """True if this prefab fits inside a width x height rectangle."""
        return self.width <= width and self.height <= height

    def has_tag(self, *names: str) -> bool:
        lowered = {t.lower() for t in self.tags}
        prefab_id = self.id.lower()
        return any(n in lowered or n in prefab_id for n in names)

    @property
    def shop_type(self) -> str | None:
        """Shop kind for shop prefabs, falling back to the first non-"shop" tag."""
        if self.shop is not None:
            return self.shop.shop_type
        if self.category != "shop":
            return None
        return next((t for t in self.tags if t != "shop"), "shop")

    def main_door(self) -> PrefabDoor | None:
        for door in self.doors:
            if (door.role or "").lower() == "main":
                return door
        return self.doors[0] if self.doors else None


class PrefabRegistry:
    """Read-only collection of prefabs grouped by category."""

    def __init__(self, prefabs: Sequence[Prefab] = ()) -> None:
        self._by_category: dict[str, tuple[Prefab, ...]] = {}
        self._by_id: dict[str, Prefab] = {}
        grouped: dict[str, list[Prefab]] = {}
        for prefab in prefabs:
            if prefab.id in self._by_id:
                raise PrefabError(f"Duplicate prefab id {prefab.id!r}")
            self._by_id[prefab.id] = prefab
            grouped.setdefault(prefab.category, []).append(prefab)
        for category, items in grouped.items():
            self._by_category[category] = tuple(items)

    @classmethod
    def empty(cls) -> PrefabRegistry:
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PrefabRegistry:
        """Build a registry from a dict of category groups.

        Raises:
            PrefabError: If any record is malformed.
        """
        prefabs: list[Prefab] = []
        for group, default_category in CATEGORY_GROUPS.items():
            records = data.get(group) or []
            if not isinstance(records, list):
                raise PrefabError(f"Prefab group {group!r} must be a list")
            prefabs.extend(
                parse_prefab(record, default_category) for record in records
            )
        return cls(prefabs)

    def get(self, category: str) -> tuple[Prefab, ...]:
        return self._by_category.get(category, ())

    def by_id(self, prefab_id: str) -> Prefab | None:
        return self._by_id.get(prefab_id)

    def has(self, category: str) -> bool:
        return bool(self._by_category.get(category))

    @property
    def houses(self) -> tuple[Prefab, ...]:
        return self.get("house")

    @property
    def shops(self) -> tuple[Prefab, ...]:
        return self.get("shop")

    @property
    def inns(self) -> tuple[Prefab, ...]:
        return self.get("inn")

    @property
    def plazas(self) -> tuple[Prefab, ...]:
        return self.get("plaza")

    def barracks(self) -> tuple[Prefab, ...]:
        """Dedicated barracks prefabs plus houses tagged as barracks."""
        tagged = tuple(
            p for p in self.houses if p.has_tag("guard_barracks", "barracks")
        )
        return self.get("barracks") + tagged

    def is_empty(self) -> bool:
        return not self._by_category

    def __iter__(self) -> Iterator[Prefab]:
        for items in self._by_category.values():
            yield from items

    def __len__(self) -> int:
        return sum(len(items) for items in self._by_category.values())


def pick_prefab(prefabs: Sequence[Prefab], rng: RNG) -> Prefab | None:
    """Pick one prefab uniformly, or None from an empty list."""
    if not prefabs:
        return None
    return prefabs[math.floor(rng.random() * len(prefabs)) % len(prefabs)]


# =============================================================================
# Parsing
# =============================================================================


def _int_field(record: dict[str, Any], key: str, context: str) -> int:
    value = record.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise PrefabError(f"{context}: {key!r} must be a number, got {value!r}")
    return int(value)


def parse_prefab(record: dict[str, Any], default_category: str) -> Prefab:
    """Validate one raw record and convert it to a Prefab.

    Raises:
        PrefabError: If the size does not match the tile rows, a tile code is
            unknown, or a door/prop lies outside the footprint.
    """
    if not isinstance(record, dict):
        raise PrefabError(
            f"Prefab record must be an object, got {type(record).__name__}"
        )
    prefab_id = str(record.get("id") or "")
    if not prefab_id:
        raise PrefabError("Prefab record is missing an 'id'")
    context = f"Prefab {prefab_id!r}"

    size = record.get("size")
    if not isinstance(size, dict):
        raise PrefabError(f"{context}: missing 'size'")
    width = _int_field(size, "w", context)
    height = _int_field(size, "h", context)
    if width < 1 or height < 1:
        raise PrefabError(f"{context}: size must be positive, got {width}x{height}")

    rows = record.get("tiles")
    if not isinstance(rows, list) or len(rows) != height:
        raise PrefabError(f"{context}: expected {height} tile rows")
    tiles: list[tuple[str, ...]] = []
    for y, row in enumerate(rows):
        if not isinstance(row, list) or len(row) != width:
            raise PrefabError(f"{context}: row {y} must have {width} tiles")
        codes = tuple(str(code).upper() for code in row)
        for code in codes:
            if code not in STRUCTURAL_CODES and code not in PROP_CODES:
                raise PrefabError(f"{context}: unknown tile code {code!r} in row {y}")
        tiles.append(codes)

    doors: list[PrefabDoor] = []
    for raw in record.get("doors") or []:
        door = PrefabDoor(
            _int_field(raw, "x", context),
            _int_field(raw, "y", context),
            raw.get("role"),
        )
        if not (0 <= door.x < width and 0 <= door.y < height):
            raise PrefabError(f"{context}: door ({door.x}, {door.y}) outside footprint")
        doors.append(door)

    props: list[PrefabProp] = []
    for raw in record.get("props") or []:
        prop = PrefabProp(
            _int_field(raw, "x", context),
            _int_field(raw, "y", context),
            str(raw.get("type") or "prop"),
            raw.get("name"),
            raw.get("vendor"),
        )
        if not (0 <= prop.x < width and 0 <= prop.y < height):
            raise PrefabError(f"{context}: prop ({prop.x}, {prop.y}) outside footprint")
        props.append(prop)

    shop: ShopMeta | None = None
    raw_shop = record.get("shop")
    if isinstance(raw_shop, dict) and raw_shop.get("type"):
        schedule = raw_shop.get("schedule") or {}
        shop = ShopMeta(
            shop_type=str(raw_shop["type"]),
            sign=bool(raw_shop.get("sign", True)),
            sign_text=raw_shop.get("signText"),
            open_time=schedule.get("open"),
            close_time=schedule.get("close"),
            always_open=bool(schedule.get("alwaysOpen", False)),
        )

    return Prefab(
        id=prefab_id,
        category=str(record.get("category") or default_category).lower(),
        width=width,
        height=height,
        tiles=tuple(tiles),
        doors=tuple(doors),
        props=tuple(props),
        shop=shop,
        name=record.get("name"),
        tags=tuple(str(t) for t in record.get("tags") or ()),
    )


def load_prefab_registry(path: str | Path) -> PrefabRegistry:
    """Load a registry from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        PrefabError: If the file is not valid prefab data.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PrefabError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise PrefabError(f"{path}: top level must be an object of category groups")
    registry = PrefabRegistry.from_dict(data)
    logger.debug("Loaded %d prefabs from %s", len(registry), path)
    return registry
