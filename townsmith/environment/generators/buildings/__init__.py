"""Building records, prefab templates and footprint sizing for town generation."""

from .building import Building, TownProp
from .prefabs import (
    Prefab,
    PrefabDoor,
    PrefabError,
    PrefabProp,
    PrefabRegistry,
    ShopMeta,
    load_prefab_registry,
    pick_prefab,
)
from .shops import (
    ALWAYS_OPEN,
    DEFAULT_SCHEDULE,
    DEFAULT_SHOP_DEFINITIONS,
    ShopDefinition,
    ShopSchedule,
    ShopSlot,
)
from .templates import Footprint, choose_footprint

__all__ = [
    "ALWAYS_OPEN",
    "DEFAULT_SCHEDULE",
    "DEFAULT_SHOP_DEFINITIONS",
    "Building",
    "Footprint",
    "Prefab",
    "PrefabDoor",
    "PrefabError",
    "PrefabProp",
    "PrefabRegistry",
    "ShopDefinition",
    "ShopMeta",
    "ShopSchedule",
    "ShopSlot",
    "TownProp",
    "choose_footprint",
    "load_prefab_registry",
    "pick_prefab",
]
