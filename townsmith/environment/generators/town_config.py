"""Town-size configuration table.

Maps a size category ("small", "big", "city") to grid dimensions, plaza
dimensions, building-count targets and population targets. Defaults match the
values the generator has always shipped with; a JSON-shaped dict (the same
layout as the game's ``town.json`` data file) can be overlaid with
`TownConfig.from_dict`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any

from townsmith.types import TownKind, TownSize


@dataclass(frozen=True)
class InnSizeConfig:
    """Inn footprint scales from the plaza but never drops below a minimum."""

    min_width: int
    min_height: int
    scale_width: float
    scale_height: float

    def target(self, plaza_width: int, plaza_height: int) -> tuple[int, int]:
        return (
            max(self.min_width, math.floor(plaza_width * self.scale_width)),
            max(self.min_height, math.floor(plaza_height * self.scale_height)),
        )


@dataclass(frozen=True)
class KeepSizeConfig:
    """Castle keep footprint, scaled from the plaza like the inn."""

    min_width: int
    min_height: int
    scale_width: float
    scale_height: float

    def target(
        self, plaza_width: int, plaza_height: int, map_width: int, map_height: int
    ) -> tuple[int, int]:
        keep_w = max(self.min_width, math.floor(plaza_width * self.scale_width))
        keep_h = max(self.min_height, math.floor(plaza_height * self.scale_height))
        # Stay clear of the outer wall ring.
        return min(keep_w, map_width - 6), min(keep_h, map_height - 6)


@dataclass(frozen=True)
class TownSizeConfig:
    """Everything that varies with the size category of a town.

    Attributes:
        width: Grid width in tiles, outer wall included.
        height: Grid height in tiles, outer wall included.
        plaza_width: Nominal plaza width (the carved rectangle is one wider
            because it spans center - w/2 .. center + w/2 inclusive).
        plaza_height: Nominal plaza height.
        max_buildings: Cap for the grid-block scan.
        block_width: Block width used by the grid-block scan.
        block_height: Block height used by the grid-block scan.
        residential_fill_target: Building count the random fill pass tops up to.
        min_buildings_near_plaza: Building count the quadrant pass tops up to.
        shop_limit: Maximum number of shops.
        guards_base: Guard population before kind bonuses.
        inn: Inn footprint sizing.
        keep: Castle keep footprint sizing.
    """

    width: int
    height: int
    plaza_width: int
    plaza_height: int
    max_buildings: int
    block_width: int
    block_height: int
    residential_fill_target: int
    min_buildings_near_plaza: int
    shop_limit: int
    guards_base: int
    inn: InnSizeConfig
    keep: KeepSizeConfig


@dataclass(frozen=True)
class TownKindConfig:
    density_multiplier: float = 1.0
    min_near_plaza_bonus: int = 0


@dataclass(frozen=True)
class PopulationConfig:
    roamers_per_building: float = 0.5
    roamers_min: int = 6
    roamers_max: int = 14
    guards_castle_bonus: int = 2


@dataclass(frozen=True)
class BuildingTargets:
    """Building-count targets after town-kind multipliers are applied."""

    max_buildings: int
    block_width: int
    block_height: int
    residential_fill_target: int
    min_buildings_near_plaza: int


@dataclass(frozen=True)
class PopulationTargets:
    roamers: int
    guards: int


TOWN_SIZES: dict[str, TownSizeConfig] = {
    "small": TownSizeConfig(
        width=60,
        height=40,
        plaza_width=10,
        plaza_height=8,
        max_buildings=18,
        block_width=8,
        block_height=6,
        residential_fill_target=12,
        min_buildings_near_plaza=10,
        shop_limit=3,
        guards_base=2,
        inn=InnSizeConfig(14, 10, 1.15, 1.08),
        keep=KeepSizeConfig(12, 10, 0.8, 0.8),
    ),
    "big": TownSizeConfig(
        width=90,
        height=60,
        plaza_width=14,
        plaza_height=12,
        max_buildings=18,
        block_width=8,
        block_height=6,
        residential_fill_target=22,
        min_buildings_near_plaza=16,
        shop_limit=4,
        guards_base=3,
        inn=InnSizeConfig(18, 12, 1.20, 1.10),
        keep=KeepSizeConfig(14, 12, 0.9, 0.9),
    ),
    "city": TownSizeConfig(
        width=120,
        height=80,
        plaza_width=18,
        plaza_height=14,
        max_buildings=18,
        block_width=8,
        block_height=6,
        residential_fill_target=34,
        min_buildings_near_plaza=24,
        shop_limit=6,
        guards_base=4,
        inn=InnSizeConfig(24, 16, 1.35, 1.25),
        keep=KeepSizeConfig(18, 14, 1.1, 1.1),
    ),
}

TOWN_KINDS: dict[str, TownKindConfig] = {
    "town": TownKindConfig(),
    "castle": TownKindConfig(),
}


@dataclass(frozen=True)
class TownConfig:
    """Lookup table for every size- and kind-dependent generation parameter."""

    sizes: dict[str, TownSizeConfig] = field(default_factory=lambda: dict(TOWN_SIZES))
    kinds: dict[str, TownKindConfig] = field(default_factory=lambda: dict(TOWN_KINDS))
    population: PopulationConfig = field(default_factory=PopulationConfig)

    def size(self, size: TownSize | str) -> TownSizeConfig:
        """Return the config for a size category.

        Raises:
            ValueError: If the category is not in the table.
        """
        try:
            return self.sizes[size]
        except KeyError:
            raise ValueError(
                f"Unknown town size {size!r}; expected one of {sorted(self.sizes)}"
            ) from None

    def kind(self, kind: TownKind | str) -> TownKindConfig:
        return self.kinds.get(kind, TownKindConfig())

    def building_targets(
        self, size: TownSize | str, kind: TownKind | str = "town"
    ) -> BuildingTargets:
        size_cfg = self.size(size)
        kind_cfg = self.kind(kind)
        density = kind_cfg.density_multiplier
        return BuildingTargets(
            max_buildings=max(1, round(size_cfg.max_buildings * density)),
            block_width=max(4, size_cfg.block_width),
            block_height=max(3, size_cfg.block_height),
            residential_fill_target=max(
                1, round(size_cfg.residential_fill_target * density)
            ),
            min_buildings_near_plaza=size_cfg.min_buildings_near_plaza
            + kind_cfg.min_near_plaza_bonus,
        )

    def population_targets(
        self, size: TownSize | str, kind: TownKind | str, building_count: int
    ) -> PopulationTargets:
        """Roamer and guard counts for the population collaborator."""
        pop = self.population
        roamers = math.floor(building_count * pop.roamers_per_building)
        roamers = min(pop.roamers_max, max(pop.roamers_min, roamers))

        guards = self.size(size).guards_base
        if kind == "castle":
            guards += pop.guards_castle_bonus
        guards = max(0, min(guards, roamers))
        return PopulationTargets(roamers=roamers, guards=guards)

    # -------------------------------------------------------------------------
    # Data overlay
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TownConfig:
        """Build a config by overlaying a ``town.json``-shaped dict on the defaults.

        Missing keys keep their default values. Recognised keys: ``sizes``,
        ``plaza``, ``buildings`` (``maxBySize``, ``block``,
        ``residentialFillTargets``, ``minNearPlaza``), ``kinds``, ``inn.size``,
        ``castle.keep.size`` and ``population``.
        """
        sizes = dict(TOWN_SIZES)
        buildings = data.get("buildings", {})
        inn_sizes = data.get("inn", {}).get("size", {})
        keep_sizes = data.get("castle", {}).get("keep", {}).get("size", {})

        for key, base in TOWN_SIZES.items():
            updates: dict[str, Any] = {}
            if dims := data.get("sizes", {}).get(key):
                updates["width"] = int(dims["W"])
                updates["height"] = int(dims["H"])
            if plaza := data.get("plaza", {}).get(key):
                updates["plaza_width"] = int(plaza["w"])
                updates["plaza_height"] = int(plaza["h"])
            if (max_b := buildings.get("maxBySize", {}).get(key)) is not None:
                updates["max_buildings"] = int(max_b)
            if block := buildings.get("block", {}).get(key):
                updates["block_width"] = int(block["blockW"])
                updates["block_height"] = int(block["blockH"])
            fill = buildings.get("residentialFillTargets", {}).get(key)
            if fill is not None:
                updates["residential_fill_target"] = int(fill)
            if (near := buildings.get("minNearPlaza", {}).get(key)) is not None:
                updates["min_buildings_near_plaza"] = int(near)
            if inn := inn_sizes.get(key):
                updates["inn"] = InnSizeConfig(
                    int(inn["minW"]),
                    int(inn["minH"]),
                    float(inn["scaleW"]),
                    float(inn["scaleH"]),
                )
            if keep := keep_sizes.get(key):
                updates["keep"] = KeepSizeConfig(
                    int(keep.get("minW", 0)),
                    int(keep.get("minH", 0)),
                    float(keep["scaleW"]),
                    float(keep["scaleH"]),
                )
            guards = data.get("population", {}).get("guardsBaseBySize", {}).get(key)
            if guards is not None:
                updates["guards_base"] = int(guards)
            sizes[key] = replace(base, **updates)

        kinds = dict(TOWN_KINDS)
        for kind_name, kind_data in data.get("kinds", {}).items():
            kind_build = kind_data.get("buildings", {})
            kinds[kind_name] = TownKindConfig(
                density_multiplier=float(kind_build.get("densityMultiplier", 1.0)),
                min_near_plaza_bonus=int(kind_build.get("minNearPlazaBonus", 0)),
            )

        pop_data = data.get("population", {})
        defaults = PopulationConfig()
        population = PopulationConfig(
            roamers_per_building=float(
                pop_data.get("roamersPerBuilding", defaults.roamers_per_building)
            ),
            roamers_min=int(pop_data.get("roamersMin", defaults.roamers_min)),
            roamers_max=int(pop_data.get("roamersMax", defaults.roamers_max)),
            guards_castle_bonus=int(
                pop_data.get("guardsCastleBonus", defaults.guards_castle_bonus)
            ),
        )
        return cls(sizes=sizes, kinds=kinds, population=population)
