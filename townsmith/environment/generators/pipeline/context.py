"""Generation context for the town pipeline.

The GenerationContext holds all state for ONE generation call. Each layer
receives the same context and modifies it in place, which avoids copying the
tile array between layers. The context is created inside
`PipelineGenerator.generate()` and never outlives it: the caller only ever
sees the frozen `TownLayout` produced by `to_town_layout()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from townsmith import config
from townsmith.environment.generators.base import (
    Plaza,
    TownDiagnostics,
    TownLayout,
)
from townsmith.environment.generators.buildings import (
    Building,
    PrefabRegistry,
    ShopSlot,
    TownProp,
)
from townsmith.environment.generators.town_config import (
    PopulationTargets,
    TownConfig,
)
from townsmith.environment.tile_types import TileTypeID
from townsmith.types import CompassHeading, TownKind, TownSize, WorldTilePos
from townsmith.util.coordinates import Rect
from townsmith.util.rng import RNG

# Props within this distance of a removed building's footprint go with it.
PROP_REMOVAL_RADIUS = 2


@dataclass
class GenerationContext:
    """Mutable state container passed through the generation pipeline.

    Attributes:
        width: Map width in tiles.
        height: Map height in tiles.
        tiles: 2D numpy array of TileTypeID values. Shape: (width, height).
        rng: The single random stream every layer draws from, in layer order.
        prefabs: Read-only prefab registry.
        town_config: Size/kind lookup table.
        size: Size category being generated.
        kind: "town" or "castle".
        strict_prefabs: If True, skip procedural houses.
        entry_pos: Where the actor stood before entering (map coordinates).
        enter_from: Heading the actor was moving in when it entered.
        name: Town name; drawn by the base layer when None.
        buildings: Buildings committed so far.
        props: Props placed so far.
        shops: Shop slots assigned so far.
        plaza: Plaza, once carved.
        gate: Interior gate cell, once placed.
        gate_door: Border door cell, once placed.
        inn: The inn building, if placed and not evicted.
        outdoor_mask: Filled in by the road layer.
        road_mask: Filled in by the road layer.
        unreachable_doors: Doors the road layer could not connect.
        prefab_usage: Ids of stamped prefabs grouped by category.
        eviction_count: Buildings removed by mandatory placements.
    """

    width: int
    height: int
    tiles: np.ndarray
    rng: RNG
    prefabs: PrefabRegistry = field(default_factory=PrefabRegistry.empty)
    town_config: TownConfig = field(default_factory=TownConfig)
    size: TownSize = "big"
    kind: TownKind = "town"
    strict_prefabs: bool = config.STRICT_PREFABS
    entry_pos: WorldTilePos | None = None
    enter_from: CompassHeading | None = None
    name: str | None = None
    buildings: list[Building] = field(default_factory=list)
    props: list[TownProp] = field(default_factory=list)
    shops: list[ShopSlot] = field(default_factory=list)
    plaza: Plaza | None = None
    gate: WorldTilePos | None = None
    gate_door: WorldTilePos | None = None
    inn: Building | None = None
    outdoor_mask: np.ndarray | None = None
    road_mask: np.ndarray | None = None
    unreachable_doors: list[WorldTilePos] = field(default_factory=list)
    prefab_usage: dict[str, list[str]] = field(default_factory=dict)
    eviction_count: int = 0
    _next_building_id: int = 0

    @classmethod
    def create_empty(
        cls,
        width: int,
        height: int,
        rng: RNG,
        fill_tile: TileTypeID = TileTypeID.FLOOR,
        **kwargs,
    ) -> GenerationContext:
        """Create an empty generation context.

        Args:
            width: Map width in tiles.
            height: Map height in tiles.
            rng: Random source for every layer.
            fill_tile: Tile type to fill the initial map with.
            **kwargs: Any other GenerationContext field.

        Returns:
            A new GenerationContext ready for layer processing.
        """
        tiles = np.full(
            (width, height),
            fill_value=fill_tile,
            dtype=np.uint8,
            order="F",
        )
        return cls(width=width, height=height, tiles=tiles, rng=rng, **kwargs)

    # -------------------------------------------------------------------------
    # Geometry queries
    # -------------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def interior_rect(self) -> Rect:
        """Everything inside the outer wall ring."""
        return Rect(1, 1, self.width - 2, self.height - 2)

    def is_floor(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self.tiles[x, y] == TileTypeID.FLOOR

    def is_area_clear(self, rect: Rect, margin: int = config.BUILDING_MARGIN) -> bool:
        """True if ``rect`` plus ``margin`` is inside the wall ring and all Floor."""
        area = rect.expanded(margin)
        interior = self.interior_rect()
        if (
            area.x1 < interior.x1
            or area.y1 < interior.y1
            or area.x2 > interior.x2
            or area.y2 > interior.y2
        ):
            return False
        return bool(np.all(self.tiles[area.as_slices()] == TileTypeID.FLOOR))

    def overlaps_plaza(self, rect: Rect, margin: int = config.PLAZA_MARGIN) -> bool:
        if self.plaza is None:
            return False
        return self.plaza.rect.overlaps(rect, margin)

    def overlapping_buildings(self, rect: Rect, margin: int = 0) -> list[Building]:
        """Buildings whose footprint shares a cell with ``rect`` grown by ``margin``."""
        return [b for b in self.buildings if rect.overlaps(b.footprint, margin)]

    def building_at(self, x: int, y: int) -> Building | None:
        for building in self.buildings:
            if building.contains_point(x, y):
                return building
        return None

    # -------------------------------------------------------------------------
    # Building bookkeeping
    # -------------------------------------------------------------------------

    def next_building_id(self) -> int:
        building_id = self._next_building_id
        self._next_building_id += 1
        return building_id

    def add_building(
        self,
        footprint: Rect,
        building_type: str = "house",
        door_positions: list[WorldTilePos] | None = None,
        prefab_id: str | None = None,
        prefab_category: str | None = None,
    ) -> Building:
        building = Building(
            id=self.next_building_id(),
            building_type=building_type,
            footprint=footprint,
            door_positions=list(door_positions or []),
            prefab_id=prefab_id,
            prefab_category=prefab_category,
        )
        self.buildings.append(building)
        return building

    def carve_hollow_rect(self, rect: Rect) -> None:
        """Write a Wall ring with Floor inside, clipped to the wall ring."""
        area = self.interior_rect()
        for x, y in rect.cells():
            if not area.contains(x, y):
                continue
            self.tiles[x, y] = (
                TileTypeID.WALL if rect.is_perimeter(x, y) else TileTypeID.FLOOR
            )

    def remove_building(self, building: Building) -> None:
        """Remove a building and everything bound to it.

        Its footprint is reset to Floor, nearby props and its shop slots are
        dropped, and the inn reference is cleared if it pointed here.
        """
        self.tiles[building.footprint.as_slices()] = TileTypeID.FLOOR
        self.buildings = [b for b in self.buildings if b is not building]
        reach = building.footprint.expanded(PROP_REMOVAL_RADIUS)
        self.props = [p for p in self.props if not reach.contains(p.x, p.y)]
        self.shops = [s for s in self.shops if s.building is not building]
        if self.inn is building:
            self.inn = None

    def add_prop(self, prop: TownProp) -> bool:
        """Add a prop unless one already occupies its cell."""
        if any(p.x == prop.x and p.y == prop.y for p in self.props):
            return False
        self.props.append(prop)
        return True

    def record_prefab_usage(self, category: str, prefab_id: str) -> None:
        self.prefab_usage.setdefault(category, []).append(prefab_id)

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def to_town_layout(
        self, population: PopulationTargets, diagnostics: TownDiagnostics
    ) -> TownLayout:
        """Freeze this context into the layout handed to collaborators."""
        if self.plaza is None or self.gate is None or self.gate_door is None:
            raise RuntimeError("Town pipeline finished without a plaza and gate")
        empty = np.zeros((self.width, self.height), dtype=bool, order="F")
        return TownLayout(
            name=self.name or "",
            size=self.size,
            kind=self.kind,
            tiles=self.tiles,
            buildings=tuple(self.buildings),
            shops=tuple(self.shops),
            props=tuple(self.props),
            plaza=self.plaza,
            gate=self.gate,
            gate_door=self.gate_door,
            outdoor_mask=self.outdoor_mask if self.outdoor_mask is not None else empty,
            road_mask=self.road_mask if self.road_mask is not None else empty.copy(),
            inn=self.inn,
            unreachable_doors=tuple(self.unreachable_doors),
            population=population,
            diagnostics=diagnostics,
        )
