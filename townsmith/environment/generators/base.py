"""Base classes and result types for town generation."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from townsmith.environment import tile_types

if TYPE_CHECKING:
    from townsmith.environment.generators.buildings import (
        Building,
        ShopSlot,
        TownProp,
    )
    from townsmith.environment.generators.town_config import PopulationTargets
    from townsmith.types import TileCoord, TownKind, TownSize, WorldTilePos
    from townsmith.util.coordinates import Rect


@dataclass(frozen=True)
class Plaza:
    """The open square at the centre of town.

    Attributes:
        center: Nominal centre cell (grid centre).
        rect: The carved rectangle, inclusive of both edges of the nominal size.
    """

    center: WorldTilePos
    rect: Rect


@dataclass(frozen=True)
class TownDiagnostics:
    """Summary numbers reported after generation.

    Attributes:
        road_tiles: Cells whose tile is ROAD.
        road_mask_cells: Cells flagged in the road mask (includes plaza cells
            the main road crosses, which stay Floor).
        building_count: Buildings in the final layout.
        building_target: Residential fill target for the town size.
        prefab_usage: Prefab ids stamped, grouped by category.
        unreachable_doors: Doors the road builder could not connect.
        evictions: Buildings removed by mandatory placements.
    """

    road_tiles: int
    road_mask_cells: int
    building_count: int
    building_target: int
    prefab_usage: dict[str, tuple[str, ...]] = field(default_factory=dict)
    unreachable_doors: int = 0
    evictions: int = 0

    def as_log_line(self) -> str:
        usage = " ".join(
            f"{category}={len(ids)}"
            for category, ids in sorted(self.prefab_usage.items())
        )
        return (
            f"roads: typed={self.road_tiles} mask={self.road_mask_cells} | "
            f"buildings: {self.building_count}/{self.building_target} | "
            f"prefabs: {usage or 'none'} | "
            f"unreachable_doors={self.unreachable_doors} evictions={self.evictions}"
        )


@dataclass(frozen=True, eq=False)
class TownLayout:
    """The finished town handed to population, economy and rendering code.

    Attributes:
        name: Town name.
        size: Size category the town was generated at.
        kind: "town" or "castle".
        tiles: 2D numpy array of TileTypeID values. Shape: (width, height).
        buildings: Committed buildings.
        shops: Shop slots bound to buildings.
        props: Furniture and plaza dressing.
        plaza: Plaza centre and rectangle.
        gate: Interior cell just inside the gate door; the actor stands here.
        gate_door: The border Door cell.
        outdoor_mask: True where the cell is Floor and not inside a building.
            Computed before roads are laid.
        road_mask: True for every cell on a road path, plaza cells included.
        inn: The inn building, if one was placed.
        unreachable_doors: Doors with no road connection.
        population: Roamer and guard targets for the population service.
        diagnostics: Summary numbers for logging.
    """

    name: str
    size: TownSize
    kind: TownKind
    tiles: np.ndarray
    buildings: tuple[Building, ...]
    shops: tuple[ShopSlot, ...]
    props: tuple[TownProp, ...]
    plaza: Plaza
    gate: WorldTilePos
    gate_door: WorldTilePos
    outdoor_mask: np.ndarray
    road_mask: np.ndarray
    inn: Building | None
    unreachable_doors: tuple[WorldTilePos, ...]
    population: PopulationTargets
    diagnostics: TownDiagnostics

    @property
    def width(self) -> int:
        return int(self.tiles.shape[0])

    @property
    def height(self) -> int:
        return int(self.tiles.shape[1])

    def walkable_map(self) -> np.ndarray:
        return tile_types.get_walkable_map(self.tiles)

    def walkable_outdoor_cells(self) -> list[WorldTilePos]:
        """Open outdoor cells, for spawning followers and roamers."""
        open_ground = self.walkable_map() & self.outdoor_mask
        xs, ys = np.nonzero(open_ground)
        return [(int(x), int(y)) for x, y in zip(xs, ys, strict=True)]

    def to_text(self) -> str:
        return tile_types.tiles_to_text(self.tiles)


class BaseMapGenerator(abc.ABC):
    """Abstract base class for map generation algorithms."""

    def __init__(self, map_width: TileCoord, map_height: TileCoord) -> None:
        self.map_width = map_width
        self.map_height = map_height

    @abc.abstractmethod
    def generate(self) -> TownLayout:
        """Generate the map layout and its structural data."""
        raise NotImplementedError
