"""Building and prop dataclasses for semantic town layout representation.

Buildings are the rectangles committed to the tile grid by the placement
layers. Each building has a footprint (the outer bounds including its wall
ring) and the door cells cut into that ring. Props are furniture and plaza
dressing recorded alongside the tiles; they never change tile walkability.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from townsmith.types import WorldTilePos
from townsmith.util.coordinates import Rect


@dataclass(frozen=True)
class TownProp:
    """A piece of furniture or street dressing sitting on a Floor tile.

    Attributes:
        x: World X coordinate.
        y: World Y coordinate.
        prop_type: Lower-case prop kind (e.g., "bed", "counter", "well").
        name: Optional display name authored in the prefab.
        vendor: For counters, the kind of vendor that stands behind it
            ("inn" or a shop type).
    """

    x: int
    y: int
    prop_type: str
    name: str | None = None
    vendor: str | None = None

    @property
    def position(self) -> WorldTilePos:
        return (self.x, self.y)


@dataclass
class Building:
    """A structure committed to the town grid.

    Attributes:
        id: Unique identifier for this building within one layout.
        building_type: Semantic type ("house", "inn", "shop", "keep",
            "barracks").
        footprint: The outer bounds of the building including walls.
        door_positions: (x, y) positions of Door cells on the wall ring.
        prefab_id: Id of the prefab it was stamped from, or None for a
            procedural rectangle.
        prefab_category: Category of that prefab ("house", "shop", ...).
    """

    id: int
    building_type: str
    footprint: Rect
    door_positions: list[WorldTilePos] = field(default_factory=list)
    prefab_id: str | None = None
    prefab_category: str | None = None

    @property
    def interior_bounds(self) -> Rect:
        """Get the interior bounds (footprint minus walls).

        Returns:
            A Rect representing the walkable interior area.
        """
        return Rect(
            self.footprint.x1 + 1,
            self.footprint.y1 + 1,
            self.footprint.width - 2,
            self.footprint.height - 2,
        )

    @property
    def door(self) -> WorldTilePos | None:
        """Primary door, or None if no door has been cut yet."""
        return self.door_positions[0] if self.door_positions else None

    @property
    def is_procedural(self) -> bool:
        """True for fallback rectangles that were not stamped from a prefab.

        The castle keep carries a synthetic prefab id but is still carved
        procedurally.
        """
        return self.prefab_category is None

    def contains_point(self, x: int, y: int) -> bool:
        """Check if a point is inside this building's footprint.

        Args:
            x: X coordinate to check.
            y: Y coordinate to check.

        Returns:
            True if the point is within the building's footprint.
        """
        return self.footprint.contains(x, y)

    def contains_interior(self, x: int, y: int) -> bool:
        """True if the point lies strictly inside the wall ring."""
        return self.footprint.contains_interior(x, y)
