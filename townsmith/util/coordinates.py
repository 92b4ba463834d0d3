"""Rectangles and bounds helpers in tile coordinates."""

from __future__ import annotations

from collections.abc import Iterator

from townsmith.types import TileCoord, WorldTilePos


class Rect:
    """Rectangle/bounding box in tile coordinates.

    x2/y2 are exclusive: a Rect(3, 4, 5, 2) covers columns 3..7 and rows 4..5.
    """

    __slots__ = ("x1", "x2", "y1", "y2")

    def __init__(self, x: TileCoord, y: TileCoord, w: TileCoord, h: TileCoord) -> None:
        self.x1: TileCoord = x
        self.y1: TileCoord = y
        self.x2: TileCoord = x + w
        self.y2: TileCoord = y + h

    @classmethod
    def from_bounds(
        cls, x1: TileCoord, y1: TileCoord, x2: TileCoord, y2: TileCoord
    ) -> Rect:
        """Create a Rect from corner coordinates (x1, y1, x2, y2)."""
        width = x2 - x1
        height = y2 - y1
        return cls(x1, y1, width, height)

    @property
    def width(self) -> TileCoord:
        return self.x2 - self.x1

    @property
    def height(self) -> TileCoord:
        return self.y2 - self.y1

    @property
    def last_x(self) -> TileCoord:
        """Inclusive right-most column."""
        return self.x2 - 1

    @property
    def last_y(self) -> TileCoord:
        """Inclusive bottom-most row."""
        return self.y2 - 1

    @property
    def area(self) -> int:
        return self.width * self.height

    def center(self) -> tuple[int, int]:
        return (int((self.x1 + self.x2) / 2), int((self.y1 + self.y2) / 2))

    def expanded(self, margin: int) -> Rect:
        """Return a copy grown by ``margin`` cells on every side."""
        return Rect(
            self.x1 - margin,
            self.y1 - margin,
            self.width + 2 * margin,
            self.height + 2 * margin,
        )

    def intersects(self, other: Rect) -> bool:
        """True if the two rectangles share at least one cell."""
        return (
            self.x1 < other.x2
            and other.x1 < self.x2
            and self.y1 < other.y2
            and other.y1 < self.y2
        )

    def overlaps(self, other: Rect, margin: int = 0) -> bool:
        """True if the rectangles share a cell once this one grows by ``margin``."""
        return self.expanded(margin).intersects(other)

    def contains(self, x: TileCoord, y: TileCoord) -> bool:
        return self.x1 <= x < self.x2 and self.y1 <= y < self.y2

    def contains_interior(self, x: TileCoord, y: TileCoord) -> bool:
        """True if (x, y) lies strictly inside the one-cell wall ring."""
        return self.x1 < x < self.last_x and self.y1 < y < self.last_y

    def is_perimeter(self, x: TileCoord, y: TileCoord) -> bool:
        return self.contains(x, y) and not self.contains_interior(x, y)

    def cells(self) -> Iterator[WorldTilePos]:
        """Yield every cell, row by row."""
        for y in range(self.y1, self.y2):
            for x in range(self.x1, self.x2):
                yield (x, y)

    def perimeter(self) -> Iterator[WorldTilePos]:
        """Yield each wall-ring cell exactly once, row by row."""
        for y in range(self.y1, self.y2):
            if y in (self.y1, self.last_y):
                for x in range(self.x1, self.x2):
                    yield (x, y)
            else:
                yield (self.x1, y)
                if self.last_x != self.x1:
                    yield (self.last_x, y)

    def as_slices(self) -> tuple[slice, slice]:
        """Index expression for (width, height) ordered numpy arrays."""
        return slice(self.x1, self.x2), slice(self.y1, self.y2)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rect):
            return NotImplemented
        return (self.x1, self.y1, self.x2, self.y2) == (
            other.x1,
            other.y1,
            other.x2,
            other.y2,
        )

    def __hash__(self) -> int:
        return hash((self.x1, self.y1, self.x2, self.y2))

    def __repr__(self) -> str:
        return f"Rect(x1={self.x1}, y1={self.y1}, x2={self.x2}, y2={self.y2})"


# =============================================================================
# BOUNDS CHECKING HELPERS
# =============================================================================


def is_valid_world_tile_pos(
    pos: WorldTilePos, map_width: TileCoord, map_height: TileCoord
) -> bool:
    """Check if world tile position is within map bounds."""
    x, y = pos
    return 0 <= x < map_width and 0 <= y < map_height


def manhattan(a: WorldTilePos, b: WorldTilePos) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def chebyshev(a: WorldTilePos, b: WorldTilePos) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))
