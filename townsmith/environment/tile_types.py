"""
Tile kinds for town grids and their per-kind properties.

A town grid is a ``uint8`` array of `TileTypeID` values. The properties of
each kind (walkable, transparent, display name, debug glyph) live once in a
structured lookup table indexed by the ID, so any grid can be turned into a
property map with a single fancy-indexing operation. Population and rendering
collaborators use these maps instead of switching on tile kinds themselves.
"""

from collections.abc import Mapping
from enum import IntEnum

import numpy as np


class TileTypeID(IntEnum):
    """Tile kinds used by the town generator.

    FLOOR is zero so a freshly zeroed grid is an open field.
    """

    FLOOR = 0
    WALL = 1
    DOOR = 2
    WINDOW = 3
    ROAD = 4
    OUT_OF_BOUNDS = 5


TileTypeData = np.dtype(
    [
        ("walkable", bool),
        ("transparent", bool),  # Line of sight passes through
        ("display_name", "U32"),
        ("glyph", np.int32),  # Character code for text dumps
    ]
)


def make_tile_type_data(
    *,
    walkable: bool,
    transparent: bool,
    display_name: str,
    glyph: str,
) -> np.ndarray:
    """Build one `TileTypeData` record. ``glyph`` must be a single character."""
    if len(glyph) != 1:
        raise ValueError(f"Tile glyph must be one character, got {glyph!r}")
    return np.array(
        (walkable, transparent, display_name, ord(glyph)), dtype=TileTypeData
    )


def build_tile_table(definitions: Mapping[TileTypeID, np.ndarray]) -> np.ndarray:
    """Pack per-kind records into a table indexed by `TileTypeID`.

    Raises:
        ValueError: If any `TileTypeID` member has no definition.
    """
    missing = [tile.name for tile in TileTypeID if tile not in definitions]
    if missing:
        raise ValueError(f"No tile definition for: {', '.join(missing)}")
    table = np.empty(len(TileTypeID), dtype=TileTypeData)
    for tile in TileTypeID:
        table[tile] = definitions[tile]
    return table


_TILE_TABLE = build_tile_table(
    {
        TileTypeID.FLOOR: make_tile_type_data(
            walkable=True, transparent=True, display_name="Floor", glyph="."
        ),
        TileTypeID.WALL: make_tile_type_data(
            walkable=False, transparent=False, display_name="Wall", glyph="#"
        ),
        TileTypeID.DOOR: make_tile_type_data(
            walkable=True, transparent=False, display_name="Door", glyph="+"
        ),
        # Windows block movement but not light.
        TileTypeID.WINDOW: make_tile_type_data(
            walkable=False, transparent=True, display_name="Window", glyph="="
        ),
        TileTypeID.ROAD: make_tile_type_data(
            walkable=True, transparent=True, display_name="Road", glyph=":"
        ),
        TileTypeID.OUT_OF_BOUNDS: make_tile_type_data(
            walkable=False, transparent=False, display_name="Void", glyph=" "
        ),
    }
)


def get_walkable_map(tile_type_ids_map: np.ndarray) -> np.ndarray:
    """Boolean map, True where the tile can be walked on."""
    return _TILE_TABLE["walkable"][tile_type_ids_map]


def get_transparent_map(tile_type_ids_map: np.ndarray) -> np.ndarray:
    return _TILE_TABLE["transparent"][tile_type_ids_map]


def get_glyph_map(tile_type_ids_map: np.ndarray) -> np.ndarray:
    return _TILE_TABLE["glyph"][tile_type_ids_map]


def get_tile_type_data_by_id(tile_type_id: int) -> np.ndarray:
    """Return the `TileTypeData` record for ``tile_type_id``.

    Raises:
        IndexError: If the ID is not a `TileTypeID` value.
    """
    if not 0 <= tile_type_id < len(_TILE_TABLE):
        raise IndexError(
            f"Invalid TileTypeID: {tile_type_id}. "
            f"Known IDs are 0 to {len(_TILE_TABLE) - 1}."
        )
    return _TILE_TABLE[tile_type_id]


def get_tile_type_name_by_id(tile_type_id: int) -> str:
    if 0 <= tile_type_id < len(_TILE_TABLE):
        return str(_TILE_TABLE["display_name"][tile_type_id])
    return f"Unknown Tile (ID: {tile_type_id})"


def tiles_to_text(tile_type_ids_map: np.ndarray) -> str:
    """Render a (width, height) tile map as newline-separated glyph rows.

    Intended for logging and test failure messages.
    """
    glyphs = get_glyph_map(tile_type_ids_map)
    return "\n".join(
        "".join(chr(code) for code in glyphs[:, y])
        for y in range(glyphs.shape[1])
    )
