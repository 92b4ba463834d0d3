from __future__ import annotations

from typing import Literal, TypeAlias

# --- Grid positions ---

TileCoord: TypeAlias = int

# (x, y) on the town grid; x grows east, y grows south.
WorldTilePos: TypeAlias = tuple[TileCoord, TileCoord]

# One orthogonal grid step, e.g. (0, 1) is one tile south.
Direction: TypeAlias = tuple[Literal[-1, 0, 1], Literal[-1, 0, 1]]

# Compass heading an actor was moving in when it entered the town.
# "E" means the actor walked east, so it arrived through the west wall.
CompassHeading: TypeAlias = Literal["N", "E", "S", "W"]

# --- Generation inputs ---

RandomSeed = int | str | None

# Size category keys for the town configuration table.
TownSize: TypeAlias = Literal["small", "big", "city"]

# Settlement flavour. Castles always generate at "city" size.
TownKind: TypeAlias = Literal["town", "castle"]

# Minutes since midnight, 0..1439.
MinuteOfDay: TypeAlias = int
