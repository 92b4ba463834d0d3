"""Outer wall ring, entry gate and town name.

The first layer of every town pipeline. It leaves the grid Floor inside a Wall
ring with exactly one Door on the border (the gate) and decides the town's
name.
"""

from __future__ import annotations

import logging
import math

from townsmith.environment.generators.pipeline.context import GenerationContext
from townsmith.environment.generators.pipeline.layer import GenerationLayer
from townsmith.environment.tile_types import TileTypeID
from townsmith.types import CompassHeading, WorldTilePos
from townsmith.util.coordinates import manhattan
from townsmith.util.rng import RNG

logger = logging.getLogger(__name__)

NAME_PREFIXES = (
    "Oak", "Ash", "Pine", "River", "Stone", "Iron", "Silver", "Gold",
    "Wolf", "Fox", "Moon", "Star", "Red", "White", "Black", "Green",
)  # fmt: skip
NAME_MIDDLES = ("", "wood", "water", "brook", "hill", "rock", "ridge")
NAME_SUFFIXES = (
    "dale", "ford", "field", "burg", "ton", "stead", "haven", "fall",
    "gate", "port", "wick", "shire", "crest", "view", "reach",
)  # fmt: skip


def generate_town_name(rng: RNG, kind: str = "town") -> str:
    """Compose a name like "Oakwoodford"; castles get a "Castle " prefix."""
    tables = (NAME_PREFIXES, NAME_MIDDLES, NAME_SUFFIXES)
    parts = [pick_part(rng, table) for table in tables]
    return with_kind_prefix("".join(parts), kind)


def pick_part(rng: RNG, table: tuple[str, ...]) -> str:
    return table[math.floor(rng.random() * len(table)) % len(table)]


def with_kind_prefix(name: str, kind: str) -> str:
    if kind == "castle" and "castle" not in name.lower():
        return f"Castle {name}"
    return name


def choose_gate(
    width: int,
    height: int,
    entry_pos: WorldTilePos,
    enter_from: CompassHeading | None = None,
) -> tuple[WorldTilePos, WorldTilePos]:
    """Pick the gate for an actor arriving from ``entry_pos``.

    A heading hint picks the wall the actor walked through (heading "E" means
    it came from the west). Without a hint the wall nearest the clamped entry
    position wins, ties going west, east, north, south in that order.

    Returns:
        (gate, gate_door): the interior cell and the border Door cell.
    """
    px = max(1, min(width - 2, entry_pos[0]))
    py = max(1, min(height - 2, entry_pos[1]))

    hinted: dict[str, WorldTilePos] = {
        "E": (1, py),
        "W": (width - 2, py),
        "N": (px, height - 2),
        "S": (px, 1),
    }
    if enter_from in hinted:
        gate = hinted[enter_from]
    else:
        candidates = [(1, py), (width - 2, py), (px, 1), (px, height - 2)]
        gate = min(candidates, key=lambda c: manhattan(c, (px, py)))

    gx, gy = gate
    if gx == 1:
        door = (0, gy)
    elif gx == width - 2:
        door = (width - 1, gy)
    elif gy == 1:
        door = (gx, 0)
    else:
        door = (gx, height - 1)
    return gate, door


class TownBaseLayer(GenerationLayer):
    """Builds the outer wall ring, cuts the gate and names the town."""

    def apply(self, ctx: GenerationContext) -> None:
        tiles = ctx.tiles
        tiles[1:-1, 1:-1] = TileTypeID.FLOOR
        tiles[0, :] = TileTypeID.WALL
        tiles[-1, :] = TileTypeID.WALL
        tiles[:, 0] = TileTypeID.WALL
        tiles[:, -1] = TileTypeID.WALL

        entry = ctx.entry_pos or (ctx.width // 2, ctx.height - 1)
        gate, door = choose_gate(ctx.width, ctx.height, entry, ctx.enter_from)
        tiles[door] = TileTypeID.DOOR
        tiles[gate] = TileTypeID.FLOOR
        ctx.gate = gate
        ctx.gate_door = door

        if ctx.name:
            ctx.name = with_kind_prefix(ctx.name, ctx.kind)
        else:
            ctx.name = generate_town_name(ctx.rng, ctx.kind)

        logger.debug(
            "Town base %dx%d: gate at %s (door %s), name %r",
            ctx.width,
            ctx.height,
            gate,
            door,
            ctx.name,
        )
