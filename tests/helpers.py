from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from townsmith import config
from townsmith.environment.generators.buildings import Prefab, PrefabRegistry
from townsmith.environment.generators.buildings.prefabs import parse_prefab
from townsmith.environment.generators.pipeline import GenerationContext, town_layers
from townsmith.environment.generators.town_config import TownConfig
from townsmith.environment.tile_types import TileTypeID
from townsmith.util.rng import RNGProvider


def make_context(
    width: int = 40,
    height: int = 30,
    seed: str = "test",
    walled: bool = True,
    **kwargs: Any,
) -> GenerationContext:
    """A Floor context with an outer Wall ring, drawing from a seeded stream."""
    rng = RNGProvider(seed).get(config.TOWN_RNG_DOMAIN)
    ctx = GenerationContext.create_empty(width, height, rng, **kwargs)
    if walled:
        ctx.tiles[0, :] = TileTypeID.WALL
        ctx.tiles[-1, :] = TileTypeID.WALL
        ctx.tiles[:, 0] = TileTypeID.WALL
        ctx.tiles[:, -1] = TileTypeID.WALL
    return ctx


def hollow_rows(
    width: int,
    height: int,
    doors: Sequence[tuple[int, int]] = (),
    windows: Sequence[tuple[int, int]] = (),
    props: dict[tuple[int, int], str] | None = None,
) -> list[list[str]]:
    """Tile rows for a walled box with the given openings and furniture codes."""
    rows = []
    for y in range(height):
        row = []
        for x in range(width):
            edge = x in (0, width - 1) or y in (0, height - 1)
            row.append("WALL" if edge else "FLOOR")
        rows.append(row)
    for x, y in doors:
        rows[y][x] = "DOOR"
    for x, y in windows:
        rows[y][x] = "WINDOW"
    for (x, y), code in (props or {}).items():
        rows[y][x] = code
    return rows


def make_prefab(
    prefab_id: str,
    width: int,
    height: int,
    category: str = "house",
    doors: Sequence[tuple[int, int]] | None = None,
    **record: Any,
) -> Prefab:
    """Build a Prefab through the same parser the JSON loader uses.

    Without ``doors`` the box gets a main door at its bottom-centre cell.
    """
    if doors is None:
        doors = [(width // 2, height - 1)]
    if "tiles" not in record:
        record["tiles"] = hollow_rows(width, height, doors)
    record.setdefault(
        "doors", [{"x": x, "y": y, "role": "main"} for x, y in doors]
    )
    data = {"id": prefab_id, "size": {"w": width, "h": height}, **record}
    return parse_prefab(data, category)


def count_tiles(tiles: np.ndarray, tile: TileTypeID) -> int:
    return int(np.count_nonzero(tiles == tile))


def build_town_context(
    size: str = "small",
    kind: str = "town",
    seed: str = "test",
    prefabs: PrefabRegistry | None = None,
    **kwargs: Any,
) -> GenerationContext:
    """Run every town layer over a fresh context and return the context.

    Tests use this when they need to inspect or damage the working state
    that `PipelineGenerator.generate()` would otherwise freeze.
    """
    size_cfg = TownConfig().size(size)
    ctx = make_context(
        size_cfg.width,
        size_cfg.height,
        seed=seed,
        size=size,
        kind=kind,
        prefabs=prefabs if prefabs is not None else PrefabRegistry.empty(),
        **kwargs,
    )
    for layer in town_layers():
        layer.apply(ctx)
    return ctx
