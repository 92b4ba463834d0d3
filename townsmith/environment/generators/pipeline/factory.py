"""Factory functions for creating pre-configured pipelines.

These functions provide convenient ways to create common pipeline
configurations without needing to manually assemble layers.

Currently implemented:
- "town": Walled town with plaza, inn, houses, shops and roads. Castle towns
  use the same pipeline with ``kind="castle"``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from townsmith import config
from townsmith.environment.generators.buildings import (
    PrefabRegistry,
    load_prefab_registry,
)
from townsmith.environment.generators.town_config import TownConfig
from townsmith.types import (
    CompassHeading,
    RandomSeed,
    TownKind,
    TownSize,
    WorldTilePos,
)

from .layer import GenerationLayer
from .layers import (
    BarracksLayer,
    BuildingPlacementLayer,
    CastleKeepLayer,
    InnLayer,
    OpeningsLayer,
    PlazaCleanupLayer,
    PlazaDressingLayer,
    PlazaLayer,
    RepairLayer,
    RoadNetworkLayer,
    ShopAssignmentLayer,
    ShopPrefabLayer,
    SignLayer,
    TownBaseLayer,
)
from .pipeline import PipelineGenerator

logger = logging.getLogger(__name__)


def load_default_prefabs(path: str | Path | None = None) -> PrefabRegistry:
    """Load the bundled prefab catalogue, or the one at ``path``."""
    return load_prefab_registry(path or config.DEFAULT_PREFABS_PATH)


def town_layers() -> list[GenerationLayer]:
    """The town layers in the order they must run."""
    return [
        # 1. Outer wall ring, gate, name
        TownBaseLayer(),
        # 2. Central plaza (no-build zone from here on)
        PlazaLayer(),
        # 3. Mandatory and distinguished structures claim plaza frontage first
        InnLayer(),
        CastleKeepLayer(),
        # 4. Houses: block scan, residential fill, near-plaza top-up
        BuildingPlacementLayer(),
        # 5. Authored shops and the barracks, evicting houses if needed
        ShopPrefabLayer(),
        BarracksLayer(),
        # 6. Re-open the plaza and dress it
        PlazaCleanupLayer(),
        PlazaDressingLayer(),
        # 7. Doors and windows, then shop slots (which need doors)
        OpeningsLayer(),
        ShopAssignmentLayer(),
        # 8. Roads over the final building set
        RoadNetworkLayer(),
        # 9. Seal walls and the plaza
        RepairLayer(),
        # 10. Shop and welcome signs on the finished grid
        SignLayer(),
    ]


def create_pipeline(
    name: str,
    size: TownSize | str = config.DEFAULT_TOWN_SIZE,
    seed: RandomSeed = None,
    **kwargs,
) -> PipelineGenerator:
    """Create a pre-configured pipeline by name.

    Available pipelines:
    - "town": A regular town.
    - "castle": A castle town (always city sized).

    Args:
        name: Name of the pipeline configuration to use.
        size: Size category.
        seed: Optional random seed for deterministic generation.
        **kwargs: Passed through to `create_town_pipeline`.

    Returns:
        A configured PipelineGenerator ready to generate towns.

    Raises:
        ValueError: If the pipeline name is not recognized.
    """
    if name == "town":
        return create_town_pipeline(size, seed, kind="town", **kwargs)
    if name == "castle":
        return create_town_pipeline(size, seed, kind="castle", **kwargs)
    raise ValueError(f"Unknown pipeline name: {name!r}")


def create_town_pipeline(
    size: TownSize | str = config.DEFAULT_TOWN_SIZE,
    seed: RandomSeed = None,
    kind: TownKind = "town",
    prefabs: PrefabRegistry | None = None,
    rng_source: Callable[[], float] | None = None,
    entry_pos: WorldTilePos | None = None,
    enter_from: CompassHeading | None = None,
    strict_prefabs: bool = config.STRICT_PREFABS,
    name: str | None = None,
    town_config: TownConfig | None = None,
) -> PipelineGenerator:
    """Create a town pipeline with default configuration.

    Args:
        size: Size category ("small", "big", "city"). Castles are always
            generated at "city".
        seed: Master seed. Ignored when ``rng_source`` is given.
        kind: "town" or "castle".
        prefabs: Prefab registry; an empty registry means every building is
            procedural.
        rng_source: External ``() -> float`` random function.
        entry_pos: Where the actor stood before entering, in town coordinates.
        enter_from: Heading the actor was moving in when it entered.
        strict_prefabs: Skip procedural houses.
        name: Town name; drawn from the name tables when None.
        town_config: Size/kind table; the built-in defaults when None.

    Returns:
        A configured PipelineGenerator.

    Raises:
        ValueError: If the size category is unknown.
    """
    town_config = town_config or TownConfig()
    if kind == "castle" and size != "city":
        logger.debug("Castle towns are always city sized (requested %s)", size)
        size = "city"
    size_cfg = town_config.size(size)

    return PipelineGenerator(
        layers=town_layers(),
        map_width=size_cfg.width,
        map_height=size_cfg.height,
        seed=seed,
        rng_source=rng_source,
        prefabs=prefabs if prefabs is not None else PrefabRegistry.empty(),
        town_config=town_config,
        size=size,
        kind=kind,
        strict_prefabs=strict_prefabs,
        entry_pos=entry_pos,
        enter_from=enter_from,
        name=name,
    )
