"""Pipeline-based town generation system.

This package provides a layered architecture for town generation. Each layer
transforms a shared GenerationContext, and the pipeline outputs an immutable
TownLayout.

Example usage:
    from townsmith.environment.generators.pipeline import create_pipeline

    generator = create_pipeline("town", size="small", seed="oakford")
    layout = generator.generate()

The pipeline can also be assembled manually for custom configurations:
    from townsmith.environment.generators.pipeline import (
        PipelineGenerator,
        TownBaseLayer,
        PlazaLayer,
        BuildingPlacementLayer,
    )

    generator = PipelineGenerator(
        layers=[TownBaseLayer(), PlazaLayer(), BuildingPlacementLayer()],
        map_width=60,
        map_height=40,
        size="small",
    )
"""

from .conflicts import MandatoryPlacer
from .context import GenerationContext
from .factory import (
    create_pipeline,
    create_town_pipeline,
    load_default_prefabs,
    town_layers,
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
from .stamping import PrefabStamper, StampConflict, StampedPrefab

__all__ = [
    "BarracksLayer",
    "BuildingPlacementLayer",
    "CastleKeepLayer",
    "GenerationContext",
    "GenerationLayer",
    "InnLayer",
    "MandatoryPlacer",
    "OpeningsLayer",
    "PipelineGenerator",
    "PlazaCleanupLayer",
    "PlazaDressingLayer",
    "PlazaLayer",
    "PrefabStamper",
    "RepairLayer",
    "RoadNetworkLayer",
    "ShopAssignmentLayer",
    "ShopPrefabLayer",
    "SignLayer",
    "StampConflict",
    "StampedPrefab",
    "TownBaseLayer",
    "create_pipeline",
    "create_town_pipeline",
    "load_default_prefabs",
    "town_layers",
]
