"""Town generation for Townsmith.

Towns are built by a layered pipeline: each layer transforms a shared
GenerationContext (wall ring and gate, plaza, inn, houses, shops, doors and
windows, roads, repair) and the result is frozen into a TownLayout.

- PipelineGenerator: Runs a list of layers and returns a TownLayout
- create_pipeline / create_town_pipeline: Ready-made town configurations
- validation: Structural checks over a finished TownLayout
"""

from .base import BaseMapGenerator, Plaza, TownDiagnostics, TownLayout
from .pipeline import (
    GenerationContext,
    GenerationLayer,
    PipelineGenerator,
    create_pipeline,
    create_town_pipeline,
    load_default_prefabs,
)
from .town_config import PopulationTargets, TownConfig, TownSizeConfig
from .validation import validate_layout

__all__ = [
    "BaseMapGenerator",
    "GenerationContext",
    "GenerationLayer",
    "PipelineGenerator",
    "Plaza",
    "PopulationTargets",
    "TownConfig",
    "TownDiagnostics",
    "TownLayout",
    "TownSizeConfig",
    "create_pipeline",
    "create_town_pipeline",
    "load_default_prefabs",
    "validate_layout",
]
