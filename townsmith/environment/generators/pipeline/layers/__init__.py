"""Generation layers for the town pipeline.

Each layer transforms the GenerationContext in a specific way:
- Base layers: Outer wall, gate and plaza
- Landmark layers: Inn, castle keep and barracks
- Building layers: Houses and plaza cleanup
- Shop layers: Shop prefabs and shop slots
- Finishing layers: Doors and windows, roads, repair, signs
"""

from .buildings import BuildingPlacementLayer, PlazaCleanupLayer
from .landmarks import BarracksLayer, CastleKeepLayer, InnLayer
from .openings import OpeningsLayer
from .plaza import PlazaDressingLayer, PlazaLayer
from .repair import RepairLayer
from .roads import RoadNetworkLayer
from .shops import ShopAssignmentLayer, ShopPrefabLayer
from .signs import SignLayer
from .town_base import TownBaseLayer

__all__ = [
    "BarracksLayer",
    "BuildingPlacementLayer",
    "CastleKeepLayer",
    "InnLayer",
    "OpeningsLayer",
    "PlazaCleanupLayer",
    "PlazaDressingLayer",
    "PlazaLayer",
    "RepairLayer",
    "RoadNetworkLayer",
    "ShopAssignmentLayer",
    "ShopPrefabLayer",
    "SignLayer",
    "TownBaseLayer",
]
