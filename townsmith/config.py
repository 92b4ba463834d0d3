"""
Configuration constants.

Centralizes the magic numbers used by town generation.
Organized by functional area for easy maintenance. Per-size tables (grid
dimensions, plaza size, building targets) live in
`townsmith.environment.generators.town_config`.
"""

from pathlib import Path

# =============================================================================
# GENERAL
# =============================================================================

DATA_PATH = Path(__file__).resolve().parent / "data"
DEFAULT_PREFABS_PATH = DATA_PATH / "prefabs.json"

# RNG domain every town generation layer draws from, in a fixed order.
TOWN_RNG_DOMAIN = "map.town"

# =============================================================================
# TOWN LAYOUT
# =============================================================================

DEFAULT_TOWN_SIZE = "big"

# Floor buffer kept between any building and the plaza rectangle.
PLAZA_MARGIN = 1

# Floor buffer required between any two buildings.
BUILDING_MARGIN = 1

# When True, houses are never carved as plain rectangles; a spot with no
# fitting prefab is skipped instead.
STRICT_PREFABS = False

# =============================================================================
# PLACEMENT RETRY CAPS
# =============================================================================

# Prefab slip search: origin offsets tried up to this many cells away.
SLIP_DISTANCE = 2

# Random rectangles sampled by the residential fill pass.
RESIDENTIAL_FILL_ATTEMPTS = 600

# Random rectangles tried per quadrant when topping up around the plaza.
NEAR_PLAZA_TRIES_PER_QUADRANT = 4

# Shop prefab picks before the shop pass gives up.
SHOP_PLACEMENT_ATTEMPTS = 20

# Upper bound on buildings a single mandatory placement may evict.
MAX_MANDATORY_EVICTIONS = 4

# Inn rectangle shrink steps (2 cells per step) before the centred fallback.
INN_SHRINK_STEPS = 4

# =============================================================================
# BUILDING FOOTPRINTS
# =============================================================================

# Smallest fallback house footprint, walls included.
MIN_BUILDING_WIDTH = 6
MIN_BUILDING_HEIGHT = 4

# Chance that a block draw is replaced by a tiny or oversized outlier.
OUTLIER_CHANCE = 0.08

# Window cap before the per-building perimeter formula is applied.
MAX_WINDOWS_PER_BUILDING = 4

# Distinguished buildings (the inn) get this fraction of the window cap.
DISTINGUISHED_WINDOW_FACTOR = 0.7

# =============================================================================
# SHOPS
# =============================================================================

DEFAULT_SHOP_OPEN = "08:00"
DEFAULT_SHOP_CLOSE = "18:00"
