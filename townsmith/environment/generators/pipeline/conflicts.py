"""Conflict resolution for structures that must exist.

The inn, shops and the barracks may displace ordinary houses. A mandatory
placement first tries a plain stamp; if that is blocked only by other
buildings, those buildings are evicted (tiles reset to Floor, props and shop
slots dropped) and the stamp is retried.

Eviction is bounded: a single attempt removes at most ``max_evictions``
buildings, never touches a protected building, and never evicts anything
unless the eviction is certain to clear the site.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np

from townsmith import config
from townsmith.environment.generators.buildings import Building, Prefab
from townsmith.environment.tile_types import TileTypeID
from townsmith.util.coordinates import Rect

from .context import GenerationContext
from .stamping import PrefabStamper, StampConflict, StampedPrefab, StampResult

logger = logging.getLogger(__name__)


class MandatoryPlacer:
    """Places structures, evicting colliding buildings when needed.

    Args:
        ctx: The generation context.
        stamper: Stamper bound to the same context.
        max_evictions: Upper bound on buildings removed per attempt.
        protected: Buildings that may never be evicted.
    """

    def __init__(
        self,
        ctx: GenerationContext,
        stamper: PrefabStamper | None = None,
        max_evictions: int = config.MAX_MANDATORY_EVICTIONS,
        protected: Iterable[Building | None] = (),
    ) -> None:
        self.ctx = ctx
        self.stamper = stamper or PrefabStamper(ctx)
        self.max_evictions = max_evictions
        self.protected = [b for b in protected if b is not None]

    def victims_for(self, rect: Rect) -> list[Building] | None:
        """Buildings to evict so ``rect`` can be committed, or None if impossible.

        None means the site is out of bounds, overlaps the plaza, needs more
        than ``max_evictions`` removals, needs a protected building removed, or
        is blocked by something that is not a building.
        """
        ctx = self.ctx
        margin = self.stamper.margin
        area = rect.expanded(margin)
        interior = ctx.interior_rect()
        if (
            area.x1 < interior.x1
            or area.y1 < interior.y1
            or area.x2 > interior.x2
            or area.y2 > interior.y2
        ):
            return None
        if ctx.overlaps_plaza(rect, self.stamper.plaza_margin):
            return None

        victims = ctx.overlapping_buildings(rect, margin)
        if len(victims) > self.max_evictions:
            return None
        if any(v is p for v in victims for p in self.protected):
            return None

        # Every blocked cell in the area must belong to a victim.
        blocked = np.array(ctx.tiles[area.as_slices()] != TileTypeID.FLOOR)
        for victim in victims:
            fp = victim.footprint
            x1, y1 = max(fp.x1, area.x1), max(fp.y1, area.y1)
            x2, y2 = min(fp.x2, area.x2), min(fp.y2, area.y2)
            if x1 < x2 and y1 < y2:
                blocked[
                    x1 - area.x1 : x2 - area.x1, y1 - area.y1 : y2 - area.y1
                ] = False
        if blocked.any():
            return None
        return victims

    def evict(self, victims: list[Building], reason: str) -> None:
        for victim in victims:
            logger.debug(
                "Evicting building %d (%s) at %s for %s",
                victim.id,
                victim.prefab_id or "procedural",
                victim.footprint,
                reason,
            )
            self.ctx.remove_building(victim)
            self.ctx.eviction_count += 1

    def place_prefab(
        self,
        prefab: Prefab,
        x: int,
        y: int,
        building_type: str | None = None,
    ) -> StampResult:
        """Stamp ``prefab`` at (x, y), evicting colliding buildings if allowed."""
        result = self.stamper.stamp(prefab, x, y, building_type)
        if isinstance(result, StampedPrefab) or result is not StampConflict.OCCUPIED:
            return result

        victims = self.victims_for(Rect(x, y, prefab.width, prefab.height))
        if not victims:
            return result
        self.evict(victims, prefab.id)
        return self.stamper.stamp(prefab, x, y, building_type)

    def place_rect(
        self, rect: Rect, building_type: str, **building_kwargs
    ) -> Building | None:
        """Carve a procedural hollow rectangle, evicting colliders if allowed."""
        ctx = self.ctx
        victims = self.victims_for(rect)
        if victims is None:
            return None
        if victims:
            self.evict(victims, building_type)
        ctx.carve_hollow_rect(rect)
        return ctx.add_building(rect, building_type, **building_kwargs)
