"""Footprint size buckets for houses placed by the grid-block scan.

Each block draws a footprint from a weighted mix of size buckets:
- small: cottages near the minimum size (common)
- medium: anywhere in the block range, with an aspect-ratio nudge
- large: near the block maximum, sometimes a longhouse

After the bucket draw a rare outlier roll replaces the result with either the
tiniest or the largest footprint the block allows.

Buckets are picked by weight (cumulative roll), never uniformly.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from townsmith import config
from townsmith.util.rng import RNG


@dataclass(frozen=True)
class SizeBounds:
    """Inclusive width/height range for one block."""

    min_width: int
    max_width: int
    min_height: int
    max_height: int

    def clamp(self, width: int, height: int) -> tuple[int, int]:
        return (
            max(self.min_width, min(self.max_width, width)),
            max(self.min_height, min(self.max_height, height)),
        )


@dataclass(frozen=True)
class Footprint:
    width: int
    height: int
    bucket: str


def _randint(rng: RNG, low: int, high: int) -> int:
    """Inclusive randint that tolerates an empty range by returning ``low``."""
    return low + int(rng.random() * max(0, high - low + 1))


def _small(rng: RNG, b: SizeBounds) -> tuple[int, int]:
    width = _randint(rng, b.min_width, min(b.min_width + 2, b.max_width))
    height = _randint(rng, b.min_height, min(b.min_height + 2, b.max_height))
    return width, height


def _medium(rng: RNG, b: SizeBounds) -> tuple[int, int]:
    width = _randint(rng, b.min_width, b.max_width)
    height = _randint(rng, b.min_height, b.max_height)
    if rng.random() < 0.5:
        height += _randint(rng, -2, 3)
    else:
        width += _randint(rng, -2, 3)
    return b.clamp(width, height)


def _large(rng: RNG, b: SizeBounds) -> tuple[int, int]:
    width, height = b.clamp(
        b.max_width - _randint(rng, 0, min(3, b.max_width - b.min_width)),
        b.max_height - _randint(rng, 0, min(3, b.max_height - b.min_height)),
    )
    if rng.random() < 0.4:
        # Longhouse: one side near max, the other skewed small.
        if rng.random() < 0.5:
            width = max(width, min(b.max_width, b.max_width - _randint(rng, 0, 1)))
            height = b.clamp(
                width,
                b.min_height + _randint(rng, 0, min(4, b.max_height - b.min_height)),
            )[1]
        else:
            height = max(height, min(b.max_height, b.max_height - _randint(rng, 0, 1)))
            width = b.clamp(
                b.min_width + _randint(rng, 0, min(4, b.max_width - b.min_width)),
                height,
            )[0]
    return width, height


@dataclass(frozen=True)
class FootprintBucket:
    """A weighted size class.

    Attributes:
        name: Bucket name, reported on the resulting Footprint.
        weight: Relative selection weight.
        draw: Function producing (width, height) within the block bounds.
    """

    name: str
    weight: float
    draw: Callable[[RNG, SizeBounds], tuple[int, int]]


DEFAULT_BUCKETS: tuple[FootprintBucket, ...] = (
    FootprintBucket("small", 0.35, _small),
    FootprintBucket("medium", 0.40, _medium),
    FootprintBucket("large", 0.25, _large),
)


def _weighted_choice(rng: RNG, buckets: tuple[FootprintBucket, ...]) -> FootprintBucket:
    total = sum(b.weight for b in buckets)
    roll = rng.random() * total
    cumulative = 0.0
    for bucket in buckets:
        cumulative += bucket.weight
        if roll < cumulative:
            return bucket
    return buckets[-1]


def block_bounds(block_width: int, block_height: int) -> SizeBounds:
    min_w = config.MIN_BUILDING_WIDTH
    min_h = config.MIN_BUILDING_HEIGHT
    return SizeBounds(min_w, max(min_w, block_width), min_h, max(min_h, block_height))


def choose_footprint(
    rng: RNG,
    block_width: int,
    block_height: int,
    buckets: tuple[FootprintBucket, ...] = DEFAULT_BUCKETS,
) -> Footprint:
    """Draw a house footprint for a block of the given size."""
    bounds = block_bounds(block_width, block_height)
    bucket = _weighted_choice(rng, buckets)
    width, height = bucket.draw(rng, bounds)
    name = bucket.name

    if rng.random() < config.OUTLIER_CHANCE:
        name = "outlier"
        if rng.random() < 0.5:
            width = bounds.min_width
            height = bounds.clamp(
                width,
                bounds.min_height
                + _randint(rng, 0, min(2, bounds.max_height - bounds.min_height)),
            )[1]
        else:
            width, height = bounds.clamp(
                bounds.max_width - _randint(rng, 0, 1),
                bounds.max_height - _randint(rng, 0, 1),
            )
    return Footprint(width, height, name)
