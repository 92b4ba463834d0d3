"""Deterministic random draws for town generation.

Every draw the generator makes goes through a `RandomSource`. The derived
draws (integers, choices, shuffles) are all computed from ``random()`` in the
same way, so a town depends only on the sequence of floats its source yields:

- `RNGStream`: a seeded stream handed out by `RNGProvider` for a named domain.
  The same master seed and domain always give the same sequence, and consuming
  one domain never shifts another.
- `CallableRNG`: wraps a host application's ``() -> float`` function.

Usage:
    town_rng = RNGProvider("oakford").get("map.town")
    width = town_rng.randint(6, 10)

    town_rng = CallableRNG(host_rng_function)

Domain naming convention (hierarchical):
    - "map.town", "map.names"
"""

from __future__ import annotations

import abc
import math
import zlib
from collections.abc import Callable, Sequence
from random import Random
from typing import TYPE_CHECKING, TypeAlias, TypeVar

if TYPE_CHECKING:
    from townsmith.types import RandomSeed

T = TypeVar("T")


class RandomSource(abc.ABC):
    """Draw helpers built on a single ``random()`` primitive.

    Each derived draw consumes exactly one float (``shuffle`` one per swap).
    """

    @abc.abstractmethod
    def random(self) -> float:
        """Return the next float in [0.0, 1.0)."""

    def randint(self, a: int, b: int) -> int:
        """Return random integer N such that a <= N <= b."""
        if b < a:
            raise ValueError(f"empty range for randint({a}, {b})")
        return a + math.floor(self.random() * (b - a + 1))

    def randrange(self, start: int, stop: int | None = None, step: int = 1) -> int:
        """Return randomly selected element from range(start, stop, step)."""
        if stop is None:
            start, stop = 0, start
        span = range(start, stop, step)
        if not span:
            raise ValueError(f"empty range for randrange({start}, {stop}, {step})")
        return span[math.floor(self.random() * len(span))]

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[math.floor(self.random() * len(seq)) % len(seq)]

    def choices(
        self,
        population: Sequence[T],
        weights: Sequence[float] | None = None,
        *,
        k: int = 1,
    ) -> list[T]:
        """Return k-sized list of elements chosen with replacement."""
        if weights is None:
            return [self.choice(population) for _ in range(k)]

        total = float(sum(weights))
        picked: list[T] = []
        for _ in range(k):
            r = self.random() * total
            cumulative = 0.0
            chosen = population[-1]
            for item, weight in zip(population, weights, strict=True):
                cumulative += weight
                if r < cumulative:
                    chosen = item
                    break
            picked.append(chosen)
        return picked

    def shuffle(self, x: list) -> None:
        """Shuffle list x in place (Fisher-Yates)."""
        for i in range(len(x) - 1, 0, -1):
            j = math.floor(self.random() * (i + 1))
            x[i], x[j] = x[j], x[i]

    def uniform(self, a: float, b: float) -> float:
        return a + (b - a) * self.random()


class RNGStream(RandomSource):
    """Seeded stream for one domain, created by `RNGProvider.get`."""

    def __init__(self, domain: str, seed: int | None) -> None:
        self.domain = domain
        # No seed: system entropy, for non-deterministic towns.
        self._random = Random(seed)

    def random(self) -> float:
        return self._random.random()


class CallableRNG(RandomSource):
    """Random source backed by a host ``() -> float`` function."""

    def __init__(self, source: Callable[[], float]) -> None:
        self._source = source

    def random(self) -> float:
        """Return the next float in [0.0, 1.0) from the source."""
        value = float(self._source())
        # Hosts occasionally hand back exactly 1.0; fold it into range.
        if value >= 1.0 or value < 0.0:
            value = value % 1.0
        return value


# Type alias for functions that accept any of the random sources.
# Use this in type hints: `def foo(rng: RNG) -> int:`
RNG: TypeAlias = Random | RandomSource


def derive_seed(master_seed: RandomSeed, domain: str) -> int | None:
    """Per-domain seed from the master seed's text form (1 and "1" agree).

    crc32 rather than ``hash()``, which is salted per interpreter session.
    """
    if master_seed is None:
        return None
    return zlib.crc32(f"{master_seed}:{domain}".encode())


class RNGProvider:
    """Hands out one independent `RNGStream` per domain name."""

    def __init__(self, master_seed: RandomSeed = None) -> None:
        self.master_seed = master_seed
        self._streams: dict[str, RNGStream] = {}

    def get(self, domain: str) -> RNGStream:
        """Get the stream for ``domain`` (e.g. "map.town"), creating it once."""
        stream = self._streams.get(domain)
        if stream is None:
            stream = RNGStream(domain, derive_seed(self.master_seed, domain))
            self._streams[domain] = stream
        return stream
