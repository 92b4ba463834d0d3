"""Unit tests for the RNG stream system."""

from __future__ import annotations

import random

import pytest

from townsmith.util.rng import (
    CallableRNG,
    RandomSource,
    RNGProvider,
    RNGStream,
    derive_seed,
)


def sequence_source(values: list[float]):
    """A ``() -> float`` source replaying ``values`` in order."""
    it = iter(values)
    return lambda: next(it)


class TestRNGStream:
    """Tests for per-domain streams."""

    def test_stream_exposes_draw_methods(self) -> None:
        """RNGStream exposes the Random methods the layers use."""
        provider = RNGProvider(master_seed=42)
        stream = provider.get("test.domain")

        assert 0.0 <= stream.random() < 1.0
        assert 1 <= stream.randint(1, 10) <= 10
        assert 0 <= stream.randrange(0, 100) < 100
        assert stream.choice([1, 2, 3]) in (1, 2, 3)
        assert len(stream.choices([1, 2, 3], k=2)) == 2
        assert 0.0 <= stream.uniform(0.0, 1.0) <= 1.0

        items = [1, 2, 3]
        stream.shuffle(items)
        assert sorted(items) == [1, 2, 3]

    def test_stream_matches_callable_over_same_floats(self) -> None:
        """Derived draws depend only on the floats the source yields."""
        stream = RNGProvider(42).get("map.town")
        replay = CallableRNG(random.Random(derive_seed(42, "map.town")).random)
        assert [stream.randint(0, 99) for _ in range(20)] == [
            replay.randint(0, 99) for _ in range(20)
        ]
        assert stream.choices("abc", weights=[1, 2, 3], k=5) == replay.choices(
            "abc", weights=[1, 2, 3], k=5
        )

    def test_unseeded_provider_still_draws(self) -> None:
        stream = RNGProvider().get("map.town")
        assert derive_seed(None, "map.town") is None
        assert 0.0 <= stream.random() < 1.0

    def test_base_source_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            RandomSource()  # type: ignore[abstract]

    def test_get_returns_same_stream(self) -> None:
        provider = RNGProvider("oakford")
        assert provider.get("map.town") is provider.get("map.town")
        assert isinstance(provider.get("map.town"), RNGStream)


class TestRNGProvider:
    """Tests for RNGProvider seed derivation and isolation."""

    def test_same_seed_same_sequence(self) -> None:
        """Two providers with the same seed produce identical streams."""
        a = RNGProvider("oakford").get("map.town")
        b = RNGProvider("oakford").get("map.town")
        assert [a.random() for _ in range(10)] == [b.random() for _ in range(10)]

    def test_domains_are_isolated(self) -> None:
        """Consuming one domain does not shift another."""
        provider = RNGProvider(7)
        names = provider.get("map.names")
        expected = RNGProvider(7).get("map.names").random()

        town = provider.get("map.town")
        for _ in range(50):
            town.random()

        assert names.random() == expected

    def test_different_seeds_differ(self) -> None:
        a = RNGProvider(1).get("map.town")
        b = RNGProvider(2).get("map.town")
        assert [a.random() for _ in range(5)] != [b.random() for _ in range(5)]

    def test_int_and_string_seed_share_derivation(self) -> None:
        """Seeds are derived from their text form, so 1 and "1" agree."""
        a = RNGProvider(1).get("map.town")
        b = RNGProvider("1").get("map.town")
        assert a.random() == b.random()


class TestCallableRNG:
    """Tests for the adapter over a host ``() -> float`` source."""

    def test_randint_consumes_one_float(self) -> None:
        """randint maps one float onto the inclusive range."""
        rng = CallableRNG(sequence_source([0.0, 0.999, 0.5]))
        assert rng.randint(3, 7) == 3
        assert rng.randint(3, 7) == 7
        assert rng.randint(0, 9) == 5

    def test_random_folds_out_of_range_values(self) -> None:
        """A host returning exactly 1.0 is folded back into [0, 1)."""
        rng = CallableRNG(sequence_source([1.0, 1.25]))
        assert rng.random() == 0.0
        assert rng.random() == pytest.approx(0.25)

    def test_randint_empty_range_raises(self) -> None:
        rng = CallableRNG(lambda: 0.5)
        with pytest.raises(ValueError):
            rng.randint(5, 4)

    def test_choice_empty_raises(self) -> None:
        rng = CallableRNG(lambda: 0.5)
        with pytest.raises(IndexError):
            rng.choice([])

    def test_randrange_with_step(self) -> None:
        rng = CallableRNG(sequence_source([0.0, 0.99]))
        assert rng.randrange(0, 10, 5) == 0
        assert rng.randrange(0, 10, 5) == 5

    def test_weighted_choices_follow_cumulative_weights(self) -> None:
        """A roll below the first weight picks the first item, and so on."""
        rng = CallableRNG(sequence_source([0.1, 0.5, 0.95]))
        picked = rng.choices(["a", "b", "c"], weights=[0.2, 0.6, 0.2], k=3)
        assert picked == ["a", "b", "c"]

    def test_shuffle_is_deterministic_for_same_source(self) -> None:
        """The same host sequence always produces the same permutation."""
        first = list(range(10))
        second = list(range(10))
        CallableRNG(random.Random(3).random).shuffle(first)
        CallableRNG(random.Random(3).random).shuffle(second)
        assert first == second
        assert sorted(first) == list(range(10))

    def test_uniform_scales_source(self) -> None:
        rng = CallableRNG(lambda: 0.25)
        assert rng.uniform(2.0, 6.0) == pytest.approx(3.0)
