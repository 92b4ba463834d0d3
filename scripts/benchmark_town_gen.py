#!/usr/bin/env python3
"""Benchmark town generation for every size and kind.

Generates a batch of towns per configuration, prints a timing table, then runs
the structural checks over every generated town.

Usage:
    uv run python scripts/benchmark_town_gen.py --iterations 10
"""

# ruff: noqa: E402  # Allow path setup before importing project modules

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

# Add the project root to Python path so running as a script works.
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from townsmith.environment.generators import (
    TownLayout,
    create_town_pipeline,
    load_default_prefabs,
    validate_layout,
)
from townsmith.environment.generators.buildings import PrefabRegistry

CASES: tuple[tuple[str, str], ...] = (
    ("small", "town"),
    ("big", "town"),
    ("city", "town"),
    ("city", "castle"),
)


class TownBenchmark:
    """Times the full pipeline and collects layouts for checking."""

    def __init__(self, iterations: int, prefabs: PrefabRegistry) -> None:
        self.iterations = iterations
        self.prefabs = prefabs
        self.results: dict[str, dict[str, float]] = {}
        self.layouts: list[tuple[str, TownLayout]] = []

    def _run_case(self, size: str, kind: str) -> tuple[float, float]:
        """Return (average ms, average building count) for one configuration."""
        elapsed_total = 0.0
        buildings = 0
        for i in range(self.iterations):
            generator = create_town_pipeline(
                size, f"bench-{size}-{kind}-{i}", kind=kind, prefabs=self.prefabs
            )
            start = time.perf_counter()
            layout = generator.generate()
            elapsed_total += time.perf_counter() - start
            buildings += len(layout.buildings)
            self.layouts.append((f"{size}/{kind} #{i}", layout))
        return (
            (elapsed_total / self.iterations) * 1000.0,
            buildings / self.iterations,
        )

    def run(self) -> None:
        print("Town Generation Benchmark")
        print("=" * 52)
        print(f"Iterations per case: {self.iterations}")
        print(f"Prefabs loaded: {len(self.prefabs)}")
        print()
        print(f"{'Case':<16} {'Time (ms)':>12} {'Buildings':>12}")
        print("-" * 52)

        for size, kind in CASES:
            avg_ms, avg_buildings = self._run_case(size, kind)
            key = f"{size}/{kind}"
            self.results[key] = {"ms": avg_ms, "buildings": avg_buildings}
            print(f"{key:<16} {avg_ms:>10.2f}ms {avg_buildings:>12.1f}")

        print("-" * 52)

    def check(self) -> int:
        """Run the structural checks; return the number of failing towns."""
        print()
        print("Correctness checks...")
        failures = 0
        for label, layout in self.layouts:
            problems = validate_layout(layout)
            if problems:
                failures += 1
                print(f"  FAIL {label} ({layout.name}): {problems[0]}")
        if failures:
            print(f"  {failures}/{len(self.layouts)} towns failed.")
        else:
            print(f"  All {len(self.layouts)} towns pass. OK!")
        return failures

    def save_results(self, filename: str) -> None:
        with Path(filename).open("w") as f:
            json.dump(self.results, f, indent=2)
        print(f"\nSaved benchmark results to {filename}")

    def compare_with_baseline(self, baseline_file: str) -> None:
        """Compare current run with a saved baseline JSON file."""
        try:
            with Path(baseline_file).open() as f:
                baseline: dict[str, dict[str, float]] = json.load(f)
        except FileNotFoundError:
            print(f"\nBaseline file not found: {baseline_file}")
            return

        print(f"\nComparison vs baseline: {baseline_file}")
        print("=" * 64)
        for key, current in self.results.items():
            old_ms = baseline.get(key, {}).get("ms", 0.0)
            if old_ms <= 0:
                continue
            delta_pct = ((current["ms"] - old_ms) / old_ms) * 100.0
            print(
                f"{key:>16}: {current['ms']:8.2f}ms vs {old_ms:8.2f}ms "
                f"({delta_pct:+6.1f}%)"
            )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Benchmark town generation")
    parser.add_argument(
        "--iterations",
        type=int,
        default=5,
        help="Number of towns per case (default: 5)",
    )
    parser.add_argument(
        "--no-prefabs",
        action="store_true",
        help="Generate procedural buildings only",
    )
    parser.add_argument("--save", type=str, help="Save current results to JSON")
    parser.add_argument(
        "--compare",
        type=str,
        help="Compare current results against baseline JSON",
    )
    args = parser.parse_args(argv)

    prefabs = PrefabRegistry.empty() if args.no_prefabs else load_default_prefabs()
    benchmark = TownBenchmark(iterations=args.iterations, prefabs=prefabs)
    benchmark.run()
    failures = benchmark.check()

    if args.save:
        benchmark.save_results(args.save)
    if args.compare:
        benchmark.compare_with_baseline(args.compare)

    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
