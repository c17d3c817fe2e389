#!/usr/bin/env python3
"""
Micro-benchmark for the update pipeline.

Tests:
1. Snapshot normalization throughput (pair and record encodings)
2. Depth curve generation speed (full and capped)
3. Update gate submission throughput

Usage:
    python -m orderbook_viewer.benchmark
"""

from __future__ import annotations

import random
import time
from statistics import mean, stdev

from .datafeed.normalizer import SnapshotNormalizer
from .engine.depth import compute_capped_depth, compute_full_depth
from .engine.gate import UpdateGate


def generate_mock_payload(base_price: float = 600.0, levels: int = 1000, records: bool = False) -> dict:
    """Generate a mock raw order book payload."""
    tick_size = 0.01

    bids = []
    asks = []

    for i in range(levels):
        bid_price = f"{base_price - (i + 1) * tick_size:.2f}"
        ask_price = f"{base_price + (i + 1) * tick_size:.2f}"
        bid_size = f"{random.uniform(1, 100):.4f}"
        ask_size = f"{random.uniform(1, 100):.4f}"

        if records:
            bids.append({"price": bid_price, "size": bid_size})
            asks.append({"price": ask_price, "size": ask_size})
        else:
            bids.append([bid_price, bid_size])
            asks.append([ask_price, ask_size])

    return {
        'bids': bids,
        'asks': asks,
        'bidSum': "123.45",
        'askSum': "678.9",
    }


def _report(times: list[float]) -> float:
    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000 if len(times) > 1 else 0.0
    print(f"  Iterations: {len(times)}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")
    return avg_time


def benchmark_normalizer(iterations: int = 200, levels: int = 1000) -> float:
    """Benchmark normalization of full payloads."""
    print("\n=== Normalizer Benchmark ===")

    normalizer = SnapshotNormalizer()
    payloads = [generate_mock_payload(levels=levels, records=i % 2 == 1) for i in range(iterations)]

    times = []
    for payload in payloads:
        start = time.perf_counter()
        normalizer.normalize(payload)
        times.append(time.perf_counter() - start)

    avg_time = _report(times)
    print(f"  Per level: {mean(times) / (2 * levels) * 1_000_000:.2f}µs")
    return avg_time


def benchmark_depth(iterations: int = 500, levels: int = 1000) -> float:
    """Benchmark depth curve generation (what the chart needs)."""
    print("\n=== Depth Curve Benchmark ===")

    snapshot = SnapshotNormalizer().normalize(generate_mock_payload(levels=levels))

    # Warm up
    for _ in range(10):
        compute_full_depth(snapshot.bids, snapshot.asks)

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        compute_full_depth(snapshot.bids, snapshot.asks)
        times.append(time.perf_counter() - start)
    print("  [full]")
    avg_time = _report(times)

    capped = []
    for _ in range(iterations):
        start = time.perf_counter()
        compute_capped_depth(snapshot.bids, snapshot.asks)
        capped.append(time.perf_counter() - start)
    print("  [capped]")
    _report(capped)

    print(f"  Max recomputes/sec (full): {1000 / avg_time:,.0f}")
    return avg_time


class _NoTimerLoop:
    """Stand-in loop: arms nothing, so only submit() itself is measured."""

    class _Handle:
        def cancel(self) -> None:
            pass

    def call_later(self, delay, callback, *args):
        return self._Handle()


def benchmark_gate(iterations: int = 100_000) -> float:
    """Benchmark gate submission (the per-message hot path)."""
    print("\n=== Update Gate Benchmark ===")

    snapshot = SnapshotNormalizer().normalize(generate_mock_payload(levels=50))
    gate = UpdateGate(lambda s: None, window_sec=1.0, loop=_NoTimerLoop())

    start = time.perf_counter()
    for _ in range(iterations):
        gate.submit(snapshot)
    elapsed = time.perf_counter() - start
    gate.close()

    rate = iterations / elapsed
    print(f"  Submissions: {iterations:,}")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {rate:,.0f} submits/sec")
    return rate


def main() -> None:
    """Run all benchmarks."""
    print("=" * 60)
    print("Order Book Pipeline Benchmark")
    print("=" * 60)

    benchmark_normalizer()
    benchmark_depth()
    benchmark_gate()

    print("\n" + "=" * 60)
    print("Benchmark complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
