from __future__ import annotations

import math
import random
import time

from bulgeline import Polyline, pairwise_intersects
from bulgeline.curves.intersections import intersect_segments


def _wavy_loop(n: int, radius: float, amp: float, phase: float, seed: int = 7) -> Polyline:
    rng = random.Random(seed)
    pts: list[tuple[float, float, float]] = []
    for k in range(n):
        a = 2.0 * math.pi * k / n
        r = radius + amp * math.sin(12.0 * a + phase)
        bulge = rng.uniform(-0.3, 0.3) if k % 3 == 0 else 0.0
        pts.append((r * math.cos(a), r * math.sin(a), bulge))
    return Polyline.from_points(pts, closed=True)


def _bruteforce_count(a: Polyline, b: Polyline) -> int:
    hits = 0
    for _, u1, u2 in a.iter_segments():
        for _, v1, v2 in b.iter_segments():
            hits += len(intersect_segments(u1, u2, v1, v2))
    return hits


def _indexed_count(a: Polyline, b: Polyline) -> int:
    return len(pairwise_intersects(a, b, index2=b.create_aabb_index()))


def main() -> None:
    a = _wavy_loop(2000, 50.0, 3.0, 0.0)
    b = _wavy_loop(2000, 50.0, 3.0, 1.3, seed=11)

    # first call compiles the index query
    _indexed_count(_wavy_loop(20, 5.0, 1.0, 0.0), _wavy_loop(20, 5.0, 1.0, 1.0))

    t0 = time.perf_counter()
    brute_hits = _bruteforce_count(a, b)
    t1 = time.perf_counter()
    indexed_hits = _indexed_count(a, b)
    t2 = time.perf_counter()

    brute_s = t1 - t0
    indexed_s = t2 - t1
    speedup = brute_s / indexed_s if indexed_s > 0 else float("inf")

    print("Pairwise Intersect Benchmark")
    print(f"Segments: {a.segment_count()} x {b.segment_count()}")
    print(f"Bruteforce: {brute_s:.4f}s ({brute_hits} raw hits)")
    print(f"Indexed:    {indexed_s:.4f}s ({indexed_hits} hits)")
    print(f"Speedup:    {speedup:.2f}x")


if __name__ == "__main__":
    main()
