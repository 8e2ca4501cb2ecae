from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from bulgeline.tolerance import EPS_ZERO


Point2 = Tuple[float, float]


def dist(a: Point2, b: Point2) -> float:
    return math.hypot(float(a[0]) - float(b[0]), float(a[1]) - float(b[1]))


def dist_squared(a: Point2, b: Point2) -> float:
    dx, dy = float(a[0]) - float(b[0]), float(a[1]) - float(b[1])
    return dx * dx + dy * dy


def fuzzy_eq(a: Point2, b: Point2, eps: float) -> bool:
    return dist_squared(a, b) <= eps * eps


def perp_dot(a: Point2, b: Point2) -> float:
    return float(a[0]) * float(b[1]) - float(a[1]) * float(b[0])


def is_left(p0: Point2, p1: Point2, p: Point2) -> float:
    return (p1[0] - p0[0]) * (p[1] - p0[1]) - (p[0] - p0[0]) * (p1[1] - p0[1])


def midpoint(a: Point2, b: Point2) -> Point2:
    return ((float(a[0]) + float(b[0])) * 0.5, (float(a[1]) + float(b[1])) * 0.5)


def unit(v: Point2) -> Point2:
    ln = math.hypot(float(v[0]), float(v[1]))
    if ln <= EPS_ZERO:
        return (0.0, 0.0)
    return (float(v[0]) / ln, float(v[1]) / ln)


@dataclass(frozen=True)
class PlineVertex:
    x: float
    y: float
    bulge: float = 0.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError("vertex coordinates must be finite")
        if not math.isfinite(self.bulge):
            raise ValueError("vertex bulge must be finite")

    @property
    def pos(self) -> Point2:
        return (self.x, self.y)

    def bulge_is_zero(self) -> bool:
        return abs(self.bulge) < EPS_ZERO

    def bulge_is_neg(self) -> bool:
        return self.bulge < 0.0

    def with_bulge(self, bulge: float) -> "PlineVertex":
        return PlineVertex(self.x, self.y, float(bulge))

    @staticmethod
    def at(p: Point2, bulge: float = 0.0) -> "PlineVertex":
        return PlineVertex(float(p[0]), float(p[1]), float(bulge))


@dataclass(frozen=True)
class AABB2:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def overlaps(self, other: "AABB2") -> bool:
        return not (
            other.max_x < self.min_x
            or other.max_y < self.min_y
            or other.min_x > self.max_x
            or other.min_y > self.max_y
        )

    def contains_point(self, p: Point2) -> bool:
        return self.min_x <= p[0] <= self.max_x and self.min_y <= p[1] <= self.max_y

    def expanded(self, pad: float) -> "AABB2":
        return AABB2(self.min_x - pad, self.min_y - pad, self.max_x + pad, self.max_y + pad)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    @staticmethod
    def around(p: Point2, half: float) -> "AABB2":
        return AABB2(p[0] - half, p[1] - half, p[0] + half, p[1] + half)


def merge_aabbs(boxes: Iterable[AABB2]) -> Optional[AABB2]:
    out: Optional[AABB2] = None
    for b in boxes:
        if out is None:
            out = b
            continue
        out = AABB2(
            min(out.min_x, b.min_x),
            min(out.min_y, b.min_y),
            max(out.max_x, b.max_x),
            max(out.max_y, b.max_y),
        )
    return out
