from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from bulgeline.primitives import AABB2, Point2
from bulgeline.tolerance import EPS_ZERO


TWO_PI = 2.0 * math.pi


def normalize_radians(a: float) -> float:
    out = float(a) % TWO_PI
    if out < 0.0:
        out += TWO_PI
    if out >= TWO_PI:
        out -= TWO_PI
    return out


def delta_angle(a0: float, a1: float) -> float:
    d = normalize_radians(a1 - a0)
    if d > math.pi:
        d -= TWO_PI
    return d


def delta_angle_signed(a0: float, a1: float, negative: bool) -> float:
    d = normalize_radians(a1 - a0)
    if negative:
        return d - TWO_PI if d > 0.0 else 0.0
    return d


def angle_from_bulge(bulge: float) -> float:
    return 4.0 * math.atan(float(bulge))


def bulge_from_angle(theta: float) -> float:
    return math.tan(float(theta) * 0.25)


def angle(center: Point2, p: Point2) -> float:
    return math.atan2(float(p[1]) - float(center[1]), float(p[0]) - float(center[0]))


@dataclass(frozen=True)
class Arc:
    center: Point2
    radius: float
    start_rad: float
    sweep_rad: float

    @staticmethod
    def from_bulge(start: Point2, end: Point2, bulge: float) -> "Arc":
        b = float(bulge)
        if abs(b) <= EPS_ZERO:
            raise ValueError("bulge cannot be zero for arc")
        x1, y1 = float(start[0]), float(start[1])
        x2, y2 = float(end[0]), float(end[1])
        vx, vy = x2 - x1, y2 - y1
        chord = math.hypot(vx, vy)
        if chord <= EPS_ZERO:
            raise ValueError("bulge arc requires distinct endpoints")
        ab = abs(b)
        radius = chord * (ab * ab + 1.0) / (4.0 * ab)
        # signed distance from chord midpoint to center along the left normal
        m = radius - ab * chord * 0.5
        if b < 0.0:
            m = -m
        cx = (x1 + x2) * 0.5 - m * vy / chord
        cy = (y1 + y2) * 0.5 + m * vx / chord
        return Arc(
            center=(cx, cy),
            radius=radius,
            start_rad=math.atan2(y1 - cy, x1 - cx),
            sweep_rad=angle_from_bulge(b),
        )

    @property
    def is_ccw(self) -> bool:
        return self.sweep_rad > 0.0

    @property
    def end_rad(self) -> float:
        return self.start_rad + self.sweep_rad

    def point_at_angle(self, a: float) -> Point2:
        return (
            float(self.center[0] + self.radius * math.cos(a)),
            float(self.center[1] + self.radius * math.sin(a)),
        )

    @property
    def start_point(self) -> Point2:
        return self.point_at_angle(self.start_rad)

    @property
    def end_point(self) -> Point2:
        return self.point_at_angle(self.end_rad)

    def ccw_span(self) -> Tuple[float, float]:
        if self.sweep_rad >= 0.0:
            return normalize_radians(self.start_rad), self.sweep_rad
        return normalize_radians(self.end_rad), -self.sweep_rad

    def length(self) -> float:
        return abs(self.sweep_rad) * self.radius

    def point_at(self, t: float) -> Point2:
        return self.point_at_angle(self.start_rad + self.sweep_rad * float(t))

    def _offset_in_sweep(self, a: float) -> float:
        if self.sweep_rad >= 0.0:
            return normalize_radians(a - self.start_rad)
        return normalize_radians(self.start_rad - a)

    def contains_angle(self, a: float, eps: float = 0.0) -> bool:
        d = self._offset_in_sweep(a)
        return d <= abs(self.sweep_rad) + eps or d >= TWO_PI - eps

    def contains_point(self, p: Point2, eps: float) -> bool:
        ang_eps = eps / max(self.radius, EPS_ZERO)
        return self.contains_angle(angle(self.center, p), ang_eps)

    def param_of_angle(self, a: float) -> float:
        sw = abs(self.sweep_rad)
        if sw <= EPS_ZERO:
            return 0.0
        d = self._offset_in_sweep(a)
        if d > sw:
            return 0.0 if (TWO_PI - d) < (d - sw) else 1.0
        return d / sw

    def param_of_point(self, p: Point2) -> float:
        return self.param_of_angle(angle(self.center, p))

    def nearest_point(self, p: Point2) -> Point2:
        px, py = float(p[0]), float(p[1])
        cx, cy = float(self.center[0]), float(self.center[1])
        vx, vy = px - cx, py - cy
        cands = [self.start_point, self.end_point]
        if math.hypot(vx, vy) > EPS_ZERO:
            a = math.atan2(vy, vx)
            if self.contains_angle(a):
                return self.point_at_angle(a)
        return min(cands, key=lambda q: (q[0] - px) * (q[0] - px) + (q[1] - py) * (q[1] - py))

    def bounding_box(self) -> AABB2:
        s, e = self.start_point, self.end_point
        xs = [s[0], e[0]]
        ys = [s[1], e[1]]
        for k in range(4):
            a = k * math.pi * 0.5
            if self.contains_angle(a):
                q = self.point_at_angle(a)
                xs.append(q[0])
                ys.append(q[1])
        return AABB2(min(xs), min(ys), max(xs), max(ys))

    def tangent_at(self, p: Point2) -> Point2:
        dx = float(p[0]) - float(self.center[0])
        dy = float(p[1]) - float(self.center[1])
        ln = math.hypot(dx, dy)
        if ln <= EPS_ZERO:
            return (0.0, 0.0)
        if self.is_ccw:
            return (-dy / ln, dx / ln)
        return (dy / ln, -dx / ln)
