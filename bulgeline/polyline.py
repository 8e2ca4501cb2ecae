from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from bulgeline.curves.arc import angle_from_bulge
from bulgeline.curves.segment import seg_arc, seg_bounding_box, seg_closest_point, seg_length
from bulgeline.index.static_aabb import StaticAABB2DIndex, StaticAABB2DIndexBuilder
from bulgeline.primitives import AABB2, PlineVertex, Point2, dist, dist_squared, fuzzy_eq, is_left, merge_aabbs
from bulgeline.tolerance import EPS_POS


class Orientation(str, Enum):
    CCW = "ccw"
    CW = "cw"
    OPEN = "open"


@dataclass(frozen=True)
class ClosestPoint:
    seg_index: int
    point: Point2
    distance: float


@dataclass
class Polyline:
    """Ordered bulge vertexes; a closed polyline wraps from the last vertex to the first."""

    vertexes: List[PlineVertex] = field(default_factory=list)
    is_closed: bool = False

    @staticmethod
    def from_points(points: Sequence[Tuple[float, ...]], closed: bool = False) -> "Polyline":
        """Build from ``(x, y)`` or ``(x, y, bulge)`` tuples."""
        verts: List[PlineVertex] = []
        for p in points:
            bulge = float(p[2]) if len(p) > 2 else 0.0
            verts.append(PlineVertex(float(p[0]), float(p[1]), bulge))
        return Polyline(vertexes=verts, is_closed=closed)

    @staticmethod
    def circle(cx: float, cy: float, radius: float) -> "Polyline":
        """Counter-clockwise full circle as two half-turn arcs."""
        r = abs(float(radius))
        return Polyline(
            vertexes=[PlineVertex(cx - r, cy, 1.0), PlineVertex(cx + r, cy, 1.0)],
            is_closed=True,
        )

    def __len__(self) -> int:
        return len(self.vertexes)

    def __getitem__(self, i: int) -> PlineVertex:
        return self.vertexes[i]

    def copy(self) -> "Polyline":
        return Polyline(vertexes=list(self.vertexes), is_closed=self.is_closed)

    def add(self, x: float, y: float, bulge: float = 0.0) -> None:
        self.vertexes.append(PlineVertex(float(x), float(y), float(bulge)))

    def add_vertex(self, v: PlineVertex) -> None:
        self.vertexes.append(v)

    def add_or_replace(self, v: PlineVertex, eps: float = EPS_POS) -> None:
        """Append ``v`` unless it sits on the last vertex, in which case only the bulge is taken."""
        if self.vertexes and fuzzy_eq(self.vertexes[-1].pos, v.pos, eps):
            self.vertexes[-1] = self.vertexes[-1].with_bulge(v.bulge)
            return
        self.vertexes.append(v)

    def last(self) -> Optional[PlineVertex]:
        return self.vertexes[-1] if self.vertexes else None

    def segment_count(self) -> int:
        n = len(self.vertexes)
        if n < 2:
            return 0
        return n if self.is_closed else n - 1

    def next_wrapping_index(self, i: int) -> int:
        return 0 if i + 1 >= len(self.vertexes) else i + 1

    def segment(self, i: int) -> Tuple[PlineVertex, PlineVertex]:
        return self.vertexes[i], self.vertexes[self.next_wrapping_index(i)]

    def iter_segments(self) -> Iterator[Tuple[int, PlineVertex, PlineVertex]]:
        for i in range(self.segment_count()):
            v1, v2 = self.segment(i)
            yield i, v1, v2

    def is_degenerate(self, eps: float = EPS_POS) -> bool:
        if len(self.vertexes) < 2:
            return True
        first = self.vertexes[0].pos
        return all(fuzzy_eq(first, v.pos, eps) for v in self.vertexes[1:])

    def area(self) -> float:
        """Signed area, positive for counter-clockwise loops; zero for open polylines."""
        if not self.is_closed or len(self.vertexes) < 2:
            return 0.0
        total = 0.0
        for _, v1, v2 in self.iter_segments():
            total += 0.5 * (v1.x * v2.y - v2.x * v1.y)
            arc = seg_arc(v1, v2)
            if arc is not None:
                theta = angle_from_bulge(v1.bulge)
                total += 0.5 * arc.radius * arc.radius * (theta - math.sin(theta))
        return total

    def path_length(self) -> float:
        return sum(seg_length(v1, v2) for _, v1, v2 in self.iter_segments())

    def orientation(self) -> Orientation:
        if not self.is_closed:
            return Orientation.OPEN
        return Orientation.CCW if self.area() >= 0.0 else Orientation.CW

    def extent(self) -> Optional[AABB2]:
        if not self.vertexes:
            return None
        if len(self.vertexes) == 1:
            v = self.vertexes[0]
            return AABB2(v.x, v.y, v.x, v.y)
        return merge_aabbs(seg_bounding_box(v1, v2) for _, v1, v2 in self.iter_segments())

    def winding_number(self, p: Point2) -> int:
        """Arc-aware winding number; zero for open polylines and for points outside."""
        if not self.is_closed or len(self.vertexes) < 2:
            return 0
        px, py = float(p[0]), float(p[1])
        w = 0
        for _, v1, v2 in self.iter_segments():
            side = is_left(v1.pos, v2.pos, (px, py))
            if v1.y <= py:
                if v2.y > py and side > 0.0:
                    w += 1
            elif v2.y <= py and side < 0.0:
                w -= 1
            arc = seg_arc(v1, v2)
            if arc is None:
                continue
            # point inside the circular segment between chord and arc
            if dist_squared((px, py), arc.center) >= arc.radius * arc.radius:
                continue
            if side == 0.0:
                # on the chord: take the side the crossing rule above already assumed
                if v1.y <= py < v2.y:
                    side = -1.0
                elif v2.y <= py < v1.y:
                    side = 1.0
                else:
                    side = 1.0 if v2.x > v1.x else -1.0
            if v1.bulge > 0.0 and side < 0.0:
                w += 1
            elif v1.bulge < 0.0 and side > 0.0:
                w -= 1
        return w

    def closest_point(self, p: Point2, index: Optional[StaticAABB2DIndex] = None) -> Optional[ClosestPoint]:
        n = self.segment_count()
        if n == 0:
            if not self.vertexes:
                return None
            v = self.vertexes[0]
            return ClosestPoint(0, v.pos, dist(v.pos, p))
        candidates: Sequence[int] = range(n)
        if index is not None:
            v1, v2 = self.segment(0)
            r = dist(seg_closest_point(v1, v2, p), p)
            candidates = index.query(p[0] - r, p[1] - r, p[0] + r, p[1] + r) or [0]
        best: Optional[ClosestPoint] = None
        for i in candidates:
            v1, v2 = self.segment(i)
            q = seg_closest_point(v1, v2, p)
            d = dist(q, p)
            if best is None or d < best.distance:
                best = ClosestPoint(i, q, d)
        return best

    def create_aabb_index(self, pad: float = 0.0, node_size: int = 16) -> StaticAABB2DIndex:
        builder = StaticAABB2DIndexBuilder(self.segment_count(), node_size=node_size)
        for _, v1, v2 in self.iter_segments():
            box = seg_bounding_box(v1, v2)
            builder.add_box(box.expanded(pad) if pad > 0.0 else box)
        return builder.build()

    def inverted(self) -> "Polyline":
        """Same path traversed backwards."""
        n = len(self.vertexes)
        if n == 0:
            return Polyline(is_closed=self.is_closed)
        out: List[PlineVertex] = []
        for k in range(n):
            src = self.vertexes[n - 1 - k]
            if self.is_closed:
                prev = self.vertexes[(n - 2 - k) % n]
                out.append(src.with_bulge(-prev.bulge))
            elif k < n - 1:
                out.append(src.with_bulge(-self.vertexes[n - 2 - k].bulge))
            else:
                out.append(src.with_bulge(0.0))
        return Polyline(vertexes=out, is_closed=self.is_closed)

    def remove_repeat_pos(self, eps: float = EPS_POS) -> "Polyline":
        """Drop vertexes on top of their predecessor, keeping the bulge of the last one of each run."""
        out = Polyline(is_closed=self.is_closed)
        for v in self.vertexes:
            out.add_or_replace(v, eps)
        if self.is_closed and len(out.vertexes) > 1 and fuzzy_eq(out.vertexes[-1].pos, out.vertexes[0].pos, eps):
            out.vertexes.pop()
        return out
