from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from bulgeline.curves.intersections import IntrKind, SegIntersect, intersect_segments
from bulgeline.curves.segment import seg_bounding_box, seg_is_degenerate
from bulgeline.index.static_aabb import StaticAABB2DIndex
from bulgeline.polyline import Polyline
from bulgeline.primitives import Point2, fuzzy_eq
from bulgeline.tolerance import DEFAULT_TOLERANCE, Tolerance


@dataclass(frozen=True)
class PlineIntersect:
    """Intersection found between segment ``seg1`` of one polyline and ``seg2`` of another (or the same)."""

    seg1: int
    seg2: int
    kind: IntrKind
    point: Point2
    t1: float
    t2: float
    point_end: Optional[Point2] = None
    t1_end: Optional[float] = None
    t2_end: Optional[float] = None

    @property
    def is_overlap(self) -> bool:
        return self.kind == IntrKind.OVERLAPPING

    def swapped(self) -> "PlineIntersect":
        if not self.is_overlap:
            return PlineIntersect(self.seg2, self.seg1, self.kind, self.point, self.t2, self.t1)
        return PlineIntersect(
            self.seg2,
            self.seg1,
            self.kind,
            self.point,
            self.t2,
            self.t1,
            point_end=self.point_end,
            t1_end=self.t2_end,
            t2_end=self.t1_end,
        )


@dataclass
class PlineIntersects:
    basic: List[PlineIntersect] = field(default_factory=list)
    overlapping: List[PlineIntersect] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.basic) + len(self.overlapping)

    def is_empty(self) -> bool:
        return not self.basic and not self.overlapping

    def all(self) -> List[PlineIntersect]:
        out = self.basic + self.overlapping
        out.sort(key=lambda h: (h.seg1, h.t1))
        return out

    def points(self) -> List[Point2]:
        pts: List[Point2] = [h.point for h in self.basic]
        for h in self.overlapping:
            pts.append(h.point)
            if h.point_end is not None:
                pts.append(h.point_end)
        return pts


def _wrap(i: int, j: int, hit: SegIntersect) -> PlineIntersect:
    return PlineIntersect(
        i,
        j,
        hit.kind,
        hit.point,
        hit.t1,
        hit.t2,
        point_end=hit.point_end,
        t1_end=hit.t1_end,
        t2_end=hit.t2_end,
    )


def _is_open_last(pline: Polyline, i: int) -> bool:
    return not pline.is_closed and i == pline.segment_count() - 1


def _dedupe(found: PlineIntersects, eps: float) -> PlineIntersects:
    ends: List[Point2] = []
    for h in found.overlapping:
        ends.append(h.point)
        if h.point_end is not None:
            ends.append(h.point_end)
    kept: List[PlineIntersect] = []
    for h in found.basic:
        if any(fuzzy_eq(h.point, q, eps) for q in ends):
            continue
        if any(fuzzy_eq(h.point, k.point, eps) for k in kept):
            continue
        kept.append(h)
    return PlineIntersects(basic=kept, overlapping=list(found.overlapping))


def self_intersects(
    pline: Polyline,
    index: Optional[StaticAABB2DIndex] = None,
    tol: Tolerance = DEFAULT_TOLERANCE,
) -> PlineIntersects:
    """Intersections of a polyline with itself.

    Adjacent segments touching at their shared vertex are not reported.
    """
    eps = tol.pos_equal_eps
    n = pline.segment_count()
    found = PlineIntersects()
    if n < 2:
        return found
    if index is None:
        index = pline.create_aabb_index()
    for i, v1, v2 in pline.iter_segments():
        if seg_is_degenerate(v1, v2, eps):
            continue
        box = seg_bounding_box(v1, v2).expanded(eps)
        for j in sorted(index.query_box(box)):
            if j <= i:
                continue
            u1, u2 = pline.segment(j)
            if seg_is_degenerate(u1, u2, eps):
                continue
            shares_end = j == i + 1
            shares_start = pline.is_closed and i == 0 and j == n - 1
            for hit in intersect_segments(v1, v2, u1, u2, eps):
                if hit.kind == IntrKind.OVERLAPPING:
                    found.overlapping.append(_wrap(i, j, hit))
                    continue
                if shares_end and fuzzy_eq(hit.point, v2.pos, eps):
                    continue
                if shares_start and fuzzy_eq(hit.point, v1.pos, eps):
                    continue
                if hit.t1 >= 1.0 and not _is_open_last(pline, i):
                    continue
                if hit.t2 >= 1.0 and not _is_open_last(pline, j):
                    continue
                found.basic.append(_wrap(i, j, hit))
    return _dedupe(found, eps)


def pairwise_intersects(
    pline1: Polyline,
    pline2: Polyline,
    index2: Optional[StaticAABB2DIndex] = None,
    tol: Tolerance = DEFAULT_TOLERANCE,
) -> PlineIntersects:
    """Intersections between two polylines, found through the index of ``pline2``."""
    eps = tol.pos_equal_eps
    found = PlineIntersects()
    if pline1.segment_count() == 0 or pline2.segment_count() == 0:
        return found
    if index2 is None:
        index2 = pline2.create_aabb_index()
    for i, v1, v2 in pline1.iter_segments():
        if seg_is_degenerate(v1, v2, eps):
            continue
        box = seg_bounding_box(v1, v2).expanded(eps)
        for j in sorted(index2.query_box(box)):
            u1, u2 = pline2.segment(j)
            if seg_is_degenerate(u1, u2, eps):
                continue
            for hit in intersect_segments(v1, v2, u1, u2, eps):
                if hit.kind == IntrKind.OVERLAPPING:
                    found.overlapping.append(_wrap(i, j, hit))
                    continue
                if hit.t1 >= 1.0 and not _is_open_last(pline1, i):
                    continue
                if hit.t2 >= 1.0 and not _is_open_last(pline2, j):
                    continue
                found.basic.append(_wrap(i, j, hit))
    return _dedupe(found, eps)


def find_intersects(
    pline1: Polyline,
    pline2: Polyline,
    tol: Tolerance = DEFAULT_TOLERANCE,
) -> List[PlineIntersect]:
    """All intersections between two polylines, ordered along ``pline1``."""
    return pairwise_intersects(pline1, pline2, tol=tol).all()
