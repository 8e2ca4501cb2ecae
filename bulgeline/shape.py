from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from bulgeline.index.static_aabb import StaticAABB2DIndex, StaticAABB2DIndexBuilder
from bulgeline.intersects import pairwise_intersects
from bulgeline.offset import OffsetOptions, offset, point_valid_for_offset
from bulgeline.polyline import Orientation, Polyline
from bulgeline.slicing import CutPoint, Failure, PlineSlice, path_midpoint, slice_and_stitch
from bulgeline.tolerance import EPS_ZERO

logger = logging.getLogger(__name__)


@dataclass
class IndexedPolyline:
    polyline: Polyline
    spatial_index: StaticAABB2DIndex

    @staticmethod
    def new(pline: Polyline) -> "IndexedPolyline":
        return IndexedPolyline(polyline=pline, spatial_index=pline.create_aabb_index())


@dataclass
class Shape:
    """Closed loops forming a region: CCW loops bound material, CW loops are holes."""

    ccw_plines: List[IndexedPolyline] = field(default_factory=list)
    cw_plines: List[IndexedPolyline] = field(default_factory=list)

    @staticmethod
    def from_plines(plines: Iterable[Polyline]) -> "Shape":
        shape = Shape()
        for p in plines:
            if not p.is_closed or len(p) < 2 or abs(p.area()) < EPS_ZERO:
                continue
            entry = IndexedPolyline.new(p)
            if p.orientation() == Orientation.CCW:
                shape.ccw_plines.append(entry)
            else:
                shape.cw_plines.append(entry)
        return shape

    def loops(self) -> List[IndexedPolyline]:
        return self.ccw_plines + self.cw_plines

    def __len__(self) -> int:
        return len(self.ccw_plines) + len(self.cw_plines)

    def area(self) -> float:
        return sum(e.polyline.area() for e in self.loops())

    def parallel_offset(self, distance: float, options: Optional[OffsetOptions] = None) -> "ShapeOffsetResult":
        return offset_shape(self, distance, options)


@dataclass(frozen=True)
class ShapeOffsetResult:
    ok: bool
    shape: Optional[Shape] = None
    failure: Optional[Failure] = None


def _extent_index(loops: List[Polyline], pad: float) -> StaticAABB2DIndex:
    builder = StaticAABB2DIndexBuilder(len(loops))
    for p in loops:
        ext = p.extent()
        assert ext is not None
        builder.add_box(ext.expanded(pad))
    return builder.build()


def offset_shape(shape: Shape, distance: float, options: Optional[OffsetOptions] = None) -> ShapeOffsetResult:
    """Offset every loop of ``shape``; positive distance grows material (outer loops grow, holes shrink)."""
    opts = options or OffsetOptions()
    tol = opts.tol
    d = float(distance)
    inputs = shape.loops()
    if d == 0.0 or not inputs:
        return ShapeOffsetResult(ok=True, shape=Shape.from_plines(e.polyline.copy() for e in inputs))

    offset_loops: List[Polyline] = []
    parents: List[int] = []
    for k, entry in enumerate(inputs):
        res = offset(entry.polyline, d, opts)
        if not res.ok:
            return ShapeOffsetResult(ok=False, failure=res.failure)
        for p in res.plines:
            offset_loops.append(p)
            parents.append(k)
    if not offset_loops:
        return ShapeOffsetResult(ok=True, shape=Shape())

    cuts: Dict[int, List[CutPoint]] = {k: [] for k in range(len(offset_loops))}
    index = _extent_index(offset_loops, tol.pos_equal_eps)
    for i, p in enumerate(offset_loops):
        ext = p.extent()
        assert ext is not None
        for j in index.query_box(ext.expanded(tol.pos_equal_eps)):
            if j <= i:
                continue
            found = pairwise_intersects(p, offset_loops[j], tol=tol)
            for h in found.basic:
                cuts[i].append(CutPoint(h.seg1, h.t1, h.point))
                cuts[j].append(CutPoint(h.seg2, h.t2, h.point))
            for h in found.overlapping:
                assert h.point_end is not None and h.t1_end is not None and h.t2_end is not None
                cuts[i] += [CutPoint(h.seg1, h.t1, h.point), CutPoint(h.seg1, h.t1_end, h.point_end)]
                cuts[j] += [CutPoint(h.seg2, h.t2, h.point), CutPoint(h.seg2, h.t2_end, h.point_end)]

    abs_d = abs(d)

    def select(part: PlineSlice) -> Optional[PlineSlice]:
        parent = parents[part.source]
        _, mid = path_midpoint(part.pline)
        for k, entry in enumerate(inputs):
            if k == parent:
                continue
            if not point_valid_for_offset(entry.polyline, entry.spatial_index, mid, abs_d, tol):
                return None
        return part

    sources: List[Tuple[int, Polyline, List[CutPoint]]] = [(k, p, cuts[k]) for k, p in enumerate(offset_loops)]
    stitched = slice_and_stitch(sources, select, closed_only=True, prefer_same_source=True, tol=tol)
    if not stitched.ok:
        return ShapeOffsetResult(ok=False, failure=stitched.failure)

    result = Shape.from_plines(stitched.plines)
    logger.debug(
        "shape offset d=%g: %d input loops, %d offset loops, %d ccw / %d cw results",
        d,
        len(inputs),
        len(offset_loops),
        len(result.ccw_plines),
        len(result.cw_plines),
    )
    return ShapeOffsetResult(ok=True, shape=result)
