from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from bulgeline.curves.arc import (
    Arc,
    angle,
    angle_from_bulge,
    bulge_from_angle,
    delta_angle_signed,
)
from bulgeline.curves.intersections import circle_circle_points, line_circle_params, line_line_params
from bulgeline.curves.segment import line_point_at, seg_arc, seg_closest_point, seg_midpoint
from bulgeline.index.static_aabb import StaticAABB2DIndex
from bulgeline.intersects import PlineIntersects, pairwise_intersects, self_intersects
from bulgeline.polyline import Orientation, Polyline
from bulgeline.primitives import PlineVertex, Point2, dist, fuzzy_eq
from bulgeline.slicing import CutPoint, Failure, PlineSlice, dissect, stitch_slices
from bulgeline.tolerance import DEFAULT_TOLERANCE, EPS_ZERO, Tolerance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OffsetOptions:
    tol: Tolerance = DEFAULT_TOLERANCE
    handle_self_intersects: bool = False


@dataclass(frozen=True)
class OffsetResult:
    ok: bool
    plines: List[Polyline] = field(default_factory=list)
    failure: Optional[Failure] = None

    def __len__(self) -> int:
        return len(self.plines)

    def __iter__(self) -> Iterator[Polyline]:
        return iter(self.plines)


@dataclass(frozen=True)
class RawOffsetSeg:
    v1: PlineVertex
    v2: PlineVertex
    orig_v2_pos: Point2
    collapsed_arc: bool = False


def raw_offset_segs(pline: Polyline, distance: float, eps: float = DEFAULT_TOLERANCE.pos_equal_eps) -> List[RawOffsetSeg]:
    """Every segment shifted by ``distance`` to the right of its direction of travel, unjoined."""
    d = float(distance)
    out: List[RawOffsetSeg] = []
    for _, u1, u2 in pline.iter_segments():
        arc = seg_arc(u1, u2)
        if arc is None:
            vx, vy = u2.x - u1.x, u2.y - u1.y
            ln = math.hypot(vx, vy)
            if ln <= EPS_ZERO:
                continue
            ox, oy = vy / ln * d, -vx / ln * d
            out.append(
                RawOffsetSeg(
                    PlineVertex(u1.x + ox, u1.y + oy, 0.0),
                    PlineVertex(u2.x + ox, u2.y + oy, 0.0),
                    u2.pos,
                )
            )
            continue
        offs = -d if u1.bulge_is_neg() else d
        cx, cy = arc.center
        r = arc.radius

        def moved(p: Point2) -> Point2:
            return (p[0] + (p[0] - cx) / r * offs, p[1] + (p[1] - cy) / r * offs)

        p1, p2 = moved(u1.pos), moved(u2.pos)
        if r + offs < eps:
            out.append(RawOffsetSeg(PlineVertex.at(p1), PlineVertex.at(p2), u2.pos, collapsed_arc=True))
        else:
            out.append(RawOffsetSeg(PlineVertex.at(p1, u1.bulge), PlineVertex.at(p2), u2.pos))
    return out


def _is_arc(s: RawOffsetSeg) -> bool:
    return not s.collapsed_arc and not s.v1.bulge_is_zero()


def _seg_arc(s: RawOffsetSeg) -> Arc:
    return Arc.from_bulge(s.v1.pos, s.v2.pos, s.v1.bulge)


def _clamped_sweep(arc: Arc, frm: Point2, to: Point2, eps: float) -> float:
    full = arc.sweep_rad
    theta = delta_angle_signed(angle(arc.center, frm), angle(arc.center, to), full < 0.0)
    if abs(theta) > abs(full):
        return 0.0 if fuzzy_eq(to, arc.start_point, eps) or fuzzy_eq(frm, arc.end_point, eps) else full
    return theta


def _connect_using_arc(s1: RawOffsetSeg, s2: RawOffsetSeg, conn_ccw: bool, out: Polyline, eps: float) -> None:
    center = s1.orig_v2_pos
    sp = s1.v2.pos
    ep = s2.v1.pos
    if fuzzy_eq(sp, ep, eps):
        out.add_or_replace(PlineVertex.at(sp), eps)
    else:
        sweep = delta_angle_signed(angle(center, sp), angle(center, ep), not conn_ccw)
        out.add_or_replace(PlineVertex.at(sp, bulge_from_angle(sweep)), eps)
    out.add_or_replace(PlineVertex.at(ep, s2.v1.bulge), eps)


def _trim_prev_arc_end(out: Polyline, arc: Arc, p: Point2, eps: float) -> None:
    prev = out.vertexes[-1]
    if prev.bulge_is_zero() or fuzzy_eq(prev.pos, p, eps):
        return
    sweep = delta_angle_signed(angle(arc.center, prev.pos), angle(arc.center, p), prev.bulge_is_neg())
    limit = angle_from_bulge(prev.bulge)
    if abs(sweep) > abs(limit):
        sweep = limit
    out.vertexes[-1] = prev.with_bulge(bulge_from_angle(sweep))


def _closest_param(params: List[float], p0: Point2, p1: Point2, ref: Point2) -> float:
    return min(params, key=lambda t: dist(line_point_at(p0, p1, t), ref))


def _join_line_line(s1: RawOffsetSeg, s2: RawOffsetSeg, conn_ccw: bool, out: Polyline, eps: float) -> None:
    v1, v2, u1, u2 = s1.v1.pos, s1.v2.pos, s2.v1.pos, s2.v2.pos
    if s1.collapsed_arc or s2.collapsed_arc:
        _connect_using_arc(s1, s2, conn_ccw, out, eps)
        return
    params = line_line_params(v1, v2, u1, u2)
    if params is None:
        if fuzzy_eq(v2, u1, eps):
            out.add_or_replace(PlineVertex.at(v2), eps)
        else:
            _connect_using_arc(s1, s2, conn_ccw, out, eps)
        return
    t, u = params
    te1 = eps / max(dist(v1, v2), EPS_ZERO)
    te2 = eps / max(dist(u1, u2), EPS_ZERO)
    if -te1 <= t <= 1.0 + te1 and -te2 <= u <= 1.0 + te2:
        out.add_or_replace(PlineVertex.at(line_point_at(v1, v2, t)), eps)
    elif t > 1.0 and u < 0.0:
        _connect_using_arc(s1, s2, conn_ccw, out, eps)
    else:
        out.add_or_replace(PlineVertex.at(v2), eps)
        out.add_or_replace(PlineVertex.at(u1, s2.v1.bulge), eps)


def _join_line_arc(s1: RawOffsetSeg, s2: RawOffsetSeg, conn_ccw: bool, out: Polyline, eps: float) -> None:
    v1, v2 = s1.v1.pos, s1.v2.pos
    arc = _seg_arc(s2)
    params = line_circle_params(v1, v2, arc.center, arc.radius, eps)
    if not params:
        _connect_using_arc(s1, s2, conn_ccw, out, eps)
        return
    t = _closest_param(params, v1, v2, s1.orig_v2_pos)
    p = line_point_at(v1, v2, t)
    te = eps / max(dist(v1, v2), EPS_ZERO)
    on_line = -te <= t <= 1.0 + te
    on_arc = arc.contains_point(p, eps)
    if on_line and on_arc:
        out.add_or_replace(PlineVertex.at(p, bulge_from_angle(_clamped_sweep(arc, p, s2.v2.pos, eps))), eps)
    elif (t > 1.0 and not on_arc) or s1.collapsed_arc:
        _connect_using_arc(s1, s2, conn_ccw, out, eps)
    else:
        out.add_or_replace(PlineVertex.at(v2), eps)
        out.add_or_replace(PlineVertex.at(s2.v1.pos, s2.v1.bulge), eps)


def _join_arc_line(s1: RawOffsetSeg, s2: RawOffsetSeg, conn_ccw: bool, out: Polyline, eps: float) -> None:
    u1, u2 = s2.v1.pos, s2.v2.pos
    arc = _seg_arc(s1)
    params = line_circle_params(u1, u2, arc.center, arc.radius, eps)
    if not params or s2.collapsed_arc:
        _connect_using_arc(s1, s2, conn_ccw, out, eps)
        return
    t = _closest_param(params, u1, u2, s1.orig_v2_pos)
    p = line_point_at(u1, u2, t)
    te = eps / max(dist(u1, u2), EPS_ZERO)
    if -te <= t <= 1.0 + te and arc.contains_point(p, eps):
        _trim_prev_arc_end(out, arc, p, eps)
        out.add_or_replace(PlineVertex.at(p), eps)
    else:
        _connect_using_arc(s1, s2, conn_ccw, out, eps)


def _join_arc_arc(s1: RawOffsetSeg, s2: RawOffsetSeg, conn_ccw: bool, out: Polyline, eps: float) -> None:
    a1 = _seg_arc(s1)
    a2 = _seg_arc(s2)
    mode, pts = circle_circle_points(a1.center, a1.radius, a2.center, a2.radius, eps)
    if mode == "same":
        out.add_or_replace(PlineVertex.at(s2.v1.pos, s2.v1.bulge), eps)
        return
    if not pts:
        _connect_using_arc(s1, s2, conn_ccw, out, eps)
        return
    p = min(pts, key=lambda q: dist(q, s1.orig_v2_pos))
    if a1.contains_point(p, eps) and a2.contains_point(p, eps):
        _trim_prev_arc_end(out, a1, p, eps)
        out.add_or_replace(PlineVertex.at(p, bulge_from_angle(_clamped_sweep(a2, p, s2.v2.pos, eps))), eps)
    else:
        _connect_using_arc(s1, s2, conn_ccw, out, eps)


def _join(s1: RawOffsetSeg, s2: RawOffsetSeg, conn_ccw: bool, out: Polyline, eps: float) -> None:
    arc1, arc2 = _is_arc(s1), _is_arc(s2)
    if not arc1 and not arc2:
        _join_line_line(s1, s2, conn_ccw, out, eps)
    elif not arc1:
        _join_line_arc(s1, s2, conn_ccw, out, eps)
    elif not arc2:
        _join_arc_line(s1, s2, conn_ccw, out, eps)
    else:
        _join_arc_arc(s1, s2, conn_ccw, out, eps)


def raw_offset(pline: Polyline, distance: float, tol: Tolerance = DEFAULT_TOLERANCE) -> Polyline:
    """Joined, possibly self-intersecting offset of ``pline``."""
    eps = tol.pos_equal_eps
    segs = raw_offset_segs(pline, distance, eps)
    out = Polyline(is_closed=pline.is_closed)
    if not segs:
        return out
    conn_ccw = distance > 0.0
    out.add_vertex(segs[0].v1)
    for k in range(len(segs) - 1):
        _join(segs[k], segs[k + 1], conn_ccw, out, eps)

    if not pline.is_closed:
        out.add_or_replace(segs[-1].v2, eps)
        return out

    closing = Polyline(vertexes=[out.vertexes[-1]])
    _join(segs[-1], segs[0], conn_ccw, closing, eps)
    out.vertexes[-1] = closing.vertexes[0]
    for v in closing.vertexes[1:-1]:
        out.add_or_replace(v, eps)
    start = closing.vertexes[-1]
    if len(out) > 1 and not fuzzy_eq(start.pos, out.vertexes[0].pos, eps):
        first = segs[0]
        if _is_arc(first):
            sweep = _clamped_sweep(_seg_arc(first), start.pos, out.vertexes[1].pos, eps)
            out.vertexes[0] = PlineVertex.at(start.pos, bulge_from_angle(sweep))
        else:
            out.vertexes[0] = PlineVertex.at(start.pos)
    return out.remove_repeat_pos(eps)


def point_valid_for_offset(
    pline: Polyline,
    index: StaticAABB2DIndex,
    p: Point2,
    abs_distance: float,
    tol: Tolerance = DEFAULT_TOLERANCE,
) -> bool:
    """True when ``p`` keeps at least the offset distance (less tolerance) from every segment."""
    min_dist = abs_distance - tol.offset_dist_eps
    if min_dist <= 0.0:
        return True
    for j in index.query(p[0] - min_dist, p[1] - min_dist, p[0] + min_dist, p[1] + min_dist):
        v1, v2 = pline.segment(j)
        if dist(seg_closest_point(v1, v2, p), p) < min_dist:
            return False
    return True


def slice_valid_for_offset(
    part: Polyline,
    pline: Polyline,
    index: StaticAABB2DIndex,
    abs_distance: float,
    tol: Tolerance = DEFAULT_TOLERANCE,
) -> bool:
    for v in part.vertexes:
        if not point_valid_for_offset(pline, index, v.pos, abs_distance, tol):
            return False
    for _, v1, v2 in part.iter_segments():
        if not point_valid_for_offset(pline, index, seg_midpoint(v1, v2), abs_distance, tol):
            return False
    return True


def _cuts_from(found: PlineIntersects, both_sides: bool) -> List[CutPoint]:
    cuts: List[CutPoint] = []
    for h in found.basic:
        cuts.append(CutPoint(h.seg1, h.t1, h.point))
        if both_sides:
            cuts.append(CutPoint(h.seg2, h.t2, h.point))
    for h in found.overlapping:
        assert h.point_end is not None and h.t1_end is not None and h.t2_end is not None
        cuts.append(CutPoint(h.seg1, h.t1, h.point))
        cuts.append(CutPoint(h.seg1, h.t1_end, h.point_end))
        if both_sides:
            cuts.append(CutPoint(h.seg2, h.t2, h.point))
            cuts.append(CutPoint(h.seg2, h.t2_end, h.point_end))
    return cuts


def _end_cap(p: Point2, radius: float) -> Polyline:
    return Polyline.circle(p[0], p[1], radius)


def _keep_result(p: Polyline, src_orientation: Orientation, distance: float, tol: Tolerance) -> bool:
    if len(p) < 2 or p.is_degenerate(tol.pos_equal_eps):
        return False
    if not p.is_closed:
        return True
    if abs(p.area()) < EPS_ZERO:
        return False
    shrinking = (src_orientation == Orientation.CCW and distance < 0.0) or (
        src_orientation == Orientation.CW and distance > 0.0
    )
    return not (shrinking and p.orientation() != src_orientation)


def offset(pline: Polyline, distance: float, options: Optional[OffsetOptions] = None) -> OffsetResult:
    """Parallel offset of ``pline``; positive distance is to the right of travel (outward for CCW loops)."""
    d = float(distance)
    if not math.isfinite(d):
        raise ValueError("offset distance must be finite")
    opts = options or OffsetOptions()
    tol = opts.tol
    if d == 0.0:
        return OffsetResult(ok=True, plines=[pline.copy()])

    src = pline.remove_repeat_pos(tol.pos_equal_eps)
    if src.is_degenerate(tol.pos_equal_eps) or src.segment_count() == 0:
        logger.debug("offset of degenerate polyline, nothing to do")
        return OffsetResult(ok=True)

    raw = raw_offset(src, d, tol)
    if raw.segment_count() == 0:
        return OffsetResult(ok=True)

    src_index = src.create_aabb_index()
    raw_index = raw.create_aabb_index()
    cuts = _cuts_from(self_intersects(raw, raw_index, tol), both_sides=True)
    cuts += _cuts_from(pairwise_intersects(raw, src, src_index, tol), both_sides=False)
    if not src.is_closed or opts.handle_self_intersects:
        dual = raw_offset(src, -d, tol)
        if dual.segment_count() > 0:
            cuts += _cuts_from(pairwise_intersects(raw, dual, tol=tol), both_sides=False)
    if not src.is_closed:
        for p in (src.vertexes[0].pos, src.vertexes[-1].pos):
            cuts += _cuts_from(pairwise_intersects(raw, _end_cap(p, abs(d)), tol=tol), both_sides=False)

    abs_d = abs(d)
    slices = dissect(raw, cuts, 0, tol)
    valid: List[PlineSlice] = [s for s in slices if slice_valid_for_offset(s.pline, src, src_index, abs_d, tol)]
    logger.debug(
        "offset d=%g: raw offset %d vertexes, %d cuts, %d/%d valid slices",
        d,
        len(raw),
        len(cuts),
        len(valid),
        len(slices),
    )

    stitched = stitch_slices(
        valid,
        closed_only=src.is_closed,
        prefer_same_source=True,
        drop_unclosed=src.is_closed and opts.handle_self_intersects,
        tol=tol,
    )
    if not stitched.ok:
        return OffsetResult(ok=False, failure=stitched.failure)

    orient = src.orientation()
    plines = [p for p in stitched.plines if _keep_result(p, orient, d, tol)]
    logger.debug("offset d=%g produced %d polylines", d, len(plines))
    return OffsetResult(ok=True, plines=plines)
