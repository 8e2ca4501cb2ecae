from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from bulgeline.curves.arc import TWO_PI, Arc, angle, normalize_radians
from bulgeline.curves.segment import line_point_at, seg_arc
from bulgeline.primitives import PlineVertex, Point2, dist, perp_dot
from bulgeline.tolerance import EPS_ANG, EPS_POS, EPS_ZERO


class IntrKind(str, Enum):
    PROPER = "proper"
    TANGENT = "tangent"
    OVERLAPPING = "overlapping"


@dataclass(frozen=True)
class SegIntersect:
    """Intersection between two segments.

    ``t1``/``t2`` are the parameters of ``point`` on the first and second segment.
    Overlaps also carry the far end of the shared range in the ``*_end`` fields,
    ordered so that ``t1 <= t1_end``.
    """

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


def _clamp01(t: float) -> float:
    return min(1.0, max(0.0, float(t)))


def _snap(p: Point2, ends: Tuple[Point2, ...], eps: float) -> Point2:
    for q in ends:
        if dist(p, q) <= eps:
            return (float(q[0]), float(q[1]))
    return p


def _snap_param(p: Point2, t: float, a: Point2, b: Point2, eps: float) -> float:
    if dist(p, a) <= eps:
        return 0.0
    if dist(p, b) <= eps:
        return 1.0
    return _clamp01(t)


def line_line_params(p0: Point2, p1: Point2, q0: Point2, q1: Point2) -> Optional[Tuple[float, float]]:
    """Parameters of the crossing of the two infinite lines, None when parallel."""
    r = (p1[0] - p0[0], p1[1] - p0[1])
    s = (q1[0] - q0[0], q1[1] - q0[1])
    den = perp_dot(r, s)
    if abs(den) <= EPS_ANG * math.hypot(*r) * math.hypot(*s) or abs(den) <= EPS_ZERO:
        return None
    qp = (q0[0] - p0[0], q0[1] - p0[1])
    return perp_dot(qp, s) / den, perp_dot(qp, r) / den


def line_circle_params(p0: Point2, p1: Point2, center: Point2, radius: float, eps: float = EPS_POS) -> List[float]:
    """Parameters along the infinite line p0->p1 where it meets the circle."""
    dx, dy = p1[0] - p0[0], p1[1] - p0[1]
    ll = dx * dx + dy * dy
    if ll <= EPS_ZERO:
        return []
    tf = ((center[0] - p0[0]) * dx + (center[1] - p0[1]) * dy) / ll
    fx, fy = p0[0] + tf * dx, p0[1] + tf * dy
    h = math.hypot(center[0] - fx, center[1] - fy)
    if abs(h - radius) <= eps:
        return [tf]
    if h > radius:
        return []
    half = math.sqrt(radius * radius - h * h) / math.sqrt(ll)
    return [tf - half, tf + half]


def circle_circle_points(
    c1: Point2, r1: float, c2: Point2, r2: float, eps: float = EPS_POS
) -> Tuple[str, List[Point2]]:
    """Returns ("none" | "same" | "tangent" | "two", points)."""
    d = dist(c1, c2)
    if d <= eps:
        if abs(r1 - r2) <= eps:
            return "same", []
        return "none", []
    if d > r1 + r2 + eps or d < abs(r1 - r2) - eps:
        return "none", []
    a = (r1 * r1 - r2 * r2 + d * d) / (2.0 * d)
    ux, uy = (c2[0] - c1[0]) / d, (c2[1] - c1[1]) / d
    mx, my = c1[0] + a * ux, c1[1] + a * uy
    h2 = r1 * r1 - a * a
    h = math.sqrt(h2) if h2 > 0.0 else 0.0
    if h <= eps:
        return "tangent", [(mx, my)]
    return "two", [(mx - h * uy, my + h * ux), (mx + h * uy, my - h * ux)]


def intersect_line_line(
    p0: Point2, p1: Point2, q0: Point2, q1: Point2, eps: float = EPS_POS
) -> List[SegIntersect]:
    lr = dist(p0, p1)
    ls = dist(q0, q1)
    if lr <= EPS_ZERO or ls <= EPS_ZERO:
        return []
    ends = (p0, p1, q0, q1)
    params = line_line_params(p0, p1, q0, q1)
    if params is None:
        return _intersect_collinear(p0, p1, q0, q1, eps)
    t, u = params
    te1 = eps / lr
    te2 = eps / ls
    if not (-te1 <= t <= 1.0 + te1 and -te2 <= u <= 1.0 + te2):
        return []
    pt = _snap(line_point_at(p0, p1, _clamp01(t)), ends, eps)
    return [
        SegIntersect(
            IntrKind.PROPER,
            pt,
            _snap_param(pt, t, p0, p1, eps),
            _snap_param(pt, u, q0, q1, eps),
        )
    ]


def _intersect_collinear(p0: Point2, p1: Point2, q0: Point2, q1: Point2, eps: float) -> List[SegIntersect]:
    rx, ry = p1[0] - p0[0], p1[1] - p0[1]
    ll = rx * rx + ry * ry
    lr = math.sqrt(ll)
    if abs(perp_dot((rx, ry), (q0[0] - p0[0], q0[1] - p0[1]))) / lr > eps:
        return []
    a = ((q0[0] - p0[0]) * rx + (q0[1] - p0[1]) * ry) / ll
    b = ((q1[0] - p0[0]) * rx + (q1[1] - p0[1]) * ry) / ll
    lo, hi = min(a, b), max(a, b)
    s0, s1 = max(lo, 0.0), min(hi, 1.0)
    te = eps / lr
    if s1 < s0 - te:
        return []
    ends = (p0, p1, q0, q1)
    if s1 - s0 <= te:
        t = _clamp01(0.5 * (s0 + s1))
        pt = _snap(line_point_at(p0, p1, t), ends, eps)
        return [
            SegIntersect(
                IntrKind.TANGENT,
                pt,
                _snap_param(pt, t, p0, p1, eps),
                _snap_param(pt, _q_param(q0, q1, pt), q0, q1, eps),
            )
        ]
    pa = _snap(line_point_at(p0, p1, s0), ends, eps)
    pb = _snap(line_point_at(p0, p1, s1), ends, eps)
    return [
        SegIntersect(
            IntrKind.OVERLAPPING,
            pa,
            _snap_param(pa, s0, p0, p1, eps),
            _snap_param(pa, _q_param(q0, q1, pa), q0, q1, eps),
            point_end=pb,
            t1_end=_snap_param(pb, s1, p0, p1, eps),
            t2_end=_snap_param(pb, _q_param(q0, q1, pb), q0, q1, eps),
        )
    ]


def _q_param(q0: Point2, q1: Point2, p: Point2) -> float:
    sx, sy = q1[0] - q0[0], q1[1] - q0[1]
    ll = sx * sx + sy * sy
    if ll <= EPS_ZERO:
        return 0.0
    return ((p[0] - q0[0]) * sx + (p[1] - q0[1]) * sy) / ll


def intersect_line_arc(p0: Point2, p1: Point2, arc: Arc, eps: float = EPS_POS) -> List[SegIntersect]:
    lr = dist(p0, p1)
    if lr <= EPS_ZERO:
        return []
    params = line_circle_params(p0, p1, arc.center, arc.radius, eps)
    te = eps / lr
    a0, a1 = arc.start_point, arc.end_point
    ends = (p0, p1, a0, a1)
    kind = IntrKind.TANGENT if len(params) == 1 else IntrKind.PROPER
    out: List[SegIntersect] = []
    for t in params:
        if t < -te or t > 1.0 + te:
            continue
        pt = line_point_at(p0, p1, _clamp01(t))
        if not arc.contains_point(pt, eps):
            continue
        pt = _snap(pt, ends, eps)
        if any(dist(pt, o.point) <= eps for o in out):
            continue
        out.append(
            SegIntersect(
                kind,
                pt,
                _snap_param(pt, t, p0, p1, eps),
                _snap_param(pt, arc.param_of_point(pt), a0, a1, eps),
            )
        )
    out.sort(key=lambda o: o.t1)
    return out


def _swap(hits: List[SegIntersect]) -> List[SegIntersect]:
    out: List[SegIntersect] = []
    for h in hits:
        if h.kind == IntrKind.OVERLAPPING:
            assert h.point_end is not None and h.t1_end is not None and h.t2_end is not None
            if h.t2 <= h.t2_end:
                out.append(SegIntersect(h.kind, h.point, h.t2, h.t1, h.point_end, h.t2_end, h.t1_end))
            else:
                out.append(SegIntersect(h.kind, h.point_end, h.t2_end, h.t1_end, h.point, h.t2, h.t1))
        else:
            out.append(SegIntersect(h.kind, h.point, h.t2, h.t1))
    out.sort(key=lambda o: o.t1)
    return out


def _ccw_pos_to_param(arc: Arc, x: float) -> float:
    sw = abs(arc.sweep_rad)
    if sw <= EPS_ZERO:
        return 0.0
    f = _clamp01(x / sw)
    return f if arc.is_ccw else 1.0 - f


def intersect_arc_arc(a1: Arc, a2: Arc, eps: float = EPS_POS) -> List[SegIntersect]:
    mode, pts = circle_circle_points(a1.center, a1.radius, a2.center, a2.radius, eps)
    if mode == "none":
        return []
    ends = (a1.start_point, a1.end_point, a2.start_point, a2.end_point)
    if mode == "same":
        return _intersect_cocircular(a1, a2, eps, ends)
    kind = IntrKind.TANGENT if mode == "tangent" else IntrKind.PROPER
    out: List[SegIntersect] = []
    for p in pts:
        if not (a1.contains_point(p, eps) and a2.contains_point(p, eps)):
            continue
        pt = _snap(p, ends, eps)
        if any(dist(pt, o.point) <= eps for o in out):
            continue
        out.append(
            SegIntersect(
                kind,
                pt,
                _snap_param(pt, a1.param_of_point(pt), ends[0], ends[1], eps),
                _snap_param(pt, a2.param_of_point(pt), ends[2], ends[3], eps),
            )
        )
    out.sort(key=lambda o: o.t1)
    return out


def _intersect_cocircular(a1: Arc, a2: Arc, eps: float, ends: Tuple[Point2, ...]) -> List[SegIntersect]:
    s1, w1 = a1.ccw_span()
    s2, w2 = a2.ccw_span()
    r = max(a1.radius, EPS_ZERO)
    ae = eps / r
    base = normalize_radians(s2 - s1)
    out: List[SegIntersect] = []
    for shift in (base, base - TWO_PI):
        lo = max(shift, 0.0)
        hi = min(shift + w2, w1)
        if hi < lo - ae:
            continue
        if hi - lo <= ae:
            x = 0.5 * (lo + hi)
            pt = _snap(a1.point_at_angle(s1 + x), ends, eps)
            if any(dist(pt, o.point) <= eps for o in out):
                continue
            out.append(
                SegIntersect(
                    IntrKind.TANGENT,
                    pt,
                    _snap_param(pt, _ccw_pos_to_param(a1, x), ends[0], ends[1], eps),
                    _snap_param(pt, a2.param_of_angle(angle(a2.center, pt)), ends[2], ends[3], eps),
                )
            )
            continue
        pa = _snap(a1.point_at_angle(s1 + lo), ends, eps)
        pb = _snap(a1.point_at_angle(s1 + hi), ends, eps)
        ta = _snap_param(pa, _ccw_pos_to_param(a1, lo), ends[0], ends[1], eps)
        tb = _snap_param(pb, _ccw_pos_to_param(a1, hi), ends[0], ends[1], eps)
        ua = _snap_param(pa, a2.param_of_angle(angle(a2.center, pa)), ends[2], ends[3], eps)
        ub = _snap_param(pb, a2.param_of_angle(angle(a2.center, pb)), ends[2], ends[3], eps)
        if ta > tb:
            pa, pb, ta, tb, ua, ub = pb, pa, tb, ta, ub, ua
        out.append(SegIntersect(IntrKind.OVERLAPPING, pa, ta, ua, point_end=pb, t1_end=tb, t2_end=ub))
    out.sort(key=lambda o: o.t1)
    return out


def intersect_segments(
    u1: PlineVertex, u2: PlineVertex, v1: PlineVertex, v2: PlineVertex, eps: float = EPS_POS
) -> List[SegIntersect]:
    """Intersections between segment u1->u2 and segment v1->v2, sorted by ``t1``."""
    arc_u = seg_arc(u1, u2)
    arc_v = seg_arc(v1, v2)
    if arc_u is None and arc_v is None:
        return intersect_line_line(u1.pos, u2.pos, v1.pos, v2.pos, eps)
    if arc_u is None:
        assert arc_v is not None
        return intersect_line_arc(u1.pos, u2.pos, arc_v, eps)
    if arc_v is None:
        return _swap(intersect_line_arc(v1.pos, v2.pos, arc_u, eps))
    return intersect_arc_arc(arc_u, arc_v, eps)
