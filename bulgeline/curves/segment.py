from __future__ import annotations

from typing import Optional, Tuple

from bulgeline.curves.arc import Arc, angle_from_bulge, bulge_from_angle
from bulgeline.primitives import AABB2, PlineVertex, Point2, dist, midpoint, unit
from bulgeline.tolerance import EPS_POS, EPS_ZERO


def seg_arc(v1: PlineVertex, v2: PlineVertex) -> Optional[Arc]:
    """Arc view of the segment starting at ``v1``; None for lines and zero-length chords."""
    if v1.bulge_is_zero():
        return None
    if dist(v1.pos, v2.pos) <= EPS_ZERO:
        return None
    return Arc.from_bulge(v1.pos, v2.pos, v1.bulge)


def seg_is_degenerate(v1: PlineVertex, v2: PlineVertex, eps: float = EPS_POS) -> bool:
    if dist(v1.pos, v2.pos) <= eps:
        return True
    arc = seg_arc(v1, v2)
    return arc is not None and arc.radius <= eps


def seg_length(v1: PlineVertex, v2: PlineVertex) -> float:
    arc = seg_arc(v1, v2)
    if arc is None:
        return dist(v1.pos, v2.pos)
    return arc.length()


def seg_bounding_box(v1: PlineVertex, v2: PlineVertex) -> AABB2:
    arc = seg_arc(v1, v2)
    if arc is not None:
        return arc.bounding_box()
    return AABB2(
        min(v1.x, v2.x),
        min(v1.y, v2.y),
        max(v1.x, v2.x),
        max(v1.y, v2.y),
    )


def line_point_at(p0: Point2, p1: Point2, t: float) -> Point2:
    return (p0[0] + (p1[0] - p0[0]) * t, p0[1] + (p1[1] - p0[1]) * t)


def line_param_of_point(p0: Point2, p1: Point2, p: Point2) -> float:
    vx, vy = p1[0] - p0[0], p1[1] - p0[1]
    ll = vx * vx + vy * vy
    if ll <= EPS_ZERO:
        return 0.0
    t = ((p[0] - p0[0]) * vx + (p[1] - p0[1]) * vy) / ll
    return min(1.0, max(0.0, t))


def seg_point_at(v1: PlineVertex, v2: PlineVertex, t: float) -> Point2:
    arc = seg_arc(v1, v2)
    if arc is None:
        return line_point_at(v1.pos, v2.pos, float(t))
    return arc.point_at(float(t))


def seg_midpoint(v1: PlineVertex, v2: PlineVertex) -> Point2:
    arc = seg_arc(v1, v2)
    if arc is None:
        return midpoint(v1.pos, v2.pos)
    return arc.point_at(0.5)


def seg_param_of_point(v1: PlineVertex, v2: PlineVertex, p: Point2) -> float:
    arc = seg_arc(v1, v2)
    if arc is None:
        return line_param_of_point(v1.pos, v2.pos, p)
    return arc.param_of_point(p)


def seg_closest_point(v1: PlineVertex, v2: PlineVertex, p: Point2) -> Point2:
    arc = seg_arc(v1, v2)
    if arc is None:
        return line_point_at(v1.pos, v2.pos, line_param_of_point(v1.pos, v2.pos, p))
    return arc.nearest_point(p)


def seg_tangent_at(v1: PlineVertex, v2: PlineVertex, p: Point2) -> Point2:
    arc = seg_arc(v1, v2)
    if arc is None:
        return unit((v2.x - v1.x, v2.y - v1.y))
    return arc.tangent_at(p)


def sub_bulge(v1: PlineVertex, t0: float, t1: float) -> float:
    """Bulge of the part of an arc segment between sweep fractions ``t0`` and ``t1``."""
    if v1.bulge_is_zero():
        return 0.0
    return bulge_from_angle(angle_from_bulge(v1.bulge) * (float(t1) - float(t0)))


def seg_split_at(v1: PlineVertex, v2: PlineVertex, t: float) -> Tuple[PlineVertex, PlineVertex]:
    """Split at parameter ``t``.

    Returns the updated start vertex (bulge of the first half) and the new split
    vertex (bulge of the second half). The end vertex ``v2`` is unchanged.
    """
    t = min(1.0, max(0.0, float(t)))
    p = seg_point_at(v1, v2, t)
    if seg_arc(v1, v2) is None:
        return v1.with_bulge(0.0), PlineVertex.at(p, 0.0)
    return v1.with_bulge(sub_bulge(v1, 0.0, t)), PlineVertex.at(p, sub_bulge(v1, t, 1.0))


def seg_split_at_point(v1: PlineVertex, v2: PlineVertex, p: Point2, eps: float = EPS_POS) -> Tuple[PlineVertex, PlineVertex]:
    if dist(v1.pos, p) <= eps:
        return v1.with_bulge(0.0), v1
    if dist(v2.pos, p) <= eps:
        return v1, PlineVertex.at(v2.pos, 0.0)
    head, split = seg_split_at(v1, v2, seg_param_of_point(v1, v2, p))
    return head, PlineVertex.at(p, split.bulge)
