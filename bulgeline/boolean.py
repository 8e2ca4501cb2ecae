from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from bulgeline.curves.segment import seg_tangent_at
from bulgeline.index.static_aabb import StaticAABB2DIndex
from bulgeline.intersects import PlineIntersects, pairwise_intersects
from bulgeline.polyline import Orientation, Polyline
from bulgeline.slicing import CutPoint, Failure, PlineSlice, path_midpoint, slice_and_stitch
from bulgeline.tolerance import DEFAULT_TOLERANCE, EPS_ZERO, Tolerance

logger = logging.getLogger(__name__)


class BooleanOp(str, Enum):
    UNION = "union"
    INTERSECTION = "intersection"
    EXCLUSION = "exclusion"
    XOR = "xor"


class BooleanResultInfo(str, Enum):
    INVALID_INPUT = "invalid_input"
    PLINE1_INSIDE_PLINE2 = "pline1_inside_pline2"
    PLINE2_INSIDE_PLINE1 = "pline2_inside_pline1"
    DISJOINT = "disjoint"
    INTERSECTED = "intersected"
    OVERLAPPING = "overlapping"


class SliceClass(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"
    ON_SAME = "on_same"
    ON_OPPOSITE = "on_opposite"


@dataclass(frozen=True)
class BooleanResult:
    """CCW loops in ``pos_plines``, CW loops (holes) in ``neg_plines``."""

    ok: bool
    pos_plines: List[Polyline] = field(default_factory=list)
    neg_plines: List[Polyline] = field(default_factory=list)
    info: BooleanResultInfo = BooleanResultInfo.INTERSECTED
    failure: Optional[Failure] = None

    @property
    def plines(self) -> List[Polyline]:
        return list(self.pos_plines) + list(self.neg_plines)

    def __len__(self) -> int:
        return len(self.pos_plines) + len(self.neg_plines)

    def __iter__(self) -> Iterator[Polyline]:
        return iter(self.plines)


def _is_empty_operand(p: Polyline, tol: Tolerance) -> bool:
    return p.segment_count() == 0 or p.is_degenerate(tol.pos_equal_eps) or abs(p.area()) < EPS_ZERO


def _ccw(p: Polyline) -> Polyline:
    return p if p.area() >= 0.0 else p.inverted()


def classify_slice(part: PlineSlice, other: Polyline, other_index: StaticAABB2DIndex, tol: Tolerance) -> SliceClass:
    seg, mid = path_midpoint(part.pline)
    cp = other.closest_point(mid, other_index)
    if cp is not None and cp.distance <= tol.slice_join_eps:
        v1, v2 = part.pline.segment(seg)
        o1, o2 = other.segment(cp.seg_index)
        ta = seg_tangent_at(v1, v2, mid)
        tb = seg_tangent_at(o1, o2, cp.point)
        return SliceClass.ON_SAME if ta[0] * tb[0] + ta[1] * tb[1] > 0.0 else SliceClass.ON_OPPOSITE
    return SliceClass.INSIDE if other.winding_number(mid) != 0 else SliceClass.OUTSIDE


def _cuts(found: PlineIntersects) -> Tuple[List[CutPoint], List[CutPoint]]:
    cuts_a: List[CutPoint] = []
    cuts_b: List[CutPoint] = []
    for h in found.basic:
        cuts_a.append(CutPoint(h.seg1, h.t1, h.point))
        cuts_b.append(CutPoint(h.seg2, h.t2, h.point))
    for h in found.overlapping:
        assert h.point_end is not None and h.t1_end is not None and h.t2_end is not None
        cuts_a.append(CutPoint(h.seg1, h.t1, h.point))
        cuts_a.append(CutPoint(h.seg1, h.t1_end, h.point_end))
        cuts_b.append(CutPoint(h.seg2, h.t2, h.point))
        cuts_b.append(CutPoint(h.seg2, h.t2_end, h.point_end))
    return cuts_a, cuts_b


def _keep(op: BooleanOp, from_a: bool, cls: SliceClass) -> Tuple[bool, bool]:
    """(keep, invert) for a slice of the first (``from_a``) or second operand."""
    if op == BooleanOp.UNION:
        if from_a:
            return cls in (SliceClass.OUTSIDE, SliceClass.ON_SAME), False
        return cls == SliceClass.OUTSIDE, False
    if op == BooleanOp.INTERSECTION:
        if from_a:
            return cls in (SliceClass.INSIDE, SliceClass.ON_SAME), False
        return cls == SliceClass.INSIDE, False
    if from_a:
        return cls in (SliceClass.OUTSIDE, SliceClass.ON_OPPOSITE), False
    return cls == SliceClass.INSIDE, True


def _split(plines: List[Polyline]) -> Tuple[List[Polyline], List[Polyline]]:
    pos: List[Polyline] = []
    neg: List[Polyline] = []
    for p in plines:
        if len(p) < 2 or abs(p.area()) < EPS_ZERO:
            continue
        (pos if p.orientation() == Orientation.CCW else neg).append(p)
    return pos, neg


def _stitch_op(
    a: Polyline,
    b: Polyline,
    found: PlineIntersects,
    op: BooleanOp,
    tol: Tolerance,
) -> Tuple[List[Polyline], Optional[Failure]]:
    index_a = a.create_aabb_index()
    index_b = b.create_aabb_index()
    cuts_a, cuts_b = _cuts(found)

    def select(part: PlineSlice) -> Optional[PlineSlice]:
        from_a = part.source == 0
        other, other_index = (b, index_b) if from_a else (a, index_a)
        keep, invert = _keep(op, from_a, classify_slice(part, other, other_index, tol))
        if not keep:
            return None
        return part.inverted() if invert else part

    stitched = slice_and_stitch(
        [(0, a, cuts_a), (1, b, cuts_b)],
        select,
        closed_only=True,
        prefer_same_source=False,
        tol=tol,
    )
    return stitched.plines, stitched.failure


def _disjoint_result(a: Polyline, b: Polyline, op: BooleanOp) -> BooleanResult:
    a_in_b = b.winding_number(a.vertexes[0].pos) != 0
    b_in_a = a.winding_number(b.vertexes[0].pos) != 0
    if a_in_b:
        info = BooleanResultInfo.PLINE1_INSIDE_PLINE2
    elif b_in_a:
        info = BooleanResultInfo.PLINE2_INSIDE_PLINE1
    else:
        info = BooleanResultInfo.DISJOINT

    pos: List[Polyline] = []
    neg: List[Polyline] = []
    if op == BooleanOp.UNION:
        pos = [b.copy()] if a_in_b else [a.copy()] if b_in_a else [a.copy(), b.copy()]
    elif op == BooleanOp.INTERSECTION:
        pos = [a.copy()] if a_in_b else [b.copy()] if b_in_a else []
    elif op == BooleanOp.EXCLUSION:
        if b_in_a:
            pos, neg = [a.copy()], [b.inverted()]
        elif not a_in_b:
            pos = [a.copy()]
    else:
        if a_in_b:
            pos, neg = [b.copy()], [a.inverted()]
        elif b_in_a:
            pos, neg = [a.copy()], [b.inverted()]
        else:
            pos = [a.copy(), b.copy()]
    return BooleanResult(ok=True, pos_plines=pos, neg_plines=neg, info=info)


def combine(
    pline1: Polyline,
    pline2: Polyline,
    op: BooleanOp,
    tol: Tolerance = DEFAULT_TOLERANCE,
) -> BooleanResult:
    """Boolean ``op`` between two closed polylines; EXCLUSION is ``pline1 - pline2``."""
    op = BooleanOp(op)
    if not pline1.is_closed or not pline2.is_closed:
        return BooleanResult(
            ok=False,
            info=BooleanResultInfo.INVALID_INPUT,
            failure=Failure("invalid_input", "boolean operands must be closed polylines"),
        )

    a = pline1.remove_repeat_pos(tol.pos_equal_eps)
    b = pline2.remove_repeat_pos(tol.pos_equal_eps)
    a_empty = _is_empty_operand(a, tol)
    b_empty = _is_empty_operand(b, tol)
    if a_empty or b_empty:
        keep: List[Polyline] = []
        if not a_empty and op in (BooleanOp.UNION, BooleanOp.EXCLUSION, BooleanOp.XOR):
            keep = [_ccw(a)]
        elif not b_empty and op in (BooleanOp.UNION, BooleanOp.XOR):
            keep = [_ccw(b)]
        logger.debug("boolean %s with empty operand", op.value)
        return BooleanResult(ok=True, pos_plines=keep, info=BooleanResultInfo.DISJOINT)

    a = _ccw(a)
    b = _ccw(b)
    found = pairwise_intersects(a, b, tol=tol)
    if found.is_empty():
        res = _disjoint_result(a, b, op)
        logger.debug("boolean %s without intersections: %s", op.value, res.info.value)
        return res

    info = BooleanResultInfo.OVERLAPPING if found.overlapping else BooleanResultInfo.INTERSECTED
    if op == BooleanOp.XOR:
        first, fail1 = _stitch_op(a, b, found, BooleanOp.EXCLUSION, tol)
        swapped = PlineIntersects(
            basic=[h.swapped() for h in found.basic],
            overlapping=[h.swapped() for h in found.overlapping],
        )
        second, fail2 = _stitch_op(b, a, swapped, BooleanOp.EXCLUSION, tol)
        plines, failure = first + second, fail1 or fail2
    else:
        plines, failure = _stitch_op(a, b, found, op, tol)

    if failure is not None:
        return BooleanResult(ok=False, info=info, failure=failure)
    pos, neg = _split(plines)
    logger.debug("boolean %s: %d positive, %d negative loops", op.value, len(pos), len(neg))
    return BooleanResult(ok=True, pos_plines=pos, neg_plines=neg, info=info)
