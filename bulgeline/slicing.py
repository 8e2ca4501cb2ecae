from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from bulgeline.curves.segment import seg_length, seg_param_of_point, seg_point_at, sub_bulge
from bulgeline.index.static_aabb import StaticAABB2DIndex, StaticAABB2DIndexBuilder
from bulgeline.polyline import Polyline
from bulgeline.primitives import PlineVertex, Point2, dist, fuzzy_eq
from bulgeline.tolerance import DEFAULT_TOLERANCE, Tolerance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Failure:
    code: str
    message: str


@dataclass(frozen=True)
class CutPoint:
    """Position on segment ``seg_index`` at parameter ``t`` (sweep fraction for arcs)."""

    seg_index: int
    t: float
    pos: Point2


@dataclass
class PlineSlice:
    pline: Polyline
    source: int
    start: CutPoint
    end: CutPoint
    source_seg_count: int = 0

    @property
    def start_point(self) -> Point2:
        return self.pline.vertexes[0].pos

    @property
    def end_point(self) -> Point2:
        return self.pline.vertexes[-1].pos

    def inverted(self) -> "PlineSlice":
        return PlineSlice(
            pline=self.pline.inverted(),
            source=self.source,
            start=self.end,
            end=self.start,
            source_seg_count=self.source_seg_count,
        )


@dataclass
class StitchResult:
    plines: List[Polyline] = field(default_factory=list)
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def cut_at(pline: Polyline, seg_index: int, pos: Point2) -> CutPoint:
    v1, v2 = pline.segment(seg_index)
    return CutPoint(seg_index, seg_param_of_point(v1, v2, pos), (float(pos[0]), float(pos[1])))


def normalize_cuts(pline: Polyline, cuts: Sequence[CutPoint], eps: float) -> List[CutPoint]:
    """Move cuts sitting on a segment end onto the start of the next segment, sort and dedupe."""
    n = pline.segment_count()
    moved: List[CutPoint] = []
    for c in cuts:
        v1, v2 = pline.segment(c.seg_index)
        if fuzzy_eq(c.pos, v1.pos, eps) or c.t <= 0.0:
            moved.append(CutPoint(c.seg_index, 0.0, v1.pos))
        elif fuzzy_eq(c.pos, v2.pos, eps) or c.t >= 1.0:
            if not pline.is_closed and c.seg_index == n - 1:
                moved.append(CutPoint(c.seg_index, 1.0, v2.pos))
            else:
                moved.append(CutPoint(pline.next_wrapping_index(c.seg_index), 0.0, v2.pos))
        else:
            moved.append(c)
    moved.sort(key=lambda c: (c.seg_index, c.t))
    out: List[CutPoint] = []
    for c in moved:
        if out and out[-1].seg_index == c.seg_index and fuzzy_eq(out[-1].pos, c.pos, eps):
            continue
        out.append(c)
    return out


def slice_between(pline: Polyline, a: CutPoint, b: CutPoint, eps: float = DEFAULT_TOLERANCE.pos_equal_eps) -> Polyline:
    """Open polyline following ``pline`` forward from cut ``a`` to cut ``b``."""
    out = Polyline()
    va = pline.vertexes[a.seg_index]
    if a.seg_index == b.seg_index and a.t < b.t:
        out.add_vertex(PlineVertex.at(a.pos, sub_bulge(va, a.t, b.t)))
        out.add_vertex(PlineVertex.at(b.pos, 0.0))
        return out
    out.add_vertex(PlineVertex.at(a.pos, sub_bulge(va, a.t, 1.0)))
    i = pline.next_wrapping_index(a.seg_index)
    while i != b.seg_index:
        out.add_or_replace(pline.vertexes[i], eps)
        i = pline.next_wrapping_index(i)
    vb = pline.vertexes[b.seg_index]
    out.add_or_replace(PlineVertex.at(vb.pos, sub_bulge(vb, 0.0, b.t)), eps)
    out.add_or_replace(PlineVertex.at(b.pos, 0.0), eps)
    return out


def dissect(pline: Polyline, cuts: Sequence[CutPoint], source: int, tol: Tolerance = DEFAULT_TOLERANCE) -> List[PlineSlice]:
    n = pline.segment_count()
    if n == 0:
        return []
    eps = tol.pos_equal_eps
    ordered = normalize_cuts(pline, cuts, eps)
    pairs: List[Tuple[CutPoint, CutPoint]] = []
    if pline.is_closed:
        if not ordered:
            v0 = pline.vertexes[0]
            ordered = [CutPoint(0, 0.0, v0.pos)]
        for k in range(len(ordered)):
            pairs.append((ordered[k], ordered[(k + 1) % len(ordered)]))
    else:
        first = CutPoint(0, 0.0, pline.vertexes[0].pos)
        last = CutPoint(n - 1, 1.0, pline.vertexes[-1].pos)
        if not ordered or ordered[0].seg_index != 0 or ordered[0].t > 0.0:
            ordered.insert(0, first)
        if ordered[-1].seg_index != n - 1 or ordered[-1].t < 1.0:
            ordered.append(last)
        for k in range(len(ordered) - 1):
            pairs.append((ordered[k], ordered[k + 1]))
    out: List[PlineSlice] = []
    for a, b in pairs:
        part = slice_between(pline, a, b, eps)
        if len(part) < 2:
            continue
        out.append(PlineSlice(pline=part, source=source, start=a, end=b, source_seg_count=n))
    return out


def _points_index(points: Sequence[Point2], pad: float) -> StaticAABB2DIndex:
    builder = StaticAABB2DIndexBuilder(len(points))
    for p in points:
        builder.add(p[0] - pad, p[1] - pad, p[0] + pad, p[1] + pad)
    return builder.build()


def _forward_distance(cur: PlineSlice, cand: PlineSlice) -> int:
    if cand.source != cur.source or cur.source_seg_count <= 0:
        return cand.start.seg_index
    return (cand.start.seg_index - cur.end.seg_index) % cur.source_seg_count


def _pick(
    cur: PlineSlice,
    end: Point2,
    cands: List[int],
    slices: Sequence[PlineSlice],
    prefer_same_source: bool,
    eps: float,
) -> int:
    dists = [dist(slices[k].start_point, end) for k in cands]
    best = min(dists)
    tied = [k for k, d in zip(cands, dists) if d <= best + eps]
    if len(tied) == 1:
        return tied[0]

    def rank(k: int) -> Tuple[int, int, int]:
        same = slices[k].source == cur.source
        preferred = same if prefer_same_source else not same
        return (0 if preferred else 1, _forward_distance(cur, slices[k]), k)

    return min(tied, key=rank)


def _append(target: Polyline, part: Polyline, eps: float) -> None:
    target.vertexes[-1] = target.vertexes[-1].with_bulge(part.vertexes[0].bulge)
    for v in part.vertexes[1:]:
        target.add_or_replace(v, eps)


def _close(chain: Polyline, eps: float) -> Polyline:
    verts = chain.vertexes[:-1]
    return Polyline(vertexes=verts, is_closed=True).remove_repeat_pos(eps)


def stitch_slices(
    slices: Sequence[PlineSlice],
    *,
    closed_only: bool,
    prefer_same_source: bool = True,
    drop_unclosed: bool = False,
    tol: Tolerance = DEFAULT_TOLERANCE,
) -> StitchResult:
    """Join slices end to start into loops (and open chains when ``closed_only`` is False).

    With ``closed_only`` a chain that cannot be closed is a failure, unless
    ``drop_unclosed`` is set, in which case the chain is discarded.

    When an end meets several starts, closing the current loop wins; otherwise the
    nearest start wins, ties broken by source preference, then forward segment
    distance along the source, then slice order.
    """
    result = StitchResult()
    n = len(slices)
    if n == 0:
        return result
    eps = tol.pos_equal_eps
    join = tol.slice_join_eps
    starts = [s.start_point for s in slices]
    start_index = _points_index(starts, join)

    order: List[int] = list(range(n))
    if not closed_only:
        ends = [s.end_point for s in slices]
        end_index = _points_index(ends, join)
        heads = []
        for k in range(n):
            p = starts[k]
            hits = [m for m in end_index.query(p[0], p[1], p[0], p[1]) if m != k and dist(ends[m], p) <= join]
            if not hits:
                heads.append(k)
        head_set = set(heads)
        order = heads + [k for k in range(n) if k not in head_set]

    visited = [False] * n
    for s in order:
        if visited[s]:
            continue
        visited[s] = True
        cur = slices[s]
        chain = cur.pline.copy()
        loop_start = cur.start_point
        guard = 0
        while True:
            guard += 1
            if guard > n + 1:
                result.failure = Failure("stitch_loop_guard", f"stitching did not terminate within {n} slices")
                logger.warning("stitch aborted: %s", result.failure.message)
                return result
            end = chain.vertexes[-1].pos
            if len(chain) >= 3 and dist(end, loop_start) <= join:
                closed = _close(chain, eps)
                if len(closed) >= 2:
                    result.plines.append(closed)
                break
            cands = [
                k
                for k in start_index.query(end[0], end[1], end[0], end[1])
                if not visited[k] and dist(starts[k], end) <= join
            ]
            if not cands:
                if closed_only:
                    if drop_unclosed:
                        logger.debug("dropping unclosed chain ending at (%g, %g)", end[0], end[1])
                        break
                    result.failure = Failure(
                        "unstitched_slice",
                        f"slice ending at ({end[0]:.6g}, {end[1]:.6g}) has no partner",
                    )
                    logger.warning("stitch failed: %s", result.failure.message)
                    return result
                if chain.path_length() > join:
                    result.plines.append(chain.remove_repeat_pos(eps))
                break
            k = _pick(cur, end, cands, slices, prefer_same_source, eps)
            visited[k] = True
            _append(chain, slices[k].pline, eps)
            cur = slices[k]

    logger.debug("stitched %d slices into %d polylines", n, len(result.plines))
    return result


def slice_and_stitch(
    sources: Sequence[Tuple[int, Polyline, Sequence[CutPoint]]],
    select: Callable[[PlineSlice], Optional[PlineSlice]],
    *,
    closed_only: bool,
    prefer_same_source: bool = True,
    tol: Tolerance = DEFAULT_TOLERANCE,
) -> StitchResult:
    """Cut every source at its cut points, keep what ``select`` returns, and stitch the rest."""
    kept: List[PlineSlice] = []
    total = 0
    for source, pline, cuts in sources:
        for part in dissect(pline, cuts, source, tol):
            total += 1
            chosen = select(part)
            if chosen is not None:
                kept.append(chosen)
    logger.debug("kept %d of %d slices", len(kept), total)
    return stitch_slices(kept, closed_only=closed_only, prefer_same_source=prefer_same_source, tol=tol)


def path_midpoint(pline: Polyline) -> Tuple[int, Point2]:
    """Segment index and position halfway along the path of ``pline``."""
    half = 0.5 * pline.path_length()
    acc = 0.0
    for i, v1, v2 in pline.iter_segments():
        ln = seg_length(v1, v2)
        if ln > 0.0 and acc + ln >= half:
            return i, seg_point_at(v1, v2, (half - acc) / ln)
        acc += ln
    return max(pline.segment_count() - 1, 0), pline.vertexes[-1].pos
