from __future__ import annotations

import pytest

from bulgeline import Polyline
from bulgeline.slicing import (
    CutPoint,
    PlineSlice,
    dissect,
    normalize_cuts,
    path_midpoint,
    slice_and_stitch,
    slice_between,
    stitch_slices,
)
from bulgeline.tolerance import EPS_POS, Tolerance


def _square() -> Polyline:
    return Polyline.from_points([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0), (0.0, 10.0)], closed=True)


def _open_slice(points, source: int = 0, seg_count: int = 0) -> PlineSlice:
    pl = Polyline.from_points(points)
    start = CutPoint(0, 0.0, pl.vertexes[0].pos)
    end = CutPoint(0, 1.0, pl.vertexes[-1].pos)
    return PlineSlice(pline=pl, source=source, start=start, end=end, source_seg_count=seg_count)


def test_normalize_moves_end_cuts_forward_and_dedupes() -> None:
    sq = _square()
    cuts = [
        CutPoint(2, 0.5, (5.0, 10.0)),
        CutPoint(0, 1.0, (10.0, 0.0)),
        CutPoint(1, 0.0, (10.0, 0.0)),
    ]
    out = normalize_cuts(sq, cuts, EPS_POS)
    assert [(c.seg_index, c.t) for c in out] == [(1, 0.0), (2, 0.5)]


def test_normalize_keeps_end_of_open_polyline() -> None:
    pl = Polyline.from_points([(0.0, 0.0), (10.0, 0.0)])
    out = normalize_cuts(pl, [CutPoint(0, 1.0, (10.0, 0.0))], EPS_POS)
    assert [(c.seg_index, c.t) for c in out] == [(0, 1.0)]


def test_slice_between_within_one_arc() -> None:
    circle = Polyline.circle(0.0, 0.0, 1.0)
    part = slice_between(circle, CutPoint(0, 0.0, (-1.0, 0.0)), CutPoint(0, 0.5, (0.0, -1.0)))
    assert len(part) == 2
    assert part[0].bulge == pytest.approx(0.41421356237)
    assert part[1].pos == (0.0, -1.0)


def test_dissect_closed_square_in_two() -> None:
    sq = _square()
    cuts = [CutPoint(0, 0.5, (5.0, 0.0)), CutPoint(2, 0.5, (5.0, 10.0))]
    parts = dissect(sq, cuts, source=0)
    assert len(parts) == 2
    assert [v.pos for v in parts[0].pline.vertexes] == [(5.0, 0.0), (10.0, 0.0), (10.0, 10.0), (5.0, 10.0)]
    assert [v.pos for v in parts[1].pline.vertexes] == [(5.0, 10.0), (0.0, 10.0), (0.0, 0.0), (5.0, 0.0)]
    assert all(p.source_seg_count == 4 for p in parts)
    total = sum(p.pline.path_length() for p in parts)
    assert total == pytest.approx(sq.path_length())


def test_dissect_closed_without_cuts_returns_whole_loop() -> None:
    sq = _square()
    parts = dissect(sq, [], source=3)
    assert len(parts) == 1
    verts = parts[0].pline.vertexes
    assert len(verts) == 5
    assert verts[0].pos == verts[-1].pos == (0.0, 0.0)
    assert parts[0].source == 3


def test_dissect_open_adds_implicit_ends() -> None:
    pl = Polyline.from_points([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)])
    parts = dissect(pl, [CutPoint(1, 0.5, (10.0, 5.0))], source=0)
    assert len(parts) == 2
    assert parts[0].start_point == (0.0, 0.0)
    assert parts[0].end_point == (10.0, 5.0)
    assert parts[1].end_point == (10.0, 10.0)


def test_stitch_rebuilds_closed_loop() -> None:
    sq = _square()
    parts = dissect(sq, [CutPoint(0, 0.5, (5.0, 0.0)), CutPoint(2, 0.5, (5.0, 10.0))], source=0)
    result = stitch_slices(list(reversed(parts)), closed_only=True)
    assert result.ok
    assert len(result.plines) == 1
    loop = result.plines[0]
    assert loop.is_closed
    assert loop.area() == pytest.approx(100.0)


def test_stitch_circle_halves() -> None:
    circle = Polyline.circle(0.0, 0.0, 2.0)
    parts = dissect(circle, [CutPoint(0, 0.5, (0.0, -2.0)), CutPoint(1, 0.5, (0.0, 2.0))], source=0)
    result = stitch_slices(parts, closed_only=True)
    assert result.ok
    assert len(result.plines) == 1
    assert result.plines[0].area() == pytest.approx(circle.area())


def test_closed_only_reports_dangling_slice() -> None:
    result = stitch_slices([_open_slice([(0.0, 0.0), (1.0, 0.0)])], closed_only=True)
    assert not result.ok
    assert result.failure is not None
    assert result.failure.code == "unstitched_slice"


def test_drop_unclosed_discards_dangling_chain_and_keeps_loop() -> None:
    dangling = _open_slice([(20.0, 0.0), (21.0, 0.0)])
    parts = dissect(_square(), [CutPoint(0, 0.5, (5.0, 0.0)), CutPoint(2, 0.5, (5.0, 10.0))], source=0)
    result = stitch_slices([dangling] + parts, closed_only=True, drop_unclosed=True)
    assert result.ok
    assert len(result.plines) == 1
    assert result.plines[0].area() == pytest.approx(100.0)


def test_slice_between_merges_vertexes_within_given_eps() -> None:
    pl = Polyline.from_points([(0.0, 0.0), (5.0, 0.0), (5.0005, 0.0), (10.0, 0.0)])
    a = CutPoint(0, 0.0, (0.0, 0.0))
    b = CutPoint(2, 1.0, (10.0, 0.0))
    assert len(slice_between(pl, a, b)) == 4
    merged = slice_between(pl, a, b, 1e-3)
    assert [v.pos for v in merged.vertexes] == [(0.0, 0.0), (5.0, 0.0), (10.0, 0.0)]


def test_dissect_uses_tolerance_for_slice_vertexes() -> None:
    pl = Polyline.from_points([(0.0, 0.0), (5.0, 0.0), (5.0005, 0.0), (10.0, 0.0)])
    coarse = Tolerance(pos_equal_eps=1e-3, slice_join_eps=1e-2, offset_dist_eps=1e-2)
    parts = dissect(pl, [], source=0, tol=coarse)
    assert len(parts) == 1
    assert len(parts[0].pline) == 3


def test_open_chains_start_at_their_head() -> None:
    first = _open_slice([(0.0, 0.0), (1.0, 0.0)])
    second = _open_slice([(1.0, 0.0), (2.0, 0.0)])
    result = stitch_slices([second, first], closed_only=False)
    assert result.ok
    assert len(result.plines) == 1
    chain = result.plines[0]
    assert not chain.is_closed
    assert [v.pos for v in chain.vertexes] == [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]


@pytest.mark.parametrize("prefer_same_source, expected_end", [(True, (1.0, 1.0)), (False, (2.0, 0.0))])
def test_junction_prefers_source(prefer_same_source: bool, expected_end) -> None:
    a = _open_slice([(0.0, 0.0), (1.0, 0.0)], source=0)
    b = _open_slice([(1.0, 0.0), (2.0, 0.0)], source=1)
    c = _open_slice([(1.0, 0.0), (1.0, 1.0)], source=0)
    result = stitch_slices([a, b, c], closed_only=False, prefer_same_source=prefer_same_source)
    assert result.ok
    assert len(result.plines) == 2
    assert result.plines[0].vertexes[0].pos == (0.0, 0.0)
    assert result.plines[0].vertexes[-1].pos == expected_end


def test_slice_and_stitch_with_selection() -> None:
    sq = _square()
    cuts = [CutPoint(0, 0.5, (5.0, 0.0)), CutPoint(2, 0.5, (5.0, 10.0))]
    kept = slice_and_stitch([(0, sq, cuts)], lambda part: part, closed_only=True)
    assert kept.ok
    assert len(kept.plines) == 1
    assert kept.plines[0].area() == pytest.approx(100.0)

    dropped = slice_and_stitch(
        [(0, sq, cuts)],
        lambda part: part if part.start_point == (5.0, 0.0) else None,
        closed_only=False,
    )
    assert dropped.ok
    assert len(dropped.plines) == 1
    assert not dropped.plines[0].is_closed


def test_path_midpoint() -> None:
    pl = Polyline.from_points([(0.0, 0.0), (4.0, 0.0), (4.0, 6.0)])
    seg, p = path_midpoint(pl)
    assert seg == 1
    assert p == pytest.approx((4.0, 1.0))
