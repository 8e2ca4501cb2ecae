from __future__ import annotations

import pytest

from bulgeline import Polyline, find_intersects, pairwise_intersects, self_intersects
from bulgeline.curves.intersections import IntrKind


def _square(x0: float, y0: float, size: float) -> Polyline:
    return Polyline.from_points(
        [(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)],
        closed=True,
    )


def test_closed_square_has_no_self_intersects() -> None:
    found = self_intersects(_square(0.0, 0.0, 10.0))
    assert found.is_empty()
    assert len(found) == 0


def test_bowtie_self_intersects_once() -> None:
    pl = Polyline.from_points([(0.0, 0.0), (2.0, 2.0), (2.0, 0.0), (0.0, 2.0)])
    found = self_intersects(pl)
    assert len(found.basic) == 1
    hit = found.basic[0]
    assert (hit.seg1, hit.seg2) == (0, 2)
    assert hit.point == pytest.approx((1.0, 1.0))
    assert hit.kind == IntrKind.PROPER


def test_closed_bowtie_self_intersects_once() -> None:
    pl = Polyline.from_points([(0.0, 0.0), (2.0, 2.0), (2.0, 0.0), (0.0, 2.0)], closed=True)
    found = self_intersects(pl)
    assert len(found.basic) == 1
    assert found.basic[0].point == pytest.approx((1.0, 1.0))


def test_self_intersects_with_prebuilt_index() -> None:
    pl = Polyline.from_points([(0.0, 0.0), (2.0, 2.0), (2.0, 0.0), (0.0, 2.0)])
    index = pl.create_aabb_index()
    assert len(self_intersects(pl, index=index)) == 1


def test_overlapping_squares_cross_twice() -> None:
    a = _square(0.0, 0.0, 10.0)
    b = _square(5.0, 5.0, 10.0)
    hits = find_intersects(a, b)
    assert [(h.seg1, h.seg2) for h in hits] == [(1, 0), (2, 3)]
    assert hits[0].point == pytest.approx((10.0, 5.0))
    assert hits[1].point == pytest.approx((5.0, 10.0))
    assert all(h.t1 == pytest.approx(0.5) and h.t2 == pytest.approx(0.5) for h in hits)


def test_find_intersects_is_symmetric() -> None:
    a = _square(0.0, 0.0, 10.0)
    b = Polyline.circle(10.0, 5.0, 3.0)
    ab = sorted((round(h.point[0], 6), round(h.point[1], 6)) for h in find_intersects(a, b))
    ba = sorted((round(h.point[0], 6), round(h.point[1], 6)) for h in find_intersects(b, a))
    assert ab == ba
    assert ab == [(10.0, 2.0), (10.0, 8.0)]


def test_shared_edge_reports_one_overlap() -> None:
    a = _square(0.0, 0.0, 10.0)
    c = _square(10.0, 0.0, 10.0)
    found = pairwise_intersects(a, c)
    assert found.basic == []
    assert len(found.overlapping) == 1
    ov = found.overlapping[0]
    assert (ov.seg1, ov.seg2) == (1, 3)
    assert ov.is_overlap
    assert (ov.t1, ov.t1_end) == (0.0, 1.0)
    assert sorted([ov.point, ov.point_end]) == [(10.0, 0.0), (10.0, 10.0)]


def test_open_last_segment_end_is_reported() -> None:
    a = Polyline.from_points([(0.0, 0.0), (10.0, 0.0)])
    b = Polyline.from_points([(10.0, -1.0), (10.0, 1.0)])
    hits = find_intersects(a, b)
    assert len(hits) == 1
    assert hits[0].t1 == 1.0
    assert hits[0].t2 == pytest.approx(0.5)


def test_disjoint_polylines() -> None:
    a = _square(0.0, 0.0, 1.0)
    b = _square(5.0, 5.0, 1.0)
    assert find_intersects(a, b) == []


def test_swapped_exchanges_roles() -> None:
    a = _square(0.0, 0.0, 10.0)
    b = _square(5.0, 5.0, 10.0)
    h = find_intersects(a, b)[0]
    s = h.swapped()
    assert (s.seg1, s.seg2) == (h.seg2, h.seg1)
    assert (s.t1, s.t2) == (h.t2, h.t1)
    assert s.point == h.point
