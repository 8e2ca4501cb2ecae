from __future__ import annotations

import math

import pytest

from bulgeline import BooleanOp, BooleanResultInfo, Orientation, Polyline, combine

LENS = 2.0 * math.acos(0.5) - 0.5 * math.sqrt(3.0)


def _circles():
    return Polyline.circle(0.0, 0.0, 1.0), Polyline.circle(1.0, 0.0, 1.0)


def _square(x0: float, y0: float, size: float) -> Polyline:
    return Polyline.from_points(
        [(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)],
        closed=True,
    )


def _total_area(result) -> float:
    return sum(p.area() for p in result)


def test_union_of_overlapping_circles() -> None:
    a, b = _circles()
    result = combine(a, b, BooleanOp.UNION)
    assert result.ok
    assert result.info == BooleanResultInfo.INTERSECTED
    assert len(result.pos_plines) == 1
    assert result.neg_plines == []
    assert result.pos_plines[0].area() == pytest.approx(2.0 * math.pi - LENS)


def test_intersection_of_overlapping_circles_is_lens() -> None:
    a, b = _circles()
    result = combine(a, b, BooleanOp.INTERSECTION)
    assert result.ok
    assert len(result.pos_plines) == 1
    assert result.pos_plines[0].area() == pytest.approx(LENS)
    ext = result.pos_plines[0].extent()
    assert ext is not None
    assert ext.min_x == pytest.approx(0.0, abs=1e-9)
    assert ext.max_x == pytest.approx(1.0)


def test_exclusion_of_overlapping_circles() -> None:
    a, b = _circles()
    result = combine(a, b, BooleanOp.EXCLUSION)
    assert result.ok
    assert len(result.pos_plines) == 1
    assert result.pos_plines[0].area() == pytest.approx(math.pi - LENS)
    ext = result.pos_plines[0].extent()
    assert ext is not None
    assert ext.min_x == pytest.approx(-1.0)


def test_xor_of_overlapping_circles() -> None:
    a, b = _circles()
    result = combine(a, b, "xor")
    assert result.ok
    assert len(result.pos_plines) == 2
    assert _total_area(result) == pytest.approx(2.0 * (math.pi - LENS))


def test_operand_orientation_does_not_matter() -> None:
    a, b = _circles()
    result = combine(a.inverted(), b.inverted(), BooleanOp.INTERSECTION)
    assert result.ok
    assert len(result.pos_plines) == 1
    assert result.pos_plines[0].area() == pytest.approx(LENS)


def test_disjoint_operands() -> None:
    a = Polyline.circle(0.0, 0.0, 1.0)
    b = Polyline.circle(5.0, 0.0, 1.0)
    union = combine(a, b, BooleanOp.UNION)
    assert union.info == BooleanResultInfo.DISJOINT
    assert len(union.pos_plines) == 2
    assert combine(a, b, BooleanOp.INTERSECTION).plines == []
    excl = combine(a, b, BooleanOp.EXCLUSION)
    assert len(excl.pos_plines) == 1
    assert excl.pos_plines[0].area() == pytest.approx(math.pi)


def test_contained_operand() -> None:
    big = Polyline.circle(0.0, 0.0, 5.0)
    small = Polyline.circle(1.0, 0.0, 1.0)

    union = combine(small, big, BooleanOp.UNION)
    assert union.info == BooleanResultInfo.PLINE1_INSIDE_PLINE2
    assert [p.area() for p in union.pos_plines] == [pytest.approx(25.0 * math.pi)]

    inter = combine(big, small, BooleanOp.INTERSECTION)
    assert inter.info == BooleanResultInfo.PLINE2_INSIDE_PLINE1
    assert [p.area() for p in inter.pos_plines] == [pytest.approx(math.pi)]

    hole = combine(big, small, BooleanOp.EXCLUSION)
    assert len(hole.pos_plines) == 1
    assert len(hole.neg_plines) == 1
    assert hole.neg_plines[0].orientation() == Orientation.CW
    assert _total_area(hole) == pytest.approx(24.0 * math.pi)

    assert combine(small, big, BooleanOp.EXCLUSION).plines == []


def test_identical_operands_overlap_fully() -> None:
    a = Polyline.circle(0.0, 0.0, 1.0)
    inter = combine(a, a.copy(), BooleanOp.INTERSECTION)
    assert inter.ok
    assert inter.info == BooleanResultInfo.OVERLAPPING
    assert len(inter.pos_plines) == 1
    assert inter.pos_plines[0].area() == pytest.approx(math.pi)

    union = combine(a, a.copy(), BooleanOp.UNION)
    assert union.ok
    assert len(union.pos_plines) == 1
    assert union.pos_plines[0].area() == pytest.approx(math.pi)

    excl = combine(a, a.copy(), BooleanOp.EXCLUSION)
    assert excl.ok
    assert len(excl) == 0


def test_union_of_squares_sharing_an_edge() -> None:
    result = combine(_square(0.0, 0.0, 10.0), _square(10.0, 0.0, 10.0), BooleanOp.UNION)
    assert result.ok
    assert result.info == BooleanResultInfo.OVERLAPPING
    assert len(result.pos_plines) == 1
    assert result.pos_plines[0].area() == pytest.approx(200.0)


def test_overlapping_squares_all_ops() -> None:
    a = _square(0.0, 0.0, 10.0)
    b = _square(5.0, 5.0, 10.0)
    assert _total_area(combine(a, b, BooleanOp.UNION)) == pytest.approx(175.0)
    assert _total_area(combine(a, b, BooleanOp.INTERSECTION)) == pytest.approx(25.0)
    assert _total_area(combine(a, b, BooleanOp.EXCLUSION)) == pytest.approx(75.0)
    assert _total_area(combine(a, b, BooleanOp.XOR)) == pytest.approx(150.0)


def test_open_operand_is_rejected() -> None:
    a = Polyline.from_points([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)])
    result = combine(a, Polyline.circle(0.0, 0.0, 1.0), BooleanOp.UNION)
    assert not result.ok
    assert result.info == BooleanResultInfo.INVALID_INPUT
    assert result.failure is not None
    assert result.failure.code == "invalid_input"


def test_empty_operand_is_empty_set() -> None:
    c = Polyline.circle(0.0, 0.0, 1.0)
    empty = Polyline(is_closed=True)
    assert [p.area() for p in combine(empty, c, BooleanOp.UNION)] == [pytest.approx(math.pi)]
    assert combine(c, empty, BooleanOp.INTERSECTION).plines == []
    assert [p.area() for p in combine(c, empty, BooleanOp.EXCLUSION)] == [pytest.approx(math.pi)]
    assert combine(empty, c, BooleanOp.EXCLUSION).plines == []
