from __future__ import annotations

import math

import pytest

from bulgeline.curves.arc import angle_from_bulge, bulge_from_angle
from bulgeline.curves.segment import (
    seg_arc,
    seg_bounding_box,
    seg_closest_point,
    seg_is_degenerate,
    seg_length,
    seg_midpoint,
    seg_point_at,
    seg_split_at,
    seg_split_at_point,
    sub_bulge,
)
from bulgeline.primitives import PlineVertex, merge_aabbs


def test_line_segment_measures() -> None:
    v1, v2 = PlineVertex(0.0, 0.0), PlineVertex(3.0, 4.0)
    assert seg_arc(v1, v2) is None
    assert seg_length(v1, v2) == pytest.approx(5.0)
    assert seg_point_at(v1, v2, 0.5) == pytest.approx((1.5, 2.0))
    box = seg_bounding_box(v1, v2)
    assert box.as_tuple() == (0.0, 0.0, 3.0, 4.0)


def test_arc_segment_measures() -> None:
    v1, v2 = PlineVertex(0.0, 0.0, 1.0), PlineVertex(2.0, 0.0)
    assert seg_length(v1, v2) == pytest.approx(math.pi)
    mid = seg_midpoint(v1, v2)
    assert mid[0] == pytest.approx(1.0)
    assert mid[1] == pytest.approx(-1.0)


def test_closest_point_on_line_is_clamped() -> None:
    v1, v2 = PlineVertex(0.0, 0.0), PlineVertex(10.0, 0.0)
    assert seg_closest_point(v1, v2, (5.0, 3.0)) == pytest.approx((5.0, 0.0))
    assert seg_closest_point(v1, v2, (-4.0, 1.0)) == pytest.approx((0.0, 0.0))
    assert seg_closest_point(v1, v2, (14.0, -1.0)) == pytest.approx((10.0, 0.0))


def test_degenerate_segments() -> None:
    assert seg_is_degenerate(PlineVertex(1.0, 1.0), PlineVertex(1.0, 1.0))
    assert not seg_is_degenerate(PlineVertex(0.0, 0.0), PlineVertex(1.0, 0.0))


def test_sub_bulge_of_half_arc() -> None:
    v1 = PlineVertex(0.0, 0.0, 1.0)
    assert sub_bulge(v1, 0.0, 0.5) == pytest.approx(math.tan(math.pi / 8.0))
    assert sub_bulge(PlineVertex(0.0, 0.0), 0.2, 0.7) == 0.0


@pytest.mark.parametrize("t", [0.1, 0.25, 0.5, 0.8])
@pytest.mark.parametrize("bulge", [0.0, 0.4, 1.0, -0.7, -2.0])
def test_split_and_rejoin_reproduces_segment(t: float, bulge: float) -> None:
    v1, v2 = PlineVertex(1.0, 2.0, bulge), PlineVertex(4.0, -1.0)
    head, split = seg_split_at(v1, v2, t)

    assert head.pos == v1.pos
    assert split.pos == pytest.approx(seg_point_at(v1, v2, t))

    total = angle_from_bulge(head.bulge) + angle_from_bulge(split.bulge)
    assert bulge_from_angle(total) == pytest.approx(bulge, abs=1e-9)

    box = merge_aabbs([seg_bounding_box(head, split), seg_bounding_box(split, v2)])
    assert box is not None
    assert box.as_tuple() == pytest.approx(seg_bounding_box(v1, v2).as_tuple(), abs=1e-9)

    arc = seg_arc(v1, v2)
    if arc is not None:
        first = seg_arc(head, split)
        second = seg_arc(split, v2)
        assert first is not None and second is not None
        assert first.center == pytest.approx(arc.center)
        assert second.center == pytest.approx(arc.center)
        assert first.radius == pytest.approx(arc.radius)


def test_split_at_point_on_arc() -> None:
    v1, v2 = PlineVertex(0.0, 0.0, 1.0), PlineVertex(2.0, 0.0)
    head, split = seg_split_at_point(v1, v2, (1.0, -1.0))
    assert split.pos == (1.0, -1.0)
    assert head.bulge == pytest.approx(math.tan(math.pi / 8.0))
    assert split.bulge == pytest.approx(math.tan(math.pi / 8.0))
