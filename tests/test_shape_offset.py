from __future__ import annotations

import math

import pytest

from bulgeline import Polyline, Shape


def _square(x0: float, y0: float, size: float) -> Polyline:
    return Polyline.from_points(
        [(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)],
        closed=True,
    )


def _frame() -> Shape:
    return Shape.from_plines([_square(0.0, 0.0, 10.0), _square(4.0, 4.0, 2.0).inverted()])


def test_from_plines_sorts_loops_by_orientation() -> None:
    shape = Shape.from_plines(
        [
            _square(0.0, 0.0, 10.0),
            _square(4.0, 4.0, 2.0).inverted(),
            Polyline.from_points([(0.0, 0.0), (1.0, 1.0)]),
        ]
    )
    assert len(shape.ccw_plines) == 1
    assert len(shape.cw_plines) == 1
    assert len(shape) == 2
    assert shape.area() == pytest.approx(96.0)
    assert len(shape.ccw_plines[0].spatial_index) == 4


def test_zero_offset_copies_shape() -> None:
    result = _frame().parallel_offset(0.0)
    assert result.ok
    assert result.shape is not None
    assert result.shape.area() == pytest.approx(96.0)


def test_grow_material_shrinks_hole() -> None:
    result = _frame().parallel_offset(0.5)
    assert result.ok
    shape = result.shape
    assert shape is not None
    assert len(shape.ccw_plines) == 1
    assert len(shape.cw_plines) == 1
    assert shape.ccw_plines[0].polyline.area() == pytest.approx(100.0 + 20.0 + 0.25 * math.pi)
    assert shape.cw_plines[0].polyline.area() == pytest.approx(-1.0)


def test_hole_disappears_when_material_grows_past_it() -> None:
    result = _frame().parallel_offset(1.5)
    assert result.ok
    assert result.shape is not None
    assert len(result.shape.ccw_plines) == 1
    assert result.shape.cw_plines == []


def test_shrinking_material_splits_into_corner_islands() -> None:
    result = _frame().parallel_offset(-2.1)
    assert result.ok
    shape = result.shape
    assert shape is not None
    assert len(shape.ccw_plines) == 4
    assert shape.cw_plines == []
    areas = [e.polyline.area() for e in shape.ccw_plines]
    assert all(0.3 < a < 0.45 for a in areas)
    assert areas == pytest.approx([areas[0]] * 4)


def test_shrinking_past_everything_leaves_empty_shape() -> None:
    result = _frame().parallel_offset(-6.0)
    assert result.ok
    assert result.shape is not None
    assert len(result.shape) == 0
