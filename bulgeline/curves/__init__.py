from .arc import Arc, angle_from_bulge, bulge_from_angle, delta_angle, delta_angle_signed, normalize_radians
from .intersections import (
    IntrKind,
    SegIntersect,
    circle_circle_points,
    intersect_arc_arc,
    intersect_line_arc,
    intersect_line_line,
    intersect_segments,
    line_circle_params,
    line_line_params,
)
from .segment import (
    seg_arc,
    seg_bounding_box,
    seg_closest_point,
    seg_is_degenerate,
    seg_length,
    seg_midpoint,
    seg_param_of_point,
    seg_point_at,
    seg_split_at,
    seg_split_at_point,
    seg_tangent_at,
    sub_bulge,
)

__all__ = [
    "Arc",
    "angle_from_bulge",
    "bulge_from_angle",
    "delta_angle",
    "delta_angle_signed",
    "normalize_radians",
    "IntrKind",
    "SegIntersect",
    "circle_circle_points",
    "intersect_arc_arc",
    "intersect_line_arc",
    "intersect_line_line",
    "intersect_segments",
    "line_circle_params",
    "line_line_params",
    "seg_arc",
    "seg_bounding_box",
    "seg_closest_point",
    "seg_is_degenerate",
    "seg_length",
    "seg_midpoint",
    "seg_param_of_point",
    "seg_point_at",
    "seg_split_at",
    "seg_split_at_point",
    "seg_tangent_at",
    "sub_bulge",
]
