"""
bulgeline

2D polylines with line and arc segments (arcs encoded as vertex bulge values):
parallel offset, boolean combine and segment intersection.
"""

import logging

from bulgeline.boolean import BooleanOp, BooleanResult, BooleanResultInfo, combine
from bulgeline.intersects import PlineIntersect, PlineIntersects, find_intersects, pairwise_intersects, self_intersects
from bulgeline.offset import OffsetOptions, OffsetResult, offset
from bulgeline.polyline import Orientation, Polyline
from bulgeline.primitives import AABB2, PlineVertex
from bulgeline.shape import IndexedPolyline, Shape, ShapeOffsetResult
from bulgeline.slicing import Failure
from bulgeline.tolerance import DEFAULT_TOLERANCE, Tolerance, scaled_tolerance

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AABB2",
    "BooleanOp",
    "BooleanResult",
    "BooleanResultInfo",
    "DEFAULT_TOLERANCE",
    "Failure",
    "IndexedPolyline",
    "OffsetOptions",
    "OffsetResult",
    "Orientation",
    "PlineIntersect",
    "PlineIntersects",
    "PlineVertex",
    "Polyline",
    "Shape",
    "ShapeOffsetResult",
    "Tolerance",
    "combine",
    "find_intersects",
    "offset",
    "pairwise_intersects",
    "scaled_tolerance",
    "self_intersects",
]
