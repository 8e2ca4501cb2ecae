from __future__ import annotations

import math
from dataclasses import dataclass

# Near-zero guard for denominators, bulge and zero-length checks.
EPS_ZERO = 1e-12

# Angular epsilon (dimensionless, used on cross products of unit directions).
EPS_ANG = 1e-9

# Positional epsilon: points closer than this are the same point.
EPS_POS = 1e-5

# Distance within which slice end points are joined while stitching.
EPS_SLICE_JOIN = 1e-4

# Allowed shortfall when checking a slice's distance from the source polyline.
EPS_OFFSET_DIST = 1e-4


@dataclass(frozen=True)
class Tolerance:
    pos_equal_eps: float = EPS_POS
    slice_join_eps: float = EPS_SLICE_JOIN
    offset_dist_eps: float = EPS_OFFSET_DIST

    def __post_init__(self) -> None:
        for name in ("pos_equal_eps", "slice_join_eps", "offset_dist_eps"):
            v = float(getattr(self, name))
            if not math.isfinite(v) or v <= 0.0:
                raise ValueError(f"{name} must be a positive finite number")


DEFAULT_TOLERANCE = Tolerance()


def scaled_tolerance(coord_scale: float = 1.0, user_eps: float | None = None) -> Tolerance:
    s = max(abs(float(coord_scale)), EPS_ZERO)
    pos = EPS_POS * s
    join = EPS_SLICE_JOIN * s
    dist = EPS_OFFSET_DIST * s
    if user_eps is not None:
        u = max(float(user_eps), EPS_ZERO)
        pos = max(pos, u)
        join = max(join, u * 10.0)
        dist = max(dist, u * 10.0)
    return Tolerance(pos_equal_eps=pos, slice_join_eps=join, offset_dist_eps=dist)
