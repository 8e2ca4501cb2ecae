from .static_aabb import StaticAABB2DIndex, StaticAABB2DIndexBuilder, build_index, hilbert_values

__all__ = [
    "StaticAABB2DIndex",
    "StaticAABB2DIndexBuilder",
    "build_index",
    "hilbert_values",
]
