from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from bulgeline.index._index_jit import batch_query_flat, query_flat
from bulgeline.primitives import AABB2

HILBERT_MAX = 65535


def hilbert_values(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Position along a 16 bit Hilbert curve for integer grid coordinates."""
    x = np.asarray(xs, dtype=np.int64)
    y = np.asarray(ys, dtype=np.int64)

    a = x ^ y
    b = 0xFFFF ^ a
    c = 0xFFFF ^ (x | y)
    d = x & (y ^ 0xFFFF)

    A = a | (b >> 1)
    B = (a >> 1) ^ a
    C = ((c >> 1) ^ (b & (d >> 1))) ^ c
    D = ((a & (c >> 1)) ^ (d >> 1)) ^ d

    a, b, c, d = A, B, C, D
    A = (a & (a >> 2)) ^ (b & (b >> 2))
    B = (a & (b >> 2)) ^ (b & ((a ^ b) >> 2))
    C = C ^ ((a & (c >> 2)) ^ (b & (d >> 2)))
    D = D ^ ((b & (c >> 2)) ^ ((a ^ b) & (d >> 2)))

    a, b, c, d = A, B, C, D
    A = (a & (a >> 4)) ^ (b & (b >> 4))
    B = (a & (b >> 4)) ^ (b & ((a ^ b) >> 4))
    C = C ^ ((a & (c >> 4)) ^ (b & (d >> 4)))
    D = D ^ ((b & (c >> 4)) ^ ((a ^ b) & (d >> 4)))

    a, b, c, d = A, B, C, D
    C = C ^ ((a & (c >> 8)) ^ (b & (d >> 8)))
    D = D ^ ((b & (c >> 8)) ^ ((a ^ b) & (d >> 8)))

    a = C ^ (C >> 1)
    b = D ^ (D >> 1)

    i0 = x ^ y
    i1 = b | (0xFFFF ^ (i0 | a))

    i0 = (i0 | (i0 << 8)) & 0x00FF00FF
    i0 = (i0 | (i0 << 4)) & 0x0F0F0F0F
    i0 = (i0 | (i0 << 2)) & 0x33333333
    i0 = (i0 | (i0 << 1)) & 0x55555555

    i1 = (i1 | (i1 << 8)) & 0x00FF00FF
    i1 = (i1 | (i1 << 4)) & 0x0F0F0F0F
    i1 = (i1 | (i1 << 2)) & 0x33333333
    i1 = (i1 | (i1 << 1)) & 0x55555555

    return ((i1 << 1) | i0) & 0xFFFFFFFF


def _level_bounds(num_items: int, node_size: int) -> List[int]:
    n = num_items
    num_nodes = n
    bounds = [n]
    while True:
        n = int(math.ceil(n / node_size))
        num_nodes += n
        bounds.append(num_nodes)
        if n == 1:
            break
    return bounds


def _readonly(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a


@dataclass(frozen=True)
class StaticAABB2DIndex:
    """Packed Hilbert R-tree over item boxes.

    ``boxes`` holds the leaves (Hilbert ordered) followed by each level of parent
    nodes, the root last. ``indices`` maps a leaf to its item index and a parent to
    the position of its first child. ``level_bounds`` is the exclusive end of each
    level in box units.
    """

    boxes: np.ndarray
    indices: np.ndarray
    level_bounds: np.ndarray
    num_items: int
    node_size: int

    def __len__(self) -> int:
        return self.num_items

    def extent(self) -> Optional[AABB2]:
        if self.num_items == 0:
            return None
        r = self.boxes[-1]
        return AABB2(float(r[0]), float(r[1]), float(r[2]), float(r[3]))

    def query(self, min_x: float, min_y: float, max_x: float, max_y: float) -> List[int]:
        if self.num_items == 0:
            return []
        out = np.empty(self.num_items, dtype=np.int64)
        stack = np.empty(self.boxes.shape[0], dtype=np.int64)
        count = query_flat(
            self.boxes,
            self.indices,
            self.level_bounds,
            self.num_items,
            self.node_size,
            float(min_x),
            float(min_y),
            float(max_x),
            float(max_y),
            out,
            stack,
        )
        return [int(i) for i in out[:count]]

    def query_box(self, box: AABB2) -> List[int]:
        return self.query(box.min_x, box.min_y, box.max_x, box.max_y)

    def batch_query(self, queries: np.ndarray) -> List[List[int]]:
        """Query many boxes at once; ``queries`` is an (m, 4) array of min_x, min_y, max_x, max_y."""
        q = np.ascontiguousarray(np.asarray(queries, dtype=np.float64).reshape(-1, 4))
        if self.num_items == 0:
            return [[] for _ in range(q.shape[0])]
        offsets, items = batch_query_flat(
            self.boxes,
            self.indices,
            self.level_bounds,
            self.num_items,
            self.node_size,
            q,
        )
        return [[int(i) for i in items[offsets[k] : offsets[k + 1]]] for k in range(q.shape[0])]


class StaticAABB2DIndexBuilder:
    def __init__(self, num_items: int, node_size: int = 16):
        if num_items < 0:
            raise ValueError("num_items must be non-negative")
        if node_size < 2:
            raise ValueError("node_size must be at least 2")
        self.num_items = int(num_items)
        self.node_size = int(node_size)
        self._boxes = np.empty((self.num_items, 4), dtype=np.float64)
        self._count = 0

    def add(self, min_x: float, min_y: float, max_x: float, max_y: float) -> "StaticAABB2DIndexBuilder":
        if self._count >= self.num_items:
            raise ValueError("added more items than the builder was sized for")
        if min_x > max_x or min_y > max_y:
            raise ValueError("box min must not exceed max")
        self._boxes[self._count] = (min_x, min_y, max_x, max_y)
        self._count += 1
        return self

    def add_box(self, box: AABB2) -> "StaticAABB2DIndexBuilder":
        return self.add(box.min_x, box.min_y, box.max_x, box.max_y)

    def build(self) -> StaticAABB2DIndex:
        n = self.num_items
        if self._count != n:
            raise ValueError(f"expected {n} items, got {self._count}")
        if n == 0:
            return StaticAABB2DIndex(
                boxes=_readonly(np.zeros((0, 4), dtype=np.float64)),
                indices=_readonly(np.zeros((0,), dtype=np.int64)),
                level_bounds=_readonly(np.zeros((1,), dtype=np.int64)),
                num_items=0,
                node_size=self.node_size,
            )

        bounds = _level_bounds(n, self.node_size)
        num_nodes = bounds[-1]
        leaf = self._boxes
        order = np.arange(n, dtype=np.int64)
        if n > self.node_size:
            min_x, min_y = leaf[:, 0].min(), leaf[:, 1].min()
            width = leaf[:, 2].max() - min_x
            height = leaf[:, 3].max() - min_y
            width = width if width > 0.0 else 1.0
            height = height if height > 0.0 else 1.0
            hx = np.floor(HILBERT_MAX * (0.5 * (leaf[:, 0] + leaf[:, 2]) - min_x) / width)
            hy = np.floor(HILBERT_MAX * (0.5 * (leaf[:, 1] + leaf[:, 3]) - min_y) / height)
            order = np.argsort(hilbert_values(hx, hy), kind="stable").astype(np.int64)

        boxes = np.empty((num_nodes, 4), dtype=np.float64)
        indices = np.empty((num_nodes,), dtype=np.int64)
        boxes[:n] = leaf[order]
        indices[:n] = order

        pos = n
        start = 0
        for end in bounds[:-1]:
            starts = np.arange(start, end, self.node_size, dtype=np.int64)
            rel = starts - start
            level = boxes[start:end]
            cnt = starts.shape[0]
            boxes[pos : pos + cnt, 0] = np.minimum.reduceat(level[:, 0], rel)
            boxes[pos : pos + cnt, 1] = np.minimum.reduceat(level[:, 1], rel)
            boxes[pos : pos + cnt, 2] = np.maximum.reduceat(level[:, 2], rel)
            boxes[pos : pos + cnt, 3] = np.maximum.reduceat(level[:, 3], rel)
            indices[pos : pos + cnt] = starts
            pos += cnt
            start = end

        return StaticAABB2DIndex(
            boxes=_readonly(boxes),
            indices=_readonly(indices),
            level_bounds=_readonly(np.asarray(bounds, dtype=np.int64)),
            num_items=n,
            node_size=self.node_size,
        )


def build_index(boxes: Sequence[AABB2], node_size: int = 16) -> StaticAABB2DIndex:
    builder = StaticAABB2DIndexBuilder(len(boxes), node_size=node_size)
    for b in boxes:
        builder.add_box(b)
    return builder.build()
