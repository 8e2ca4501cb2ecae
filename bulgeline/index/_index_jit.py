from __future__ import annotations

import numba
import numpy as np


@numba.njit(cache=True)
def _upper_bound(value: int, level_bounds: np.ndarray) -> int:
    n = level_bounds.shape[0]
    for i in range(n):
        if level_bounds[i] > value:
            return level_bounds[i]
    return level_bounds[n - 1]


@numba.njit(cache=True)
def query_flat(
    boxes: np.ndarray,
    indices: np.ndarray,
    level_bounds: np.ndarray,
    num_items: int,
    node_size: int,
    min_x: float,
    min_y: float,
    max_x: float,
    max_y: float,
    out: np.ndarray,
    stack: np.ndarray,
) -> int:
    n_nodes = boxes.shape[0]
    if n_nodes == 0:
        return 0

    count = 0
    top = 0
    node_index = n_nodes - 1
    while True:
        end = node_index + node_size
        bound = _upper_bound(node_index, level_bounds)
        if bound < end:
            end = bound
        for pos in range(node_index, end):
            if max_x < boxes[pos, 0] or max_y < boxes[pos, 1]:
                continue
            if min_x > boxes[pos, 2] or min_y > boxes[pos, 3]:
                continue
            idx = indices[pos]
            if node_index >= num_items:
                stack[top] = idx
                top += 1
            else:
                out[count] = idx
                count += 1
        if top == 0:
            break
        top -= 1
        node_index = stack[top]
    return count


@numba.njit(cache=True)
def batch_query_flat(
    boxes: np.ndarray,
    indices: np.ndarray,
    level_bounds: np.ndarray,
    num_items: int,
    node_size: int,
    queries: np.ndarray,
):
    m = queries.shape[0]
    n_nodes = boxes.shape[0]
    offsets = np.zeros(m + 1, dtype=np.int64)
    cap = num_items if num_items > 16 else 16
    items = np.empty(cap, dtype=np.int64)
    scratch = np.empty(num_items if num_items > 0 else 1, dtype=np.int64)
    stack = np.empty(n_nodes if n_nodes > 0 else 1, dtype=np.int64)
    total = 0
    for q in range(m):
        c = query_flat(
            boxes,
            indices,
            level_bounds,
            num_items,
            node_size,
            queries[q, 0],
            queries[q, 1],
            queries[q, 2],
            queries[q, 3],
            scratch,
            stack,
        )
        if total + c > items.shape[0]:
            new_cap = items.shape[0] * 2
            if new_cap < total + c:
                new_cap = total + c
            grown = np.empty(new_cap, dtype=np.int64)
            grown[:total] = items[:total]
            items = grown
        items[total : total + c] = scratch[:c]
        total += c
        offsets[q + 1] = total
    return offsets, items[:total]
