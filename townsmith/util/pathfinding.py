"""Unweighted grid search used to lay town roads.

Breadth-first search over a boolean passability grid with four-directional
adjacency. Neighbours are expanded in a fixed order (east, west, south, north)
so equal-length paths are always resolved the same way for the same grid.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable

import numpy as np

from townsmith.types import Direction, WorldTilePos

CARDINAL_DIRECTIONS: tuple[Direction, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


def bfs_path(
    passable: np.ndarray,
    start: WorldTilePos,
    is_goal: Callable[[int, int], bool],
) -> list[WorldTilePos] | None:
    """
    Find the shortest path from ``start`` to the nearest cell satisfying ``is_goal``.

    The start cell is always expanded, even if it is not itself passable; every
    other cell on the path must be passable.

    Args:
        passable: Boolean (width, height) grid.
        start: Starting cell.
        is_goal: Goal test called with (x, y).

    Returns:
        The path from start to goal inclusive, or None if no goal is reachable.
    """
    width, height = passable.shape
    sx, sy = start
    if not (0 <= sx < width and 0 <= sy < height):
        return None

    visited = np.zeros((width, height), dtype=bool)
    came_from: dict[WorldTilePos, WorldTilePos | None] = {start: None}
    visited[sx, sy] = True
    queue: deque[WorldTilePos] = deque([start])

    while queue:
        current = queue.popleft()
        if is_goal(*current):
            # Reconstruct path
            path: list[WorldTilePos] = []
            node: WorldTilePos | None = current
            while node is not None:
                path.append(node)
                node = came_from[node]
            path.reverse()
            return path

        cx, cy = current
        for dx, dy in CARDINAL_DIRECTIONS:
            nx, ny = cx + dx, cy + dy
            if not (0 <= nx < width and 0 <= ny < height):
                continue
            if visited[nx, ny] or not passable[nx, ny]:
                continue
            visited[nx, ny] = True
            came_from[(nx, ny)] = current
            queue.append((nx, ny))

    return None  # No path found


def find_path(
    passable: np.ndarray, start: WorldTilePos, goal: WorldTilePos
) -> list[WorldTilePos] | None:
    """Shortest path between two cells, or None."""
    gx, gy = goal
    return bfs_path(passable, start, lambda x, y: x == gx and y == gy)


def find_path_to_any(
    passable: np.ndarray, start: WorldTilePos, targets: np.ndarray
) -> list[WorldTilePos] | None:
    """Shortest path from ``start`` to the nearest True cell of ``targets``.

    This is a multi-target search: the goal test is a lookup in the target
    mask, so the cost is one BFS no matter how many targets there are.
    """
    return bfs_path(passable, start, lambda x, y: bool(targets[x, y]))
