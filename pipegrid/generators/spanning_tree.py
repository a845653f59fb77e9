"""
Spanning Tree Builder
=====================
Randomized depth-first traversal of the rectangular grid graph, rooted at
cell (0, 0).

A cell is marked visited when the traversal first enters it, and exactly one
edge is added per newly visited cell, so the result always has
``width * height - 1`` edges and no cycles.

The traversal keeps an explicit stack of (cell, untried directions) frames
instead of recursing. A snake-shaped tree on a large grid would otherwise
need one Python frame per cell.
"""

import random
from collections import deque
from typing import List, Optional, Set, Tuple

from pipegrid.directions import ALL_DIRECTIONS, OPPOSITE, neighbor_index

Adjacency = List[Set[int]]


def _shuffled_directions(rng):
    dirs = [int(d) for d in ALL_DIRECTIONS]
    rng.shuffle(dirs)
    return dirs


def generate_spanning_tree(width: int, height: int,
                           rng: Optional[random.Random] = None) -> Adjacency:
    """
    Returns per-cell open directions (flat, row-major). The adjacency is
    symmetric: if cell A opens toward B, B opens back toward A.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Grid must be at least 1x1, got {width}x{height}")
    rng = rng or random.Random()

    cell_count = width * height
    adjacency: Adjacency = [set() for _ in range(cell_count)]
    visited = [False] * cell_count

    visited[0] = True
    stack = [(0, _shuffled_directions(rng))]

    while stack:
        index, pending = stack[-1]
        if not pending:
            stack.pop()
            continue

        direction = pending.pop()
        neighbor = neighbor_index(index, direction, width, height)
        if neighbor is None or visited[neighbor]:
            continue

        adjacency[index].add(direction)
        adjacency[neighbor].add(int(OPPOSITE[direction]))
        visited[neighbor] = True
        # Descend before trying this cell's remaining directions
        stack.append((neighbor, _shuffled_directions(rng)))

    return adjacency


def tree_edges(adjacency: Adjacency, width: int, height: int) -> Set[Tuple[int, int]]:
    """Undirected edge set as sorted (index, index) pairs."""
    edges = set()
    for index, dirs in enumerate(adjacency):
        for direction in dirs:
            neighbor = neighbor_index(index, direction, width, height)
            if neighbor is not None:
                edges.add(tuple(sorted((index, neighbor))))
    return edges


def is_spanning_tree(adjacency: Adjacency, width: int, height: int) -> bool:
    """
    Symmetric, in-bounds, ``n - 1`` edges and connected.
    Connected with ``n - 1`` edges implies acyclic.
    """
    cell_count = width * height
    if len(adjacency) != cell_count:
        return False

    for index, dirs in enumerate(adjacency):
        for direction in dirs:
            neighbor = neighbor_index(index, direction, width, height)
            if neighbor is None:
                return False
            if int(OPPOSITE[direction]) not in adjacency[neighbor]:
                return False

    if len(tree_edges(adjacency, width, height)) != cell_count - 1:
        return False

    seen = {0}
    queue = deque([0])
    while queue:
        index = queue.popleft()
        for direction in adjacency[index]:
            neighbor = neighbor_index(index, direction, width, height)
            if neighbor not in seen:
                seen.add(neighbor)
                queue.append(neighbor)
    return len(seen) == cell_count
