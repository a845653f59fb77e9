"""
Game Validators
===============
Play-time evaluation over the current rotations: mutual connections, flow
propagation from the source, and the win condition.

A connection only counts when both tiles point at each other; a single-sided
stub never carries flow and never counts as an edge.
"""

from collections import deque

from pipegrid.directions import OPPOSITE, direction_between, in_bounds, neighbor_index

LOCKED = "locked"
SOLVED = "solved"
NO_TILE = "no tile"
NO_HISTORY = "no history"


def tiles_connect(tiles, width, height, r1, c1, r2, c2):
    """True if the two cells are adjacent and both open onto their shared edge."""
    if not (in_bounds(r1, c1, width, height) and in_bounds(r2, c2, width, height)):
        return False
    direction = direction_between(r1, c1, r2, c2)
    if direction is None:
        return False
    first = tiles[r1 * width + c1]
    second = tiles[r2 * width + c2]
    return direction in first.active_connections() and \
        OPPOSITE[direction] in second.active_connections()


def compute_flow(tiles, width, height, source):
    """
    Breadth-first reachability from ``source`` (row, col) over mutual
    connections. Returns the set of flat cell indexes holding flow.
    """
    start = source[0] * width + source[1]
    active = [t.active_connections() for t in tiles]
    flow = {start}
    queue = deque([start])

    while queue:
        index = queue.popleft()
        for direction in active[index]:
            neighbor = neighbor_index(index, direction, width, height)
            if neighbor is None or neighbor in flow:
                continue
            if OPPOSITE[direction] in active[neighbor]:
                flow.add(neighbor)
                queue.append(neighbor)

    return flow


def count_flow_edges(tiles, width, height, flow):
    """Mutual connections with both ends inside ``flow``, each counted once."""
    half_edges = 0
    for index in flow:
        for direction in tiles[index].active_connections():
            neighbor = neighbor_index(index, direction, width, height)
            if neighbor is None or neighbor not in flow:
                continue
            if OPPOSITE[direction] in tiles[neighbor].active_connections():
                half_edges += 1
    return half_edges // 2


def check_win_condition(tiles, width, height, flow, terminals):
    """
    Check if the puzzle is solved.
    Conditions:
    1. Every terminal holds flow.
    2. The flowing network is a tree (edges == cells - 1).

    Only the reachable part of the grid is inspected.
    Returns: (bool, reason)
    """
    for index in terminals:
        if index not in flow:
            return False, "Terminals not connected"

    if count_flow_edges(tiles, width, height, flow) != len(flow) - 1:
        return False, "Loop in network"

    return True, "Winner"


def is_valid_rotation(game_state, row, col):
    """
    Check if the tile at (row, col) may be rotated.
    Returns: (bool, reason)
    """
    index = game_state.index_of(row, col)
    if index is not None and index in game_state.locked:
        return False, LOCKED
    if game_state.solved:
        return False, SOLVED
    if index is None:
        return False, NO_TILE
    return True, "OK"
