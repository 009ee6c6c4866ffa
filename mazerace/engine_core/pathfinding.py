"""
Pathfinding - Wall-aware edges and breadth-first shortest paths.

Used for:
1. The trap rule (does a path to the goal row still exist?)
2. Bot scoring (how long is each player's route?)

Neighbours are always visited up, down, left, right, so among paths of
equal length the first one discovered in that order is returned.
"""

from __future__ import annotations
from collections import deque
from typing import Iterable, Union

from .state import BOARD_SIZE, Orientation, Position, Wall

DIRECTIONS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


def wall_edges(wall: Wall) -> list[tuple[Position, Position]]:
    """The two cell-to-cell edges a wall blocks."""
    r, c = wall.row, wall.col
    if wall.orientation == Orientation.HORIZONTAL:
        # Between rows r-1 and r, at columns c and c+1
        return [
            (Position(r - 1, c), Position(r, c)),
            (Position(r - 1, c + 1), Position(r, c + 1)),
        ]
    # Between columns c-1 and c, at rows r and r+1
    return [
        (Position(r, c - 1), Position(r, c)),
        (Position(r + 1, c - 1), Position(r + 1, c)),
    ]


class WallIndex:
    """
    Blocked edges of a wall set.

    Built once per search so each edge test is a set lookup instead of
    a scan over every wall.
    """

    def __init__(self, walls: Iterable[Wall] = ()):
        self.walls = tuple(walls)
        edges: set[tuple[Position, Position]] = set()
        for wall in self.walls:
            for a, b in wall_edges(wall):
                edges.add((a, b))
                edges.add((b, a))
        self._edges = frozenset(edges)

    def blocks(self, from_pos: Position, to_pos: Position) -> bool:
        return (from_pos, to_pos) in self._edges

    def __len__(self) -> int:
        return len(self.walls)


Walls = Union[Iterable[Wall], WallIndex]


def as_index(walls: Walls) -> WallIndex:
    if isinstance(walls, WallIndex):
        return walls
    return WallIndex(walls)


def is_move_blocked(from_pos: Position, to_pos: Position, walls: Walls) -> bool:
    """
    Check whether a wall blocks the edge between two orthogonally
    adjacent cells.
    """
    return as_index(walls).blocks(from_pos, to_pos)


def open_neighbors(pos: Position, walls: Walls, size: int = BOARD_SIZE) -> list[Position]:
    """Orthogonal neighbours reachable in one plain step."""
    index = as_index(walls)
    result = []
    for d_row, d_col in DIRECTIONS:
        nxt = pos.offset(d_row, d_col)
        if nxt.in_bounds(size) and not index.blocks(pos, nxt):
            result.append(nxt)
    return result


def shortest_path(
    start: Position,
    goal_row: int,
    walls: Walls,
    opponent_pos: Position | None = None,
) -> list[Position] | None:
    """
    Find the shortest path from start to any cell of goal_row.

    When opponent_pos is given, expansion uses pawn move rules so that
    jumps over the (stationary) opponent count as single steps.

    Returns the path including the start cell, or None if unreachable.
    """
    # Imported here to avoid a cycle: legal_moves itself uses the wall index
    from .action_generator import legal_moves

    index = as_index(walls)
    if start.row == goal_row:
        return [start]

    parents: dict[Position, Position | None] = {start: None}
    queue: deque[Position] = deque([start])

    while queue:
        current = queue.popleft()

        if opponent_pos is not None:
            neighbors = legal_moves(current, index, opponent_pos)
        else:
            neighbors = open_neighbors(current, index)

        for neighbor in neighbors:
            if neighbor in parents:
                continue
            parents[neighbor] = current
            if neighbor.row == goal_row:
                return _unwind(parents, neighbor)
            queue.append(neighbor)

    return None


def _unwind(parents: dict[Position, Position | None], end: Position) -> list[Position]:
    path = [end]
    node = parents[end]
    while node is not None:
        path.append(node)
        node = parents[node]
    path.reverse()
    return path


def path_exists(
    start: Position,
    goal_row: int,
    walls: Walls,
    opponent_pos: Position | None = None,
) -> bool:
    return shortest_path(start, goal_row, walls, opponent_pos) is not None


def distance_to_goal(
    start: Position,
    goal_row: int,
    walls: Walls,
    opponent_pos: Position | None = None,
) -> int | None:
    """Number of moves to the goal row, or None if unreachable."""
    path = shortest_path(start, goal_row, walls, opponent_pos)
    if path is None:
        return None
    return len(path) - 1
