"""
Heuristic Evaluator - Scores wall placements for bot decision-making.

The evaluator compares route lengths:
- Each player's shortest route, with the other pawn in the way
- How much a candidate wall lengthens the opponent's route
- How much the same wall lengthens the bot's own route

Only grooves next to the first few steps of the opponent's route are
scored (choke points), never the whole board.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from ..engine_core.pathfinding import WallIndex, Walls, shortest_path
from ..engine_core.state import Player, Position, Wall
from ..engine_core.walls import check_wall

UNREACHABLE = float("inf")


def route(player: Player, other: Player, walls: Walls) -> list[Position] | None:
    """Shortest route for a player, jumping over the other pawn where possible."""
    return shortest_path(player.position, player.goal_row, walls, other.position)


def route_length(player: Player, other: Player, walls: Walls) -> float:
    """Moves to the goal row, or infinity when no route exists."""
    path = route(player, other, walls)
    return UNREACHABLE if path is None else len(path) - 1


def choke_point_walls(path: list[Position], lookahead_steps: int = 4) -> Iterator[Wall]:
    """
    Grooves adjacent to the first steps of a route.

    A step along a row can be cut by two vertical walls, a step along a
    column by two horizontal ones.
    """
    steps = list(zip(path, path[1:]))[:lookahead_steps]
    for a, b in steps:
        if a.row == b.row:
            col = min(a.col, b.col) + 1
            yield Wall.vertical(a.row, col)
            if a.row > 0:
                yield Wall.vertical(a.row - 1, col)
        else:
            row = min(a.row, b.row) + 1
            yield Wall.horizontal(row, a.col)
            if a.col > 0:
                yield Wall.horizontal(row, a.col - 1)


@dataclass
class WallCandidate:
    """A legal wall and how much it helps."""
    wall: Wall
    score: float
    opponent_gain: float = 0.0
    own_gain: float = 0.0


@dataclass
class WallSearch:
    """Result of a choke point search."""
    best: WallCandidate | None = None
    evaluated: int = 0
    candidates: list[WallCandidate] = field(default_factory=list)


class HeuristicEvaluator:
    """
    Finds the most annoying legal wall for the opponent.

    Used by bots for 1-ply lookahead:
    1. Take the opponent's shortest route
    2. Generate choke point walls along its first steps
    3. Keep the legal ones that do not cut the bot's own route
    4. Score each as opponent gain minus own gain
    """

    def __init__(self, lookahead_steps: int = 4):
        self.lookahead_steps = lookahead_steps

    def search(self, me: Player, opponent: Player, walls: Iterable[Wall]) -> WallSearch:
        walls = tuple(walls)
        result = WallSearch()
        if me.walls_left <= 0:
            return result

        opponent_path = route(opponent, me, walls)
        if not opponent_path or len(opponent_path) < 2:
            return result

        my_length = route_length(me, opponent, walls)
        opponent_length = len(opponent_path) - 1
        player1, player2 = (me, opponent) if me.id == 1 else (opponent, me)

        seen: set = set()
        for groove in choke_point_walls(opponent_path, self.lookahead_steps):
            wall = groove.owned_by(me.id)
            if wall.key in seen:
                continue
            seen.add(wall.key)

            if check_wall(wall, walls, player1, player2, me.id) is not None:
                continue
            result.evaluated += 1

            hypothetical = WallIndex(walls + (wall,))
            new_my_length = route_length(me, opponent, hypothetical)
            if new_my_length == UNREACHABLE:
                continue
            new_opponent_length = route_length(opponent, me, hypothetical)

            candidate = WallCandidate(
                wall=wall,
                opponent_gain=new_opponent_length - opponent_length,
                own_gain=new_my_length - my_length,
                score=(new_opponent_length - opponent_length) - (new_my_length - my_length),
            )
            result.candidates.append(candidate)
            if result.best is None or candidate.score > result.best.score:
                result.best = candidate

        return result

    def find_best_blocking_wall(
        self,
        me: Player,
        opponent: Player,
        walls: Iterable[Wall],
    ) -> WallCandidate | None:
        """Best choke point wall, or None unless it scores above zero."""
        best = self.search(me, opponent, walls).best
        if best is not None and best.score > 0:
            return best
        return None


def find_best_blocking_wall(
    me: Player,
    opponent: Player,
    walls: Iterable[Wall],
    lookahead_steps: int = 4,
) -> WallCandidate | None:
    """Convenience function for a one-off search."""
    return HeuristicEvaluator(lookahead_steps).find_best_blocking_wall(me, opponent, walls)
