"""
Wall Validation - Geometry checks plus the trap rule.

A wall is legal when, in order:
0. The placing player still has walls
1. It lies inside the groove grid
2. The same groove is not already taken
3. It does not overlap a parallel wall
4. It does not cross a perpendicular wall at the shared intersection
5. Both players can still reach their goal rows afterwards

The first failing check is reported. The trap rule is global: each
candidate costs two breadth-first searches over the hypothetical board.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator

from .pathfinding import WallIndex, shortest_path
from .state import BOARD_SIZE, Orientation, Player, Wall


class WallRejection(Enum):
    """Reason a wall placement was refused."""
    NO_WALLS_REMAINING = "no-walls"
    OUT_OF_BOUNDS = "bounds"
    DUPLICATE = "duplicate"
    OVERLAP = "overlap"
    CROSS = "cross"
    WOULD_TRAP = "would-trap"


@dataclass(frozen=True)
class WallViolation:
    """A refused wall placement."""
    reason: WallRejection
    message: str
    trapped_player_id: int | None = None

    @property
    def code(self) -> str:
        """Short machine string, e.g. 'overlap' or 'would-trap-2'."""
        if self.reason == WallRejection.WOULD_TRAP:
            return f"{self.reason.value}-{self.trapped_player_id}"
        return self.reason.value


def in_groove_bounds(wall: Wall, size: int = BOARD_SIZE) -> bool:
    if wall.orientation == Orientation.HORIZONTAL:
        return 1 <= wall.row <= size - 1 and 0 <= wall.col <= size - 2
    return 0 <= wall.row <= size - 2 and 1 <= wall.col <= size - 1


def all_grooves(size: int = BOARD_SIZE) -> Iterator[Wall]:
    """Every in-bounds wall slot, horizontal first."""
    for row in range(1, size):
        for col in range(0, size - 1):
            yield Wall.horizontal(row, col)
    for row in range(0, size - 1):
        for col in range(1, size):
            yield Wall.vertical(row, col)


def overlaps(candidate: Wall, existing: Wall) -> bool:
    """Same orientation, same line, closer than one wall length."""
    if candidate.orientation != existing.orientation:
        return False
    if candidate.is_horizontal:
        return candidate.row == existing.row and abs(candidate.col - existing.col) < 2
    return candidate.col == existing.col and abs(candidate.row - existing.row) < 2


def crosses(candidate: Wall, existing: Wall) -> bool:
    """Perpendicular walls sharing their midpoint."""
    if candidate.orientation == existing.orientation:
        return False
    if candidate.is_horizontal:
        return existing.row == candidate.row - 1 and existing.col == candidate.col + 1
    return existing.row == candidate.row + 1 and existing.col == candidate.col - 1


def check_geometry(candidate: Wall, walls: Iterable[Wall]) -> WallViolation | None:
    """Checks 1-4: bounds, duplicate, overlap, cross."""
    walls = tuple(walls)

    if not in_groove_bounds(candidate):
        return WallViolation(WallRejection.OUT_OF_BOUNDS, "Wall placement is out of bounds.")

    if any(w.key == candidate.key for w in walls):
        return WallViolation(WallRejection.DUPLICATE, "A wall already exists there.")

    if any(overlaps(candidate, w) for w in walls):
        return WallViolation(WallRejection.OVERLAP, "Walls cannot overlap.")

    if any(crosses(candidate, w) for w in walls):
        return WallViolation(WallRejection.CROSS, "Walls cannot cross each other.")

    return None


def check_wall(
    candidate: Wall,
    walls: Iterable[Wall],
    player1: Player,
    player2: Player,
    placing_player_id: int,
) -> WallViolation | None:
    """
    Validate a wall placement.

    Returns None if the wall is legal, otherwise the first violation.
    """
    walls = tuple(walls)
    placer = player1 if placing_player_id == player1.id else player2

    if placer.walls_left <= 0:
        return WallViolation(WallRejection.NO_WALLS_REMAINING, "You have no walls left.")

    violation = check_geometry(candidate, walls)
    if violation:
        return violation

    hypothetical = WallIndex(walls + (candidate,))
    for player, other in ((player1, player2), (player2, player1)):
        if shortest_path(player.position, player.goal_row, hypothetical, other.position) is None:
            return WallViolation(
                WallRejection.WOULD_TRAP,
                f"This wall would trap {player.name}.",
                trapped_player_id=player.id,
            )

    return None


def is_legal_wall(
    candidate: Wall,
    walls: Iterable[Wall],
    player1: Player,
    player2: Player,
    placing_player_id: int,
) -> bool:
    return check_wall(candidate, walls, player1, player2, placing_player_id) is None
