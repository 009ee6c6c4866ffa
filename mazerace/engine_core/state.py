"""
Game State - Board values and the canonical match snapshot.

Design principles:
- Immutable: Position, Wall, Player and GameState are frozen values
- Every transition returns a new GameState, nothing is patched in place
- Serializable: a GameState is exactly what peers publish to each other

Coordinates are canonical: row 0 is player 2's home row (player 1's goal),
row BOARD_SIZE - 1 is player 1's home row (player 2's goal).
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping

BOARD_SIZE = 9

PLAYER_COLORS = {1: "#22d3ee", 2: "#ec4899"}


class GamePhase(Enum):
    """Lifecycle of a match."""
    WAITING_FOR_PLAYERS = "waiting_for_players"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Orientation(str, Enum):
    """Wall orientation."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class Position:
    """A cell on the board."""
    row: int
    col: int

    def offset(self, d_row: int, d_col: int) -> Position:
        return Position(self.row + d_row, self.col + d_col)

    def in_bounds(self, size: int = BOARD_SIZE) -> bool:
        return 0 <= self.row < size and 0 <= self.col < size

    def __repr__(self) -> str:
        return f"({self.row},{self.col})"


@dataclass(frozen=True)
class Wall:
    """
    A two-cell wall segment sitting in a groove.

    Horizontal (row, col) blocks the edge between rows row-1 and row,
    at columns col and col+1.
    Vertical (row, col) blocks the edge between columns col-1 and col,
    at rows row and row+1.
    """
    row: int
    col: int
    orientation: Orientation
    owner_id: int = 0

    @property
    def key(self) -> tuple[int, int, Orientation]:
        """Identity of the groove, ignoring the owner."""
        return (self.row, self.col, self.orientation)

    @property
    def is_horizontal(self) -> bool:
        return self.orientation == Orientation.HORIZONTAL

    def owned_by(self, player_id: int) -> Wall:
        return replace(self, owner_id=player_id)

    @classmethod
    def horizontal(cls, row: int, col: int, owner_id: int = 0) -> Wall:
        return cls(row, col, Orientation.HORIZONTAL, owner_id)

    @classmethod
    def vertical(cls, row: int, col: int, owner_id: int = 0) -> Wall:
        return cls(row, col, Orientation.VERTICAL, owner_id)


@dataclass(frozen=True)
class Player:
    """One of the two pawns, with its wall stock and goal."""
    id: int
    name: str
    color: str
    position: Position
    walls_left: int
    goal_row: int

    def moved_to(self, position: Position) -> Player:
        return replace(self, position=position)

    def spend_wall(self) -> Player:
        return replace(self, walls_left=self.walls_left - 1)

    @property
    def has_reached_goal(self) -> bool:
        return self.position.row == self.goal_row


def opponent_id(player_id: int) -> int:
    return 2 if player_id == 1 else 1


@dataclass(frozen=True)
class GameState:
    """
    Complete match snapshot at a point in time.

    The (turn_number, timestamp) pair is the logical clock used by
    online peers to order snapshots. `players` holds only player 1
    while an online host waits for an opponent.
    """
    players: Mapping[int, Player] = field(default_factory=dict)
    walls: tuple[Wall, ...] = ()
    current_player_id: int = 1
    winner: Player | None = None

    # Timers, in seconds
    game_time: int = 0
    turn_time: int = 60

    # Logical clock
    timestamp: int = 0  # Wall-clock milliseconds
    turn_number: int = 0

    @property
    def phase(self) -> GamePhase:
        if self.winner is not None:
            return GamePhase.FINISHED
        if 1 not in self.players or 2 not in self.players:
            return GamePhase.WAITING_FOR_PLAYERS
        return GamePhase.IN_PROGRESS

    @property
    def is_over(self) -> bool:
        return self.winner is not None

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_id]

    def get_player(self, player_id: int) -> Player | None:
        return self.players.get(player_id)

    def get_opponent(self, player_id: int) -> Player | None:
        return self.players.get(opponent_id(player_id))

    def with_player(self, player: Player) -> GameState:
        """Return new state with updated player."""
        new_players = dict(self.players)
        new_players[player.id] = player
        return self._copy_with(players=new_players)

    def with_wall(self, wall: Wall) -> GameState:
        """Return new state with a wall appended."""
        return self._copy_with(walls=self.walls + (wall,))

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def clock(self) -> tuple[int, int]:
        """The logical clock as a comparable pair."""
        return (self.turn_number, self.timestamp)
