"""
Perspective - How the board looks from each seat.

Canonical coordinates put player 1's home row at the bottom. Player 2
sees the board rotated 180 degrees so that their own pawn also starts
at the bottom:

    position          (r, c) -> (N-1-r, N-1-c)
    horizontal wall   (r, c) -> (N-r,   N-2-c)
    vertical wall     (r, c) -> (N-2-r, N-c)

Every transform is its own inverse. Only the presentation boundary uses
them; the engine and the wire format never see rotated coordinates.
"""

from __future__ import annotations
from dataclasses import dataclass, replace

from ..engine_core.state import BOARD_SIZE, GameState, Orientation, Player, Position, Wall, opponent_id


def rotate_position(position: Position, size: int = BOARD_SIZE) -> Position:
    return Position(size - 1 - position.row, size - 1 - position.col)


def rotate_wall(wall: Wall, size: int = BOARD_SIZE) -> Wall:
    if wall.orientation == Orientation.HORIZONTAL:
        return replace(wall, row=size - wall.row, col=size - 2 - wall.col)
    return replace(wall, row=size - 2 - wall.row, col=size - wall.col)


def rotate_player(player: Player, size: int = BOARD_SIZE) -> Player:
    """Player with a rotated position and goal row."""
    return replace(
        player,
        position=rotate_position(player.position, size),
        goal_row=size - 1 - player.goal_row,
    )


@dataclass(frozen=True)
class BoardView:
    """A GameState as shown to one seat."""
    local_player_id: int
    rotated: bool
    me: Player | None
    opponent: Player | None
    walls: tuple[Wall, ...]
    current_player_id: int
    winner_id: int | None
    turn_time: int
    game_time: int

    @property
    def is_my_turn(self) -> bool:
        return self.winner_id is None and self.current_player_id == self.local_player_id


@dataclass(frozen=True)
class Perspective:
    """Coordinate mapping for one seat; only player 2's seat rotates."""
    local_player_id: int

    @property
    def rotated(self) -> bool:
        return self.local_player_id == 2

    def to_view_position(self, position: Position) -> Position:
        return rotate_position(position) if self.rotated else position

    def to_view_wall(self, wall: Wall) -> Wall:
        return rotate_wall(wall) if self.rotated else wall

    def to_canonical_position(self, position: Position) -> Position:
        return rotate_position(position) if self.rotated else position

    def to_canonical_wall(self, wall: Wall) -> Wall:
        return rotate_wall(wall) if self.rotated else wall

    def view(self, state: GameState) -> BoardView:
        """Project a canonical state for this seat."""
        def show(player: Player | None) -> Player | None:
            if player is None or not self.rotated:
                return player
            return rotate_player(player)

        return BoardView(
            local_player_id=self.local_player_id,
            rotated=self.rotated,
            me=show(state.get_player(self.local_player_id)),
            opponent=show(state.get_player(opponent_id(self.local_player_id))),
            walls=tuple(self.to_view_wall(w) for w in state.walls),
            current_player_id=state.current_player_id,
            winner_id=state.winner.id if state.winner else None,
            turn_time=state.turn_time,
            game_time=state.game_time,
        )
