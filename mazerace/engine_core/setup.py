"""
Match Setup - Creates initial game state.

This module handles:
- Placing both pawns on their home rows
- Choosing the opening columns (centered or randomized, always mirrored)
- Dealing the configured wall stock
- Seating a second player into a waiting online match

Player 1 always opens the match.
"""

from __future__ import annotations
import random
import string
import time

from ..config import MatchConfig, StartPosition
from .state import BOARD_SIZE, PLAYER_COLORS, GamePhase, GameState, Player, Position

GAME_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_game_id(rng: random.Random | None = None, length: int = 6) -> str:
    """Short random id used in channel topics."""
    rng = rng or random.Random()
    return "".join(rng.choice(GAME_ID_ALPHABET) for _ in range(length))


def opening_column(config: MatchConfig, rng: random.Random | None = None) -> int:
    """Player 1's starting column under the configured policy."""
    if config.start_position == StartPosition.RANDOM:
        return (rng or random.Random()).randrange(BOARD_SIZE)
    return BOARD_SIZE // 2


def mirrored_column(col: int) -> int:
    return BOARD_SIZE - 1 - col


def make_player(player_id: int, name: str, col: int, walls_left: int) -> Player:
    """Create a pawn on its home row, facing the far side."""
    if player_id == 1:
        home_row, goal_row = BOARD_SIZE - 1, 0
    else:
        home_row, goal_row = 0, BOARD_SIZE - 1
    return Player(
        id=player_id,
        name=name,
        color=PLAYER_COLORS[player_id],
        position=Position(home_row, col),
        walls_left=walls_left,
        goal_row=goal_row,
    )


def create_match(
    player1_name: str = "Player 1",
    player2_name: str = "Player 2",
    config: MatchConfig | None = None,
    rng: random.Random | None = None,
    now: int | None = None,
) -> GameState:
    """
    Set up a two-player match ready for play.

    Args:
        player1_name: Name of the opening player
        player2_name: Name of the second player
        config: Wall count, turn duration and column policy
        rng: Random source for the RANDOM column policy
        now: Wall-clock milliseconds for the opening timestamp

    Returns:
        Initial GameState with player 1 on turn
    """
    config = config or MatchConfig()
    col = opening_column(config, rng)
    players = {
        1: make_player(1, player1_name, col, config.walls_per_player),
        2: make_player(2, player2_name, mirrored_column(col), config.walls_per_player),
    }
    return GameState(
        players=players,
        current_player_id=1,
        turn_time=config.turn_duration,
        timestamp=now if now is not None else int(time.time() * 1000),
    )


def create_waiting_state(
    host_name: str,
    config: MatchConfig | None = None,
    rng: random.Random | None = None,
    now: int | None = None,
) -> GameState:
    """Host-only snapshot published while an online match waits for a joiner."""
    config = config or MatchConfig()
    host = make_player(1, host_name, opening_column(config, rng), config.walls_per_player)
    return GameState(
        players={1: host},
        current_player_id=1,
        turn_time=config.turn_duration,
        timestamp=now if now is not None else int(time.time() * 1000),
    )


def seat_second_player(state: GameState, name: str, now: int | None = None) -> GameState:
    """
    Add player 2 to a waiting match.

    The joiner mirrors the host's column and receives the host's wall
    count, whatever the joiner's own preferences were.
    """
    if state.phase != GamePhase.WAITING_FOR_PLAYERS or 1 not in state.players:
        raise ValueError("Match is not waiting for a second player")

    host = state.players[1]
    joiner = make_player(2, name, mirrored_column(host.position.col), host.walls_left)
    stamp = now if now is not None else int(time.time() * 1000)
    return state.with_player(joiner)._copy_with(timestamp=max(stamp, state.timestamp + 1))
