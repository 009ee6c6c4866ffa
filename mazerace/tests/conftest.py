"""
Pytest fixtures for Maze Race tests.
"""

import pytest

from ..config import MatchConfig
from ..engine_core.reducer import Reducer
from ..engine_core.setup import make_player
from ..engine_core.state import GameState, Position, Wall
from ..session.channel import InMemoryBroker


def build_state(
    p1=(8, 4),
    p2=(0, 4),
    walls=(),
    current=1,
    walls_left=10,
    turn_number=0,
    timestamp=1000,
    turn_time=60,
) -> GameState:
    """Two-player state with pawns at the given cells."""
    player1 = make_player(1, "Alice", p1[1], walls_left)
    player2 = make_player(2, "Bob", p2[1], walls_left)
    return GameState(
        players={
            1: player1.moved_to(Position(*p1)),
            2: player2.moved_to(Position(*p2)),
        },
        walls=tuple(walls),
        current_player_id=current,
        turn_time=turn_time,
        timestamp=timestamp,
        turn_number=turn_number,
    )


@pytest.fixture
def make_state():
    """Factory for two-player states."""
    return build_state


@pytest.fixture
def opening_state() -> GameState:
    """Standard opening: both pawns centered, player 1 on turn."""
    return build_state()


@pytest.fixture
def config() -> MatchConfig:
    """Fast settings for async tests."""
    return MatchConfig(
        poll_interval=0.02,
        fetch_timeout=0.01,
        join_timeout=0.05,
        leave_grace=0.01,
        thinking_delay=(0.0, 0.005),
    )


@pytest.fixture
def reducer() -> Reducer:
    """Reducer with a fixed wall clock."""
    return Reducer(config=MatchConfig(), clock=lambda: 5000)


@pytest.fixture
def broker() -> InMemoryBroker:
    return InMemoryBroker()


@pytest.fixture
def corridor_walls() -> tuple[Wall, ...]:
    """Walls fencing row 1 from row 0 everywhere except column 8."""
    return (
        Wall.horizontal(1, 0, 1),
        Wall.horizontal(1, 2, 1),
        Wall.horizontal(1, 4, 2),
        Wall.horizontal(1, 6, 2),
    )
