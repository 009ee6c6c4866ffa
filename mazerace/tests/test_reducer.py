"""
Tests for the reducer (state transitions).

Tests:
- Action application
- Turn bookkeeping and the logical clock
- Validation and error codes
- Timers and match setup
"""

import random

import pytest

from ..config import MatchConfig, StartPosition
from ..engine_core.action import Action, ErrorCode
from ..engine_core.reducer import apply_action, tick
from ..engine_core.setup import create_match, create_waiting_state, new_game_id, seat_second_player
from ..engine_core.state import GamePhase, Orientation, Position, Wall


class TestMoveAction:
    """Tests for pawn moves."""

    def test_move_updates_position(self, opening_state, reducer):
        result = reducer.apply(opening_state, Action.move(Position(7, 4)), 1)

        assert result.success
        assert result.new_state.players[1].position == Position(7, 4)
        assert result.state_changes

    def test_move_passes_turn(self, opening_state, reducer):
        state = opening_state._copy_with(turn_time=12)
        new_state = reducer.apply(state, Action.move(Position(7, 4)), 1).new_state

        assert new_state.current_player_id == 2
        assert new_state.turn_number == 1
        assert new_state.turn_time == 60
        assert new_state.timestamp == 5000

    def test_timestamp_never_goes_back(self, make_state, reducer):
        state = make_state(timestamp=9000)
        new_state = reducer.apply(state, Action.move(Position(7, 4)), 1).new_state
        assert new_state.timestamp == 9001

    def test_illegal_move_is_noop(self, opening_state, reducer):
        result = reducer.apply(opening_state, Action.move(Position(6, 4)), 1)

        assert not result.success
        assert result.error_code == ErrorCode.ILLEGAL_MOVE
        assert result.new_state is opening_state

    def test_move_off_board(self, opening_state, reducer):
        result = reducer.apply(opening_state, Action.move(Position(9, 4)), 1)
        assert result.error_code == ErrorCode.ILLEGAL_MOVE

    def test_wrong_player(self, opening_state, reducer):
        result = reducer.apply(opening_state, Action.move(Position(1, 4)), 2)

        assert not result.success
        assert result.error_code == ErrorCode.NOT_YOUR_TURN
        assert result.new_state is opening_state

    def test_jump_move(self, make_state, reducer):
        state = make_state(p1=(4, 4), p2=(3, 4))
        result = reducer.apply(state, Action.move(Position(2, 4)), 1)
        assert result.success

    def test_reaching_goal_wins(self, make_state, reducer):
        state = make_state(p1=(1, 2), turn_number=20)
        result = reducer.apply(state, Action.move(Position(0, 2)), 1)

        assert result.success
        new_state = result.new_state
        assert new_state.winner.id == 1
        assert new_state.phase == GamePhase.FINISHED
        assert new_state.current_player_id == 1
        assert new_state.turn_number == 21

    def test_no_actions_after_win(self, make_state, reducer):
        state = make_state(p1=(1, 2))
        won = reducer.apply(state, Action.move(Position(0, 2)), 1).new_state

        for action, pid in (
            (Action.move(Position(1, 4)), 2),
            (Action.place_wall(4, 4, "horizontal"), 2),
            (Action.timeout(), 1),
            (Action.forfeit(), 1),
        ):
            result = reducer.apply(won, action, pid)
            assert result.error_code == ErrorCode.GAME_OVER
            assert result.new_state is won


class TestPlaceWallAction:
    """Tests for wall placement."""

    def test_wall_is_appended(self, opening_state, reducer):
        result = reducer.apply(opening_state, Action.place_wall(4, 4, Orientation.HORIZONTAL), 1)

        assert result.success
        new_state = result.new_state
        assert new_state.walls == (Wall(4, 4, Orientation.HORIZONTAL, 1),)
        assert new_state.players[1].walls_left == 9
        assert new_state.players[2].walls_left == 10
        assert new_state.current_player_id == 2
        assert new_state.turn_number == 1

    def test_walls_keep_insertion_order(self, opening_state, reducer):
        state = reducer.apply(opening_state, Action.place_wall(4, 4, "horizontal"), 1).new_state
        state = reducer.apply(state, Action.place_wall(2, 1, "vertical"), 2).new_state
        assert [w.key for w in state.walls] == [
            (4, 4, Orientation.HORIZONTAL),
            (2, 1, Orientation.VERTICAL),
        ]
        assert [w.owner_id for w in state.walls] == [1, 2]

    def test_no_walls_remaining(self, make_state, reducer):
        state = make_state(walls_left=0)
        result = reducer.apply(state, Action.place_wall(4, 4, "horizontal"), 1)

        assert result.error_code == ErrorCode.NO_WALLS_REMAINING
        assert result.new_state is state

    def test_illegal_wall_reports_reason(self, make_state, reducer):
        state = make_state(walls=[Wall.horizontal(4, 4, 2)])
        result = reducer.apply(state, Action.place_wall(4, 5, "horizontal"), 1)

        assert result.error_code == ErrorCode.ILLEGAL_WALL_PLACEMENT
        assert result.details["reason"] == "overlap"

    def test_trapping_wall_not_appended(self, make_state, reducer):
        state = make_state(p2=(0, 0), walls=[Wall.vertical(0, 1, 2)])
        result = reducer.apply(state, Action.place_wall(2, 0, "horizontal"), 1)

        assert not result.success
        assert result.error_code == ErrorCode.ILLEGAL_WALL_PLACEMENT
        assert result.details["reason"] == "would-trap-2"
        assert result.details["trapped_player_id"] == 2
        assert "Bob" in result.error
        assert len(result.new_state.walls) == 1


class TestEndings:
    """Tests for timeout and forfeit."""

    def test_timeout_current_player_loses(self, opening_state, reducer):
        # Either peer may report it
        for reporter in (1, 2):
            result = reducer.apply(opening_state, Action.timeout(), reporter)
            assert result.success
            assert result.new_state.winner.id == 2

    def test_timeout_keeps_turn_number(self, make_state, reducer):
        state = make_state(turn_number=7, timestamp=100)
        new_state = reducer.apply(state, Action.timeout(), 1).new_state

        assert new_state.turn_number == 7
        assert new_state.timestamp == 5000
        assert new_state.is_over

    def test_forfeit_acting_player_loses(self, opening_state, reducer):
        result = reducer.apply(opening_state, Action.forfeit(), 2)

        assert result.success
        assert result.new_state.winner.id == 1
        assert result.new_state.turn_number == opening_state.turn_number

    def test_unknown_player(self, opening_state, reducer):
        result = reducer.apply(opening_state, Action.forfeit(), 3)
        assert result.error_code == ErrorCode.UNKNOWN_PLAYER

    def test_waiting_game_rejects_actions(self, reducer):
        state = create_waiting_state("Host", now=100)
        result = reducer.apply(state, Action.move(Position(7, 4)), 1)

        assert result.error_code == ErrorCode.GAME_NOT_STARTED
        assert result.new_state is state


class TestTimers:
    """Tests for the local timer step."""

    def test_tick_counts_down(self, opening_state):
        state = tick(opening_state, 5)
        assert state.turn_time == 55
        assert state.game_time == 5
        assert state.clock() == opening_state.clock()

    def test_tick_floors_at_zero(self, opening_state):
        assert tick(opening_state, 500).turn_time == 0

    def test_tick_ignores_finished_game(self, opening_state):
        finished = opening_state._copy_with(winner=opening_state.players[2])
        assert tick(finished, 5) is finished

    def test_turn_duration_from_config(self, opening_state):
        config = MatchConfig(turn_duration=15)
        result = apply_action(opening_state, Action.move(Position(7, 4)), 1, config)
        assert result.new_state.turn_time == 15


class TestSetup:
    """Tests for match setup."""

    def test_center_start(self):
        state = create_match("A", "B", now=42)

        assert state.players[1].position == Position(8, 4)
        assert state.players[2].position == Position(0, 4)
        assert state.players[1].goal_row == 0
        assert state.players[2].goal_row == 8
        assert state.current_player_id == 1
        assert state.turn_number == 0
        assert state.timestamp == 42
        assert state.phase == GamePhase.IN_PROGRESS

    def test_random_start_is_mirrored(self):
        config = MatchConfig(start_position=StartPosition.RANDOM)
        for seed in range(10):
            state = create_match(config=config, rng=random.Random(seed))
            assert state.players[1].position.col + state.players[2].position.col == 8

    def test_walls_from_config(self):
        state = create_match(config=MatchConfig(walls_per_player=4))
        assert state.players[1].walls_left == 4
        assert state.players[2].walls_left == 4

    def test_seat_second_player(self):
        config = MatchConfig(start_position=StartPosition.RANDOM, walls_per_player=6)
        waiting = create_waiting_state("Host", config, random.Random(3), now=100)
        assert waiting.phase == GamePhase.WAITING_FOR_PLAYERS

        joined = seat_second_player(waiting, "Guest", now=50)
        guest = joined.players[2]
        assert joined.phase == GamePhase.IN_PROGRESS
        assert guest.position == Position(0, 8 - waiting.players[1].position.col)
        assert guest.walls_left == 6
        assert joined.timestamp == 101

    def test_cannot_seat_into_full_game(self, opening_state):
        with pytest.raises(ValueError):
            seat_second_player(opening_state, "Late")

    def test_game_ids(self):
        game_id = new_game_id(random.Random(1))
        assert len(game_id) == 6
        assert game_id.isalnum()
        assert new_game_id(random.Random(1)) == game_id
