"""
Reducer - Applies actions to game state.

The reducer is the single point of state transition.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action, acting player) -> new state
- Validates before applying
- Returns ActionResult with success/failure; a refused action hands
  back the prior state untouched so the caller may retry
- One applied action advances the logical clock once
"""

from __future__ import annotations
from dataclasses import dataclass, field
import time
from typing import Callable

from ..config import MatchConfig
from .action import Action, ActionResult, ActionType, ErrorCode, TURN_ACTIONS
from .action_generator import legal_moves
from .state import GamePhase, GameState, opponent_id
from .walls import WallRejection, check_wall


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all state is in GameState.
    Config provides the turn duration used to reset the turn timer.
    """
    config: MatchConfig = field(default_factory=MatchConfig)
    clock: Callable[[], int] = now_ms

    def apply(self, state: GameState, action: Action, acting_player_id: int) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        validation = self._validate_action(state, action, acting_player_id)
        if validation:
            return validation

        handler = self._get_handler(action.action_type)
        return handler(state, action, acting_player_id)

    def _validate_action(
        self,
        state: GameState,
        action: Action,
        acting_player_id: int,
    ) -> ActionResult | None:
        """
        Check preconditions shared by every action.

        Returns a failure result if invalid, None if valid.
        """
        if state.phase == GamePhase.FINISHED:
            return ActionResult.failure(state, "Game is over - no actions allowed", ErrorCode.GAME_OVER)

        if state.phase == GamePhase.WAITING_FOR_PLAYERS:
            return ActionResult.failure(
                state, "Game not started - waiting for an opponent", ErrorCode.GAME_NOT_STARTED
            )

        if acting_player_id not in state.players:
            return ActionResult.failure(
                state, f"Player {acting_player_id} is not in this game", ErrorCode.UNKNOWN_PLAYER
            )

        # Timeouts and forfeits may come from either side
        if action.action_type in TURN_ACTIONS and acting_player_id != state.current_player_id:
            return ActionResult.failure(
                state, f"Not player {acting_player_id}'s turn", ErrorCode.NOT_YOUR_TURN
            )

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.MOVE: self._handle_move,
            ActionType.PLACE_WALL: self._handle_place_wall,
            ActionType.TIMEOUT: self._handle_timeout,
            ActionType.FORFEIT: self._handle_forfeit,
        }
        return handlers[action_type]

    def _handle_move(self, state: GameState, action: Action, player_id: int) -> ActionResult:
        """Handle a pawn move, including the winning one."""
        player = state.players[player_id]
        opponent = state.players[opponent_id(player_id)]

        if action.to is None or action.to not in legal_moves(player.position, state.walls, opponent.position):
            return ActionResult.failure(
                state,
                f"{player.name} cannot move to {action.to}",
                ErrorCode.ILLEGAL_MOVE,
            )

        moved = player.moved_to(action.to)
        new_state = state.with_player(moved)
        changes = [f"{player.name} moved {player.position} -> {action.to}"]

        if moved.has_reached_goal:
            new_state = new_state._copy_with(winner=moved)
            changes.append(f"{player.name} reached the goal row and wins")

        return ActionResult.success_with_state(self._advance(state, new_state, took_turn=True), changes)

    def _handle_place_wall(self, state: GameState, action: Action, player_id: int) -> ActionResult:
        """Handle a wall placement."""
        player = state.players[player_id]
        if action.wall is None:
            return ActionResult.failure(state, "No wall given", ErrorCode.ILLEGAL_WALL_PLACEMENT)

        wall = action.wall.owned_by(player_id)
        violation = check_wall(wall, state.walls, state.players[1], state.players[2], player_id)
        if violation:
            code = (
                ErrorCode.NO_WALLS_REMAINING
                if violation.reason == WallRejection.NO_WALLS_REMAINING
                else ErrorCode.ILLEGAL_WALL_PLACEMENT
            )
            return ActionResult.failure(
                state,
                violation.message,
                code,
                reason=violation.code,
                trapped_player_id=violation.trapped_player_id,
            )

        new_state = state.with_wall(wall).with_player(player.spend_wall())
        return ActionResult.success_with_state(
            self._advance(state, new_state, took_turn=True),
            changes=[f"{player.name} placed a {wall.orientation.value} wall at ({wall.row},{wall.col})"],
        )

    def _handle_timeout(self, state: GameState, action: Action, player_id: int) -> ActionResult:
        """The player on turn ran out of time."""
        loser = state.current_player
        winner = state.players[opponent_id(loser.id)]
        new_state = state._copy_with(winner=winner)
        return ActionResult.success_with_state(
            self._advance(state, new_state),
            changes=[f"{loser.name} ran out of time, {winner.name} wins"],
        )

    def _handle_forfeit(self, state: GameState, action: Action, player_id: int) -> ActionResult:
        """The acting player gives up."""
        loser = state.players[player_id]
        winner = state.players[opponent_id(player_id)]
        new_state = state._copy_with(winner=winner)
        return ActionResult.success_with_state(
            self._advance(state, new_state),
            changes=[f"{loser.name} forfeited, {winner.name} wins"],
        )

    def _advance(self, prior: GameState, new_state: GameState, took_turn: bool = False) -> GameState:
        """
        Turn bookkeeping after an applied action.

        Moves and walls bump the turn number; the turn passes only if
        nobody has won. Timeouts and forfeits keep the turn number, so
        two peers reporting the same ending collide on one turn and are
        ordered by timestamp alone.
        """
        updates = {
            "turn_time": self.config.turn_duration,
            "timestamp": max(self.clock(), prior.timestamp + 1),
        }
        if took_turn:
            updates["turn_number"] = prior.turn_number + 1
        if new_state.winner is None:
            updates["current_player_id"] = opponent_id(prior.current_player_id)
        return new_state._copy_with(**updates)


def apply_action(
    state: GameState,
    action: Action,
    acting_player_id: int,
    config: MatchConfig | None = None,
) -> ActionResult:
    """Convenience function to apply an action."""
    return Reducer(config=config or MatchConfig()).apply(state, action, acting_player_id)


def tick(state: GameState, seconds: int = 1) -> GameState:
    """
    Advance the local timers.

    Only the clocks move; the logical clock is untouched, so a ticked
    state never outranks the snapshot it came from.
    """
    if state.phase != GamePhase.IN_PROGRESS or seconds <= 0:
        return state
    return state._copy_with(
        game_time=state.game_time + seconds,
        turn_time=max(0, state.turn_time - seconds),
    )
