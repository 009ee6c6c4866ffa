"""
Action System - Actions, error codes, and results.

Actions represent:
1. Player turns (move the pawn, place a wall)
2. Match endings (turn timer ran out, a player forfeited)

All state changes flow through actions. Rule violations come back as
an ActionResult value carrying the unchanged prior state, never as an
exception, so a caller can simply try a different action.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import GameState, Orientation, Position, Wall


class ActionType(Enum):
    """Types of actions in the system."""
    MOVE = "MOVE"
    PLACE_WALL = "PLACE_WALL"
    TIMEOUT = "TIMEOUT"
    FORFEIT = "FORFEIT"


# Actions that consume the acting player's turn
TURN_ACTIONS = frozenset({ActionType.MOVE, ActionType.PLACE_WALL})


class ErrorCode(str, Enum):
    """Why an action was not applied."""
    ILLEGAL_MOVE = "ILLEGAL_MOVE"
    ILLEGAL_WALL_PLACEMENT = "ILLEGAL_WALL_PLACEMENT"
    NO_WALLS_REMAINING = "NO_WALLS_REMAINING"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    GAME_OVER = "GAME_OVER"
    GAME_NOT_STARTED = "GAME_NOT_STARTED"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"


@dataclass(frozen=True)
class Action:
    """
    A complete action to be applied to the game state.

    `to` is set for MOVE, `wall` for PLACE_WALL. The wall's owner is
    stamped by the reducer from the acting player.
    """
    action_type: ActionType
    to: Position | None = None
    wall: Wall | None = None

    @classmethod
    def move(cls, to: Position) -> Action:
        """Factory for a pawn move."""
        return cls(action_type=ActionType.MOVE, to=to)

    @classmethod
    def place_wall(cls, row: int, col: int, orientation: Orientation | str) -> Action:
        """Factory for a wall placement."""
        return cls(
            action_type=ActionType.PLACE_WALL,
            wall=Wall(row, col, Orientation(orientation)),
        )

    @classmethod
    def timeout(cls) -> Action:
        return cls(action_type=ActionType.TIMEOUT)

    @classmethod
    def forfeit(cls) -> Action:
        return cls(action_type=ActionType.FORFEIT)

    def describe(self) -> str:
        if self.action_type == ActionType.MOVE:
            return f"move to {self.to}"
        if self.action_type == ActionType.PLACE_WALL and self.wall:
            return f"{self.wall.orientation.value} wall at ({self.wall.row},{self.wall.col})"
        return self.action_type.value.lower()


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (the prior state, unchanged, when it did not)
    - Error and machine-readable code (if failed)
    - Human-readable changes (for UI/logs)
    """
    success: bool
    new_state: GameState
    error: str | None = None
    error_code: ErrorCode | None = None
    details: dict[str, Any] = field(default_factory=dict)

    # For UI/presentation
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(
        cls,
        state: GameState,
        error: str,
        error_code: ErrorCode,
        **details: Any,
    ) -> ActionResult:
        """Create a failure result that hands back the unchanged state."""
        return cls(
            success=False,
            new_state=state,
            error=error,
            error_code=error_code,
            details=details,
        )

    @classmethod
    def success_with_state(
        cls,
        state: GameState,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
        )
