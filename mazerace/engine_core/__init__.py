"""
Engine Core - Deterministic board rules and turn state management.

The engine is the runtime that:
1. Manages the immutable GameState
2. Resolves legal pawn moves (steps, jumps, diagonal jumps)
3. Validates walls, including the no-trap rule
4. Applies actions via the reducer
"""

from .state import BOARD_SIZE, GamePhase, GameState, Orientation, Player, Position, Wall
from .action import Action, ActionType, ActionResult, ErrorCode
from .pathfinding import distance_to_goal, path_exists, shortest_path
from .walls import WallRejection, WallViolation, check_wall, is_legal_wall
from .reducer import Reducer, apply_action, tick
from .action_generator import ActionGenerator, legal_actions, legal_moves, legal_wall_placements
from .setup import create_match, create_waiting_state, seat_second_player

__all__ = [
    "BOARD_SIZE",
    "GamePhase",
    "GameState",
    "Orientation",
    "Player",
    "Position",
    "Wall",
    "Action",
    "ActionType",
    "ActionResult",
    "ErrorCode",
    "distance_to_goal",
    "path_exists",
    "shortest_path",
    "WallRejection",
    "WallViolation",
    "check_wall",
    "is_legal_wall",
    "Reducer",
    "apply_action",
    "tick",
    "ActionGenerator",
    "legal_actions",
    "legal_moves",
    "legal_wall_placements",
    "create_match",
    "create_waiting_state",
    "seat_second_player",
]
