"""
Action Generator - Legal pawn destinations and legal actions.

The action generator is used by:
1. The reducer to validate MOVE actions
2. Pathfinding, so jumps count when an opponent is on the board
3. Bots to enumerate candidate actions
4. The API to highlight reachable cells
"""

from __future__ import annotations
from dataclasses import dataclass

from .action import Action
from .pathfinding import DIRECTIONS, Walls, as_index
from .state import BOARD_SIZE, GamePhase, GameState, Position, Wall
from .walls import all_grooves, check_wall


def legal_moves(pos: Position, walls: Walls, opponent_pos: Position) -> list[Position]:
    """
    Legal pawn destinations from pos.

    - A plain step to a free, unblocked neighbour
    - A straight jump over an adjacent opponent when nothing blocks it
    - Otherwise the two diagonal side-steps around the opponent

    The opponent's own cell is never included. The result has no
    duplicates and follows the up, down, left, right visiting order.
    """
    index = as_index(walls)
    moves: list[Position] = []

    def add(candidate: Position):
        if candidate != opponent_pos and candidate not in moves:
            moves.append(candidate)

    for d_row, d_col in DIRECTIONS:
        step = pos.offset(d_row, d_col)
        if not step.in_bounds() or index.blocks(pos, step):
            continue

        if step != opponent_pos:
            add(step)
            continue

        jump = step.offset(d_row, d_col)
        if jump.in_bounds() and not index.blocks(step, jump):
            add(jump)
            continue

        # Straight jump is blocked: side-step perpendicular to the jump axis
        side_steps = ((0, -1), (0, 1)) if d_col == 0 else ((-1, 0), (1, 0))
        for s_row, s_col in side_steps:
            diagonal = step.offset(s_row, s_col)
            if diagonal.in_bounds() and not index.blocks(step, diagonal):
                add(diagonal)

    return moves


def player_moves(state: GameState, player_id: int) -> list[Position]:
    """Legal destinations for a seated player in the given state."""
    player = state.get_player(player_id)
    opponent = state.get_opponent(player_id)
    if player is None or opponent is None:
        return []
    return legal_moves(player.position, state.walls, opponent.position)


def legal_wall_placements(state: GameState, player_id: int) -> list[Wall]:
    """Every wall the player could place right now."""
    p1, p2 = state.get_player(1), state.get_player(2)
    if p1 is None or p2 is None:
        return []
    placer = state.get_player(player_id)
    if placer is None or placer.walls_left <= 0:
        return []
    return [
        groove.owned_by(player_id)
        for groove in all_grooves(BOARD_SIZE)
        if check_wall(groove, state.walls, p1, p2, player_id) is None
    ]


@dataclass
class ActionGenerator:
    """
    Generates legal actions for the current game state.

    Wall enumeration runs the trap rule for every groove, so callers
    that only need moves can turn it off.
    """
    include_walls: bool = True

    def generate(self, state: GameState) -> list[Action]:
        """
        Generate all legal actions for the current player.

        Returns a list of fully-specified Action objects.
        """
        if state.phase != GamePhase.IN_PROGRESS:
            return []

        player_id = state.current_player_id
        actions = [Action.move(dest) for dest in player_moves(state, player_id)]

        if self.include_walls:
            actions.extend(
                Action.place_wall(w.row, w.col, w.orientation)
                for w in legal_wall_placements(state, player_id)
            )

        return actions


def legal_actions(state: GameState, include_walls: bool = True) -> list[Action]:
    """Convenience function to generate legal actions."""
    return ActionGenerator(include_walls=include_walls).generate(state)
