"""
Bot Policy - Interface for bot decision-making.

A BotPolicy takes a game state and returns a decision.
Decisions include:
- Which action to take (None means the bot passes)
- Explanation text shown next to the board
- How many candidates were weighed

Any move supplier plugs in here, including remote ones backed by a
language model. Their proposals are never trusted: resolve_decision
replays them through the engine and falls back to a safe move.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
import random
from typing import Any

from ..config import MatchConfig
from ..engine_core.action import Action, ActionResult, ErrorCode
from ..engine_core.action_generator import legal_actions, player_moves
from ..engine_core.pathfinding import shortest_path
from ..engine_core.reducer import Reducer
from ..engine_core.state import GameState

logger = logging.getLogger(__name__)


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The action to take
    - Explanation (for UI/debugging)
    - Confidence in the decision
    """
    action: Action | None
    explanation: str = ""
    confidence: float = 1.0

    # Evaluation details (for debugging)
    evaluated_actions: int = 0
    best_score: float = 0.0
    evaluation_details: dict[str, Any] = field(default_factory=dict)


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects actions.
    Implementations can range from simple heuristics
    to remote move suppliers.
    """

    @abstractmethod
    def select_action(self, state: GameState) -> BotDecision:
        """
        Select an action for the player on turn.

        Args:
            state: Current game state

        Returns:
            BotDecision with the selected action
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """
    Random policy - selects legal actions uniformly at random.

    Used for:
    - Property tests over reachable states
    - Chaos self-play
    """

    def __init__(self, seed: int | None = None, include_walls: bool = True):
        self.rng = random.Random(seed)
        self.include_walls = include_walls

    def select_action(self, state: GameState) -> BotDecision:
        actions = legal_actions(state, include_walls=self.include_walls)
        if not actions:
            raise ValueError("No legal actions available")

        action = self.rng.choice(actions)
        return BotDecision(
            action=action,
            explanation="Selected randomly",
            confidence=1.0 / len(actions),
            evaluated_actions=len(actions),
        )


def fallback_action(state: GameState, player_id: int) -> Action | None:
    """Next step on the player's own shortest route, else any legal move."""
    player = state.get_player(player_id)
    opponent = state.get_opponent(player_id)
    if player is None or opponent is None:
        return None

    path = shortest_path(player.position, player.goal_row, state.walls, opponent.position)
    if path and len(path) > 1:
        return Action.move(path[1])

    moves = player_moves(state, player_id)
    return Action.move(moves[0]) if moves else None


def resolve_decision(
    state: GameState,
    decision: BotDecision,
    player_id: int,
    config: MatchConfig | None = None,
) -> ActionResult:
    """
    Apply a bot decision, recovering from bad proposals.

    A proposal can be stale (computed against an older snapshot) or just
    wrong. Rejections are logged and replaced by the fallback move so
    the match always advances.
    """
    reducer = Reducer(config=config or MatchConfig())

    if decision.action is not None:
        result = reducer.apply(state, decision.action, player_id)
        if result.success:
            return result
        # Nothing a different move could fix
        if result.error_code in (ErrorCode.GAME_OVER, ErrorCode.NOT_YOUR_TURN, ErrorCode.GAME_NOT_STARTED):
            return result
        logger.info(
            "Bot proposal %s rejected for player %s (%s), falling back",
            decision.action.describe(), player_id, result.error,
        )
    else:
        logger.warning("Bot for player %s passed, falling back to a move", player_id)

    action = fallback_action(state, player_id)
    if action is None:
        return ActionResult.failure(
            state, f"Player {player_id} has no legal move", ErrorCode.ILLEGAL_MOVE
        )
    return reducer.apply(state, action, player_id)
