"""
Maze Bot - Heuristic opponent for the maze race.

This is the built-in bot that:
- Follows its own shortest route by default
- Looks for choke point walls along the opponent's route
- Lets a difficulty personality decide between wall and step
- Explains itself with a short line of banter

The bot does NOT:
- Search more than one ply
- Remember anything between turns
- Consider walls away from the opponent's route
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable
import random

from ..engine_core.action import Action
from ..engine_core.action_generator import legal_moves
from ..engine_core.state import GameState, Orientation, Player, Position, Wall
from .evaluator import HeuristicEvaluator, route
from .personality import Difficulty, Personality, personality_for
from .policy import BotDecision, BotPolicy

MESSAGE_TEMPLATES: dict[str, list[str]] = {
    "winning": [
        "The finish line is right there.",
        "Only a few more steps.",
        "You can see where this is going.",
        "Keep watching, this ends soon.",
    ],
    "losing": [
        "You are better at this than I thought.",
        "Time to rethink the plan.",
        "It is not over yet.",
        "Interesting. Let me catch up.",
    ],
    "blocking": [
        "Blocked! Find another way.",
        "This road is closed.",
        "Enjoy the detour.",
        "Not through here, sorry.",
    ],
    "jumping": [
        "Hopping right over you.",
        "Excuse me, coming through.",
        "A little leap to save time.",
        "Leapfrog!",
    ],
    "default": [
        "Step by step.",
        "Moving forward.",
        "On the advance.",
        "A simple move for now.",
    ],
    "trapped": [
        "I seem to be stuck.",
        "Well, this is awkward.",
        "You have cornered me. For now.",
    ],
}


class AiActionType(str, Enum):
    """What the bot proposes."""
    MOVE = "MOVE"
    PLACE_WALL = "PLACE_WALL"
    PASS = "PASS"


@dataclass(frozen=True)
class AiAction:
    """
    A bot proposal.

    For MOVE, position is the destination. For PLACE_WALL it is the
    wall's groove and orientation is set. Reasoning is UI-only text.
    """
    action: AiActionType
    position: Position | None = None
    orientation: Orientation | None = None
    reasoning: str = ""
    score: float = 0.0

    @property
    def wall(self) -> Wall | None:
        if self.action != AiActionType.PLACE_WALL or self.position is None or self.orientation is None:
            return None
        return Wall(self.position.row, self.position.col, self.orientation)

    def to_action(self) -> Action | None:
        """Engine action for this proposal; None for PASS."""
        if self.action == AiActionType.MOVE and self.position is not None:
            return Action.move(self.position)
        wall = self.wall
        if wall is not None:
            return Action.place_wall(wall.row, wall.col, wall.orientation)
        return None


def pick_message(category: str, rng: random.Random | None = None) -> str:
    return (rng or random).choice(MESSAGE_TEMPLATES[category])


def _is_jump(start: Position, end: Position) -> bool:
    return abs(start.row - end.row) + abs(start.col - end.col) > 1


def choose_action(
    me: Player,
    opponent: Player,
    walls: Iterable[Wall],
    difficulty: Difficulty | str = Difficulty.MEDIUM,
    rng: random.Random | None = None,
    personality: Personality | None = None,
) -> AiAction:
    """
    Propose one action for `me`.

    1. Next step on the bot's own shortest route (any legal move if
       there is no route, PASS if there is no move at all)
    2. With walls in hand, search choke points on the opponent's route
    3. The personality decides whether the best wall beats the step
    """
    walls = tuple(walls)
    personality = personality or personality_for(difficulty)

    my_path = route(me, opponent, walls)
    candidate = my_path[1] if my_path and len(my_path) > 1 else None
    if candidate is None:
        moves = legal_moves(me.position, walls, opponent.position)
        candidate = moves[0] if moves else None
    if candidate is None:
        return AiAction(AiActionType.PASS, reasoning=pick_message("trapped", rng))

    move = AiAction(
        AiActionType.MOVE,
        position=candidate,
        reasoning=pick_message("jumping" if _is_jump(me.position, candidate) else "default", rng),
    )
    if me.walls_left <= 0:
        return move

    my_length = len(my_path) - 1 if my_path else None
    opponent_path = route(opponent, me, walls)
    opponent_length = len(opponent_path) - 1 if opponent_path else None

    walls_possible = (
        personality.behind_threshold is not None
        or personality.ahead_threshold is not None
        or opponent_length == 1
    )
    if walls_possible:
        best = HeuristicEvaluator(personality.lookahead_steps).find_best_blocking_wall(me, opponent, walls)
        behind = (
            my_length is None
            or (opponent_length is not None and my_length > opponent_length)
        )
        if best is not None and personality.wants_wall(best.score, behind, opponent_length):
            return AiAction(
                AiActionType.PLACE_WALL,
                position=Position(best.wall.row, best.wall.col),
                orientation=best.wall.orientation,
                reasoning=pick_message("blocking", rng),
                score=best.score,
            )

    if my_length is not None and my_length <= 2:
        return AiAction(move.action, move.position, reasoning=pick_message("winning", rng))
    if my_length is not None and opponent_length is not None and my_length > opponent_length + 2:
        return AiAction(move.action, move.position, reasoning=pick_message("losing", rng))
    return move


@dataclass
class MazeBot(BotPolicy):
    """
    Built-in opponent driven by choose_action.

    Usage:
        bot = MazeBot(player_id=2, difficulty=Difficulty.HARD)
        decision = bot.select_action(state)
        print(decision.explanation)
    """
    player_id: int
    difficulty: Difficulty = Difficulty.MEDIUM
    personality: Personality | None = None
    rng: random.Random | None = None

    def __post_init__(self):
        self.difficulty = Difficulty(self.difficulty)
        if self.personality is None:
            self.personality = personality_for(self.difficulty)
        if self.rng is None:
            self.rng = random.Random()

    def select_action(self, state: GameState) -> BotDecision:
        """Propose an action from this bot's seat."""
        me = state.get_player(self.player_id)
        opponent = state.get_opponent(self.player_id)
        if me is None or opponent is None:
            raise ValueError("Both players must be seated")

        proposal = choose_action(
            me, opponent, state.walls,
            difficulty=self.difficulty,
            rng=self.rng,
            personality=self.personality,
        )
        return BotDecision(
            action=proposal.to_action(),
            explanation=proposal.reasoning,
            best_score=proposal.score,
            evaluation_details={
                "proposal": proposal.action.value,
                "difficulty": self.difficulty.value,
                "personality": self.personality.name,
            },
        )

    def get_name(self) -> str:
        return f"{self.personality.name} bot"
