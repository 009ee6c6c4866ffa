"""
Bots module - Computer opponents.

Provides:
- BotPolicy: Interface for bot decision-making
- HeuristicEvaluator: Scores choke point walls
- MazeBot: The built-in heuristic opponent
- Personality: Difficulty-tuned play styles
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, fallback_action, resolve_decision
from .evaluator import HeuristicEvaluator, WallCandidate, find_best_blocking_wall
from .personality import Difficulty, Personality, PERSONALITIES, personality_for
from .maze_bot import AiAction, AiActionType, MazeBot, choose_action

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "fallback_action",
    "resolve_decision",
    "HeuristicEvaluator",
    "WallCandidate",
    "find_best_blocking_wall",
    "Difficulty",
    "Personality",
    "PERSONALITIES",
    "personality_for",
    "AiAction",
    "AiActionType",
    "MazeBot",
    "choose_action",
]
