"""
Bot Personalities - Difficulty-tuned play styles.

Personalities adjust:
- When a blocking wall is worth more than a step forward
- How far along the opponent's route the bot looks for choke points
- How chatty the reasoning text is allowed to be

The thresholds are policy, not rules: any value here produces legal play.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Difficulty(str, Enum):
    """Difficulty levels offered to players."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass
class Personality:
    """
    A bot personality that defines play style.

    A wall score is the opponent's extra path length minus the bot's
    own. A threshold of None means "never wall in that situation".
    """
    name: str
    description: str = ""

    # Wall thresholds (minimum score to prefer the wall over the move)
    behind_threshold: float | None = None  # Own route longer than the opponent's
    ahead_threshold: float | None = None  # Own route no longer than the opponent's
    decisive_threshold: float | None = 1  # Opponent is one move from its goal

    # Choke point search
    lookahead_steps: int = 4

    # Metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    def wants_wall(self, score: float, behind: bool, opponent_distance: int | None) -> bool:
        """Decide between the best wall and the candidate move."""
        if score <= 0:
            return False
        if opponent_distance == 1 and self.decisive_threshold is not None:
            if score >= self.decisive_threshold:
                return True
        threshold = self.behind_threshold if behind else self.ahead_threshold
        return threshold is not None and score >= threshold


# ============================================================================
# Predefined Personalities
# ============================================================================

EASY = Personality(
    name="Easy",
    description="Races for the goal, only walls off an imminent loss",
)


MEDIUM = Personality(
    name="Medium",
    description="Walls only when losing the race and a block helps",
    behind_threshold=1,
)


HARD = Personality(
    name="Hard",
    description="Walls whenever behind, and when ahead if the block is decisive",
    behind_threshold=1,
    ahead_threshold=3,
)


# All predefined personalities
PERSONALITIES: dict[Difficulty, Personality] = {
    Difficulty.EASY: EASY,
    Difficulty.MEDIUM: MEDIUM,
    Difficulty.HARD: HARD,
}


def personality_for(difficulty: Difficulty | str) -> Personality:
    """Look up the preset for a difficulty name or enum."""
    return PERSONALITIES[Difficulty(difficulty)]
