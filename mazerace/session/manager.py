"""
Session Manager - Creates and manages local matches.

LIFECYCLE:
1. A player starts a match: hot-seat (pvp) or against the bot (pvc)
2. During the match:
   - The human submits moves, walls or a forfeit
   - The engine validates and updates the canonical state
   - Bot turns run right after the human's
3. Match ends (goal reached, timeout, forfeit) or the session is deleted

PERSISTENCE RULES:
- Sessions live in memory only
- Nothing survives a restart

Online matches do not use sessions; each peer runs a SyncCoordinator.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import time
from typing import Any
import uuid

from ..bots import BotPolicy, Difficulty, MazeBot
from ..config import MatchConfig
from ..engine_core.setup import create_match
from ..engine_core.state import GameState

logger = logging.getLogger(__name__)


class MatchMode(str, Enum):
    """Who sits in the two seats."""
    PVP = "pvp"  # Two humans sharing one device
    PVC = "pvc"  # Human (player 1) against the bot (player 2)


class SessionState(Enum):
    """State of a local session."""
    ACTIVE = "active"  # Match in progress
    GAME_OVER = "game_over"  # Someone won
    ABANDONED = "abandoned"  # Deleted before the end


@dataclass
class Session:
    """
    A local match.

    Contains:
    - Current canonical game state
    - Bots for computer-controlled seats
    - A short history of what happened, for the UI
    """
    session_id: str
    mode: MatchMode
    created_at: float
    config: MatchConfig
    game_state: GameState

    state: SessionState = SessionState.ACTIVE
    bots: dict[int, BotPolicy] = field(default_factory=dict)
    difficulty: Difficulty | None = None

    # Presentation
    history: list[str] = field(default_factory=list)
    last_bot_reasoning: str | None = None

    # Session metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state == SessionState.ACTIVE

    def is_bot_turn(self) -> bool:
        return (
            self.game_state.winner is None
            and self.game_state.current_player_id in self.bots
        )

    def is_human_turn(self) -> bool:
        return self.game_state.winner is None and not self.is_bot_turn()

    def human_player_ids(self) -> list[int]:
        return [pid for pid in self.game_state.players if pid not in self.bots]


class SessionManager:
    """
    Manages local sessions.

    Responsibilities:
    - Create matches with the requested seats and settings
    - Track active sessions
    - Clean up finished ones

    No persistence - sessions are in-memory only.
    """

    def __init__(self, config: MatchConfig | None = None):
        self.config = config or MatchConfig()
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        mode: MatchMode | str = MatchMode.PVC,
        player1_name: str = "Player 1",
        player2_name: str | None = None,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        config: MatchConfig | None = None,
        seed: int | None = None,
    ) -> Session:
        """
        Create a new local match.

        Args:
            mode: pvp (hot-seat) or pvc (against the bot)
            player1_name: Name of the opening player
            player2_name: Name of the second seat (defaults by mode)
            difficulty: Bot difficulty for pvc matches
            config: Match settings (defaults to the manager's)
            seed: Seed for the column policy and the bot's banter

        Returns:
            New Session with player 1 on turn
        """
        mode = MatchMode(mode)
        difficulty = Difficulty(difficulty)
        config = config or self.config
        rng = random.Random(seed)

        bots: dict[int, BotPolicy] = {}
        if mode == MatchMode.PVC:
            bots[2] = MazeBot(player_id=2, difficulty=difficulty, rng=rng)
            player2_name = player2_name or f"Bot ({difficulty.value.title()})"
        else:
            player2_name = player2_name or "Player 2"

        session = Session(
            session_id=str(uuid.uuid4()),
            mode=mode,
            created_at=time.time(),
            config=config,
            game_state=create_match(player1_name, player2_name, config, rng),
            bots=bots,
            difficulty=difficulty if mode == MatchMode.PVC else None,
        )

        self._sessions[session.session_id] = session
        logger.info("Created %s session %s", mode.value, session.session_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and drop it from memory.

        Returns False if there was no such session.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if reason == "completed" or session.game_state.is_over:
            session.state = SessionState.GAME_OVER
        else:
            session.state = SessionState.ABANDONED
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600):
        """
        Clean up finished sessions older than max_age.

        Called periodically to free memory.
        """
        current_time = time.time()
        to_remove = [
            session_id
            for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
