"""
Configuration - Match settings and process-wide environment.

Match settings are plain values shared by both peers of an online game
(wall count, turn duration) or local to one client (poll interval,
request deadlines). Environment variables override the defaults:

    MAZERACE_ENV              development | production
    MAZERACE_LOG_LEVEL        DEBUG, INFO, WARNING...
    ALLOWED_ORIGINS           comma separated CORS origins for the API
    MAZERACE_WALLS            walls per player
    MAZERACE_TURN_SECONDS     turn duration in seconds
    MAZERACE_START_POSITION   center | random
    MAZERACE_POLL_INTERVAL    reconciliation poll period in seconds
    MAZERACE_TOPIC_PREFIX     prefix for all channel topics
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
import logging
import os

MAZERACE_ENV = os.getenv("MAZERACE_ENV", "development")
LOG_LEVEL = os.getenv("MAZERACE_LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


class StartPosition(str, Enum):
    """Column policy for the opening position."""
    CENTER = "center"  # Both pawns on the middle column
    RANDOM = "random"  # Random column for player 1, mirrored for player 2


@dataclass(frozen=True)
class MatchConfig:
    """
    Settings for one match.

    Durations are in seconds.
    """
    walls_per_player: int = 10
    turn_duration: int = 60
    start_position: StartPosition = StartPosition.CENTER

    # Online synchronization
    topic_prefix: str = "mazerace/v3"
    poll_interval: float = 1.0
    fetch_timeout: float = 0.95  # Just under the poll interval
    join_timeout: float = 8.0
    create_deadline: float = 5 * 60
    search_deadline: float = 3 * 60
    leave_grace: float = 0.2

    # Simulated bot "thinking" (min, max)
    thinking_delay: tuple[float, float] = (1.0, 2.0)

    def with_overrides(self, **kwargs) -> MatchConfig:
        """Return a copy with some settings replaced."""
        return replace(self, **kwargs)

    @classmethod
    def from_env(cls) -> MatchConfig:
        """Build a config from MAZERACE_* environment variables."""
        defaults = cls()
        return cls(
            walls_per_player=int(os.getenv("MAZERACE_WALLS", defaults.walls_per_player)),
            turn_duration=int(os.getenv("MAZERACE_TURN_SECONDS", defaults.turn_duration)),
            start_position=StartPosition(
                os.getenv("MAZERACE_START_POSITION", defaults.start_position.value).lower()
            ),
            topic_prefix=os.getenv("MAZERACE_TOPIC_PREFIX", defaults.topic_prefix),
            poll_interval=float(os.getenv("MAZERACE_POLL_INTERVAL", defaults.poll_interval)),
        )


_logging_configured = False


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once per process."""
    global _logging_configured
    if _logging_configured:
        return
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    _logging_configured = True
