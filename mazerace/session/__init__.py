"""
Session Module - Local matches and online synchronization.

A local session represents one match on one device:
- Created when the user starts a game (hot-seat or against the bot)
- Holds the current game state
- Runs bot turns
- Dropped when the game ends

Online matches have no session object and no server. Each peer runs a
SyncCoordinator over a publish/subscribe channel and the lobby helpers
to find or create a match.
"""

from .channel import (
    ChannelTimeout,
    InMemoryBroker,
    InMemoryChannel,
    PubSubChannel,
    Subscription,
    UnreliableChannel,
)
from .coordinator import SyncCoordinator
from .game_loop import GameLoop, LoopState, OnlineBotLoop, TurnResult
from .lobby import MatchAssignment, create_game, find_match, join_game, wait_for_opponent
from .manager import MatchMode, Session, SessionManager, SessionState
from .perspective import BoardView, Perspective
from .wire import InvalidSnapshot, decode_snapshot, encode_snapshot

__all__ = [
    "ChannelTimeout",
    "InMemoryBroker",
    "InMemoryChannel",
    "PubSubChannel",
    "Subscription",
    "UnreliableChannel",
    "SyncCoordinator",
    "GameLoop",
    "LoopState",
    "OnlineBotLoop",
    "TurnResult",
    "MatchAssignment",
    "create_game",
    "find_match",
    "join_game",
    "wait_for_opponent",
    "MatchMode",
    "Session",
    "SessionManager",
    "SessionState",
    "BoardView",
    "Perspective",
    "InvalidSnapshot",
    "decode_snapshot",
    "encode_snapshot",
]
