"""
API Module - Board UI interface.

Exposes the engine via REST API for local play.
A client:
1. Creates a match (hot-seat or against the bot)
2. Fetches legal moves and submits actions
3. Receives state updates over a WebSocket
4. Asks the bot for hints in any position

Matches live in memory. Online play does not go through this API; peers
synchronize directly over a pub/sub channel (see mazerace.session).
"""

from .schemas import (
    # Requests
    ActionRequest,
    CreateMatchRequest,
    HintRequest,
    TickRequest,
    # Responses
    ActionResponse,
    EndMatchResponse,
    ErrorResponse,
    GameStateInfo,
    HintResponse,
    LegalMovesResponse,
    MatchListResponse,
    MatchResponse,
    # Shared
    PlayerInfo,
    PositionInfo,
    WallInfo,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "ActionRequest",
    "CreateMatchRequest",
    "HintRequest",
    "TickRequest",
    # Responses
    "ActionResponse",
    "EndMatchResponse",
    "ErrorResponse",
    "GameStateInfo",
    "HintResponse",
    "LegalMovesResponse",
    "MatchListResponse",
    "MatchResponse",
    # Shared
    "PlayerInfo",
    "PositionInfo",
    "WallInfo",
    # Service
    "APIService",
    "create_app",
]
