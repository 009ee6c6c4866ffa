"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a board UI and the engine.
All responses include explicit types for OpenAPI schema generation.
Coordinates are canonical (player 1 starts on row 8, player 2 on row 0).

Error Codes (HTTP errors):
- MATCH_NOT_FOUND: Match does not exist or was deleted
- VALIDATION_ERROR: Request body is malformed
- INTERNAL_ERROR: Unexpected failure

Refused game actions are NOT HTTP errors: POST .../actions answers 200
with success=false and the engine's code (ILLEGAL_MOVE, NOT_YOUR_TURN...).
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class MatchStatus(str, Enum):
    """Match status values."""
    YOUR_TURN = "your_turn"
    BOT_TURN = "bot_turn"
    GAME_OVER = "game_over"


class ModeParam(str, Enum):
    PVP = "pvp"
    PVC = "pvc"


class DifficultyParam(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class StartPositionParam(str, Enum):
    CENTER = "center"
    RANDOM = "random"


class OrientationParam(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class ActionKind(str, Enum):
    """Actions a player can submit."""
    MOVE = "move"
    WALL = "wall"
    FORFEIT = "forfeit"


# =============================================================================
# Shared Models
# =============================================================================

class PositionInfo(BaseModel):
    """A board cell."""
    row: int = Field(..., ge=0, le=8)
    col: int = Field(..., ge=0, le=8)

    model_config = {"from_attributes": True}


class WallInfo(BaseModel):
    """A placed (or proposed) wall."""
    row: int
    col: int
    orientation: OrientationParam
    owner_id: int = Field(0, description="Player who placed it, 0 if unknown")


class PlayerInfo(BaseModel):
    """Player information for display."""
    id: int = Field(..., ge=1, le=2)
    name: str
    color: str = ""
    position: PositionInfo
    walls_left: int = Field(..., ge=0)
    goal_row: int = Field(..., ge=0, le=8)
    is_bot: bool = False


class GameStateInfo(BaseModel):
    """Complete board state for display."""
    phase: str = Field(description="waiting_for_players, in_progress, finished")
    players: list[PlayerInfo] = Field(default_factory=list)
    walls: list[WallInfo] = Field(default_factory=list)
    current_player_id: int
    winner_id: Optional[int] = None
    game_time: int = 0
    turn_time: int = 0
    turn_number: int = 0
    timestamp: int = 0


# =============================================================================
# Request Models
# =============================================================================

class CreateMatchRequest(BaseModel):
    """Request to start a local match."""
    mode: ModeParam = Field(ModeParam.PVC, description="pvp (hot-seat) or pvc (against the bot)")
    player1_name: str = Field("Player 1", min_length=1, max_length=40)
    player2_name: Optional[str] = Field(None, max_length=40, description="Defaults by mode")
    difficulty: DifficultyParam = Field(DifficultyParam.MEDIUM, description="Bot difficulty for pvc")
    walls_per_player: int = Field(10, ge=0, le=20)
    turn_duration: int = Field(60, ge=5, le=600, description="Seconds per turn")
    start_position: StartPositionParam = StartPositionParam.CENTER
    seed: Optional[int] = Field(None, description="Seed for reproducible matches")


class ActionRequest(BaseModel):
    """A move, wall placement or forfeit."""
    type: ActionKind
    row: Optional[int] = Field(None, description="Destination row, or wall row")
    col: Optional[int] = Field(None, description="Destination column, or wall column")
    orientation: Optional[OrientationParam] = Field(None, description="Required for walls")
    player_id: Optional[int] = Field(None, description="Acting seat; defaults to the player on turn")


class TickRequest(BaseModel):
    """Advance the turn timer."""
    seconds: int = Field(1, ge=1, le=600)


class HintRequest(BaseModel):
    """Ask the bot what it would do in a position."""
    me: PlayerInfo
    opponent: PlayerInfo
    walls: list[WallInfo] = Field(default_factory=list)
    difficulty: DifficultyParam = DifficultyParam.MEDIUM
    seed: Optional[int] = None


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class MatchResponse(BaseModel):
    """Response containing match information."""
    match_id: str
    mode: ModeParam
    status: MatchStatus
    difficulty: Optional[DifficultyParam] = None
    state: GameStateInfo
    last_bot_reasoning: Optional[str] = None
    history: list[str] = Field(default_factory=list)
    created_at: float = 0.0
    api_version: str = "v1"


class MatchListResponse(BaseModel):
    """List of active match IDs."""
    matches: list[str]
    count: int
    api_version: str = "v1"


class EndMatchResponse(BaseModel):
    """Response from deleting a match."""
    success: bool
    match_id: str
    api_version: str = "v1"


class LegalMovesResponse(BaseModel):
    """Legal pawn destinations for the player on turn."""
    match_id: str
    player_id: int
    moves: list[PositionInfo] = Field(default_factory=list)
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Outcome of a submitted action and the bot's answer."""
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = Field(
        None, description="ILLEGAL_MOVE, ILLEGAL_WALL_PLACEMENT, NO_WALLS_REMAINING, NOT_YOUR_TURN..."
    )
    details: dict[str, Any] = Field(default_factory=dict)
    changes: list[str] = Field(default_factory=list)
    bot_actions: list[str] = Field(default_factory=list)
    bot_reasoning: Optional[str] = None
    status: MatchStatus
    state: GameStateInfo
    api_version: str = "v1"


class HintResponse(BaseModel):
    """The bot's proposal for a position."""
    action: str = Field(description="MOVE, PLACE_WALL or PASS")
    position: Optional[PositionInfo] = None
    orientation: Optional[OrientationParam] = None
    reasoning: str = ""
    api_version: str = "v1"


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
