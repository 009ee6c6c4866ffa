"""
Wire Format - Snapshot and lobby messages exchanged between peers.

Snapshots are JSON documents with camelCase keys:

    {"players": {"1": {...}, "2": {...}}, "walls": [...],
     "currentPlayerId": 1, "winner": null, "gameTime": 0,
     "turnTime": 60, "timestamp": 1700000000000, "turnNumber": 0}

Positions are {"r", "c"}; walls are {"r", "c", "orientation", "playerId"}.
A snapshot replaces the previous one wholesale; nothing is patched.

Incoming snapshots come from an untrusted peer. Decoding re-checks the
board geometry (cells and grooves in bounds, no duplicate, overlapping
or crossing walls, consistent player ids) and refuses anything else.
Reachability is NOT re-verified.
"""

from __future__ import annotations
import logging
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..config import StartPosition
from ..engine_core.state import BOARD_SIZE, GameState, Orientation, Player, Position, Wall
from ..engine_core.walls import check_geometry

logger = logging.getLogger(__name__)

WIRE_MODEL_CONFIG = {"populate_by_name": True, "alias_generator": to_camel}


class InvalidSnapshot(ValueError):
    """A payload that is not a well-formed, geometrically valid snapshot."""


# =============================================================================
# Topics
# =============================================================================

def game_topic(prefix: str, game_id: str) -> str:
    return f"{prefix}/game/{game_id}/state"


def lobby_join_topic(prefix: str) -> str:
    return f"{prefix}/lobby/join"


def lobby_match_topic(prefix: str, lobby_id: str) -> str:
    return f"{prefix}/lobby/match/{lobby_id}"


# =============================================================================
# Snapshot models
# =============================================================================

class PositionModel(BaseModel):
    r: int
    c: int

    @classmethod
    def from_position(cls, position: Position) -> PositionModel:
        return cls(r=position.row, c=position.col)

    def to_position(self) -> Position:
        return Position(self.r, self.c)


class WallModel(BaseModel):
    r: int
    c: int
    orientation: Orientation
    player_id: int = 0

    model_config = WIRE_MODEL_CONFIG

    @classmethod
    def from_wall(cls, wall: Wall) -> WallModel:
        return cls(r=wall.row, c=wall.col, orientation=wall.orientation, player_id=wall.owner_id)

    def to_wall(self) -> Wall:
        return Wall(self.r, self.c, self.orientation, self.player_id)


class PlayerModel(BaseModel):
    id: int
    name: str
    color: str
    position: PositionModel
    walls_left: int = Field(ge=0)
    goal_row: int

    model_config = WIRE_MODEL_CONFIG

    @classmethod
    def from_player(cls, player: Player) -> PlayerModel:
        return cls(
            id=player.id,
            name=player.name,
            color=player.color,
            position=PositionModel.from_position(player.position),
            walls_left=player.walls_left,
            goal_row=player.goal_row,
        )

    def to_player(self) -> Player:
        return Player(
            id=self.id,
            name=self.name,
            color=self.color,
            position=self.position.to_position(),
            walls_left=self.walls_left,
            goal_row=self.goal_row,
        )


class SnapshotModel(BaseModel):
    """Complete match state as published on a game topic."""
    players: dict[str, PlayerModel]
    walls: list[WallModel] = Field(default_factory=list)
    current_player_id: int = 1
    winner: Optional[PlayerModel] = None
    game_time: int = 0
    turn_time: int = 60
    timestamp: int = 0
    # Absent in snapshots published before the first action
    turn_number: int = 0

    model_config = WIRE_MODEL_CONFIG

    @classmethod
    def from_state(cls, state: GameState) -> SnapshotModel:
        return cls(
            players={str(pid): PlayerModel.from_player(p) for pid, p in sorted(state.players.items())},
            walls=[WallModel.from_wall(w) for w in state.walls],
            current_player_id=state.current_player_id,
            winner=PlayerModel.from_player(state.winner) if state.winner else None,
            game_time=state.game_time,
            turn_time=state.turn_time,
            timestamp=state.timestamp,
            turn_number=state.turn_number,
        )

    def to_state(self) -> GameState:
        return GameState(
            players={int(key): model.to_player() for key, model in self.players.items()},
            walls=tuple(w.to_wall() for w in self.walls),
            current_player_id=self.current_player_id,
            winner=self.winner.to_player() if self.winner else None,
            game_time=self.game_time,
            turn_time=self.turn_time,
            timestamp=self.timestamp,
            turn_number=self.turn_number,
        )


def validate_geometry(state: GameState):
    """
    Raise InvalidSnapshot unless the board could have come from the engine.

    Checks player seating and home/goal rows, cells and grooves in
    bounds, and wall-to-wall geometry. It does not replay history.
    """
    if not state.players or 1 not in state.players:
        raise InvalidSnapshot("Snapshot has no player 1")

    for pid, player in state.players.items():
        if pid not in (1, 2) or player.id != pid:
            raise InvalidSnapshot(f"Player key {pid} does not match id {player.id}")
        expected_goal = 0 if pid == 1 else BOARD_SIZE - 1
        if player.goal_row != expected_goal:
            raise InvalidSnapshot(f"Player {pid} has goal row {player.goal_row}")
        if not player.position.in_bounds():
            raise InvalidSnapshot(f"Player {pid} is off the board at {player.position}")

    if len(state.players) == 2 and state.players[1].position == state.players[2].position:
        raise InvalidSnapshot("Both pawns share a cell")

    if state.current_player_id not in state.players:
        raise InvalidSnapshot(f"Current player {state.current_player_id} is not seated")

    if state.winner is not None and state.winner.id not in state.players:
        raise InvalidSnapshot(f"Winner {state.winner.id} is not seated")

    placed: list[Wall] = []
    for wall in state.walls:
        if wall.owner_id not in (1, 2):
            raise InvalidSnapshot(f"Wall {wall.key} has unknown owner {wall.owner_id}")
        violation = check_geometry(wall, placed)
        if violation:
            raise InvalidSnapshot(f"Wall ({wall.row},{wall.col}) rejected: {violation.code}")
        placed.append(wall)


def encode_snapshot(state: GameState) -> str:
    """Serialize a state for publishing."""
    return SnapshotModel.from_state(state).model_dump_json(by_alias=True)


def decode_snapshot(payload: str | bytes | None) -> GameState | None:
    """
    Parse and re-validate a published snapshot.

    Returns None for a tombstone (empty payload). Raises InvalidSnapshot
    for anything malformed or geometrically impossible.
    """
    if not payload:
        return None
    try:
        model = SnapshotModel.model_validate_json(payload)
    except ValidationError as exc:
        raise InvalidSnapshot(f"Malformed snapshot: {exc.error_count()} error(s)") from exc

    try:
        state = model.to_state()
    except ValueError as exc:
        raise InvalidSnapshot(str(exc)) from exc

    validate_geometry(state)
    return state


# =============================================================================
# Lobby messages
# =============================================================================

class JoinRequest(BaseModel):
    """Broadcast by every seeker on the lobby join topic."""
    type: Literal["JOIN_REQUEST"] = "JOIN_REQUEST"
    lobby_id: str
    name: str
    walls_left: int = Field(ge=0)
    start_position: StartPosition = StartPosition.CENTER
    turn_duration: int = Field(gt=0)

    model_config = WIRE_MODEL_CONFIG


class MatchFound(BaseModel):
    """Sent by the host to the joiner's private lobby topic."""
    type: Literal["MATCH_FOUND"] = "MATCH_FOUND"
    game_id: str
    player1: PlayerModel
    player2: PlayerModel
    turn_duration: int
    state: SnapshotModel

    model_config = WIRE_MODEL_CONFIG


def decode_lobby_message(payload: str) -> JoinRequest | MatchFound | None:
    """Parse a lobby payload; unknown or malformed messages give None."""
    for model in (JoinRequest, MatchFound):
        try:
            return model.model_validate_json(payload)
        except ValidationError:
            continue
    logger.warning("Ignoring unreadable lobby message (%d bytes)", len(payload or ""))
    return None
