"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages local matches (hot-seat and against the bot)
3. Answers bot hints for arbitrary positions
4. Formats responses for a board UI

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .schemas import (
    # Requests
    ActionKind,
    ActionRequest,
    CreateMatchRequest,
    HintRequest,
    # Responses
    ActionResponse,
    EndMatchResponse,
    ErrorCode,
    ErrorResponse,
    GameStateInfo,
    HintResponse,
    LegalMovesResponse,
    MatchListResponse,
    MatchResponse,
    # Shared
    DifficultyParam,
    MatchStatus,
    ModeParam,
    OrientationParam,
    PlayerInfo,
    PositionInfo,
    WallInfo,
)
from ..bots import choose_action
from ..config import MatchConfig, StartPosition
from ..engine_core.action import Action
from ..engine_core.action_generator import legal_moves
from ..engine_core.state import GamePhase, GameState, Orientation, Player, Position, Wall
from ..session import GameLoop, LoopState, Session, SessionManager, TurnResult

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service for a board UI.

    Usage:
        service = APIService()

        # Start a match against the bot
        match = service.create_match(CreateMatchRequest(mode="pvc"))

        # Move the pawn one row up
        response = service.submit_action(
            match.match_id, ActionRequest(type="move", row=7, col=4)
        )
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # Game loops per match
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    def create_match(self, request: CreateMatchRequest) -> MatchResponse:
        """
        Create a new local match.

        A pvc match whose bot opens never happens: the human is always
        player 1, so the first turn is theirs.
        """
        config = self.session_manager.config.with_overrides(
            walls_per_player=request.walls_per_player,
            turn_duration=request.turn_duration,
            start_position=StartPosition(request.start_position.value),
        )
        session = self.session_manager.create_session(
            mode=request.mode.value,
            player1_name=request.player1_name,
            player2_name=request.player2_name,
            difficulty=request.difficulty.value,
            config=config,
            seed=request.seed,
        )
        self._game_loops[session.session_id] = GameLoop(session)
        return self._session_to_response(session)

    def get_match(self, match_id: str) -> MatchResponse | ErrorResponse:
        """
        Get match status.
        """
        session = self.session_manager.get_session(match_id)
        if not session:
            return self._not_found(match_id)
        return self._session_to_response(session)

    def list_matches(self) -> MatchListResponse:
        """
        List active match IDs.
        """
        matches = self.session_manager.list_active_sessions()
        return MatchListResponse(matches=matches, count=len(matches))

    def end_match(self, match_id: str, reason: str = "user_ended") -> EndMatchResponse:
        """
        End a match and forget it.
        """
        success = self.session_manager.end_session(match_id, reason)
        self._game_loops.pop(match_id, None)
        return EndMatchResponse(success=success, match_id=match_id)

    def get_legal_moves(self, match_id: str) -> LegalMovesResponse | ErrorResponse:
        """
        Pawn destinations for the player on turn (empty once the game is over).
        """
        session = self.session_manager.get_session(match_id)
        if not session:
            return self._not_found(match_id)

        state = session.game_state
        moves: list[Position] = []
        if state.phase == GamePhase.IN_PROGRESS:
            opponent = state.get_opponent(state.current_player_id)
            moves = legal_moves(state.current_player.position, state.walls, opponent.position)

        return LegalMovesResponse(
            match_id=match_id,
            player_id=state.current_player_id,
            moves=[PositionInfo(row=p.row, col=p.col) for p in moves],
        )

    def submit_action(self, match_id: str, request: ActionRequest) -> ActionResponse | ErrorResponse:
        """
        Apply a human action and let the bot answer.

        Rule violations come back as success=false with the engine's
        error code; only a missing match or a malformed action is an
        ErrorResponse.
        """
        session = self.session_manager.get_session(match_id)
        loop = self._game_loops.get(match_id)
        if not session or not loop:
            return self._not_found(match_id)

        action = self._build_action(request)
        if isinstance(action, ErrorResponse):
            return action

        result = loop.submit_action(action, request.player_id)
        if not result.success:
            logger.info("Match %s refused %s: %s", match_id, action.describe(), result.error)
        return self._turn_result_to_response(session, result)

    def tick(self, match_id: str, seconds: int = 1) -> ActionResponse | ErrorResponse:
        """
        Advance the turn timer of a match.
        """
        session = self.session_manager.get_session(match_id)
        loop = self._game_loops.get(match_id)
        if not session or not loop:
            return self._not_found(match_id)
        return self._turn_result_to_response(session, loop.tick(seconds))

    def get_hint(self, request: HintRequest) -> HintResponse:
        """
        What the bot would do as `me` in the given position.
        """
        me = self._player_from_info(request.me)
        opponent = self._player_from_info(request.opponent)
        walls = tuple(
            Wall(w.row, w.col, Orientation(w.orientation.value), w.owner_id)
            for w in request.walls
        )
        proposal = choose_action(
            me, opponent, walls,
            difficulty=request.difficulty.value,
            rng=random.Random(request.seed),
        )
        return HintResponse(
            action=proposal.action.value,
            position=(
                PositionInfo(row=proposal.position.row, col=proposal.position.col)
                if proposal.position else None
            ),
            orientation=OrientationParam(proposal.orientation.value) if proposal.orientation else None,
            reasoning=proposal.reasoning,
        )

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _not_found(self, match_id: str) -> ErrorResponse:
        return ErrorResponse(
            error="Match not found",
            error_code=ErrorCode.MATCH_NOT_FOUND,
            details={"match_id": match_id},
        )

    def _build_action(self, request: ActionRequest) -> Action | ErrorResponse:
        """Convert an ActionRequest to an engine Action."""
        if request.type == ActionKind.FORFEIT:
            return Action.forfeit()

        if request.row is None or request.col is None:
            return ErrorResponse(
                error=f"A {request.type.value} needs row and col",
                error_code=ErrorCode.VALIDATION_ERROR,
            )
        if request.type == ActionKind.MOVE:
            return Action.move(Position(request.row, request.col))

        if request.orientation is None:
            return ErrorResponse(
                error="A wall needs an orientation",
                error_code=ErrorCode.VALIDATION_ERROR,
            )
        return Action.place_wall(request.row, request.col, request.orientation.value)

    def _player_from_info(self, info: PlayerInfo) -> Player:
        return Player(
            id=info.id,
            name=info.name,
            color=info.color,
            position=Position(info.position.row, info.position.col),
            walls_left=info.walls_left,
            goal_row=info.goal_row,
        )

    def _session_to_response(self, session: Session) -> MatchResponse:
        """Convert Session to MatchResponse."""
        return MatchResponse(
            match_id=session.session_id,
            mode=ModeParam(session.mode.value),
            status=self._session_status(session),
            difficulty=DifficultyParam(session.difficulty.value) if session.difficulty else None,
            state=self._build_game_state(session),
            last_bot_reasoning=session.last_bot_reasoning,
            history=list(session.history),
            created_at=session.created_at,
        )

    def _session_status(self, session: Session) -> MatchStatus:
        if session.game_state.is_over:
            return MatchStatus.GAME_OVER
        if session.is_bot_turn():
            return MatchStatus.BOT_TURN
        return MatchStatus.YOUR_TURN

    def _loop_state_to_status(self, loop_state: LoopState) -> MatchStatus:
        """Convert loop state to API status."""
        mapping = {
            LoopState.WAITING_HUMAN_ACTION: MatchStatus.YOUR_TURN,
            LoopState.RUNNING_BOT: MatchStatus.BOT_TURN,
            LoopState.GAME_OVER: MatchStatus.GAME_OVER,
        }
        return mapping.get(loop_state, MatchStatus.YOUR_TURN)

    def _turn_result_to_response(self, session: Session, result: TurnResult) -> ActionResponse:
        """Convert TurnResult to ActionResponse."""
        return ActionResponse(
            success=result.success,
            error=result.error,
            error_code=result.error_code.value if result.error_code else None,
            details=result.details,
            changes=result.changes,
            bot_actions=result.bot_actions,
            bot_reasoning=result.bot_reasoning,
            status=self._loop_state_to_status(result.loop_state),
            state=self._build_game_state(session),
        )

    def _build_game_state(self, session: Session) -> GameStateInfo:
        """Build complete board state response."""
        state: GameState = session.game_state
        players = [
            PlayerInfo(
                id=player.id,
                name=player.name,
                color=player.color,
                position=PositionInfo(row=player.position.row, col=player.position.col),
                walls_left=player.walls_left,
                goal_row=player.goal_row,
                is_bot=player.id in session.bots,
            )
            for _, player in sorted(state.players.items())
        ]
        walls = [
            WallInfo(
                row=wall.row,
                col=wall.col,
                orientation=OrientationParam(wall.orientation.value),
                owner_id=wall.owner_id,
            )
            for wall in state.walls
        ]
        return GameStateInfo(
            phase=state.phase.value,
            players=players,
            walls=walls,
            current_player_id=state.current_player_id,
            winner_id=state.winner.id if state.winner else None,
            game_time=state.game_time,
            turn_time=state.turn_time,
            turn_number=state.turn_number,
            timestamp=state.timestamp,
        )


def default_service() -> APIService:
    """Service configured from MAZERACE_* environment variables."""
    return APIService(session_manager=SessionManager(MatchConfig.from_env()))
