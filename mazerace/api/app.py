"""
FastAPI Application - REST API for a board UI.

Endpoints:
    POST   /api/v1/matches                Create a local match (pvp or pvc)
    GET    /api/v1/matches                List active matches
    GET    /api/v1/matches/{id}           Get match status and board
    DELETE /api/v1/matches/{id}           End match
    GET    /api/v1/matches/{id}/moves     Legal pawn moves for the player on turn
    POST   /api/v1/matches/{id}/actions   Move, place a wall or forfeit
    POST   /api/v1/matches/{id}/tick      Advance the turn timer
    POST   /api/v1/hint                   Ask the bot for a move in any position
    GET    /api/v1/health                 Health check (also /health)
    WS     /api/v1/matches/{id}/ws        WebSocket for real-time updates

Bot Turn Flow:
    1. POST /actions applies the human's action
    2. In a pvc match the bot answers right away
    3. The response carries both, plus the bot's reasoning

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional
import json
import logging

from ..config import ALLOWED_ORIGINS, configure_logging

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, WebSocket, WebSocketDisconnect
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService, default_service
    from .schemas import (
        # Request models
        ActionRequest,
        CreateMatchRequest,
        HintRequest,
        TickRequest,
        # Response models
        ActionResponse,
        EndMatchResponse,
        ErrorResponse,
        HealthResponse,
        HintResponse,
        LegalMovesResponse,
        MatchListResponse,
        MatchResponse,
        # Enums
        ErrorCode,
    )

    configure_logging()

    app = FastAPI(
        title="Maze Race API",
        description="""
Two-player maze race on a 9x9 board: reach the far row first, or slow
your opponent down with walls.

## Bot Turn Flow

After submitting an action via `POST /actions`:

1. The action is validated by the engine
2. In a `pvc` match the bot answers immediately
3. The response includes `bot_actions` and `bot_reasoning`

Refused actions answer `200` with `success=false` and an engine
`error_code`; the board is unchanged and the same player may retry.

## Error Codes

| Code | Description |
|------|-------------|
| `MATCH_NOT_FOUND` | Match does not exist |
| `VALIDATION_ERROR` | Action is missing coordinates or orientation |
| `INTERNAL_ERROR` | Unexpected failure |
        """,
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # CORS for browser clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    api_service: APIService = service or default_service()

    # WebSocket connections
    ws_connections: dict[str, list[WebSocket]] = {}

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_to_response(error: ErrorResponse) -> JSONResponse:
        status_code = 404 if error.error_code == ErrorCode.MATCH_NOT_FOUND else 400
        return make_error_response(error.error_code, error.error, status_code, error.details)

    async def broadcast_to_match(match_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a match."""
        if match_id in ws_connections:
            dead_connections = []
            for ws in ws_connections[match_id]:
                try:
                    await ws.send_json(message)
                except Exception:
                    dead_connections.append(ws)
            for ws in dead_connections:
                ws_connections[match_id].remove(ws)

    async def broadcast_result(match_id: str, response: ActionResponse):
        if response.success:
            await broadcast_to_match(match_id, {
                "type": "state_update",
                "payload": response.state.model_dump(mode="json"),
            })

    # =========================================================================
    # Match Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/matches",
        response_model=MatchResponse,
        responses={422: {"description": "Invalid match settings"}},
        tags=["Matches"],
        summary="Create a new local match",
    )
    async def create_match(request: CreateMatchRequest) -> MatchResponse:
        """
        Create a new local match.

        Use `mode=pvc` to play player 1 against the bot, or `mode=pvp`
        for two humans sharing one device.
        """
        return api_service.create_match(request)

    @app.get(
        "/api/v1/matches",
        response_model=MatchListResponse,
        tags=["Matches"],
        summary="List active matches",
    )
    async def list_matches() -> MatchListResponse:
        """List all active match IDs."""
        return api_service.list_matches()

    @app.get(
        "/api/v1/matches/{match_id}",
        response_model=MatchResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Get match status",
    )
    async def get_match(match_id: str):
        """Get the board, whose turn it is and the match history."""
        response = api_service.get_match(match_id)
        if isinstance(response, ErrorResponse):
            return error_to_response(response)
        return response

    @app.delete(
        "/api/v1/matches/{match_id}",
        response_model=EndMatchResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="End a match",
    )
    async def end_match(match_id: str):
        """End a match and release its resources."""
        response = api_service.end_match(match_id)
        if not response.success:
            return make_error_response(
                ErrorCode.MATCH_NOT_FOUND,
                "Match not found",
                status_code=404,
                details={"match_id": match_id},
            )
        await broadcast_to_match(match_id, {"type": "match_ended", "payload": {"match_id": match_id}})
        return response

    @app.get(
        "/api/v1/matches/{match_id}/moves",
        response_model=LegalMovesResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Gameplay"],
        summary="Legal pawn moves",
    )
    async def get_legal_moves(match_id: str):
        """Cells the pawn on turn may move to, jumps included."""
        response = api_service.get_legal_moves(match_id)
        if isinstance(response, ErrorResponse):
            return error_to_response(response)
        return response

    @app.post(
        "/api/v1/matches/{match_id}/actions",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Malformed action"},
            404: {"model": ErrorResponse},
        },
        tags=["Gameplay"],
        summary="Move, place a wall or forfeit",
    )
    async def submit_action(match_id: str, request: ActionRequest):
        """
        Submit an action for the player on turn.

        In a pvc match the bot's answer is applied before responding.
        """
        response = api_service.submit_action(match_id, request)
        if isinstance(response, ErrorResponse):
            return error_to_response(response)
        await broadcast_result(match_id, response)
        return response

    @app.post(
        "/api/v1/matches/{match_id}/tick",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Gameplay"],
        summary="Advance the turn timer",
    )
    async def tick(match_id: str, request: TickRequest):
        """
        Count down the turn timer; at zero the player on turn loses.
        """
        response = api_service.tick(match_id, request.seconds)
        if isinstance(response, ErrorResponse):
            return error_to_response(response)
        await broadcast_result(match_id, response)
        return response

    @app.post(
        "/api/v1/hint",
        response_model=HintResponse,
        tags=["Bot"],
        summary="Ask the bot what it would do",
    )
    async def get_hint(request: HintRequest) -> HintResponse:
        """
        Run the bot on an arbitrary position.

        The answer is a proposal only; nothing is applied.
        """
        return api_service.get_hint(request)

    # =========================================================================
    # WebSocket
    # =========================================================================

    @app.websocket("/api/v1/matches/{match_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, match_id: str):
        """
        WebSocket for real-time updates.

        Messages sent:
        - state_update: Board changed
        - match_ended: Match was deleted
        - pong: Reply to a ping
        - error: Unreadable message

        Messages received:
        - ping: Keep-alive
        """
        await websocket.accept()

        if match_id not in ws_connections:
            ws_connections[match_id] = []
        ws_connections[match_id].append(websocket)

        try:
            # Send initial state
            response = api_service.get_match(match_id)
            if isinstance(response, MatchResponse):
                await websocket.send_json({
                    "type": "state_update",
                    "payload": response.state.model_dump(mode="json"),
                })

            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                    if message.get("type") == "ping":
                        await websocket.send_json({"type": "pong"})
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
        except WebSocketDisconnect:
            logger.debug("WebSocket for match %s disconnected", match_id)
        finally:
            if match_id in ws_connections:
                if websocket in ws_connections[match_id]:
                    ws_connections[match_id].remove(websocket)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    @app.get("/api/v1/health", response_model=HealthResponse, tags=["System"], include_in_schema=False)
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="mazerace",
            version="1.0.0",
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Maze Race API",
            "version": "1.0.0",
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn mazerace.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
