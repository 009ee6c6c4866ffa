"""
Tests for API layer.

Tests:
- API service methods
- Request/response serialization
- Match lifecycle via HTTP
- Error handling
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import (
    ActionRequest,
    CreateMatchRequest,
    ErrorCode,
    ErrorResponse,
    HintRequest,
    MatchStatus,
    PlayerInfo,
    PositionInfo,
)
from ..api.service import APIService


def move(row, col, player_id=None):
    return ActionRequest(type="move", row=row, col=col, player_id=player_id)


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        """Create a fresh API service."""
        return APIService()

    def test_create_pvc_match(self, service):
        """A pvc match seats the bot as player 2."""
        response = service.create_match(CreateMatchRequest(mode="pvc", difficulty="hard", seed=1))

        assert response.match_id
        assert response.status == MatchStatus.YOUR_TURN
        assert response.difficulty.value == "hard"
        players = response.state.players
        assert [p.is_bot for p in players] == [False, True]
        assert players[1].name == "Bot (Hard)"
        assert players[0].position == PositionInfo(row=8, col=4)
        assert response.state.phase == "in_progress"

    def test_create_pvp_match(self, service):
        """Hot-seat matches have no bot."""
        response = service.create_match(CreateMatchRequest(mode="pvp", player2_name="Bea"))

        assert response.difficulty is None
        assert not any(p.is_bot for p in response.state.players)
        assert response.state.players[1].name == "Bea"

    def test_settings_apply(self, service):
        """Wall count and turn length come from the request."""
        response = service.create_match(CreateMatchRequest(walls_per_player=3, turn_duration=20))

        assert all(p.walls_left == 3 for p in response.state.players)
        assert response.state.turn_time == 20

    def test_get_nonexistent_match(self, service):
        """Getting a nonexistent match returns an error."""
        response = service.get_match("nonexistent-id")

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.MATCH_NOT_FOUND

    def test_bot_answers_human_move(self, service):
        """The bot moves right after the human in pvc."""
        match = service.create_match(CreateMatchRequest(mode="pvc", seed=3))
        response = service.submit_action(match.match_id, move(7, 4))

        assert response.success
        assert len(response.bot_actions) == 1
        assert response.bot_reasoning
        assert response.state.current_player_id == 1
        assert response.state.turn_number == 2
        assert response.status == MatchStatus.YOUR_TURN

    def test_illegal_move_is_not_an_error_response(self, service):
        """Refused actions come back as success=false."""
        match = service.create_match(CreateMatchRequest(mode="pvp"))
        response = service.submit_action(match.match_id, move(5, 5))

        assert not response.success
        assert response.error_code == "ILLEGAL_MOVE"
        assert response.state.turn_number == 0

    def test_bot_seat_is_refused(self, service):
        """A human cannot act for the bot."""
        match = service.create_match(CreateMatchRequest(mode="pvc"))
        response = service.submit_action(match.match_id, move(1, 4, player_id=2))

        assert not response.success
        assert response.error_code == "NOT_YOUR_TURN"

    def test_wall_needs_orientation(self, service):
        """Malformed actions are validation errors."""
        match = service.create_match(CreateMatchRequest(mode="pvp"))
        response = service.submit_action(match.match_id, ActionRequest(type="wall", row=4, col=4))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.VALIDATION_ERROR

    def test_wall_placement(self, service):
        """Walls show up in the board state with their owner."""
        match = service.create_match(CreateMatchRequest(mode="pvp"))
        request = ActionRequest(type="wall", row=4, col=4, orientation="horizontal")
        response = service.submit_action(match.match_id, request)

        assert response.success
        assert response.state.walls[0].owner_id == 1
        assert response.state.players[0].walls_left == 9

    def test_pvp_forfeit_by_either_seat(self, service):
        """Player 2 may forfeit during player 1's turn."""
        match = service.create_match(CreateMatchRequest(mode="pvp"))
        response = service.submit_action(
            match.match_id, ActionRequest(type="forfeit", player_id=2)
        )

        assert response.success
        assert response.state.winner_id == 1
        assert response.status == MatchStatus.GAME_OVER

    def test_legal_moves(self, service):
        """Opening moves for player 1."""
        match = service.create_match(CreateMatchRequest(mode="pvp"))
        response = service.get_legal_moves(match.match_id)

        assert response.player_id == 1
        assert {(m.row, m.col) for m in response.moves} == {(7, 4), (8, 3), (8, 5)}

    def test_tick_to_timeout(self, service):
        """The player on turn loses when the timer runs out."""
        match = service.create_match(CreateMatchRequest(mode="pvp", turn_duration=5))
        assert service.tick(match.match_id, 4).state.winner_id is None

        response = service.tick(match.match_id, 1)
        assert response.state.winner_id == 2
        assert response.status == MatchStatus.GAME_OVER
        assert service.get_legal_moves(match.match_id).moves == []

    def test_end_match(self, service):
        """Ended matches are forgotten."""
        match = service.create_match(CreateMatchRequest())

        assert service.end_match(match.match_id).success
        assert not service.end_match(match.match_id).success
        assert match.match_id not in service.list_matches().matches

    def test_hint(self, service):
        """The hint endpoint runs the bot on any position."""
        request = HintRequest(
            me=PlayerInfo(id=1, name="Me", position=PositionInfo(row=8, col=4), walls_left=10, goal_row=0),
            opponent=PlayerInfo(id=2, name="You", position=PositionInfo(row=7, col=0), walls_left=10, goal_row=8),
            difficulty="easy",
            seed=1,
        )
        response = service.get_hint(request)

        assert response.action == "PLACE_WALL"
        assert response.position == PositionInfo(row=8, col=0)
        assert response.orientation.value == "horizontal"


class TestHTTP:
    """Tests for the FastAPI application."""

    @pytest.fixture
    def client(self):
        return TestClient(create_app(service=APIService()))

    @pytest.fixture
    def match_id(self, client):
        response = client.post("/api/v1/matches", json={"mode": "pvp"})
        return response.json()["match_id"]

    def test_create_and_get(self, client):
        created = client.post("/api/v1/matches", json={"mode": "pvc", "difficulty": "easy"})
        assert created.status_code == 200
        match_id = created.json()["match_id"]

        fetched = client.get(f"/api/v1/matches/{match_id}")
        assert fetched.status_code == 200
        assert fetched.json()["state"]["current_player_id"] == 1
        assert match_id in client.get("/api/v1/matches").json()["matches"]

    def test_invalid_settings(self, client):
        response = client.post("/api/v1/matches", json={"walls_per_player": 50})
        assert response.status_code == 422

    def test_missing_match(self, client):
        response = client.get("/api/v1/matches/nope")
        assert response.status_code == 404
        assert response.json()["error_code"] == "MATCH_NOT_FOUND"

    def test_actions(self, client, match_id):
        url = f"/api/v1/matches/{match_id}/actions"

        ok = client.post(url, json={"type": "move", "row": 7, "col": 4})
        assert ok.status_code == 200
        assert ok.json()["success"]
        assert ok.json()["state"]["current_player_id"] == 2

        refused = client.post(url, json={"type": "move", "row": 7, "col": 4})
        assert refused.status_code == 200
        assert not refused.json()["success"]
        assert refused.json()["error_code"] == "ILLEGAL_MOVE"

    def test_malformed_action(self, client, match_id):
        response = client.post(f"/api/v1/matches/{match_id}/actions", json={"type": "move"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_legal_moves(self, client, match_id):
        response = client.get(f"/api/v1/matches/{match_id}/moves")
        assert response.status_code == 200
        assert len(response.json()["moves"]) == 3

    def test_tick(self, client):
        match_id = client.post("/api/v1/matches", json={"mode": "pvp", "turn_duration": 5}).json()["match_id"]
        response = client.post(f"/api/v1/matches/{match_id}/tick", json={"seconds": 5})

        assert response.status_code == 200
        assert response.json()["status"] == "game_over"
        assert response.json()["state"]["winner_id"] == 2

    def test_end_match(self, client, match_id):
        assert client.delete(f"/api/v1/matches/{match_id}").status_code == 200
        assert client.delete(f"/api/v1/matches/{match_id}").status_code == 404

    def test_hint(self, client):
        body = {
            "me": {"id": 2, "name": "Bot", "position": {"row": 0, "col": 4}, "walls_left": 0, "goal_row": 8},
            "opponent": {"id": 1, "name": "Ann", "position": {"row": 8, "col": 4}, "walls_left": 10, "goal_row": 0},
        }
        response = client.post("/api/v1/hint", json=body)

        assert response.status_code == 200
        assert response.json()["action"] == "MOVE"
        assert response.json()["position"] == {"row": 1, "col": 4}

    @pytest.mark.parametrize("path", ["/health", "/api/v1/health"])
    def test_health(self, client, path):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_websocket(self, client, match_id):
        with client.websocket_connect(f"/api/v1/matches/{match_id}/ws") as websocket:
            initial = websocket.receive_json()
            assert initial["type"] == "state_update"
            assert initial["payload"]["turn_number"] == 0

            websocket.send_json({"type": "ping"})
            assert websocket.receive_json() == {"type": "pong"}

            websocket.send_text("not json")
            assert websocket.receive_json()["type"] == "error"
