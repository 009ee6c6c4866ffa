"""
Tests for the lobby.

Tests:
- Private games: create, wait, join
- Joining missing or full games
- Deadlines
- Pairing seekers through find_match
"""

import asyncio
import random

import pytest

from ..engine_core.state import GamePhase
from ..session.channel import ChannelTimeout
from ..session.lobby import create_game, find_match, join_game, wait_for_opponent
from ..session.wire import decode_snapshot, game_topic


class TestPrivateGames:
    """Create, wait and join by game id."""

    @pytest.mark.asyncio
    async def test_create_publishes_waiting_state(self, broker, config):
        assignment = await create_game(broker.client(), "Host", config, random.Random(1))

        assert assignment.player_id == 1
        assert len(assignment.game_id) == 6
        retained = decode_snapshot(broker.retained[game_topic(config.topic_prefix, assignment.game_id)])
        assert retained.phase == GamePhase.WAITING_FOR_PLAYERS
        assert retained.players[1].name == "Host"

    @pytest.mark.asyncio
    async def test_join_and_wait(self, broker, config):
        assignment = await create_game(broker.client(), "Host", config, random.Random(1))
        waiter = asyncio.create_task(
            wait_for_opponent(broker.client(), assignment.game_id, config, deadline=2)
        )
        await asyncio.sleep(0)

        joined = await join_game(broker.client(), assignment.game_id, "Guest", config)
        seen_by_host = await waiter

        assert joined.phase == GamePhase.IN_PROGRESS
        assert joined.players[2].name == "Guest"
        assert seen_by_host == joined

    @pytest.mark.asyncio
    async def test_join_missing_game(self, broker, config):
        assert await join_game(broker.client(), "nope00", "Guest", config) is None

    @pytest.mark.asyncio
    async def test_join_full_game(self, broker, config):
        assignment = await create_game(broker.client(), "Host", config)
        assert await join_game(broker.client(), assignment.game_id, "First", config) is not None
        assert await join_game(broker.client(), assignment.game_id, "Second", config) is None

    @pytest.mark.asyncio
    async def test_wait_deadline_tombstones(self, broker, config):
        assignment = await create_game(broker.client(), "Host", config)
        topic = game_topic(config.topic_prefix, assignment.game_id)

        with pytest.raises(ChannelTimeout):
            await wait_for_opponent(broker.client(), assignment.game_id, config, deadline=0.05)

        assert topic not in broker.retained
        assert broker.subscriber_count(topic) == 0
        assert await join_game(broker.client(), assignment.game_id, "Late", config) is None


class TestFindMatch:
    """Pairing seekers on the lobby topic."""

    @pytest.mark.asyncio
    async def test_two_seekers_pair_up(self, broker, config):
        host_config = config.with_overrides(walls_per_player=5, turn_duration=90)
        guest_config = config.with_overrides(walls_per_player=8, turn_duration=30)

        first, second = await asyncio.gather(
            find_match(broker.client(), "Ann", host_config, random.Random(1), lobby_id="aaa", deadline=2),
            find_match(broker.client(), "Ben", guest_config, random.Random(2), lobby_id="bbb", deadline=2),
        )

        assert first.player_id == 1
        assert second.player_id == 2
        assert first.game_id == second.game_id
        assert first.state == second.state

        state = first.state
        assert state.players[1].name == "Ann"
        assert state.players[2].name == "Ben"
        assert state.players[1].walls_left == 5
        assert state.players[2].walls_left == 5
        assert state.turn_time == 30

        retained = decode_snapshot(broker.retained[game_topic(config.topic_prefix, first.game_id)])
        assert retained == state

    @pytest.mark.asyncio
    async def test_late_seeker_still_pairs(self, broker, config):
        # The future host announces itself after the other seeker
        guest = asyncio.create_task(
            find_match(broker.client(), "Ben", config, random.Random(2), lobby_id="bbb", deadline=2)
        )
        await asyncio.sleep(0.01)
        host = await find_match(broker.client(), "Ann", config, random.Random(1), lobby_id="aaa", deadline=2)

        assert host.player_id == 1
        assert (await guest).game_id == host.game_id

    @pytest.mark.asyncio
    async def test_no_partner(self, broker, config):
        with pytest.raises(ChannelTimeout):
            await find_match(broker.client(), "Solo", config, lobby_id="zzz", deadline=0.05)
