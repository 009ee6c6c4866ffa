"""
Lobby - Creating, joining and finding online matches.

Two ways into a match:
1. Private game: the host publishes a one-player snapshot under a short
   game id and shares the id; a joiner fetches it, seats player 2 and
   publishes the two-player snapshot.
2. Find match: seekers announce themselves on the lobby join topic.
   Of two seekers, the one with the lower lobby id hosts: it seats both
   players, tells the other on its private lobby topic and publishes
   the opening snapshot. The other re-announces itself so a host that
   subscribed late still hears it.

Waiting is bounded by wall-clock deadlines; on expiry everything is
unsubscribed and ChannelTimeout is raised.
"""

from __future__ import annotations
import asyncio
from dataclasses import dataclass
import logging
import random
import time

from ..config import MatchConfig
from ..engine_core.setup import create_match, create_waiting_state, new_game_id, seat_second_player
from ..engine_core.state import GameState
from .channel import ChannelTimeout, PubSubChannel, Subscription
from .wire import (
    InvalidSnapshot,
    JoinRequest,
    MatchFound,
    PlayerModel,
    SnapshotModel,
    decode_lobby_message,
    decode_snapshot,
    encode_snapshot,
    game_topic,
    lobby_join_topic,
    lobby_match_topic,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchAssignment:
    """Where a player ended up: which game, which seat, opening state."""
    game_id: str
    player_id: int
    state: GameState


def _remaining(deadline: float) -> float:
    return max(0.0, deadline - time.monotonic())


async def create_game(
    channel: PubSubChannel,
    host_name: str,
    config: MatchConfig | None = None,
    rng: random.Random | None = None,
) -> MatchAssignment:
    """Publish a waiting one-player snapshot under a fresh game id."""
    config = config or MatchConfig()
    game_id = new_game_id(rng)
    state = create_waiting_state(host_name, config, rng)
    await channel.connect()
    await channel.publish(game_topic(config.topic_prefix, game_id), encode_snapshot(state), retain=True)
    logger.info("Created game %s for %s", game_id, host_name)
    return MatchAssignment(game_id=game_id, player_id=1, state=state)


async def wait_for_opponent(
    channel: PubSubChannel,
    game_id: str,
    config: MatchConfig | None = None,
    deadline: float | None = None,
) -> GameState:
    """
    Wait until someone seats player 2.

    Raises ChannelTimeout after config.create_deadline seconds (or the
    given deadline, in seconds from now) and tombstones the game so
    nobody joins a host that gave up.
    """
    config = config or MatchConfig()
    topic = game_topic(config.topic_prefix, game_id)
    until = time.monotonic() + (deadline if deadline is not None else config.create_deadline)
    subscription = await channel.subscribe(topic)
    try:
        while True:
            try:
                payload = await subscription.get(_remaining(until))
            except asyncio.TimeoutError:
                break
            if payload is None:
                break
            try:
                state = decode_snapshot(payload)
            except InvalidSnapshot as exc:
                logger.warning("Ignoring invalid snapshot for game %s: %s", game_id, exc)
                continue
            if state is not None and len(state.players) == 2:
                logger.info("Opponent %s joined game %s", state.players[2].name, game_id)
                return state
    finally:
        subscription.close()

    await channel.publish(topic, "", retain=True)
    raise ChannelTimeout(f"No opponent joined game {game_id}")


async def join_game(
    channel: PubSubChannel,
    game_id: str,
    name: str,
    config: MatchConfig | None = None,
) -> GameState | None:
    """
    Take the second seat of a waiting game.

    Returns None when the game does not exist, is already full or cannot
    be read within config.join_timeout.
    """
    config = config or MatchConfig()
    topic = game_topic(config.topic_prefix, game_id)
    await channel.connect()
    payload = await channel.fetch_latest(topic, config.join_timeout)
    try:
        state = decode_snapshot(payload)
    except InvalidSnapshot as exc:
        logger.warning("Game %s has an invalid snapshot: %s", game_id, exc)
        return None

    if state is None or len(state.players) != 1:
        logger.info("Game %s is not available to join", game_id)
        return None

    joined = seat_second_player(state, name)
    await channel.publish(topic, encode_snapshot(joined), retain=True)
    logger.info("%s joined game %s", name, game_id)
    return joined


async def _pump(subscription: Subscription, inbox: asyncio.Queue):
    async for payload in subscription:
        inbox.put_nowait((subscription.topic, payload))


async def find_match(
    channel: PubSubChannel,
    name: str,
    config: MatchConfig | None = None,
    rng: random.Random | None = None,
    lobby_id: str | None = None,
    deadline: float | None = None,
) -> MatchAssignment:
    """
    Pair up with another seeker through the lobby.

    Raises ChannelTimeout after config.search_deadline seconds (or the
    given deadline) without a partner.
    """
    config = config or MatchConfig()
    rng = rng or random.Random()
    lobby_id = lobby_id or new_game_id(rng, length=9)
    join_topic = lobby_join_topic(config.topic_prefix)
    match_topic = lobby_match_topic(config.topic_prefix, lobby_id)
    until = time.monotonic() + (deadline if deadline is not None else config.search_deadline)

    request = JoinRequest(
        lobby_id=lobby_id,
        name=name,
        walls_left=config.walls_per_player,
        start_position=config.start_position,
        turn_duration=config.turn_duration,
    )
    request_payload = request.model_dump_json(by_alias=True)

    await channel.connect()
    subscriptions = [await channel.subscribe(join_topic), await channel.subscribe(match_topic)]
    inbox: asyncio.Queue = asyncio.Queue()
    pumps = [asyncio.create_task(_pump(s, inbox)) for s in subscriptions]

    try:
        await channel.publish(join_topic, request_payload)
        logger.info("Seeking a match as %s (lobby id %s)", name, lobby_id)

        while True:
            try:
                topic, payload = await asyncio.wait_for(inbox.get(), _remaining(until))
            except asyncio.TimeoutError:
                break

            message = decode_lobby_message(payload)
            if message is None:
                continue

            if isinstance(message, MatchFound) and topic == match_topic:
                try:
                    state = decode_snapshot(message.state.model_dump_json(by_alias=True))
                except InvalidSnapshot as exc:
                    logger.warning("Ignoring match offer with invalid state: %s", exc)
                    continue
                logger.info("Matched into game %s as player 2", message.game_id)
                return MatchAssignment(game_id=message.game_id, player_id=2, state=state)

            if isinstance(message, JoinRequest) and message.lobby_id != lobby_id:
                if lobby_id < message.lobby_id:
                    return await _host_match(channel, config, rng, request, message)
                # The other seeker hosts; make sure it has heard us
                await channel.publish(join_topic, request_payload)
    finally:
        for subscription in subscriptions:
            subscription.close()
        for pump in pumps:
            pump.cancel()
        await asyncio.gather(*pumps, return_exceptions=True)

    raise ChannelTimeout(f"No opponent found for {name}")


async def _host_match(
    channel: PubSubChannel,
    config: MatchConfig,
    rng: random.Random,
    mine: JoinRequest,
    theirs: JoinRequest,
) -> MatchAssignment:
    """Seat both seekers, notify the other one and publish the opening."""
    # The joiner's column policy and turn length apply; wall counts follow the host
    match_config = config.with_overrides(
        start_position=theirs.start_position,
        turn_duration=theirs.turn_duration,
        walls_per_player=mine.walls_left,
    )
    state = create_match(mine.name, theirs.name, match_config, rng)
    game_id = new_game_id(rng)

    found = MatchFound(
        game_id=game_id,
        player1=PlayerModel.from_player(state.players[1]),
        player2=PlayerModel.from_player(state.players[2]),
        turn_duration=match_config.turn_duration,
        state=SnapshotModel.from_state(state),
    )
    await channel.publish(
        lobby_match_topic(config.topic_prefix, theirs.lobby_id),
        found.model_dump_json(by_alias=True),
    )
    await channel.publish(game_topic(config.topic_prefix, game_id), encode_snapshot(state), retain=True)
    logger.info("Hosting game %s against %s", game_id, theirs.name)
    return MatchAssignment(game_id=game_id, player_id=1, state=state)
