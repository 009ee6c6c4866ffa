"""
Sync Coordinator - Keeps one client's mirror of a shared online match.

There is no server: two peers publish whole snapshots to a retained
game topic and each keeps the newest one by logical clock
(turn_number, then timestamp). That ordering is the only conflict rule:
- Duplicates, echoes of our own publish and reordered pushes lose
- Two TIMEOUT snapshots for the same turn converge on the later stamp

Design principles:
- apply_remote_snapshot is the single place the mirror changes
- Local actions are applied optimistically, then published as a
  separate step, so the transition is testable without a channel
- Pushes may be lost: a background poll re-reads the retained value
  whenever the opponent is on turn
"""

from __future__ import annotations
import asyncio
import logging
from typing import Callable

from ..config import MatchConfig
from ..engine_core.action import Action, ActionResult
from ..engine_core.reducer import Reducer, now_ms
from ..engine_core.reducer import tick as tick_state
from ..engine_core.state import GamePhase, GameState
from .channel import PubSubChannel, Subscription
from .perspective import BoardView, Perspective
from .wire import InvalidSnapshot, decode_snapshot, encode_snapshot, game_topic

logger = logging.getLogger(__name__)

StateListener = Callable[[GameState], None]


class SyncCoordinator:
    """
    Per-client mirror of one online match.

    Usage:
        coordinator = SyncCoordinator(channel, game_id, local_player_id=2)
        await coordinator.start()
        await coordinator.perform_local_action(Action.move(Position(1, 4)))
        ...
        await coordinator.leave()
    """

    def __init__(
        self,
        channel: PubSubChannel,
        game_id: str,
        local_player_id: int,
        config: MatchConfig | None = None,
        initial_state: GameState | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.channel = channel
        self.game_id = game_id
        self.local_player_id = local_player_id
        self.config = config or MatchConfig()
        self.reducer = Reducer(config=self.config, clock=clock)
        self.perspective = Perspective(local_player_id)

        self.state: GameState | None = None
        self.last_applied_turn_number = -1
        self.last_applied_timestamp = -1

        self._listeners: list[StateListener] = []
        self._subscription: Subscription | None = None
        self._tasks: list[asyncio.Task] = []

        if initial_state is not None:
            self.apply_remote_snapshot(initial_state)

    @property
    def topic(self) -> str:
        return game_topic(self.config.topic_prefix, self.game_id)

    @property
    def is_my_turn(self) -> bool:
        return (
            self.state is not None
            and self.state.phase == GamePhase.IN_PROGRESS
            and self.state.current_player_id == self.local_player_id
        )

    @property
    def is_finished(self) -> bool:
        return self.state is not None and self.state.is_over

    def add_listener(self, listener: StateListener):
        """Call listener with every adopted snapshot."""
        self._listeners.append(listener)

    # -------------------------------------------------------------------------
    # The serialization point
    # -------------------------------------------------------------------------

    def apply_remote_snapshot(self, incoming: GameState) -> bool:
        """
        Adopt incoming if it is newer by logical clock.

        Returns True when adopted. Anything else is discarded silently;
        applying the same snapshot twice is a no-op.
        """
        newer = incoming.turn_number > self.last_applied_turn_number or (
            incoming.turn_number == self.last_applied_turn_number
            and incoming.timestamp > self.last_applied_timestamp
        )
        if not newer:
            logger.debug(
                "Discarding stale snapshot %s for game %s (have %s)",
                incoming.clock(), self.game_id,
                (self.last_applied_turn_number, self.last_applied_timestamp),
            )
            return False

        self.state = incoming
        self.last_applied_turn_number = incoming.turn_number
        self.last_applied_timestamp = incoming.timestamp
        logger.info(
            "Player %s adopted snapshot %s for game %s",
            self.local_player_id, incoming.clock(), self.game_id,
        )
        for listener in list(self._listeners):
            listener(incoming)
        return True

    # -------------------------------------------------------------------------
    # Local actions
    # -------------------------------------------------------------------------

    def prepare_local_action(self, action: Action) -> ActionResult:
        """
        Run the engine on the mirror and apply the result optimistically.

        Touches no channel. A rejected action leaves the mirror as it was.
        """
        if self.state is None:
            raise RuntimeError(f"Game {self.game_id} has no state yet")

        result = self.reducer.apply(self.state, action, self.local_player_id)
        if result.success:
            self.apply_remote_snapshot(result.new_state)
        else:
            logger.info(
                "Local %s refused for player %s: %s",
                action.describe(), self.local_player_id, result.error,
            )
        return result

    async def publish_state(self, state: GameState | None = None):
        """Publish a snapshot as the retained value of the game topic."""
        state = state or self.state
        if state is None:
            return
        await self.channel.publish(self.topic, encode_snapshot(state), retain=True)

    async def perform_local_action(self, action: Action) -> ActionResult:
        """Optimistic apply, then publish. Failures are not published."""
        result = self.prepare_local_action(action)
        if result.success:
            await self.publish_state(result.new_state)
        return result

    async def commit(self, result: ActionResult) -> bool:
        """
        Adopt and publish a transition computed elsewhere (a bot's resolved
        decision, for instance). Stale or failed results are dropped.
        """
        if not result.success or not self.apply_remote_snapshot(result.new_state):
            return False
        await self.publish_state(result.new_state)
        return True

    # -------------------------------------------------------------------------
    # Incoming snapshots
    # -------------------------------------------------------------------------

    def handle_payload(self, payload: str) -> bool:
        """Decode one pushed or fetched payload and feed it through."""
        if not payload:
            logger.debug("Tombstone on %s", self.topic)
            return False
        try:
            incoming = decode_snapshot(payload)
        except InvalidSnapshot as exc:
            logger.warning("Ignoring invalid snapshot on %s: %s", self.topic, exc)
            return False
        if incoming is None:
            return False
        return self.apply_remote_snapshot(incoming)

    async def reconcile_once(self) -> bool:
        """
        Fetch the retained snapshot and feed it through.

        Skipped while it is our own turn: nobody else may move then.
        """
        if self.is_my_turn or self.is_finished:
            return False
        payload = await self.channel.fetch_latest(self.topic, self.config.fetch_timeout)
        if payload is None:
            logger.debug("Poll of %s found nothing", self.topic)
            return False
        return self.handle_payload(payload)

    async def start(self):
        """Subscribe to the game topic and start listening and polling."""
        await self.channel.connect()
        self._subscription = await self.channel.subscribe(self.topic)
        self._tasks = [
            asyncio.create_task(self._listen(self._subscription)),
            asyncio.create_task(self._poll()),
        ]

    async def _listen(self, subscription: Subscription):
        async for payload in subscription:
            self.handle_payload(payload)

    async def _poll(self):
        while True:
            await asyncio.sleep(self.config.poll_interval)
            await self.reconcile_once()

    async def stop(self):
        """Cancel background tasks and unsubscribe."""
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    # -------------------------------------------------------------------------
    # Timers and leaving
    # -------------------------------------------------------------------------

    async def tick(self, seconds: int = 1) -> GameState | None:
        """
        Advance the local turn timer.

        When the timer runs out in an unfinished game, publish the
        TIMEOUT ending, whoever is on turn. The other peer may do the
        same; the logical clock picks one.
        """
        if self.state is None or self.state.phase != GamePhase.IN_PROGRESS:
            return self.state

        # Timers are local; the logical clock does not move
        self.state = tick_state(self.state, seconds)
        if self.state.turn_time <= 0:
            logger.info("Turn timer expired for player %s in game %s",
                        self.state.current_player_id, self.game_id)
            await self.perform_local_action(Action.timeout())
        return self.state

    async def leave(self):
        """
        Leave the match.

        A game still in progress is forfeited first, so the other peer
        sees a clean ending; then the topic is tombstoned.
        """
        if self.state is not None and self.state.phase == GamePhase.IN_PROGRESS:
            result = await self.perform_local_action(Action.forfeit())
            if result.success:
                await asyncio.sleep(self.config.leave_grace)
        await self.channel.publish(self.topic, "", retain=True)
        await self.stop()
        logger.info("Player %s left game %s", self.local_player_id, self.game_id)

    # -------------------------------------------------------------------------
    # Presentation
    # -------------------------------------------------------------------------

    def view(self) -> BoardView | None:
        """The mirrored state as seen from the local seat."""
        if self.state is None:
            return None
        return self.perspective.view(self.state)
