"""
Game Loop - Drives turns for local and online matches.

The local loop:
1. A human submits an action
2. Engine validates and updates the canonical state
3. Bot seats move until a human is on turn again
4. Repeat until someone wins

The online bot loop does the same for a bot seated behind a
SyncCoordinator, with a short "thinking" pause that never blocks the
coordinator from adopting snapshots in the meantime.
"""

from __future__ import annotations
import asyncio
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
from typing import TYPE_CHECKING

from ..bots import BotPolicy, resolve_decision
from ..engine_core.action import Action, ActionResult, ErrorCode
from ..engine_core.reducer import Reducer
from ..engine_core.reducer import tick as tick_state
from ..engine_core.state import GamePhase

if TYPE_CHECKING:
    from .coordinator import SyncCoordinator
    from .manager import Session

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """State of the game loop."""
    WAITING_HUMAN_ACTION = "waiting_human_action"
    RUNNING_BOT = "running_bot"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """
    Result of processing a turn.

    A refused action is reported here with its error code; the state
    is unchanged and the same player may try again.
    """
    success: bool
    loop_state: LoopState

    # What happened, for the UI
    changes: list[str] = field(default_factory=list)
    bot_actions: list[str] = field(default_factory=list)
    bot_reasoning: str | None = None

    # Errors
    error: str | None = None
    error_code: ErrorCode | None = None
    details: dict = field(default_factory=dict)

    # Game over info
    winner_id: int | None = None


class GameLoop:
    """
    The local match driver.

    Usage:
        loop = GameLoop(session)
        result = loop.submit_action(Action.move(Position(7, 4)))
        if not result.success:
            show_error(result.error)
    """

    # Safety limit for bot-vs-bot sessions
    MAX_BOT_TURNS = 200

    def __init__(self, session: Session):
        self.session = session
        self.reducer = Reducer(config=session.config)
        self.state = LoopState.WAITING_HUMAN_ACTION
        self._refresh_state()

    def submit_action(self, action: Action, player_id: int | None = None) -> TurnResult:
        """
        Apply a human action, then let bots answer.

        player_id defaults to the player on turn, which is what hot-seat
        play wants; forfeits may name either human seat.
        """
        game_state = self.session.game_state
        acting = player_id if player_id is not None else game_state.current_player_id

        if acting in self.session.bots:
            return TurnResult(
                success=False,
                loop_state=self.state,
                error=f"Player {acting} is controlled by the bot",
                error_code=ErrorCode.NOT_YOUR_TURN,
            )

        result = self.reducer.apply(game_state, action, acting)
        if not result.success:
            return self._failed(result)

        self._record(result)
        bot_turn = self.run_bot_turns()
        return TurnResult(
            success=True,
            loop_state=self.state,
            changes=result.state_changes + bot_turn.changes,
            bot_actions=bot_turn.bot_actions,
            bot_reasoning=bot_turn.bot_reasoning,
            winner_id=self._winner_id(),
        )

    def run_bot_turns(self) -> TurnResult:
        """Run bot turns until a human is on turn or the game ends."""
        changes: list[str] = []
        actions: list[str] = []
        reasoning: str | None = None
        turns_run = 0

        while self.session.is_bot_turn() and turns_run < self.MAX_BOT_TURNS:
            self.state = LoopState.RUNNING_BOT
            game_state = self.session.game_state
            player_id = game_state.current_player_id
            bot = self.session.bots[player_id]

            decision = bot.select_action(game_state)
            result = resolve_decision(game_state, decision, player_id, self.session.config)
            if not result.success:
                logger.warning("Bot for player %s could not move: %s", player_id, result.error)
                break

            self._record(result)
            changes.extend(result.state_changes)
            taken = decision.action.describe() if decision.action else "pass"
            actions.append(f"{game_state.players[player_id].name}: {taken}")
            reasoning = decision.explanation
            self.session.last_bot_reasoning = reasoning
            turns_run += 1

        self._refresh_state()
        return TurnResult(
            success=True,
            loop_state=self.state,
            changes=changes,
            bot_actions=actions,
            bot_reasoning=reasoning,
            winner_id=self._winner_id(),
        )

    def tick(self, seconds: int = 1) -> TurnResult:
        """
        Advance the turn timer; the player on turn loses at zero.
        """
        game_state = tick_state(self.session.game_state, seconds)
        self.session.game_state = game_state
        changes: list[str] = []

        if game_state.phase == GamePhase.IN_PROGRESS and game_state.turn_time <= 0:
            result = self.reducer.apply(game_state, Action.timeout(), game_state.current_player_id)
            if result.success:
                self._record(result)
                changes = result.state_changes

        self._refresh_state()
        return TurnResult(
            success=True,
            loop_state=self.state,
            changes=changes,
            winner_id=self._winner_id(),
        )

    def _record(self, result: ActionResult):
        self.session.game_state = result.new_state
        self.session.history.extend(result.state_changes)
        self._refresh_state()

    def _refresh_state(self):
        from .manager import SessionState

        if self.session.game_state.is_over:
            self.state = LoopState.GAME_OVER
            self.session.state = SessionState.GAME_OVER
        elif self.session.is_bot_turn():
            self.state = LoopState.RUNNING_BOT
        else:
            self.state = LoopState.WAITING_HUMAN_ACTION

    def _winner_id(self) -> int | None:
        winner = self.session.game_state.winner
        return winner.id if winner else None

    def _failed(self, result: ActionResult) -> TurnResult:
        return TurnResult(
            success=False,
            loop_state=self.state,
            error=result.error,
            error_code=result.error_code,
            details=result.details,
        )


class OnlineBotLoop:
    """
    Plays one seat of an online match through a SyncCoordinator.

    Each turn the bot waits a random thinking delay, then decides on
    the freshest mirrored state. If a snapshot arrives meanwhile and the
    turn has passed, the decision is skipped.
    """

    def __init__(
        self,
        coordinator: SyncCoordinator,
        bot: BotPolicy,
        rng: random.Random | None = None,
        thinking_delay: tuple[float, float] | None = None,
    ):
        self.coordinator = coordinator
        self.bot = bot
        self.rng = rng or random.Random()
        self.thinking_delay = thinking_delay or coordinator.config.thinking_delay
        self._changed = asyncio.Event()
        coordinator.add_listener(lambda _state: self._changed.set())

    async def take_turn(self) -> ActionResult | None:
        """Think, decide and commit one turn if it is still ours."""
        if not self.coordinator.is_my_turn:
            return None

        low, high = self.thinking_delay
        await asyncio.sleep(self.rng.uniform(low, high))

        state = self.coordinator.state
        if state is None or not self.coordinator.is_my_turn:
            return None

        player_id = self.coordinator.local_player_id
        decision = self.bot.select_action(state)
        result = resolve_decision(state, decision, player_id, self.coordinator.config)
        if result.success:
            await self.coordinator.commit(result)
        return result

    async def run(self, max_turns: int = 500):
        """Play until the game is over."""
        turns = 0
        while not self.coordinator.is_finished and turns < max_turns:
            if self.coordinator.is_my_turn:
                self._changed.clear()
                result = await self.take_turn()
                if result is not None and not result.success:
                    logger.warning("Online bot for player %s is stuck: %s",
                                   self.coordinator.local_player_id, result.error)
                    return
                turns += 1
                continue
            self._changed.clear()
            try:
                await asyncio.wait_for(self._changed.wait(), self.coordinator.config.poll_interval)
            except asyncio.TimeoutError:
                pass
