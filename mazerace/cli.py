"""
Maze Race CLI - Command-line interface for the engine.

Usage:
    mazerace play [--mode pvc|pvp] [--difficulty D]   Play in the terminal
    mazerace selfplay [--games N] [--difficulty D]    Bot against bot
    mazerace online-demo [--drop-rate P]              Two bots over a lossy channel
    mazerace serve [--host H] [--port P]              Run the HTTP API
"""

import argparse
import asyncio
import random
import sys

from .config import MatchConfig, configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Maze Race - race your pawn across a walled 9x9 board",
        prog="mazerace",
    )
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING...")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play a match in the terminal")
    play_parser.add_argument("--mode", choices=["pvc", "pvp"], default="pvc")
    play_parser.add_argument("--difficulty", choices=["easy", "medium", "hard"], default="medium")
    play_parser.add_argument("--seed", type=int, default=None)

    # Self-play command
    selfplay_parser = subparsers.add_parser("selfplay", help="Let two bots play each other")
    selfplay_parser.add_argument("--games", type=int, default=1)
    selfplay_parser.add_argument("--difficulty", choices=["easy", "medium", "hard"], default="medium")
    selfplay_parser.add_argument("--seed", type=int, default=None)

    # Online demo command
    online_parser = subparsers.add_parser("online-demo", help="Two bots over an in-memory channel")
    online_parser.add_argument("--drop-rate", type=float, default=0.2, help="Share of pushes lost")
    online_parser.add_argument("--duplicate-rate", type=float, default=0.1, help="Share of pushes doubled")
    online_parser.add_argument("--difficulty", choices=["easy", "medium", "hard"], default="medium")
    online_parser.add_argument("--seed", type=int, default=None)

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "play":
        cmd_play(args)
    elif args.command == "selfplay":
        cmd_selfplay(args)
    elif args.command == "online-demo":
        cmd_online_demo(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def render_board(state, local_player_id: int = 1) -> str:
    """ASCII board as seen from local_player_id's side."""
    from .engine_core.state import BOARD_SIZE
    from .session import Perspective

    view = Perspective(local_player_id).view(state)
    pawns = {(view.me.position.row, view.me.position.col): "A"}
    if view.opponent is not None:
        pawns[(view.opponent.position.row, view.opponent.position.col)] = "B"
    horizontal = set()
    vertical = set()
    for wall in view.walls:
        if wall.is_horizontal:
            horizontal.update({(wall.row, wall.col), (wall.row, wall.col + 1)})
        else:
            vertical.update({(wall.row, wall.col), (wall.row + 1, wall.col)})

    lines = ["   " + " ".join(str(c) for c in range(BOARD_SIZE))]
    for r in range(BOARD_SIZE):
        if r > 0:
            lines.append("   " + " ".join("-" if (r, c) in horizontal else " " for c in range(BOARD_SIZE)))
        cells = []
        for c in range(BOARD_SIZE):
            if c > 0:
                cells.append("|" if (r, c) in vertical else " ")
            cells.append(pawns.get((r, c), "."))
        lines.append(f"{r}  " + "".join(cells))
    return "\n".join(lines)


def parse_command(text: str):
    """
    Parse a terminal command into an engine Action.

    m R C      move to (R, C)
    w R C h|v  place a wall
    q          forfeit
    """
    from .engine_core.action import Action
    from .engine_core.state import Orientation, Position

    parts = text.strip().lower().split()
    if not parts:
        return None
    if parts[0] == "q":
        return Action.forfeit()
    try:
        if parts[0] == "m" and len(parts) == 3:
            return Action.move(Position(int(parts[1]), int(parts[2])))
        if parts[0] == "w" and len(parts) == 4:
            orientation = Orientation.HORIZONTAL if parts[3].startswith("h") else Orientation.VERTICAL
            return Action.place_wall(int(parts[1]), int(parts[2]), orientation)
    except ValueError:
        return None
    return None


def cmd_play(args):
    """Play a local match in the terminal (canonical coordinates)."""
    from .session import GameLoop, SessionManager

    manager = SessionManager(MatchConfig.from_env())
    session = manager.create_session(
        mode=args.mode,
        player1_name="You" if args.mode == "pvc" else "Player 1",
        difficulty=args.difficulty,
        seed=args.seed,
    )
    loop = GameLoop(session)
    print("Commands: 'm R C' to move, 'w R C h|v' for a wall, 'q' to forfeit")

    while not session.game_state.is_over:
        state = session.game_state
        print()
        print(render_board(state, state.current_player_id))
        player = state.current_player
        print(f"{player.name} to play ({player.walls_left} walls left)")
        try:
            text = input("> ")
        except EOFError:
            text = "q"
        action = parse_command(text)
        if action is None:
            print("Could not read that command")
            continue
        result = loop.submit_action(action)
        if not result.success:
            print(f"Refused: {result.error}")
            continue
        for line in result.bot_actions:
            print(line)
        if result.bot_reasoning:
            print(f'Bot: "{result.bot_reasoning}"')

    winner = session.game_state.winner
    print(f"\n{winner.name} wins!")


def cmd_selfplay(args):
    """Play bot against bot and print a summary."""
    from .bots import MazeBot
    from .session import GameLoop, SessionManager

    rng = random.Random(args.seed)
    manager = SessionManager(MatchConfig.from_env())
    wins = {1: 0, 2: 0}

    for game in range(args.games):
        session = manager.create_session(
            mode="pvc",
            player1_name=f"Bot A ({args.difficulty})",
            difficulty=args.difficulty,
            seed=rng.randrange(2**31),
        )
        session.bots[1] = MazeBot(player_id=1, difficulty=args.difficulty, rng=random.Random(rng.random()))
        loop = GameLoop(session)
        loop.run_bot_turns()

        state = session.game_state
        if state.winner is None:
            print(f"Game {game + 1}: no result after {state.turn_number} turns")
        else:
            wins[state.winner.id] += 1
            print(f"Game {game + 1}: {state.winner.name} wins in {state.turn_number} turns, "
                  f"{len(state.walls)} walls placed")
        manager.end_session(session.session_id)

    print(f"\nPlayer 1: {wins[1]}  Player 2: {wins[2]}")


def cmd_online_demo(args):
    """Host and join a match between two bots over an unreliable channel."""
    state = asyncio.run(run_online_demo(
        drop_rate=args.drop_rate,
        duplicate_rate=args.duplicate_rate,
        difficulty=args.difficulty,
        seed=args.seed,
    ))
    print(render_board(state, 1))
    if state.winner is None:
        print(f"\nNo result after {state.turn_number} turns")
    else:
        print(f"\n{state.winner.name} wins after {state.turn_number} turns")


async def run_online_demo(
    drop_rate: float = 0.2,
    duplicate_rate: float = 0.1,
    difficulty: str = "medium",
    seed=None,
    config: MatchConfig = None,
):
    """
    Two bots play one online match, each through its own lossy client.

    Returns the final state as seen by the host.
    """
    from .bots import MazeBot
    from .session import (
        InMemoryBroker,
        OnlineBotLoop,
        SyncCoordinator,
        UnreliableChannel,
        create_game,
        join_game,
        wait_for_opponent,
    )

    rng = random.Random(seed)
    config = config or MatchConfig(poll_interval=0.05, fetch_timeout=0.04, thinking_delay=(0.0, 0.01))
    broker = InMemoryBroker()
    host_client = broker.client()
    guest_client = broker.client()

    assignment = await create_game(host_client, "Host bot", config, rng)
    waiting = asyncio.create_task(wait_for_opponent(host_client, assignment.game_id, config))
    await asyncio.sleep(0)
    joined = await join_game(guest_client, assignment.game_id, "Guest bot", config)
    if joined is None:
        waiting.cancel()
        raise RuntimeError(f"Could not join game {assignment.game_id}")
    opening = await waiting

    # The lobby runs on reliable clients; play runs on lossy views of the same clients
    host_channel = UnreliableChannel(host_client, drop_rate, duplicate_rate, seed=rng.randrange(2**31))
    guest_channel = UnreliableChannel(guest_client, drop_rate, duplicate_rate, seed=rng.randrange(2**31))
    host = SyncCoordinator(host_channel, assignment.game_id, 1, config, initial_state=opening)
    guest = SyncCoordinator(guest_channel, assignment.game_id, 2, config, initial_state=joined)
    await host.start()
    await guest.start()
    try:
        await asyncio.gather(
            OnlineBotLoop(host, MazeBot(1, difficulty, rng=random.Random(rng.random())),
                          rng=random.Random(rng.random())).run(),
            OnlineBotLoop(guest, MazeBot(2, difficulty, rng=random.Random(rng.random())),
                          rng=random.Random(rng.random())).run(),
        )
    finally:
        await host.stop()
        await guest.stop()
    return host.state


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from .api.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
