"""
Command-line entry points.

Usage examples (after ``pip install -e .``):

    kazhutha simulate --players 5 --seed 7
    kazhutha play --players 4 --name Anu
    kazhutha host --port 8765 --bots 2
    kazhutha join 192.168.1.20:8765 --name Biju
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import random
import sys
import threading
from typing import List, Optional, Sequence

from .client import ClientSession
from .config import MAX_PLAYERS, MIN_PLAYERS, SessionConfig
from .console import HELP, ConsoleActions, ConsoleFrontend
from .deck import Card
from .game import GameState, SeatConfig
from .host import HOST_SEAT, HostSession
from .projection import PublicState
from .transport import TcpHostServer, connect_to_host

logger = logging.getLogger(__name__)


def bot_seats(count: int, first_index: int = 1) -> List[SeatConfig]:
    return [SeatConfig(name=f"Bot {first_index + i}", is_human=False) for i in range(count)]


async def run_simulation(players: int, seed: int | None = None, timeout: float = 30.0) -> GameState:
    """Play a bots-only game to the end (or until ``timeout``) with no pauses."""
    config = SessionConfig(pause_seconds=0.0, bot_think_seconds=0.0)
    config.validate_player_count(players)
    session = HostSession(name="Bot 0", config=config, rng=random.Random(seed))
    done: asyncio.Future[None] = asyncio.get_running_loop().create_future()

    def on_change(state: PublicState) -> None:
        if state.game_over and not done.done():
            done.set_result(None)

    session.game.changes.subscribe(on_change)
    session.start_game(extra_seats=bot_seats(players - 1), host_is_human=False)
    try:
        await asyncio.wait_for(done, timeout)
    except asyncio.TimeoutError:
        logger.warning("Simulation did not finish within %.1fs", timeout)
    finally:
        session.close()
    return session.game


# ---------------------------------------------------------------- console


class _HostActions:
    """Console commands for the host's own seat."""

    def __init__(self, session: HostSession, frontend: ConsoleFrontend, bots: int) -> None:
        self._session = session
        self._frontend = frontend
        self._bots = bots

    def play(self, card: Card) -> None:
        if not self._session.started:
            raise ValueError("The game has not started")
        result = self._session.submit_play(HOST_SEAT, card)
        if not result.accepted:
            assert result.reason is not None
            self._frontend.out(f"Not played: {result.reason.value}")

    def give(self, target_peer_id: str) -> None:
        if not self._session.started:
            raise ValueError("The game has not started")
        self._session.request_give_all(HOST_SEAT, target_peer_id)

    def answer(self, accepted: bool) -> None:
        self._session.respond_give_all(HOST_SEAT, accepted)

    def start(self) -> None:
        if self._session.started:
            raise ValueError("The game is already running")
        seated = len(self._session.roster())
        self._session.start_game(extra_seats=bot_seats(self._bots, first_index=seated))


class _ClientActions:
    """Console commands forwarded to the host."""

    def __init__(self, client: ClientSession) -> None:
        self._client = client

    def play(self, card: Card) -> None:
        self._client.send_play(card)

    def give(self, target_peer_id: str) -> None:
        self._client.send_give_all_request(target_peer_id)

    def answer(self, accepted: bool) -> None:
        self._client.send_give_all_response(accepted)

    def start(self) -> None:
        raise ValueError("Only the host can start the game")


def _start_stdin_reader(queue: "asyncio.Queue[Optional[str]]") -> None:
    """Feed stdin lines into ``queue`` from a daemon thread; None marks EOF."""
    loop = asyncio.get_running_loop()

    def pump() -> None:
        for line in sys.stdin:
            loop.call_soon_threadsafe(queue.put_nowait, line)
        loop.call_soon_threadsafe(queue.put_nowait, None)

    threading.Thread(target=pump, name="stdin", daemon=True).start()


async def _console_loop(
    frontend: ConsoleFrontend,
    actions: ConsoleActions,
    lines: "asyncio.Queue[Optional[str]]",
) -> None:
    while True:
        line = await lines.get()
        if line is None or not frontend.handle_line(line, actions):
            return


def _attach_host(session: HostSession, frontend: ConsoleFrontend) -> None:
    session.local.subscribe(frontend.on_message)
    session.game.log.subscribe(frontend.on_log)


def _attach_client(client: ClientSession, frontend: ConsoleFrontend) -> None:
    client.snapshots.subscribe(frontend.on_state)
    client.hands.subscribe(lambda update: frontend.on_hand(*update))
    client.log.subscribe(frontend.on_log)
    client.prompts.subscribe(frontend.on_prompt)
    client.denials.subscribe(frontend.on_denied)
    client.results.subscribe(lambda outcome: frontend.on_result(outcome.accepted, outcome.target))
    client.roster_changes.subscribe(frontend.on_roster)


def _session_config(args: argparse.Namespace) -> SessionConfig:
    return SessionConfig(
        pause_seconds=args.pause,
        bot_think_seconds=args.bot_delay,
        host=getattr(args, "host", "127.0.0.1"),
        port=getattr(args, "port", 8765),
    )


# ---------------------------------------------------------------- commands


def _add_timing_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--pause",
        type=float,
        default=3.0,
        help="Seconds a finished trick stays on the table.",
    )
    parser.add_argument(
        "--bot-delay",
        type=float,
        default=0.6,
        help="Seconds a bot waits before playing.",
    )


def _add_simulate_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "simulate",
        help="Play a bots-only game and print the log.",
    )
    parser.add_argument(
        "--players",
        type=int,
        default=4,
        help=f"Number of seats ({MIN_PLAYERS}-{MAX_PLAYERS}).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the deal.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Give up after this many seconds.",
    )
    parser.set_defaults(func=_cmd_simulate)


def _cmd_simulate(args: argparse.Namespace) -> None:
    game = asyncio.run(run_simulation(args.players, seed=args.seed, timeout=args.timeout))
    for entry in game.logs():
        print(entry.message)
    if game.game_over and game.loser is not None:
        print(f"Kazhutha: seat {game.loser} ({game.players[game.loser].name})")
    elif game.game_over:
        print("No Kazhutha: every hand was emptied.")
    else:
        print("No result: the game did not finish.")


def _add_play_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "play",
        help="Play against bots in this terminal.",
    )
    parser.add_argument("--players", type=int, default=4, help="Total seats including yours.")
    parser.add_argument("--name", type=str, default="You", help="Your display name.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the deal.")
    _add_timing_arguments(parser)
    parser.set_defaults(func=_cmd_play)


async def _play(args: argparse.Namespace) -> None:
    config = _session_config(args)
    config.validate_player_count(args.players)
    session = HostSession(name=args.name, config=config, rng=random.Random(args.seed))
    frontend = ConsoleFrontend()
    _attach_host(session, frontend)
    lines: asyncio.Queue[Optional[str]] = asyncio.Queue()
    _start_stdin_reader(lines)
    frontend.out(HELP)
    session.start_game(extra_seats=bot_seats(args.players - 1))
    try:
        await _console_loop(frontend, _HostActions(session, frontend, bots=0), lines)
    finally:
        session.close()


def _cmd_play(args: argparse.Namespace) -> None:
    asyncio.run(_play(args))


def _add_host_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "host",
        help="Host a networked game; type 'start' once everybody has joined.",
    )
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Address to listen on.")
    parser.add_argument("--port", type=int, default=8765, help="TCP port to listen on.")
    parser.add_argument("--name", type=str, default="Host", help="Your display name.")
    parser.add_argument("--bots", type=int, default=0, help="Bot seats added at start.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the deal.")
    _add_timing_arguments(parser)
    parser.set_defaults(func=_cmd_host)


async def _host(args: argparse.Namespace) -> None:
    config = _session_config(args)
    session = HostSession(name=args.name, config=config, rng=random.Random(args.seed))
    frontend = ConsoleFrontend()
    _attach_host(session, frontend)
    server = TcpHostServer(session, host=config.host, port=config.port)
    await server.start()
    frontend.out(f"Waiting for players on {config.host}:{server.port}. Type 'start' to deal.")
    lines: asyncio.Queue[Optional[str]] = asyncio.Queue()
    _start_stdin_reader(lines)
    try:
        await _console_loop(frontend, _HostActions(session, frontend, bots=args.bots), lines)
    finally:
        session.close()
        await server.close()


def _cmd_host(args: argparse.Namespace) -> None:
    asyncio.run(_host(args))


def _add_join_parser(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "join",
        help="Join a game hosted elsewhere.",
    )
    parser.add_argument("address", type=str, help="HOST:PORT of the host.")
    parser.add_argument("--name", type=str, default="Player", help="Your display name.")
    parser.set_defaults(func=_cmd_join)


def parse_address(address: str, default_port: int = 8765) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, default_port
    try:
        return host or "127.0.0.1", int(port)
    except ValueError:
        raise ValueError(f"Bad port in address {address!r}") from None


async def _join(args: argparse.Namespace) -> None:
    host, port = parse_address(args.address)
    client = ClientSession(name=args.name)
    frontend = ConsoleFrontend()
    _attach_client(client, frontend)
    lines: asyncio.Queue[Optional[str]] = asyncio.Queue()
    client.disconnected.subscribe(lambda _: lines.put_nowait(None))
    conn, pump = await connect_to_host(client, host, port)
    frontend.out(f"Connected to {host}:{port}. Waiting for the host to start.")
    _start_stdin_reader(lines)
    try:
        await _console_loop(frontend, _ClientActions(client), lines)
    finally:
        conn.close()
        await pump


def _cmd_join(args: argparse.Namespace) -> None:
    asyncio.run(_join(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kazhutha", description="Kazhutha card game.")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level for diagnostics (DEBUG, INFO, WARNING, ...).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_simulate_parser(subparsers)
    _add_play_parser(subparsers)
    _add_host_parser(subparsers)
    _add_join_parser(subparsers)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if hasattr(args, "func"):
        try:
            args.func(args)
        except KeyboardInterrupt:
            pass
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
