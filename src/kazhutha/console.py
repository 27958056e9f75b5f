"""
Plain-text front end shared by ``play``, ``host`` and ``join``.

The front end only renders what it is given (public snapshot, own hand,
prompts, log lines) and turns typed lines into calls on ``ConsoleActions``.
It never touches game state itself.
"""
from __future__ import annotations

from typing import Callable, List, NamedTuple, Protocol, Sequence

from . import protocol
from .deck import Card
from .game import DenyReason, LogEntry, LogKind
from .projection import PublicState
from .protocol import GiveAllPrompt, Message, MessageType, RosterEntry

HELP = """Commands:
  play <card>   play a card, e.g. "play 10H" or "play Q♦"
  give <seat>   ask seat <seat> to hand you all their cards
  yes | no      answer a Give-All request
  start         (host) seat everybody and deal
  hand          show your hand again
  quit          leave"""

_KIND_PREFIX = {LogKind.INFO: "  ", LogKind.OK: "+ ", LogKind.WARN: "! ", LogKind.BAD: "× "}


class Command(NamedTuple):
    verb: str
    arg: str = ""


def parse_command(line: str) -> Command:
    """Split a typed line into a verb and an optional argument."""
    parts = line.strip().split(None, 1)
    if not parts:
        raise ValueError("Empty command")
    verb = parts[0].lower()
    arg = parts[1].strip() if len(parts) > 1 else ""
    aliases = {"p": "play", "g": "give", "y": "yes", "n": "no", "q": "quit", "exit": "quit", "?": "help"}
    verb = aliases.get(verb, verb)
    if verb not in ("play", "give", "yes", "no", "start", "hand", "quit", "help"):
        raise ValueError(f"Unknown command: {parts[0]!r}")
    if verb in ("play", "give") and not arg:
        raise ValueError(f"'{verb}' needs an argument")
    return Command(verb, arg)


def format_hand(hand: Sequence[Card]) -> str:
    return " ".join(str(c) for c in hand) if hand else "(empty)"


def format_state(state: PublicState, seat: int | None) -> str:
    lines: List[str] = []
    for i, p in enumerate(state.players):
        marks = []
        if i == state.turn and not state.game_over:
            marks.append("to play" if not state.turn_locked else "next")
        if i == seat:
            marks.append("you")
        if p.out:
            marks.append("out")
        suffix = f" [{', '.join(marks)}]" if marks else ""
        lines.append(f"  {i}: {p.name:<12} {p.hand_count:>2} cards{suffix}")
    table = " ".join(f"{play.card}({play.player})" for play in state.trick) or "(empty)"
    lines.append(f"  table: {table}")
    if state.give_all_request is not None:
        req = state.give_all_request
        lines.append(f"  waiting: seat {req.target} to answer a Give-All from seat {req.requester}")
    return "\n".join(lines)


class ConsoleActions(Protocol):
    def play(self, card: Card) -> None: ...

    def give(self, target_peer_id: str) -> None: ...

    def answer(self, accepted: bool) -> None: ...

    def start(self) -> None: ...


class ConsoleFrontend:
    """Renders events and dispatches typed commands."""

    def __init__(self, out: Callable[[str], None] = print) -> None:
        self.out = out
        self.state: PublicState | None = None
        self.seat: int | None = None
        self.hand: List[Card] = []
        self.prompt: GiveAllPrompt | None = None
        self._last_key: tuple | None = None
        self._turn_notice = False

    # ------------------------------------------------------------- events

    def on_state(self, state: PublicState) -> None:
        self.state = state
        if self.prompt is not None and state.give_all_request is None:
            self.prompt = None
        key = (state.turn, len(state.trick), state.turn_locked, state.game_over,
               tuple(p.hand_count for p in state.players))
        if key == self._last_key:
            return
        self._last_key = key
        self.out(format_state(state, self.seat))
        # The matching hand message follows the snapshot; announce with it.
        self._turn_notice = self._my_turn()

    def on_hand(self, seat: int, hand: Sequence[Card]) -> None:
        first = self.seat is None
        self.seat = seat
        self.hand = list(hand)
        if first:
            self.out(f"You are seat {seat}. Hand: {format_hand(self.hand)}")
            self._turn_notice = True
        if self._turn_notice and self._my_turn():
            self._turn_notice = False
            self.out(f"Your turn. Hand: {format_hand(self.hand)}")

    def on_log(self, entry: LogEntry) -> None:
        self.out(f"{_KIND_PREFIX.get(entry.kind, '  ')}{entry.message}")

    def on_prompt(self, prompt: GiveAllPrompt) -> None:
        self.prompt = prompt
        self.out(f"{prompt.from_name} (seat {prompt.from_index}) asks for all your cards. yes/no?")

    def on_denied(self, reason: DenyReason | str) -> None:
        text = reason.value if isinstance(reason, DenyReason) else reason
        self.out(f"Give-All request denied: {text}")

    def on_result(self, accepted: bool, target: int) -> None:
        self.out(f"Give-All to seat {target} {'accepted' if accepted else 'rejected'}.")

    def on_roster(self, roster: Sequence[RosterEntry]) -> None:
        names = ", ".join(f"{r.name}{' (host)' if r.is_host else ''}" for r in roster)
        self.out(f"Players: {names}")

    def on_message(self, msg: Message) -> None:
        """Messages addressed to the host's own seat."""
        mtype = protocol.message_type(msg)
        if mtype == MessageType.GAME_STATE:
            self.on_state(protocol.read_public_state(msg))
        elif mtype == MessageType.YOUR_HAND:
            self.on_hand(*protocol.read_hand(msg))
        elif mtype == MessageType.GIVE_ALL_PROMPT:
            self.on_prompt(protocol.read_prompt(msg))
        elif mtype == MessageType.GIVE_ALL_DENIED:
            self.on_denied(str(msg.get("reason")))
        elif mtype == MessageType.GIVE_ALL_RESULT:
            self.on_result(bool(msg.get("accepted")), int(msg.get("target_index", -1)))
        elif mtype == MessageType.PLAYERS_LIST:
            self.on_roster(protocol.read_roster(msg))

    # ------------------------------------------------------------ commands

    def handle_line(self, line: str, actions: ConsoleActions) -> bool:
        """Run one typed command. Returns False when the user wants to quit."""
        if not line.strip():
            return True
        try:
            cmd = parse_command(line)
            if cmd.verb == "quit":
                return False
            if cmd.verb == "help":
                self.out(HELP)
            elif cmd.verb == "hand":
                self.out(f"Hand: {format_hand(self.hand)}")
            elif cmd.verb == "start":
                actions.start()
            elif cmd.verb == "play":
                actions.play(Card.parse(cmd.arg))
            elif cmd.verb == "give":
                actions.give(self._peer_for_seat(cmd.arg))
            elif cmd.verb in ("yes", "no"):
                if self.prompt is None:
                    self.out("Nobody is asking you for your cards.")
                else:
                    self.prompt = None
                    actions.answer(cmd.verb == "yes")
        except ValueError as exc:
            self.out(str(exc))
        return True

    def _peer_for_seat(self, arg: str) -> str:
        if self.state is None:
            raise ValueError("The game has not started")
        try:
            seat = int(arg)
        except ValueError:
            raise ValueError(f"Not a seat number: {arg!r}") from None
        if not 0 <= seat < len(self.state.players):
            raise ValueError(f"No such seat: {seat}")
        peer_id = self.state.players[seat].peer_id
        if not peer_id:
            raise ValueError(f"Seat {seat} is not a connected player")
        return peer_id

    def _my_turn(self) -> bool:
        s = self.state
        return (
            s is not None
            and self.seat is not None
            and not s.game_over
            and not s.turn_locked
            and s.turn == self.seat
        )


__all__ = ["Command", "parse_command", "format_hand", "format_state", "ConsoleActions", "ConsoleFrontend", "HELP"]
