"""
Authoritative game state: deal → tricks → pickups/clean tricks → last player holding cards.

One ``GameState`` instance is the single source of truth for a game. Every
committed transition publishes a ``PublicState`` snapshot on ``changes`` and
every human-readable event a ``LogEntry`` on ``log``.

Trick resolution is split in two steps so an orchestrator can hold a visible
pause between them: ``play_card`` detects the outcome and parks it as a
``PendingTrick``; ``finalize_pending_trick`` applies it. Releasing the turn
lock after the pause is the caller's job (``unlock_turn``).
"""
from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Sequence

from .deal import deal_hands
from .deck import Card, Suit, sort_hand
from .events import EventChannel
from .play import active_count, must_follow_suit, next_active
from .projection import PublicState, project
from .trick import (
    IDLE,
    AwaitingGiveAllDecision,
    AwaitingTrickFinalize,
    GiveAllRequest,
    Idle,
    PendingTrick,
    Phase,
    Play,
    TrickOutcome,
)


class LogKind(str, Enum):
    INFO = "info"
    OK = "ok"
    WARN = "warn"
    BAD = "bad"


@dataclass(frozen=True)
class LogEntry:
    message: str
    kind: LogKind = LogKind.INFO
    ts: float = field(default_factory=time.time)


class RejectReason(str, Enum):
    """Why ``play_card`` refused a card. Checked in this order."""
    GAME_OVER = "game_over"
    TURN_LOCKED = "turn_locked"
    NOT_YOUR_TURN = "not_your_turn"
    MUST_FOLLOW_SUIT = "must_follow_suit"
    NOT_IN_HAND = "not_in_hand"


class DenyReason(str, Enum):
    """Why a Give-All request never reached negotiation."""
    INVALID_TARGET = "invalid_target"
    NO_SELF_TARGET = "no_self_target"
    GAME_OVER = "game_over"
    ANOTHER_REQUEST_PENDING = "another_request_pending"
    TARGET_UNREACHABLE = "target_unreachable"
    TRICK_RESOLVING = "trick_resolving"
    NOT_ACTIVE = "not_active"


@dataclass(frozen=True)
class PlayResult:
    accepted: bool
    reason: RejectReason | None = None
    pending: PendingTrick | None = None

    @classmethod
    def reject(cls, reason: RejectReason) -> "PlayResult":
        return cls(accepted=False, reason=reason)

    @property
    def clean(self) -> bool:
        return self.pending is not None and self.pending.type == TrickOutcome.CLEAN

    @property
    def pickup(self) -> bool:
        return self.pending is not None and self.pending.type == TrickOutcome.PICKUP

    @property
    def next_leader(self) -> int | None:
        return self.pending.next_leader if self.pending else None

    @property
    def collector(self) -> int | None:
        return self.pending.collector if self.pending else None


@dataclass(frozen=True)
class GiveAllResult:
    """
    Outcome of a Give-All decision. ``pending`` is set when the target leaving
    completed the running trick (everyone still active had already played).
    """

    accepted: bool
    requester: int
    target: int
    pending: PendingTrick | None = None


@dataclass(frozen=True)
class SeatConfig:
    name: str = "Player"
    is_human: bool = False
    peer_id: str | None = None


@dataclass
class Player:
    name: str
    is_human: bool = False
    hand: List[Card] = field(default_factory=list)
    out: bool = False
    peer_id: str | None = None

    @property
    def hand_count(self) -> int:
        return len(self.hand)


class GameState:
    """Mutable state for one game: players, hands, current trick, phase."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self.players: list[Player] = []
        self.leader: int = 0
        self.turn: int = 0
        self.trick: list[Play] = []
        self.lead_suit: Suit | None = None
        self.current_highest: Play | None = None
        self.participants: set[int] = set()
        self.active_at_trick_start: int = 0
        self.first_trick: bool = True
        self.game_over: bool = False
        self.loser: int | None = None
        self.discarded: int = 0  # cards of finished clean tricks
        self.phase: Phase = IDLE
        self.display_turn: int | None = None
        self._held = False  # host pause window
        self._logs: list[LogEntry] = []
        self.changes: EventChannel[PublicState] = EventChannel()
        self.log: EventChannel[LogEntry] = EventChannel()

    # ------------------------------------------------------------------ queries

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def turn_locked(self) -> bool:
        return self._held or not isinstance(self.phase, Idle)

    @property
    def pending_trick(self) -> PendingTrick | None:
        if isinstance(self.phase, AwaitingTrickFinalize):
            return self.phase.pending
        return None

    @property
    def give_all_request(self) -> GiveAllRequest | None:
        if isinstance(self.phase, AwaitingGiveAllDecision):
            return self.phase.request
        return None

    @property
    def effective_turn(self) -> int:
        """Turn as announced publicly (display override during a pause)."""
        return self.display_turn if self.display_turn is not None else self.turn

    def out_flags(self) -> list[bool]:
        return [p.out for p in self.players]

    def active_seats(self) -> list[int]:
        return [i for i, p in enumerate(self.players) if not p.out]

    def hand_of(self, seat: int) -> list[Card]:
        """Copy of one player's hand (empty for an unknown seat)."""
        if 0 <= seat < self.player_count:
            return list(self.players[seat].hand)
        return []

    def cards_on_table(self) -> list[Card]:
        return [p.card for p in self.trick]

    def logs(self) -> list[LogEntry]:
        return list(self._logs)

    def public_state(self) -> PublicState:
        return project(self)

    # ----------------------------------------------------------------- setup

    def setup_players(self, configs: Sequence[SeatConfig]) -> None:
        """Create the roster with empty hands. At least one seat is kept."""
        configs = list(configs) or [SeatConfig()]
        self.players = [
            Player(name=c.name or "Player", is_human=c.is_human, peer_id=c.peer_id)
            for c in configs
        ]
        self._notify()

    def deal(self, rng: random.Random | None = None) -> None:
        """Shuffle, deal and reset every piece of round state. A♠ leads."""
        result = deal_hands(self.player_count, rng=rng or self._rng)
        for player, hand in zip(self.players, result.hands):
            player.hand = hand
            player.out = False

        self.leader = result.leader
        self.turn = self.leader
        self._reset_trick()
        self.first_trick = True
        self.game_over = False
        self.loser = None
        self.discarded = 0
        self.phase = IDLE
        self.display_turn = None
        self._held = False
        self.active_at_trick_start = active_count(self.out_flags())

        self._log(
            f"New {self.player_count}-player game. "
            f"{self.players[self.leader].name} holds A♠ and leads.",
            LogKind.OK,
        )
        extra = f" ({result.extra_cards} players get +1)" if result.extra_cards else ""
        self._log(f"Cards per player: {result.cards_per_player}{extra}")
        self._notify()

    # ------------------------------------------------------------------ play

    def play_card(self, seat: int, card: Card) -> PlayResult:
        """
        Play ``card`` for ``seat``. Rejections leave the state untouched.

        An off-suit card ends the trick as a pickup at once; the turn does not
        move until ``finalize_pending_trick``.
        """
        if self.game_over:
            return PlayResult.reject(RejectReason.GAME_OVER)
        if self.turn_locked:
            return PlayResult.reject(RejectReason.TURN_LOCKED)
        if seat != self.turn:
            return PlayResult.reject(RejectReason.NOT_YOUR_TURN)
        player = self.players[seat]
        if must_follow_suit(player.hand, card, self.lead_suit):
            return PlayResult.reject(RejectReason.MUST_FOLLOW_SUIT)
        if card not in player.hand:
            return PlayResult.reject(RejectReason.NOT_IN_HAND)

        play = Play(seat, card)
        self.trick.append(play)
        self.participants.add(seat)
        player.hand.remove(card)
        if not player.hand:
            player.out = True
            self._log(f"{player.name} is out of cards! ✨", LogKind.OK)

        if self.lead_suit is None:
            self.lead_suit = card.suit
            self.current_highest = play
            self._log(f"{player.name} leads {card}.")
        elif card.suit == self.lead_suit:
            assert self.current_highest is not None
            if card.beats(self.current_highest.card):
                self.current_highest = play
                self._log(f"{player.name} now highest with {card}.")
            else:
                self._log(f"{player.name} follows with {card}.")
        else:
            assert self.current_highest is not None
            collector = self.current_highest.player
            pending = PendingTrick(TrickOutcome.PICKUP, collector)
            self.phase = AwaitingTrickFinalize(pending)
            self._log(
                f"{player.name} is void in {self.lead_suit.symbol} and throws {card} → "
                f"{self.players[collector].name} will pick up the trick!",
                LogKind.BAD,
            )
            self._notify()
            return PlayResult(accepted=True, pending=pending)

        if len(self.participants) >= self.active_at_trick_start:
            pending = self._resolve_clean()
            self._notify()
            return PlayResult(accepted=True, pending=pending)

        self.turn = next_active(self.turn, self.out_flags())
        self._notify()
        return PlayResult(accepted=True)

    def finalize_pending_trick(self) -> bool:
        """
        Apply the pending outcome exactly once. Returns False (and changes
        nothing) when there is no pending trick.
        """
        pending = self.pending_trick
        if pending is None:
            return False
        self.phase = IDLE
        self.display_turn = None

        if pending.type == TrickOutcome.PICKUP:
            collector = self.players[pending.seat]
            table = self.cards_on_table()
            collector.hand.extend(table)
            sort_hand(collector.hand)
            self._log(f"{collector.name} picks up {len(table)} cards.", LogKind.WARN)
        else:
            self.discarded += len(self.trick)

        self._reset_trick()
        self._check_game_end()
        if not self.game_over:
            self._begin_trick(pending.seat)
        self._notify()
        return True

    # ------------------------------------------------------------ turn lock

    def lock_turn(self) -> None:
        self._held = True

    def unlock_turn(self) -> None:
        self._held = False

    def set_display_turn(self, seat: int | None) -> None:
        self.display_turn = seat

    def clear_display_turn(self) -> None:
        self.display_turn = None

    def publish_state(self) -> None:
        """Re-publish the current snapshot without changing anything."""
        self._notify()

    def replace_with_bot(self, seat: int) -> None:
        """Hand a seat whose human left over to the bot."""
        player = self._player(seat)
        if not player.is_human:
            return
        player.is_human = False
        self._log(f"{player.name} left; a bot takes over their seat.", LogKind.WARN)
        self._notify()

    # -------------------------------------------------------------- give-all

    def set_give_all_request(self, requester: int, target: int) -> GiveAllRequest:
        """
        Record a pending Give-All and lock play. Callers check the denial
        rules first; only states that cannot be represented are refused here.
        """
        self._player(requester)
        self._player(target)
        if isinstance(self.phase, AwaitingTrickFinalize):
            raise ValueError("Cannot open a Give-All while a trick is resolving")
        request = GiveAllRequest(requester, target)
        self.phase = AwaitingGiveAllDecision(request)
        self._notify()
        return request

    def clear_give_all_request(self) -> None:
        if isinstance(self.phase, AwaitingGiveAllDecision):
            self.phase = IDLE
            self._notify()

    def accept_give_all(self, requester: int, target: int) -> GiveAllResult:
        """Move the target's whole hand to the requester; the target is finished."""
        req_player, tgt_player = self._give_all_parties(requester, target)

        taken = list(tgt_player.hand)
        tgt_player.hand.clear()
        req_player.hand.extend(taken)
        sort_hand(req_player.hand)
        # Out flags are only ever set here, never cleared.
        if not req_player.hand:
            req_player.out = True
        tgt_player.out = True

        self._log(
            f"{tgt_player.name} accepted a Give-All request from {req_player.name} "
            f"and is finished (winner).",
            LogKind.OK,
        )
        self.phase = IDLE
        self._held = False
        self._check_game_end()
        pending = None if self.game_over else self._after_seat_left()
        self._notify()
        return GiveAllResult(True, requester, target, pending)

    def reject_give_all(self, requester: int, target: int) -> GiveAllResult:
        req_player, tgt_player = self._give_all_parties(requester, target)
        self._log(
            f"{tgt_player.name} rejected the Give-All request from {req_player.name}.",
            LogKind.WARN,
        )
        self.phase = IDLE
        self._held = False
        self._notify()
        return GiveAllResult(False, requester, target)

    # -------------------------------------------------------------- helpers

    def _player(self, seat: int) -> Player:
        if not 0 <= seat < self.player_count:
            raise ValueError(f"No such seat: {seat}")
        return self.players[seat]

    def _give_all_parties(self, requester: int, target: int) -> tuple[Player, Player]:
        if requester == target:
            raise ValueError("Give-All requester and target must differ")
        if isinstance(self.phase, AwaitingTrickFinalize):
            raise ValueError("Cannot transfer cards while a trick is resolving")
        request = self.give_all_request
        if request is not None and request != GiveAllRequest(requester, target):
            raise ValueError(f"Pending Give-All is {request}, not {requester}->{target}")
        return self._player(requester), self._player(target)

    def _after_seat_left(self) -> PendingTrick | None:
        """
        A seat went out without playing. Shrink the completion target of the
        running trick and move the turn off the departed seat.
        """
        flags = self.out_flags()
        if self.trick:
            self.active_at_trick_start = len(self.participants | set(self.active_seats()))
            if len(self.participants) >= self.active_at_trick_start:
                return self._resolve_clean()
        else:
            self.active_at_trick_start = active_count(flags)
        if flags[self.turn]:
            self.turn = next_active(self.turn, flags)
            if not self.trick:
                self.leader = self.turn
        return None

    def _resolve_clean(self) -> PendingTrick:
        assert self.current_highest is not None
        highest = self.current_highest
        pending = PendingTrick(TrickOutcome.CLEAN, highest.player)
        self.phase = AwaitingTrickFinalize(pending)
        self._log(
            f"Clean trick. Highest was {self.players[highest.player].name} "
            f"with {highest.card}. They lead next.",
            LogKind.WARN,
        )
        self._check_game_end()
        return pending

    def _reset_trick(self) -> None:
        self.trick = []
        self.lead_suit = None
        self.current_highest = None
        self.participants = set()

    def _begin_trick(self, leader: int) -> None:
        flags = self.out_flags()
        if flags[leader]:
            leader = next_active(leader, flags)
        self.leader = leader
        self.turn = leader
        self._reset_trick()
        self.active_at_trick_start = active_count(flags)
        self.first_trick = False

    def _check_game_end(self) -> None:
        if self.game_over:
            return
        active = self.active_seats()
        if len(active) > 1:
            return
        if active:
            loser: int | None = active[0]
        else:
            # Everyone is out: whoever still holds cards (an out collector) loses.
            holders = [i for i, p in enumerate(self.players) if p.hand]
            loser = holders[0] if holders else None
        self.game_over = True
        self.loser = loser
        if loser is None:
            self._log("Game over. Nobody is left holding cards.", LogKind.OK)
        else:
            self._log(f"Game over. {self.players[loser].name} is the Kazhutha!", LogKind.BAD)

    def _log(self, message: str, kind: LogKind = LogKind.INFO) -> None:
        entry = LogEntry(message, kind)
        self._logs.append(entry)
        self.log.publish(entry)

    def _notify(self) -> None:
        if len(self.changes):
            self.changes.publish(project(self))


def seat_configs(names: Iterable[str], humans: Iterable[int] = (0,)) -> list[SeatConfig]:
    """Convenience: SeatConfig list from names, marking the given seats human."""
    human_set = set(humans)
    return [SeatConfig(name=n, is_human=i in human_set) for i, n in enumerate(names)]


__all__ = [
    "GameState",
    "Player",
    "SeatConfig",
    "PlayResult",
    "GiveAllResult",
    "RejectReason",
    "DenyReason",
    "LogEntry",
    "LogKind",
    "seat_configs",
]
