"""
Mirror-side shadow of a game.

``MirrorState`` is deliberately a different type from ``GameState``: it holds
the projected public fields plus one private slot for the local player's own
hand, and has no operation that mutates shared state. The only writers are
``apply_host_state`` (public snapshot) and ``set_own_hand`` (the dedicated
hand message).
"""
from __future__ import annotations

from dataclasses import replace
from typing import List

from .deck import Card, Suit
from .events import EventChannel
from .projection import PlayerView, PublicState
from .trick import GiveAllRequest, PendingTrick, Play


class MirrorState:
    """Read-only local copy of the authority's public state."""

    def __init__(self) -> None:
        self._public = PublicState()
        self._players: List[PlayerView] = []
        self._own_seat: int | None = None
        self._own_hand: List[Card] = []
        self.changes: EventChannel[MirrorState] = EventChannel()

    # Projected fields, read-only.

    @property
    def players(self) -> List[PlayerView]:
        return list(self._players)

    @property
    def player_count(self) -> int:
        return len(self._players)

    @property
    def leader(self) -> int:
        return self._public.leader

    @property
    def turn(self) -> int:
        return self._public.turn

    @property
    def trick(self) -> List[Play]:
        return list(self._public.trick)

    @property
    def lead_suit(self) -> Suit | None:
        return self._public.lead_suit

    @property
    def game_over(self) -> bool:
        return self._public.game_over

    @property
    def first_trick(self) -> bool:
        return self._public.first_trick

    @property
    def turn_locked(self) -> bool:
        return self._public.turn_locked

    @property
    def pending_trick(self) -> PendingTrick | None:
        return self._public.pending_trick

    @property
    def display_turn(self) -> int | None:
        return self._public.display_turn

    @property
    def give_all_request(self) -> GiveAllRequest | None:
        return self._public.give_all_request

    # Own seat.

    @property
    def own_seat(self) -> int | None:
        return self._own_seat

    @property
    def hand(self) -> List[Card]:
        return list(self._own_hand)

    def is_my_turn(self) -> bool:
        return (
            self._own_seat is not None
            and not self.game_over
            and not self.turn_locked
            and self.turn == self._own_seat
        )

    def public_state(self) -> PublicState:
        return replace(self._public, players=list(self._players), player_count=len(self._players))

    # Writers.

    def apply_host_state(self, snapshot: PublicState) -> None:
        """
        Replace every projected field. Hand contents are never touched here;
        the roster grows with placeholder seats if the snapshot is ahead of us.
        """
        count = max(snapshot.player_count, len(snapshot.players))
        self._ensure_seats(count)
        players = list(self._players[:count])
        for i in range(count):
            if i < len(snapshot.players):
                view = snapshot.players[i]
                if i == self._own_seat:
                    # The seat that owns a hand slot is ours: keep it human.
                    view = replace(view, is_human=True)
                players[i] = view
        self._players = players
        self._public = snapshot
        self.changes.publish(self)

    def set_own_hand(self, seat: int, hand: List[Card]) -> None:
        self._ensure_seats(seat + 1)
        self._own_seat = seat
        self._own_hand = list(hand)
        self._players[seat] = replace(self._players[seat], is_human=True, hand_count=len(hand))
        self.changes.publish(self)

    def _ensure_seats(self, count: int) -> None:
        while len(self._players) < count:
            self._players.append(
                PlayerView(
                    name=f"Player {len(self._players) + 1}",
                    is_human=False,
                    hand_count=0,
                    out=False,
                )
            )


__all__ = ["MirrorState"]
