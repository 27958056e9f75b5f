"""
Bot card selection.

``choose_card`` is a pure function over a read-only view of the game: it looks
at the bot's own hand, the lead suit, whether this is the first trick and who
leads. It never mutates anything; the host submits its pick through the same
play path as a human.
"""
from __future__ import annotations

from typing import List, Protocol, Sequence

from .deck import Card, Suit


class SeatView(Protocol):
    hand: List[Card]


class GameView(Protocol):
    """The slice of ``GameState`` a bot is allowed to read."""

    @property
    def players(self) -> Sequence[SeatView]: ...

    lead_suit: Suit | None
    first_trick: bool
    leader: int


class CardChooser(Protocol):
    def __call__(self, view: GameView, seat: int) -> Card: ...


def choose_card(view: GameView, seat: int) -> Card:
    """
    Lead: A♠ on the first trick if we hold it and lead, else our lowest card.
    Follow: lowest card of the lead suit.
    Void: highest card, to make the current highest pick up something painful.
    """
    hand = view.players[seat].hand
    if not hand:
        raise ValueError(f"Seat {seat} has no cards to play")
    lead_suit = view.lead_suit

    if lead_suit is None:
        if view.first_trick and seat == view.leader:
            for c in hand:
                if c.is_ace_of_spades():
                    return c
        return min(hand, key=lambda c: c.rank)

    same_suit = [c for c in hand if c.suit == lead_suit]
    if same_suit:
        return min(same_suit, key=lambda c: c.rank)
    return max(hand, key=lambda c: c.rank)


__all__ = ["CardChooser", "GameView", "choose_card"]
