"""
Trick rules: follow suit, turn rotation.
Only the lead suit counts; there are no trumps. Turns go anti-clockwise
(decreasing seat index, wrapping) and skip players who are out.
"""
from __future__ import annotations

from typing import Sequence

from .deck import Card, Suit


def has_suit(hand: Sequence[Card], suit: Suit) -> bool:
    return any(c.suit == suit for c in hand)


def must_follow_suit(hand: Sequence[Card], card: Card, lead_suit: Suit | None) -> bool:
    """
    True if playing ``card`` would break the follow-suit rule: a lead suit is
    set, the card is off-suit, and the hand still holds the lead suit.
    """
    if lead_suit is None:
        return False
    if card.suit == lead_suit:
        return False
    return has_suit(hand, lead_suit)


def legal_plays(hand: Sequence[Card], lead_suit: Suit | None) -> list[Card]:
    """Cards that may be played from ``hand`` given the current lead suit."""
    if lead_suit is None or not has_suit(hand, lead_suit):
        return list(hand)
    return [c for c in hand if c.suit == lead_suit]


def next_active(seat: int, out_flags: Sequence[bool]) -> int:
    """
    Next seat anti-clockwise that is not out. Returns ``seat`` itself when it
    is the only active one; raises if nobody is active.
    """
    n = len(out_flags)
    if all(out_flags):
        raise ValueError("No active seat left")
    nxt = seat
    while True:
        nxt = (nxt - 1) % n
        if not out_flags[nxt]:
            return nxt


def active_count(out_flags: Sequence[bool]) -> int:
    return sum(1 for out in out_flags if not out)
