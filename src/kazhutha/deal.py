"""
Distribution (deal) for 2..8 players.
floor(52 / n) cards each, one by one around the table, then one extra card to
each of the first 52 % n seats. Whoever holds A♠ leads the first trick.
"""
from __future__ import annotations

import random
from typing import NamedTuple

from .deck import Card, make_deck_52, sort_hand

DECK_SIZE = 52


class Deal(NamedTuple):
    """Result of a deal. Hands are sorted lists (mutated during play)."""
    hands: list[list[Card]]
    leader: int  # seat holding A♠
    cards_per_player: int
    extra_cards: int  # number of seats that got one more card


def find_ace_of_spades(hands: list[list[Card]]) -> int:
    """Seat holding A♠, or 0 if nobody does."""
    for seat, hand in enumerate(hands):
        if any(c.is_ace_of_spades() for c in hand):
            return seat
    return 0


def deal_hands(
    player_count: int,
    deck: list[Card] | None = None,
    rng: random.Random | None = None,
) -> Deal:
    """
    Shuffle (Fisher-Yates via random.shuffle) and deal to ``player_count`` seats.
    Player-count bounds are the caller's concern; any count >= 1 works here.
    """
    if deck is None:
        deck = make_deck_52()
    if rng is None:
        rng = random.Random()
    deck = list(deck)
    rng.shuffle(deck)

    cards_per_player = len(deck) // player_count
    extra = len(deck) % player_count
    hands: list[list[Card]] = [[] for _ in range(player_count)]

    idx = 0
    for _ in range(cards_per_player):
        for seat in range(player_count):
            hands[seat].append(deck[idx])
            idx += 1
    for seat in range(extra):
        hands[seat].append(deck[idx])
        idx += 1

    for hand in hands:
        sort_hand(hand)

    return Deal(
        hands=hands,
        leader=find_ace_of_spades(hands),
        cards_per_player=cards_per_player,
        extra_cards=extra,
    )
