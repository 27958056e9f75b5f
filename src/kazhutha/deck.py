"""
Standard 52-card deck for Kazhutha.
Rank strength: A highest, 2 lowest (values 13..1). Suit order ♠ ♥ ♦ ♣ is only
used to sort hands for display.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Suit(IntEnum):
    """Spades, Hearts, Diamonds, Clubs. Value is the display sort order."""
    SPADES = 0
    HEARTS = 1
    DIAMONDS = 2
    CLUBS = 3

    @property
    def symbol(self) -> str:
        return SUIT_SYMBOLS[self]

    @classmethod
    def from_symbol(cls, text: str) -> "Suit":
        """Accept either the symbol (♠) or a letter (S, h, ...)."""
        key = text.strip()
        if key in _SYMBOL_TO_SUIT:
            return _SYMBOL_TO_SUIT[key]
        key = key.upper()
        if key in _LETTER_TO_SUIT:
            return _LETTER_TO_SUIT[key]
        raise ValueError(f"Unknown suit: {text!r}")


SUIT_SYMBOLS = ("♠", "♥", "♦", "♣")
_SYMBOL_TO_SUIT = {sym: Suit(i) for i, sym in enumerate(SUIT_SYMBOLS)}
_LETTER_TO_SUIT = {"S": Suit.SPADES, "H": Suit.HEARTS, "D": Suit.DIAMONDS, "C": Suit.CLUBS}


class Rank(IntEnum):
    """Rank value = strength. TWO=1 .. ACE=13."""
    TWO = 1
    THREE = 2
    FOUR = 3
    FIVE = 4
    SIX = 5
    SEVEN = 6
    EIGHT = 7
    NINE = 8
    TEN = 9
    JACK = 10
    QUEEN = 11
    KING = 12
    ACE = 13

    @property
    def label(self) -> str:
        return RANK_LABELS[self]

    @classmethod
    def from_label(cls, text: str) -> "Rank":
        key = text.strip().upper()
        if key == "T":
            key = "10"
        try:
            return _LABEL_TO_RANK[key]
        except KeyError:
            raise ValueError(f"Unknown rank: {text!r}") from None


RANK_LABELS = {
    Rank.TWO: "2", Rank.THREE: "3", Rank.FOUR: "4", Rank.FIVE: "5",
    Rank.SIX: "6", Rank.SEVEN: "7", Rank.EIGHT: "8", Rank.NINE: "9",
    Rank.TEN: "10", Rank.JACK: "J", Rank.QUEEN: "Q", Rank.KING: "K", Rank.ACE: "A",
}
_LABEL_TO_RANK = {label: rank for rank, label in RANK_LABELS.items()}

# Descending, as cards are listed in a hand.
RANKS_DESC = tuple(sorted(Rank, reverse=True))


@dataclass(frozen=True)
class Card:
    """A single playing card. Immutable and hashable."""

    suit: Suit
    rank: Rank

    def __post_init__(self) -> None:
        # Coerce plain ints so Card(0, 13) works the same as Card(Suit.SPADES, Rank.ACE).
        object.__setattr__(self, "suit", Suit(self.suit))
        object.__setattr__(self, "rank", Rank(self.rank))

    def beats(self, other: "Card") -> bool:
        """Strictly higher rank. Suits are compared by the caller."""
        return self.rank > other.rank

    def is_ace_of_spades(self) -> bool:
        return self.suit == Suit.SPADES and self.rank == Rank.ACE

    @classmethod
    def parse(cls, text: str) -> "Card":
        """
        Parse "A♠", "10♥", "QD", "th" etc. The suit is the last character.
        """
        text = text.strip()
        if len(text) < 2:
            raise ValueError(f"Not a card: {text!r}")
        return cls(suit=Suit.from_symbol(text[-1]), rank=Rank.from_label(text[:-1]))

    def __str__(self) -> str:
        return f"{self.rank.label}{self.suit.symbol}"

    def __repr__(self) -> str:
        return str(self)


ACE_OF_SPADES = Card(Suit.SPADES, Rank.ACE)


def make_deck_52() -> list[Card]:
    """Build a fresh, ordered 52-card deck."""
    return [Card(suit, rank) for suit in Suit for rank in RANKS_DESC]


def hand_sort_key(card: Card) -> tuple[int, int]:
    """Suit order first, then descending rank."""
    return (int(card.suit), -int(card.rank))


def sort_hand(hand: list[Card]) -> None:
    """Sort a hand in place for display determinism."""
    hand.sort(key=hand_sort_key)
