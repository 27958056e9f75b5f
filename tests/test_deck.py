"""Cards, deck and deal."""
import random

import pytest

from kazhutha.deal import deal_hands, find_ace_of_spades
from kazhutha.deck import ACE_OF_SPADES, Card, Rank, Suit, make_deck_52, sort_hand


def test_deck_52_distinct():
    deck = make_deck_52()
    assert len(deck) == 52
    assert len(set(deck)) == 52
    assert ACE_OF_SPADES in deck


def test_rank_order():
    assert Rank.ACE > Rank.KING > Rank.TEN > Rank.TWO
    assert int(Rank.ACE) == 13
    assert int(Rank.TWO) == 1
    assert Card.parse("A♠").beats(Card.parse("K♠"))
    assert not Card.parse("2♥").beats(Card.parse("2♦"))


def test_card_parse_and_str():
    assert Card.parse("10H") == Card(Suit.HEARTS, Rank.TEN)
    assert Card.parse("th") == Card(Suit.HEARTS, Rank.TEN)
    assert Card.parse("Q♦") == Card(Suit.DIAMONDS, Rank.QUEEN)
    assert str(Card(Suit.CLUBS, Rank.JACK)) == "J♣"
    assert Card(0, 13) == ACE_OF_SPADES


@pytest.mark.parametrize("text", ["", "Z", "1H", "AX"])
def test_card_parse_rejects(text):
    with pytest.raises(ValueError):
        Card.parse(text)


def test_sort_hand_by_suit_then_rank():
    hand = [Card.parse(t) for t in ("2♠", "K♥", "A♠", "3♥")]
    sort_hand(hand)
    assert [str(c) for c in hand] == ["A♠", "2♠", "K♥", "3♥"]


@pytest.mark.parametrize("players", range(2, 9))
def test_deal_sizes(players):
    deal = deal_hands(players, rng=random.Random(players))
    sizes = [len(h) for h in deal.hands]
    assert sum(sizes) == 52
    assert deal.cards_per_player == 52 // players
    assert deal.extra_cards == 52 % players
    # The first 52 % n seats get the extra card.
    for seat, size in enumerate(sizes):
        expected = deal.cards_per_player + (1 if seat < deal.extra_cards else 0)
        assert size == expected
    assert len({c for h in deal.hands for c in h}) == 52


def test_deal_leader_holds_ace_of_spades():
    deal = deal_hands(4, rng=random.Random(42))
    assert ACE_OF_SPADES in deal.hands[deal.leader]
    assert find_ace_of_spades(deal.hands) == deal.leader


def test_deal_is_reproducible_with_seed():
    a = deal_hands(5, rng=random.Random(7))
    b = deal_hands(5, rng=random.Random(7))
    assert a.hands == b.hands
