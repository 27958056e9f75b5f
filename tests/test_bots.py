"""Bot card selection."""
import pytest

from conftest import cards, make_game

from kazhutha.bots import choose_card
from kazhutha.deck import Card


def test_first_trick_leader_opens_with_ace_of_spades():
    game = make_game([["2♥", "A♠", "3♣"], ["4♦"]], leader=0, first_trick=True)
    assert choose_card(game, 0) == Card.parse("A♠")


def test_later_lead_is_lowest_card():
    game = make_game([["2♥", "A♠", "3♣"], ["4♦"]], leader=0, first_trick=False)
    assert choose_card(game, 0) == Card.parse("2♥")


def test_follow_with_lowest_of_lead_suit():
    game = make_game([["10♥"], ["K♥", "5♥", "2♣"]], leader=0)
    game.play_card(0, Card.parse("10♥"))
    assert choose_card(game, 1) == Card.parse("5♥")


def test_void_throws_highest():
    game = make_game([["10♥"], ["K♣", "5♦", "2♣"]], leader=0)
    game.play_card(0, Card.parse("10♥"))
    assert choose_card(game, 1) == Card.parse("K♣")


def test_choice_is_always_legal():
    game = make_game([["10♥", "A♠"], ["K♥", "5♦"], ["Q♠", "2♥"]], leader=0)
    game.play_card(0, Card.parse("10♥"))
    for seat in (2, 1):
        card = choose_card(game, seat)
        assert game.play_card(seat, card).accepted


def test_empty_hand_raises():
    game = make_game([[], ["2♣"], ["3♣"]], leader=1)
    with pytest.raises(ValueError):
        choose_card(game, 0)


def test_does_not_mutate_the_view():
    game = make_game([["10♥", "A♠"], ["K♥"]], leader=0)
    before = game.hand_of(0)
    choose_card(game, 0)
    assert game.hand_of(0) == before == cards("A♠", "10♥")
