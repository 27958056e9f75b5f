"""Trick engine: deal, play_card, pickup/clean outcomes, finalize, game end."""
import random

from conftest import cards, make_game

from kazhutha.bots import choose_card
from kazhutha.deck import ACE_OF_SPADES, Card
from kazhutha.game import GameState, RejectReason, seat_configs
from kazhutha.play import legal_plays, must_follow_suit, next_active
from kazhutha.trick import PendingTrick, TrickOutcome


class _RotatingShuffle:
    """'Shuffles' by rotating the ordered deck so A♠ lands on a chosen seat."""

    def __init__(self, offset: int) -> None:
        self.offset = offset

    def shuffle(self, x) -> None:
        x[:] = x[-self.offset:] + x[:-self.offset] if self.offset else x


def _total_cards(game: GameState) -> int:
    return sum(p.hand_count for p in game.players) + len(game.trick) + game.discarded


def test_deal_four_players_ace_of_spades_on_seat_2():
    game = GameState()
    game.setup_players(seat_configs(["A", "B", "C", "D"]))
    game.deal(rng=_RotatingShuffle(2))
    assert ACE_OF_SPADES in game.players[2].hand
    assert game.leader == 2
    assert game.turn == 2
    assert game.first_trick is True
    assert game.game_over is False
    assert game.active_at_trick_start == 4
    assert _total_cards(game) == 52
    assert [p.hand_count for p in game.players] == [13, 13, 13, 13]


def test_deal_logs_announcement():
    game = GameState(rng=random.Random(3))
    game.setup_players(seat_configs(["A", "B", "C"]))
    game.deal()
    messages = [e.message for e in game.logs()]
    assert any("holds A♠ and leads" in m for m in messages)
    assert any("Cards per player: 17 (1 players get +1)" in m for m in messages)


def test_next_active_is_anticlockwise_and_skips_out():
    assert next_active(0, [False] * 4) == 3
    assert next_active(3, [False] * 4) == 2
    assert next_active(2, [False, True, False, False]) == 0
    assert next_active(1, [True, False, True]) == 1


def test_follow_suit_helpers():
    hand = cards("5♥", "K♣")
    assert must_follow_suit(hand, Card.parse("K♣"), Card.parse("2♥").suit)
    assert not must_follow_suit(hand, Card.parse("5♥"), Card.parse("2♥").suit)
    assert not must_follow_suit(hand, Card.parse("K♣"), None)
    assert legal_plays(hand, Card.parse("2♥").suit) == cards("5♥")
    assert legal_plays(hand, Card.parse("2♦").suit) == hand


def test_void_play_is_a_pickup_by_the_highest_not_the_thrower():
    game = make_game([["10♥", "5♠"], ["3♣", "4♣"], ["9♥", "2♦"], ["4♥", "7♦"]], leader=0)
    assert game.play_card(0, Card.parse("10♥")).accepted
    assert game.turn == 3
    assert game.play_card(3, Card.parse("4♥")).accepted
    assert game.play_card(2, Card.parse("9♥")).accepted
    assert game.turn == 1

    result = game.play_card(1, Card.parse("3♣"))
    assert result.accepted and result.pickup
    assert result.collector == 0
    assert game.pending_trick == PendingTrick(TrickOutcome.PICKUP, 0)
    assert game.turn_locked
    assert game.turn == 1
    assert _total_cards(game) == 8

    assert game.finalize_pending_trick() is True
    assert sorted(map(str, game.players[0].hand)) == sorted(["10♥", "4♥", "9♥", "3♣", "5♠"])
    assert game.trick == []
    assert game.lead_suit is None
    assert game.leader == 0 and game.turn == 0
    assert not game.turn_locked
    assert _total_cards(game) == 8


def test_finalize_is_idempotent():
    game = make_game([["10♥", "5♠"], ["3♣", "4♣"]], leader=0)
    game.play_card(0, Card.parse("10♥"))
    game.play_card(1, Card.parse("3♣"))
    assert game.finalize_pending_trick() is True
    snapshot = game.public_state()
    assert game.finalize_pending_trick() is False
    assert game.public_state() == snapshot


def test_all_follow_is_a_clean_trick_led_next_by_the_highest():
    game = make_game([["5♦", "2♣"], ["Q♦", "3♣"], ["2♦", "4♣"]], leader=0)
    game.play_card(0, Card.parse("5♦"))
    game.play_card(2, Card.parse("2♦"))
    result = game.play_card(1, Card.parse("Q♦"))
    assert result.accepted and result.clean
    assert result.next_leader == 1
    assert game.pending_trick == PendingTrick(TrickOutcome.CLEAN, 1)

    game.finalize_pending_trick()
    assert game.discarded == 3
    assert _total_cards(game) == 6
    assert game.leader == 1 and game.turn == 1
    assert game.first_trick is False


def test_rejections_in_order():
    game = make_game([["10♥", "5♠"], ["3♥", "4♣"], ["9♥", "2♦"]], leader=0)
    assert game.play_card(1, Card.parse("3♥")).reason == RejectReason.NOT_YOUR_TURN
    assert game.play_card(0, Card.parse("A♣")).reason == RejectReason.NOT_IN_HAND
    game.play_card(0, Card.parse("10♥"))
    assert game.play_card(2, Card.parse("2♦")).reason == RejectReason.MUST_FOLLOW_SUIT
    assert game.hand_of(2) == cards("9♥", "2♦")

    game.lock_turn()
    assert game.play_card(2, Card.parse("9♥")).reason == RejectReason.TURN_LOCKED
    game.unlock_turn()
    assert game.play_card(2, Card.parse("9♥")).accepted


def test_rejected_play_changes_nothing():
    game = make_game([["10♥"], ["3♥", "4♣"]], leader=0)
    before = game.public_state()
    result = game.play_card(1, Card.parse("3♥"))
    assert not result.accepted
    assert game.public_state() == before


def test_last_card_marks_out_and_ends_game():
    game = make_game([["A♥"], ["K♥", "2♣"]], leader=0)
    game.play_card(0, Card.parse("A♥"))
    assert game.players[0].out
    assert game.turn == 1
    result = game.play_card(1, Card.parse("K♥"))
    assert result.clean
    assert game.game_over
    assert game.logs()[-1].message.startswith("Game over. P1 is the Kazhutha")

    game.finalize_pending_trick()
    assert game.game_over
    assert game.play_card(1, Card.parse("2♣")).reason == RejectReason.GAME_OVER


def test_clean_trick_with_out_winner_passes_the_lead_on():
    game = make_game([["A♥"], ["2♥", "3♣"], ["K♥", "4♣"]], leader=0)
    game.play_card(0, Card.parse("A♥"))
    assert game.turn == 2
    game.play_card(2, Card.parse("K♥"))
    result = game.play_card(1, Card.parse("2♥"))
    assert result.next_leader == 0
    game.finalize_pending_trick()
    assert not game.game_over
    assert game.leader == 2
    assert game.turn == 2
    assert game.active_at_trick_start == 2


def test_changes_channel_publishes_snapshots():
    game = make_game([["10♥", "5♠"], ["3♥", "4♣"]], leader=0)
    seen = []
    unsubscribe = game.changes.subscribe(seen.append)
    game.play_card(0, Card.parse("10♥"))
    assert len(seen) == 1
    assert seen[0].turn == 1
    assert [p.card for p in seen[0].trick] == cards("10♥")
    unsubscribe()
    game.play_card(1, Card.parse("3♥"))
    assert len(seen) == 1


def test_bot_replacement_logs_and_flips_seat():
    game = make_game([["10♥"], ["3♥"]], leader=0)
    game.replace_with_bot(1)
    assert not game.players[1].is_human
    assert "bot takes over" in game.logs()[-1].message
    game.replace_with_bot(1)
    assert sum("bot takes over" in e.message for e in game.logs()) == 1


def test_pickup_by_an_out_seat_is_judged_after_finalize():
    game = make_game([["A♥"], ["2♣", "3♣"]], leader=0)
    game.play_card(0, Card.parse("A♥"))
    assert game.players[0].out and game.turn == 1
    result = game.play_card(1, Card.parse("2♣"))
    assert result.pickup and result.collector == 0
    # The table still belongs to nobody; no verdict during the pause.
    assert not game.game_over
    assert not game.public_state().game_over

    game.finalize_pending_trick()
    assert sorted(map(str, game.hand_of(0))) == ["2♣", "A♥"]
    assert game.players[0].out
    assert game.game_over and game.loser == 1
    assert game.logs()[-1].message == "Game over. P1 is the Kazhutha!"


def test_last_two_cards_as_a_pickup_leave_the_collector_holding():
    game = make_game([["A♥"], ["2♣"]], leader=0)
    game.play_card(0, Card.parse("A♥"))
    result = game.play_card(1, Card.parse("2♣"))
    assert result.pickup and result.collector == 0
    assert game.active_seats() == []

    assert game.finalize_pending_trick() is True
    assert game.game_over
    assert game.loser == 0
    assert game.logs()[-1].message == "Game over. P0 is the Kazhutha!"
    assert _total_cards(game) == 2


def test_last_two_cards_as_a_clean_trick_leave_no_loser():
    game = make_game([["A♥"], ["2♥"]], leader=0)
    game.play_card(0, Card.parse("A♥"))
    result = game.play_card(1, Card.parse("2♥"))
    assert result.clean
    assert game.game_over and game.loser is None
    assert game.logs()[-1].message == "Game over. Nobody is left holding cards."

    game.finalize_pending_trick()
    assert game.discarded == 2
    assert _total_cards(game) == 2


def test_card_total_holds_after_every_action_of_a_seeded_game():
    game = GameState(rng=random.Random(11))
    game.setup_players(seat_configs(["A", "B", "C", "D"], humans=()))
    totals = []
    game.changes.subscribe(lambda s: totals.append(s.cards_in_hands() + len(s.trick) + s.discarded))
    game.deal()
    for _ in range(2000):
        if game.finalize_pending_trick():
            continue
        if game.game_over:
            break
        seat = game.turn
        assert game.play_card(seat, choose_card(game, seat)).accepted
    assert len(totals) > 10
    assert set(totals) == {52}
