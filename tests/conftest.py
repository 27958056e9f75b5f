"""Shared fixtures: a manual clock for the host's timers and a hand-built game."""
from __future__ import annotations

from typing import Callable, List, Sequence

import pytest

from kazhutha.deck import Card, sort_hand
from kazhutha.game import GameState, SeatConfig


class _Handle:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when the test says so."""

    def __init__(self) -> None:
        self.now = 0.0
        self._handles: List[_Handle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _Handle:
        handle = _Handle(self.now + max(0.0, delay), callback)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in time order."""
        target = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._handles.remove(handle)
            self.now = handle.when
            handle.callback()
        self.now = target


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


def cards(*texts: str) -> List[Card]:
    return [Card.parse(t) for t in texts]


def make_game(hands: Sequence[Sequence[str]], leader: int = 0, first_trick: bool = False) -> GameState:
    """A game with the given hands (card strings), ``leader`` to play, every seat human."""
    game = GameState()
    game.setup_players([SeatConfig(name=f"P{i}", is_human=True) for i in range(len(hands))])
    for player, hand in zip(game.players, hands):
        player.hand = cards(*hand)
        sort_hand(player.hand)
        player.out = not player.hand
    game.leader = leader
    game.turn = leader
    game.first_trick = first_trick
    game.active_at_trick_start = len(game.active_seats())
    return game
