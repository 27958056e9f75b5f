"""
Trick records and the engine's phase.

The phase is one explicit tagged value instead of independent flags, so a
pending trick and a pending Give-All can never coexist:

    Idle | AwaitingTrickFinalize(pending) | AwaitingGiveAllDecision(request)
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .deck import Card


@dataclass(frozen=True)
class Play:
    """One card on the table and who played it."""

    player: int
    card: Card


class TrickOutcome(str, Enum):
    CLEAN = "clean"    # everyone followed; table discarded
    PICKUP = "pickup"  # someone was void; highest holder absorbs the table


@dataclass(frozen=True)
class PendingTrick:
    """
    A trick whose outcome is known but not yet applied.

    ``seat`` is the highest lead-suit holder: the next leader for a clean
    trick, the collector for a pickup.
    """

    type: TrickOutcome
    seat: int

    @property
    def next_leader(self) -> int | None:
        return self.seat if self.type == TrickOutcome.CLEAN else None

    @property
    def collector(self) -> int | None:
        return self.seat if self.type == TrickOutcome.PICKUP else None


@dataclass(frozen=True)
class GiveAllRequest:
    requester: int
    target: int


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class AwaitingTrickFinalize:
    pending: PendingTrick


@dataclass(frozen=True)
class AwaitingGiveAllDecision:
    request: GiveAllRequest


Phase = Union[Idle, AwaitingTrickFinalize, AwaitingGiveAllDecision]

IDLE = Idle()


__all__ = [
    "Play",
    "TrickOutcome",
    "PendingTrick",
    "GiveAllRequest",
    "Idle",
    "AwaitingTrickFinalize",
    "AwaitingGiveAllDecision",
    "Phase",
    "IDLE",
]
