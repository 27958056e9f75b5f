"""Kazhutha ("donkey") trick-taking card game: engine, host/mirror sessions, console client."""

__version__ = "0.1.0"

from .deck import Card, Suit, Rank, ACE_OF_SPADES, make_deck_52
from .deal import Deal, deal_hands, find_ace_of_spades
from .play import legal_plays, must_follow_suit, next_active
from .trick import GiveAllRequest, PendingTrick, Play, TrickOutcome
from .game import (
    DenyReason,
    GameState,
    GiveAllResult,
    LogEntry,
    LogKind,
    PlayResult,
    RejectReason,
    SeatConfig,
    seat_configs,
)
from .projection import PlayerView, PublicState, project
from .mirror import MirrorState
from .config import SessionConfig
from .host import HostSession
from .client import ClientSession
