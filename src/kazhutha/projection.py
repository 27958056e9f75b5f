"""
Public snapshot of a game: the only thing that crosses from the authority to
mirrors besides each player's own hand.

Hands are never included, only their sizes. ``turn`` is the effective turn
(the display override while the host pauses on a finished trick).

Dict codecs follow the same schema on both sides of the wire; cards travel as
``{"suit": "♠", "rank": "A"}``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .deck import Card, Rank, Suit
from .trick import GiveAllRequest, PendingTrick, Play, TrickOutcome

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checking only
    from .game import GameState


@dataclass(frozen=True)
class PlayerView:
    """What everybody may know about a seat."""

    name: str
    is_human: bool
    hand_count: int
    out: bool
    peer_id: str | None = None


@dataclass(frozen=True)
class PublicState:
    players: List[PlayerView] = field(default_factory=list)
    player_count: int = 0
    leader: int = 0
    turn: int = 0
    trick: List[Play] = field(default_factory=list)
    lead_suit: Suit | None = None
    game_over: bool = False
    first_trick: bool = True
    turn_locked: bool = False
    pending_trick: PendingTrick | None = None
    display_turn: int | None = None
    give_all_request: GiveAllRequest | None = None
    discarded: int = 0

    def cards_in_hands(self) -> int:
        return sum(p.hand_count for p in self.players)


def project(game: "GameState") -> PublicState:
    """Build the public snapshot of an authoritative game."""
    return PublicState(
        players=[
            PlayerView(
                name=p.name,
                is_human=p.is_human,
                hand_count=p.hand_count,
                out=p.out,
                peer_id=p.peer_id,
            )
            for p in game.players
        ],
        player_count=game.player_count,
        leader=game.leader,
        turn=game.effective_turn,
        trick=list(game.trick),
        lead_suit=game.lead_suit,
        game_over=game.game_over,
        first_trick=game.first_trick,
        turn_locked=game.turn_locked,
        pending_trick=game.pending_trick,
        display_turn=game.display_turn,
        give_all_request=game.give_all_request,
        discarded=game.discarded,
    )


# --------------------------------------------------------------------- codecs


def card_to_dict(card: Card) -> Dict[str, str]:
    return {"suit": card.suit.symbol, "rank": card.rank.label}


def card_from_dict(d: Dict[str, Any]) -> Card:
    return Card(suit=Suit.from_symbol(str(d["suit"])), rank=Rank.from_label(str(d["rank"])))


def _play_to_dict(play: Play) -> Dict[str, Any]:
    return {"player": play.player, "card": card_to_dict(play.card)}


def _play_from_dict(d: Dict[str, Any]) -> Play:
    return Play(player=int(d["player"]), card=card_from_dict(d["card"]))


def _pending_to_dict(pending: Optional[PendingTrick]) -> Optional[Dict[str, Any]]:
    if pending is None:
        return None
    d: Dict[str, Any] = {"type": pending.type.value}
    if pending.type == TrickOutcome.CLEAN:
        d["next_leader"] = pending.seat
    else:
        d["collector"] = pending.seat
    return d


def _pending_from_dict(d: Optional[Dict[str, Any]]) -> Optional[PendingTrick]:
    if not d:
        return None
    outcome = TrickOutcome(d["type"])
    key = "next_leader" if outcome == TrickOutcome.CLEAN else "collector"
    return PendingTrick(outcome, int(d[key]))


def _request_to_dict(request: Optional[GiveAllRequest]) -> Optional[Dict[str, int]]:
    if request is None:
        return None
    return {"requester": request.requester, "target": request.target}


def _request_from_dict(d: Optional[Dict[str, Any]]) -> Optional[GiveAllRequest]:
    if not d:
        return None
    return GiveAllRequest(requester=int(d["requester"]), target=int(d["target"]))


def _player_to_dict(p: PlayerView) -> Dict[str, Any]:
    return {
        "name": p.name,
        "is_human": p.is_human,
        "hand_count": p.hand_count,
        "out": p.out,
        "peer_id": p.peer_id,
    }


def _player_from_dict(d: Dict[str, Any]) -> PlayerView:
    return PlayerView(
        name=str(d.get("name", "Player")),
        is_human=bool(d.get("is_human", False)),
        hand_count=int(d.get("hand_count", 0)),
        out=bool(d.get("out", False)),
        peer_id=d.get("peer_id"),
    )


def public_state_to_dict(state: PublicState) -> Dict[str, Any]:
    return {
        "players": [_player_to_dict(p) for p in state.players],
        "player_count": state.player_count,
        "leader": state.leader,
        "turn": state.turn,
        "trick": [_play_to_dict(p) for p in state.trick],
        "lead_suit": state.lead_suit.symbol if state.lead_suit is not None else None,
        "game_over": state.game_over,
        "first_trick": state.first_trick,
        "turn_locked": state.turn_locked,
        "pending_trick": _pending_to_dict(state.pending_trick),
        "display_turn": state.display_turn,
        "give_all_request": _request_to_dict(state.give_all_request),
        "discarded": state.discarded,
    }


def public_state_from_dict(d: Dict[str, Any]) -> PublicState:
    lead = d.get("lead_suit")
    display = d.get("display_turn")
    return PublicState(
        players=[_player_from_dict(p) for p in d.get("players", [])],
        player_count=int(d.get("player_count", 0)),
        leader=int(d.get("leader", 0)),
        turn=int(d.get("turn", 0)),
        trick=[_play_from_dict(p) for p in d.get("trick", [])],
        lead_suit=Suit.from_symbol(lead) if lead else None,
        game_over=bool(d.get("game_over", False)),
        first_trick=bool(d.get("first_trick", False)),
        turn_locked=bool(d.get("turn_locked", False)),
        pending_trick=_pending_from_dict(d.get("pending_trick")),
        display_turn=int(display) if display is not None else None,
        give_all_request=_request_from_dict(d.get("give_all_request")),
        discarded=int(d.get("discarded", 0)),
    )


__all__ = [
    "PlayerView",
    "PublicState",
    "project",
    "card_to_dict",
    "card_from_dict",
    "public_state_to_dict",
    "public_state_from_dict",
]
