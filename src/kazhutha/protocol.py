"""
Messages exchanged between the authority and its mirrors.

Every message is a JSON object with a ``type`` key, sent as one line of
newline-delimited JSON. Builders return plain dicts so in-process endpoints
(the host's own seat, loopback connections in tests) see exactly what a
remote peer would after decoding.

mirror → authority: play_request, give_all_request, give_all_response, request_join
authority → mirror: game_state, your_hand, give_all_prompt, give_all_denied,
                    give_all_result, players_list, log_entry
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple

from .deck import Card
from .game import DenyReason, LogEntry, LogKind
from .projection import (
    PublicState,
    card_from_dict,
    card_to_dict,
    public_state_from_dict,
    public_state_to_dict,
)

Message = Dict[str, Any]


class ProtocolError(ValueError):
    """A message could not be decoded or lacks required fields."""


class MessageType(str, Enum):
    PLAY_REQUEST = "play_request"
    GIVE_ALL_REQUEST = "give_all_request"
    GIVE_ALL_RESPONSE = "give_all_response"
    REQUEST_JOIN = "request_join"
    GAME_STATE = "game_state"
    YOUR_HAND = "your_hand"
    GIVE_ALL_PROMPT = "give_all_prompt"
    GIVE_ALL_DENIED = "give_all_denied"
    GIVE_ALL_RESULT = "give_all_result"
    PLAYERS_LIST = "players_list"
    LOG_ENTRY = "log_entry"


@dataclass(frozen=True)
class RosterEntry:
    peer_id: str | None
    name: str
    is_host: bool = False


@dataclass(frozen=True)
class GiveAllPrompt:
    from_index: int
    from_peer_id: str | None
    from_name: str


# ------------------------------------------------------------------ builders


def play_request(card: Card) -> Message:
    return {"type": MessageType.PLAY_REQUEST.value, "card": card_to_dict(card)}


def give_all_request(target_peer_id: str) -> Message:
    return {"type": MessageType.GIVE_ALL_REQUEST.value, "target_peer_id": target_peer_id}


def give_all_response(accepted: bool) -> Message:
    return {"type": MessageType.GIVE_ALL_RESPONSE.value, "accepted": bool(accepted)}


def request_join(name: str, peer_id: str) -> Message:
    return {"type": MessageType.REQUEST_JOIN.value, "name": name, "peer_id": peer_id}


def game_state(state: PublicState) -> Message:
    return {"type": MessageType.GAME_STATE.value, "game_state": public_state_to_dict(state)}


def your_hand(seat: int, hand: Sequence[Card]) -> Message:
    return {
        "type": MessageType.YOUR_HAND.value,
        "player_index": seat,
        "hand": [card_to_dict(c) for c in hand],
    }


def give_all_prompt(prompt: GiveAllPrompt) -> Message:
    return {
        "type": MessageType.GIVE_ALL_PROMPT.value,
        "from_index": prompt.from_index,
        "from_peer_id": prompt.from_peer_id,
        "from_name": prompt.from_name,
    }


def give_all_denied(reason: DenyReason) -> Message:
    return {"type": MessageType.GIVE_ALL_DENIED.value, "reason": reason.value}


def give_all_result(accepted: bool, requester: int, target: int) -> Message:
    return {
        "type": MessageType.GIVE_ALL_RESULT.value,
        "accepted": accepted,
        "from_index": requester,
        "target_index": target,
    }


def players_list(roster: Sequence[RosterEntry]) -> Message:
    return {
        "type": MessageType.PLAYERS_LIST.value,
        "list": [{"peer_id": r.peer_id, "name": r.name, "is_host": r.is_host} for r in roster],
    }


def log_entry(entry: LogEntry) -> Message:
    return {
        "type": MessageType.LOG_ENTRY.value,
        "entry": {"msg": entry.message, "kind": entry.kind.value, "ts": entry.ts},
    }


# ------------------------------------------------------------------- readers


def message_type(msg: Message) -> MessageType:
    try:
        return MessageType(msg["type"])
    except (KeyError, TypeError, ValueError):
        raise ProtocolError(f"Unknown message type in {msg!r}") from None


def _field(msg: Message, key: str) -> Any:
    if key not in msg:
        raise ProtocolError(f"{msg.get('type')!r} message is missing {key!r}")
    return msg[key]


def read_card(msg: Message) -> Card:
    try:
        return card_from_dict(_field(msg, "card"))
    except (KeyError, TypeError, ValueError) as exc:
        raise ProtocolError(f"Bad card in {msg!r}: {exc}") from exc


def read_public_state(msg: Message) -> PublicState:
    try:
        return public_state_from_dict(_field(msg, "game_state"))
    except (KeyError, TypeError, ValueError) as exc:
        raise ProtocolError(f"Bad game_state: {exc}") from exc


def read_hand(msg: Message) -> Tuple[int, List[Card]]:
    try:
        seat = int(_field(msg, "player_index"))
        hand = [card_from_dict(c) for c in _field(msg, "hand")]
    except (KeyError, TypeError, ValueError) as exc:
        raise ProtocolError(f"Bad your_hand: {exc}") from exc
    return seat, hand


def read_prompt(msg: Message) -> GiveAllPrompt:
    return GiveAllPrompt(
        from_index=int(_field(msg, "from_index")),
        from_peer_id=msg.get("from_peer_id"),
        from_name=str(msg.get("from_name") or "Player"),
    )


def read_roster(msg: Message) -> List[RosterEntry]:
    return [
        RosterEntry(peer_id=r.get("peer_id"), name=str(r.get("name", "Player")), is_host=bool(r.get("is_host")))
        for r in msg.get("list") or []
    ]


def read_log_entry(msg: Message) -> LogEntry:
    raw = _field(msg, "entry")
    if not isinstance(raw, dict):
        raise ProtocolError(f"Bad log entry: {raw!r}")
    try:
        kind = LogKind(raw.get("kind") or LogKind.INFO.value)
    except ValueError:
        kind = LogKind.INFO
    return LogEntry(message=str(raw.get("msg", "")), kind=kind, ts=float(raw.get("ts", 0.0)))


# --------------------------------------------------------------------- codec


def encode(msg: Message) -> bytes:
    """One line of compact JSON, newline-terminated."""
    return (json.dumps(msg, separators=(",", ":"), ensure_ascii=False) + "\n").encode("utf-8")


def decode(line: bytes | str) -> Message:
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"Invalid UTF-8: {exc}") from exc
    try:
        msg = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"Invalid JSON: {exc}") from exc
    if not isinstance(msg, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(msg).__name__}")
    message_type(msg)
    return msg


__all__ = [
    "Message",
    "MessageType",
    "ProtocolError",
    "RosterEntry",
    "GiveAllPrompt",
    "encode",
    "decode",
    "message_type",
]
