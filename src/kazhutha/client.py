"""
Mirror-side session.

A ``ClientSession`` never changes shared state on its own: every intent (play,
Give-All request, Give-All answer) is shipped to the host, and only the
host's snapshots and hand messages update the local ``MirrorState``.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import List, Tuple

from . import protocol
from .deck import Card
from .events import EventChannel
from .game import DenyReason, LogEntry
from .mirror import MirrorState
from .projection import PublicState
from .protocol import GiveAllPrompt, Message, MessageType, RosterEntry
from .transport import Connection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GiveAllOutcome:
    accepted: bool
    requester: int
    target: int


class ClientSession:
    """Mirror of a remote authority."""

    def __init__(self, name: str = "Player", peer_id: str | None = None) -> None:
        self.name = name
        self.peer_id = peer_id or uuid.uuid4().hex
        self.mirror = MirrorState()
        self.started = False
        self.roster: List[RosterEntry] = []
        self.snapshots: EventChannel[PublicState] = EventChannel()
        self.hands: EventChannel[Tuple[int, List[Card]]] = EventChannel()
        self.prompts: EventChannel[GiveAllPrompt] = EventChannel()
        self.denials: EventChannel[DenyReason | str] = EventChannel()
        self.results: EventChannel[GiveAllOutcome] = EventChannel()
        self.roster_changes: EventChannel[List[RosterEntry]] = EventChannel()
        self.log: EventChannel[LogEntry] = EventChannel()
        self.disconnected: EventChannel[None] = EventChannel()
        self._conn: Connection | None = None

    @property
    def connected(self) -> bool:
        return self._conn is not None and self._conn.is_open

    # -------------------------------------------------------------- intents

    def send_play(self, card: Card) -> bool:
        return self._send(protocol.play_request(card))

    def send_give_all_request(self, target_peer_id: str) -> bool:
        return self._send(protocol.give_all_request(target_peer_id))

    def send_give_all_response(self, accepted: bool) -> bool:
        return self._send(protocol.give_all_response(accepted))

    def _send(self, msg: Message) -> bool:
        if not self.connected:
            logger.warning("Not connected to host; %s not sent", msg["type"])
            return False
        assert self._conn is not None
        self._conn.send(msg)
        return True

    # -------------------------------------------------------- peer handler

    def connection_opened(self, conn: Connection) -> None:
        self._conn = conn
        logger.info("Connected to host")
        conn.send(protocol.request_join(self.name, self.peer_id))

    def connection_closed(self, conn: Connection) -> None:
        if conn is self._conn:
            self._conn = None
            logger.warning("Connection to host closed")
            self.disconnected.publish(None)

    def message_received(self, conn: Connection, msg: Message) -> None:
        try:
            self._dispatch(msg)
        except (TypeError, ValueError) as exc:
            logger.warning("Dropping malformed message from host: %s", exc)

    def _dispatch(self, msg: Message) -> None:
        mtype = protocol.message_type(msg)
        if mtype == MessageType.GAME_STATE:
            self.mirror.apply_host_state(protocol.read_public_state(msg))
            self.snapshots.publish(self.mirror.public_state())
        elif mtype == MessageType.YOUR_HAND:
            seat, hand = protocol.read_hand(msg)
            self.mirror.set_own_hand(seat, hand)
            self.started = True
            self.hands.publish((seat, self.mirror.hand))
        elif mtype == MessageType.GIVE_ALL_PROMPT:
            self.prompts.publish(protocol.read_prompt(msg))
        elif mtype == MessageType.GIVE_ALL_DENIED:
            raw = str(msg.get("reason") or "unknown")
            try:
                reason: DenyReason | str = DenyReason(raw)
            except ValueError:
                reason = raw
            self.denials.publish(reason)
        elif mtype == MessageType.GIVE_ALL_RESULT:
            self.results.publish(
                GiveAllOutcome(
                    accepted=bool(msg.get("accepted")),
                    requester=int(msg.get("from_index", -1)),
                    target=int(msg.get("target_index", -1)),
                )
            )
        elif mtype == MessageType.PLAYERS_LIST:
            self.roster = protocol.read_roster(msg)
            self.roster_changes.publish(self.roster)
        elif mtype == MessageType.LOG_ENTRY:
            self.log.publish(protocol.read_log_entry(msg))
        else:
            logger.debug("Ignoring %s sent to a mirror", mtype.value)


__all__ = ["ClientSession", "GiveAllOutcome"]
