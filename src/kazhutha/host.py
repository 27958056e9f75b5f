"""
Authority-side orchestration.

``HostSession`` owns the one ``GameState`` of a session and is the only thing
that mutates it. Every action, whether it comes from the host's own seat,
a bot, or a remote mirror, goes through the same path:

1. locked engine → reject and resync everyone (stale request, not an error);
2. apply the engine action;
3. trick outcome → park the turn indicator on the next actor, lock, publish,
   pause, then finalize, unlock and publish again;
4. ordinary play → publish at once.

"Publish" always means the public snapshot to every connection plus each
seated mirror's own hand, as a pair. Messages addressed to the host's own
seat are published on ``local`` as the same dicts a mirror would receive.
"""
from __future__ import annotations

import logging
import random
import uuid
from typing import Dict, List, Sequence

from . import protocol
from .bots import CardChooser, choose_card
from .config import SessionConfig
from .deck import Card
from .events import EventChannel
from .game import (
    DenyReason,
    GameState,
    GiveAllResult,
    LogEntry,
    PlayResult,
    RejectReason,
    SeatConfig,
)
from .protocol import GiveAllPrompt, Message, MessageType, ProtocolError, RosterEntry
from .scheduling import AsyncioScheduler, Scheduler, Timer
from .transport import Connection
from .trick import PendingTrick

logger = logging.getLogger(__name__)

HOST_SEAT = 0


class HostSession:
    """Authoritative game plus lobby, timers and message routing."""

    def __init__(
        self,
        name: str = "Host",
        config: SessionConfig | None = None,
        scheduler: Scheduler | None = None,
        chooser: CardChooser = choose_card,
        peer_id: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.name = name
        self.peer_id = peer_id or uuid.uuid4().hex
        self.config = config or SessionConfig()
        self.game = GameState(rng=rng)
        self.local: EventChannel[Message] = EventChannel()
        self.started = False
        self._scheduler = scheduler or AsyncioScheduler()
        self._pause = Timer(self._scheduler)
        self._bot = Timer(self._scheduler)
        self._chooser = chooser
        self._peers: Dict[Connection, str] = {}
        self._connections: Dict[str, Connection] = {}
        self._names: Dict[str, str] = {}
        self._seats: Dict[str, int] = {}
        self.game.log.subscribe(self._forward_log)

    # ---------------------------------------------------------------- lobby

    def roster(self) -> List[RosterEntry]:
        """Host first, then joined peers in peer-id order (= seat order)."""
        entries = [RosterEntry(peer_id=self.peer_id, name=self.name, is_host=True)]
        for peer_id in sorted(self._connections):
            entries.append(RosterEntry(peer_id=peer_id, name=self._names.get(peer_id, _default_name(peer_id))))
        return entries

    def seat_of(self, peer_id: str | None) -> int | None:
        if not self.started or peer_id is None:
            return None
        if peer_id == self.peer_id:
            return HOST_SEAT
        return self._seats.get(peer_id)

    def start_game(
        self,
        extra_seats: Sequence[SeatConfig] = (),
        host_is_human: bool = True,
    ) -> None:
        """
        Seat the host (seat 0), every joined peer in roster order, then
        ``extra_seats`` (usually bots), and deal.
        """
        peers = sorted(self._connections)
        configs = [SeatConfig(self.name, host_is_human, self.peer_id)]
        configs += [SeatConfig(self._names.get(p, _default_name(p)), True, p) for p in peers]
        configs += list(extra_seats)
        self.config.validate_player_count(len(configs))

        self._pause.cancel()
        self._bot.cancel()
        self._seats = {peer_id: i + 1 for i, peer_id in enumerate(peers)}
        self.game.setup_players(configs)
        self.game.deal()
        self.started = True
        logger.info("Game started with %d seats (%d remote)", len(configs), len(peers))

        self._sync()
        self._broadcast_roster()
        self._schedule_bot()

    def close(self) -> None:
        self._pause.cancel()
        self._bot.cancel()

    # -------------------------------------------------------------- actions

    def submit_play(self, seat: int, card: Card) -> PlayResult:
        """Play a card for ``seat`` (host UI, bot or remote request)."""
        if self.game.turn_locked:
            logger.debug("Seat %d played %s while locked; resyncing", seat, card)
            self._sync()
            return PlayResult.reject(RejectReason.TURN_LOCKED)

        result = self.game.play_card(seat, card)
        if result.pending is not None:
            self._begin_pause(result.pending)
        else:
            if not result.accepted:
                logger.debug("Seat %d play %s rejected: %s", seat, card, result.reason.value)
            self._sync()
            self._schedule_bot()
        return result

    def request_give_all(self, requester: int, target_peer_id: str | None) -> DenyReason | None:
        """
        Open a Give-All from seat ``requester`` towards the seat owned by
        ``target_peer_id``. Returns the denial reason, or None once the
        target has been prompted.
        """
        game = self.game
        target = self.seat_of(target_peer_id)
        reason: DenyReason | None = None
        if target is None or game.players[target].out:
            reason = DenyReason.INVALID_TARGET
        elif target == requester:
            reason = DenyReason.NO_SELF_TARGET
        elif game.game_over:
            reason = DenyReason.GAME_OVER
        elif game.give_all_request is not None:
            reason = DenyReason.ANOTHER_REQUEST_PENDING
        elif game.turn_locked:
            reason = DenyReason.TRICK_RESOLVING
        elif game.players[requester].out:
            reason = DenyReason.NOT_ACTIVE
        if reason is not None:
            if reason in (DenyReason.ANOTHER_REQUEST_PENDING, DenyReason.TRICK_RESOLVING):
                # Stale view of a locked game.
                self._sync()
            self._deny(requester, reason)
            return reason
        assert target is not None

        game.set_give_all_request(requester, target)
        self._bot.cancel()
        self._sync()

        prompt = GiveAllPrompt(
            from_index=requester,
            from_peer_id=game.players[requester].peer_id,
            from_name=game.players[requester].name,
        )
        if not self._send_to_seat(target, protocol.give_all_prompt(prompt)):
            game.clear_give_all_request()
            self._sync()
            self._deny(requester, DenyReason.TARGET_UNREACHABLE)
            self._schedule_bot()
            return DenyReason.TARGET_UNREACHABLE
        return None

    def respond_give_all(self, responder: int, accepted: bool) -> GiveAllResult | None:
        """Apply the target's decision. Anyone but the addressed target is ignored."""
        request = self.game.give_all_request
        if request is None or responder != request.target:
            logger.debug("Ignoring Give-All response from seat %d (pending: %s)", responder, request)
            return None

        if accepted:
            result = self.game.accept_give_all(request.requester, request.target)
        else:
            result = self.game.reject_give_all(request.requester, request.target)

        if result.pending is not None:
            self._begin_pause(result.pending)
        else:
            self._sync()
            self._schedule_bot()
        self._send_to_seat(
            request.requester,
            protocol.give_all_result(result.accepted, request.requester, request.target),
        )
        return result

    # ---------------------------------------------------------- trick pause

    def _begin_pause(self, pending: PendingTrick) -> None:
        self._bot.cancel()
        self.game.set_display_turn(pending.seat)
        self.game.lock_turn()
        self._sync()
        logger.info(
            "Trick completed (%s, seat %d); pausing %.1fs before finalizing",
            pending.type.value,
            pending.seat,
            self.config.pause_seconds,
        )
        self._pause.start(self.config.pause_seconds, self._end_pause)

    def _end_pause(self) -> None:
        logger.info("Pause ended; finalizing trick")
        self.game.finalize_pending_trick()
        self.game.unlock_turn()
        self._sync()
        self._schedule_bot()

    # ------------------------------------------------------------------ bots

    def _bot_to_move(self) -> bool:
        game = self.game
        if not self.started or game.game_over or game.turn_locked:
            return False
        player = game.players[game.turn]
        return not player.is_human and not player.out

    def _schedule_bot(self) -> None:
        if self._bot_to_move():
            self._bot.start(self.config.bot_think_seconds, self._bot_move)

    def _bot_move(self) -> None:
        if not self._bot_to_move():
            return
        seat = self.game.turn
        self.submit_play(seat, self._chooser(self.game, seat))

    # -------------------------------------------------------- peer handler

    def connection_opened(self, conn: Connection) -> None:
        logger.info("Connection opened; waiting for join request")

    def connection_closed(self, conn: Connection) -> None:
        peer_id = self._peers.pop(conn, None)
        if peer_id is None:
            return
        self._connections.pop(peer_id, None)
        name = self._names.pop(peer_id, _default_name(peer_id))
        logger.info("Player disconnected: %s", name)
        seat = self._seats.pop(peer_id, None)
        if self.started and seat is not None:
            self._seat_left(seat)
        self._broadcast_roster()

    def message_received(self, conn: Connection, msg: Message) -> None:
        try:
            mtype = protocol.message_type(msg)
            if mtype == MessageType.REQUEST_JOIN:
                self._on_join(conn, msg)
                return
            peer_id = self._peers.get(conn)
            seat = self._seats.get(peer_id) if peer_id is not None else None
            if seat is None:
                logger.debug("Ignoring %s from unseated connection", mtype.value)
                return
            if mtype == MessageType.PLAY_REQUEST:
                self.submit_play(seat, protocol.read_card(msg))
            elif mtype == MessageType.GIVE_ALL_REQUEST:
                self.request_give_all(seat, msg.get("target_peer_id"))
            elif mtype == MessageType.GIVE_ALL_RESPONSE:
                if "accepted" not in msg:
                    raise ProtocolError("give_all_response without 'accepted'")
                self.respond_give_all(seat, bool(msg["accepted"]))
            else:
                logger.debug("Ignoring %s sent to the host", mtype.value)
        except (TypeError, ValueError) as exc:
            logger.warning("Dropping malformed message: %s", exc)

    def _on_join(self, conn: Connection, msg: Message) -> None:
        peer_id = str(msg.get("peer_id") or uuid.uuid4().hex)
        if peer_id == self.peer_id or (peer_id in self._connections and self._connections[peer_id] is not conn):
            logger.warning("Rejecting join with duplicate peer id %s", peer_id)
            conn.close()
            return
        previous = self._peers.get(conn)
        if previous is not None and previous != peer_id:
            logger.info("Connection renamed itself from %s to %s", previous, peer_id)
            self._connections.pop(previous, None)
            self._names.pop(previous, None)
            if previous in self._seats:
                self._seats[peer_id] = self._seats.pop(previous)
        self._peers[conn] = peer_id
        self._connections[peer_id] = conn
        self._names[peer_id] = str(msg.get("name") or _default_name(peer_id))
        logger.info("Player connected: %s (%s)", self._names[peer_id], peer_id)
        self._broadcast_roster()
        if self.started:
            # Late joiners watch; they have no seat.
            self._send(conn, protocol.game_state(self.game.public_state()))

    def _seat_left(self, seat: int) -> None:
        game = self.game
        request = game.give_all_request
        if request is not None and seat in (request.requester, request.target):
            game.clear_give_all_request()
            if seat == request.target:
                self._deny(request.requester, DenyReason.TARGET_UNREACHABLE)
        game.replace_with_bot(seat)
        self._sync()
        self._schedule_bot()

    # ------------------------------------------------------------ publishing

    def send_hands(self) -> None:
        for peer_id, seat in self._seats.items():
            conn = self._connections.get(peer_id)
            if conn is not None:
                self._send(conn, protocol.your_hand(seat, self.game.hand_of(seat)))
        if self.started:
            self.local.publish(protocol.your_hand(HOST_SEAT, self.game.hand_of(HOST_SEAT)))

    def _sync(self) -> None:
        self.broadcast_state()
        self.send_hands()

    def broadcast_state(self) -> None:
        msg = protocol.game_state(self.game.public_state())
        for conn in list(self._connections.values()):
            self._send(conn, msg)
        if self.started:
            self.local.publish(msg)

    def _broadcast_roster(self) -> None:
        msg = protocol.players_list(self.roster())
        for conn in list(self._connections.values()):
            self._send(conn, msg)
        self.local.publish(msg)

    def _forward_log(self, entry: LogEntry) -> None:
        msg = protocol.log_entry(entry)
        for conn in list(self._connections.values()):
            self._send(conn, msg)

    def _deny(self, seat: int, reason: DenyReason) -> None:
        logger.info("Give-All from seat %d denied: %s", seat, reason.value)
        self._send_to_seat(seat, protocol.give_all_denied(reason))

    def _send_to_seat(self, seat: int, msg: Message) -> bool:
        """Deliver to whoever sits at ``seat``. False if nobody can receive it."""
        if seat == HOST_SEAT:
            if self.started and not self.game.players[HOST_SEAT].is_human:
                return False
            self.local.publish(msg)
            return True
        for peer_id, s in self._seats.items():
            if s == seat:
                conn = self._connections.get(peer_id)
                return conn is not None and self._send(conn, msg)
        return False

    @staticmethod
    def _send(conn: Connection, msg: Message) -> bool:
        if not conn.is_open:
            return False
        conn.send(msg)
        return True


def _default_name(peer_id: str) -> str:
    return f"Player {peer_id[-4:]}"


__all__ = ["HostSession", "HOST_SEAT"]
