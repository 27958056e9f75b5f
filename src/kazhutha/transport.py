"""
Message transport between the authority and mirrors.

Sessions only see ``Connection`` objects (``is_open``, ``send``, ``close``)
and implement ``PeerHandler`` to be told about open/message/close events.
Two implementations:

- ``StreamConnection``: asyncio TCP streams carrying newline-delimited JSON,
  served by ``TcpHostServer`` and opened by ``connect_to_host``.
- ``LoopbackConnection``: an in-process pair that still round-trips every
  message through the JSON codec (tests, local play).

Delivery per connection is reliable and ordered; ``send`` never blocks.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, Set, Tuple

from .protocol import Message, ProtocolError, decode, encode

logger = logging.getLogger(__name__)

# Largest accepted line; a full snapshot is a few KB.
STREAM_LIMIT = 1 << 20


class Connection(Protocol):
    @property
    def is_open(self) -> bool: ...

    def send(self, msg: Message) -> None: ...

    def close(self) -> None: ...


class PeerHandler(Protocol):
    def connection_opened(self, conn: Connection) -> None: ...

    def message_received(self, conn: Connection, msg: Message) -> None: ...

    def connection_closed(self, conn: Connection) -> None: ...


class StreamConnection:
    """One TCP connection speaking newline-delimited JSON."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer
        self._closed = False
        peer = writer.get_extra_info("peername")
        self.label = f"{peer[0]}:{peer[1]}" if isinstance(peer, tuple) else str(peer)

    @property
    def is_open(self) -> bool:
        return not self._closed and not self._writer.is_closing()

    def send(self, msg: Message) -> None:
        if not self.is_open:
            logger.debug("Dropping %s to closed connection %s", msg.get("type"), self.label)
            return
        self._writer.write(encode(msg))

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._writer.close()

    async def pump(self, handler: PeerHandler) -> None:
        """Read until EOF, dispatching each decoded message to ``handler``."""
        handler.connection_opened(self)
        try:
            while True:
                try:
                    line = await self._reader.readline()
                except ValueError as exc:
                    # Line longer than the stream limit; the peer is dropped.
                    logger.warning("Connection %s lost: %s", self.label, exc)
                    break
                if not line:
                    break
                try:
                    msg = decode(line)
                except ProtocolError as exc:
                    logger.warning("Bad message from %s: %s", self.label, exc)
                    continue
                handler.message_received(self, msg)
        except (ConnectionError, asyncio.IncompleteReadError, asyncio.LimitOverrunError) as exc:
            logger.info("Connection %s lost: %s", self.label, exc)
        finally:
            self.close()
            handler.connection_closed(self)


class TcpHostServer:
    """Accept mirror connections and feed them to the host's handler."""

    def __init__(self, handler: PeerHandler, host: str = "127.0.0.1", port: int = 8765) -> None:
        self._handler = handler
        self.host = host
        self.port = port
        self._server: Optional[asyncio.AbstractServer] = None
        self._connections: Set[StreamConnection] = set()

    async def start(self) -> None:
        self._server = await asyncio.start_server(
            self._handle_client, self.host, self.port, limit=STREAM_LIMIT
        )
        sockets = self._server.sockets or []
        if sockets:
            self.port = sockets[0].getsockname()[1]
        logger.info("Hosting on %s:%d", self.host, self.port)

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        conn = StreamConnection(reader, writer)
        self._connections.add(conn)
        logger.info("Player connected from %s", conn.label)
        try:
            await conn.pump(self._handler)
        finally:
            self._connections.discard(conn)

    async def close(self) -> None:
        for conn in list(self._connections):
            conn.close()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None


async def connect_to_host(
    handler: PeerHandler,
    host: str,
    port: int,
) -> Tuple[StreamConnection, "asyncio.Task[None]"]:
    """Open a connection to a host; the returned task pumps it until it closes."""
    reader, writer = await asyncio.open_connection(host, port, limit=STREAM_LIMIT)
    conn = StreamConnection(reader, writer)
    task = asyncio.create_task(conn.pump(handler))
    return conn, task


class LoopbackConnection:
    """
    One end of an in-process connection. Messages are encoded and decoded on
    the way so both ends see exactly what the wire would carry.
    """

    def __init__(self, handler: PeerHandler) -> None:
        self._handler = handler
        self._peer: Optional[LoopbackConnection] = None
        self._open = False

    @classmethod
    def pair(cls, a: PeerHandler, b: PeerHandler) -> Tuple["LoopbackConnection", "LoopbackConnection"]:
        end_a, end_b = cls(a), cls(b)
        end_a._peer, end_b._peer = end_b, end_a
        return end_a, end_b

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        """Open both ends; the first end's handler is told first."""
        assert self._peer is not None
        self._open = self._peer._open = True
        self._handler.connection_opened(self)
        self._peer._handler.connection_opened(self._peer)

    def send(self, msg: Message) -> None:
        if not self._open or self._peer is None:
            return
        self._peer._handler.message_received(self._peer, decode(encode(msg)))

    def close(self) -> None:
        if not self._open:
            return
        assert self._peer is not None
        self._open = self._peer._open = False
        self._handler.connection_closed(self)
        self._peer._handler.connection_closed(self._peer)


__all__ = [
    "Connection",
    "PeerHandler",
    "StreamConnection",
    "TcpHostServer",
    "connect_to_host",
    "LoopbackConnection",
]
