"""
One client connection.

LineConn is the asyncio.Protocol the server instantiates per accepted socket. The protocol
callbacks stay synchronous and only move bytes and flags around:
- data_received(data): feed the line scanner, wake the session, pause reading if the client is
  far ahead of us.
- eof_received(): client half-closed; lines already buffered still get their replies.
- connection_lost(exc): peer gone or we closed; wakes the session so it can clean up.
- pause_writing()/resume_writing(): transport send buffer crossed its water marks.

The session itself (read loop, watchdog, dispatch, transcript) runs as one task per connection,
spawned from connection_made and registered in ServerState.tasks so shutdown can wait for it.
"""
import asyncio
import logging
import click
from .client_log import ClientLog
from .config import Config
from .dispatch import dispatch, too_long
from .flow_control import FlowControl, HIGH_WATER_LIMIT_READ
from .scanner import LineScanner, TOO_LONG, Scan
from .server_state import ServerState
from .util import format_addr, get_remote_addr
from .watchdog import Watchdog

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("echoserver.access")


class LineConn(asyncio.Protocol):

    def __init__(self,
                 config: Config,
                 server_state: ServerState,
                 loop: asyncio.AbstractEventLoop | None = None):
        self.loop = loop or asyncio.get_event_loop()
        self.config = config

        # Per-connection state
        self.transport: asyncio.Transport | None = None
        self.flow_control: FlowControl | None = None
        self.client: tuple[str, int] | None = None
        self.address = "unknown"
        self.scanner = LineScanner(config.max_message_size)
        self.line_event = asyncio.Event()
        self.disconnected = False
        self.watchdog: Watchdog | None = None
        self.session: asyncio.Task | None = None

        # Shared server state
        self.server_state = server_state
        self.connections = server_state.connections
        self.tasks = server_state.tasks

    def connection_made(self, transport: asyncio.Transport):
        self.connections.add(self)
        self.server_state.total_connections += 1
        self.transport = transport
        self.flow_control = FlowControl(transport)
        self.client = get_remote_addr(transport)
        self.address = format_addr(self.client)

        self.session = self.loop.create_task(self.run_session())
        self.session.add_done_callback(self.tasks.discard)
        self.tasks.add(self.session)

    def connection_lost(self, exc: Exception | None = None) -> None:
        """
        Called when the peer closes the connection, on a network error, or after our own
        transport.close() (watchdog, bye/quit, shutdown). Closing is idempotent, so it does not
        matter which of those got here first.
        """
        self.connections.discard(self)
        self.disconnected = True
        self.scanner.feed_eof()
        self.line_event.set()
        if self.flow_control is not None:
            self.flow_control.resume_writing()  # a session blocked in drain() must not stall
        if exc is not None:
            logger.debug("%s connection lost: %s", self.address, exc)

    def eof_received(self):
        self.scanner.feed_eof()
        self.line_event.set()
        # keep the write side open until the buffered lines are answered
        return True

    def data_received(self, data: bytes):
        self.scanner.feed(data)
        if self.scanner.buffered > HIGH_WATER_LIMIT_READ:
            self.flow_control.pause_reading()
        self.line_event.set()

    def pause_writing(self) -> None:
        """
        Called by the transport when the write buffer exceeds the high water mark
        """
        self.flow_control.pause_writing()

    def resume_writing(self) -> None:
        """
        Called by the transport when the write buffer goes below the low water mark
        """
        self.flow_control.resume_writing()

    def shutdown(self) -> None:
        """
        Called by the server to commence a graceful shutdown.
        """
        if self.transport is not None:
            self.transport.close()

    async def run_session(self) -> None:
        access_logger.info(
            "%s connected",
            self.address,
            extra={"color_message": "%s " + click.style("connected", fg="green")},
        )
        self.watchdog = Watchdog(
            self.transport, self.config.inactivity_timeout, name=self.address, loop=self.loop
        )
        self.watchdog.start()
        try:
            with ClientLog(self.address, self.config.log_dir) as client_log:
                await self.read_loop(client_log)
        except Exception as exc:
            logger.error("Exception in session for %s: %s", self.address, exc, exc_info=exc)
        finally:
            self.watchdog.stop()
            self.transport.close()
            access_logger.info(
                "%s disconnected",
                self.address,
                extra={"color_message": "%s " + click.style("disconnected", fg="yellow")},
            )

    async def read_loop(self, client_log: ClientLog) -> None:
        while True:
            try:
                line = await asyncio.wait_for(self.readline(), timeout=self.config.read_timeout)
            except asyncio.TimeoutError:
                logger.debug("%s read deadline exceeded", self.address)
                return

            if line is None:
                return

            if line is TOO_LONG:
                # not activity: the watchdog keeps counting
                await self.write(too_long(self.config.max_message_size))
                continue

            if not await self.watchdog.reset():
                return

            text = line.decode("utf-8", errors="replace").strip()
            client_log.append(text)

            response = dispatch(text)
            if response.reply is not None:
                await self.write(response.reply)
            if response.close:
                return

    async def readline(self) -> bytes | Scan | None:
        """
        Next complete line, TOO_LONG, or None once the stream is over.
        """
        while True:
            if self.disconnected:
                return None
            line = self.scanner.next_line()
            if self.flow_control.read_paused and self.scanner.buffered <= HIGH_WATER_LIMIT_READ:
                self.flow_control.resume_reading()
            if line is not None:
                return line
            if self.scanner.eof:
                return None
            self.line_event.clear()
            await self.line_event.wait()

    async def write(self, text: str) -> None:
        if self.flow_control.write_paused:
            await self.flow_control.drain()
        if self.transport.is_closing():
            return
        self.transport.write(text.encode("utf-8"))
