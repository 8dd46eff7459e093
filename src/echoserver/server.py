from typing import Generator
import asyncio
import signal
import sys
import logging
import contextlib
import threading
import click
from .config import Config
from .server_state import ServerState
from .line_conn import LineConn


HANDLED_SIGNALS = {
    signal.SIGINT: "SIGINT",
    signal.SIGTERM: "SIGTERM",
}
if sys.platform == "win32":
    HANDLED_SIGNALS[signal.SIGBREAK] = "SIGBREAK"


logger = logging.getLogger(__name__)


class Server:
    def __init__(self, config: Config):
        self.config = config
        self.server_state = ServerState()
        self.should_exit = False
        self.force_exit = False
        self._captured_signals: list[int] = []
        self.server: asyncio.AbstractServer | None = None

    def run(self) -> None:
        return asyncio.run(self.serve())

    async def serve(self) -> None:
        with self.capture_signals():
            await self._serve()

    async def _serve(self):
        await self.startup()
        if self.should_exit:
            return
        await self.main_loop()
        await self.shutdown()
        logger.info("Server shutdown complete!")

    async def startup(self) -> None:
        """
        Bind the listener. Accepting then runs inside the event loop: every accepted socket gets
        its own LineConn, and accept() errors are logged by the loop without stopping the server.
        A bind failure is fatal.
        """
        loop = asyncio.get_running_loop()
        try:
            server = await loop.create_server(
                lambda: LineConn(config=self.config, server_state=self.server_state),
                host=self.config.host,
                port=self.config.port,
                backlog=self.config.backlog,
            )
        except OSError as exc:
            logger.error("Error starting server: %s", exc)
            sys.exit(1)

        self.server = server
        self._log_startup_message(server.sockets[0])

    @property
    def port(self) -> int | None:
        if self.server is None or not self.server.sockets:
            return None
        return self.server.sockets[0].getsockname()[1]

    def _log_startup_message(self, listener):
        addr_format = "%s:%d"
        host = "0.0.0.0" if self.config.host is None else self.config.host
        if ":" in host:
            # It's an IPv6 address.
            addr_format = "[%s]:%d"

        port = listener.getsockname()[1]

        message = f"Server listening on {addr_format} (Press CTRL+C to quit)"
        color_message = "Server listening on " + click.style(addr_format, bold=True) + " (Press CTRL+C to quit)"
        logger.info(
            message,
            host,
            port,
            extra={"color_message": color_message},
        )

    async def main_loop(self) -> None:
        """
        Sleep until a signal (or a test) sets should_exit. The event loop keeps accepting and
        serving connections in the meantime.
        """
        while not self.should_exit:
            await asyncio.sleep(0.1)

    async def shutdown(self) -> None:
        logger.info("Shutting down server...")
        # Stop accepting new connections:
        self.server.close()

        # Closing each transport ends its session: the read loop sees the disconnect and runs its
        # normal cleanup (watchdog stop, transcript close, disconnect event).
        for connection in list(self.server_state.connections):
            connection.shutdown()

        # let the sessions observe connection_lost before we start waiting on them
        await asyncio.sleep(0.1)

        try:
            await asyncio.wait_for(
                self._wait_tasks_to_complete(),
                timeout=self.config.timeout_graceful_shutdown
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Graceful shutdown timed out. Forcing exit."
            )
            for t in self.server_state.tasks:
                if not t.done():
                    t.cancel(msg="Task cancelled due to timeout during graceful shutdown")

    async def _wait_tasks_to_complete(self) -> None:
        # Wait for existing connections to close
        if self.server_state.connections and not self.force_exit:
            logger.info("Waiting for connections to close . (CTRL+C to force quit)")
            while self.server_state.connections and not self.force_exit:
                await asyncio.sleep(0.1)

        # Wait for sessions to finish their cleanup
        if self.server_state.tasks and not self.force_exit:
            logger.info("Waiting for sessions to complete . (CTRL+C to force quit)")
            while self.server_state.tasks and not self.force_exit:
                await asyncio.sleep(0.1)

        await self.server.wait_closed()

    # signal handling
    @contextlib.contextmanager
    def capture_signals(self) -> Generator[None, None, None]:
        """
        Signals can only be listened to from the main thread
        """
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        original_handlers = {sig: signal.signal(sig, self.handle_exit) for sig in HANDLED_SIGNALS.keys()}
        try:
            yield
        finally:
            # Restore original signal handlers
            for sig, handler in original_handlers.items():
                signal.signal(sig, handler)
            # Raise captured signals in reverse order to ensure proper handling
            for captured_signal in reversed(self._captured_signals):
                signal.raise_signal(captured_signal)

    def handle_exit(self, sig: int, frame) -> None:
        self._captured_signals.append(sig)
        if self.should_exit and sig == signal.SIGINT:
            self.force_exit = True
        else:
            self.should_exit = True
