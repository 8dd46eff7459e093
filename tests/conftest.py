"""Shared fixtures for echoserver tests."""

import asyncio
import logging

import pytest
import pytest_asyncio

from echoserver import Config, Server


class LineClient:
    """Minimal newline client over asyncio streams."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer

    @property
    def local_port(self) -> int:
        return self.writer.get_extra_info("sockname")[1]

    async def send(self, line: str | bytes) -> None:
        if isinstance(line, str):
            line = line.encode()
        self.writer.write(line + b"\n")
        await self.writer.drain()

    async def recv(self, timeout: float = 2.0) -> str:
        data = await asyncio.wait_for(self.reader.readline(), timeout)
        return data.decode()

    async def ask(self, line: str | bytes, timeout: float = 2.0) -> str:
        await self.send(line)
        return await self.recv(timeout)

    async def at_eof(self, timeout: float = 2.0) -> bool:
        data = await asyncio.wait_for(self.reader.read(), timeout)
        return data == b""

    async def close(self) -> None:
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except ConnectionError:
            pass


@pytest_asyncio.fixture
async def start_server(tmp_path):
    """Factory: start a Server on an ephemeral loopback port with the given Config overrides."""
    servers: list[Server] = []

    async def _start(**overrides) -> Server:
        options = {"host": "127.0.0.1", "port": 0, "log_dir": str(tmp_path), "timeout_graceful_shutdown": 2}
        options.update(overrides)
        server = Server(Config(**options))
        await server.startup()
        servers.append(server)
        return server

    yield _start

    for server in servers:
        await server.shutdown()


@pytest_asyncio.fixture
async def connect():
    clients: list[LineClient] = []

    async def _connect(server: Server) -> LineClient:
        reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
        client = LineClient(reader, writer)
        clients.append(client)
        return client

    yield _connect

    for client in clients:
        await client.close()


@pytest.fixture
def restore_logging():
    """configure_logging() rewires the echoserver logger tree; put it back for caplog."""
    root = logging.getLogger("echoserver")
    access = logging.getLogger("echoserver.access")
    saved = (list(root.handlers), root.level, root.propagate, access.level)
    yield
    root.handlers, root.level, root.propagate = saved[0], saved[1], saved[2]
    access.setLevel(saved[3])
