"""
Shared helpers for EchoChat tests: fake transports, a display recorder and
small async utilities.
"""

import asyncio
from typing import Callable, List, Optional

from websockets.asyncio.client import ClientConnection, connect

from EchoChat.core.exceptions import TransportFailure


class Recorder:
    """Display callback that keeps every line it is given."""

    def __init__(self):
        self.lines: List[str] = []

    def __call__(self, line: str) -> None:
        self.lines.append(line)

    def __contains__(self, line: str) -> bool:
        return line in self.lines

    def clear(self) -> None:
        self.lines.clear()


class FakeConnection:
    """Server-side stand-in for WebSocketConnection."""

    def __init__(self, name: str = "fake", fail_send: bool = False, fail_close: bool = False):
        self.name = name
        self.fail_send = fail_send
        self.fail_close = fail_close
        self.sent: List[str] = []
        self.closed = False

    async def send(self, message: str) -> None:
        if self.fail_send or self.closed:
            raise TransportFailure(f"{self.name} is unreachable")
        self.sent.append(message)

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.fail_close:
            raise TransportFailure(f"{self.name} failed to close")

    def is_open(self) -> bool:
        return not self.closed

    def __repr__(self) -> str:
        return f"<FakeConnection {self.name}>"


class FakeClientConnection:
    """Client-side stand-in for a websockets ClientConnection."""

    def __init__(self):
        self.sent: List[str] = []
        self.closed = False
        self.fail_send = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str) -> None:
        if self.fail_send or self.closed:
            raise OSError("Broken pipe")
        self.sent.append(message)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(None)

    def push(self, line: str) -> None:
        """Deliver a line as if the server sent it."""
        self._incoming.put_nowait(line)

    def drop(self) -> None:
        """End the stream as if the server closed the connection."""
        self._incoming.put_nowait(None)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        while True:
            item = await self._incoming.get()
            if item is None:
                return
            yield item


class FakeConnector:
    """Connector for ChatClient that hands out FakeClientConnections."""

    def __init__(self):
        self.uris: List[str] = []
        self.connections: List[FakeClientConnection] = []
        self.refuse = False

    async def __call__(self, uri: str) -> FakeClientConnection:
        self.uris.append(uri)
        if self.refuse:
            raise ConnectionRefusedError(f"Connection to {uri} refused")
        connection = FakeClientConnection()
        self.connections.append(connection)
        return connection

    @property
    def last(self) -> Optional[FakeClientConnection]:
        return self.connections[-1] if self.connections else None


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> None:
    """Poll ``predicate`` until it is true; fail the test after ``timeout``."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(interval)


async def recv(websocket: ClientConnection, timeout: float = 2.0) -> str:
    """Receive one line or fail after ``timeout``."""
    return await asyncio.wait_for(websocket.recv(), timeout)


async def login(uri: str, identity: str, timeout: float = 2.0) -> ClientConnection:
    """Open a raw WebSocket, log in and consume the confirmation."""
    websocket = await connect(uri)
    await websocket.send(f"#login {identity}")
    reply = await recv(websocket, timeout)
    assert reply == f"#login {identity}"
    return websocket
