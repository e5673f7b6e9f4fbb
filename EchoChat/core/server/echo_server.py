"""
Chat server that composes all server components.

    ┌──────────────────────────────────────────────────────────┐
    │                       EchoServer                         │
    │  ┌──────────────┐  ┌──────────────┐  ┌────────────────┐  │
    │  │ Connection   │  │ Login State  │  │ Broadcaster    │  │
    │  │ Registry     │  │ Machine      │  │                │  │
    │  └──────────────┘  └──────────────┘  └────────────────┘  │
    │  ┌──────────────────────────────┐  ┌──────────────────┐  │
    │  │ WebSocket transport          │  │ Console commands │  │
    │  └──────────────────────────────┘  └──────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Each accepted connection gets its own handler task. Lines from a connection
go through the login state machine; accepted chat is broadcast. Lines from
the operator console go to the console command table or, without a leading
``#``, are broadcast as server messages.
"""

import asyncio
import logging
from typing import Callable, Hashable, Optional

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from EchoChat.config import config
from EchoChat.core.exceptions import (
    CommandError,
    NotRegistered,
    PreconditionError,
    ProtocolViolation,
    TransportFailure,
)
from EchoChat.core.message.protocol import ChatPayload, format_server_message, interpret
from EchoChat.core.server.auth import LoginOutcomeKind, LoginStateMachine
from EchoChat.core.server.commands import CANT_DO_THAT_NOW, create_console_table
from EchoChat.core.server.routing import Broadcaster
from EchoChat.core.server.session import ConnectionRegistry, ConnectionState
from EchoChat.core.server.transport import WebSocketConnection

logger = logging.getLogger(__name__)


class EchoServer:
    """
    Multi-client chat server.

    The server can stop and restart listening without dropping the clients
    it already has. ``quit()`` is the only way it shuts down: it stops
    listening, closes every connection and resolves ``wait_for_shutdown()``
    with the exit status.
    """

    def __init__(
        self,
        port: int = config.DEFAULT_PORT,
        host: str = config.LISTEN_HOST,
        display: Callable[[str], None] = print
    ):
        """
        Initialize the server. Nothing listens until ``listen()``.

        Args:
            port: Port to listen on; 0 picks a free port
            host: Address to bind to
            display: Callback that shows operator-facing text
        """
        self._host = host
        self._port = port
        self.display = display

        self._registry = ConnectionRegistry()
        self._login = LoginStateMachine(self._registry)
        self._broadcaster = Broadcaster(self._registry, on_failure=self._evict)
        self._console_commands = create_console_table(self)

        self._server: Optional[Server] = None
        self._shutdown: Optional[asyncio.Future] = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def broadcaster(self) -> Broadcaster:
        return self._broadcaster

    @property
    def is_listening(self) -> bool:
        return self._server is not None

    @property
    def number_of_clients(self) -> int:
        """Number of open connections, logged in or not."""
        return len(self._registry)

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown is not None and self._shutdown.done()

    def set_port(self, port: int) -> None:
        """
        Change the listening port.

        Raises:
            PreconditionError: If the server is listening or has clients
        """
        if self.is_listening or self.number_of_clients:
            raise PreconditionError(CANT_DO_THAT_NOW)
        self._port = port

    # Lifecycle -------------------------------------------------------

    async def listen(self) -> None:
        """
        Start accepting connections. Does nothing if already listening.

        Raises:
            TransportFailure: If the port cannot be bound
        """
        if self.is_listening:
            return
        try:
            self._server = await serve(self._handle_connection, self._host, self._port)
        except OSError as e:
            raise TransportFailure(f"Could not listen on {self._host}:{self._port}: {e}") from e

        if self._port == 0:
            self._port = self._server.sockets[0].getsockname()[1]
        self.server_started()

    async def stop_listening(self) -> None:
        """Stop accepting connections. Connected clients stay connected."""
        server, self._server = self._server, None
        if server is None:
            return
        server.close(close_connections=False)
        self.server_stopped()

    async def close_all_connections(self) -> int:
        """
        Close every connection, pending ones included.

        Returns:
            Number of connections whose close failed
        """
        failures = 0
        for connection in self._registry.connections():
            if not await self._evict(connection):
                failures += 1
        return failures

    async def quit(self) -> int:
        """
        Shut the server down.

        Returns:
            Exit status: 0, or 1 if closing any connection failed
        """
        await self.stop_listening()
        failures = await self.close_all_connections()
        status = 0
        if failures:
            logger.error("Failed to close %d connection(s) during shutdown", failures)
            self.display(format_server_message(f"Error closing {failures} connection(s)."))
            status = 1
        future = self._shutdown_future()
        if not future.done():
            future.set_result(status)
        logger.info("Server shut down with status %d", status)
        return status

    async def wait_for_shutdown(self) -> int:
        """Wait until ``quit()`` has run and return its exit status."""
        return await self._shutdown_future()

    def _shutdown_future(self) -> asyncio.Future:
        if self._shutdown is None:
            self._shutdown = asyncio.get_running_loop().create_future()
        return self._shutdown

    # Client traffic --------------------------------------------------

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        """Handler task for one accepted WebSocket connection."""
        connection = WebSocketConnection(websocket)
        self._registry.register(connection)
        self.client_connected(connection)

        try:
            async for message in websocket:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                await self.handle_message_from_client(message, connection)
                if connection not in self._registry:
                    break
        except ConnectionClosed as e:
            logger.debug("Connection closed for %s: %s", connection, e)
        except Exception as e:
            logger.exception("Error handling connection %s: %s", connection, e)
            self.client_exception(connection, e)
        finally:
            await self._evict(connection)

    async def handle_message_from_client(self, line: str, connection: Hashable) -> None:
        """
        Handle one line received from a client connection.

        Args:
            line: Received line
            connection: Connection the line came from
        """
        try:
            outcome = self._login.handle(connection, line)
        except ProtocolViolation as e:
            await self._reject(connection, e)
            return
        except NotRegistered:
            logger.debug("Dropping line from evicted connection %s", connection)
            return

        if outcome.kind is LoginOutcomeKind.AUTHENTICATED:
            self.display(format_server_message(f"Client logged in with ID: {outcome.identity}"))
            await self._send_to(connection, outcome.reply)
        else:
            await self._broadcaster.broadcast(outcome.identity, outcome.payload)

    async def _send_to(self, connection: Hashable, line: str) -> bool:
        try:
            await connection.send(line)
        except TransportFailure as e:
            logger.warning("Send to %s failed, evicting connection: %s", connection, e)
            await self._evict(connection)
            return False
        return True

    async def _reject(self, connection: Hashable, violation: ProtocolViolation) -> None:
        """Report a protocol violation to the connection and close it."""
        try:
            await connection.send(violation.diagnostic)
        except TransportFailure as e:
            logger.warning("Could not report protocol violation to %s: %s", connection, e)
        await self._evict(connection)

    async def _evict(self, connection: Hashable) -> bool:
        """
        Remove a connection from the registry and close it.

        Safe to call more than once; only the first call reports the
        disconnect.

        Returns:
            False if closing the connection failed
        """
        state = self._registry.unregister(connection)
        closed = True
        try:
            await connection.close()
        except TransportFailure as e:
            logger.warning("Error closing connection %s: %s", connection, e)
            closed = False
        if state is not None:
            self.client_disconnected(connection, state)
        return closed

    # Operator console ------------------------------------------------

    async def handle_message_from_server_console(self, line: str) -> None:
        """
        Handle one line typed on the operator console.

        Args:
            line: Console input
        """
        parsed = interpret(line)
        if isinstance(parsed, ChatPayload):
            await self.handle_message_from_server(parsed.text)
            return
        try:
            await self._console_commands.dispatch(parsed)
        except CommandError as e:
            self.display(str(e))

    async def handle_message_from_server(self, payload: str) -> None:
        """Broadcast an operator message to every logged-in client."""
        self.display(format_server_message(payload))
        await self._broadcaster.broadcast_operator(payload)

    # Lifecycle hooks -------------------------------------------------

    def server_started(self) -> None:
        logger.info("Server listening for connections on %s:%s", self._host, self._port)
        self.display(format_server_message(f"Server listening for connections on port {self._port}"))

    def server_stopped(self) -> None:
        logger.info("Server stopped listening for connections")
        self.display(format_server_message("Server has stopped listening for connections."))

    def client_connected(self, connection: Hashable) -> None:
        logger.info("Client connected: %s", connection)
        self.display(format_server_message(f"Client connected: {_describe(connection)}"))

    def client_disconnected(self, connection: Hashable, state: ConnectionState) -> None:
        identity = state.identity or "Unknown"
        logger.info("Client disconnected: %s (%s)", identity, connection)
        self.display(format_server_message(f"Client disconnected: {identity}"))

    def client_exception(self, connection: Hashable, error: Exception) -> None:
        self.display(format_server_message(f"Error handling message from client: {error}"))


def _describe(connection: Hashable) -> str:
    return getattr(connection, "remote_address", None) or repr(connection)


__all__ = ['EchoServer']
