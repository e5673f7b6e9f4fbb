"""
Chat client session.

A ChatClient holds at most one connection to one server. Its first message
on every connection is ``#login <loginID>``. Lines typed by the user are
either client commands or chat; lines from the server are displayed as they
arrive. When the server goes away the client reports it and terminates; it
never reconnects by itself.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from EchoChat.config import config
from EchoChat.core.client.client_base import Client
from EchoChat.core.client.command import ALREADY_CONNECTED, create_client_table
from EchoChat.core.exceptions import CommandError, PreconditionError, TransportFailure
from EchoChat.core.message.protocol import Command, format_login, interpret

logger = logging.getLogger(__name__)

Connector = Callable[[str], Awaitable[ClientConnection]]

SEND_FAILED = "Could not send message to server. Terminating client."
SERVER_GONE = "The server has shut down due to an exception."
CONNECTION_CLOSED = "Connection closed."


class ChatClient(Client):
    """
    Client side of the chat protocol.

    Terminating the session (``quit()``) resolves ``wait_closed()`` with the
    exit status instead of exiting the process.
    """

    def __init__(
        self,
        login_id: str,
        host: str = config.DEFAULT_HOST,
        port: int = config.DEFAULT_PORT,
        display: Callable[[str], None] = print,
        connector: Connector = connect
    ):
        """
        Initialize the client. No connection is made until ``open()``.

        Args:
            login_id: Identity sent with ``#login``; fixed for the session
            host: Server hostname
            port: Server port
            display: Callback that shows text to the user
            connector: Coroutine function opening a connection to a URI
        """
        super().__init__(host, port)
        self._login_id = login_id
        self.display = display
        self._connector = connector

        self._connection: Optional[ClientConnection] = None
        self._receiver: Optional[asyncio.Task] = None
        self._closing = False
        self._done: Optional[asyncio.Future] = None

        self._commands = create_client_table(self)

    @property
    def login_id(self) -> str:
        return self._login_id

    @property
    def connected(self) -> bool:
        return self._connection is not None

    @property
    def terminated(self) -> bool:
        return self._done is not None and self._done.done()

    # Connection ------------------------------------------------------

    async def open(self) -> None:
        """
        Connect and log in.

        Raises:
            PreconditionError: If already connected
            TransportFailure: If connecting or sending the login fails
        """
        await self.open_connection()
        await self.send_to_server(format_login(self._login_id))

    async def open_connection(self) -> None:
        """
        Connect to ``ws://host:port`` and start receiving.

        Raises:
            PreconditionError: If already connected
            TransportFailure: If the connection cannot be opened
        """
        if self.connected:
            raise PreconditionError(ALREADY_CONNECTED)

        uri = self.uri
        try:
            connection = await self._connector(uri)
        except (OSError, WebSocketException) as e:
            logger.warning("Could not connect to %s: %s", uri, e)
            raise TransportFailure(f"Could not connect to {uri}: {e}") from e

        self._closing = False
        self._connection = connection
        self._receiver = asyncio.create_task(self._receive_loop(connection))
        logger.info("Connected to %s", uri)

    async def close_connection(self) -> None:
        """
        Close the connection, if any, and wait for the receiver to finish.

        Raises:
            TransportFailure: If closing the socket fails
        """
        connection, self._connection = self._connection, None
        if connection is None:
            return

        self._closing = True
        try:
            await connection.close()
        except (WebSocketException, OSError) as e:
            raise TransportFailure(f"Error while closing connection: {e}") from e
        finally:
            receiver = self._receiver
            if receiver is not None and receiver is not asyncio.current_task():
                await receiver

    async def send_to_server(self, line: str) -> None:
        """
        Send one line to the server.

        Raises:
            TransportFailure: If not connected or the send fails
        """
        connection = self._connection
        if connection is None:
            raise TransportFailure("Not connected to a server")
        try:
            await connection.send(line)
        except (ConnectionClosed, WebSocketException, OSError) as e:
            raise TransportFailure(f"Send failed: {e}") from e

    async def _receive_loop(self, connection: ClientConnection) -> None:
        error: Optional[Exception] = None
        try:
            async for message in connection:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                self.handle_message_from_server(message)
        except (ConnectionClosed, WebSocketException, OSError) as e:
            error = e

        if self._closing:
            self.connection_closed()
            return

        if self._connection is connection:
            self._connection = None
        await self.connection_exception(error or TransportFailure("Connection closed by server"))

    # Messages --------------------------------------------------------

    def handle_message_from_server(self, line: str) -> None:
        """Show a line received from the server."""
        self.display(line)

    async def handle_message_from_client_ui(self, line: str) -> None:
        """
        Handle one line typed by the user.

        Lines starting with ``#`` are client commands; everything else is
        sent to the server as chat. A failed send terminates the client.
        """
        parsed = interpret(line)
        if isinstance(parsed, Command):
            await self.handle_command(parsed)
            return

        try:
            await self.send_to_server(parsed.text)
        except TransportFailure as e:
            logger.error("Could not send message: %s", e)
            self.display(SEND_FAILED)
            await self.quit()

    async def handle_command(self, command: Command) -> None:
        """Run a client command, reporting any command error to the user."""
        try:
            await self._commands.dispatch(command)
        except CommandError as e:
            self.display(str(e))

    # Lifecycle hooks -------------------------------------------------

    def connection_closed(self) -> None:
        """Called after a connection closed by this client has shut down."""
        logger.info("Connection closed")
        self.display(CONNECTION_CLOSED)

    async def connection_exception(self, error: Exception) -> None:
        """Called when the server closes the connection or it fails."""
        logger.warning("Lost connection to server: %s", error)
        self.display(SERVER_GONE)
        await self.quit()

    # Termination -----------------------------------------------------

    async def quit(self) -> int:
        """
        Close the connection and terminate the session.

        Returns:
            Exit status (always 0; a failed close is only logged)
        """
        try:
            await self.close_connection()
        except TransportFailure as e:
            logger.error("Error while closing connection: %s", e)
        done = self._done_future()
        if not done.done():
            done.set_result(0)
        return 0

    async def wait_closed(self) -> int:
        """Wait until the session terminates and return its exit status."""
        return await self._done_future()

    def _done_future(self) -> asyncio.Future:
        if self._done is None:
            self._done = asyncio.get_running_loop().create_future()
        return self._done


__all__ = [
    'CONNECTION_CLOSED',
    'ChatClient',
    'Connector',
    'SEND_FAILED',
    'SERVER_GONE',
]
