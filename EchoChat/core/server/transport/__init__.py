"""
Transport layer for WebSocket connections.

Each WebSocket text frame carries exactly one protocol line. This module
wraps the ``websockets`` server connection so the rest of the server sees
only ``send``/``close``/``is_open``.
"""

import logging
import uuid

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State

from EchoChat.core.exceptions import TransportFailure

logger = logging.getLogger(__name__)


class WebSocketConnection:
    """
    Wrapper around ServerConnection that implements TransportConnection.

    Instances hash by identity, so a wrapper can key the connection registry
    for the whole life of the underlying socket.
    """

    def __init__(self, websocket: ServerConnection):
        """
        Initialize WebSocket connection wrapper.

        Args:
            websocket: Underlying WebSocket connection
        """
        self._websocket = websocket
        self._closed = False
        self.conn_id: str = uuid.uuid4().hex

    @property
    def raw_websocket(self) -> ServerConnection:
        """Get underlying WebSocket connection."""
        return self._websocket

    @property
    def remote_address(self) -> str:
        """Printable peer address, used in log and console lines."""
        address = self._websocket.remote_address
        if isinstance(address, tuple) and len(address) >= 2:
            return f"{address[0]}:{address[1]}"
        return str(address)

    async def send(self, message: str) -> None:
        """
        Send a message through the connection.

        Args:
            message: Protocol line to send

        Raises:
            TransportFailure: If the connection is closed or the send fails
        """
        if self._closed:
            raise TransportFailure(f"Connection {self.conn_id} is closed")

        try:
            await self._websocket.send(message)
        except (ConnectionClosed, WebSocketException, OSError) as e:
            logger.debug("Failed to send to %s: %s", self, e)
            raise TransportFailure(f"Send to {self.remote_address} failed: {e}") from e

    async def close(self) -> None:
        """
        Close the connection.

        Raises:
            TransportFailure: If closing the socket fails
        """
        if self._closed:
            return
        self._closed = True
        try:
            await self._websocket.close()
        except (WebSocketException, OSError) as e:
            raise TransportFailure(f"Closing {self.remote_address} failed: {e}") from e

    def is_open(self) -> bool:
        """Check if connection is open."""
        if self._closed:
            return False
        return self._websocket.state is State.OPEN

    def __repr__(self) -> str:
        return f"<WebSocketConnection {self.conn_id[:8]} {self.remote_address}>"


__all__ = ['WebSocketConnection']
