"""
Message fan-out.

The Broadcaster formats a line once and delivers it to every authenticated
connection in a registry snapshot. A recipient whose send fails is handed to
the failure callback for eviction; the other recipients are unaffected.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Awaitable, Callable, Hashable, List, Optional

from EchoChat.core.exceptions import TransportFailure
from EchoChat.core.message.protocol import format_chat, format_server_message
from EchoChat.core.server.session import ConnectionRegistry

logger = logging.getLogger(__name__)

FailureCallback = Callable[[Hashable], Awaitable[None]]


class DeliveryStatus(Enum):
    """Status of message delivery."""
    DELIVERED = auto()
    FAILED = auto()


@dataclass
class DeliveryResult:
    """Result of message delivery attempt."""
    status: DeliveryStatus
    identity: str
    error: Optional[str] = None


class Broadcaster:
    """
    Delivers chat and operator lines to all authenticated connections.

    The sender is a recipient like any other and gets its own line back.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        on_failure: Optional[FailureCallback] = None
    ):
        """
        Initialize broadcaster.

        Args:
            registry: Registry supplying the recipients
            on_failure: Coroutine called with each connection whose send failed
        """
        self._registry = registry
        self._on_failure = on_failure

    async def broadcast(self, sender_identity: str, payload: str) -> List[DeliveryResult]:
        """
        Broadcast chat sent by an authenticated client.

        Args:
            sender_identity: Login id of the sender
            payload: Chat text

        Returns:
            One DeliveryResult per recipient
        """
        logger.info("Message received from %s: %s", sender_identity, payload)
        return await self.deliver(format_chat(sender_identity, payload))

    async def broadcast_operator(self, payload: str) -> List[DeliveryResult]:
        """Broadcast a line typed on the server console."""
        return await self.deliver(format_server_message(payload))

    async def deliver(self, line: str) -> List[DeliveryResult]:
        """
        Send an already formatted line to every authenticated connection.

        Connections that join after the snapshot is taken miss this line.
        """
        recipients = self._registry.snapshot()
        if not recipients:
            return []
        return list(await asyncio.gather(
            *(self._send(connection, identity, line) for connection, identity in recipients)
        ))

    async def _send(self, connection: Hashable, identity: str, line: str) -> DeliveryResult:
        try:
            await connection.send(line)
        except TransportFailure as e:
            logger.warning("Delivery to %s failed, evicting connection: %s", identity, e)
            await self._report_failure(connection)
            return DeliveryResult(DeliveryStatus.FAILED, identity, error=str(e))
        return DeliveryResult(DeliveryStatus.DELIVERED, identity)

    async def _report_failure(self, connection: Hashable) -> None:
        if self._on_failure is None:
            self._registry.unregister(connection)
            return
        try:
            await self._on_failure(connection)
        except Exception as e:
            logger.exception("Error evicting %s: %s", connection, e)


__all__ = [
    'Broadcaster',
    'DeliveryResult',
    'DeliveryStatus',
    'FailureCallback',
]
