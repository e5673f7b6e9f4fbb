"""
Interfaces for the server module.

The chat core only talks to connections through TransportConnection, so the
registry, login state machine and broadcaster can be exercised with fake
connections as well as real WebSocket ones.
"""

from abc import abstractmethod
from typing import Protocol, runtime_checkable


@runtime_checkable
class TransportConnection(Protocol):
    """Protocol for transport layer connections."""

    @abstractmethod
    async def send(self, message: str) -> None:
        """
        Send one protocol line through the connection.

        Raises:
            TransportFailure: If the line could not be sent
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the connection. Closing twice is allowed.

        Raises:
            TransportFailure: If the transport failed while closing
        """
        ...

    @abstractmethod
    def is_open(self) -> bool:
        """Check if connection is open."""
        ...


__all__ = ['TransportConnection']
