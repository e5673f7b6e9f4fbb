"""
Connection state and the connection registry.

Every accepted connection starts Pending and becomes Authenticated once it
logs in. The registry is shared by every connection handler and the operator
console, so each of its operations runs under one lock.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Hashable, Optional, Tuple, Union

from EchoChat.core.exceptions import AlreadyBound, NotRegistered

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pending:
    """A connection that has not logged in yet."""

    @property
    def authenticated(self) -> bool:
        return False

    @property
    def identity(self) -> None:
        return None


@dataclass(frozen=True)
class Authenticated:
    """
    A connection bound to a login id.

    Attributes:
        identity: Login id supplied with ``#login``
    """
    identity: str

    @property
    def authenticated(self) -> bool:
        return True


ConnectionState = Union[Pending, Authenticated]

PENDING = Pending()


class ConnectionRegistry:
    """
    Map of active connections to their login state.

    Pending connections are tracked so they can be closed by the operator,
    but only authenticated ones appear in ``snapshot()`` and thus only they
    receive broadcasts.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._connections: Dict[Hashable, ConnectionState] = {}
        self._lock = threading.RLock()

    def register(self, connection: Hashable) -> None:
        """
        Add a connection in the Pending state.

        Registering a connection that is already present leaves it as is.
        """
        with self._lock:
            if connection in self._connections:
                return
            self._connections[connection] = PENDING
        logger.debug("Registered connection %s", connection)

    def bind(self, connection: Hashable, identity: str) -> Authenticated:
        """
        Bind a login id to a pending connection.

        Args:
            connection: Registered connection
            identity: Login id

        Returns:
            The new Authenticated state

        Raises:
            NotRegistered: If the connection is not in the registry
            AlreadyBound: If the connection already has an identity
        """
        with self._lock:
            state = self._connections.get(connection)
            if state is None:
                raise NotRegistered(f"Connection {connection!r} is not registered")
            if state.authenticated:
                raise AlreadyBound(state.identity)
            state = Authenticated(identity)
            self._connections[connection] = state
        logger.debug("Bound %s to %s", identity, connection)
        return state

    def unregister(self, connection: Hashable) -> Optional[ConnectionState]:
        """
        Remove a connection. Safe to call when it is already gone.

        Returns:
            The removed state, or None if the connection was absent
        """
        with self._lock:
            state = self._connections.pop(connection, None)
        if state is not None:
            logger.debug("Unregistered connection %s", connection)
        return state

    def snapshot(self) -> Tuple[Tuple[Hashable, str], ...]:
        """
        Point-in-time copy of the authenticated connections.

        Returns:
            Tuple of (connection, identity) pairs
        """
        with self._lock:
            return tuple(
                (connection, state.identity)
                for connection, state in self._connections.items()
                if state.authenticated
            )

    def lookup_identity(self, connection: Hashable) -> Optional[str]:
        """Return the identity bound to a connection, or None."""
        with self._lock:
            state = self._connections.get(connection)
        return state.identity if state is not None else None

    def state_of(self, connection: Hashable) -> Optional[ConnectionState]:
        """Return the state of a connection, or None if it is not registered."""
        with self._lock:
            return self._connections.get(connection)

    def connections(self) -> Tuple[Hashable, ...]:
        """Point-in-time copy of every connection, pending ones included."""
        with self._lock:
            return tuple(self._connections)

    def __contains__(self, connection: Hashable) -> bool:
        with self._lock:
            return connection in self._connections

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)


__all__ = [
    'Authenticated',
    'ConnectionRegistry',
    'ConnectionState',
    'PENDING',
    'Pending',
]
