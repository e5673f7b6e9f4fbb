"""
Login handshake for server connections.

A connection must send ``#login <id>`` as its first line. After that, every
line is chat, except a second ``#login`` which ends the connection. The
state machine itself never touches the transport: it binds identities in the
registry and tells the caller what to do, raising ProtocolViolation when the
connection has to be closed.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Hashable

from EchoChat.core.exceptions import AlreadyBound, NotRegistered, ProtocolViolation
from EchoChat.core.message.protocol import LOGIN_COMMAND, Command, format_login, interpret
from EchoChat.core.server.session import ConnectionRegistry

logger = logging.getLogger(__name__)

MUST_LOGIN_FIRST = f"You must log in first using {LOGIN_COMMAND} <loginID>"
EMPTY_LOGIN_ID = "Login ID cannot be empty. Connection will be closed."
ALREADY_LOGGED_IN = "You are already logged in. Connection will be closed."


class LoginOutcomeKind(Enum):
    """What the server should do with an accepted line."""
    AUTHENTICATED = auto()  # Login succeeded; send the confirmation
    CHAT = auto()           # Broadcast the line


@dataclass(frozen=True)
class LoginOutcome:
    """
    Result of feeding one line to the login state machine.

    Attributes:
        kind: What happened
        identity: Login id of the connection
        reply: Line to send back to the connection (login confirmation)
        payload: Chat text to broadcast
    """
    kind: LoginOutcomeKind
    identity: str
    reply: str = None
    payload: str = None


class LoginStateMachine:
    """
    Per-connection gate: PENDING until one successful ``#login``, then
    AUTHENTICATED for the rest of the connection's life.

    The state itself lives in the ConnectionRegistry so that there is a single
    place where identities are stored.
    """

    def __init__(self, registry: ConnectionRegistry):
        self._registry = registry

    def handle(self, connection: Hashable, line: str) -> LoginOutcome:
        """
        Process one line received from a connection.

        Args:
            connection: Registered connection the line came from
            line: Received line

        Returns:
            LoginOutcome describing the accepted line

        Raises:
            ProtocolViolation: If the connection must be closed
            NotRegistered: If the connection is not in the registry
        """
        state = self._registry.state_of(connection)
        if state is None:
            raise NotRegistered(f"Connection {connection!r} is not registered")

        parsed = interpret(line)
        is_login = isinstance(parsed, Command) and parsed.name == LOGIN_COMMAND

        if state.authenticated:
            if is_login:
                logger.warning("%s attempted a second login", state.identity)
                raise ProtocolViolation(ALREADY_LOGGED_IN, identity=state.identity)
            return LoginOutcome(LoginOutcomeKind.CHAT, state.identity, payload=line)

        if not is_login:
            logger.warning("Connection %s sent data before logging in", connection)
            raise ProtocolViolation(MUST_LOGIN_FIRST)

        identity = parsed.arg(0, "")
        if not identity:
            logger.warning("Connection %s sent an empty login id", connection)
            raise ProtocolViolation(EMPTY_LOGIN_ID)

        try:
            self._registry.bind(connection, identity)
        except AlreadyBound as e:
            # Another task bound this connection between state_of() and bind()
            raise ProtocolViolation(ALREADY_LOGGED_IN, identity=e.identity) from e

        logger.info("Client logged in with ID: %s", identity)
        return LoginOutcome(LoginOutcomeKind.AUTHENTICATED, identity, reply=format_login(identity))


__all__ = [
    'ALREADY_LOGGED_IN',
    'EMPTY_LOGIN_ID',
    'LoginOutcome',
    'LoginOutcomeKind',
    'LoginStateMachine',
    'MUST_LOGIN_FIRST',
]
