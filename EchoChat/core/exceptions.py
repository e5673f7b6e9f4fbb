"""
Exception classes for EchoChat.

Every failure the chat core can detect is one of these. Protocol violations
end the offending connection, command errors are reported to the local user
and leave state unchanged, and transport failures end a client session or
evict a single connection on the server.
"""

from EchoChat.core.message.protocol import format_error


class ChatError(Exception):
    """Base exception for all EchoChat errors."""
    pass


class ProtocolViolation(ChatError):
    """Raised when a connection breaks the login handshake."""

    def __init__(self, message: str, identity: str = None):
        """
        Initialize protocol violation.

        Args:
            message: Diagnostic text sent to the offending connection
            identity: Login id of the connection, if it had one
        """
        self.identity = identity
        super().__init__(message)

    @property
    def diagnostic(self) -> str:
        """Wire line reported to the offending connection."""
        return format_error(str(self))


class CommandError(ChatError):
    """Base class for errors reported back to the user who typed a command."""
    pass


class UsageError(CommandError):
    """Raised when a command argument is missing or malformed."""
    pass


class PreconditionError(CommandError):
    """Raised when a command is not allowed in the current state."""
    pass


class UnknownCommand(CommandError):
    """Raised when no handler is registered for a command name."""

    def __init__(self, name: str, message: str = None):
        """
        Initialize unknown command error.

        Args:
            name: The unrecognized command name
            message: Optional custom message
        """
        self.name = name
        if message is None:
            message = f"Unknown command: {name}"
        super().__init__(message)


class TransportFailure(ChatError):
    """Raised when sending, receiving, opening or closing a connection fails."""
    pass


class RegistryError(ChatError):
    """Base class for connection registry invariant violations."""
    pass


class AlreadyBound(RegistryError):
    """Raised when binding an identity to a connection that already has one."""

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"Connection is already bound to {identity!r}")


class NotRegistered(RegistryError):
    """Raised when operating on a connection the registry does not know."""
    pass
