"""
Command dispatch tables.

A table maps a command name (``#quit``, ``#setport``...) to a CommandSpec
that declares how many arguments the command needs, the state it must be
run in, and the coroutine that carries it out. The client and the server
console each build their own table; parsing is shared through
``EchoChat.core.message.protocol.interpret``.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from EchoChat.core.exceptions import PreconditionError, UnknownCommand, UsageError
from EchoChat.core.message.protocol import Command

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Command], Awaitable[None]]
Precondition = Callable[[], bool]


@dataclass(frozen=True)
class CommandSpec:
    """
    Declaration of one command.

    Attributes:
        name: Command name including the leading ``#``
        handler: Coroutine function run with the parsed Command
        arity: Number of required arguments
        usage: Message reported when arguments are missing
        precondition: Callable returning True when the command may run
        precondition_error: Message reported when the precondition fails
        description: One-line help text
    """
    name: str
    handler: CommandHandler
    arity: int = 0
    usage: Optional[str] = None
    precondition: Optional[Precondition] = None
    precondition_error: str = "Command not allowed now."
    description: str = ""

    def check(self, command: Command) -> None:
        """
        Validate a command against this spec.

        Raises:
            PreconditionError: If the precondition does not hold
            UsageError: If fewer than ``arity`` arguments were given
        """
        if self.precondition is not None and not self.precondition():
            raise PreconditionError(self.precondition_error)
        if len(command.args) < self.arity:
            raise UsageError(self.usage or f"Usage: {self.name}")


class CommandTable:
    """
    Static dispatch table from command name to CommandSpec.

    Unknown names are reported through UnknownCommand, with the message
    produced by ``unknown_message``.
    """

    def __init__(self, unknown_message: Optional[Callable[[str], str]] = None):
        """
        Initialize an empty table.

        Args:
            unknown_message: Builds the message for an unrecognized name
        """
        self._specs: Dict[str, CommandSpec] = {}
        self._unknown_message = unknown_message

    def register(self, spec: CommandSpec) -> None:
        """
        Register a command.

        Args:
            spec: Command declaration

        Raises:
            ValueError: If the name is already registered
        """
        if spec.name in self._specs:
            raise ValueError(f"Command {spec.name} is already registered")
        self._specs[spec.name] = spec
        logger.debug("Registered command: %s", spec.name)

    def get(self, name: str) -> Optional[CommandSpec]:
        return self._specs.get(name)

    def names(self) -> List[str]:
        return list(self._specs)

    def __contains__(self, name: str) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    async def dispatch(self, command: Command) -> None:
        """
        Run the handler registered for ``command``.

        Raises:
            UnknownCommand: If no spec is registered for the name
            PreconditionError: If the spec's precondition fails
            UsageError: If arguments are missing or malformed
        """
        spec = self._specs.get(command.name)
        if spec is None:
            message = self._unknown_message(command.name) if self._unknown_message else None
            raise UnknownCommand(command.name, message)
        spec.check(command)
        await spec.handler(command)


__all__ = [
    'CommandHandler',
    'CommandSpec',
    'CommandTable',
    'Precondition',
]
