"""
Line protocol module for EchoChat application.
Defines how input lines are interpreted and how server lines are formatted.

Every protocol message is a single line of text. A line that starts with
``#`` is a command; anything else is a chat payload.
"""

from dataclasses import dataclass
from typing import Tuple, Union

COMMAND_PREFIX = "#"
LOGIN_COMMAND = "#login"
SERVER_PREFIX = "SERVER MSG>"


@dataclass(frozen=True)
class Command:
    """
    A parsed command line.

    Attributes:
        name (str): First token, including the leading ``#``; case-sensitive
        args (tuple): Remaining whitespace-delimited tokens
    """
    name: str
    args: Tuple[str, ...] = ()

    def arg(self, index: int, default: str = None) -> str:
        """Return the argument at ``index`` or ``default`` when absent."""
        if index < len(self.args):
            return self.args[index]
        return default


@dataclass(frozen=True)
class ChatPayload:
    """A line that is not a command; forwarded as chat."""
    text: str


def interpret(line: str) -> Union[Command, ChatPayload]:
    """
    Classify a line of input.

    Args:
        line (str): Raw input line

    Returns:
        Command if the line starts with ``#``, otherwise ChatPayload
    """
    if line.startswith(COMMAND_PREFIX):
        tokens = line.split()
        return Command(name=tokens[0], args=tuple(tokens[1:]))
    return ChatPayload(line)


def format_login(identity: str) -> str:
    """Login line, used both as the client request and the server confirmation."""
    return f"{LOGIN_COMMAND} {identity}"


def format_chat(identity: str, payload: str) -> str:
    """Broadcast line for chat sent by an authenticated client."""
    return f"{identity}> {payload}"


def format_server_message(payload: str) -> str:
    """Broadcast line for a message typed on the server console."""
    return f"{SERVER_PREFIX} {payload}"


def format_error(text: str) -> str:
    """Diagnostic line sent to a client that broke the protocol."""
    return format_server_message(f"ERROR: {text}")
