"""
Client-side commands.

Lines typed into the client that start with ``#`` never reach the server as
chat; they are handled here. ``#login`` is the one command with a wire form:
after reconnecting it sends ``#login <loginID>``.
"""

from typing import TYPE_CHECKING

from EchoChat.config import parse_port
from EchoChat.core.client.client_base import HOST_WHILE_CONNECTED, PORT_WHILE_CONNECTED
from EchoChat.core.commands import CommandSpec, CommandTable
from EchoChat.core.exceptions import TransportFailure, UsageError
from EchoChat.core.message.protocol import Command

if TYPE_CHECKING:
    from EchoChat.core.client.chat_client import ChatClient

UNKNOWN_COMMAND = "Error: Unknown command."
NOT_CONNECTED = "Error: Not currently connected to the server."
ALREADY_CONNECTED = "Error: Already connected."
INVALID_PORT = "Error: Invalid port number."


def create_client_table(client: 'ChatClient') -> CommandTable:
    """
    Build the dispatch table for a chat client.

    Args:
        client: Client the commands act on

    Returns:
        Configured CommandTable
    """
    table = CommandTable(unknown_message=lambda name: UNKNOWN_COMMAND)

    async def quit_client(command: Command) -> None:
        await client.quit()

    async def logoff(command: Command) -> None:
        try:
            await client.close_connection()
        except TransportFailure as e:
            client.display(f"Error while logging off: {e}")
            return
        client.display("Logged off from the server.")

    async def set_host(command: Command) -> None:
        client.host = command.arg(0)
        client.display(f"Host set to: {client.host}")

    async def set_port(command: Command) -> None:
        port = parse_port(command.arg(0))
        if port is None:
            raise UsageError(INVALID_PORT)
        client.port = port
        client.display(f"Port set to: {port}")

    async def login(command: Command) -> None:
        try:
            await client.open()
        except TransportFailure:
            client.display("Failed to connect to server.")
            return
        client.display("Logged in to server.")

    async def get_host(command: Command) -> None:
        client.display(f"Current host: {client.host}")

    async def get_port(command: Command) -> None:
        client.display(f"Current port: {client.port}")

    table.register(CommandSpec(
        name="#quit",
        handler=quit_client,
        description="Disconnect and terminate the client",
    ))
    table.register(CommandSpec(
        name="#logoff",
        handler=logoff,
        precondition=lambda: client.connected,
        precondition_error=NOT_CONNECTED,
        description="Disconnect but keep the client running",
    ))
    table.register(CommandSpec(
        name="#sethost",
        handler=set_host,
        arity=1,
        usage="Usage: #sethost <host>",
        precondition=lambda: not client.connected,
        precondition_error=HOST_WHILE_CONNECTED,
        description="Set the server host",
    ))
    table.register(CommandSpec(
        name="#setport",
        handler=set_port,
        arity=1,
        usage="Usage: #setport <port>",
        precondition=lambda: not client.connected,
        precondition_error=PORT_WHILE_CONNECTED,
        description="Set the server port",
    ))
    table.register(CommandSpec(
        name="#login",
        handler=login,
        precondition=lambda: not client.connected,
        precondition_error=ALREADY_CONNECTED,
        description="Connect to the server and log in",
    ))
    table.register(CommandSpec(
        name="#gethost",
        handler=get_host,
        description="Show the server host",
    ))
    table.register(CommandSpec(
        name="#getport",
        handler=get_port,
        description="Show the server port",
    ))
    return table


__all__ = [
    'ALREADY_CONNECTED',
    'INVALID_PORT',
    'NOT_CONNECTED',
    'UNKNOWN_COMMAND',
    'create_client_table',
]
