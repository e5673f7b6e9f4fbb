"""
Server operator console commands.

These act on the server process as a whole, never on a single connection:

    #quit          stop listening, close every connection, shut down
    #stop          stop accepting connections; existing ones stay open
    #close         close every connection; listening state unchanged
    #setport <p>   change the port (only when stopped with no clients)
    #start         start accepting connections
    #getport       show the port

A console line without a leading ``#`` is not a command; the server
broadcasts it to all clients as ``SERVER MSG> <line>``.
"""

import logging
from typing import TYPE_CHECKING

from EchoChat.config import parse_port
from EchoChat.core.commands import CommandSpec, CommandTable
from EchoChat.core.exceptions import TransportFailure, UsageError
from EchoChat.core.message.protocol import Command, format_server_message

if TYPE_CHECKING:
    from EchoChat.core.server.echo_server import EchoServer

logger = logging.getLogger(__name__)

CANT_DO_THAT_NOW = format_server_message("Can't do that now. Server is connected.")


def create_console_table(server: 'EchoServer') -> CommandTable:
    """
    Build the operator console dispatch table for a server.

    Args:
        server: Server the commands act on

    Returns:
        Configured CommandTable
    """
    table = CommandTable(unknown_message=lambda name: f"Invalid command: '{name}'")

    async def quit_server(command: Command) -> None:
        await server.quit()

    async def stop(command: Command) -> None:
        await server.stop_listening()

    async def close(command: Command) -> None:
        failures = await server.close_all_connections()
        if failures:
            server.display(format_server_message(f"Error closing {failures} connection(s)."))

    async def set_port(command: Command) -> None:
        port = parse_port(command.arg(0))
        if port is None:
            raise UsageError(format_server_message(f"Invalid port number: {command.arg(0)}"))
        server.set_port(port)
        server.display(format_server_message(f"Port set to {port}"))

    async def start(command: Command) -> None:
        try:
            await server.listen()
        except TransportFailure as e:
            server.display(format_server_message(f"Error listening for incoming connections: {e}"))

    async def get_port(command: Command) -> None:
        server.display(f"Current port is {server.port}")

    table.register(CommandSpec(
        name="#quit",
        handler=quit_server,
        description="Stop listening, close all connections and shut down",
    ))
    table.register(CommandSpec(
        name="#stop",
        handler=stop,
        description="Stop accepting new connections",
    ))
    table.register(CommandSpec(
        name="#close",
        handler=close,
        description="Close all client connections",
    ))
    table.register(CommandSpec(
        name="#setport",
        handler=set_port,
        arity=1,
        usage="Usage: #setport <port>",
        precondition=lambda: not server.is_listening and server.number_of_clients == 0,
        precondition_error=CANT_DO_THAT_NOW,
        description="Set the listening port",
    ))
    table.register(CommandSpec(
        name="#start",
        handler=start,
        precondition=lambda: not server.is_listening,
        precondition_error=CANT_DO_THAT_NOW,
        description="Start accepting connections",
    ))
    table.register(CommandSpec(
        name="#getport",
        handler=get_port,
        description="Show the listening port",
    ))
    return table


__all__ = ['CANT_DO_THAT_NOW', 'create_console_table']
