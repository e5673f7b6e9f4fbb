"""
Server startup module for EchoChat application.
Starts the chat server and runs the operator console on stdin.
"""

import asyncio
import logging
from typing import Callable, Optional

from EchoChat.config import config
from EchoChat.core.console import ConsoleReader, run_console
from EchoChat.core.exceptions import TransportFailure
from EchoChat.core.logging import auto_configure
from EchoChat.core.message.protocol import format_server_message
from EchoChat.core.server import EchoServer

logger = logging.getLogger(__name__)

__all__ = ['server', 'serve_with_console']


def server(port: int = config.DEFAULT_PORT) -> int:
    """
    Start the chat server on the specified port.

    Args:
        port (int): Port number to listen on (default: 5555)

    Returns:
        Process exit status
    """
    auto_configure(config.LOG_ENV)
    try:
        return asyncio.run(serve_with_console(port))
    except KeyboardInterrupt:
        print("Closed by user.")
        return 0


async def serve_with_console(
    port: int,
    reader: Optional[ConsoleReader] = None,
    display: Callable[[str], None] = print,
    host: str = config.LISTEN_HOST
) -> int:
    """
    Listen on ``port`` and process operator input until ``#quit``.

    The console keeps running when the port cannot be bound, so the operator
    can pick another one with ``#setport`` and ``#start``.

    Returns:
        Exit status from the server's shutdown
    """
    echo_server = EchoServer(port=port, host=host, display=display)
    try:
        await echo_server.listen()
    except TransportFailure as e:
        logger.error("Could not listen for clients: %s", e)
        display(format_server_message("ERROR - Could not listen for clients!"))

    return await run_console(
        reader or ConsoleReader(),
        echo_server.handle_message_from_server_console,
        echo_server.wait_for_shutdown()
    )
