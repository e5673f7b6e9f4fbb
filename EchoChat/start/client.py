"""
Client startup module for EchoChat application.
Connects to a chat server, logs in and relays stdin until the session ends.
"""

import asyncio
import logging
from typing import Callable, Optional

from EchoChat.config import config
from EchoChat.core.client import ChatClient
from EchoChat.core.console import ConsoleReader, run_console
from EchoChat.core.exceptions import TransportFailure
from EchoChat.core.logging import auto_configure

logger = logging.getLogger(__name__)

__all__ = ['client', 'chat_with_console']


def client(login_id: str, host: str = config.DEFAULT_HOST, port: int = config.DEFAULT_PORT) -> int:
    """
    Start the chat client with specified connection parameters.

    Args:
        login_id (str): Identity to log in with
        host (str): Server hostname to connect to (default: localhost)
        port (int): Server port number (default: 5555)

    Returns:
        Process exit status
    """
    auto_configure(config.LOG_ENV)
    try:
        return asyncio.run(chat_with_console(login_id, host, port))
    except KeyboardInterrupt:
        print("Connection reset.")
        return 0


async def chat_with_console(
    login_id: str,
    host: str,
    port: int,
    reader: Optional[ConsoleReader] = None,
    display: Callable[[str], None] = print
) -> int:
    """
    Log in and feed console lines to the client until it terminates.

    Returns:
        Exit status; 1 if the first connection cannot be made
    """
    chat_client = ChatClient(login_id, host, port, display=display)
    try:
        await chat_client.open()
    except TransportFailure as e:
        logger.error("Initial connection failed: %s", e)
        display("Error: Can't setup connection! Terminating client.")
        return 1

    return await run_console(
        reader or ConsoleReader(),
        chat_client.handle_message_from_client_ui,
        chat_client.wait_closed(),
        on_eof=chat_client.quit
    )
