"""
Server module for EchoChat.

Architecture Overview:
---------------------

1. **Transport** (`transport/`)
   - WebSocketConnection: one WebSocket connection, one protocol line per frame

2. **Session State** (`session/`)
   - ConnectionRegistry: every open connection and its login state
   - Pending / Authenticated: tagged per-connection state

3. **Login** (`auth/`)
   - LoginStateMachine: ``#login <id>`` must come first and only once

4. **Message Routing** (`routing/`)
   - Broadcaster: fan-out to all logged-in connections

5. **Console Commands** (`commands/`)
   - create_console_table: ``#quit``, ``#stop``, ``#close``, ``#setport``,
     ``#start``, ``#getport``

6. **Server** (`echo_server.py`)
   - EchoServer: composes the components above

Usage:

    from EchoChat.core.server import EchoServer

    server = EchoServer(port=5555)
    await server.listen()
    status = await server.wait_for_shutdown()
"""

from EchoChat.core.server.auth import LoginOutcome, LoginOutcomeKind, LoginStateMachine
from EchoChat.core.server.commands import create_console_table
from EchoChat.core.server.echo_server import EchoServer
from EchoChat.core.server.interfaces import TransportConnection
from EchoChat.core.server.routing import Broadcaster, DeliveryResult, DeliveryStatus
from EchoChat.core.server.session import (
    Authenticated,
    ConnectionRegistry,
    ConnectionState,
    Pending,
)
from EchoChat.core.server.transport import WebSocketConnection

__all__ = [
    'TransportConnection',

    'WebSocketConnection',

    'Authenticated',
    'ConnectionRegistry',
    'ConnectionState',
    'Pending',

    'LoginOutcome',
    'LoginOutcomeKind',
    'LoginStateMachine',

    'Broadcaster',
    'DeliveryResult',
    'DeliveryStatus',

    'create_console_table',

    'EchoServer',
]
