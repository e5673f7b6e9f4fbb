"""
Client module for EchoChat application.
Provides the base client and the chat client session.
"""

from .chat_client import ChatClient
from .client_base import Client
from .command import create_client_table

__all__ = [
    'ChatClient',
    'Client',
    'create_client_table',
]
