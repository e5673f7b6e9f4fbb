from .exceptions import ChatError
from .message.protocol import ChatPayload, Command, interpret

__all__ = ['ChatError', 'ChatPayload', 'Command', 'interpret']
