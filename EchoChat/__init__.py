"""
EchoChat Project - A line-oriented multi-client chat server and client.

The server accepts many simultaneous connections, requires every connection
to log in with ``#login <id>`` before it may chat, and fans out each chat
line to all logged-in clients. The client keeps one connection to one server
and turns operator input into protocol actions or local settings changes.

License: Apache-2.0 License
"""

__version__ = "1.0.0"
