"""
Unit tests for the chat client session.

Tests cover:
- Login on connect
- Client commands and their preconditions
- Chat forwarding and termination on failures
"""

import pytest
import pytest_asyncio

from EchoChat.core.client import ChatClient
from EchoChat.core.client.chat_client import CONNECTION_CLOSED, SEND_FAILED, SERVER_GONE
from EchoChat.core.client.command import (
    ALREADY_CONNECTED,
    INVALID_PORT,
    NOT_CONNECTED,
    UNKNOWN_COMMAND,
)
from EchoChat.core.exceptions import PreconditionError, TransportFailure
from EchoChat.test.utils import wait_until


@pytest.fixture
def chat_client(recorder, connector) -> ChatClient:
    return ChatClient("alice", "localhost", 5555, display=recorder, connector=connector)


@pytest_asyncio.fixture
async def online_client(chat_client):
    """A client that is connected and has sent its login."""
    await chat_client.open()
    yield chat_client
    if not chat_client.terminated:
        await chat_client.quit()


class TestConnection:
    """Tests for opening and closing the connection."""

    @pytest.mark.asyncio
    async def test_open_sends_login(self, online_client, connector):
        """Test that the first line on a connection is the login."""
        assert connector.uris == ["ws://localhost:5555"]
        assert connector.last.sent == ["#login alice"]
        assert online_client.connected

    @pytest.mark.asyncio
    async def test_open_refused(self, chat_client, connector):
        """Test that a refused connection surfaces as a transport failure."""
        connector.refuse = True

        with pytest.raises(TransportFailure):
            await chat_client.open()
        assert not chat_client.connected

    @pytest.mark.asyncio
    async def test_open_twice(self, online_client):
        with pytest.raises(PreconditionError):
            await online_client.open()

    @pytest.mark.asyncio
    async def test_server_lines_displayed(self, online_client, connector, recorder):
        """Test that lines from the server are shown as they arrive."""
        connector.last.push("#login alice")
        connector.last.push("bob> hi alice")

        await wait_until(lambda: "bob> hi alice" in recorder)
        assert recorder.lines == ["#login alice", "bob> hi alice"]

    @pytest.mark.asyncio
    async def test_server_closes(self, online_client, connector, recorder):
        """Test that losing the server terminates the client."""
        connector.last.drop()

        assert await online_client.wait_closed() == 0
        assert SERVER_GONE in recorder
        assert not online_client.connected
        assert online_client.terminated


class TestChat:
    """Tests for chat typed by the user."""

    @pytest.mark.asyncio
    async def test_chat_forwarded(self, online_client, connector):
        """Test that chat is sent verbatim."""
        await online_client.handle_message_from_client_ui("hello  there ")
        assert connector.last.sent == ["#login alice", "hello  there "]

    @pytest.mark.asyncio
    async def test_send_failure_terminates(self, online_client, connector, recorder):
        """Test that a failed send terminates the client."""
        connector.last.fail_send = True

        await online_client.handle_message_from_client_ui("hello")

        assert SEND_FAILED in recorder
        assert online_client.terminated
        assert await online_client.wait_closed() == 0

    @pytest.mark.asyncio
    async def test_chat_while_disconnected_terminates(self, chat_client, recorder):
        """Test that chat without a connection is a send failure."""
        await chat_client.handle_message_from_client_ui("hello")

        assert recorder.lines == [SEND_FAILED]
        assert chat_client.terminated


class TestClientCommands:
    """Tests for #-commands typed into the client."""

    @pytest.mark.asyncio
    async def test_quit(self, online_client, connector):
        """Test that #quit closes the connection and terminates."""
        await online_client.handle_message_from_client_ui("#quit")

        assert connector.last.closed
        assert online_client.terminated
        assert await online_client.wait_closed() == 0

    @pytest.mark.asyncio
    async def test_logoff(self, online_client, connector, recorder):
        """Test that #logoff disconnects but keeps the client running."""
        await online_client.handle_message_from_client_ui("#logoff")

        assert connector.last.closed
        assert not online_client.connected
        assert not online_client.terminated
        assert recorder.lines[-2:] == [CONNECTION_CLOSED, "Logged off from the server."]

    @pytest.mark.asyncio
    async def test_logoff_when_disconnected(self, chat_client, recorder):
        await chat_client.handle_message_from_client_ui("#logoff")
        assert recorder.lines == [NOT_CONNECTED]

    @pytest.mark.asyncio
    async def test_sethost_while_connected(self, online_client, recorder):
        """Test that the host cannot change while connected."""
        await online_client.handle_message_from_client_ui("#sethost example.org")

        assert online_client.host == "localhost"
        assert recorder.lines[-1] == "Error: You must be logged off to change the host."

    @pytest.mark.asyncio
    async def test_setport_while_connected(self, online_client, recorder):
        await online_client.handle_message_from_client_ui("#setport 6000")

        assert online_client.port == 5555
        assert recorder.lines[-1] == "Error: You must be logged off to change the port."

    @pytest.mark.asyncio
    async def test_sethost(self, chat_client, recorder):
        await chat_client.handle_message_from_client_ui("#sethost example.org")

        assert chat_client.host == "example.org"
        assert recorder.lines[-1] == "Host set to: example.org"

    @pytest.mark.asyncio
    async def test_sethost_missing(self, chat_client, recorder):
        await chat_client.handle_message_from_client_ui("#sethost")
        assert recorder.lines[-1] == "Usage: #sethost <host>"

    @pytest.mark.asyncio
    async def test_setport(self, chat_client, recorder):
        await chat_client.handle_message_from_client_ui("#setport 6000")

        assert chat_client.port == 6000
        assert recorder.lines[-1] == "Port set to: 6000"

    @pytest.mark.asyncio
    async def test_setport_invalid(self, chat_client, recorder):
        await chat_client.handle_message_from_client_ui("#setport http")

        assert chat_client.port == 5555
        assert recorder.lines[-1] == INVALID_PORT

    @pytest.mark.asyncio
    async def test_gethost_getport(self, chat_client, recorder):
        await chat_client.handle_message_from_client_ui("#gethost")
        await chat_client.handle_message_from_client_ui("#getport")

        assert recorder.lines == ["Current host: localhost", "Current port: 5555"]

    @pytest.mark.asyncio
    async def test_login_while_connected(self, online_client, connector, recorder):
        await online_client.handle_message_from_client_ui("#login")

        assert recorder.lines[-1] == ALREADY_CONNECTED
        assert len(connector.connections) == 1

    @pytest.mark.asyncio
    async def test_login_after_logoff(self, online_client, connector, recorder):
        """Test that #login reconnects to the current address and logs in again."""
        await online_client.handle_message_from_client_ui("#logoff")
        await online_client.handle_message_from_client_ui("#setport 6000")
        await online_client.handle_message_from_client_ui("#login")

        assert connector.uris[-1] == "ws://localhost:6000"
        assert connector.last.sent == ["#login alice"]
        assert recorder.lines[-1] == "Logged in to server."
        assert online_client.connected

    @pytest.mark.asyncio
    async def test_login_refused(self, chat_client, connector, recorder):
        connector.refuse = True

        await chat_client.handle_message_from_client_ui("#login")

        assert recorder.lines[-1] == "Failed to connect to server."
        assert not chat_client.terminated

    @pytest.mark.asyncio
    async def test_unknown_command(self, online_client, connector, recorder):
        """Test that unknown commands are not sent to the server."""
        await online_client.handle_message_from_client_ui("#whisper bob hi")

        assert recorder.lines[-1] == UNKNOWN_COMMAND
        assert connector.last.sent == ["#login alice"]
