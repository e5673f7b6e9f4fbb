"""
Unit tests for command dispatch tables.
"""

from unittest.mock import AsyncMock

import pytest

from EchoChat.core.commands import CommandSpec, CommandTable
from EchoChat.core.exceptions import PreconditionError, UnknownCommand, UsageError
from EchoChat.core.message.protocol import Command


class TestCommandTable:
    """Tests for CommandTable."""

    def setup_method(self):
        """Set up test fixtures."""
        self.allowed = True
        self.handler = AsyncMock()
        self.table = CommandTable(unknown_message=lambda name: f"No such command {name}")
        self.table.register(CommandSpec(
            name="#setport",
            handler=self.handler,
            arity=1,
            usage="Usage: #setport <port>",
            precondition=lambda: self.allowed,
            precondition_error="Not now",
        ))

    def test_register(self):
        """Test table lookup helpers."""
        assert "#setport" in self.table
        assert len(self.table) == 1
        assert self.table.names() == ["#setport"]
        assert self.table.get("#setport").arity == 1
        assert self.table.get("#missing") is None

    def test_register_duplicate(self):
        """Test that a name can only be registered once."""
        with pytest.raises(ValueError):
            self.table.register(CommandSpec(name="#setport", handler=AsyncMock()))

    @pytest.mark.asyncio
    async def test_dispatch(self):
        """Test that the handler receives the parsed command."""
        command = Command("#setport", ("6000",))
        await self.table.dispatch(command)
        self.handler.assert_awaited_once_with(command)

    @pytest.mark.asyncio
    async def test_unknown(self):
        """Test the unknown command message."""
        with pytest.raises(UnknownCommand) as exc_info:
            await self.table.dispatch(Command("#nope"))

        assert exc_info.value.name == "#nope"
        assert str(exc_info.value) == "No such command #nope"

    @pytest.mark.asyncio
    async def test_unknown_default_message(self):
        """Test the fallback message when no builder is given."""
        with pytest.raises(UnknownCommand, match="Unknown command: #nope"):
            await CommandTable().dispatch(Command("#nope"))

    @pytest.mark.asyncio
    async def test_missing_argument(self):
        """Test the usage message for a missing argument."""
        with pytest.raises(UsageError, match="Usage: #setport <port>"):
            await self.table.dispatch(Command("#setport"))
        self.handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_precondition_checked_first(self):
        """Test that the precondition is reported before the usage error."""
        self.allowed = False
        with pytest.raises(PreconditionError, match="Not now"):
            await self.table.dispatch(Command("#setport"))
        self.handler.assert_not_awaited()
