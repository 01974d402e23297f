"""Tests for the command gateway."""

import pytest

from player_client.command_gateway import CommandGateway
from player_client.exceptions import CommandError, InvalidPath


class TestCommandGateway:
    """Test CommandGateway dispatch."""

    @pytest.fixture
    def gateway(self, fake_engine):
        return CommandGateway(fake_engine)

    async def test_commands_reach_engine(self, gateway, fake_engine):
        """Test each command is forwarded once with its argument."""
        await gateway.play("/music/a.mp3")
        await gateway.pause()
        await gateway.resume()
        await gateway.seek(42.0)
        await gateway.stop()
        assert fake_engine.calls == [
            ("play", "/music/a.mp3"),
            ("pause",),
            ("resume",),
            ("seek", 42.0),
            ("stop",),
        ]

    async def test_volume_sent_verbatim(self, gateway, fake_engine):
        """Test out-of-range volume is not clamped by the gateway."""
        await gateway.set_volume(1.4)
        assert fake_engine.calls == [("set_volume", 1.4)]

    async def test_resume_while_playing_is_harmless(self, gateway, fake_engine):
        await gateway.resume()
        await gateway.resume()
        assert len(fake_engine.calls_named("resume")) == 2

    async def test_command_error_gets_command_name(self, gateway, fake_engine):
        """Test engine CommandErrors propagate with the command attached."""
        fake_engine.fail["play"] = InvalidPath("File does not exist: /nope.mp3")
        with pytest.raises(InvalidPath) as exc_info:
            await gateway.play("/nope.mp3")
        assert exc_info.value.command == "play"
        assert "/nope.mp3" in str(exc_info.value)

    async def test_other_exceptions_are_wrapped(self, gateway, fake_engine):
        """Test arbitrary engine failures surface as CommandError."""
        fake_engine.fail["pause"] = RuntimeError("engine crashed")
        with pytest.raises(CommandError) as exc_info:
            await gateway.pause()
        assert exc_info.value.command == "pause"
        assert str(exc_info.value) == "engine crashed"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_empty_message_uses_type_name(self, gateway, fake_engine):
        fake_engine.fail["stop"] = TimeoutError()
        with pytest.raises(CommandError, match="TimeoutError"):
            await gateway.stop()
