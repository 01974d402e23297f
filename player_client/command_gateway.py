"""Typed command gateway to the playback engine.

Commands are one-way triggers: a call resolves (success) or raises
CommandError (failure) but never returns playback state. State only arrives
through the event channel.
"""

from typing import Awaitable, Callable

from player_client.boundary import EngineBoundary
from player_client.exceptions import CommandError
from player_client.logging import get_logger

logger = get_logger(__name__)


class CommandGateway:
    """Stateless wrapper around an EngineBoundary. No validation, no clamping."""

    def __init__(self, engine: EngineBoundary):
        self._engine = engine

    async def _dispatch(self, command: str, call: Callable[[], Awaitable[None]]) -> None:
        logger.debug("Dispatching %s", command)
        try:
            await call()
        except CommandError as e:
            if e.command is None:
                e.command = command
            logger.warning("Command %s failed: %s", command, e)
            raise
        except Exception as e:
            logger.warning("Command %s failed: %s", command, e)
            raise CommandError(str(e) or type(e).__name__, command=command) from e

    async def play(self, path: str) -> None:
        """Request playback of path. Success is confirmed by a later status event."""
        await self._dispatch("play", lambda: self._engine.play(path))

    async def pause(self) -> None:
        await self._dispatch("pause", self._engine.pause)

    async def resume(self) -> None:
        """Resume playback. Safe to call when already playing."""
        await self._dispatch("resume", self._engine.resume)

    async def stop(self) -> None:
        await self._dispatch("stop", self._engine.stop)

    async def seek(self, seconds: float) -> None:
        """Sent verbatim; the caller clamps to [0, duration]."""
        await self._dispatch("seek", lambda: self._engine.seek(seconds))

    async def set_volume(self, volume: float) -> None:
        """Sent verbatim; values outside [0, 1] are the caller's contract violation."""
        await self._dispatch("set_volume", lambda: self._engine.set_volume(volume))
