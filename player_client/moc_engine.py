"""Playback engine adapter for MOC (Music On Console) via the `mocp` CLI.

This module lets us:
- Send playback commands (play/pause/resume/stop/seek/volume) to the MOC server
- Poll `mocp --info` and turn state changes into player-status,
  player-progress and player-error events on an EventBus
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from mutagen import File as MutagenFile
from mutagen import MutagenError

from player_client.events import EventBus
from player_client.exceptions import CommandError, EngineUnavailable, InvalidPath
from player_client.logging import get_logger

logger = get_logger(__name__)

# Containers MOC cannot play
VIDEO_EXTENSIONS = {".mp4", ".mkv", ".webm", ".avi", ".mov", ".flv", ".wmv", ".m4v"}

_SERVER_DOWN_MARKERS = ("server is not running", "can't receive value", "can't connect")

_MOC_STATES = {"PLAY": "playing", "PAUSE": "paused", "STOP": "stopped"}


def _parse_seconds(seconds: Optional[str], clock: Optional[str]) -> float:
    """Parse "CurrentSec"-style seconds, falling back to "MM:SS"."""
    if seconds:
        try:
            value = float(seconds)
        except ValueError:
            value = 0.0
        if value > 0.0:
            return value
    if clock and ":" in clock:
        parts = clock.split(":")
        if len(parts) == 2:
            try:
                return float(parts[0]) * 60 + float(parts[1])
            except ValueError:
                pass
    return 0.0


def parse_info(output: str) -> Dict[str, Any]:
    """
    Parse `mocp --info` output.

    Returns:
        Dict with state ("playing"/"paused"/"stopped"), file_path, position,
        duration and volume (0.0-1.0)
    """
    info: Dict[str, str] = {}
    for line in output.splitlines():
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        info[key.strip()] = value.strip()

    state = _MOC_STATES.get(info.get("State", "").upper(), "stopped")

    volume = 1.0
    vol_str = info.get("Volume", "").strip().rstrip("%").strip()
    try:
        volume = max(0.0, min(1.0, int(vol_str) / 100.0))
    except ValueError:
        pass

    return {
        "state": state,
        "file_path": info.get("File") or None,
        "position": _parse_seconds(info.get("CurrentSec"), info.get("CurrentTime")),
        "duration": _parse_seconds(info.get("TotalSec"), info.get("TotalTime")),
        "volume": volume,
    }


def read_duration(file_path: str) -> float:
    """Duration of a media file from its tags, 0.0 if unreadable."""
    try:
        audio_file = MutagenFile(file_path)
    except (MutagenError, OSError) as e:
        logger.debug("Cannot read duration of %s: %s", file_path, e)
        return 0.0
    if audio_file is None or not hasattr(audio_file, "info"):
        return 0.0
    return float(getattr(audio_file.info, "length", 0.0) or 0.0)


class MocEngine:
    """
    EngineBoundary and EventSource on top of `mocp`.

    MOC has no push channel, so a polling task compares successive
    `--info` results and publishes the differences.
    """

    def __init__(
        self,
        mocp_path: Optional[str] = None,
        event_bus: Optional[EventBus] = None,
        poll_interval: float = 0.5,
        command_timeout: float = 5.0,
    ):
        self._mocp_path: Optional[str] = mocp_path or shutil.which("mocp")
        self.event_bus = event_bus or EventBus()
        self._poll_interval = poll_interval
        self._command_timeout = command_timeout
        # Only try `mocp --server` once until a command reports it down
        self._server_initialized: bool = False
        self._poll_task: Optional[asyncio.Task] = None
        self._last_state: Optional[str] = None
        self._last_file: Optional[str] = None
        self._duration_cache: Dict[str, float] = {}
        self._failing: bool = False

    # ------------------------------------------------------------------
    # Availability / helpers
    # ------------------------------------------------------------------
    def is_available(self) -> bool:
        """Return True if `mocp` was found."""
        return self._mocp_path is not None

    async def _run(self, *args: str) -> Tuple[int, str, str]:
        """Run `mocp` with args and return (returncode, stdout, stderr)."""
        if not self._mocp_path:
            raise EngineUnavailable("mocp not found")
        try:
            proc = await asyncio.create_subprocess_exec(
                self._mocp_path,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise EngineUnavailable(f"Cannot start mocp: {e}") from e
        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._command_timeout
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise EngineUnavailable(f"mocp {' '.join(args)} timed out")
        return (
            proc.returncode if proc.returncode is not None else 1,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )

    async def ensure_server(self) -> None:
        """Start the MOC server if it is not already running."""
        if self._server_initialized:
            return
        returncode, _, stderr = await self._run("--server")
        # mocp --server fails when a server is already up; both are fine
        if returncode != 0 and "already running" not in stderr.lower():
            logger.debug("mocp --server: %s", stderr.strip())
        self._server_initialized = True

    async def _command(self, *args: str) -> str:
        await self.ensure_server()
        returncode, stdout, stderr = await self._run(*args)
        if returncode != 0:
            message = stderr.strip() or f"mocp {args[0]} exited with {returncode}"
            if any(marker in message.lower() for marker in _SERVER_DOWN_MARKERS):
                self._server_initialized = False
                raise EngineUnavailable(message)
            raise CommandError(message)
        return stdout

    # ------------------------------------------------------------------
    # EngineBoundary
    # ------------------------------------------------------------------
    async def play(self, path: str) -> None:
        """Play a specific file, keeping MOC's playlist intact."""
        if not path:
            raise InvalidPath("Empty path")
        file_path = Path(path).expanduser()
        if not file_path.is_file():
            raise InvalidPath(f"File does not exist: {path}")
        if file_path.suffix.lower() in VIDEO_EXTENSIONS:
            raise InvalidPath(f"Not an audio file: {path}")
        await self._command("--playit", str(file_path.resolve()))

    async def pause(self) -> None:
        await self._command("--pause")

    async def resume(self) -> None:
        await self._command("--unpause")

    async def stop(self) -> None:
        await self._command("--stop")

    async def seek(self, seconds: float) -> None:
        """Jump to an absolute position in seconds."""
        await self._command("--jump", f"{max(0, int(seconds))}s")

    async def set_volume(self, volume: float) -> None:
        """Set volume as a float 0.0-1.0."""
        vol_percent = int(round(max(0.0, min(1.0, volume)) * 100))
        await self._command("--volume", str(vol_percent))

    # ------------------------------------------------------------------
    # EventSource
    # ------------------------------------------------------------------
    async def listen(self, event: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        return await self.event_bus.listen(event, callback)

    # ------------------------------------------------------------------
    # Status polling
    # ------------------------------------------------------------------
    async def get_status(self) -> Dict[str, Any]:
        """Current MOC status; raises EngineUnavailable if the server is down."""
        stdout = await self._command("--info")
        return parse_info(stdout)

    async def _duration_of(self, file_path: str) -> float:
        if file_path not in self._duration_cache:
            loop = asyncio.get_running_loop()
            self._duration_cache[file_path] = await loop.run_in_executor(
                None, read_duration, file_path
            )
        return self._duration_cache[file_path]

    async def poll_once(self) -> None:
        """Read MOC's status once and publish what changed."""
        try:
            status = await self.get_status()
        except CommandError as e:
            if not self._failing:
                self._failing = True
                self.event_bus.publish(EventBus.PLAYER_ERROR, f"MOC: {e}")
            return
        self._failing = False

        state = status["state"]
        file_path = status["file_path"] if state != "stopped" else None
        duration = status["duration"]
        if file_path and duration <= 0.0:
            duration = await self._duration_of(file_path)

        if state != self._last_state or file_path != self._last_file:
            self._last_state = state
            self._last_file = file_path
            payload: Dict[str, Any] = {"status": state}
            if file_path:
                payload["path"] = file_path
            if duration > 0.0:
                payload["duration"] = duration
            self.event_bus.publish(EventBus.PLAYER_STATUS, payload)

        if state == "playing":
            self.event_bus.publish(
                EventBus.PLAYER_PROGRESS,
                {"position": status["position"], "duration": duration},
            )

    async def _poll_loop(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self._poll_interval)

    def start(self) -> None:
        """Start polling on the running loop."""
        if self._poll_task is None or self._poll_task.done():
            self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop())

    async def aclose(self) -> None:
        """Stop polling. The MOC server keeps running."""
        task, self._poll_task = self._poll_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def shutdown(self) -> None:
        """Stop polling and exit the MOC server (`mocp --exit`)."""
        await self.aclose()
        if self.is_available():
            await self._run("--exit")
        self._server_initialized = False
