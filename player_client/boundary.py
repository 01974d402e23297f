"""Interfaces of the two external collaborators and the event payloads they send.

The playback engine and the data store live on the far side of an
asynchronous boundary. Nothing in this package talks to them except through
these protocols.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from player_client.exceptions import EventPayloadError
from player_client.models import PlaybackStatus, non_negative_float

Unlisten = Callable[[], None]

# Event classes understood by the subscription manager, mapped to wire names
STATUS = "status"
PROGRESS = "progress"
ERROR = "error"
EVENT_NAMES: Dict[str, str] = {
    STATUS: "player-status",
    PROGRESS: "player-progress",
    ERROR: "player-error",
}


class EngineBoundary(Protocol):
    """Commands accepted by the playback engine. Each resolves or raises."""

    async def play(self, path: str) -> None: ...

    async def pause(self) -> None: ...

    async def resume(self) -> None: ...

    async def stop(self) -> None: ...

    async def seek(self, seconds: float) -> None: ...

    async def set_volume(self, volume: float) -> None: ...


class EventSource(Protocol):
    """Push channel from the engine. listen() resolves once the callback is live."""

    def listen(
        self, event: str, callback: Callable[[Any], None]
    ) -> Awaitable[Unlisten]: ...


class StoreBoundary(Protocol):
    """Collection operations of the data store. Rows are plain mappings."""

    async def list_tracks(self, title_filter: Optional[str] = None) -> List[Dict[str, Any]]: ...

    async def list_playlists(self) -> List[Dict[str, Any]]: ...

    async def create_playlist(self, name: str) -> str: ...

    async def delete_playlist(self, playlist_id: str) -> None: ...

    async def list_tracks_for_playlist(self, playlist_id: str) -> List[Dict[str, Any]]: ...

    async def add_tracks_to_playlist(self, playlist_id: str, track_ids: Sequence[int]) -> None: ...

    async def remove_tracks_from_playlist(self, playlist_id: str, track_ids: Sequence[int]) -> None: ...

    async def list_folders(self, name_filter: Optional[str] = None) -> List[Dict[str, Any]]: ...

    async def add_folder(self, name: str, path: str) -> str: ...

    async def delete_folders(self, ids: Sequence[str]) -> None: ...


class StatusPayload:
    """Parsed `player-status` event."""

    def __init__(
        self,
        status: PlaybackStatus,
        path: Optional[str] = None,
        duration: Optional[float] = None,
    ):
        self.status = status
        self.path = path
        self.duration = duration

    @classmethod
    def parse(cls, data: Any) -> "StatusPayload":
        if isinstance(data, StatusPayload):
            return data
        if not isinstance(data, dict):
            raise EventPayloadError(f"status payload is not a mapping: {data!r}")
        try:
            status = PlaybackStatus(str(data.get("status", "")).lower())
        except ValueError as e:
            raise EventPayloadError(f"unknown status: {data.get('status')!r}") from e
        path = data.get("path") or None
        duration = data.get("duration")
        return cls(
            status,
            str(path) if path is not None else None,
            non_negative_float(duration) if duration is not None else None,
        )

    def __repr__(self) -> str:
        return f"StatusPayload({self.status.value}, path={self.path!r}, duration={self.duration!r})"


class ProgressPayload:
    """Parsed `player-progress` event."""

    def __init__(self, position: float, duration: float):
        self.position = position
        self.duration = duration

    @classmethod
    def parse(cls, data: Any) -> "ProgressPayload":
        if isinstance(data, ProgressPayload):
            return data
        if not isinstance(data, dict) or "position" not in data:
            raise EventPayloadError(f"malformed progress payload: {data!r}")
        return cls(
            non_negative_float(data.get("position")),
            non_negative_float(data.get("duration")),
        )

    def __repr__(self) -> str:
        return f"ProgressPayload({self.position:.2f}/{self.duration:.2f})"


def parse_error_message(data: Any) -> str:
    """Error events carry an opaque string; anything else is stringified."""
    if isinstance(data, str):
        return data
    if isinstance(data, dict) and "message" in data:
        return str(data["message"])
    return str(data)
