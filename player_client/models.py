"""Data model shared by the reconciler and the collection caches.

Store rows arrive as plain mappings using the store's field names; every
model converts to and from that shape with to_dict/from_dict.
"""

import math
from enum import Enum
from typing import Any, Dict, Optional

UNKNOWN_ARTIST = "Unknown Artist"

# Reserved playlists are identified by exact, case-sensitive name only
RECENT_PLAYLIST_NAME = "Recent"
FAVORITES_PLAYLIST_NAME = "Favorites"
RESERVED_PLAYLIST_NAMES = (RECENT_PLAYLIST_NAME, FAVORITES_PLAYLIST_NAME)


class PlaybackStatus(Enum):
    """Playback status as reported by the engine."""

    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


def non_negative_float(value: Any) -> float:
    """Coerce to a finite float >= 0; anything else becomes 0.0."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(result) or math.isinf(result) or result < 0.0:
        return 0.0
    return result


def path_basename(path: str) -> str:
    """Last segment of a path, accepting both '/' and '\\' separators."""
    trimmed = path.rstrip("/\\")
    for sep in ("/", "\\"):
        if sep in trimmed:
            trimmed = trimmed.rsplit(sep, 1)[1]
    return trimmed or path


class Track:
    """A track row owned by the track collection (or a path-only stand-in)."""

    def __init__(
        self,
        path: str,
        id: Optional[int] = None,
        title: Optional[str] = None,
        artist: Optional[str] = None,
        album: Optional[str] = None,
        duration_secs: float = 0.0,
        cover_mime: Optional[str] = None,
        has_cover: bool = False,
        cover_img_path: Optional[str] = None,
    ):
        self.id = id
        self.path = path
        self.title = title
        self.artist = artist
        self.album = album
        self.duration_secs = non_negative_float(duration_secs)
        self.cover_mime = cover_mime
        self.has_cover = bool(has_cover)
        self.cover_img_path = cover_img_path

    @property
    def display_title(self) -> str:
        """Title, or the file name when the store has none."""
        return self.title or path_basename(self.path)

    @property
    def display_artist(self) -> str:
        """Artist, or "Unknown Artist" when the store has none."""
        return self.artist or UNKNOWN_ARTIST

    def copy(self) -> "Track":
        return Track.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the store's row shape."""
        return {
            "id": self.id,
            "path": self.path,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "duration_secs": self.duration_secs,
            "cover_mime": self.cover_mime,
            "has_cover": self.has_cover,
            "cover_img_path": self.cover_img_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Track":
        """Create a Track from a store row. Unknown keys are ignored."""
        if "path" not in data or not data["path"]:
            raise ValueError("track row without path")
        return cls(
            path=str(data["path"]),
            id=data.get("id"),
            title=data.get("title"),
            artist=data.get("artist"),
            album=data.get("album"),
            duration_secs=data.get("duration_secs", 0.0),
            cover_mime=data.get("cover_mime"),
            has_cover=data.get("has_cover", False),
            cover_img_path=data.get("cover_img_path"),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Track):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Track(id={self.id!r}, path={self.path!r})"


class Playlist:
    """A playlist row. Reserved playlists are plain rows with a reserved name."""

    def __init__(self, id: str, name: str, created_at: Optional[str] = None):
        self.id = id
        self.name = name
        self.created_at = created_at

    @property
    def is_reserved(self) -> bool:
        return self.name in RESERVED_PLAYLIST_NAMES

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Playlist":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            created_at=data.get("createdAt", data.get("created_at")),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Playlist):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Playlist(id={self.id!r}, name={self.name!r})"


class LocalFolder:
    """A registered local folder. song_count is maintained by the store."""

    def __init__(self, id: str, name: str, path: str, song_count: int = 0):
        self.id = id
        self.name = name
        self.path = path
        self.song_count = song_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "songCount": self.song_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocalFolder":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            path=str(data["path"]),
            song_count=int(data.get("songCount", data.get("song_count", 0)) or 0),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocalFolder):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"LocalFolder(id={self.id!r}, name={self.name!r})"


class PlaybackSnapshot:
    """
    The single view of playback handed to the UI.

    Only the PlaybackReconciler mutates a snapshot; consumers receive copies.
    """

    def __init__(self, volume: float = 1.0):
        self.status: PlaybackStatus = PlaybackStatus.STOPPED
        self.current_item: Optional[Track] = None
        self.position_seconds: float = 0.0
        self.duration_seconds: float = 0.0
        self.volume: float = volume

    @property
    def is_playing(self) -> bool:
        """Derived from status; there is no separate playing flag."""
        return self.status is PlaybackStatus.PLAYING

    def copy(self) -> "PlaybackSnapshot":
        snapshot = PlaybackSnapshot(self.volume)
        snapshot.status = self.status
        snapshot.current_item = (
            self.current_item.copy() if self.current_item is not None else None
        )
        snapshot.position_seconds = self.position_seconds
        snapshot.duration_seconds = self.duration_seconds
        return snapshot

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "current_item": (
                self.current_item.to_dict() if self.current_item is not None else None
            ),
            "position_seconds": self.position_seconds,
            "duration_seconds": self.duration_seconds,
            "volume": self.volume,
        }

    def __repr__(self) -> str:
        return (
            f"PlaybackSnapshot(status={self.status.value}, "
            f"item={self.current_item!r}, "
            f"position={self.position_seconds:.1f}/{self.duration_seconds:.1f}, "
            f"volume={self.volume:.2f})"
        )
