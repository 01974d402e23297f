"""Playback reconciler - merges engine events and local writes into one snapshot.

Status and progress arrive on independent channels without sequence numbers,
so every field is last-write-wins on its own. A stale ``playing`` that lands
after a fresher ``stopped`` is applied as-is.
"""

# ============================================================================
# Standard Library Imports (alphabetical)
# ============================================================================
from typing import Any, Callable, Optional

# ============================================================================
# Local Imports (grouped by package, alphabetical)
# ============================================================================
from player_client.boundary import ProgressPayload, StatusPayload, parse_error_message
from player_client.events import EventBus
from player_client.exceptions import EventPayloadError
from player_client.logging import get_logger
from player_client.models import PlaybackSnapshot, PlaybackStatus, Track, non_negative_float

logger = get_logger(__name__)

TrackResolver = Callable[[str], Optional[Track]]
ErrorReporter = Callable[[str], None]


def _log_engine_error(message: str) -> None:
    logger.error("Player error: %s", message)


class PlaybackReconciler:
    """
    Sole owner and writer of the PlaybackSnapshot.

    Inputs are engine events (status, progress, error) and two local writes:
    the volume the user just picked and the position confirmed by a seek.
    Every committed change is published as PLAYBACK_STATE_CHANGED.
    """

    def __init__(
        self,
        event_bus: EventBus,
        track_resolver: Optional[TrackResolver] = None,
        error_reporter: Optional[ErrorReporter] = None,
        initial_volume: float = 1.0,
    ):
        """
        Initialize the reconciler.

        Args:
            event_bus: Bus receiving PLAYBACK_STATE_CHANGED notifications
            track_resolver: Maps a path from a status event to a known Track
            error_reporter: User-visible sink for engine error events
            initial_volume: Volume of a fresh snapshot
        """
        self._event_bus = event_bus
        self._track_resolver = track_resolver
        self._error_reporter = error_reporter or _log_engine_error
        self._initial_volume = max(0.0, min(1.0, initial_volume))
        self._snapshot = PlaybackSnapshot(self._initial_volume)

    # ============================================================================
    # Read access
    # ============================================================================

    @property
    def snapshot(self) -> PlaybackSnapshot:
        """A copy of the latest committed snapshot."""
        return self._snapshot.copy()

    @property
    def status(self) -> PlaybackStatus:
        return self._snapshot.status

    @property
    def is_playing(self) -> bool:
        return self._snapshot.is_playing

    @property
    def current_item(self) -> Optional[Track]:
        item = self._snapshot.current_item
        return item.copy() if item is not None else None

    @property
    def position(self) -> float:
        return self._snapshot.position_seconds

    @property
    def duration(self) -> float:
        return self._snapshot.duration_seconds

    @property
    def volume(self) -> float:
        return self._snapshot.volume

    # ============================================================================
    # Engine events
    # ============================================================================

    def handle_status(self, data: Any) -> None:
        """Apply a `player-status` payload."""
        try:
            payload = StatusPayload.parse(data)
        except EventPayloadError as e:
            logger.warning("Dropping status event: %s", e)
            return

        snapshot = self._snapshot
        snapshot.status = payload.status
        if payload.status is PlaybackStatus.PLAYING:
            if payload.duration is not None:
                snapshot.duration_seconds = payload.duration
                self._clamp_position()
            if payload.path and (
                snapshot.current_item is None
                or snapshot.current_item.path != payload.path
            ):
                snapshot.current_item = self._resolve(payload.path)
        elif payload.status is PlaybackStatus.STOPPED:
            snapshot.current_item = None
        logger.debug("Status -> %s", payload)
        self._commit()

    def handle_progress(self, data: Any) -> None:
        """Apply a `player-progress` payload. The engine is authoritative on timing."""
        try:
            payload = ProgressPayload.parse(data)
        except EventPayloadError as e:
            logger.warning("Dropping progress event: %s", e)
            return

        self._snapshot.position_seconds = payload.position
        self._snapshot.duration_seconds = payload.duration
        self._clamp_position()
        self._commit()

    def handle_error(self, data: Any) -> None:
        """Forward an engine error. The snapshot is left untouched."""
        message = parse_error_message(data)
        try:
            self._error_reporter(message)
        except Exception as e:
            logger.error("Error reporter failed: %s", e, exc_info=True)

    # ============================================================================
    # Local writes
    # ============================================================================

    def set_volume(self, volume: float) -> None:
        """
        Record the volume the user picked.

        Args:
            volume: Requested level; stored clamped to [0, 1]
        """
        self._snapshot.volume = max(0.0, min(1.0, non_negative_float(volume)))
        self._commit()

    def note_seek(self, seconds: float) -> None:
        """Record the position confirmed by a successful seek."""
        self._snapshot.position_seconds = non_negative_float(seconds)
        self._clamp_position()
        self._commit()

    def reset(self) -> None:
        """Return to the initial stopped snapshot."""
        self._snapshot = PlaybackSnapshot(self._initial_volume)
        self._commit()

    # ============================================================================
    # Helpers
    # ============================================================================

    def _resolve(self, path: str) -> Track:
        track = None
        if self._track_resolver is not None:
            try:
                track = self._track_resolver(path)
            except Exception as e:
                logger.warning("Track lookup for %s failed: %s", path, e)
        if track is None:
            return Track(path=path)
        return track.copy()

    def _clamp_position(self) -> None:
        snapshot = self._snapshot
        if snapshot.duration_seconds > 0 and snapshot.position_seconds > snapshot.duration_seconds:
            snapshot.position_seconds = snapshot.duration_seconds

    def _commit(self) -> None:
        self._event_bus.publish(
            EventBus.PLAYBACK_STATE_CHANGED, {"snapshot": self._snapshot.copy()}
        )
