"""Playback controller - wires commands, engine events, collections and side effects."""

# ============================================================================
# Standard Library Imports (alphabetical)
# ============================================================================
import asyncio
from typing import Optional, Union

# ============================================================================
# Local Imports (grouped by package, alphabetical)
# ============================================================================
from player_client.boundary import ERROR, PROGRESS, STATUS, EngineBoundary, EventSource
from player_client.command_gateway import CommandGateway
from player_client.events import EventBus
from player_client.exceptions import CommandError
from player_client.folder_manager import FolderManager
from player_client.logging import get_logger
from player_client.models import PlaybackSnapshot, PlaybackStatus, Track
from player_client.playlist_manager import PlaylistManager
from player_client.reconciler import ErrorReporter, PlaybackReconciler
from player_client.recent_playlist import RecentPlaylistRecorder
from player_client.subscriptions import SubscriptionManager
from player_client.track_library import TrackLibrary

logger = get_logger(__name__)


class PlaybackController:
    """
    Entry point for the UI layer.

    Commands go out through the CommandGateway; the resulting state only comes
    back through engine events, which the PlaybackReconciler folds into the
    snapshot. A successful play is recorded in the "Recent" playlist.
    """

    def __init__(
        self,
        engine: EngineBoundary,
        event_source: EventSource,
        store,
        event_bus: Optional[EventBus] = None,
        error_reporter: Optional[ErrorReporter] = None,
        initial_volume: float = 1.0,
    ):
        """
        Initialize the controller.

        Args:
            engine: Command side of the playback engine
            event_source: Push channel of the playback engine
            store: Data store boundary shared by the three collections
            event_bus: Bus for UI notifications (a private one if omitted)
            error_reporter: User-visible sink for engine error events
            initial_volume: Volume of the initial snapshot
        """
        self.event_bus = event_bus or EventBus()
        self.gateway = CommandGateway(engine)
        self.tracks = TrackLibrary(store, self.event_bus)
        self.playlists = PlaylistManager(store, self.event_bus)
        self.folders = FolderManager(store, self.event_bus)
        self.reconciler = PlaybackReconciler(
            self.event_bus,
            track_resolver=self._resolve_track,
            error_reporter=error_reporter,
            initial_volume=initial_volume,
        )
        self.recent = RecentPlaylistRecorder(self.playlists)
        self._event_source = event_source
        self._subscriptions = SubscriptionManager(event_source)
        # Last track handed to play(); lets a status event name it before
        # the track library has been fetched
        self._requested: Optional[Track] = None
        self._started = False

    # ============================================================================
    # Lifecycle
    # ============================================================================

    def start(self) -> None:
        """Subscribe to the engine's status, progress and error events."""
        if self._started:
            return
        # A closed manager rejects new subscriptions; each run gets its own
        self._subscriptions = SubscriptionManager(self._event_source)
        self._subscriptions.subscribe(STATUS, self.reconciler.handle_status)
        self._subscriptions.subscribe(PROGRESS, self.reconciler.handle_progress)
        self._subscriptions.subscribe(ERROR, self.reconciler.handle_error)
        self._started = True
        logger.info("Playback controller started")

    async def close(self) -> None:
        """Tear down all engine subscriptions. Safe to call repeatedly."""
        await self._subscriptions.aclose()
        if self._started:
            logger.info("Playback controller closed")
        self._started = False

    async def __aenter__(self) -> "PlaybackController":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def refresh_all(self) -> None:
        """Fetch tracks, playlists and folders concurrently."""
        await asyncio.gather(
            self.tracks.fetch(),
            self.playlists.fetch(),
            self.folders.fetch(),
        )

    # ============================================================================
    # State
    # ============================================================================

    @property
    def snapshot(self) -> PlaybackSnapshot:
        return self.reconciler.snapshot

    def _resolve_track(self, path: str) -> Optional[Track]:
        requested = self._requested
        if requested is not None and requested.path == path:
            return requested
        return self.tracks.find_by_path(path)

    def _as_track(self, item: Union[Track, str]) -> Track:
        if isinstance(item, Track):
            return item
        return self.tracks.find_by_path(item) or Track(path=item)

    # ============================================================================
    # Commands
    # ============================================================================

    async def play(self, item: Union[Track, str]) -> None:
        """
        Play a track (or a bare path) and record it in "Recent".

        Raises:
            CommandError: The engine rejected the command; nothing is recorded
        """
        track = self._as_track(item)
        # Set before dispatch: the status event may beat the command's reply
        self._requested = track
        await self.gateway.play(track.path)
        await self.recent.record(track)

    async def pause(self) -> None:
        await self.gateway.pause()

    async def resume(self) -> None:
        await self.gateway.resume()

    async def toggle_play_pause(self) -> None:
        if self.reconciler.status is PlaybackStatus.PLAYING:
            await self.gateway.pause()
        else:
            await self.gateway.resume()

    async def stop(self) -> None:
        await self.gateway.stop()

    async def seek(self, seconds: float) -> float:
        """
        Seek within the current item.

        The target is clamped to [0, duration] (no upper bound while the
        duration is still unknown). Returns the position actually requested.
        """
        target = max(0.0, seconds)
        duration = self.reconciler.duration
        if duration > 0:
            target = min(target, duration)
        await self.gateway.seek(target)
        self.reconciler.note_seek(target)
        return target

    async def set_volume(self, volume: float) -> None:
        """
        Show the new volume (clamped) at once and send it to the engine verbatim.

        Raises:
            CommandError: The engine rejected the command; the previous volume
                is restored
        """
        previous = self.reconciler.volume
        self.reconciler.set_volume(volume)
        try:
            await self.gateway.set_volume(volume)
        except CommandError:
            self.reconciler.set_volume(previous)
            raise
