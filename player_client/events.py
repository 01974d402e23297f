"""Centralized event bus for decoupled component communication."""

from typing import Any, Callable, Dict, List

from player_client.logging import get_logger

logger = get_logger(__name__)


class EventBus:
    """Publish-subscribe event system. Components publish/subscribe without knowing each other.

    Event Flow Architecture:
    - Engine adapters publish PLAYER_* events (boundary events, raw payload dicts)
    - Core components (PlaybackReconciler, collections) publish *_CHANGED events
      (notifications for the UI)
    - The bus also serves as an in-process EventSource: listen() registers a
      callback and hands back its unlisten function
    """

    # =========================================================================
    # Engine -> Core: boundary events (wire names)
    # =========================================================================

    # {"status": "playing"|"paused"|"stopped", "path": str?, "duration": float?}
    PLAYER_STATUS = "player-status"
    # {"position": float, "duration": float}
    PLAYER_PROGRESS = "player-progress"
    # message string
    PLAYER_ERROR = "player-error"

    # =========================================================================
    # Core -> UI: state change notifications
    # =========================================================================

    # {"snapshot": PlaybackSnapshot}
    PLAYBACK_STATE_CHANGED = "playback.state_changed"
    # {"tracks": List[Track]}
    TRACKS_CHANGED = "tracks.changed"
    # {"playlists": List[Playlist]}
    PLAYLISTS_CHANGED = "playlists.changed"
    # {"playlist_id": str, "tracks": List[Track]}
    PLAYLIST_TRACKS_CHANGED = "playlists.tracks_changed"
    # {"folders": List[LocalFolder]}
    FOLDERS_CHANGED = "folders.changed"

    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Any], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[Any], None]) -> None:
        if event not in self._subscribers:
            self._subscribers[event] = []
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable[[Any], None]) -> None:
        if event in self._subscribers:
            try:
                self._subscribers[event].remove(callback)
            except ValueError:
                pass

    def subscriber_count(self, event: str) -> int:
        return len(self._subscribers.get(event, []))

    async def listen(
        self, event: str, callback: Callable[[Any], None]
    ) -> Callable[[], None]:
        """Register callback for event; the returned function removes it (idempotent)."""
        self.subscribe(event, callback)

        def unlisten() -> None:
            self.unsubscribe(event, callback)

        return unlisten

    def publish(self, event: str, data: Any = None) -> None:
        # Copy so callbacks may unsubscribe while being notified
        for callback in list(self._subscribers.get(event, [])):
            try:
                callback(data)
            except Exception as e:
                logger.error(
                    "Error in event callback for %s: %s", event, e, exc_info=True
                )
