"""Track collection backed by the data store."""

from typing import List, Optional

from player_client.collection_cache import CollectionCache, RemoteCollection
from player_client.events import EventBus
from player_client.models import Track


class TrackLibrary(RemoteCollection):
    """All tracks known to the store, optionally narrowed by a title filter."""

    def __init__(self, store, event_bus: EventBus):
        super().__init__(store, event_bus)
        self.cache: CollectionCache[Track] = CollectionCache("tracks")

    @property
    def tracks(self) -> List[Track]:
        return self.cache.items

    async def fetch(self, title_filter: Optional[str] = None) -> bool:
        """
        Replace the cached tracks with the store's list.

        Args:
            title_filter: Substring the store matches against titles

        Returns:
            True on success; on failure ``cache.error`` is set and items are kept
        """
        return await self._fetch_into(
            self.cache,
            lambda: self._store.list_tracks(title_filter),
            Track.from_dict,
            lambda tracks: self._events.publish(
                EventBus.TRACKS_CHANGED, {"tracks": tracks}
            ),
        )

    def find_by_path(self, path: str) -> Optional[Track]:
        """Cached track with exactly this path, if any."""
        for track in self.cache.items:
            if track.path == path:
                return track
        return None

    def find_by_id(self, track_id) -> Optional[Track]:
        for track in self.cache.items:
            if track.id == track_id:
                return track
        return None
