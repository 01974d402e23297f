"""Playlist collection and the separate "tracks of the open playlist" view."""

from typing import List, Optional, Sequence

from player_client.collection_cache import CollectionCache, RemoteCollection
from player_client.events import EventBus
from player_client.logging import get_logger
from player_client.models import (
    FAVORITES_PLAYLIST_NAME,
    RECENT_PLAYLIST_NAME,
    Playlist,
    Track,
)

logger = get_logger(__name__)


class PlaylistManager(RemoteCollection):
    """
    Manages playlists held by the store.

    ``cache`` holds the playlist list. ``current_tracks`` holds the tracks of
    the playlist last opened with fetch_tracks_for_playlist(); it is never
    merged into the track library.
    """

    def __init__(self, store, event_bus: EventBus):
        super().__init__(store, event_bus)
        self.cache: CollectionCache[Playlist] = CollectionCache("playlists")
        self.current_tracks: CollectionCache[Track] = CollectionCache("playlist tracks")
        self.current_playlist_id: Optional[str] = None

    @property
    def playlists(self) -> List[Playlist]:
        return self.cache.items

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def fetch(self) -> bool:
        """Replace the cached playlist list."""
        return await self._fetch_into(
            self.cache,
            self._store.list_playlists,
            Playlist.from_dict,
            lambda playlists: self._events.publish(
                EventBus.PLAYLISTS_CHANGED, {"playlists": playlists}
            ),
        )

    async def fetch_tracks_for_playlist(self, playlist_id: str) -> bool:
        """Load the tracks of one playlist into ``current_tracks``."""
        self.current_playlist_id = playlist_id
        return await self._fetch_into(
            self.current_tracks,
            lambda: self._store.list_tracks_for_playlist(playlist_id),
            Track.from_dict,
            lambda tracks: self._events.publish(
                EventBus.PLAYLIST_TRACKS_CHANGED,
                {"playlist_id": playlist_id, "tracks": tracks},
            ),
        )

    # ------------------------------------------------------------------
    # Mutations (always followed by a re-fetch; failures re-raise StoreError)
    # ------------------------------------------------------------------
    async def create_playlist(self, name: str) -> str:
        """Create a playlist and return the id the store assigned."""
        return await self._mutate(
            self.cache,
            f"Created playlist {name!r}",
            lambda: self._store.create_playlist(name),
            self.fetch,
        )

    async def delete_playlist(self, playlist_id: str) -> None:
        await self._mutate(
            self.cache,
            f"Deleted playlist {playlist_id}",
            lambda: self._store.delete_playlist(playlist_id),
            lambda: self._refresh(playlist_id),
        )

    async def add_tracks_to_playlist(
        self, playlist_id: str, track_ids: Sequence[int]
    ) -> None:
        """Append tracks. The store tolerates duplicates."""
        ids = list(track_ids)
        await self._mutate(
            self.cache,
            f"Added {len(ids)} track(s) to playlist {playlist_id}",
            lambda: self._store.add_tracks_to_playlist(playlist_id, ids),
            lambda: self._refresh(playlist_id),
        )

    async def remove_tracks_from_playlist(
        self, playlist_id: str, track_ids: Sequence[int]
    ) -> None:
        ids = list(track_ids)
        await self._mutate(
            self.cache,
            f"Removed {len(ids)} track(s) from playlist {playlist_id}",
            lambda: self._store.remove_tracks_from_playlist(playlist_id, ids),
            lambda: self._refresh(playlist_id),
        )

    async def _refresh(self, playlist_id: str) -> None:
        await self.fetch()
        if self.current_playlist_id == playlist_id:
            await self.fetch_tracks_for_playlist(playlist_id)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def find_by_name(self, name: str) -> Optional[Playlist]:
        """First cached playlist whose name equals name exactly."""
        for playlist in self.cache.items:
            if playlist.name == name:
                return playlist
        return None

    @property
    def recent(self) -> Optional[Playlist]:
        return self.find_by_name(RECENT_PLAYLIST_NAME)

    @property
    def favorites(self) -> Optional[Playlist]:
        return self.find_by_name(FAVORITES_PLAYLIST_NAME)

    def user_playlists(self) -> List[Playlist]:
        """Cached playlists without the reserved ones."""
        return [p for p in self.cache.items if not p.is_reserved]
