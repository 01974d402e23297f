"""Records played tracks into the reserved "Recent" playlist."""

from typing import Optional

from player_client.exceptions import StoreError
from player_client.logging import get_logger
from player_client.models import RECENT_PLAYLIST_NAME, Track
from player_client.playlist_manager import PlaylistManager

logger = get_logger(__name__)


class RecentPlaylistRecorder:
    """
    Appends every successfully played track to "Recent".

    The append is issued on every play, repeats included, so the playlist
    may hold duplicates. A missing "Recent" playlist is not an error.
    """

    def __init__(self, playlists: PlaylistManager):
        self._playlists = playlists

    async def record(self, track: Optional[Track]) -> bool:
        """
        Append track to the "Recent" playlist.

        Returns:
            True if the append was issued and succeeded
        """
        if track is None or track.id is None:
            logger.info(
                "Not recording %s in %s: track has no id",
                track.path if track is not None else None,
                RECENT_PLAYLIST_NAME,
            )
            return False

        recent = self._playlists.recent
        if recent is None:
            logger.info("No %s playlist; skipping", RECENT_PLAYLIST_NAME)
            return False

        try:
            await self._playlists.add_tracks_to_playlist(recent.id, [track.id])
        except StoreError as e:
            # Already stored on the playlist cache; the play itself stands
            logger.warning("Could not record %s in %s: %s", track.path, RECENT_PLAYLIST_NAME, e)
            return False
        return True
