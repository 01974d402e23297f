"""Local folder collection backed by the data store."""

from typing import List, Optional, Sequence

from player_client.collection_cache import CollectionCache, RemoteCollection
from player_client.events import EventBus
from player_client.models import LocalFolder


class FolderManager(RemoteCollection):
    """Folders registered with the store. Song counts come from the store."""

    def __init__(self, store, event_bus: EventBus):
        super().__init__(store, event_bus)
        self.cache: CollectionCache[LocalFolder] = CollectionCache("folders")

    @property
    def folders(self) -> List[LocalFolder]:
        return self.cache.items

    async def fetch(self, name_filter: Optional[str] = None) -> bool:
        """Replace the cached folders, optionally narrowed by name."""
        return await self._fetch_into(
            self.cache,
            lambda: self._store.list_folders(name_filter),
            LocalFolder.from_dict,
            lambda folders: self._events.publish(
                EventBus.FOLDERS_CHANGED, {"folders": folders}
            ),
        )

    async def add_folder(self, name: str, path: str) -> str:
        """Register a folder and return its id."""
        return await self._mutate(
            self.cache,
            f"Added folder {name!r} ({path})",
            lambda: self._store.add_folder(name, path),
            self.fetch,
        )

    async def delete_folders(self, ids: Sequence[str]) -> None:
        folder_ids = list(ids)
        await self._mutate(
            self.cache,
            f"Deleted {len(folder_ids)} folder(s)",
            lambda: self._store.delete_folders(folder_ids),
            self.fetch,
        )
