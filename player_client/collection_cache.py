"""Remote-backed collection caches.

Every collection follows the same consistency rule: reads replace the cached
items wholesale, and a mutation is always followed by an unfiltered re-fetch
before ``loading`` drops. Mutations never splice ``items`` locally because
the store may apply side effects the client cannot predict.
"""

from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

from player_client.events import EventBus
from player_client.exceptions import StoreError
from player_client.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def describe_failure(error: BaseException) -> str:
    """Human-readable text for a failed store call."""
    message = str(error).strip()
    return message or type(error).__name__


class CollectionCache(Generic[T]):
    """
    Local state of one remote collection.

    ``loading`` counts in-flight operations, so it stays true for the whole of
    a mutate-then-refetch cycle and while overlapping operations run.
    """

    def __init__(self, name: str):
        self.name = name
        self._items: List[T] = []
        self._pending: int = 0
        self.error: Optional[str] = None

    @property
    def items(self) -> List[T]:
        """Items in server order (read-only copy)."""
        return list(self._items)

    @property
    def loading(self) -> bool:
        return self._pending > 0

    def begin(self) -> None:
        self._pending += 1
        self.error = None

    def end(self) -> None:
        self._pending = max(0, self._pending - 1)

    def replace(self, items: List[T]) -> None:
        self._items = list(items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return (
            f"CollectionCache({self.name}, items={len(self._items)}, "
            f"loading={self.loading}, error={self.error!r})"
        )


class RemoteCollection:
    """Base class holding the fetch and mutate-then-refetch helpers."""

    def __init__(self, store: Any, event_bus: EventBus):
        self._store = store
        self._events = event_bus

    async def _fetch_into(
        self,
        cache: CollectionCache[T],
        loader: Callable[[], Awaitable[List[Dict[str, Any]]]],
        convert: Callable[[Dict[str, Any]], T],
        on_success: Optional[Callable[[List[T]], None]] = None,
    ) -> bool:
        """
        Load rows into cache. Never raises; failure lands in ``cache.error``.

        Returns:
            True if the items were replaced
        """
        cache.begin()
        try:
            rows = await loader()
            items = [convert(row) for row in rows]
        except Exception as e:
            cache.error = describe_failure(e)
            logger.warning("Fetching %s failed: %s", cache.name, cache.error)
            return False
        else:
            cache.replace(items)
        finally:
            cache.end()
        logger.debug("Fetched %d %s", len(items), cache.name)
        if on_success is not None:
            on_success(cache.items)
        return True

    async def _mutate(
        self,
        cache: CollectionCache[Any],
        description: str,
        action: Callable[[], Awaitable[R]],
        refresh: Callable[[], Awaitable[Any]],
    ) -> R:
        """
        Run action, then refresh, keeping cache loading throughout.

        Failure of the action is stored in ``cache.error`` and re-raised as
        StoreError. A failing refresh only sets ``cache.error``.
        """
        cache.begin()
        try:
            try:
                result = await action()
            except Exception as e:
                cache.error = describe_failure(e)
                logger.warning("%s failed: %s", description, cache.error)
                if isinstance(e, StoreError):
                    raise
                raise StoreError(cache.error) from e
            logger.info("%s", description)
            await refresh()
            return result
        finally:
            cache.end()
