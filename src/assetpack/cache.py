"""Settle-once memoization for asynchronous computations.

OnceCache maps a key to a single asyncio.Task. The first caller for a key
starts the computation; every later caller, concurrent or not, awaits the
same task and therefore sees the identical result or the identical
exception. Entries are never rewritten: the only way to recompute is to
clear() the whole map.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Hashable, Iterator, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class OnceCache(Generic[K, V]):
    """Keyed map of settle-once asynchronous computations.

    Usage:
        cache: OnceCache[str, SourceAsset] = OnceCache("source")
        asset = await cache.get(path, lambda: compile_asset(path))

    Failures are cached exactly like successes. Clearing the cache does not
    cancel in-flight work; callers already awaiting a task still receive
    its result.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._tasks: dict[K, asyncio.Task[V]] = {}

    async def get(self, key: K, factory: Callable[[], Awaitable[V]]) -> V:
        """Return the result for key, starting the computation if needed.

        Args:
            key: Cache key.
            factory: Zero-argument callable returning the awaitable to run
                when the key has no entry yet. Called at most once per key
                between clears.

        Returns:
            The computed value.

        Raises:
            Exception: Whatever the computation raised, on every call.
        """
        task = self._tasks.get(key)
        if task is None:
            logger.debug("%s cache miss: %s", self._name, key)
            task = asyncio.ensure_future(factory())
            self._tasks[key] = task
        else:
            logger.debug("%s cache hit: %s", self._name, key)
        # A cancelled awaiter must not cancel the shared computation.
        return await asyncio.shield(task)

    async def wait_pending(self) -> None:
        """Wait until every computation in the map has settled.

        Never raises: results and errors stay in the cache for get().
        """
        while True:
            pending = [task for task in self._tasks.values() if not task.done()]
            if not pending:
                return
            logger.debug("%s cache waiting on %d pending entries", self._name, len(pending))
            await asyncio.wait(pending)

    def clear(self) -> None:
        """Discard every entry. In-flight computations keep running."""
        if self._tasks:
            logger.debug("%s cache cleared (%d entries)", self._name, len(self._tasks))
        self._tasks = {}

    def keys(self) -> Iterator[K]:
        """Iterate over keys with a pending or settled entry."""
        return iter(list(self._tasks))

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)
