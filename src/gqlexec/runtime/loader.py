"""
Batch loader - coalesces concurrent loads into one batch call (N+1 avoidance).

Every load() issued before the event loop regains control is queued; the
queue is flushed once, on the next loop iteration, with a single call to the
batch function per distinct key set (split by max_batch_size).

Usage:
    async def load_authors(ids):
        rows = await db.fetch_authors(ids)
        by_id = {row["id"]: row for row in rows}
        return [by_id.get(i) for i in ids]

    authors = BatchLoader(load_authors, name="authors")

    # Inside resolvers running concurrently:
    author = await authors.load(book["author_id"])
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Hashable
from typing import Any, Awaitable, Callable, Generic, Iterable, Optional, Sequence, TypeVar, Union

from ..core.errors import BatchSizeMismatchError

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

BatchFn = Callable[[list[Any]], Union[Sequence[Any], Awaitable[Sequence[Any]]]]


class BatchLoader(Generic[K, V]):
    """
    Per-operation batching and caching loader.

    The cache lives as long as the loader; the executor creates fresh loaders
    for every operation so results are never shared across requests.
    """

    def __init__(
        self,
        batch_fn: BatchFn,
        *,
        max_batch_size: Optional[int] = None,
        cache: bool = True,
        cache_key: Optional[Callable[[K], Hashable]] = None,
        name: Optional[str] = None,
    ):
        """
        Args:
            batch_fn: Called with a list of distinct keys; returns values in
                the same order (sync or async). An Exception instance in place
                of a value fails only that key.
            max_batch_size: Split flushes into chunks of at most this many keys
            cache: Memoize results per key
            cache_key: Maps a key to a hashable cache key (default: the key)
            name: Name used in logs and errors
        """
        if max_batch_size is not None and max_batch_size < 1:
            raise ValueError("max_batch_size must be a positive integer")
        self.batch_fn = batch_fn
        self.max_batch_size = max_batch_size
        self.cache = cache
        self.cache_key = cache_key or (lambda key: key)
        self.name = name or getattr(batch_fn, "__name__", None)
        self._cache: dict[Hashable, asyncio.Future] = {}
        self._queue: list[tuple[K, asyncio.Future]] = []
        self._dispatch_scheduled = False
        self._tasks: set[asyncio.Task] = set()
        self.batch_count = 0

    def load(self, key: K) -> asyncio.Future:
        """
        Return an awaitable for the value of one key.

        Must be called while an event loop is running.
        """
        if key is None:
            raise TypeError("BatchLoader.load() requires a key, got None")

        cache_key = self.cache_key(key)
        if self.cache:
            cached = self._cache.get(cache_key)
            if cached is not None:
                return cached

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        if self.cache:
            self._cache[cache_key] = future

        self._queue.append((key, future))
        if not self._dispatch_scheduled:
            self._dispatch_scheduled = True
            loop.call_soon(self._dispatch)
        return future

    async def load_all(self, keys: Iterable[K]) -> list[V]:
        """Load several keys; they join the same batch."""
        return list(await asyncio.gather(*(self.load(key) for key in keys)))

    def prime(self, key: K, value: V) -> "BatchLoader[K, V]":
        """Seed the cache; existing entries are kept."""
        cache_key = self.cache_key(key)
        if self.cache and cache_key not in self._cache:
            future = asyncio.get_running_loop().create_future()
            if isinstance(value, Exception):
                future.set_exception(value)
            else:
                future.set_result(value)
            self._cache[cache_key] = future
        return self

    def clear(self, key: K) -> "BatchLoader[K, V]":
        self._cache.pop(self.cache_key(key), None)
        return self

    def clear_all(self) -> "BatchLoader[K, V]":
        self._cache.clear()
        return self

    def _dispatch(self):
        """Flush the queue: one batch call per chunk of distinct keys."""
        self._dispatch_scheduled = False
        queue, self._queue = self._queue, []
        if not queue:
            return

        # Group futures by key so duplicates share one slot in the batch
        grouped: dict[Hashable, tuple[K, list[asyncio.Future]]] = {}
        for key, future in queue:
            cache_key = self.cache_key(key)
            if cache_key in grouped:
                grouped[cache_key][1].append(future)
            else:
                grouped[cache_key] = (key, [future])

        entries = list(grouped.values())
        size = self.max_batch_size or len(entries)
        for start in range(0, len(entries), size):
            task = asyncio.ensure_future(self._load_batch(entries[start:start + size]))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _load_batch(self, entries: list[tuple[K, list[asyncio.Future]]]):
        keys = [key for key, _ in entries]
        self.batch_count += 1
        logger.debug(f"Batch loader {self.name or ''} dispatching {len(keys)} keys")

        try:
            values = self.batch_fn(keys)
            if inspect.isawaitable(values):
                values = await values
            values = list(values)
        except Exception as e:
            logger.debug(f"Batch loader {self.name or ''} failed: {e!r}")
            self._fail(entries, e)
            return

        if len(values) != len(keys):
            self._fail(entries, BatchSizeMismatchError(len(keys), len(values), self.name))
            return

        for (key, futures), value in zip(entries, values):
            if isinstance(value, Exception):
                self._fail([(key, futures)], value)
                continue
            for future in futures:
                if not future.done():
                    future.set_result(value)

    def _fail(self, entries: list[tuple[K, list[asyncio.Future]]], error: Exception):
        """Reject the futures of the given keys and drop them from the cache."""
        for key, futures in entries:
            self._cache.pop(self.cache_key(key), None)
            for future in futures:
                if not future.done():
                    future.set_exception(error)


class LoaderRegistry:
    """
    Per-operation set of named loaders, created lazily from batch functions.

    Owned by one ExecutionContext.
    """

    def __init__(
        self,
        batch_fns: Optional[dict[str, BatchFn]] = None,
        max_batch_size: Optional[int] = None,
    ):
        self._batch_fns = dict(batch_fns or {})
        self._max_batch_size = max_batch_size
        self._loaders: dict[str, BatchLoader] = {}

    def get(self, name: str) -> BatchLoader:
        loader = self._loaders.get(name)
        if loader is None:
            if name not in self._batch_fns:
                raise KeyError(f"No batch loader registered under '{name}'")
            loader = BatchLoader(
                self._batch_fns[name],
                max_batch_size=self._max_batch_size,
                name=name,
            )
            self._loaders[name] = loader
        return loader

    def __contains__(self, name: str) -> bool:
        return name in self._batch_fns

    def __getitem__(self, name: str) -> BatchLoader:
        return self.get(name)
