"""
Read-through cache for collection fetches, plus the local snapshot blob.

ReadThroughCache
    get(collection, **params) -> (data, is_stale)

    Fresh entry (age < ttl): returned at once with is_stale=True and a
    background revalidation is scheduled (stale-while-revalidate).
    Missing, expired or invalidated entry: blocking fetch, is_stale=False.

    Mutations must call invalidate(); there is no dependency tracking.
    At most one revalidation per key is in flight. A refresh that finishes
    after an invalidate() is discarded.

SnapshotStore
    One JSON file holding the last good dashboard snapshot and when it was
    saved, used to paint something before the first round trip.
"""

import json
import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from core.store import Store, StoreError
from core.thresholds import CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

Fetch = Callable[[str, Dict], Any]
Runner = Callable[[Callable[[], None]], None]


def thread_runner(task: Callable[[], None]) -> None:
    threading.Thread(target=task, daemon=True).start()


def inline_runner(task: Callable[[], None]) -> None:
    task()


def store_fetcher(store: Store) -> Fetch:
    """Fetch function reading a whole collection from a store; params are equality filters."""
    order = {
        'contacts': ('created_at', True),
        'companies': ('priority', True),
    }

    def fetch(collection: str, params: Dict):
        order_by, descending = order.get(collection, (None, False))
        return store.select(collection, params or None, order_by=order_by, descending=descending)

    return fetch


@dataclass
class _Entry:
    data: Any
    fetched_at: float


class ReadThroughCache:

    def __init__(self, fetch: Fetch, ttl_seconds: float = CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.time, refresh: Runner = thread_runner):
        self.fetch = fetch
        self.ttl = ttl_seconds
        self.clock = clock
        self.refresh = refresh
        self._entries: Dict[Tuple, _Entry] = {}
        self._generation: Dict[Tuple, int] = {}
        self._in_flight = set()
        self._lock = threading.Lock()

    @staticmethod
    def _key(collection: str, params: Dict) -> Tuple[str, Tuple[Tuple[str, Hashable], ...]]:
        return collection, tuple(sorted(params.items()))

    def peek(self, collection: str, **params) -> Optional[Any]:
        """Cached data regardless of age, without fetching."""
        with self._lock:
            entry = self._entries.get(self._key(collection, params))
        return entry.data if entry else None

    def get(self, collection: str, **params) -> Tuple[Any, bool]:
        key = self._key(collection, params)
        with self._lock:
            entry = self._entries.get(key)
            generation = self._generation.setdefault(key, 0)

        if entry is not None and self.clock() - entry.fetched_at < self.ttl:
            logger.debug(f"Cache hit: {key}")
            self._revalidate(key, collection, params)
            return entry.data, True

        logger.debug(f"Cache miss: {key}")
        try:
            data = self.fetch(collection, params)
        except StoreError as e:
            if entry is not None:
                logger.warning(f"Fetch of {collection} failed, serving expired cache: {e}")
                return entry.data, True
            raise

        self._put(key, data, generation)
        return data, False

    def _put(self, key, data, generation: int):
        with self._lock:
            if self._generation.get(key, 0) != generation:
                # Invalidated while fetching
                return
            self._entries[key] = _Entry(data, self.clock())

    def _revalidate(self, key, collection: str, params: Dict):
        with self._lock:
            if key in self._in_flight:
                return
            self._in_flight.add(key)
            generation = self._generation.get(key, 0)

        def task():
            try:
                data = self.fetch(collection, params)
                self._put(key, data, generation)
            except StoreError as e:
                logger.warning(f"Background refresh of {collection} failed: {e}")
            finally:
                with self._lock:
                    self._in_flight.discard(key)

        self.refresh(task)

    def invalidate(self, collection: str, **params):
        """Drop one entry, or every entry of the collection when no params are given."""
        with self._lock:
            if params:
                keys = [self._key(collection, params)]
            else:
                keys = [k for k in set(self._entries) | set(self._generation)
                        if k[0] == collection]
            for key in keys:
                self._entries.pop(key, None)
                self._generation[key] = self._generation.get(key, 0) + 1

    def clear(self):
        with self._lock:
            for key in set(self._entries) | set(self._generation):
                self._generation[key] = self._generation.get(key, 0) + 1
            self._entries.clear()


class SnapshotStore:
    """Last successful dashboard snapshot, persisted as a JSON file."""

    def __init__(self, path: str):
        self.path = path

    def save(self, snapshot: Dict, saved_at: Optional[datetime] = None):
        saved_at = saved_at or datetime.now()
        payload = {'saved_at': saved_at.isoformat(timespec='seconds'), 'snapshot': snapshot}
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=directory, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f, default=str)
            os.replace(tmp, self.path)
        except OSError as e:
            logger.warning(f"Could not save dashboard snapshot to {self.path}: {e}")
            if os.path.exists(tmp):
                os.remove(tmp)

    def load(self) -> Optional[Tuple[Dict, datetime]]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                payload = json.load(f)
            return payload['snapshot'], datetime.fromisoformat(payload['saved_at'])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable dashboard snapshot {self.path}: {e}")
            return None

    def clear(self):
        if os.path.exists(self.path):
            os.remove(self.path)
