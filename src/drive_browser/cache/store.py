"""TTL content cache layered over a byte-oriented backend."""

from __future__ import annotations

import contextlib
import hashlib
import json
import logging
import threading
import time
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, TypeVar

from drive_browser.cache.backends import (
    BlobBackend,
    CacheBackend,
    FilesystemBackend,
    MemoryBackend,
)

if TYPE_CHECKING:
    from drive_browser.config import AppConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Envelope keys for stored entries
_EXPIRES_AT = "expires_at"
_VALUE = "value"

CACHE_BACKENDS = ("filesystem", "memory", "blob")


def cache_key(folder_id: str, namespace: str) -> str:
    """Return the stable cache key for a folder and query type.

    The namespace keeps results of different queries on the same folder
    (e.g. "contents" and "crumbs") from overwriting each other.
    """
    return hashlib.sha256(f"{folder_id}:{namespace}".encode()).hexdigest()


class ContentCache:
    """Stores JSON-serializable values with a per-entry time-to-live.

    Expiry is checked when an entry is read; expired entries are ignored,
    not evicted. Entries are replaced wholesale on every store.
    """

    def __init__(self, backend: CacheBackend, clock: Callable[[], float] = time.time) -> None:
        """Initialise the cache.

        Args:
            backend: Storage medium for serialized entries.
            clock: Returns the current time in seconds; injectable for tests.
        """
        self._backend = backend
        self._clock = clock
        self._key_locks: dict[str, tuple[threading.Lock, int]] = {}
        self._key_locks_guard = threading.Lock()

    def store(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a value under key, replacing any existing entry.

        Args:
            key: Cache key.
            value: JSON-serializable payload.
            ttl_seconds: Lifetime of the entry. Zero stores an already-expired entry.

        Raises:
            ValueError: If ttl_seconds is negative.
            StorageError: If the backend write fails.
        """
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        envelope = {_EXPIRES_AT: self._clock() + ttl_seconds, _VALUE: value}
        self._backend.write(key, json.dumps(envelope).encode("utf-8"))
        logger.info("[content_cache] stored; key:%s;ttl:%d", key, ttl_seconds)

    def get(self, key: str) -> Any | None:
        """Return the value stored under key, or None on miss or expiry.

        Raises:
            StorageError: If the backend read fails.
        """
        raw = self._backend.read(key)
        if raw is None:
            logger.info("[content_cache] cache miss; key:%s", key)
            return None

        try:
            envelope = json.loads(raw.decode("utf-8"))
            expires_at = float(envelope[_EXPIRES_AT])
            value = envelope[_VALUE]
        except (UnicodeDecodeError, ValueError, TypeError, KeyError):
            logger.warning("[content_cache] unreadable entry ignored; key:%s", key)
            return None

        if self._clock() >= expires_at:
            logger.info("[content_cache] cache expired; key:%s", key)
            return None

        logger.info("[content_cache] cache hit; key:%s", key)
        return value

    def clear(self, key: str) -> None:
        """Remove the entry for key. Missing keys are ignored."""
        self._backend.delete(key)
        logger.info("[content_cache] cleared; key:%s", key)

    def get_or_load(self, key: str, loader: Callable[[], T], ttl_seconds: int) -> Any:
        """Return the cached value for key, calling loader once on a miss.

        Concurrent callers missing on the same key are serialized on a
        per-key lock; the first runs the loader and the rest read what it
        stored. If the loader raises, nothing is stored and the exception
        propagates to that caller.

        Args:
            key: Cache key.
            loader: Produces a fresh JSON-serializable value.
            ttl_seconds: Lifetime for a freshly loaded value.

        Returns:
            The cached or freshly loaded value.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        with self._key_lock(key):
            cached = self.get(key)
            if cached is not None:
                return cached
            value = loader()
            self.store(key, value, ttl_seconds)
            return value

    @contextlib.contextmanager
    def _key_lock(self, key: str) -> Iterator[None]:
        """Hold the lock for key; it is dropped once no caller is waiting on it."""
        with self._key_locks_guard:
            lock, waiters = self._key_locks.get(key, (threading.Lock(), 0))
            self._key_locks[key] = (lock, waiters + 1)
        try:
            with lock:
                yield
        finally:
            with self._key_locks_guard:
                _, waiters = self._key_locks[key]
                if waiters == 1:
                    del self._key_locks[key]
                else:
                    self._key_locks[key] = (lock, waiters - 1)


def content_cache_from_config(config: AppConfig) -> ContentCache:
    """Construct a ContentCache with the backend named in the configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured ContentCache instance.

    Raises:
        ValueError: If config.cache_backend is not a known backend name.
    """
    backend: CacheBackend
    if config.cache_backend == "filesystem":
        backend = FilesystemBackend(config.cache_dir)
    elif config.cache_backend == "memory":
        backend = MemoryBackend()
    elif config.cache_backend == "blob":
        backend = BlobBackend(
            storage_connection_string=config.storage_connection_string,
            container=config.cache_container,
            blob_prefix=config.cache_blob_prefix,
        )
    else:
        raise ValueError(
            f"Unknown cache backend {config.cache_backend!r}; expected one of {CACHE_BACKENDS}"
        )
    return ContentCache(backend)
