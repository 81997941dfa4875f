import itertools
import logging
from threading import Lock
from typing import Callable

from botocore.client import BaseClient

from s3desk.s3.create import create_s3_client
from s3desk.s3.types import EndpointConfig

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Caches one authenticated client per ``EndpointConfig.id``.

    Hits read the map without locking. A miss serializes only the callers
    racing on the same id: the client is built under that id's lock, outside
    the registry lock, and inserted with a compare-and-insert so at most one
    client per id is ever published. Failed constructions are not cached.

    With ``max_clients`` set, inserting past the bound evicts the least
    recently acquired entry. Transfers already holding the evicted client keep
    using it; only the cache forgets it.
    """

    def __init__(
        self,
        client_factory: Callable[[EndpointConfig], BaseClient] = create_s3_client,
        max_clients: int | None = None,
    ) -> None:
        if max_clients is not None and max_clients < 1:
            raise ValueError(f"max_clients must be at least 1, got {max_clients}")
        self._client_factory = client_factory
        self._max_clients = max_clients
        self._clients: dict[str, BaseClient] = {}
        self._last_used: dict[str, int] = {}
        self._ticks = itertools.count()
        self._key_locks: dict[str, Lock] = {}
        self._generations: dict[str, int] = {}
        self._lock = Lock()

    def _key_lock(self, key: str) -> Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = Lock()
                self._key_locks[key] = lock
            return lock

    def _hit(self, key: str) -> BaseClient | None:
        client = self._clients.get(key)
        if client is not None:
            # Races with release can leave a stale tick; eviction prunes it.
            self._last_used[key] = next(self._ticks)
        return client

    def acquire(self, config: EndpointConfig) -> BaseClient:
        key = config.id
        client = self._hit(key)
        if client is not None:
            return client

        with self._key_lock(key):
            client = self._hit(key)
            if client is not None:
                return client
            with self._lock:
                generation = self._generations.get(key, 0)
            logger.info(f"Creating client for config {key}")
            # Raises ConfigurationError; nothing is inserted in that case.
            client = self._client_factory(config)
            with self._lock:
                if self._generations.get(key, 0) != generation:
                    # Released while building: hand it out, but the next
                    # acquire builds from the current config.
                    logger.info(f"Config {key} released during creation, not caching")
                    return client
                existing = self._clients.get(key)
                if existing is not None:
                    return existing
                self._clients[key] = client
                self._last_used[key] = next(self._ticks)
                self._evict_no_lock(keep=key)
            return client

    def _evict_no_lock(self, keep: str) -> None:
        for stale in [k for k in list(self._last_used) if k not in self._clients]:
            self._last_used.pop(stale, None)
        if self._max_clients is None:
            return
        while len(self._clients) > self._max_clients:
            candidates = [k for k in self._clients if k != keep]
            if not candidates:
                return
            victim = min(candidates, key=lambda k: self._last_used.get(k, -1))
            logger.info(f"Evicting cached client for config {victim}")
            self._drop_no_lock(victim)

    def _drop_no_lock(self, key: str) -> bool:
        self._generations[key] = self._generations.get(key, 0) + 1
        self._last_used.pop(key, None)
        lock = self._key_locks.get(key)
        if lock is not None and not lock.locked():
            del self._key_locks[key]
        return self._clients.pop(key, None) is not None

    def release(self, key: str) -> bool:
        """Forget the client for ``key``. Returns True if one was cached.

        A client still being built for ``key`` is not cached either.
        """
        with self._lock:
            removed = self._drop_no_lock(key)
        if removed:
            logger.info(f"Released client for config {key}")
        return removed

    def clear(self) -> None:
        with self._lock:
            for key in set(self._clients) | set(self._key_locks):
                self._drop_no_lock(key)
            self._last_used.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._clients

    def __len__(self) -> int:
        return len(self._clients)
