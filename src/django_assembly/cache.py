"""
Caching of rendered components.

Rendered components are stored in one of the caches defined in Django's `CACHES` setting,
selected with the `cache_name` setting. Any Django cache backend works, but
`MemoryCache` adds what the default in-memory backend lacks:

- Periodic removal of expired entries, in a background thread that can be stopped.
- Listing of keys, needed to clear a single namespace.
- `get_or_set()` that's atomic per key, so the value is generated only once
  even if many threads ask for it at the same time.

```python
CACHES = {
    "default": {
        "BACKEND": "django_assembly.cache.MemoryCache",
        "LOCATION": "assembly",
        "TIMEOUT": 300,
        "OPTIONS": {
            "AUTOCLEAN": True,
            "CLEANUP_INTERVAL": 60,
        },
    },
}
```
"""

import threading
from contextlib import contextmanager
from collections.abc import Generator, Sequence
from typing import Any

from django.core.cache import BaseCache, caches
from django.core.cache.backends.base import DEFAULT_TIMEOUT
from django.core.cache.backends.locmem import LocMemCache

from django_assembly.app_settings import app_settings
from django_assembly.util.logger import logger

# NOTE: We internally prefix the keys of rendered components with our own prefix,
# so it's clear where the entries come from.
CACHE_KEY_PREFIX = "assembly:rendered:"

DEFAULT_CLEANUP_INTERVAL = 60


class _Sweeper(threading.Thread):
    """Background thread that periodically removes expired entries from a `MemoryCache`."""

    def __init__(self, cache: "MemoryCache", interval: float) -> None:
        super().__init__(name=f"assembly-cache-sweeper-{cache.name}", daemon=True)
        self.cache = cache
        self.interval = interval
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.cache.cleanup()

    def stop(self) -> None:
        self._stop_event.set()


class _KeyLocks:
    """Locks per cache key. A lock is dropped once no thread holds or waits for it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, list[Any]] = {}

    @contextmanager
    def hold(self, key: str) -> Generator[None, None, None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


# Django creates a new cache backend instance per thread. So, same as `LocMemCache` shares
# the data between instances with the same LOCATION, we share the sweepers and key locks.
_sweepers: dict[str, _Sweeper] = {}
_sweepers_lock = threading.Lock()
_key_locks: dict[str, _KeyLocks] = {}


class MemoryCache(LocMemCache):
    """
    In-memory cache backend with periodic cleanup of expired entries.

    Options (set in `OPTIONS`):

    - `AUTOCLEAN` - Whether to start the cleanup thread when the cache is created. Default `True`.
    - `CLEANUP_INTERVAL` - Seconds between cleanups. Default 60.

    The cleanup thread is shared by all instances with the same `LOCATION`.
    Stop it with `stop_cleanup_timer()` or `dispose()`.
    """

    def __init__(self, name: str, params: dict[str, Any]) -> None:
        super().__init__(name, params)
        options = params.get("OPTIONS", {})
        self.name = name
        self.cleanup_interval: float = options.get("CLEANUP_INTERVAL", DEFAULT_CLEANUP_INTERVAL)
        self._key_locks = _key_locks.setdefault(name, _KeyLocks())

        if options.get("AUTOCLEAN", True):
            self.start_cleanup_timer()

    def cleanup(self) -> int:
        """Remove all expired entries. Returns the number of removed entries."""
        with self._lock:
            expired = [key for key in self._cache if self._has_expired(key)]
            for key in expired:
                self._delete(key)

        if expired:
            logger.debug(f"Cleaned up {len(expired)} expired cache items from '{self.name}'")
        return len(expired)

    def start_cleanup_timer(self) -> None:
        with _sweepers_lock:
            sweeper = _sweepers.get(self.name)
            if sweeper is not None and sweeper.is_alive():
                return
            sweeper = _Sweeper(self, self.cleanup_interval)
            _sweepers[self.name] = sweeper
            sweeper.start()

    def stop_cleanup_timer(self) -> None:
        with _sweepers_lock:
            sweeper = _sweepers.pop(self.name, None)
        if sweeper is not None:
            sweeper.stop()
            sweeper.join()

    def is_cleanup_timer_running(self) -> bool:
        sweeper = _sweepers.get(self.name)
        return sweeper is not None and sweeper.is_alive()

    def dispose(self) -> None:
        """Stop the cleanup thread and remove all entries."""
        self.stop_cleanup_timer()
        self.clear()

    def keys(self, version: int | None = None) -> list[str]:
        """
        List the keys of all entries that have not expired.

        NOTE: Assumes the default `KEY_FUNCTION`, which formats keys as `{prefix}:{version}:{key}`.
        """
        prefix = self.make_key("", version=version)
        with self._lock:
            return [
                key[len(prefix) :] for key in self._cache if key.startswith(prefix) and not self._has_expired(key)
            ]

    def get_or_set(
        self,
        key: str,
        default: Any,
        timeout: Any = DEFAULT_TIMEOUT,
        version: int | None = None,
    ) -> Any:
        """
        Same as `BaseCache.get_or_set()`, but other threads asking for the same key
        wait until the first one has set the value, instead of generating it again.
        """
        with self._key_locks.hold(self.make_key(key, version=version)):
            return super().get_or_set(key, default, timeout=timeout, version=version)


class NamespacedCache:
    """
    View of a Django cache where all keys are prefixed with `{namespace}:`,
    so different users of the same cache don't overwrite each other's entries.

    `max_age` is the time-to-live in seconds, same as `timeout` in Django's cache API.
    """

    def __init__(self, namespace: str, cache: BaseCache) -> None:
        self.namespace = namespace
        self.cache = cache
        self._prefix = f"{namespace}:"

    def _key(self, key: str) -> str:
        return self._prefix + key

    def get(self, key: str, default: Any = None) -> Any:
        return self.cache.get(self._key(key), default)

    def set(self, key: str, value: Any, max_age: Any = DEFAULT_TIMEOUT) -> None:
        self.cache.set(self._key(key), value, timeout=max_age)

    def has(self, key: str) -> bool:
        return self.cache.has_key(self._key(key))

    def delete(self, key: str) -> bool:
        return bool(self.cache.delete(self._key(key)))

    def get_or_set(self, key: str, default: Any, max_age: Any = DEFAULT_TIMEOUT) -> Any:
        return self.cache.get_or_set(self._key(key), default, timeout=max_age)

    def keys(self) -> list[str]:
        list_keys = getattr(self.cache, "keys", None)
        if not callable(list_keys):
            raise TypeError(
                f"Cache backend {type(self.cache).__name__} cannot list its keys,"
                f" use {MemoryCache.__name__} to clear or list a namespace",
            )
        return [key[len(self._prefix) :] for key in list_keys() if key.startswith(self._prefix)]

    def clear(self) -> None:
        """Remove only the entries of this namespace."""
        self.cache.delete_many([self._key(key) for key in self.keys()])

    def size(self) -> int:
        return len(self.keys())


def get_cache() -> BaseCache:
    return caches[app_settings.CACHE_NAME]


def get_component_cache(component_id: str) -> NamespacedCache:
    """Get a cache namespaced to the given component, for the component's own use."""
    return NamespacedCache(f"component:{component_id}", get_cache())


def _to_timeout(ttl: int | None) -> int | None:
    # `None` - use the default TTL, `-1` - cache indefinitely, `0` - don't cache
    if ttl is None:
        ttl = app_settings.CACHE_TTL
    return None if ttl == -1 else ttl


def hash_args(args: Sequence[Any]) -> str:
    """Render key segment for the positional render inputs, e.g. `("en", 2)` -> `"en-2"`."""
    return "-".join(str(arg) for arg in args)


def hash_kwargs(kwargs: dict[str, Any]) -> str:
    """Render key segment for the keyword render inputs, e.g. `{"page": 2}` -> `"page:2"`."""
    # Same inputs in any order map to the same rendered component
    return "-".join(f"{name}:{value}" for name, value in sorted(kwargs.items()))


def get_render_cache_key(component_id: str, *args: Any, **kwargs: Any) -> str:
    """
    Build the key for a rendered component, from the component's ID and
    the input it was rendered with (e.g. the request's path or query params).
    """
    return f"{component_id}:{hash_args(args)}:{hash_kwargs(kwargs)}"


def cache_rendered_component(component_id: str, content: str, ttl: int | None = None) -> None:
    """
    Save the rendered HTML of a component. Does nothing if caching is disabled.

    `ttl` is in seconds. `None` uses the `cache_ttl` setting, `-1` caches indefinitely.
    """
    if not app_settings.CACHE_ENABLED:
        return

    get_cache().set(CACHE_KEY_PREFIX + component_id, content, timeout=_to_timeout(ttl))
    logger.debug(f"Cached rendered component: {component_id}")


def get_cached_rendered_component(component_id: str) -> str | None:
    """Get the cached HTML of a component, or `None` if not cached or caching is disabled."""
    if not app_settings.CACHE_ENABLED:
        return None

    cached = get_cache().get(CACHE_KEY_PREFIX + component_id)
    if cached is not None:
        logger.debug(f"Cache hit for rendered component: {component_id}")
    return cached
