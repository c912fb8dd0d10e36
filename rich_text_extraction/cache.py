"""
Cache adapter for metadata records.

The fetch pipeline talks to an explicit CacheBackend. Callers may pass a
backend directly, or any value that looks like one (a dict, an object with
get/set, the name of a registered integration); resolve_cache() picks the
matching variant and falls back to NoCache for everything else. Caching is an
optimization only: no backend failure ever reaches the caller.
"""
import inspect
import logging
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """Interface for metadata caches."""

    @abstractmethod
    def get(self, key: str) -> Optional[Dict[str, str]]:
        """Return the cached record for key, or None on a miss."""
        pass

    @abstractmethod
    def set(self, key: str, value: Dict[str, str], ttl: Optional[float] = None) -> None:
        """Store a record under key."""
        pass

    def delete(self, key: str) -> bool:
        """Remove key; returns True if something was removed."""
        return False

    @property
    def enabled(self) -> bool:
        return True

    @property
    def supports_ttl(self) -> bool:
        """Whether entries written with a ttl actually expire."""
        return False


class NoCache(CacheBackend):
    """Backend that never stores anything."""

    def get(self, key):
        return None

    def set(self, key, value, ttl=None):
        pass

    @property
    def enabled(self) -> bool:
        return False

    def __repr__(self):
        return "NoCache()"


class InMemoryCache(CacheBackend):
    """
    In-process LRU cache with optional expiry.

    A live entry is never replaced by set() unless force=True; use
    invalidate() to drop it explicitly.
    """

    def __init__(self, max_items: int = 1024, ttl: Optional[float] = None):
        """
        Initialize the cache.

        Args:
            max_items: Maximum entries kept before evicting the least recently used
            ttl: Default time-to-live in seconds (None keeps entries forever)
        """
        self.max_items = max_items
        self.ttl = ttl
        self._entries: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self.stats = {
            'hits': 0,
            'misses': 0,
            'evictions': 0,
            'updates': 0
        }

    @property
    def supports_ttl(self) -> bool:
        return True

    def _expired(self, entry: Dict[str, Any], now: float) -> bool:
        expires_at = entry.get('expires_at')
        return expires_at is not None and now >= expires_at

    def _evict(self):
        while len(self._entries) >= self.max_items:
            evicted = self._entries.popitem(last=False)
            self.stats['evictions'] += 1
            logger.debug(f"Evicted from memory: {evicted[0]}")

    def get(self, key):
        entry = self._entries.get(key)
        if entry is None:
            self.stats['misses'] += 1
            return None

        if self._expired(entry, time.time()):
            del self._entries[key]
            self.stats['misses'] += 1
            logger.debug(f"Cache entry expired for {key}")
            return None

        self._entries.move_to_end(key)
        self.stats['hits'] += 1
        return entry['data']

    def set(self, key, value, ttl=None, force: bool = False):
        now = time.time()
        current = self._entries.get(key)
        if current is not None and not force and not self._expired(current, now):
            logger.debug(f"Already cached: {key}")
            return

        ttl = ttl if ttl is not None else self.ttl
        if current is None:
            self._evict()
        else:
            self.stats['updates'] += 1
        self._entries[key] = {
            'data': value,
            'cached_at': now,
            'expires_at': now + ttl if ttl else None,
        }
        self._entries.move_to_end(key)

    def delete(self, key):
        return self._entries.pop(key, None) is not None

    def invalidate(self, key: str) -> bool:
        """Drop a cached entry."""
        return self.delete(key)

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return key in self._entries

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            **self.stats,
            'items': len(self._entries),
            'hit_rate': self.stats['hits'] / max(1, self.stats['hits'] + self.stats['misses'])
        }


class MappingCache(CacheBackend):
    """Backend over any object supporting item lookup and assignment."""

    def __init__(self, mapping):
        self.mapping = mapping

    def get(self, key):
        try:
            return self.mapping[key]
        except KeyError:
            return None

    def set(self, key, value, ttl=None):
        self.mapping[key] = value

    def delete(self, key):
        try:
            del self.mapping[key]
        except KeyError:
            return False
        return True

    def __repr__(self):
        return f"MappingCache({type(self.mapping).__name__})"


class ExternalCache(CacheBackend):
    """
    Backend over an external client exposing get/set (and optionally delete).

    A TTL is forwarded as a keyword when the client's set() accepts one of
    ttl, expire, expires_in, timeout or ex.
    """

    TTL_KEYWORDS = ("ttl", "expires_in", "expire", "timeout", "ex")

    def __init__(self, adapter):
        self.adapter = adapter
        self._ttl_keyword = self._find_ttl_keyword(adapter)

    @property
    def supports_ttl(self) -> bool:
        return self._ttl_keyword is not None

    @classmethod
    def _find_ttl_keyword(cls, adapter) -> Optional[str]:
        try:
            params = inspect.signature(adapter.set).parameters
        except (TypeError, ValueError):
            return None
        for name in cls.TTL_KEYWORDS:
            if name in params:
                return name
        return None

    def get(self, key):
        return self.adapter.get(key)

    def set(self, key, value, ttl=None):
        if ttl and self._ttl_keyword:
            self.adapter.set(key, value, **{self._ttl_keyword: ttl})
        else:
            self.adapter.set(key, value)

    def delete(self, key):
        delete = getattr(self.adapter, "delete", None)
        if not callable(delete):
            return False
        return bool(delete(key))

    def __repr__(self):
        return f"ExternalCache({type(self.adapter).__name__})"


class SafeCache(CacheBackend):
    """
    Wrapper that turns backend exceptions into misses and no-ops.

    Values read back that are not mappings are treated as misses.
    """

    def __init__(self, backend: CacheBackend):
        self.backend = backend

    @property
    def enabled(self) -> bool:
        return self.backend.enabled

    @property
    def supports_ttl(self) -> bool:
        return self.backend.supports_ttl

    def get(self, key):
        try:
            value = self.backend.get(key)
        except Exception as e:
            logger.debug(f"Cache read failed for {key}: {e}")
            return None
        if value is None or not isinstance(value, dict):
            return None
        return value

    def set(self, key, value, ttl=None):
        try:
            self.backend.set(key, value, ttl=ttl)
        except Exception as e:
            logger.debug(f"Cache write failed for {key}: {e}")

    def delete(self, key):
        try:
            return self.backend.delete(key)
        except Exception as e:
            logger.debug(f"Cache delete failed for {key}: {e}")
            return False


class CacheIntegrations:
    """
    Named cache backends that callers can refer to by sentinel.

    Instantiable so tests and applications can keep their own; the
    module-level ``integrations`` registry starts empty.
    """

    def __init__(self):
        self._backends: Dict[str, CacheBackend] = {}

    @staticmethod
    def _name(sentinel) -> str:
        if isinstance(sentinel, Enum):
            sentinel = sentinel.value
        return str(sentinel).strip().lower()

    def register(self, name, backend) -> CacheBackend:
        """Register a backend (or anything resolve_cache understands) under name."""
        if not isinstance(backend, CacheBackend):
            backend = resolve_cache(backend, registry=self)
        self._backends[self._name(name)] = backend
        logger.debug(f"Registered cache integration: {name}")
        return backend

    def unregister(self, name) -> None:
        self._backends.pop(self._name(name), None)

    def get(self, name) -> Optional[CacheBackend]:
        return self._backends.get(self._name(name))

    def __contains__(self, name):
        return self._name(name) in self._backends

    def names(self):
        return sorted(self._backends)


integrations = CacheIntegrations()


def _has_methods(value, *names) -> bool:
    return all(callable(getattr(value, name, None)) for name in names)


def resolve_cache(value, registry: Optional[CacheIntegrations] = None) -> CacheBackend:
    """
    Pick the CacheBackend variant for a caller-supplied cache value.

    Args:
        value: None, a CacheBackend, an integration name, a mapping, or a
            client object with get/set methods
        registry: Integrations used for named sentinels (default: module registry)

    Returns:
        A backend; NoCache when the value is absent or unusable
    """
    if registry is None:
        registry = integrations

    if value is None or value is False:
        return NoCache()
    if isinstance(value, CacheBackend):
        return value
    if isinstance(value, (str, Enum)):
        backend = registry.get(value)
        if backend is None:
            logger.debug(f"No cache integration named {value!r}; caching disabled")
            return NoCache()
        return backend
    if isinstance(value, (bytes, int, float, tuple, list, set, frozenset)):
        return NoCache()
    if isinstance(value, dict):
        return MappingCache(value)

    try:
        if _has_methods(value, "get", "set"):
            return ExternalCache(value)
        if _has_methods(value, "__getitem__", "__setitem__"):
            return MappingCache(value)
    except Exception as e:
        logger.debug(f"Unusable cache value {type(value).__name__}: {e}")
    return NoCache()
