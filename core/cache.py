"""In-process TTL cache for query results."""

import json
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from core.exceptions import CacheInvariantError
from core.log import get_logger

logger = get_logger(__name__)

V = TypeVar("V")

DEFAULT_MAX_ENTRIES = 100
DEFAULT_TTL_SECONDS = 30.0


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the clock reading at which it goes stale."""

    value: V
    expires_at: float


class TTLCache(Generic[V]):
    """Bounded key/value cache with lazy expiry and insertion-order eviction.

    Entries expire ``ttl_seconds`` after they were stored; expired entries are
    only dropped when they are read. When a new key arrives while the cache is
    full, the entry that was inserted first is evicted. Storing an existing key
    again moves it to the most recent position.

    All operations are serialized by a lock so concurrent request handlers
    never observe a half-applied eviction or insertion. Callers compute values
    outside of the cache, so a slow miss never blocks lookups of other keys.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> V | None:
        """Return the live value for ``key``, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key}")
                return None
            return entry.value

    def set(self, key: str, value: V) -> None:
        """Store ``value`` under ``key`` for the configured lifetime."""
        with self._lock:
            entry = CacheEntry(value=value, expires_at=self._clock() + self.ttl_seconds)

            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache full, evicted oldest entry: {evicted_key}")

            self._entries[key] = entry

            if len(self._entries) > self.max_entries:
                raise CacheInvariantError(
                    f"Cache holds {len(self._entries)} entries, "
                    f"limit is {self.max_entries}"
                )

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        """Get tracked keys from oldest to newest, including expired ones."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Marker for parameters that were not supplied; JSON null never collides with
# a real value, including the empty string.
ABSENT = None


def _canonical_value(value: Any) -> Any:
    """Convert a parameter value into a JSON-stable representation."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def build_cache_key(params: Mapping[str, Any], fields: Sequence[str]) -> str:
    """Build a stable identity for a parameter set.

    Only ``fields`` take part in the key and they are always emitted in the
    given order, so the order in which a request listed its parameters never
    matters. A missing parameter and one explicitly set to None produce the
    same key.

    Args:
        params: Parameter values by name
        fields: Parameter names that identify the result, in canonical order

    Returns:
        JSON string usable as a cache key
    """
    pairs = [
        [name, _canonical_value(params.get(name, ABSENT))] for name in fields
    ]
    return json.dumps(pairs, separators=(",", ":"), ensure_ascii=False)
