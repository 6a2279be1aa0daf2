"""Persisted TTL cache for JSON API responses."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A single cache entry with TTL."""

    key: str
    value: Any
    expires_at: float
    created_at: float = field(default_factory=time.time)

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        return time.time() > self.expires_at


class PersistentCache:
    """Directory-backed cache; one JSON file per key.

    Entries survive process restarts until their TTL elapses. Unreadable or
    corrupt entries are treated as misses and removed.
    """

    def __init__(self, directory: str, default_ttl: int = 3600):
        """Initialize the cache.

        Args:
            directory: Directory holding the entry files; created on first write.
            default_ttl: Default time-to-live in seconds.
        """
        self._directory = directory
        self._default_ttl = default_ttl

    def _path(self, key: str) -> str:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self._directory, f"{digest}.json")

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value or None if missing/expired."""
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                entry = CacheEntry(**json.load(fh))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, TypeError) as exc:
            logger.debug("Discarding unreadable cache entry %s: %s", path, exc)
            self._remove(path)
            return None

        if entry.key != key or entry.is_expired():
            self._remove(path)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a JSON-serializable value.

        Args:
            key: Cache key (typically the request URL).
            value: Value to store.
            ttl: Optional TTL override in seconds.
        """
        effective_ttl = ttl if ttl is not None else self._default_ttl
        entry = CacheEntry(key=key, value=value, expires_at=time.time() + effective_ttl)
        os.makedirs(self._directory, exist_ok=True)
        path = self._path(key)
        tmp_path = f"{path}.{os.getpid()}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(asdict(entry), fh)
        os.replace(tmp_path, path)

    @staticmethod
    def _remove(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
