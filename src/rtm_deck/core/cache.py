"""Cache stores for parsed DAO responses."""

import json
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Tuple

from .config import CacheConfig
from .exceptions import CacheWriteError


class CacheStore(Protocol):
    """What a DAO needs from a cache backend."""

    def has_item(self, key: str) -> bool:
        ...

    def get_item(self, key: str) -> Any:
        ...

    def add_item(self, key: str, value: Any) -> bool:
        ...


class MemoryCache:
    """In-memory cache for parsed responses.

    Prevents fetching the same URL multiple times when several widgets
    poll the same endpoint (e.g., two counters over one Splunk search).
    """

    def __init__(self, ttl_seconds: Optional[int] = 180):  # 3 minute TTL
        self.cache: Dict[str, Tuple[Any, datetime]] = {}
        self.ttl = timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None

    def _is_fresh(self, timestamp: datetime) -> bool:
        return self.ttl is None or datetime.now() - timestamp < self.ttl

    def has_item(self, key: str) -> bool:
        """Check for a valid entry, dropping it if expired."""
        if key in self.cache:
            if self._is_fresh(self.cache[key][1]):
                return True
            del self.cache[key]  # Expired, remove it
        return False

    def get_item(self, key: str) -> Optional[Any]:
        """Get cached payload if still valid."""
        if self.has_item(key):
            return self.cache[key][0]
        return None

    def add_item(self, key: str, value: Any) -> bool:
        """Store payload unless a valid entry already exists."""
        if self.has_item(key):
            return False
        self.cache[key] = (value, datetime.now())
        return True

    def clear(self):
        """Clear all cached data."""
        self.cache.clear()


class FileCache:
    """Cache persisted as a JSON file, so payloads survive a restart.

    JSON payloads are stored as is, XML/HTML element trees as markup that
    is parsed again on read. Anything else is rejected with CacheWriteError.
    """

    def __init__(self, cache_dir: Path, ttl_seconds: Optional[int] = 180):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache_file = self.cache_dir / "responses.json"
        self.ttl = timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None
        self.entries: Dict[str, Dict[str, Any]] = {}
        self.load()

    def load(self):
        """Load entries from disk."""
        if self.cache_file.exists():
            try:
                with open(self.cache_file, 'r') as f:
                    self.entries = json.load(f)
                print(f"✅ Loaded {len(self.entries)} cached responses")
            except (OSError, ValueError) as e:
                print(f"⚠️  Failed to load cache: {e}")
                self.entries = {}
        else:
            self.entries = {}

    def save(self, entries: Optional[Dict[str, Dict[str, Any]]] = None):
        """Save entries to disk.

        Serializes before opening the file, so a bad payload never
        truncates what is already stored.
        """
        text = json.dumps(self.entries if entries is None else entries, indent=2)
        with open(self.cache_file, 'w') as f:
            f.write(text)

    def has_item(self, key: str) -> bool:
        entry = self.entries.get(key)
        if entry is None:
            return False
        if self.ttl is not None:
            stored_at = datetime.fromisoformat(entry["stored_at"])
            if datetime.now() - stored_at >= self.ttl:
                del self.entries[key]
                return False
        return True

    def get_item(self, key: str) -> Optional[Any]:
        if not self.has_item(key):
            return None
        entry = self.entries[key]
        if entry.get("format") == "xml":
            return ET.fromstring(entry["value"])
        return entry["value"]

    def add_item(self, key: str, value: Any) -> bool:
        if self.has_item(key):
            return False

        if isinstance(value, ET.Element):
            entry = {"value": ET.tostring(value, encoding="unicode"), "format": "xml"}
        else:
            entry = {"value": value, "format": "json"}
        entry["stored_at"] = datetime.now().isoformat()

        # Entry is only kept once it made it to disk
        entries = {**self.entries, key: entry}
        try:
            self.save(entries)
        except (TypeError, ValueError) as e:
            raise CacheWriteError(
                f"Cannot store {type(value).__name__} payload in {self.cache_file}: {e}"
            ) from e
        self.entries = entries
        return True


def create_cache(config: CacheConfig) -> Optional[CacheStore]:
    """Build the cache store described by a dashboard's cache section."""
    if config.kind == 'memory':
        return MemoryCache(ttl_seconds=config.ttl_seconds)
    if config.kind == 'file':
        return FileCache(Path(config.directory), ttl_seconds=config.ttl_seconds)
    return None
