"""
In-memory TTL cache
"""
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from configs.settings import settings
from utils.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()

class MemoryCache:
    """Process local key/value cache with per-key expiry"""

    def __init__(self, default_ttl: int = 300, enabled: bool = True):
        self.default_ttl = default_ttl
        self.enabled = enabled
        self._store: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        if not self.enabled:
            return default
        entry = self._store.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if expires_at <= time.monotonic():
            self._store.pop(key, None)
            return default
        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None):
        if not self.enabled:
            return
        self._store[key] = (time.monotonic() + (ttl or self.default_ttl), value)

    def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def clear(self, pattern: Optional[str] = None) -> int:
        """Drop every key containing ``pattern`` (everything when None)"""
        if pattern is None:
            count = len(self._store)
            self._store.clear()
        else:
            keys = [key for key in self._store if pattern in key]
            for key in keys:
                del self._store[key]
            count = len(keys)
        if count:
            logger.debug("Cache cleared", pattern=pattern, count=count)
        return count

    async def get_or_set(self, key: str, factory: Callable[[], Awaitable[Any]],
                         ttl: Optional[int] = None) -> Any:
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = await factory()
        self.set(key, value, ttl)
        return value

    def __len__(self) -> int:
        return len(self._store)


cache = MemoryCache(default_ttl=settings.cache_ttl, enabled=settings.cache_enabled)
