"""
KV Store Implementations

String key/value stores backing the catalog cache and stored credentials.

- MemoryKVStore: in-process dict, used for tests and single-instance runs
- FileKVStore: one file per key under a cache directory, survives restarts

Neither store offers transactions; callers replace whole values.
"""

import asyncio
import hashlib
import logging
import os
from pathlib import Path
from threading import Lock
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)

# Keys used by the catalog cache
KV_IMAGES = "KV_IMAGES"
KV_LAST_CACHED = "KV_LAST_CACHED"


class KVStore(Protocol):
    """Minimal async key/value contract."""

    async def get(self, key: str) -> Optional[str]: ...

    async def put(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryKVStore:
    """
    In-memory KV store
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._store: Dict[str, str] = dict(initial or {})
        self._lock = Lock()

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._store.get(key)

    async def put(self, key: str, value: str) -> None:
        with self._lock:
            self._store[key] = value

    async def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)


class FileKVStore:
    """
    File-based KV store.

    Cache structure:
    cache_dir/
    └── kv/
        ├── 3f1e9a0c2b7d4e58.val
        └── ...

    File names are a hash of the key so any key string is safe on disk.
    """

    def __init__(self, cache_dir: str = "./relay_cache"):
        self.cache_dir = Path(cache_dir)
        self.values_dir = self.cache_dir / "kv"
        self._lock = asyncio.Lock()

        self.values_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"[KVStore] Cache directory: {self.cache_dir}")

    @staticmethod
    def _key_to_hash(key: str) -> str:
        return hashlib.sha256(key.encode()).hexdigest()[:16]

    def _get_path(self, key: str) -> Path:
        return self.values_dir / f"{self._key_to_hash(key)}.val"

    async def get(self, key: str) -> Optional[str]:
        path = self._get_path(key)
        async with self._lock:
            if not path.exists():
                return None
            with open(path, "r", encoding="utf-8") as f:
                return f.read()

    async def put(self, key: str, value: str) -> None:
        path = self._get_path(key)
        tmp_path = path.with_suffix(".tmp")
        async with self._lock:
            # Write then rename so readers never see a half-written value
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        logger.debug(f"[KVStore] Stored {key} ({len(value)} chars)")

    async def delete(self, key: str) -> None:
        path = self._get_path(key)
        async with self._lock:
            if path.exists():
                path.unlink()
        logger.debug(f"[KVStore] Deleted {key}")
