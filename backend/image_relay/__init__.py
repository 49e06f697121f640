"""
Image Relay Module

Serves images stored in Cloudflare Images from a custom domain, keeping a
time-bounded copy of the image catalog in a KV store so requests do not hit
the Cloudflare API every time.

Features:
- Paginated full refetch of the catalog, cached with a TTL
- Lookup by filename or id prefix, with or without extension
- Variant relay with the original filename in Content-Disposition
"""

from .config import RelayConfig
from .errors import (
    RelayError,
    UpstreamFetchError,
    NotFoundError,
    ConfigurationError,
    CacheReadError,
)
from .fetcher import CatalogFetcher
from .kv_store import MemoryKVStore, FileKVStore
from .models import CatalogEntry
from .relay import RelayHandler
from .resolver import LookupResolver, resolve_variant
from .routes_fastapi import router, register_error_handlers

__all__ = [
    "RelayConfig",
    "RelayError",
    "UpstreamFetchError",
    "NotFoundError",
    "ConfigurationError",
    "CacheReadError",
    "CatalogFetcher",
    "MemoryKVStore",
    "FileKVStore",
    "CatalogEntry",
    "RelayHandler",
    "LookupResolver",
    "resolve_variant",
    "router",
    "register_error_handlers",
]
