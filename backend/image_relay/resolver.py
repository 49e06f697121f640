"""
Image and variant lookup.

Matching is deliberately loose:
- images match on a filename OR id prefix, first hit in catalog order wins
- variants match on a suffix of the full variant URL, so a short variant name
  can also hit a longer one that ends the same way

Both rules are part of the public URL contract; tightening them changes which
image a given link serves.
"""

import json
import logging
import re
from typing import List, Optional

from pydantic import ValidationError

from .config import RelayConfig
from .errors import CacheReadError, NotFoundError
from .expiry import is_expired, parse_timestamp
from .fetcher import CatalogFetcher
from .kv_store import KV_IMAGES, KV_LAST_CACHED, KVStore
from .models import CatalogEntry

logger = logging.getLogger(__name__)

DEFAULT_VARIANT = "public"

_EXTENSION_RE = re.compile(r"\.[A-Za-z]+$")


def strip_extension(needle: str) -> str:
    """Strip a trailing ``.ext`` (letters only) from a needle."""
    return _EXTENSION_RE.sub("", needle)


def find_entry(needle: str, catalog: List[CatalogEntry]) -> Optional[CatalogEntry]:
    """First entry whose filename or id starts with ``needle``."""
    for entry in catalog:
        if entry.filename.startswith(needle) or entry.id.startswith(needle):
            return entry
    return None


def resolve_variant(entry: CatalogEntry, requested: Optional[str] = None) -> str:
    """
    Return the URL of the first variant ending with ``requested``.

    Args:
        entry: Resolved catalog entry
        requested: Variant name, defaults to "public"

    Raises:
        NotFoundError: if no variant URL ends with the name.
    """
    variant = requested or DEFAULT_VARIANT
    for url in entry.variants:
        if url.endswith(variant):
            return url
    raise NotFoundError(f"Variant not found: {variant}")


def read_catalog(raw: Optional[str]) -> List[CatalogEntry]:
    """
    Deserialize a stored catalog.

    Raises:
        CacheReadError: if the value is absent or not a list of entries.
    """
    if raw is None:
        raise CacheReadError("Cached images not found")
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            raise CacheReadError("Cached images are not a list")
        return [CatalogEntry.model_validate(item) for item in data]
    except (ValueError, ValidationError) as e:
        raise CacheReadError(f"Cached images are corrupt: {e}") from e


class LookupResolver:
    """
    Finds catalog entries, refreshing the cached catalog when it has expired.

    There is no coordination between concurrent callers: two lookups that both
    see an expired cache each run a full refresh, and the last write wins.
    """

    def __init__(self, config: RelayConfig, store: KVStore, fetcher: CatalogFetcher):
        self.config = config
        self.store = store
        self.fetcher = fetcher

    async def load_catalog(self) -> List[CatalogEntry]:
        """Cached catalog if still fresh, otherwise a fresh fetch."""
        last_cached = parse_timestamp(await self.store.get(KV_LAST_CACHED))

        if not is_expired(last_cached, self.config.cache_ttl):
            try:
                return read_catalog(await self.store.get(KV_IMAGES))
            except CacheReadError as e:
                logger.warning(f"[Lookup] {e.message}, refreshing")

        return await self.fetcher.refresh()

    async def resolve(self, needle: str) -> CatalogEntry:
        """
        Find the entry for a filename or id, with or without extension.

        Raises:
            NotFoundError: if nothing matches.
        """
        catalog = await self.load_catalog()
        entry = find_entry(strip_extension(needle), catalog)
        if entry is None:
            raise NotFoundError(f"Image not found: {needle}")
        logger.debug(f"[Lookup] {needle} -> {entry.id}")
        return entry
