"""
Catalog Fetcher

Pulls the full image catalog from the remote source and writes it to the
KV store together with the fetch time.

The catalog is handed back to the caller as soon as paging finishes; the two
cache writes run afterwards as a background task. A failed write is logged
and never reaches the request that triggered the refresh.
"""

import asyncio
import json
import logging
from typing import List, Set

from .catalog_source import CatalogSource
from .config import RelayConfig
from .expiry import utcnow
from .kv_store import KV_IMAGES, KV_LAST_CACHED, KVStore
from .models import CatalogEntry

logger = logging.getLogger(__name__)


def serialize_catalog(catalog: List[CatalogEntry]) -> str:
    return json.dumps([entry.to_wire() for entry in catalog])


class CatalogFetcher:
    """
    Full re-fetch of the remote catalog.

    Usage:
        fetcher = CatalogFetcher(config, store, source)
        catalog = await fetcher.refresh()
        await fetcher.drain()  # wait for background cache writes
    """

    def __init__(self, config: RelayConfig, store: KVStore, source: CatalogSource):
        self.config = config
        self.store = store
        self.source = source
        self._pending: Set[asyncio.Task] = set()

    async def fetch_all(self) -> List[CatalogEntry]:
        """
        Page through the source until a page comes back short.

        A page of exactly ``batch_size`` entries always triggers one more
        request, so a catalog of k * batch_size entries costs k + 1 requests.
        """
        batch_size = self.config.batch_size
        images: List[CatalogEntry] = []
        page = 1

        while True:
            batch = await self.source.fetch_page(page, batch_size)
            images.extend(batch)
            if len(batch) != batch_size:
                break
            page += 1

        return images

    async def refresh(self) -> List[CatalogEntry]:
        """
        Fetch the whole catalog and schedule it to be cached.

        Raises:
            UpstreamFetchError: if any page request fails.
        """
        logger.info("[Fetcher] Fetching images from Cloudflare API...")
        images = await self.fetch_all()
        logger.info(f"[Fetcher] Fetched images from Cloudflare API: {len(images)} images")

        task = asyncio.create_task(self._persist(images))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        return images

    async def _persist(self, images: List[CatalogEntry]) -> None:
        fetch_date = utcnow().isoformat()
        try:
            await asyncio.gather(
                self.store.put(KV_IMAGES, serialize_catalog(images)),
                self.store.put(KV_LAST_CACHED, fetch_date),
            )
        except Exception as e:
            logger.error(f"[Fetcher] Failed to cache images on KV: {e}")
            return
        logger.info(f"[Fetcher] Images cached on KV: {fetch_date}")

    @property
    def pending(self) -> int:
        """Number of cache writes still in flight."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all background cache writes to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
