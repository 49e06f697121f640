"""
Image Relay Handler

Ties lookup, variant resolution and the pass-through fetch together for the
HTTP routes, plus the operational cache and setup actions.
"""

import asyncio
import logging
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from .config import KV_ACCOUNT_ID, KV_API_KEY
from .errors import ConfigurationError, UpstreamFetchError
from .kv_store import KV_IMAGES, KV_LAST_CACHED, KVStore
from .models import CatalogEntry
from .resolver import LookupResolver, resolve_variant

logger = logging.getLogger(__name__)

# Upstream headers that are dropped or replaced on the re-emitted response
DROPPED_HEADERS = {
    "content-length",
    "content-encoding",
    "transfer-encoding",
    "connection",
    "keep-alive",
    "content-disposition",
}


def content_disposition(filename: str) -> str:
    """
    Build an inline Content-Disposition header for ``filename``.

    Header values must be latin-1, so non-ASCII names get an ASCII fallback in
    ``filename`` and the exact name in ``filename*`` (RFC 6266).
    """
    fallback = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = fallback.replace("\\", "\\\\").replace('"', '\\"')
    header = f'inline; filename="{fallback}"'
    if not filename.isascii():
        header += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return header


@dataclass
class RelayedImage:
    """Upstream variant response, ready to re-emit."""
    body: bytes
    status_code: int
    media_type: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


class RelayHandler:
    """
    Serves catalog images under their original filenames.

    Usage:
        handler = RelayHandler(store, resolver, http_client)
        image = await handler.relay("cat.png", "thumbnail")
    """

    def __init__(
        self,
        store: Optional[KVStore],
        resolver: LookupResolver,
        http_client: httpx.AsyncClient,
    ):
        self.store = store
        self.resolver = resolver
        self.http_client = http_client

    def _require_store(self) -> KVStore:
        if self.store is None:
            raise ConfigurationError("KV namespace not found")
        return self.store

    async def lookup(self, needle: str) -> CatalogEntry:
        """Map a filename to its entry and vice versa."""
        self._require_store()
        return await self.resolver.resolve(needle)

    async def relay(self, image: str, variant: Optional[str] = None) -> RelayedImage:
        """
        Fetch a variant of an image from upstream.

        Raises:
            NotFoundError: unknown image or variant.
            UpstreamFetchError: the variant URL could not be fetched.
        """
        self._require_store()
        entry = await self.resolver.resolve(image)
        variant_url = resolve_variant(entry, variant)

        try:
            response = await self.http_client.get(variant_url)
        except httpx.HTTPError as e:
            logger.error(f"[Relay] Fetch error for {variant_url}: {e}")
            raise UpstreamFetchError(f"Failed to fetch variant: {e}") from e

        headers = {
            name: value
            for name, value in response.headers.items()
            if name.lower() not in DROPPED_HEADERS
        }
        # Keep the original filename when the browser saves the image
        headers["Content-Disposition"] = content_disposition(entry.filename)
        headers["X-Original-Url"] = variant_url
        headers["X-Image-Id"] = entry.id

        logger.info(f"[Relay] {image} -> {variant_url} ({response.status_code}, {len(response.content)} bytes)")

        return RelayedImage(
            body=response.content,
            status_code=response.status_code,
            media_type=response.headers.get("content-type"),
            headers=headers,
        )

    async def expire_cache(self, purge_images: bool = True) -> str:
        """Force the next lookup to refetch the catalog."""
        store = self._require_store()
        deletes = [store.delete(KV_LAST_CACHED)]
        if purge_images:
            deletes.append(store.delete(KV_IMAGES))
        await asyncio.gather(*deletes)

        msg = "Cache expired"
        logger.info(f"[Relay] {msg}")
        return msg

    async def save_credentials(self, account_id: str, api_key: str) -> str:
        """Store Cloudflare credentials for later refreshes."""
        store = self._require_store()
        if not account_id or not api_key:
            raise ConfigurationError("Please enter a valid Account ID and API Key")

        await asyncio.gather(
            store.put(KV_ACCOUNT_ID, account_id),
            store.put(KV_API_KEY, api_key),
        )
        logger.info("[Relay] Credentials saved")
        return "Setup complete"
