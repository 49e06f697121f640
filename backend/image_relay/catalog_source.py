"""
Cloudflare Images catalog source.

Fetches one page of the account's image list per call.
"""

import logging
from typing import List, Protocol

import httpx
from pydantic import ValidationError

from .config import RelayConfig, resolve_credentials
from .errors import UpstreamFetchError
from .models import CatalogEntry, ImagesPage

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    """Anything that can return one page of catalog entries."""

    async def fetch_page(self, page: int, per_page: int) -> List[CatalogEntry]: ...


class CloudflareImagesSource:
    """
    Pages through ``GET /accounts/{account_id}/images/v1``.

    Credentials are resolved on every call (config first, then the KV store)
    so values saved by the setup page take effect without a restart.

    Usage:
        source = CloudflareImagesSource(config, http_client, store)
        images = await source.fetch_page(1, 100)
    """

    def __init__(self, config: RelayConfig, http_client: httpx.AsyncClient, store=None):
        self.config = config
        self.http_client = http_client
        self.store = store

    def images_url(self, account_id: str) -> str:
        return f"{self.config.api_base}/accounts/{account_id}/images/v1"

    async def fetch_page(self, page: int, per_page: int) -> List[CatalogEntry]:
        """
        Fetch a single page of images.

        Raises:
            ConfigurationError: if credentials are missing.
            UpstreamFetchError: on transport failure, non-2xx status or a
                response body without ``result.images``.
        """
        account_id, api_key = await resolve_credentials(self.config, self.store)

        try:
            response = await self.http_client.get(
                self.images_url(account_id),
                params={"page": page, "per_page": per_page},
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"[CatalogSource] HTTP error {e.response.status_code} on page {page}")
            raise UpstreamFetchError(
                f"Cloudflare API returned {e.response.status_code} for page {page}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"[CatalogSource] Fetch error on page {page}: {e}")
            raise UpstreamFetchError(f"Cloudflare API unreachable: {e}") from e

        try:
            return ImagesPage.model_validate(response.json()).result.images
        except (ValueError, ValidationError) as e:
            raise UpstreamFetchError(f"Unexpected Cloudflare API response for page {page}") from e
