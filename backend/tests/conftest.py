"""
Image Relay test configuration

Shared fixtures: sample catalog entries, a fake paginated catalog source,
in-memory KV stores and a wired-up fetcher/resolver pair.
"""

import pytest
import asyncio
import sys
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from image_relay.config import RelayConfig
from image_relay.fetcher import CatalogFetcher
from image_relay.kv_store import MemoryKVStore
from image_relay.models import CatalogEntry
from image_relay.resolver import LookupResolver


# ============================================
# Catalog Helpers
# ============================================

def make_entry(
    id: str,
    filename: str,
    variants: Optional[List[str]] = None,
) -> CatalogEntry:
    """Build a catalog entry with public and thumbnail variants by default."""
    if variants is None:
        variants = [
            f"https://imagedelivery.net/hash/{id}/public",
            f"https://imagedelivery.net/hash/{id}/thumbnail",
        ]
    return CatalogEntry(
        id=id,
        filename=filename,
        uploaded="2024-01-02T03:04:05Z",
        requireSignedURLs=False,
        variants=variants,
    )


def make_batch(size: int, start: int = 0) -> List[CatalogEntry]:
    return [make_entry(f"id-{i:05d}", f"image-{i:05d}.png") for i in range(start, start + size)]


def make_batches(sizes: List[int]) -> List[List[CatalogEntry]]:
    batches = []
    start = 0
    for size in sizes:
        batches.append(make_batch(size, start))
        start += size
    return batches


class FakeCatalogSource:
    """
    Paginated source serving pre-built batches.

    Pages past the last batch return an empty list. Every call is recorded.
    """

    def __init__(self, batches: List[List[CatalogEntry]], error: Optional[Exception] = None):
        self.batches = batches
        self.error = error
        self.calls = []

    async def fetch_page(self, page: int, per_page: int) -> List[CatalogEntry]:
        self.calls.append((page, per_page))
        # Yield so concurrent refreshes interleave
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if page - 1 < len(self.batches):
            return list(self.batches[page - 1])
        return []


class FailingPutStore(MemoryKVStore):
    """KV store whose writes always fail."""

    async def put(self, key: str, value: str) -> None:
        raise RuntimeError("KV write failed")


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def config():
    return RelayConfig(
        account_id="account-123",
        api_key="key-456",
        api_base="https://api.test/client/v4",
        batch_size=100,
        cache_ttl=timedelta(hours=24),
    )


@pytest.fixture
def store():
    return MemoryKVStore()


@pytest.fixture
def catalog():
    return [
        make_entry("abc123", "cat.png", ["https://x/abc123/public"]),
        make_entry("def456", "dog.jpg"),
        make_entry("ghi789", "report-2024.pdf"),
    ]


@pytest.fixture
def source(catalog):
    return FakeCatalogSource([catalog])


@pytest.fixture
def fetcher(config, store, source):
    return CatalogFetcher(config, store, source)


@pytest.fixture
def resolver(config, store, fetcher):
    return LookupResolver(config, store, fetcher)
