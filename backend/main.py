"""
Image Relay Main Application

FastAPI application that relays Cloudflare Images under a custom domain.

Usage:
    cd backend
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from image_relay import (
    CatalogFetcher,
    FileKVStore,
    LookupResolver,
    RelayConfig,
    RelayHandler,
    register_error_handlers,
    router,
)
from image_relay.catalog_source import CloudflareImagesSource

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_relay_handler(
    config: RelayConfig,
    store,
    http_client: httpx.AsyncClient,
    source=None,
) -> RelayHandler:
    """Wire the fetcher, resolver and relay handler around one store."""
    source = source or CloudflareImagesSource(config, http_client, store)
    fetcher = CatalogFetcher(config, store, source)
    resolver = LookupResolver(config, store, fetcher)
    return RelayHandler(store, resolver, http_client)


def create_app(
    config: Optional[RelayConfig] = None,
    relay_handler: Optional[RelayHandler] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    When ``relay_handler`` is given it is used as-is and the lifespan does not
    create a store or HTTP client.
    """
    config = config or RelayConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if relay_handler is not None:
            yield
            return

        http_client = httpx.AsyncClient(timeout=config.timeout, follow_redirects=True)
        store = FileKVStore(config.cache_dir)
        handler = build_relay_handler(config, store, http_client)
        app.state.relay_handler = handler
        logger.info(f"Image relay started (cache TTL {config.cache_ttl}, batch size {config.batch_size})")

        try:
            yield
        finally:
            await handler.resolver.fetcher.drain()
            await http_client.aclose()
            logger.info("Image relay stopped")

    app = FastAPI(title="Image Relay", lifespan=lifespan)
    if relay_handler is not None:
        app.state.relay_handler = relay_handler

    register_error_handlers(app)
    app.include_router(router)
    return app


app = create_app()
