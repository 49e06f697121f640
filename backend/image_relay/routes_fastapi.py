"""
Image Relay API Routes

Provides endpoints for:
- Expiring the cached catalog
- Saving Cloudflare credentials (setup page)
- Looking up an image by filename or id
- Relaying an image variant under its original filename

Routes are registered in that order: the relay route is a catch-all.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .errors import RelayError
from .models import SetupRequest
from .relay import RelayHandler

logger = logging.getLogger(__name__)

# ============================================
# Router
# ============================================

router = APIRouter(tags=["Image Relay"])


def get_relay_handler(request: Request) -> RelayHandler:
    """Relay handler built by the application lifespan."""
    return request.app.state.relay_handler


# ============================================
# Error Handling
# ============================================

async def relay_error_handler(request: Request, exc: RelayError) -> PlainTextResponse:
    """Map relay errors to plain-text responses."""
    if exc.status_code == 404:
        logger.warning(f"[ImageRelay] {request.url.path}: {exc.message}")
    else:
        logger.error(f"[ImageRelay] {request.url.path}: {type(exc).__name__}: {exc.message}")
    return PlainTextResponse(exc.message, status_code=exc.status_code)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RelayError, relay_error_handler)


# ============================================
# Endpoints
# ============================================

@router.get("/expire-cache", response_class=PlainTextResponse)
async def expire_cache(
    images: bool = Query(True, description="Also delete the cached catalog"),
    handler: RelayHandler = Depends(get_relay_handler),
):
    """
    Expire the cached catalog manually.

    The next lookup refetches every page from Cloudflare.
    """
    return await handler.expire_cache(purge_images=images)


@router.post("/setup", response_class=PlainTextResponse)
async def setup(
    request: SetupRequest,
    handler: RelayHandler = Depends(get_relay_handler),
):
    """Save the Cloudflare account id and API key to the KV store."""
    return await handler.save_credentials(request.account_id, request.api_key)


@router.get("/lookup/{needle}")
async def lookup(needle: str, handler: RelayHandler = Depends(get_relay_handler)):
    """
    Lookup name -> id and vice versa.

    Example:
        GET /lookup/cat.png
    """
    entry = await handler.lookup(needle)
    return JSONResponse(content=entry.to_wire())


@router.get("/{image}")
@router.get("/{image}/{variant}")
async def relay_image(
    image: str,
    variant: Optional[str] = None,
    handler: RelayHandler = Depends(get_relay_handler),
):
    """
    Relay an image variant (default "public").

    Example:
        GET /cat.png/thumbnail
    """
    relayed = await handler.relay(image, variant)
    return Response(
        content=relayed.body,
        status_code=relayed.status_code,
        media_type=relayed.media_type,
        headers=relayed.headers,
    )
