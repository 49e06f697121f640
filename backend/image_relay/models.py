"""
Image Relay Models

Pydantic models for catalog records and request bodies.
"""

from __future__ import annotations
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from .expiry import parse_timestamp


# ============================================
# Catalog Models
# ============================================

class CatalogEntry(BaseModel):
    """
    One image record as returned by the Cloudflare Images API.

    Field names on the wire follow the API (``requireSignedURLs``); serialize
    with ``by_alias=True`` to keep that shape. ``uploaded`` stays the raw API
    string and unknown fields (``meta``, ...) are kept, so cached and returned
    records match what Cloudflare sent.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str
    filename: str
    uploaded: Optional[str] = None
    requires_signed_access: bool = Field(False, alias="requireSignedURLs")
    variants: List[str] = Field(default_factory=list)

    @property
    def uploaded_at(self) -> Optional[datetime]:
        return parse_timestamp(self.uploaded)

    def to_wire(self) -> dict:
        """Dump to the JSON-compatible API shape."""
        return self.model_dump(mode="json", by_alias=True)


class ImagesResult(BaseModel):
    """``result`` object of an images list response"""
    images: List[CatalogEntry]


class ImagesPage(BaseModel):
    """One page of ``GET /accounts/{id}/images/v1``"""
    model_config = ConfigDict(extra="ignore")

    result: ImagesResult


# ============================================
# Request Models
# ============================================

class SetupRequest(BaseModel):
    """Credentials posted by the setup page"""
    account_id: str = Field(..., alias="ACCOUNT_ID")
    api_key: str = Field(..., alias="API_KEY")
