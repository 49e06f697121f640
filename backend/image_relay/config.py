"""
Image Relay Configuration

Settings are collected once into a RelayConfig and handed to each component
at construction. Credentials may also live in the KV store (written by the
setup page); environment values take precedence.
"""

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Tuple

from .errors import ConfigurationError

# Cloudflare Images API (v4)
DEFAULT_API_BASE = "https://api.cloudflare.com/client/v4"

# Cloudflare returns at most 100 images per page
DEFAULT_BATCH_SIZE = 100

# Expirations: 24 hours steady state, 1 hour, 30 seconds for local iteration
TTL_LONG_TERM = timedelta(hours=24)
TTL_HOURLY = timedelta(hours=1)
TTL_DEV = timedelta(seconds=30)

# KV keys holding credentials
KV_ACCOUNT_ID = "ACCOUNT_ID"
KV_API_KEY = "API_KEY"


def _env_number(name: str, default, cast=int):
    """Read a numeric environment variable."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


@dataclass
class RelayConfig:
    """Configuration for catalog fetching, caching and relaying."""
    # Credentials (fall back to the KV store when unset)
    account_id: Optional[str] = None
    api_key: Optional[str] = None

    # Remote API
    api_base: str = DEFAULT_API_BASE
    batch_size: int = DEFAULT_BATCH_SIZE
    timeout: float = 30.0           # HTTP timeout in seconds

    # Cache
    cache_ttl: timedelta = TTL_LONG_TERM
    cache_dir: str = "./relay_cache"

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """Build a config from RELAY_* environment variables."""
        if os.getenv("RELAY_DEV_MODE", "").lower() == "true":
            cache_ttl = TTL_DEV
        else:
            ttl_seconds = _env_number("RELAY_CACHE_TTL", None)
            cache_ttl = TTL_LONG_TERM if ttl_seconds is None else timedelta(seconds=ttl_seconds)

        return cls(
            account_id=os.getenv("RELAY_ACCOUNT_ID") or None,
            api_key=os.getenv("RELAY_API_KEY") or None,
            api_base=os.getenv("RELAY_API_BASE", DEFAULT_API_BASE).rstrip("/"),
            batch_size=_env_number("RELAY_BATCH_SIZE", DEFAULT_BATCH_SIZE),
            timeout=_env_number("RELAY_HTTP_TIMEOUT", 30.0, float),
            cache_ttl=cache_ttl,
            cache_dir=os.getenv("RELAY_CACHE_DIR", "./relay_cache"),
        )


async def resolve_credentials(config: RelayConfig, store) -> Tuple[str, str]:
    """
    Return (account_id, api_key), preferring config over the KV store.

    Raises:
        ConfigurationError: if either value is missing from both.
    """
    account_id = config.account_id
    api_key = config.api_key

    if store is not None:
        if not account_id:
            account_id = await store.get(KV_ACCOUNT_ID)
        if not api_key:
            api_key = await store.get(KV_API_KEY)

    missing = [
        name for name, value in (("account id", account_id), ("API key", api_key))
        if not value
    ]
    if missing:
        raise ConfigurationError(f"Missing Cloudflare credentials: {', '.join(missing)}")

    return account_id, api_key
