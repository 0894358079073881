"""Client for the binary-object storage service.

Listing images are stored as opaque storage ids; this client resolves them
to fetchable URLs. Resolved URLs are kept in an injected bounded TTL cache.
"""

import asyncio
import logging
from typing import Iterable, Optional

import httpx

from app.config import get_settings
from app.services.ttl_cache import BoundedTTLCache

logger = logging.getLogger(__name__)

# Limit concurrent resolver requests per client
MAX_CONCURRENT_RESOLVES = 8


class StorageClient:
    """Resolves storage ids to URLs via the storage service HTTP API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        url_cache: Optional[BoundedTTLCache[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = base_url if base_url is not None else settings.storage_base_url
        self.api_key = api_key if api_key is not None else settings.storage_api_key
        self.url_cache = url_cache if url_cache is not None else BoundedTTLCache(
            maxsize=settings.image_url_cache_size,
            ttl=settings.image_url_cache_ttl_seconds,
        )
        self._transport = transport
        self._semaphore = asyncio.Semaphore(MAX_CONCURRENT_RESOLVES)

    def _get_headers(self) -> dict:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    async def resolve_url(self, storage_id: str) -> Optional[str]:
        """Resolve one storage id to a URL.

        Returns None when the object is unknown or the service fails; a
        failure here never propagates to the caller.
        """
        cached = self.url_cache.get(storage_id)
        if cached is not None:
            return cached

        try:
            async with self._semaphore:
                async with httpx.AsyncClient(transport=self._transport) as client:
                    response = await client.get(
                        f"{self.base_url}/storage/{storage_id}",
                        headers=self._get_headers(),
                        timeout=10.0,
                    )
                    if response.status_code == 404:
                        return None
                    response.raise_for_status()
                    data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to resolve storage id {storage_id}: {e}")
            return None

        url = data.get("url") if isinstance(data, dict) else None
        if url:
            self.url_cache.set(storage_id, url)
        return url

    async def resolve_urls(self, storage_ids: Optional[Iterable[str]]) -> list[str]:
        """Resolve several storage ids, dropping any that fail to resolve.

        Order of the surviving URLs follows the input order.
        """
        if not storage_ids:
            return []

        urls = await asyncio.gather(*(self.resolve_url(sid) for sid in storage_ids))
        return [url for url in urls if url]
