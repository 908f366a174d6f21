"""
HTTP Screenshot Provider

Calls an external rendering service that returns base64 data URLs for a
thumbnail and a full-height capture of a page.
"""

import hashlib
import logging
from typing import Any, Dict, Optional

import httpx

from tab_ops_exceptions import ConfigurationError, InvalidUrlError, ProviderError, ProviderTimeoutError
from utils.rate_limiter import ProviderRateLimiters
from .base import NullScreenshotStore, ScreenshotProvider, ScreenshotSet, ScreenshotStore
from ..enrichment_exceptions import ScreenshotCaptureError

logger = logging.getLogger(__name__)


class HttpScreenshotProvider(ScreenshotProvider):
    """
    Screenshot provider backed by a rendering service.

    The service is called with `POST {"url": ...}` and answers
    `{"thumbnail": <data url>, "fullHeight": <data url>}`. Each image is
    offered to the screenshot store; when the store declines, the data URL
    itself is kept. The preview reuses the thumbnail.
    """

    def __init__(
        self,
        service_url: Optional[str],
        timeout: float = 30.0,
        store: Optional[ScreenshotStore] = None,
        rate_limiters: Optional[ProviderRateLimiters] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        if not service_url:
            raise ConfigurationError("Screenshot service URL is not configured")

        self.service_url = service_url
        self.timeout = timeout
        self.store = store or NullScreenshotStore()
        self._rate_limiters = rate_limiters
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def capture_screenshots(self, url: str) -> ScreenshotSet:
        """
        Capture screenshots for a page.

        Raises:
            InvalidUrlError: If the service rejects the URL as invalid
            ProviderTimeoutError: If the service does not answer in time
            ScreenshotCaptureError: If the service fails or returns no image
        """
        if self._rate_limiters is not None:
            await self._rate_limiters.acquire("screenshots")

        try:
            response = await self._client.post(self.service_url, json={"url": url})
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"Screenshot capture timed out for {url}") from e
        except httpx.HTTPError as e:
            raise ScreenshotCaptureError(f"Screenshot service unreachable: {e}") from e

        if response.status_code >= 400:
            body = response.text[:200]
            if "invalid url" in body.lower() or "err_name_not_resolved" in body.lower():
                raise InvalidUrlError(f"Invalid URL for screenshot: {url}", status_code=response.status_code)
            raise ProviderError.from_status(
                f"Screenshot service returned HTTP {response.status_code} for {url}: {body}",
                response.status_code
            )

        payload: Dict[str, Any] = response.json()
        thumbnail = payload.get("thumbnail")
        full_height = payload.get("fullHeight") or payload.get("full_height")
        if not thumbnail and not full_height:
            raise ScreenshotCaptureError(f"Screenshot service returned no images for {url}")

        key = hashlib.sha1(url.encode("utf-8")).hexdigest()
        thumbnail_url = await self._persist(f"{key}-thumbnail", thumbnail)
        full_height_url = await self._persist(f"{key}-full", full_height)

        return ScreenshotSet(
            thumbnail=thumbnail_url,
            preview=thumbnail_url,
            full_height=full_height_url,
        )

    async def _persist(self, key: str, data_url: Optional[str]) -> Optional[str]:
        if not data_url:
            return None
        stored = await self.store.save(key, data_url)
        return stored or data_url
