"""
HTTP Content Extractor

Fetches a page over HTTP with a single-shot timeout and extracts its main
text and title with trafilatura.
"""

import asyncio
import logging
from typing import Optional

import httpx
import trafilatura

from tab_ops_exceptions import InvalidUrlError, ProviderError, ProviderTimeoutError
from utils.rate_limiter import ProviderRateLimiters
from .base import ContentProvider, ExtractedContent
from ..enrichment_exceptions import ContentExtractionError

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class HttpContentExtractor(ContentProvider):
    """
    Content provider backed by httpx and trafilatura.

    Pages that are not HTML, or whose extracted text is shorter than
    `min_content_length`, yield an empty ExtractedContent rather than an
    error: the page exists, it simply has nothing worth summarizing.

    Example:
        ```python
        extractor = HttpContentExtractor(timeout=10.0)
        page = await extractor.extract_page_content("https://stripe.com/docs")
        print(page.title, len(page.content))
        await extractor.close()
        ```
    """

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = "Mozilla/5.0 (compatible; TabOpsBot/0.1)",
        min_content_length: int = 50,
        rate_limiters: Optional[ProviderRateLimiters] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.timeout = timeout
        self.min_content_length = min_content_length
        self._rate_limiters = rate_limiters
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def extract_page_content(self, url: str) -> ExtractedContent:
        """
        Fetch `url` and extract its main content.

        Args:
            url: Page URL (http or https)

        Returns:
            Extracted title and text; empty content for non-HTML or thin pages

        Raises:
            InvalidUrlError: If the URL is malformed or the host is unresolvable
            ProviderTimeoutError: If the fetch exceeds the timeout
            ProviderError: For HTTP error statuses (429 as QuotaExceededError)
            ContentExtractionError: For other transport failures
        """
        if not url or not url.lower().startswith(("http://", "https://")):
            raise InvalidUrlError(f"Invalid URL: {url!r}")

        if self._rate_limiters is not None:
            await self._rate_limiters.acquire("content")

        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(f"Content fetch timed out after {self.timeout}s: {url}") from e
        except httpx.InvalidURL as e:
            raise InvalidUrlError(f"Invalid URL: {url}") from e
        except httpx.ConnectError as e:
            if "name or service not known" in str(e).lower() or "nodename" in str(e).lower():
                raise InvalidUrlError(f"ERR_NAME_NOT_RESOLVED: {url}") from e
            raise ContentExtractionError(f"Connection failed for {url}: {e}") from e
        except httpx.HTTPError as e:
            raise ContentExtractionError(f"Content fetch failed for {url}: {e}") from e

        if response.status_code >= 400:
            raise ProviderError.from_status(
                f"Content fetch for {url} returned HTTP {response.status_code}",
                response.status_code
            )

        content_type = response.headers.get("content-type", "").lower()
        if content_type and not content_type.startswith(HTML_CONTENT_TYPES):
            logger.debug(f"Skipping non-HTML content ({content_type}) at {url}")
            return ExtractedContent()

        return await asyncio.to_thread(self._extract, response.text, url)

    def _extract(self, html: str, url: str) -> ExtractedContent:
        text = trafilatura.extract(html, url=url, include_comments=False) or ""
        metadata = trafilatura.extract_metadata(html, default_url=url)
        title = metadata.title if metadata is not None else None

        if len(text.strip()) < self.min_content_length:
            logger.debug(f"Extracted content too short ({len(text.strip())} chars) at {url}")
            return ExtractedContent(title=title, content="")

        return ExtractedContent(title=title, content=text)
