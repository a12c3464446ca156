"""
Async page fetching for the research pipelines.

One shared httpx.AsyncClient per fetcher. Every fetch carries a timeout
and runs challenge-page detection before the HTML is handed on, so the
pipelines never score content from a CAPTCHA or bot wall.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

import httpx

from sage.core.config import FetchSettings, get_settings
from sage.core.exceptions import BotProtectionDetected, NetworkFailure
from sage.identity.bot_protection import bot_protection_signal

logger = logging.getLogger(__name__)

ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
ACCEPT_LANGUAGE = "en-US,en;q=0.9"


@dataclass
class FetchedPage:
    url: str
    final_url: str
    status_code: int
    html: str


class PageFetcher:
    """Fetches candidate pages with bounded concurrency."""

    def __init__(
        self,
        settings: Optional[FetchSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings().fetch
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.timeout, connect=10.0),
                follow_redirects=True,
            )
        return self._client

    async def close(self):
        """Close the HTTP client if this fetcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    @property
    def headers(self) -> dict:
        return {
            "User-Agent": self.settings.user_agent,
            "Accept": ACCEPT,
            "Accept-Language": ACCEPT_LANGUAGE,
        }

    async def fetch(self, url: str) -> FetchedPage:
        """
        Fetch one page.

        Raises:
            BotProtectionDetected: a challenge page came back instead of content
            NetworkFailure: timeout, transport error, or HTTP error status
        """
        client = await self._get_client()
        try:
            response = await client.get(url, headers=self.headers)
        except httpx.TimeoutException as e:
            raise NetworkFailure(url, "timeout", context={"timeout": self.settings.timeout}) from e
        except httpx.RequestError as e:
            raise NetworkFailure(url, f"request failed: {type(e).__name__}") from e

        html = response.text
        signal = bot_protection_signal(html)
        if signal:
            logger.warning(f"[Fetch] bot protection on {url[:80]}: {signal}")
            raise BotProtectionDetected(url, signal, context={"status": response.status_code})

        if response.status_code >= 400:
            raise NetworkFailure(url, f"HTTP {response.status_code}")

        logger.debug(f"[Fetch] {url[:80]} -> {response.status_code}, {len(html)} chars")
        return FetchedPage(url, str(response.url), response.status_code, html)

    async def fetch_many(self, urls: List[str]) -> List[Union[FetchedPage, Exception]]:
        """
        Fetch pages concurrently, at most `max_concurrency` at a time.

        Results line up with `urls`; a failed fetch is returned in its slot
        as the exception instead of aborting the batch.
        """
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def bounded(url: str) -> FetchedPage:
            async with semaphore:
                return await self.fetch(url)

        results = await asyncio.gather(*(bounded(u) for u in urls), return_exceptions=True)
        failed = sum(1 for r in results if isinstance(r, Exception))
        logger.info(f"[Fetch] {len(urls) - failed}/{len(urls)} pages fetched")
        return list(results)
