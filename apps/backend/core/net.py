"""
HTTP page fetcher for the jobs.ge listing pages.

One GET per call with a fixed client identity and timeout. No retries here:
a failed page surfaces as FetchFailed and the caller decides what to do.
"""
import time
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from core.errors import FetchFailed

logger = logging.getLogger(__name__)

DEFAULT_UA = "BetterJobsGE/1.0 (+contact@email)"
DEFAULT_ACCEPT_LANGUAGE = "ka, en;q=0.8"
DEFAULT_TIMEOUT = 20.0


@dataclass(frozen=True)
class ClientConfig:
    """Immutable HTTP client identity: headers and timeout"""

    user_agent: str = DEFAULT_UA
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE
    timeout_seconds: float = DEFAULT_TIMEOUT
    follow_redirects: bool = True

    def headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept-Language": self.accept_language,
        }

    @classmethod
    def from_settings(cls, settings) -> "ClientConfig":
        return cls(
            user_agent=settings.user_agent,
            accept_language=settings.accept_language,
            timeout_seconds=settings.timeout_seconds,
        )


class PageFetcher:
    """Fetches listing pages as text"""

    def __init__(self, config: ClientConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers=config.headers(),
            timeout=httpx.Timeout(config.timeout_seconds),
            follow_redirects=config.follow_redirects,
        )

    async def fetch(self, url: str) -> str:
        """
        GET a page and return the response body.

        Raises:
            FetchFailed: on timeout, connection error, or non-2xx status
        """
        start_time = time.time()
        try:
            response = await self._client.get(url, headers=self.config.headers())
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"[net] Timeout fetching {url}: {e}")
            raise FetchFailed(url, f"timeout after {self.config.timeout_seconds}s", cause=e) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"[net] HTTP {status} fetching {url}")
            raise FetchFailed(url, f"HTTP {status}", status_code=status, cause=e) from e
        except httpx.HTTPError as e:
            logger.error(f"[net] Error fetching {url}: {e}")
            raise FetchFailed(url, str(e) or e.__class__.__name__, cause=e) from e

        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(f"[net] GET {response.status_code} {url} ({len(response.content)} bytes, {elapsed_ms}ms)")
        return response.text

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
