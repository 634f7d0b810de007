"""
Web page fetcher built on aiohttp.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict
from dataclasses import dataclass, field
from aiohttp import ClientSession, ClientTimeout, ClientError


class FetchError(Exception):
    """Transport failure: DNS, connection, TLS, timeout or malformed response."""
    pass


class BodyReadError(FetchError):
    """The response arrived but its body could not be consumed."""
    pass


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    final_url: str
    status_code: int
    content_type: Optional[str] = None
    body: bytes = b''
    headers: Dict[str, str] = field(default_factory=dict)
    fetch_time: float = 0.0


class WebFetcher:
    """
    Fetches web pages over a shared aiohttp session.

    Redirects are followed by aiohttp. Any HTTP status is returned as content;
    only transport and body failures raise.
    """

    def __init__(self, user_agent: str, request_timeout: float = 30,
                 max_concurrent_requests: int = 10, max_content_size: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_concurrent_requests = max_concurrent_requests
        self.max_content_size = max_content_size

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_concurrent_requests * 2,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.debug("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The absolute URL to fetch

        Returns:
            FetchResult with status, content type, post-redirect URL and body

        Raises:
            FetchError: the request could not be completed
            BodyReadError: the body could not be read or is too large
        """
        if self.session is None:
            await self.start()

        start_time = time.time()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(url) as response:
                body = await self._read_body(response)
                result = FetchResult(
                    url=url,
                    final_url=str(response.url),
                    status_code=response.status,
                    content_type=response.headers.get('Content-Type'),
                    body=body,
                    headers=dict(response.headers),
                    fetch_time=time.time() - start_time
                )

        except BodyReadError:
            self.stats['failed_requests'] += 1
            raise

        except asyncio.TimeoutError as e:
            self.stats['failed_requests'] += 1
            raise FetchError(f"Get {url}: request timeout") from e

        except (ClientError, ValueError) as e:
            # aiohttp raises ValueError-derived errors for unusable URLs
            self.stats['failed_requests'] += 1
            raise FetchError(f"Get {url}: {e}") from e

        self.stats['successful_requests'] += 1
        self.stats['total_bytes_downloaded'] += len(result.body)
        self.logger.debug(f"Fetched {url}: {result.status_code} ({len(result.body)} bytes)")
        return result

    async def _read_body(self, response: aiohttp.ClientResponse) -> bytes:
        """Read the response body, enforcing the size limit."""
        content_length = response.headers.get('Content-Length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_size:
            raise BodyReadError(f"Read {response.url}: content too large ({content_length} bytes)")

        chunks = []
        size = 0
        try:
            async for chunk in response.content.iter_chunked(8192):
                size += len(chunk)
                if size > self.max_content_size:
                    raise BodyReadError(f"Read {response.url}: content exceeded {self.max_content_size} bytes")
                chunks.append(chunk)
        except (ClientError, asyncio.TimeoutError) as e:
            raise BodyReadError(f"Read {response.url}: {e}") from e

        return b''.join(chunks)

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
