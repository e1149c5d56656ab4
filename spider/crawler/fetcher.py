"""
Web page fetcher with bounded timeouts and size limits.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError

from .parser import extract_title


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[str] = None
    title: Optional[str] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.content is not None


class WebFetcher:
    """
    Fetches web pages. Failures are reported on the FetchResult, never raised.
    """

    def __init__(self, user_agent: str, request_timeout: int = 30,
                 max_concurrent_requests: int = 10,
                 max_content_bytes: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_concurrent_requests = max_concurrent_requests
        self.max_content_bytes = max_content_bytes

        self.logger = logging.getLogger(__name__)

        # Session management
        self.session: Optional[ClientSession] = None
        self.semaphore = asyncio.Semaphore(max_concurrent_requests)

        # Statistics
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
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult object containing the page text and title, or error information
        """
        if self.session is None:
            await self.start()

        start_time = time.time()

        async with self.semaphore:
            self.stats['total_requests'] += 1
            try:
                async with self.session.get(url) as response:
                    content_type = response.headers.get('content-type', '').lower()

                    if not 200 <= response.status < 300:
                        return self._failure(url, f"HTTP {response.status}", start_time,
                                             status_code=response.status)

                    if not self._is_text_content(content_type):
                        return self._failure(url, "Non-text content type", start_time,
                                             status_code=response.status)

                    content = await self._read_content_safely(response)
                    if content is None:
                        return self._failure(url, "Content too large or unreadable", start_time,
                                             status_code=response.status)

                    self.stats['successful_requests'] += 1
                    self.stats['total_bytes_downloaded'] += len(content)

                    result = FetchResult(
                        url=url,
                        status_code=response.status,
                        content=content,
                        title=extract_title(content),
                        content_type=content_type,
                        fetch_time=time.time() - start_time
                    )
                    self.logger.debug(f"Fetched {url}: {response.status} ({len(content)} chars)")
                    return result

            except asyncio.TimeoutError:
                return self._failure(url, "Request timeout", start_time)

            except ClientError as e:
                return self._failure(url, f"Client error: {e}", start_time)

            except ValueError as e:
                # yarl rejects malformed addresses with ValueError subclasses
                return self._failure(url, f"Invalid URL: {e}", start_time)

    def _failure(self, url: str, error: str, start_time: float, status_code: int = 0) -> FetchResult:
        self.stats['failed_requests'] += 1
        self.logger.warning(f"Failed to fetch {url}: {error}")
        return FetchResult(
            url=url,
            status_code=status_code,
            error=error,
            fetch_time=time.time() - start_time
        )

    def _is_text_content(self, content_type: str) -> bool:
        """Check if content type is an HTML or plain-text document."""
        if not content_type:
            return True

        text_types = [
            'text/html',
            'text/plain',
            'application/xhtml+xml'
        ]

        return any(text_type in content_type for text_type in text_types)

    async def _read_content_safely(self, response) -> Optional[str]:
        """
        Read response content up to max_content_bytes.

        Returns:
            Content string or None if too large
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_bytes:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        content_bytes = bytearray()
        async for chunk in response.content.iter_chunked(8192):
            content_bytes.extend(chunk)
            if len(content_bytes) > self.max_content_bytes:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None

        return decode_content(bytes(content_bytes), response.charset)

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()


def decode_content(content_bytes: bytes, charset: Optional[str] = None) -> str:
    """Decode a response body, falling back through common encodings."""
    encodings = [charset] if charset else []
    encodings += ['utf-8', 'latin-1', 'cp1252']

    for encoding in encodings:
        try:
            return content_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            continue

    return content_bytes.decode('utf-8', errors='ignore')
