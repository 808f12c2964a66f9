"""
Feed Fetcher
============

Retrieves raw feed documents over HTTP with a bounded timeout.

Synchronous fetching uses a requests session; batches are fetched
concurrently with aiohttp. Every failure is raised as a FeedFetchError
carrying an error code and a message suitable for end users.
"""

import asyncio
import ssl
import time
from typing import Dict, List, Mapping, Optional, Union

import aiohttp
import certifi
import requests

from feedlens.analysis.models import RawDocument
from feedlens.config.settings import FetchSettings, get_settings
from feedlens.utils.exceptions import ErrorCode, FeedFetchError, ValidationError
from feedlens.utils.logging import get_logger_for_component
from feedlens.utils.validators import URLValidator

ACCEPT_HEADER = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"

TIMEOUT_MESSAGE = "Request timed out. The feed may be slow or unavailable."
UNREACHABLE_MESSAGE = "Could not reach the feed URL. Please check if the URL is correct."
NOT_FOUND_MESSAGE = "Feed not found (404). Please check if the URL is correct."
REDIRECT_MESSAGE = "The feed URL redirected too many times."


def decode_body(content: bytes, charset: Optional[str]) -> str:
    """Decode a response body, trusting only an explicitly declared charset."""
    if charset:
        try:
            return content.decode(charset, errors="replace").lstrip("\ufeff")
        except LookupError:
            pass
    return content.decode("utf-8", errors="replace").lstrip("\ufeff")


def _charset_from_headers(headers: Mapping[str, str]) -> Optional[str]:
    content_type = headers.get("content-type") or headers.get("Content-Type") or ""
    for part in content_type.split(";"):
        name, _, value = part.strip().partition("=")
        if name.lower() == "charset" and value:
            return value.strip("\"'")
    return None


def http_status_error(feed_url: str, status: int, reason: str = "") -> FeedFetchError:
    """Build the fetch error for a non-success HTTP status."""
    if status == 404:
        return FeedFetchError(
            f"HTTP 404 fetching {feed_url}",
            feed_url=feed_url,
            error_code=ErrorCode.FEED_NOT_FOUND,
            user_message=NOT_FOUND_MESSAGE,
            recoverable=False,
        )
    if status in (401, 403):
        return FeedFetchError(
            f"HTTP {status} fetching {feed_url}",
            feed_url=feed_url,
            error_code=ErrorCode.FEED_ACCESS_DENIED,
            user_message=f"Access to the feed was denied (HTTP {status}).",
            recoverable=False,
        )
    return FeedFetchError(
        f"HTTP {status} fetching {feed_url}" + (f" ({reason})" if reason else ""),
        feed_url=feed_url,
        error_code=ErrorCode.FEED_HTTP_ERROR,
        user_message=f"The feed server responded with HTTP {status}.",
        recoverable=status >= 500,
    )


def _timeout_error(feed_url: str, timeout: int) -> FeedFetchError:
    return FeedFetchError(
        f"Request timeout after {timeout}s: {feed_url}",
        feed_url=feed_url,
        error_code=ErrorCode.FEED_FETCH_TIMEOUT,
        user_message=TIMEOUT_MESSAGE,
    )


def _unreachable_error(feed_url: str, cause: Exception) -> FeedFetchError:
    return FeedFetchError(
        f"Could not connect to {feed_url}: {cause}",
        feed_url=feed_url,
        error_code=ErrorCode.FEED_UNREACHABLE,
        user_message=UNREACHABLE_MESSAGE,
    )


def _redirect_error(feed_url: str, cause: Exception) -> FeedFetchError:
    return FeedFetchError(
        f"Too many redirects for {feed_url}: {cause}",
        feed_url=feed_url,
        error_code=ErrorCode.FEED_NETWORK_ERROR,
        user_message=REDIRECT_MESSAGE,
        recoverable=False,
    )


class FeedFetcher:
    """HTTP fetcher producing RawDocuments for the analysis engine."""

    def __init__(self, settings: Optional[FetchSettings] = None):
        """Initialize feed fetcher.

        Args:
            settings: Fetch configuration (defaults from global settings)
        """
        self.settings = settings or get_settings().fetch
        self.logger = get_logger_for_component("fetcher")

        self.session = requests.Session()
        self.session.max_redirects = self.settings.max_redirects
        self.session.headers.update(self._headers())

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    def _headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.settings.user_agent,
            "Accept": ACCEPT_HEADER,
        }

    def _validated(self, feed_url: str) -> str:
        try:
            return URLValidator.validate_feed_url(feed_url)
        except ValidationError as e:
            raise FeedFetchError(
                str(e),
                feed_url=feed_url,
                error_code=ErrorCode.FEED_INVALID_URL,
                user_message=e.user_message,
                recoverable=False,
            ) from e

    def fetch(self, feed_url: str) -> RawDocument:
        """
        Fetch a feed document.

        Args:
            feed_url: Feed URL to fetch

        Returns:
            RawDocument with the decoded body

        Raises:
            FeedFetchError: If the document cannot be retrieved
        """
        url = self._validated(feed_url)
        timeout = self.settings.request_timeout

        self.logger.info(f"Fetching feed: {url}")
        start_time = time.time()

        try:
            response = self.session.get(url, timeout=timeout)
        except requests.exceptions.Timeout as e:
            self.logger.warning(f"Feed fetch timeout for {url} after {timeout}s")
            raise _timeout_error(feed_url, timeout) from e
        except requests.exceptions.TooManyRedirects as e:
            raise _redirect_error(feed_url, e) from e
        except requests.exceptions.ConnectionError as e:
            self.logger.warning(f"Feed host unreachable for {url}: {e}")
            raise _unreachable_error(feed_url, e) from e
        except requests.RequestException as e:
            self.logger.error(f"Failed to fetch feed {url}: {e}")
            raise FeedFetchError(
                f"Failed to fetch feed {url}: {e}",
                feed_url=feed_url,
                user_message=str(e) or "Failed to fetch feed",
            ) from e

        if response.status_code >= 400:
            self.logger.warning(f"Feed fetch failed for {url}: HTTP {response.status_code}")
            raise http_status_error(feed_url, response.status_code, response.reason or "")

        text = decode_body(response.content, _charset_from_headers(response.headers))
        self.logger.debug(
            f"Feed fetched in {time.time() - start_time:.2f}s, size: {len(response.content)} bytes"
        )
        return RawDocument(text=text, source_url=feed_url)

    async def fetch_async(self, feed_url: str, session: aiohttp.ClientSession) -> RawDocument:
        """
        Async version of fetch for concurrent processing.

        Args:
            feed_url: Feed URL to fetch
            session: aiohttp session for making requests

        Returns:
            RawDocument with the decoded body

        Raises:
            FeedFetchError: If the document cannot be retrieved
        """
        url = self._validated(feed_url)
        timeout = self.settings.request_timeout

        self.logger.info(f"Fetching feed (async): {url}")

        try:
            async with session.get(url, max_redirects=self.settings.max_redirects) as response:
                if response.status >= 400:
                    raise http_status_error(feed_url, response.status, response.reason or "")
                content = await response.read()
                charset = response.charset
        except asyncio.TimeoutError as e:
            self.logger.warning(f"Feed fetch timeout for {url} after {timeout}s")
            raise _timeout_error(feed_url, timeout) from e
        except aiohttp.TooManyRedirects as e:
            raise _redirect_error(feed_url, e) from e
        except aiohttp.ClientConnectorError as e:
            self.logger.warning(f"Feed host unreachable for {url}: {e}")
            raise _unreachable_error(feed_url, e) from e
        except aiohttp.ClientError as e:
            self.logger.error(f"Failed to fetch feed {url}: {e}")
            raise FeedFetchError(
                f"Failed to fetch feed {url}: {e}",
                feed_url=feed_url,
                user_message=str(e) or "Failed to fetch feed",
            ) from e

        return RawDocument(text=decode_body(content, charset), source_url=feed_url)

    async def fetch_many(
        self, feed_urls: List[str]
    ) -> Dict[str, Union[RawDocument, FeedFetchError]]:
        """
        Fetch multiple feeds concurrently.

        Args:
            feed_urls: Feed URLs to fetch

        Returns:
            Mapping of each URL to its document, or to the error it failed with
        """
        connector = aiohttp.TCPConnector(
            ssl=self.ssl_context,
            limit=self.settings.max_concurrent,
            limit_per_host=2,
        )
        timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout)

        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=self._headers()
        ) as session:
            self.logger.info(f"Fetching {len(feed_urls)} feeds concurrently")
            outcomes = await asyncio.gather(
                *(self._fetch_or_error(url, session) for url in feed_urls)
            )

        results = dict(zip(feed_urls, outcomes))
        failed = [url for url, outcome in results.items() if isinstance(outcome, FeedFetchError)]
        self.logger.info(f"Successfully fetched {len(results) - len(failed)}/{len(feed_urls)} feeds")
        if failed:
            self.logger.warning(f"Failed feeds: {failed}")
        return results

    async def _fetch_or_error(
        self, feed_url: str, session: aiohttp.ClientSession
    ) -> Union[RawDocument, FeedFetchError]:
        try:
            return await self.fetch_async(feed_url, session)
        except FeedFetchError as e:
            return e

    def close(self) -> None:
        self.session.close()
