from __future__ import annotations

import logging
import re
import time
from typing import Optional, Protocol

import httpx
from bs4 import BeautifulSoup

from listing_optimizer.app.domain.models import ListingContent

from .errors import (
    FetchFailedError,
    NetworkTimeoutError,
    OperationCancelledError,
    ProductNotFoundError,
)
from .ids import normalize_asin

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.amazon.com"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
WHITESPACE_PATTERN = re.compile(r"\s+")
BOT_CHECK_MARKERS = (
    "validateCaptcha",
    "Enter the characters you see below",
    "api-services-support@amazon.com",
)
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class _RetryableFetchError(FetchFailedError):
    pass


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...

    def wait(self, timeout: Optional[float] = None) -> bool: ...


def _clean_text(value: str | None) -> str:
    if not value:
        return ""
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def _is_bot_check(html: str) -> bool:
    return any(marker in html for marker in BOT_CHECK_MARKERS)


def _extract_title(soup: BeautifulSoup) -> str:
    node = soup.select_one("#productTitle") or soup.select_one("#title")
    return _clean_text(node.get_text()) if node else ""


def _extract_bullets(soup: BeautifulSoup) -> list[str]:
    items = soup.select("#feature-bullets ul li")
    bullets: list[str] = []
    for item in items:
        # hidden "see more" toggles carry no text of their own
        if "aok-hidden" in (item.get("class") or []):
            continue
        text = _clean_text(item.get_text(" "))
        if text:
            bullets.append(text)
    return bullets


def _extract_description(soup: BeautifulSoup) -> str:
    node = soup.select_one("#productDescription")
    if node:
        text = _clean_text(node.get_text(" "))
        if text:
            return text

    meta = soup.select_one('meta[name="description"]')
    if meta and meta.get("content"):
        return _clean_text(meta["content"])
    return ""


def _extract_image(soup: BeautifulSoup) -> str | None:
    node = soup.select_one("#landingImage") or soup.select_one("#imgBlkFront")
    if not node:
        return None
    return _clean_text(node.get("data-old-hires")) or _clean_text(node.get("src")) or None


def parse_product_page(html: str) -> ListingContent:
    if _is_bot_check(html):
        raise FetchFailedError("Amazon returned a bot-check page instead of the product")

    soup = BeautifulSoup(html, "html.parser")
    title = _extract_title(soup)
    if not title:
        raise FetchFailedError("Could not find a product title on the page")

    return ListingContent(
        title=title,
        bullets=_extract_bullets(soup),
        description=_extract_description(soup),
        image_ref=_extract_image(soup),
    )


class AmazonProductFetcher:
    def __init__(
        self,
        client: httpx.Client | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        max_retries: int = 2,
        retry_backoff_seconds: float = 1.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.retry_backoff_seconds = retry_backoff_seconds
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={
                "User-Agent": user_agent,
                "Accept-Language": "en-US,en;q=0.9",
                "Accept": "text/html,application/xhtml+xml",
            },
        )

    def product_url(self, asin: str) -> str:
        return f"{self.base_url}/dp/{asin}"

    def fetch(self, asin: str, cancel_event: Optional[CancelSignal] = None) -> ListingContent:
        canonical = normalize_asin(asin)
        url = self.product_url(canonical)

        attempt = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelledError(f"Fetch of {url} cancelled after {attempt} attempts")
            try:
                html = self._get_page(url)
                return parse_product_page(html)
            except (NetworkTimeoutError, _RetryableFetchError) as error:
                if attempt >= self.max_retries:
                    raise FetchFailedError(f"Giving up on {url} after {attempt + 1} attempts: {error}") from error
                delay = self.retry_backoff_seconds * (2 ** attempt)
                logger.warning("fetch.retry asin=%s attempt=%d delay=%.1fs error=%s", canonical, attempt + 1, delay, error)
                self._backoff(delay, cancel_event)
                attempt += 1

    def _backoff(self, delay: float, cancel_event: Optional[CancelSignal]) -> None:
        if cancel_event is None:
            time.sleep(delay)
        else:
            # returns early once the caller cancels; the loop re-checks the flag
            cancel_event.wait(delay)

    def _get_page(self, url: str) -> str:
        try:
            response = self._client.get(url)
        except httpx.TimeoutException as error:
            raise NetworkTimeoutError(url, self.timeout) from error
        except httpx.TransportError as error:
            raise _RetryableFetchError(f"Network error fetching product: {error}") from error

        if response.status_code == 404:
            raise ProductNotFoundError(f"Product page not found: {url}")
        if response.status_code in RETRYABLE_STATUS_CODES:
            raise _RetryableFetchError(f"HTTP {response.status_code} from {url}")
        if response.status_code >= 400:
            raise FetchFailedError(f"HTTP {response.status_code} from {url}")

        return response.text

    def close(self) -> None:
        self._client.close()

