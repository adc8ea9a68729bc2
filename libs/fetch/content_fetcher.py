from __future__ import annotations

import hashlib
import logging
import re
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from libs.core.exceptions import FetchError, ValidationError
from libs.core.models import ScrapedContent

# Some origins refuse obvious non-browser agents
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MAX_CONTENT_CHARS = 50_000
TRUNCATION_MARKER = "..."
DEFAULT_TIMEOUT = 8.0

_WHITESPACE = re.compile(r"\s+")


def validate_url(url: str) -> str:
    """Return the trimmed URL or raise :class:`ValidationError`."""
    candidate = (url or "").strip()
    if not candidate:
        raise ValidationError("url is required and cannot be empty", field="url")
    parsed = urlparse(candidate)
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.hostname:
        raise ValidationError("Invalid URL format", field="url")
    return candidate


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str | None:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return None
    value = (tag.get("content") or "").strip()
    return value or None


def extract_content(html: str, domain: str) -> ScrapedContent:
    """Turn raw markup into :class:`ScrapedContent`."""
    soup = BeautifulSoup(html, "html.parser")

    title = _meta_content(soup, property="og:title")
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip() or None
    author = _meta_content(soup, name="author")

    for node in soup(["script", "style"]):
        node.decompose()
    text = _WHITESPACE.sub(" ", soup.get_text(" ")).strip()
    if len(text) > MAX_CONTENT_CHARS:
        text = text[:MAX_CONTENT_CHARS] + TRUNCATION_MARKER

    checksum = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return ScrapedContent(
        title=title or "Untitled",
        content=text,
        author=author,
        domain=domain,
        checksum=checksum,
    )


class ContentFetcher:
    """Retrieve a page once and normalise it to plain text."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def fetch(self, url: str) -> ScrapedContent:
        url = validate_url(url)
        domain = urlparse(url).hostname or ""
        try:
            resp = self.session.get(
                url,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            self.logger.warning("Fetch timed out | url=%s", url)
            raise FetchError(
                f"Failed to scrape URL: timed out after {self.timeout:g}s"
            ) from exc
        except requests.RequestException as exc:
            self.logger.warning("Fetch failed | url=%s | error=%s", url, exc)
            raise FetchError(f"Failed to scrape URL: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            self.logger.warning("Fetch rejected | url=%s | status=%s", url, resp.status_code)
            raise FetchError(
                f"Failed to scrape URL: HTTP {resp.status_code}: {resp.reason or ''}".rstrip(": ")
            )

        return extract_content(resp.text, domain)


__all__ = [
    "ContentFetcher",
    "extract_content",
    "validate_url",
    "MAX_CONTENT_CHARS",
    "USER_AGENT",
]
