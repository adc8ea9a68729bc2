import hashlib
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests

from libs.core import FetchError, ValidationError
from libs.fetch import ContentFetcher, extract_content, validate_url
from libs.fetch.content_fetcher import MAX_CONTENT_CHARS, USER_AGENT

PAGE = """
<html>
  <head>
    <title>Fallback title</title>
    <meta property="og:title" content="Open Graph Title" />
    <meta name="author" content="Jane Doe" />
    <style>body { color: red; }</style>
  </head>
  <body>
    <h1>Hello</h1>
    <script>var x = 1;</script>
    <p>First   paragraph.</p>
    <p>Second paragraph.</p>
  </body>
</html>
"""


def make_fetcher(response=None, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return ContentFetcher(session=session, timeout=8.0), session


def test_extract_content_strips_markup():
    scraped = extract_content(PAGE, "example.com")
    assert scraped.title == "Open Graph Title"
    assert scraped.author == "Jane Doe"
    assert scraped.domain == "example.com"
    assert "var x" not in scraped.content
    assert "color: red" not in scraped.content
    assert "First paragraph. Second paragraph." in scraped.content
    assert scraped.checksum == hashlib.sha256(scraped.content.encode("utf-8")).hexdigest()


def test_extract_content_title_fallbacks():
    assert extract_content("<title> Plain </title><p>x</p>", "a.b").title == "Plain"
    assert extract_content("<p>no title</p>", "a.b").title == "Untitled"


def test_extract_content_truncates_long_pages():
    scraped = extract_content("<p>" + "a" * (MAX_CONTENT_CHARS + 10) + "</p>", "a.b")
    assert len(scraped.content) == MAX_CONTENT_CHARS + 3
    assert scraped.content.endswith("...")


def test_fetch_sends_browser_agent_and_timeout():
    fetcher, session = make_fetcher(SimpleNamespace(status_code=200, reason="OK", text=PAGE))
    scraped = fetcher.fetch("https://example.com/post")

    assert scraped.domain == "example.com"
    _, kwargs = session.get.call_args
    assert kwargs["headers"]["User-Agent"] == USER_AGENT
    assert kwargs["timeout"] == 8.0


def test_fetch_non_2xx():
    fetcher, _ = make_fetcher(SimpleNamespace(status_code=404, reason="Not Found", text=""))
    with pytest.raises(FetchError) as exc:
        fetcher.fetch("https://example.com/missing")
    assert str(exc.value) == "Failed to scrape URL: HTTP 404: Not Found"


def test_fetch_timeout():
    fetcher, _ = make_fetcher(error=requests.Timeout())
    with pytest.raises(FetchError) as exc:
        fetcher.fetch("https://slow.example.com")
    assert "timed out after 8s" in str(exc.value)


def test_fetch_connection_error():
    fetcher, _ = make_fetcher(error=requests.ConnectionError("refused"))
    with pytest.raises(FetchError) as exc:
        fetcher.fetch("https://down.example.com")
    assert "refused" in str(exc.value)


@pytest.mark.parametrize("url", ["", "   "])
def test_validate_url_empty(url):
    with pytest.raises(ValidationError) as exc:
        validate_url(url)
    assert exc.value.field == "url"


@pytest.mark.parametrize("url", ["ftp://example.com", "example.com", "https://"])
def test_validate_url_malformed(url):
    with pytest.raises(ValidationError) as exc:
        validate_url(url)
    assert str(exc.value) == "Invalid URL format"


def test_invalid_url_never_hits_network():
    fetcher, session = make_fetcher()
    with pytest.raises(ValidationError):
        fetcher.fetch("not a url")
    session.get.assert_not_called()
