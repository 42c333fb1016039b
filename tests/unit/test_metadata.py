from __future__ import annotations

import httpx
import pytest

from src.services.errors import BlockedURLError, InvalidURLError
from src.services.metadata import MetadataExtractor, parse_metadata, require_http_url, validate_public_url

OG_PAGE = """
<html>
  <head>
    <title>Fallback title</title>
    <meta property="og:title" content=" Lemon Tart ">
    <meta property="og:description" content="Bright and sharp.">
    <meta property="og:image" content="/img/tart.jpg">
    <meta property="og:site_name" content="Bakes">
    <meta name="description" content="Plain description">
  </head>
  <body></body>
</html>
"""

TWITTER_PAGE = """
<html>
  <head>
    <meta name="twitter:title" content="Trail Loop">
    <meta name="twitter:description" content="Five miles.">
    <meta name="twitter:image" content="https://cdn.example.com/loop.png">
  </head>
</html>
"""

PLAIN_PAGE = """
<html>
  <head>
    <title> Just a title </title>
    <meta name="description" content="Only the basics">
  </head>
</html>
"""


def _extractor(handler) -> MetadataExtractor:
    return MetadataExtractor(
        timeout=2.0,
        block_private_hosts=False,
        transport=httpx.MockTransport(handler),
    )


class TestParseMetadata:
    def test_open_graph(self) -> None:
        metadata = parse_metadata(OG_PAGE, "https://bakes.example.com/tart")

        assert metadata.title == "Lemon Tart"
        assert metadata.description == "Bright and sharp."
        assert metadata.image == "https://bakes.example.com/img/tart.jpg"
        assert metadata.url == "https://bakes.example.com/tart"
        assert metadata.site == "Bakes"

    def test_twitter_fallback(self) -> None:
        metadata = parse_metadata(TWITTER_PAGE, "https://trails.example.com/loop")

        assert metadata.title == "Trail Loop"
        assert metadata.description == "Five miles."
        assert metadata.image == "https://cdn.example.com/loop.png"
        assert metadata.site == "trails.example.com"

    def test_html_fallback(self) -> None:
        metadata = parse_metadata(PLAIN_PAGE, "https://example.com/page")

        assert metadata.title == "Just a title"
        assert metadata.description == "Only the basics"
        assert metadata.image is None

    def test_image_resolved_against_final_url(self) -> None:
        metadata = parse_metadata(OG_PAGE, "https://short.link/x", base_url="https://bakes.example.com/tart")
        assert metadata.image == "https://bakes.example.com/img/tart.jpg"


class TestUrlValidation:
    def test_require_http_url_returns_host(self) -> None:
        assert require_http_url("https://example.com/path") == "example.com"

    @pytest.mark.parametrize("url", ["", "ftp://example.com/file", "not a url", "https://"])
    def test_require_http_url_rejects(self, url: str) -> None:
        with pytest.raises(InvalidURLError):
            require_http_url(url)

    def test_localhost_blocked(self) -> None:
        with pytest.raises(BlockedURLError):
            validate_public_url("http://localhost:8000/admin")

    def test_loopback_ip_blocked(self) -> None:
        with pytest.raises(BlockedURLError):
            validate_public_url("http://127.0.0.1/")

    def test_unbalanced_bracket_rejected(self) -> None:
        with pytest.raises(InvalidURLError):
            require_http_url("http://[oops/x")

    def test_overlong_label_rejected(self) -> None:
        with pytest.raises(InvalidURLError):
            validate_public_url("http://" + "a" * 64 + ".com/")


class TestMetadataExtractor:
    def test_success(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["User-Agent"]
            return httpx.Response(200, headers={"content-type": "text/html; charset=utf-8"}, text=OG_PAGE)

        result = _extractor(handler).extract("https://bakes.example.com/tart")

        assert result.ok is True
        assert result.error is None
        assert result.metadata.title == "Lemon Tart"

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = _extractor(handler).extract("https://slow.example.com")

        assert result.ok is False
        assert "timeout" in result.error.lower()

    def test_http_error_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, headers={"content-type": "text/html"}, text="missing")

        result = _extractor(handler).extract("https://example.com/gone")

        assert result.ok is False
        assert "HTTP 404" in result.error

    def test_non_html_content(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-type": "application/json"}, text="{}")

        result = _extractor(handler).extract("https://api.example.com/data")

        assert result.ok is False
        assert "application/json" in result.error

    def test_page_without_metadata(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-type": "text/html"}, text="<html><body>hi</body></html>")

        result = _extractor(handler).extract("https://example.com/blank")

        assert result.ok is False
        assert result.error == "No metadata found"

    def test_invalid_url_never_fetches(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        result = _extractor(handler).extract("javascript:alert(1)")

        assert result.ok is False
        assert calls == []

    def test_private_host_blocked_by_default(self) -> None:
        extractor = MetadataExtractor(transport=httpx.MockTransport(lambda request: httpx.Response(200)))

        result = extractor.extract("http://127.0.0.1:9000/")

        assert result.ok is False
        assert "Blocked" in result.error

    def test_unbalanced_ipv6_bracket_is_invalid(self) -> None:
        result = MetadataExtractor(timeout=1.0).extract("http://[oops/recipe")

        assert result.ok is False
        assert "Invalid URL" in result.error

    def test_overlong_host_label_is_invalid(self) -> None:
        result = MetadataExtractor(timeout=1.0).extract("http://" + "a" * 64 + ".com/recipe")

        assert result.ok is False
        assert result.error

    def test_redirect_to_internal_address_is_never_fetched(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(302, headers={"location": "http://169.254.169.254/latest/meta-data"})

        extractor = MetadataExtractor(transport=httpx.MockTransport(handler))

        result = extractor.extract("http://93.184.216.34/recipe")

        assert result.ok is False
        assert "Blocked" in result.error
        assert seen == ["http://93.184.216.34/recipe"]
