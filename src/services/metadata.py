"""Best-effort page metadata extraction for recommended links."""
from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from src.app.domain.models import MetadataResult, PageMetadata

from .errors import (
    BlockedURLError,
    FetchFailedError,
    InvalidURLError,
    NetworkTimeoutError,
    ServiceError,
    UnsupportedContentError,
)

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)
DEFAULT_TIMEOUT = 10.0


def _clean_string(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def _is_private_ip(ip_str: str) -> bool:
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return True
    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_multicast
        or ip.is_reserved
        or ip.is_unspecified
    )


def require_http_url(url: str) -> str:
    """Return the hostname of an http(s) URL, or raise InvalidURLError."""
    try:
        parsed = urlparse(url or "")
        hostname = parsed.hostname
    except ValueError as error:
        raise InvalidURLError(f"Invalid URL: {url}") from error
    if parsed.scheme not in ("http", "https") or not hostname:
        raise InvalidURLError(f"Invalid URL: {url}")
    return hostname


def validate_public_url(url: str) -> None:
    """
    Reject URLs that are not http(s) or that resolve to an internal address.

    Raises:
        InvalidURLError: malformed URL or unresolvable host.
        BlockedURLError: host resolves to a private/loopback address.
    """
    hostname = require_http_url(url)
    if hostname.lower() in ("localhost", "localhost.localdomain"):
        raise BlockedURLError(f"Blocked request to localhost: {url}")

    try:
        addrinfo = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as error:
        raise InvalidURLError(f"Could not resolve hostname: {hostname}") from error

    for _, _, _, _, sockaddr in addrinfo:
        if _is_private_ip(sockaddr[0]):
            raise BlockedURLError(f"Blocked request to internal address: {url} resolves to {sockaddr[0]}")


def _meta_content(soup: BeautifulSoup, *, prop: str | None = None, name: str | None = None) -> str | None:
    if prop:
        tag = soup.find("meta", attrs={"property": prop})
    else:
        tag = soup.find("meta", attrs={"name": name})
    if tag is None:
        return None
    return _clean_string(tag.get("content"))


def parse_metadata(html: str, url: str, *, base_url: str | None = None) -> PageMetadata:
    """
    Extract OpenGraph / Twitter / HTML metadata from a page.

    Pure function with no I/O.

    Priority:
    - title: og:title, twitter:title, <title>
    - description: og:description, twitter:description, <meta name="description">
    - image: og:image, twitter:image (resolved against the page URL)
    - url: og:url, then the requested URL
    - site: og:site_name, then the requested hostname
    """
    soup = BeautifulSoup(html, "lxml")

    title = _meta_content(soup, prop="og:title") or _meta_content(soup, name="twitter:title")
    if not title:
        title_tag = soup.find("title")
        if title_tag is not None:
            title = _clean_string(title_tag.get_text())

    description = (
        _meta_content(soup, prop="og:description")
        or _meta_content(soup, name="twitter:description")
        or _meta_content(soup, name="description")
    )

    image = _meta_content(soup, prop="og:image") or _meta_content(soup, name="twitter:image")
    if image:
        image = urljoin(base_url or url, image)

    canonical = _meta_content(soup, prop="og:url") or url
    site = _meta_content(soup, prop="og:site_name") or urlparse(url).hostname

    return PageMetadata(
        title=title,
        description=description,
        image=image,
        url=canonical,
        site=site,
    )


def _check_request_host(request: httpx.Request) -> None:
    validate_public_url(str(request.url))


class MetadataExtractor:
    """
    Fetches a page and extracts its metadata without ever raising.

    Every failure (invalid URL, blocked host, timeout, HTTP error, non-HTML
    body) is logged and reported through `MetadataResult.error`.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
        *,
        block_private_hosts: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self.block_private_hosts = block_private_hosts
        self._transport = transport

    def extract(self, url: str) -> MetadataResult:
        try:
            html, final_url = self._fetch_html(url)
            metadata = parse_metadata(html, url, base_url=final_url)
        except ServiceError as error:
            logger.warning("metadata.fail url=%s error=%s", url, error)
            return MetadataResult(metadata=None, error=str(error))

        if metadata.is_empty:
            logger.info("metadata.empty url=%s", url)
            return MetadataResult(metadata=None, error="No metadata found")

        logger.info("metadata.ok url=%s title=%s", url, metadata.title)
        return MetadataResult(metadata=metadata)

    def _fetch_html(self, url: str) -> tuple[str, str]:
        require_http_url(url)

        # Runs before every hop, redirects included.
        event_hooks = {"request": [_check_request_host]} if self.block_private_hosts else {}

        try:
            with httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent, "Referer": url},
                transport=self._transport,
                event_hooks=event_hooks,
            ) as client:
                response = client.get(url)
                response.raise_for_status()
        except httpx.InvalidURL as error:
            raise InvalidURLError(f"Invalid URL: {url}") from error
        except httpx.TimeoutException as error:
            raise NetworkTimeoutError(url, self.timeout) from error
        except httpx.HTTPStatusError as error:
            raise FetchFailedError(f"HTTP {error.response.status_code} fetching {url}") from error
        except httpx.HTTPError as error:
            raise FetchFailedError(f"Request failed for {url}: {error}") from error

        final_url = str(response.url)

        content_type = response.headers.get("content-type", "")
        if "html" not in content_type.lower():
            raise UnsupportedContentError(url, content_type)

        return response.text, final_url
