from __future__ import annotations

from typing import Optional, Protocol

from linkcrawl.exceptions import FetchErrorKind, HttpFetchError
from linkcrawl.services.http_service import HttpService
from linkcrawl.services.link_extractor import LinkExtractor

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


class LinkFetcher(Protocol):
    """Fetch a URL and return the absolute URLs its anchors point to.

    Raises `HttpFetchError` on failure; `error.is_transient` decides whether
    the crawler retries the URL.
    """

    def fetch(self, url: str) -> set[str]: ...


class NonHtmlContentError(Exception):
    def __init__(self, content_type: Optional[str]):
        self.content_type = content_type
        super().__init__(f"unsupported content type {content_type!r}")


class HttpStatusError(Exception):
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"HTTP status {status_code}")


class HttpLinkFetcher:
    """`LinkFetcher` backed by `HttpService` and `LinkExtractor`.

    Error statuses and non-HTML responses are permanent failures.
    """

    def __init__(self, http_service: HttpService, link_extractor: Optional[LinkExtractor] = None):
        self._http_service = http_service
        self._link_extractor = link_extractor or LinkExtractor()

    def fetch(self, url: str) -> set[str]:
        response = self._http_service.fetch(url)

        if response.status_code < 200 or response.status_code >= 300:
            raise HttpFetchError(url, HttpStatusError(response.status_code), FetchErrorKind.OTHER)

        content_type = (response.content_type or "").lower()
        # A missing Content-Type is treated as HTML.
        if content_type and not any(ct in content_type for ct in HTML_CONTENT_TYPES):
            raise HttpFetchError(url, NonHtmlContentError(response.content_type), FetchErrorKind.OTHER)

        return self._link_extractor.extract_links(response.url or url, response.text)
