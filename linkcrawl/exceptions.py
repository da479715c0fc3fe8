"""Custom exceptions for LinkCrawl services."""
from enum import Enum


class FetchErrorKind(str, Enum):
    """Classification of a failed page fetch."""

    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    OTHER = "other"


TRANSIENT_FETCH_ERRORS = frozenset({FetchErrorKind.TIMEOUT, FetchErrorKind.CONNECTION_REFUSED})


class InvalidCrawlConfigError(ValueError):
    """Raised when a crawl configuration is missing, unreadable or inconsistent."""

    def __init__(self, source: str, reason: str = "invalid"):
        self.source = source
        self.reason = reason
        super().__init__(f"Crawl config '{source}' {reason}")


class HttpFetchError(Exception):
    """Raised when fetching a page fails.

    `kind` tells the crawler whether the failure is worth retrying: timeouts and
    refused connections are transient, everything else is permanent.
    """

    def __init__(self, url: str, original: Exception, kind: FetchErrorKind = FetchErrorKind.OTHER):
        self.url = url
        self.original = original
        self.kind = kind
        super().__init__(f"HTTP fetch failed for {url} ({kind.value}): {original}")

    @property
    def is_transient(self) -> bool:
        return self.kind in TRANSIENT_FETCH_ERRORS
