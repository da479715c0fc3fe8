"""Crawl outcome and result data models."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, NamedTuple, Optional, Tuple, Union

from linkcrawl.exceptions import HttpFetchError


class SkipReason(str, Enum):
    VISITED = "visited"
    CLAIMED = "claimed"
    FRAGMENT = "fragment"
    EXCLUDED_EXTENSION = "excluded_extension"
    FOREIGN_DOMAIN = "foreign_domain"
    INVALID_URL = "invalid_url"
    CANCELLED = "cancelled"


class Eligibility(NamedTuple):
    """Verdict of the URL filter: eligible, or skipped with a reason."""
    eligible: bool
    reason: Optional[SkipReason] = None

    def __bool__(self) -> bool:
        return self.eligible


ELIGIBLE = Eligibility(True)


def skip(reason: SkipReason) -> Eligibility:
    return Eligibility(False, reason)


@dataclass(frozen=True)
class FetchSuccess:
    url: str
    links: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class TransientFailure:
    """Timeout or refused connection; the URL goes to the retry set."""
    url: str
    error: Exception


@dataclass(frozen=True)
class PermanentFailure:
    """Any other failure; the URL is dropped."""
    url: str
    error: Exception


@dataclass(frozen=True)
class Skipped:
    url: str
    reason: SkipReason


CrawlOutcome = Union[FetchSuccess, TransientFailure, PermanentFailure, Skipped]


def classify_fetch_error(url: str, error: Exception) -> CrawlOutcome:
    """Map a fetch exception onto a failure outcome."""
    if isinstance(error, HttpFetchError) and error.is_transient:
        return TransientFailure(url, error)
    return PermanentFailure(url, error)


class CrawlResult(NamedTuple):
    """Result of a crawl operation.

    Provides feedback about what happened during the crawl,
    enabling callers to log metrics and distinguish success from cancellation.
    """
    visited_urls: Tuple[str, ...]
    """Every successfully fetched URL, in visit order"""

    retry_passes: int = 0
    """Number of retry passes actually run"""

    abandoned_urls: FrozenSet[str] = frozenset()
    """URLs still failing transiently when the retry budget ran out"""

    stopped: bool = False
    """True if crawl was stopped early via stop_event, False if completed normally"""

    elapsed_seconds: float = 0.0

    @property
    def pages_crawled(self) -> int:
        return len(self.visited_urls)
