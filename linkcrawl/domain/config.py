from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from linkcrawl import config as env
from linkcrawl.exceptions import InvalidCrawlConfigError


@dataclass(frozen=True)
class CrawlerConfigData:
    """Crawl-behavior fields for a crawler configuration."""

    seed_url: str
    max_retry_count: int
    max_workers: int
    excluded_extensions: frozenset[str]


class CrawlerConfig:
    """Settings for a single crawl run.

    Unset values fall back to the environment defaults in `linkcrawl.config`.
    A `max_retry_count` of 0 disables the retry phase entirely.
    """

    def __init__(
        self,
        seed_url: str,
        max_retry_count: Optional[int] = None,
        max_workers: Optional[int] = None,
        excluded_extensions: Optional[Iterable[str]] = None,
        name: Optional[str] = None,
    ):
        if seed_url is None or (isinstance(seed_url, str) and seed_url.strip() == ""):
            raise InvalidCrawlConfigError(name or "<inline>", "requires a seed_url")

        retries = env.max_retry_count() if max_retry_count is None else int(max_retry_count)
        if retries < 0:
            raise InvalidCrawlConfigError(name or seed_url, f"has negative max_retry_count {retries}")

        workers = env.max_workers() if max_workers is None else int(max_workers)
        if workers < 1:
            raise InvalidCrawlConfigError(name or seed_url, f"has max_workers {workers} (must be >= 1)")

        if excluded_extensions is None:
            excluded_extensions = env.excluded_extensions()
        if isinstance(excluded_extensions, str):
            excluded_extensions = [excluded_extensions]

        self.name = name
        self.data = CrawlerConfigData(
            seed_url=seed_url.strip(),
            max_retry_count=retries,
            max_workers=workers,
            excluded_extensions=frozenset(str(ext).strip().lstrip(".") for ext in excluded_extensions if str(ext).strip()),
        )

    @property
    def seed_url(self) -> str:
        return self.data.seed_url

    @property
    def max_retry_count(self) -> int:
        return self.data.max_retry_count

    @property
    def max_workers(self) -> int:
        return self.data.max_workers

    @property
    def excluded_extensions(self) -> frozenset[str]:
        return self.data.excluded_extensions

    def __repr__(self):
        return f"<CrawlerConfig seed={self.seed_url} retries={self.max_retry_count} workers={self.max_workers}>"
