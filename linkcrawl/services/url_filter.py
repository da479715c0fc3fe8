import logging
from typing import Iterable, Optional, Set
from urllib.parse import urlparse

from linkcrawl.domain.crawl_result import ELIGIBLE, Eligibility, SkipReason, skip
from linkcrawl.domain.frontier import Frontier

logger = logging.getLogger(__name__)


class UrlFilter:
    """Decides whether a discovered URL may be crawled.

    A URL is eligible when it has no fragment, its path does not end in a
    denylisted extension, its host matches the origin's host (ignoring case)
    and the frontier has not visited it yet.
    """

    def __init__(self, excluded_extensions: Iterable[str]):
        self.excluded_extensions = frozenset(ext.lstrip(".") for ext in excluded_extensions)

    @staticmethod
    def host_of(url: str) -> Optional[str]:
        try:
            host = urlparse(url).hostname
        except ValueError:
            logger.debug("Cannot parse host of %s", url)
            return None
        return host or None

    def same_domain(self, url: str, origin_url: str) -> bool:
        host = self.host_of(url)
        origin_host = self.host_of(origin_url)
        if not host or not origin_host:
            return False
        return host.lower() == origin_host.lower()

    @staticmethod
    def has_fragment(url: str) -> bool:
        return "#" in url

    @staticmethod
    def extension_of(url: str) -> str:
        """Text after the last '.' of the path, trailing slashes removed; '' if none."""
        try:
            path = urlparse(url).path
        except ValueError:
            return ""
        dot = path.rfind(".")
        if dot == -1:
            return ""
        return path[dot + 1:].rstrip("/")

    def has_excluded_extension(self, url: str) -> bool:
        ext = self.extension_of(url)
        return bool(ext) and ext in self.excluded_extensions

    def check(self, url: str, origin_url: str, frontier: Optional[Frontier] = None) -> Eligibility:
        if not url:
            return skip(SkipReason.INVALID_URL)
        if self.has_fragment(url):
            return skip(SkipReason.FRAGMENT)
        if self.has_excluded_extension(url):
            return skip(SkipReason.EXCLUDED_EXTENSION)
        if self.host_of(url) is None:
            return skip(SkipReason.INVALID_URL)
        if not self.same_domain(url, origin_url):
            return skip(SkipReason.FOREIGN_DOMAIN)
        if frontier is not None and frontier.is_visited(url):
            return skip(SkipReason.VISITED)
        return ELIGIBLE

    def is_eligible(self, url: str, origin_url: str, frontier: Optional[Frontier] = None) -> bool:
        return self.check(url, origin_url, frontier).eligible

    def filter_links(self, links: Iterable[str], origin_url: str, frontier: Optional[Frontier] = None) -> Set[str]:
        """Return the subset of `links` eligible for crawling from `origin_url`."""
        kept = set()
        for link in links:
            verdict = self.check(link, origin_url, frontier)
            if not verdict:
                logger.debug("Skipping (%s) %s", verdict.reason.value, link)
                continue
            kept.add(link)
        return kept
