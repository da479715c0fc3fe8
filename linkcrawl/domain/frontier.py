import threading
from collections import OrderedDict
from typing import Set, Tuple


def _equivalents(url: str) -> Tuple[str, ...]:
    """`url` matches `url + "/"` and, when it ends in "/", `url[:-1]`; nothing else."""
    if url.endswith("/"):
        return (url, url + "/", url[:-1])
    return (url, url + "/")


class Frontier:
    """
    Visited and pending-retry state for one crawl.

    The frontier is the only state shared between fetch workers, so every
    operation takes the same lock. A URL moves through:

    - claimed: a worker reserved it via `try_claim` and is fetching it
    - visited: fetched successfully; never fetched again
    - retry: failed with a transient error; only the retry phase may claim it

    Claims that end in a permanent failure are kept, so the URL is not
    fetched again if another page links to it later in the same crawl.
    """

    def __init__(self):
        self._lock = threading.Lock()
        # OrderedDict keeps visit order for reporting.
        self._visited: "OrderedDict[str, None]" = OrderedDict()
        self._claimed: Set[str] = set()
        self._retry: Set[str] = set()

    def _is_visited_unlocked(self, url: str) -> bool:
        return any(u in self._visited for u in _equivalents(url))

    def is_visited(self, url: str) -> bool:
        with self._lock:
            return self._is_visited_unlocked(url)

    def try_claim(self, url: str, retrying: bool = False) -> bool:
        """Reserve `url` for fetching.

        Returns False if it was already visited or another worker holds it.
        URLs waiting in the retry set can only be claimed with `retrying=True`,
        and only those can.
        """
        with self._lock:
            if self._is_visited_unlocked(url):
                return False
            if any(u in self._claimed for u in _equivalents(url)):
                return False
            pending_retry = any(u in self._retry for u in _equivalents(url))
            if pending_retry != retrying:
                return False
            self._claimed.add(url)
            return True

    def mark_visited(self, url: str) -> None:
        with self._lock:
            self._claimed.discard(url)
            for u in _equivalents(url):
                self._retry.discard(u)
            if not self._is_visited_unlocked(url):
                self._visited[url] = None

    def mark_for_retry(self, url: str) -> None:
        with self._lock:
            self._claimed.discard(url)
            if not self._is_visited_unlocked(url):
                self._retry.add(url)

    def mark_failed(self, url: str) -> None:
        """Record a permanent failure: the claim is kept and no retry is queued."""
        with self._lock:
            for u in _equivalents(url):
                self._retry.discard(u)

    def pending_retries(self) -> Set[str]:
        with self._lock:
            return set(self._retry)

    def abandon_retries(self) -> Set[str]:
        """Clear and return every URL still waiting for a retry."""
        with self._lock:
            abandoned = set(self._retry)
            self._retry.clear()
            return abandoned

    def visited_urls(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._visited)
