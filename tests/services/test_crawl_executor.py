import threading
import time
from collections import Counter

import pytest
import requests

from linkcrawl.domain.config import CrawlerConfig
from linkcrawl.exceptions import FetchErrorKind, HttpFetchError
from linkcrawl.services.crawl_executor import CrawlExecutor

SEED = "https://example.com/"


def timeout_error(url):
    return HttpFetchError(url, requests.exceptions.ReadTimeout("timed out"), FetchErrorKind.TIMEOUT)


def refused_error(url):
    return HttpFetchError(url, requests.exceptions.ConnectionError("refused"), FetchErrorKind.CONNECTION_REFUSED)


class GraphFetcher:
    """In-memory link graph; `failures[url]` is a list of errors raised before the page succeeds."""

    def __init__(self, pages, failures=None, delay=0.0):
        self.pages = pages
        self.failures = {url: list(errs) for url, errs in (failures or {}).items()}
        self.delay = delay
        self.calls = Counter()
        self.order = []
        self._lock = threading.Lock()
        self._active = 0
        self.max_active = 0

    def fetch(self, url):
        with self._lock:
            self.calls[url] += 1
            self.order.append(url)
            self._active += 1
            self.max_active = max(self.max_active, self._active)
            pending = self.failures.get(url)
            error = pending.pop(0) if pending else None
        try:
            if self.delay:
                time.sleep(self.delay)
            if error is not None:
                raise error
            if url not in self.pages:
                raise HttpFetchError(url, RuntimeError("404"), FetchErrorKind.OTHER)
            return set(self.pages[url])
        finally:
            with self._lock:
                self._active -= 1


def crawl(fetcher, **config_kwargs):
    config_kwargs.setdefault("excluded_extensions", ["pdf", "jpg", "csv", "png"])
    config_kwargs.setdefault("max_workers", 4)
    executor = CrawlExecutor(link_fetcher=fetcher)
    return executor.crawl(CrawlerConfig(SEED, **config_kwargs))


def test_fragment_foreign_and_pdf_links_are_excluded():
    fetcher = GraphFetcher({
        SEED: [
            "https://example.com/a",
            "https://example.com/a#section",
            "https://other.com/x",
            "https://example.com/b.pdf",
        ],
        "https://example.com/a": [],
        "https://other.com/x": [],
        "https://example.com/b.pdf": [],
    })
    result = crawl(fetcher)
    assert set(result.visited_urls) == {SEED, "https://example.com/a"}
    assert fetcher.calls["https://other.com/x"] == 0
    assert fetcher.calls["https://example.com/b.pdf"] == 0
    assert not result.stopped


def test_crawl_covers_cyclic_graph_and_visits_each_page_once():
    pages = {
        SEED: ["https://example.com/a", "https://example.com/b"],
        "https://example.com/a": ["https://example.com/", "https://example.com/b", "https://example.com/c"],
        "https://example.com/b": ["https://example.com/a", "https://example.com/c/"],
        "https://example.com/c": ["https://example.com/d"],
        "https://example.com/c/": ["https://example.com/d"],
        "https://example.com/d": [SEED],
        "https://example.com/unlinked": [],
    }
    fetcher = GraphFetcher(pages)
    result = crawl(fetcher)

    visited = set(result.visited_urls)
    assert len(visited) == 5
    assert {SEED, "https://example.com/a", "https://example.com/b", "https://example.com/d"} <= visited
    assert "https://example.com/unlinked" not in visited
    assert fetcher.calls["https://example.com/c"] + fetcher.calls["https://example.com/c/"] == 1
    assert all(count == 1 for count in fetcher.calls.values())
    assert result.visited_urls[0] == SEED


def test_seed_without_trailing_slash_is_not_refetched():
    fetcher = GraphFetcher({"https://example.com": ["https://example.com/"]})
    result = CrawlExecutor(link_fetcher=fetcher).crawl(CrawlerConfig("https://example.com", max_retry_count=0))
    assert result.visited_urls == ("https://example.com",)
    assert fetcher.calls["https://example.com/"] == 0


def test_url_discovered_by_many_pages_is_fetched_once():
    hub = ["https://example.com/p%d" % i for i in range(20)]
    pages = {SEED: hub, "https://example.com/shared": []}
    for url in hub:
        pages[url] = ["https://example.com/shared"]
    fetcher = GraphFetcher(pages, delay=0.005)
    result = crawl(fetcher, max_workers=8)
    assert fetcher.calls["https://example.com/shared"] == 1
    assert "https://example.com/shared" in result.visited_urls
    assert result.pages_crawled == 22


def test_transient_failure_succeeds_on_retry():
    url = "https://example.com/a"
    fetcher = GraphFetcher(
        {SEED: [url], url: []},
        failures={url: [timeout_error(url), refused_error(url)]},
    )
    result = crawl(fetcher, max_retry_count=2)
    assert url in result.visited_urls
    assert fetcher.calls[url] == 3
    assert result.retry_passes == 2
    assert result.abandoned_urls == frozenset()


@pytest.mark.parametrize("retries", [0, 1, 3])
def test_retry_bound(retries):
    url = "https://example.com/flaky"
    fetcher = GraphFetcher({SEED: [url]}, failures={url: [timeout_error(url)] * 10})
    result = crawl(fetcher, max_retry_count=retries)
    assert fetcher.calls[url] == retries + 1
    assert url not in result.visited_urls
    assert result.abandoned_urls == frozenset({url})
    assert result.retry_passes == retries


def test_permanent_failure_is_never_retried():
    fetcher = GraphFetcher({SEED: ["https://example.com/missing", "https://example.com/ok"], "https://example.com/ok": ["https://example.com/missing"]})
    result = crawl(fetcher, max_retry_count=3)
    assert fetcher.calls["https://example.com/missing"] == 1
    assert "https://example.com/missing" not in result.visited_urls
    assert result.abandoned_urls == frozenset()
    assert result.retry_passes == 0


def test_unexpected_error_does_not_stop_crawl():
    class BrokenPageFetcher(GraphFetcher):
        def fetch(self, url):
            if url == "https://example.com/broken":
                raise RuntimeError("parser exploded")
            return super().fetch(url)

    fetcher = BrokenPageFetcher({
        SEED: ["https://example.com/broken", "https://example.com/fine"],
        "https://example.com/fine": ["https://example.com/deeper"],
        "https://example.com/deeper": [],
    })
    result = crawl(fetcher)
    assert set(result.visited_urls) == {SEED, "https://example.com/fine", "https://example.com/deeper"}


def test_retries_happen_after_discovery_converges():
    flaky = "https://example.com/flaky"
    pages = {
        SEED: [flaky, "https://example.com/a"],
        "https://example.com/a": ["https://example.com/b"],
        "https://example.com/b": ["https://example.com/c", flaky],
        "https://example.com/c": [],
        flaky: [],
    }
    fetcher = GraphFetcher(pages, failures={flaky: [timeout_error(flaky)]})
    result = crawl(fetcher, max_retry_count=1)

    assert flaky in result.visited_urls
    # the rediscovery from /b must not count as an attempt
    assert fetcher.calls[flaky] == 2
    assert fetcher.order[-1] == flaky
    assert fetcher.order.index("https://example.com/c") < len(fetcher.order) - 1


def test_retry_pass_continues_discovery_from_recovered_page():
    flaky = "https://example.com/flaky"
    pages = {
        SEED: [flaky],
        flaky: ["https://example.com/behind-flaky"],
        "https://example.com/behind-flaky": ["https://example.com/deeper"],
        "https://example.com/deeper": [],
    }
    fetcher = GraphFetcher(pages, failures={flaky: [refused_error(flaky)]})
    result = crawl(fetcher, max_retry_count=1)
    assert set(result.visited_urls) == set(pages)


def test_worker_cap_bounds_concurrency():
    hub = ["https://example.com/p%d" % i for i in range(12)]
    pages = {SEED: hub}
    pages.update({url: [] for url in hub})
    fetcher = GraphFetcher(pages, delay=0.02)
    crawl(fetcher, max_workers=3)
    assert 1 <= fetcher.max_active <= 3


def test_stop_event_set_before_crawl_fetches_nothing():
    fetcher = GraphFetcher({SEED: ["https://example.com/a"]})
    stop_event = threading.Event()
    stop_event.set()
    result = CrawlExecutor(link_fetcher=fetcher).crawl(CrawlerConfig(SEED), stop_event=stop_event)
    assert result.stopped
    assert result.visited_urls == ()
    assert sum(fetcher.calls.values()) == 0


def test_stop_event_prevents_next_wave():
    fetcher = GraphFetcher({SEED: ["https://example.com/a"], "https://example.com/a": []})
    stop_event = threading.Event()

    def on_page(url, link_count):
        stop_event.set()

    result = CrawlExecutor(link_fetcher=fetcher).crawl(CrawlerConfig(SEED), stop_event=stop_event, on_page_crawled=on_page)
    assert result.stopped
    assert result.visited_urls == (SEED,)
    assert fetcher.calls["https://example.com/a"] == 0


def test_progress_callback_receives_link_counts_and_errors_are_ignored():
    fetcher = GraphFetcher({
        SEED: ["https://example.com/a", "https://other.com/"],
        "https://example.com/a": [],
    })
    events = []

    def on_page(url, link_count):
        events.append((url, link_count))
        raise RuntimeError("listener failure")

    result = CrawlExecutor(link_fetcher=fetcher).crawl(
        CrawlerConfig(SEED, max_workers=2),
        on_page_crawled=on_page,
    )
    assert sorted(events) == [(SEED, 1), ("https://example.com/a", 0)]
    assert result.pages_crawled == 2


def test_crawl_requires_config():
    with pytest.raises(ValueError):
        CrawlExecutor(link_fetcher=GraphFetcher({})).crawl(None)
