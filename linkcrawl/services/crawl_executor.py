import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from linkcrawl.domain.config import CrawlerConfig
from linkcrawl.domain.crawl_result import (
    CrawlOutcome,
    CrawlResult,
    FetchSuccess,
    PermanentFailure,
    SkipReason,
    Skipped,
    TransientFailure,
    classify_fetch_error,
)
from linkcrawl.domain.frontier import Frontier
from linkcrawl.exceptions import HttpFetchError
from linkcrawl.services.fetcher import LinkFetcher
from linkcrawl.services.url_filter import UrlFilter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]


@dataclass
class _CrawlRun:
    """Everything one crawl's waves share."""
    config: CrawlerConfig
    frontier: Frontier
    url_filter: UrlFilter
    stop_event: Optional[threading.Event] = None
    on_page_crawled: Optional[ProgressCallback] = None


class CrawlExecutor:
    """Executes a same-domain crawl with the configured link fetcher.

    The crawl is breadth-first and level-synchronous: each wave of URLs is
    fetched by a fresh bounded thread pool, and the next wave is computed only
    after every fetch of the current one has finished. URLs that failed with a
    timeout or refused connection are replayed by up to `max_retry_count`
    retry passes once discovery has converged.

    This class does NOT construct the fetcher (that stays in the DI layer).
    """

    def __init__(
        self,
        *,
        link_fetcher: LinkFetcher,
        url_filter_factory: Callable[[Iterable[str]], UrlFilter] = UrlFilter,
    ):
        self.link_fetcher = link_fetcher
        self.url_filter_factory = url_filter_factory

    def _is_stopped(self, stop_event) -> bool:
        return stop_event is not None and getattr(stop_event, "is_set", lambda: False)()

    def _report_progress(self, run: _CrawlRun, url: str, link_count: int) -> None:
        if run.on_page_crawled is None:
            return
        try:
            run.on_page_crawled(url, link_count)
        except Exception as e:
            logger.warning("Progress callback failed for %s: %s", url, e)

    def crawl_url(self, run: _CrawlRun, url: str, origin_url: str, retrying: bool = False) -> CrawlOutcome:
        """Filter, claim, fetch and classify a single URL.

        Never raises: every per-URL error becomes a failure outcome.
        """
        if self._is_stopped(run.stop_event):
            return Skipped(url, SkipReason.CANCELLED)

        verdict = run.url_filter.check(url, origin_url, run.frontier)
        if not verdict:
            logger.debug("Skipping (%s) %s", verdict.reason.value, url)
            return Skipped(url, verdict.reason)

        if not run.frontier.try_claim(url, retrying=retrying):
            logger.debug("Skipping (claimed) %s", url)
            return Skipped(url, SkipReason.CLAIMED)

        try:
            links = self.link_fetcher.fetch(url)
        except HttpFetchError as e:
            outcome = classify_fetch_error(url, e)
        except Exception as e:
            logger.error("Fetch error for %s: %s", url, e, exc_info=True)
            outcome = PermanentFailure(url, e)
        else:
            run.frontier.mark_visited(url)
            found = run.url_filter.filter_links(links, url, run.frontier)
            logger.info("Visited %s -> %s links", url, len(found))
            self._report_progress(run, url, len(found))
            return FetchSuccess(url, frozenset(found))

        if isinstance(outcome, TransientFailure):
            logger.warning("Fetch failed for %s, queued for retry: %s", url, outcome.error)
            run.frontier.mark_for_retry(url)
        else:
            logger.warning("Fetch failed for %s, dropping: %s", url, outcome.error)
            run.frontier.mark_failed(url)
        return outcome

    def run_wave(self, run: _CrawlRun, candidates: Dict[str, str], retrying: bool = False) -> Dict[str, str]:
        """Fetch every candidate concurrently and wait for all of them.

        `candidates` maps each URL to the page it was discovered on. Returns the
        next wave's candidates in the same shape.
        """
        discovered: Dict[str, str] = {}
        with ThreadPoolExecutor(max_workers=run.config.max_workers, thread_name_prefix="linkcrawl") as pool:
            futures = [
                pool.submit(self.crawl_url, run, url, origin, retrying)
                for url, origin in candidates.items()
            ]
            for future in as_completed(futures):
                outcome = future.result()
                if isinstance(outcome, FetchSuccess):
                    for link in outcome.links:
                        discovered.setdefault(link, outcome.url)
        return discovered

    def crawl_until_converged(self, run: _CrawlRun, candidates: Dict[str, str], retrying: bool = False) -> None:
        depth = 0
        while candidates:
            if self._is_stopped(run.stop_event):
                logger.info("Crawl cancelled before wave %s (%s URLs pending)", depth, len(candidates))
                return
            logger.debug("Dispatching wave %s with %s URLs", depth, len(candidates))
            candidates = self.run_wave(run, candidates, retrying=retrying)
            # Only the first wave of a retry pass replays failed URLs.
            retrying = False
            depth += 1

    def crawl(self, config: CrawlerConfig, stop_event: Optional[threading.Event] = None, on_page_crawled: Optional[ProgressCallback] = None) -> CrawlResult:
        """Crawl every same-domain page reachable from `config.seed_url`.

        `on_page_crawled(url, link_count)` is called from worker threads after
        each successful fetch; its failures are logged and ignored.
        """
        if config is None:
            raise ValueError("config is required for crawl")

        started = time.monotonic()
        run = _CrawlRun(
            config=config,
            frontier=Frontier(),
            url_filter=self.url_filter_factory(config.excluded_extensions),
            stop_event=stop_event,
            on_page_crawled=on_page_crawled,
        )
        seed = config.seed_url
        logger.info("Starting crawl from %s (workers=%s, retries=%s)", seed, config.max_workers, config.max_retry_count)

        self.crawl_until_converged(run, {seed: seed})

        retry_passes = 0
        while retry_passes < config.max_retry_count and not self._is_stopped(stop_event):
            pending = run.frontier.pending_retries()
            if not pending:
                break
            retry_passes += 1
            logger.info("Retry pass %s/%s for %s URLs", retry_passes, config.max_retry_count, len(pending))
            self.crawl_until_converged(run, {url: seed for url in pending}, retrying=True)

        abandoned = run.frontier.abandon_retries()
        for url in sorted(abandoned):
            logger.warning("Giving up on %s after %s retry passes", url, retry_passes)

        stopped = self._is_stopped(stop_event)
        result = CrawlResult(
            visited_urls=run.frontier.visited_urls(),
            retry_passes=retry_passes,
            abandoned_urls=frozenset(abandoned),
            stopped=stopped,
            elapsed_seconds=time.monotonic() - started,
        )
        logger.info(
            "Crawl %s: %s pages visited, %s abandoned, %.2fs",
            "stopped" if stopped else "finished",
            result.pages_crawled,
            len(abandoned),
            result.elapsed_seconds,
        )
        return result
