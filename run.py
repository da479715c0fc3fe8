import argparse
import logging
import signal
import sys
import threading
from typing import Optional, Sequence

from linkcrawl.container import Container
from linkcrawl.domain.config import CrawlerConfig
from linkcrawl.exceptions import InvalidCrawlConfigError
from linkcrawl.services.crawler_config_parser import load_crawler_config

logger = logging.getLogger("linkcrawl")

EXIT_OK = 0
EXIT_INVALID_INPUT = 1
EXIT_INTERRUPTED = 130


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkcrawl",
        description="Crawl every page reachable from a seed URL on the same host.",
    )
    parser.add_argument("seed_url", nargs="?", help="Seed URL (e.g. https://example.com/)")
    parser.add_argument("--config", help="YAML crawl config (absolute, or relative to LINKCRAWL_CONFIGS_DIR)")
    parser.add_argument("--list-configs", action="store_true", help="List YAML configs in LINKCRAWL_CONFIGS_DIR and exit")
    parser.add_argument("--max-retries", type=int, default=None, help="Retry passes over timed-out URLs (0 disables)")
    parser.add_argument("--workers", type=int, default=None, help="Concurrent fetches per wave")
    parser.add_argument("--timeout", type=int, default=None, help="Per-request timeout in seconds")
    parser.add_argument(
        "--exclude-ext",
        action="append",
        default=None,
        help="Path extension to skip; repeat for several (replaces the default denylist)",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Stop dispatching new fetches on SIGINT/SIGTERM; in-flight ones finish."""
    def handler(signum, frame):
        logger.info("Received signal %s, finishing in-flight fetches...", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)


def resolve_config(args: argparse.Namespace, container: Container) -> CrawlerConfig:
    """Build the crawl config from a YAML file and/or CLI flags; flags win."""
    settings = container.config()
    if args.config:
        base = load_crawler_config(container.config_file_store(), args.config, container.crawler_config_parser())
        seed_url = args.seed_url or base.seed_url
        max_retry_count = base.max_retry_count
        max_workers = base.max_workers
        excluded = base.excluded_extensions
        name = base.name
    else:
        if not args.seed_url:
            raise InvalidCrawlConfigError("<command line>", "requires a seed URL or --config")
        seed_url = args.seed_url
        max_retry_count = settings["LINKCRAWL_MAX_RETRY_COUNT"]
        max_workers = settings["LINKCRAWL_MAX_WORKERS"]
        excluded = settings["LINKCRAWL_EXCLUDED_EXTENSIONS"]
        name = None

    return CrawlerConfig(
        seed_url=seed_url,
        max_retry_count=args.max_retries if args.max_retries is not None else max_retry_count,
        max_workers=args.workers if args.workers is not None else max_workers,
        excluded_extensions=args.exclude_ext if args.exclude_ext else excluded,
        name=name,
    )


def main(argv: Optional[Sequence[str]] = None, container: Optional[Container] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    if container is None:
        container = Container()
    if args.timeout is not None:
        container.config.HTTP_TIMEOUT.from_value(args.timeout)

    if args.list_configs:
        for fname in container.config_file_store().list_config_files():
            print(fname)
        return EXIT_OK

    try:
        crawl_config = resolve_config(args, container)
    except InvalidCrawlConfigError as e:
        logger.error("%s", e)
        return EXIT_INVALID_INPUT

    stop_event = threading.Event()
    install_signal_handlers(stop_event)

    executor = container.crawl_executor()
    result = executor.crawl(crawl_config, stop_event=stop_event)

    for url in result.visited_urls:
        print(url)

    logger.info("Time taken: %.2fs", result.elapsed_seconds)
    logger.info("Total visited URLs: %s", result.pages_crawled)
    if result.abandoned_urls:
        logger.info("Abandoned after retries: %s", len(result.abandoned_urls))

    return EXIT_INTERRUPTED if result.stopped else EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
