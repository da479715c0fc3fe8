"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests

from linkcrawl import config as env
from linkcrawl.services.config_file_store import ConfigFileStore
from linkcrawl.services.crawl_executor import CrawlExecutor
from linkcrawl.services.crawler_config_parser import CrawlerConfigParser
from linkcrawl.services.fetcher import HttpLinkFetcher
from linkcrawl.services.http_service import HttpService
from linkcrawl.services.link_extractor import LinkExtractor
from linkcrawl.services.url_filter import UrlFilter


# Environment variables used by the container (read via `linkcrawl.config` helpers).
#
# USER_AGENT (str, default: "LinkCrawl/0.1")
#   User-Agent header for outbound HTTP requests.
#
# HTTP_TIMEOUT (int seconds, default: 10)
#   Per-request timeout. A request that exceeds it is a transient failure.
#
# LINKCRAWL_MAX_WORKERS (int, default: 10)
#   Concurrent fetches per wave.
#
# LINKCRAWL_MAX_RETRY_COUNT (int, default: 1)
#   Retry passes over timed-out URLs after discovery converges. 0 disables.
#
# LINKCRAWL_EXCLUDED_EXTENSIONS (comma-separated, default: "pdf,jpg,csv,png")
#   Path extensions that are never crawled.
#
# LINKCRAWL_CONFIGS_DIR (str, default: "./configs")
#   Directory that relative `--config` paths resolve against.
ENV = {
    "USER_AGENT": env.user_agent(),
    "HTTP_TIMEOUT": env.http_timeout(),
    "LINKCRAWL_MAX_WORKERS": env.max_workers(),
    "LINKCRAWL_MAX_RETRY_COUNT": env.max_retry_count(),
    "LINKCRAWL_EXCLUDED_EXTENSIONS": env.excluded_extensions(),
    "LINKCRAWL_CONFIGS_DIR": env.get_str_env("LINKCRAWL_CONFIGS_DIR", "configs"),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for LinkCrawl application."""

    # Configuration
    config = providers.Configuration(default=ENV)

    config_file_store = providers.Singleton(
        ConfigFileStore,
        configs_dir=config.LINKCRAWL_CONFIGS_DIR.as_(str),
    )

    crawler_config_parser = providers.Singleton(
        CrawlerConfigParser
    )

    http_service = providers.Singleton(
        HttpService,
        user_agent=config.USER_AGENT.as_(str),
        http_client=providers.Object(requests.get),
        timeout=config.HTTP_TIMEOUT.as_(int)
    )

    link_extractor = providers.Singleton(
        LinkExtractor
    )

    link_fetcher = providers.Singleton(
        HttpLinkFetcher,
        http_service=http_service,
        link_extractor=link_extractor,
    )

    crawl_executor = providers.Factory(
        CrawlExecutor,
        link_fetcher=link_fetcher,
        url_filter_factory=providers.Object(UrlFilter),
    )
