"""Domain objects for LinkCrawl - explicit re-exports to satisfy linters."""
from .config import CrawlerConfig as CrawlerConfig
from .crawl_result import CrawlResult as CrawlResult
from .frontier import Frontier as Frontier
from .http_response import HttpResponse as HttpResponse

__all__ = ["CrawlerConfig", "CrawlResult", "Frontier", "HttpResponse"]
