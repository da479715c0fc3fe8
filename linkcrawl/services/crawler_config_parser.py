import os
from typing import Optional

from linkcrawl.domain.config import CrawlerConfig
from linkcrawl.exceptions import InvalidCrawlConfigError
from linkcrawl.services.config_file_store import ConfigFileStore


class CrawlerConfigParser:
    """Parse a YAML dict into a CrawlerConfig.

    Responsibility: schema/validation for YAML config files.
    It does NOT perform filesystem IO.

    Recognised keys: `seed_url` (required), `name`, `max_retry_count`,
    `max_workers`, `excluded_extensions` (list or comma-separated string).
    Missing keys fall back to environment defaults.
    """

    def parse(self, *, config_path: str, data: dict) -> Optional[CrawlerConfig]:
        seed_url = data.get("seed_url")
        if not seed_url:
            return None

        excluded = data.get("excluded_extensions")
        if isinstance(excluded, str):
            excluded = [ext for ext in excluded.split(",")]

        try:
            return CrawlerConfig(
                seed_url=str(seed_url),
                max_retry_count=data.get("max_retry_count"),
                max_workers=data.get("max_workers"),
                excluded_extensions=excluded,
                name=data.get("name") or os.path.basename(config_path),
            )
        except InvalidCrawlConfigError:
            raise
        except (TypeError, ValueError) as e:
            raise InvalidCrawlConfigError(config_path, f"has an invalid value: {e}") from e


def load_crawler_config(store: ConfigFileStore, config_path: str, parser: Optional[CrawlerConfigParser] = None) -> CrawlerConfig:
    """Read and parse `config_path`, raising `InvalidCrawlConfigError` on any problem."""
    data = store.load_yaml_dict(config_path)
    if data is None:
        raise InvalidCrawlConfigError(config_path, "not found or not a YAML mapping")
    cfg = (parser or CrawlerConfigParser()).parse(config_path=config_path, data=data)
    if cfg is None:
        raise InvalidCrawlConfigError(config_path, "has no seed_url")
    return cfg
