import pytest

from linkcrawl.exceptions import InvalidCrawlConfigError
from linkcrawl.services.config_file_store import ConfigFileStore
from linkcrawl.services.crawler_config_parser import CrawlerConfigParser, load_crawler_config


def test_parse_requires_seed_url():
    parser = CrawlerConfigParser()
    assert parser.parse(config_path="configs/x.yml", data={"max_workers": 2}) is None


def test_parse_uses_basename_when_name_missing():
    parser = CrawlerConfigParser()
    cfg = parser.parse(config_path="/tmp/some/nested/site.yml", data={"seed_url": "https://example.com/"})
    assert cfg is not None
    assert cfg.name == "site.yml"
    assert cfg.seed_url == "https://example.com/"


def test_parse_all_fields():
    parser = CrawlerConfigParser()
    cfg = parser.parse(
        config_path="site.yml",
        data={
            "name": "docs",
            "seed_url": "https://docs.example.com/",
            "max_retry_count": 0,
            "max_workers": 4,
            "excluded_extensions": ["pdf", "zip"],
        },
    )
    assert cfg.name == "docs"
    assert cfg.max_retry_count == 0
    assert cfg.max_workers == 4
    assert cfg.excluded_extensions == frozenset({"pdf", "zip"})


def test_parse_comma_separated_extensions():
    cfg = CrawlerConfigParser().parse(
        config_path="site.yml",
        data={"seed_url": "https://example.com/", "excluded_extensions": "pdf, png"},
    )
    assert cfg.excluded_extensions == frozenset({"pdf", "png"})


def test_parse_wraps_bad_values():
    with pytest.raises(InvalidCrawlConfigError, match="invalid value"):
        CrawlerConfigParser().parse(
            config_path="site.yml",
            data={"seed_url": "https://example.com/", "max_workers": "many"},
        )


def test_parse_keeps_validation_errors():
    with pytest.raises(InvalidCrawlConfigError, match="negative"):
        CrawlerConfigParser().parse(
            config_path="site.yml",
            data={"seed_url": "https://example.com/", "max_retry_count": -2},
        )


def test_load_crawler_config_from_disk(tmp_path):
    (tmp_path / "site.yml").write_text("seed_url: https://example.com/\nmax_workers: 2\n", encoding="utf-8")
    cfg = load_crawler_config(ConfigFileStore(configs_dir=str(tmp_path)), "site.yml")
    assert cfg.seed_url == "https://example.com/"
    assert cfg.max_workers == 2


def test_load_crawler_config_missing_file(tmp_path):
    with pytest.raises(InvalidCrawlConfigError, match="not found"):
        load_crawler_config(ConfigFileStore(configs_dir=str(tmp_path)), "missing.yml")


def test_load_crawler_config_without_seed(tmp_path):
    (tmp_path / "site.yml").write_text("max_workers: 2\n", encoding="utf-8")
    with pytest.raises(InvalidCrawlConfigError, match="no seed_url"):
        load_crawler_config(ConfigFileStore(configs_dir=str(tmp_path)), "site.yml")
