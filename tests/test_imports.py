import importlib

MODULES = [
    'linkcrawl.config',
    'linkcrawl.container',
    'linkcrawl.domain',
    'linkcrawl.services.crawl_executor',
    'linkcrawl.services.fetcher',
    'linkcrawl.services.url_filter',
    'run',
]

def test_imports():
    for m in MODULES:
        importlib.import_module(m)
