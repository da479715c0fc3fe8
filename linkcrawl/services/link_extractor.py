from bs4 import BeautifulSoup
from urllib.parse import urljoin


class LinkExtractor:
    """Pulls absolute hyperlink targets out of an HTML document."""

    def extract_links(self, base_url: str, html: str) -> set[str]:
        soup = BeautifulSoup(html, "html.parser")
        urls = set()
        for a in soup.select("a[href]"):
            href = (a.get("href") or "").strip()
            if not href:
                continue
            try:
                abs_url = urljoin(base_url, href)
            except ValueError:
                # e.g. malformed IPv6 netloc
                continue
            urls.add(abs_url)
        return urls
