import pytest

from llm_search_audit.models import CrawlResult

from helpers import BARE_HTML, BASE_URL, GOOD_HTML, make_page


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def good_page():
    return make_page("/", GOOD_HTML)


@pytest.fixture
def bare_page():
    return make_page("/", BARE_HTML)


@pytest.fixture
def bare_crawl():
    """A site with nothing: no special files and no JSON-LD."""
    return CrawlResult(
        pages=[make_page("/", BARE_HTML), make_page("/about", BARE_HTML, title="About")],
        base_url=BASE_URL,
    )


@pytest.fixture
def good_crawl():
    return CrawlResult(
        pages=[
            make_page("/", GOOD_HTML),
            make_page("/about", GOOD_HTML.replace("Example Co - Widgets", "About Example Co"), title="About"),
        ],
        base_url=BASE_URL,
        robots_txt="User-agent: *\nAllow: /\n\nSitemap: https://example.com/sitemap.xml\n",
        sitemap_xml=(
            '<?xml version="1.0"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
            "<url><loc>https://example.com/</loc><lastmod>2024-01-01</lastmod></url>"
            "<url><loc>https://example.com/about</loc></url></urlset>"
        ),
        llms_txt="# Example Co\n\n> Widgets.\n\n## Pages\n\n- [Home](https://example.com/)\n- [About](https://example.com/about)\n",
        llms_full_txt="# Example Co\n\nEverything.",
    )
