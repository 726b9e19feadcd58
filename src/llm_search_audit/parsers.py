"""Extract structured facts from a page's HTML."""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterable
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup

from .models import PageData


FAQ_SELECTOR = '[class*="faq"], [id*="faq"], details, [itemtype*="FAQPage"]'
SUMMARY_SELECTOR = (
    '[class*="summary"], [class*="tldr"], [class*="intro"], [class*="excerpt"], '
    '[id*="summary"], [id*="tldr"]'
)

# First match wins
SITE_SIGNATURES = (
    ("WordPress", (re.compile(r"wp-content|wp-includes|wp-json", re.I),)),
    ("Next.js", (re.compile(r"_next/", re.I),)),
    ("Nuxt", (re.compile(r"_nuxt/", re.I),)),
    ("Astro", (re.compile(r"astro", re.I), re.compile(r"<astro-island", re.I))),
    ("SPA", (re.compile(r'<div id="(root|app)">\s*</div>', re.I),)),
    ("Gatsby", (re.compile(r'<div id="__gatsby"', re.I),)),
)

# Matching order matters: "/about/services" is an about page.
PAGE_TYPE_PATTERNS = (
    ("about", re.compile(r"about", re.I)),
    ("services", re.compile(r"service", re.I)),
    ("products", re.compile(r"product", re.I)),
    ("blog", re.compile(r"blog/?$", re.I)),
    ("post", re.compile(r"blog/.+|post/.+|article", re.I)),
    ("contact", re.compile(r"contact", re.I)),
    ("faq", re.compile(r"faq", re.I)),
)

_WHITESPACE = re.compile(r"\s+")


@dataclass
class Heading:
    level: int
    text: str


@dataclass
class PageInfo:
    """Facts extracted from one page. Missing elements are empty, never errors."""
    title: str = ""
    meta_description: str = ""
    canonical: str = ""
    og_title: str = ""
    og_description: str = ""
    og_url: str = ""
    og_type: str = ""
    og_image: str = ""
    h1s: list[str] = field(default_factory=list)
    headings: list[Heading] = field(default_factory=list)
    json_ld: list[dict[str, Any]] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    has_main: bool = False
    has_nav: bool = False
    has_header: bool = False
    has_footer: bool = False
    has_article: bool = False
    has_section: bool = False
    imgs_without_alt: int = 0
    total_imgs: int = 0
    body_text_length: int = 0
    body_text: str = ""
    has_faq_section: bool = False
    paragraphs: list[str] = field(default_factory=list)
    lists: int = 0
    has_blockquote: bool = False
    has_summary_class: bool = False

    def meta_value(self, tag: str) -> str:
        """Value of one of the required meta facts by its public name."""
        return {
            "title": self.title,
            "description": self.meta_description,
            "canonical": self.canonical,
            "og:title": self.og_title,
            "og:description": self.og_description,
            "og:url": self.og_url,
            "og:type": self.og_type,
            "og:image": self.og_image,
        }[tag]


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if not tag:
        return ""
    content = tag.get("content") or ""
    return content.strip() if isinstance(content, str) else ""


def extract_json_ld(soup: BeautifulSoup) -> list[dict[str, Any]]:
    """Extract all JSON-LD scripts from the page. Malformed blocks are skipped."""
    results: list[dict[str, Any]] = []

    for script in soup.find_all("script", type="application/ld+json"):
        content = script.string
        if not content or not content.strip():
            continue
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            continue
        items = data if isinstance(data, list) else [data]
        results.extend(item for item in items if isinstance(item, dict))

    return results


def get_schema_types(item: dict[str, Any]) -> list[str]:
    """Extract @type values from a JSON-LD item, including its @graph."""
    types: list[str] = []

    type_val = item.get("@type")
    if isinstance(type_val, list):
        types.extend(t for t in type_val if isinstance(t, str))
    elif isinstance(type_val, str):
        types.append(type_val)

    graph = item.get("@graph")
    if isinstance(graph, list):
        for node in graph:
            if isinstance(node, dict):
                types.extend(get_schema_types(node))

    return types


def extract_heading_hierarchy(soup: BeautifulSoup) -> list[Heading]:
    """All h1-h6 headings in document order."""
    return [
        Heading(level=int(tag.name[1]), text=tag.get_text().strip())
        for tag in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])
    ]


def normalize_link(url: str) -> str:
    """Drop the fragment and any trailing slash except on the root path."""
    parsed = urlparse(url)
    path = parsed.path or "/"
    if path != "/" and path.endswith("/"):
        path = path[:-1]
    return urlunparse((parsed.scheme, parsed.netloc, path, parsed.params, parsed.query, ""))


def extract_internal_links(soup: BeautifulSoup, base_url: str) -> list[str]:
    """Same-host links, normalized and deduplicated in document order."""
    base_host = urlparse(base_url).hostname
    links: dict[str, None] = {}

    for a in soup.find_all("a", href=True):
        href = a.get("href", "")
        if not isinstance(href, str) or not href.strip():
            continue
        try:
            resolved = urljoin(base_url, href.strip())
            parsed = urlparse(resolved)
            if parsed.scheme not in ("http", "https") or parsed.hostname != base_host:
                continue
            links[normalize_link(resolved)] = None
        except ValueError:
            continue

    return list(links)


def analyze(html: str, url: str) -> PageInfo:
    """Extract a PageInfo record from one page. No network access."""
    soup = BeautifulSoup(html or "", "lxml")
    body = soup.body or soup

    title_tag = soup.find("title")
    canonical_tag = soup.find("link", rel="canonical")
    canonical = canonical_tag.get("href", "") if canonical_tag else ""

    images = soup.find_all("img")
    body_text = collapse_whitespace(body.get_text(" "))
    paragraphs = [p.get_text().strip() for p in soup.find_all("p")]

    return PageInfo(
        title=title_tag.get_text().strip() if title_tag else "",
        meta_description=_meta_content(soup, name="description"),
        canonical=canonical.strip() if isinstance(canonical, str) else "",
        og_title=_meta_content(soup, property="og:title"),
        og_description=_meta_content(soup, property="og:description"),
        og_url=_meta_content(soup, property="og:url"),
        og_type=_meta_content(soup, property="og:type"),
        og_image=_meta_content(soup, property="og:image"),
        h1s=[h.get_text().strip() for h in soup.find_all("h1")],
        headings=extract_heading_hierarchy(soup),
        json_ld=extract_json_ld(soup),
        links=extract_internal_links(soup, url),
        has_main=soup.find("main") is not None,
        has_nav=soup.find("nav") is not None,
        has_header=soup.find("header") is not None,
        has_footer=soup.find("footer") is not None,
        has_article=soup.find("article") is not None,
        has_section=soup.find("section") is not None,
        imgs_without_alt=sum(1 for img in images if not img.has_attr("alt")),
        total_imgs=len(images),
        body_text_length=len(body_text),
        body_text=body_text[:5000],
        has_faq_section=soup.select_one(FAQ_SELECTOR) is not None,
        paragraphs=[p for p in paragraphs if p],
        lists=len(soup.find_all(["ul", "ol"])),
        has_blockquote=soup.find("blockquote") is not None,
        has_summary_class=soup.select_one(SUMMARY_SELECTOR) is not None,
    )


def page_title(html: str, fallback: str) -> str:
    soup = BeautifulSoup(html or "", "lxml")
    title_tag = soup.find("title")
    title = title_tag.get_text().strip() if title_tag else ""
    return title or fallback


def page_text(html: str, limit: int | None = None) -> str:
    """Visible text of a page without scripts and styles."""
    soup = BeautifulSoup(html or "", "lxml")
    for tag in soup.find_all(["script", "style", "noscript"]):
        tag.decompose()
    text = collapse_whitespace((soup.body or soup).get_text(" "))
    return text[:limit] if limit is not None else text


def guess_page_type(url: str) -> str:
    """Infer a page type from URL path keywords."""
    path = urlparse(url).path.lower()
    if path in ("", "/"):
        return "home"
    for page_type, pattern in PAGE_TYPE_PATTERNS:
        if pattern.search(path):
            return page_type
    return "other"


def detect_site_type(pages: Iterable[PageData]) -> str:
    """Classify the platform from markup signatures."""
    all_html = " ".join(page.html for page in pages)

    for site_type, patterns in SITE_SIGNATURES:
        if all(pattern.search(all_html) for pattern in patterns):
            return site_type

    return "Static HTML"
