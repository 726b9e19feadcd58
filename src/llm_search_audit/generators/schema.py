"""Generate JSON-LD schema from page content."""

import json
import re
from typing import Any, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from ..models import PageData
from ..parsers import guess_page_type


SOCIAL_PATTERNS = (
    "twitter.com", "x.com", "linkedin.com", "facebook.com",
    "github.com", "instagram.com", "youtube.com", "wikipedia.org",
)

# Main node type for each inferred page type
PAGE_SCHEMA_TYPES = {
    "home": "WebSite",
    "about": "AboutPage",
    "services": "Service",
    "products": "Product",
    "blog": "CollectionPage",
    "post": "BlogPosting",
    "contact": "ContactPage",
    "faq": "FAQPage",
    "other": "WebPage",
}


def page_slug(path: str) -> str:
    """File-system friendly name for a page path ('/' is 'home')."""
    slug = re.sub(r"\.html?$", "", path.strip("/"), flags=re.I)
    if not slug:
        return "home"
    slug = slug.replace("/", "--")
    return re.sub(r"[^A-Za-z0-9._-]+", "-", slug)


def page_slugs(pages: list[PageData]) -> dict[str, str]:
    """Slug per page URL, unique within the run.

    Pages whose paths share a slug (query-string variants, `/a/b` and `/a--b`)
    get `-2`, `-3`, ... in crawl order.
    """
    slugs: dict[str, str] = {}
    taken: set[str] = set()
    for page in pages:
        base = page_slug(page.path)
        slug, n = base, 2
        while slug in taken:
            slug = f"{base}-{n}"
            n += 1
        taken.add(slug)
        slugs[page.url] = slug
    return slugs


def schema_filename(slug: str) -> str:
    return f"schema/{slug}.json"


def _absolute(url: str, base_url: str) -> str:
    return urljoin(base_url + "/", url) if url.startswith("/") else url


def extract_description(soup: BeautifulSoup) -> str:
    desc_tag = soup.find("meta", attrs={"name": "description"})
    description = desc_tag.get("content", "") if desc_tag else ""
    if not description:
        og_desc = soup.find("meta", property="og:description")
        description = og_desc.get("content", "") if og_desc else ""
    return description.strip()


def extract_logo(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    """Try to find a logo URL."""
    og_image = soup.find("meta", property="og:image")
    if og_image and og_image.get("content"):
        return _absolute(og_image["content"], base_url)

    header = soup.find("header") or soup.find("nav")
    if header:
        img = header.find("img")
        if img and img.get("src"):
            return _absolute(img["src"], base_url)

    for rel in ("apple-touch-icon", "icon"):
        link = soup.find("link", rel=rel)
        if link and link.get("href"):
            return _absolute(link["href"], base_url)

    return None


def extract_social_links(soup: BeautifulSoup) -> list[str]:
    """Extract social media profile links."""
    links: list[str] = []
    for a in soup.find_all("a", href=True):
        href = a.get("href", "")
        host = urlparse(href).netloc.lower()
        if any(host == p or host.endswith("." + p) for p in SOCIAL_PATTERNS) and href not in links:
            links.append(href)
    return links[:10]


def extract_faq_items(soup: BeautifulSoup) -> list[dict[str, Any]]:
    """Question headings followed by an answer paragraph."""
    items = []
    for h in soup.find_all(["h2", "h3", "h4", "summary"]):
        question = h.get_text(strip=True)
        if "?" not in question:
            continue
        next_p = h.find_next("p")
        answer = next_p.get_text(strip=True) if next_p else ""
        if len(answer) > 20:
            items.append({
                "@type": "Question",
                "name": question,
                "acceptedAnswer": {"@type": "Answer", "text": answer},
            })
    return items[:10]


def _published_date(soup: BeautifulSoup) -> str:
    meta = soup.find("meta", property="article:published_time")
    if meta and meta.get("content"):
        return meta["content"]
    time_tag = soup.find("time", datetime=True)
    if time_tag:
        return time_tag["datetime"]
    return "YYYY-MM-DD"


def breadcrumb_list(page: PageData, base_url: str) -> dict[str, Any]:
    items = [{"@type": "ListItem", "position": 1, "name": "Home", "item": f"{base_url}/"}]
    segments = [s for s in page.path.strip("/").split("/") if s]
    for i, segment in enumerate(segments, start=2):
        name = re.sub(r"\.html?$", "", segment, flags=re.I).replace("-", " ").replace("_", " ").title()
        items.append({
            "@type": "ListItem",
            "position": i,
            "name": page.title if i == len(segments) + 1 else name,
            "item": f"{base_url}/{'/'.join(segments[:i - 1])}",
        })
    return {"@type": "BreadcrumbList", "itemListElement": items}


def organization(soup: BeautifulSoup, base_url: str, site_name: str) -> dict[str, Any]:
    org: dict[str, Any] = {"@type": "Organization", "name": site_name, "url": f"{base_url}/"}
    logo = extract_logo(soup, base_url)
    if logo:
        org["logo"] = logo
    social = extract_social_links(soup)
    if social:
        org["sameAs"] = social
    return org


def build_page_schema(page: PageData, base_url: str, site_name: str) -> dict[str, Any]:
    """JSON-LD skeleton for one page, keyed on its inferred type.

    Returns:
        A JSON-LD document with an @graph of the page node, plus Organization
        on the home and about pages and BreadcrumbList everywhere else.
    """
    soup = BeautifulSoup(page.html, "lxml")
    page_type = guess_page_type(page.url)
    description = extract_description(soup)
    node_type = PAGE_SCHEMA_TYPES[page_type]

    node: dict[str, Any] = {"@type": node_type, "name": page.title, "url": page.url}
    if description:
        node["description"] = description

    if page_type == "home":
        node["name"] = site_name
        node["url"] = f"{base_url}/"
    elif page_type in ("services", "products"):
        brand_key = "provider" if page_type == "services" else "brand"
        node[brand_key] = {"@type": "Organization", "name": site_name}
        image = extract_logo(soup, base_url)
        if page_type == "products" and image:
            node["image"] = image
    elif page_type == "post":
        node["headline"] = page.title
        node["author"] = {"@type": "Organization", "name": site_name}
        node["datePublished"] = _published_date(soup)
    elif page_type == "faq":
        faq_items = extract_faq_items(soup)
        node["mainEntity"] = faq_items or [{
            "@type": "Question",
            "name": f"What is {site_name}?",
            "acceptedAnswer": {
                "@type": "Answer",
                "text": description or f"{site_name} is a [description]. Visit {base_url} to learn more.",
            },
        }]

    graph: list[dict[str, Any]] = [node]
    if page_type in ("home", "about"):
        graph.append(organization(soup, base_url, site_name))
    if page_type != "home":
        graph.append(breadcrumb_list(page, base_url))

    return {"@context": "https://schema.org", "@graph": graph}


def generate_json_ld_files(pages: list[PageData], base_url: str, site_name: str) -> dict[str, str]:
    """One schema/<slug>.json file per page."""
    slugs = page_slugs(pages)
    return {
        schema_filename(slugs[page.url]): json.dumps(
            build_page_schema(page, base_url, site_name), indent=2, ensure_ascii=False,
        )
        for page in pages
    }


def schema_to_html(schema: dict[str, Any]) -> str:
    """Convert schema dict to HTML script tag."""
    # "</script>" inside a string value must not close the tag
    json_str = json.dumps(schema, indent=2, ensure_ascii=False).replace("<", "\\u003c")
    return f'<script type="application/ld+json">\n{json_str}\n</script>'
