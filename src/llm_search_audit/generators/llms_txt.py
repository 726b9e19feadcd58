"""Generate llms.txt and llms-full.txt from crawled pages."""

from urllib.parse import urlparse

from ..models import PageData
from ..parsers import analyze, guess_page_type, page_text


SECTIONS = (
    ("Main Pages", {"home", "about", "services", "products", "contact", "faq"}),
    ("Blog", {"blog", "post"}),
    ("Other Pages", {"other"}),
)

FULL_TEXT_LIMIT = 2000


def _site_description(pages: list[PageData], site_name: str, domain: str) -> str:
    for page in pages:
        info = analyze(page.html, page.url)
        description = info.meta_description or info.og_description
        if description:
            return description
    return f"{site_name} - Visit {domain} to learn more."


def _grouped(pages: list[PageData]) -> list[tuple[str, list[PageData]]]:
    seen: set[str] = set()
    unique = []
    for page in pages:
        if page.url not in seen:
            seen.add(page.url)
            unique.append(page)

    groups = []
    for heading, types in SECTIONS:
        members = [p for p in unique if guess_page_type(p.url) in types]
        if members:
            groups.append((heading, members))
    return groups


def _entry(page: PageData) -> str:
    info = analyze(page.html, page.url)
    description = info.meta_description or info.og_description
    line = f"- [{page.title}]({page.url})"
    return f"{line}: {description}" if description else line


def _header(pages: list[PageData], base_url: str, site_name: str) -> list[str]:
    domain = urlparse(base_url).netloc.replace("www.", "")
    return [f"# {site_name}", "", f"> {_site_description(pages, site_name, domain)}", ""]


def generate_llms_txt(pages: list[PageData], base_url: str, site_name: str) -> str:
    """Generate llms.txt content from page information.

    Following the llms.txt specification: https://llmstxt.org/
    """
    lines = _header(pages, base_url, site_name)

    for heading, members in _grouped(pages):
        lines.append(f"## {heading}")
        lines.append("")
        lines.extend(_entry(page) for page in members)
        lines.append("")

    return "\n".join(lines)


def generate_llms_full_txt(pages: list[PageData], base_url: str, site_name: str) -> str:
    """Same structure as llms.txt with each page's text inlined."""
    lines = _header(pages, base_url, site_name)

    for heading, members in _grouped(pages):
        lines.append(f"## {heading}")
        lines.append("")
        for page in members:
            lines.append(_entry(page))
            lines.append("")
            lines.append(f"### {page.title}")
            lines.append("")
            lines.append(f"URL: {page.url}")
            lines.append("")
            text = page_text(page.html, FULL_TEXT_LIMIT)
            lines.append(text or "(No text content)")
            lines.append("")

    return "\n".join(lines)
