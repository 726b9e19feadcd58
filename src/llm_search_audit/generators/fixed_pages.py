"""Inject missing meta, Open Graph and JSON-LD tags into page HTML."""

import json
import re
from dataclasses import dataclass
from html import escape
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from ..models import PageData
from ..parsers import analyze, guess_page_type, page_text
from .schema import build_page_schema, extract_logo, page_slug, page_slugs, schema_filename, schema_to_html


_HEAD_CLOSE = re.compile(r"</head\s*>", re.I)
_HTML_OPEN = re.compile(r"<html[^>]*>", re.I)

DESCRIPTION_LENGTH = 155


@dataclass
class FixedPage:
    path: str
    filename: str
    content: str
    changes: list[str]


def _description_for(page: PageData) -> str:
    text = page_text(page.html, 600)
    if len(text) <= DESCRIPTION_LENGTH:
        return text
    cut = text[:DESCRIPTION_LENGTH].rsplit(" ", 1)[0]
    return cut.rstrip(",.;:") + "..."


def _display_path(page: PageData) -> str:
    query = urlparse(page.url).query
    return f"{page.path}?{query}" if query else page.path


def _meta(attr: str, name: str, content: str) -> str:
    return f'<meta {attr}="{name}" content="{escape(content)}">'


def _inject(html: str, snippet: str) -> str:
    if _HEAD_CLOSE.search(html):
        return _HEAD_CLOSE.sub(lambda m: f"{snippet}\n{m.group(0)}", html, count=1)
    html_open = _HTML_OPEN.search(html)
    if html_open:
        end = html_open.end()
        return f"{html[:end]}\n<head>\n{snippet}\n</head>{html[end:]}"
    return f"<head>\n{snippet}\n</head>\n{html}"


def fix_page(
    page: PageData,
    schema_files: dict[str, str],
    base_url: str,
    site_name: str,
    slug: str | None = None,
) -> FixedPage | None:
    """Return the page with missing tags added, or None when nothing is missing.

    slug names both the stored schema file and the output file; it defaults to
    the slug of the page path.
    """
    slug = slug or page_slug(page.path)
    info = analyze(page.html, page.url)
    tags: list[str] = []
    changes: list[str] = []

    title = info.title or info.og_title or page.title or site_name
    description = info.meta_description or info.og_description or _description_for(page)

    if not info.title:
        tags.append(f"<title>{escape(title)}</title>")
        changes.append("title")
    if not info.meta_description and description:
        tags.append(_meta("name", "description", description))
        changes.append("meta description")
    if not info.canonical:
        tags.append(f'<link rel="canonical" href="{escape(page.url)}">')
        changes.append("canonical")
    if not info.og_title:
        tags.append(_meta("property", "og:title", title))
        changes.append("og:title")
    if not info.og_description and description:
        tags.append(_meta("property", "og:description", description))
        changes.append("og:description")
    if not info.og_url:
        tags.append(_meta("property", "og:url", page.url))
        changes.append("og:url")
    if not info.og_type:
        og_type = "article" if guess_page_type(page.url) == "post" else "website"
        tags.append(_meta("property", "og:type", og_type))
        changes.append("og:type")
    if not info.og_image:
        image = extract_logo(BeautifulSoup(page.html, "lxml"), base_url)
        if image:
            tags.append(_meta("property", "og:image", image))
            changes.append("og:image")

    if not info.json_ld:
        stored = schema_files.get(schema_filename(slug))
        try:
            schema = json.loads(stored) if stored else build_page_schema(page, base_url, site_name)
        except json.JSONDecodeError:
            schema = build_page_schema(page, base_url, site_name)
        tags.append(schema_to_html(schema))
        changes.append("JSON-LD")

    if not tags:
        return None

    return FixedPage(
        path=_display_path(page),
        filename=f"pages/{slug}.html",
        content=_inject(page.html, "\n".join(tags)),
        changes=changes,
    )


def generate_fixed_pages(
    pages: list[PageData],
    schema_files: dict[str, str],
    base_url: str,
    site_name: str,
) -> list[FixedPage]:
    """Fixed copies of every page with gaps. No gaps gives an empty list."""
    slugs = page_slugs(pages)
    fixed = []
    for page in pages:
        result = fix_page(page, schema_files, base_url, site_name, slugs[page.url])
        if result:
            fixed.append(result)
    return fixed


def fixed_pages_to_files(fixed: list[FixedPage]) -> dict[str, str]:
    """File map of fixed pages plus a README listing what changed."""
    if not fixed:
        return {}

    files = {page.filename: page.content for page in fixed}
    readme = [
        "# Fixed Pages",
        "",
        "Each page below had missing tags added to its `<head>`. Review before deploying.",
        "",
    ]
    readme.extend(f"- **{page.path}**: Added {', '.join(page.changes)}" for page in fixed)
    readme.append("")
    files["pages/README.md"] = "\n".join(readme)
    return files
