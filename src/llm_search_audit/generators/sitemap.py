"""Generate sitemap.xml from crawled pages."""

from datetime import date
from typing import Optional
from xml.sax.saxutils import escape

from ..models import PageData


SITEMAP_XMLNS = "http://www.sitemaps.org/schemas/sitemap/0.9"


def generate_sitemap_xml(pages: list[PageData], base_url: str, lastmod: Optional[date] = None) -> str:
    """One <url> per unique page, all stamped with the same lastmod."""
    stamp = (lastmod or date.today()).isoformat()
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<urlset xmlns="{SITEMAP_XMLNS}">',
    ]

    seen: set[str] = set()
    for page in pages:
        loc = page.url if page.url.startswith("http") else f"{base_url}{page.path}"
        if loc in seen:
            continue
        seen.add(loc)
        priority = "1.0" if page.path in ("", "/") else "0.8"
        lines.extend([
            "  <url>",
            f"    <loc>{escape(loc)}</loc>",
            f"    <lastmod>{stamp}</lastmod>",
            f"    <priority>{priority}</priority>",
            "  </url>",
        ])

    lines.append("</urlset>")
    lines.append("")
    return "\n".join(lines)
