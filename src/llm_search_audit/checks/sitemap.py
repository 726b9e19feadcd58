"""Check sitemap.xml presence and coverage."""

import re
from typing import Optional

from ..models import DimensionResult, Finding, FindingType, PageData
from ._base import dimension_result


SITEMAP_NAMESPACE = "sitemaps.org/schemas/sitemap"

_LOC = re.compile(r"<loc>([^<]+)</loc>")
_LASTMOD = re.compile(r"<lastmod>[^<]+</lastmod>")
_SITEMAP_WORD = re.compile(r"sitemap", re.I)


def extract_sitemap_urls(sitemap_xml: str) -> list[str]:
    return [loc.strip() for loc in _LOC.findall(sitemap_xml)]


def check_sitemap(
    sitemap_xml: Optional[str],
    robots_txt: Optional[str],
    pages: list[PageData],
) -> DimensionResult:
    """Score sitemap.xml structure and how many crawled pages it lists."""
    findings: list[Finding] = []

    if not sitemap_xml:
        findings.append(Finding(type=FindingType.FAIL, message="No sitemap.xml found"))
        return dimension_result("sitemap", 0, findings)

    findings.append(Finding(type=FindingType.PASS, message="sitemap.xml exists"))
    score = 30

    if SITEMAP_NAMESPACE in sitemap_xml:
        score += 15
        findings.append(Finding(type=FindingType.PASS, message="Valid XML namespace"))
    else:
        findings.append(Finding(type=FindingType.WARNING, message="Missing standard sitemap namespace"))

    urls = extract_sitemap_urls(sitemap_xml)
    if not urls:
        findings.append(Finding(type=FindingType.FAIL, message="No URLs found in sitemap"))
    else:
        score += 15
        findings.append(Finding(type=FindingType.PASS, message=f"{len(urls)} URLs in sitemap"))

        if pages:
            covered = [
                page for page in pages
                if any(page.path in url or url in page.url for url in urls)
            ]
            ratio = f"{len(covered)}/{len(pages)}"
            if len(covered) / len(pages) >= 0.8:
                score += 15
                findings.append(Finding(type=FindingType.PASS, message=f"Good page coverage: {ratio}"))
            else:
                score += 5
                findings.append(Finding(
                    type=FindingType.WARNING,
                    message=f"Partial coverage: {ratio} pages listed",
                ))

    if _LASTMOD.search(sitemap_xml):
        score += 10
        findings.append(Finding(type=FindingType.PASS, message="lastmod dates present"))
    else:
        findings.append(Finding(type=FindingType.WARNING, message="No lastmod dates in sitemap"))

    if robots_txt and _SITEMAP_WORD.search(robots_txt):
        score += 15
        findings.append(Finding(type=FindingType.PASS, message="Referenced in robots.txt"))
    else:
        findings.append(Finding(type=FindingType.WARNING, message="Not referenced in robots.txt"))

    return dimension_result("sitemap", score, findings)
