"""Check whether content is visible without running JavaScript."""

import re

from ..models import DimensionResult, Finding, FindingType, PageData, clamp_score
from ..parsers import analyze
from ._base import average, dimension_result


_SPA_MOUNT = re.compile(r'<div id="(root|app|__next)">\s*</div>', re.I)
_SSR_MARKERS = re.compile(r"data-reactroot|__NEXT_DATA__|__NUXT|astro", re.I)
_NOSCRIPT = re.compile(r"<noscript>[\s\S]{20,}</noscript>", re.I)

SPA_SCORE_CAP = 20


def check_rendering(pages: list[PageData]) -> DimensionResult:
    """Score the raw HTML as a non-JS crawler sees it."""
    findings: list[Finding] = []
    page_scores: list[int] = []

    for page in pages:
        info = analyze(page.html, page.url)
        text_length = info.body_text_length
        score = 0

        if text_length > 500:
            score += 40
            findings.append(Finding(
                type=FindingType.PASS,
                message=f"Rich text content ({text_length} chars)",
                page=page.path,
            ))
        elif text_length > 100:
            score += 25
            findings.append(Finding(
                type=FindingType.WARNING,
                message=f"Limited text content ({text_length} chars)",
                page=page.path,
            ))
        else:
            findings.append(Finding(
                type=FindingType.FAIL,
                message=f"Very little text in HTML source ({text_length} chars)",
                detail="Content may be rendered by JavaScript and invisible to AI crawlers",
                page=page.path,
            ))

        if _SPA_MOUNT.search(page.html) and text_length < 200:
            findings.append(Finding(
                type=FindingType.FAIL,
                message="SPA detected with minimal pre-rendered content",
                detail="Consider SSR/SSG for AI crawler visibility",
                page=page.path,
            ))
            score = min(score, SPA_SCORE_CAP)

        if _SSR_MARKERS.search(page.html):
            score += 30
            findings.append(Finding(
                type=FindingType.PASS,
                message="SSR/SSG framework detected (content pre-rendered)",
                page=page.path,
            ))

        if _NOSCRIPT.search(page.html):
            score += 10
            findings.append(Finding(type=FindingType.PASS, message="Noscript fallback content present", page=page.path))

        if info.headings:
            score += 20

        page_scores.append(clamp_score(score))

    if not pages:
        findings.append(Finding(type=FindingType.FAIL, message="No pages available to check rendering"))

    return dimension_result("rendering", average(page_scores), findings)
