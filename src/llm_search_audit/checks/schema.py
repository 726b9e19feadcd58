"""Check for JSON-LD structured data."""

from typing import Any

from ..models import DimensionResult, Finding, FindingType, PageData, clamp_score
from ..parsers import analyze, get_schema_types, guess_page_type
from ._base import average, dimension_result


# Schema types an AI crawler expects for each kind of page
EXPECTED_SCHEMAS = {
    "home": ("Organization", "WebSite"),
    "about": ("Organization", "BreadcrumbList"),
    "services": ("Service", "BreadcrumbList"),
    "products": ("Product", "BreadcrumbList"),
    "blog": ("CollectionPage", "BreadcrumbList"),
    "post": ("BlogPosting", "Article", "BreadcrumbList"),
    "contact": ("ContactPage", "BreadcrumbList"),
    "faq": ("FAQPage", "BreadcrumbList"),
}

BASE_SCORE = 60
EXPECTED_TYPE_BONUS = 20
WEBPAGE_BONUS = 10
MISSING_BREADCRUMB_PENALTY = 5
INVALID_ITEM_PENALTY = 10


def _check_item(item: dict[str, Any], path: str, findings: list[Finding]) -> int:
    """Validate one JSON-LD item, returning the penalty to apply."""
    penalty = 0
    item_type = item.get("@type")

    if not item.get("@context") or (not item_type and "@graph" not in item):
        findings.append(Finding(
            type=FindingType.WARNING,
            message="JSON-LD missing @context or @type",
            page=path,
        ))
        penalty += INVALID_ITEM_PENALTY

    same_as = item.get("sameAs")
    if isinstance(same_as, list) and not same_as:
        findings.append(Finding(
            type=FindingType.WARNING,
            message="Empty sameAs array - should contain social URLs or be omitted",
            page=path,
        ))

    if item_type == "Organization" and not item.get("logo"):
        findings.append(Finding(
            type=FindingType.WARNING,
            message="Organization schema missing logo",
            page=path,
        ))

    if item_type in ("BlogPosting", "Article"):
        if not item.get("author"):
            findings.append(Finding(type=FindingType.WARNING, message="Article missing author", page=path))
        if not item.get("datePublished"):
            findings.append(Finding(type=FindingType.WARNING, message="Article missing datePublished", page=path))

    return penalty


def check_schema(pages: list[PageData]) -> DimensionResult:
    """Score JSON-LD presence and fit for each page's inferred type."""
    findings: list[Finding] = []
    page_scores: list[int] = []
    pages_with_schema = 0

    for page in pages:
        json_ld = analyze(page.html, page.url).json_ld

        if not json_ld:
            findings.append(Finding(type=FindingType.FAIL, message="No JSON-LD found", page=page.path))
            page_scores.append(0)
            continue

        pages_with_schema += 1
        page_score = BASE_SCORE
        types = [t for item in json_ld for t in get_schema_types(item)]
        page_type = guess_page_type(page.url)

        for item in json_ld:
            page_score -= _check_item(item, page.path, findings)

        expected = EXPECTED_SCHEMAS.get(page_type)
        if expected:
            if any(e in types for e in expected):
                page_score += EXPECTED_TYPE_BONUS
                findings.append(Finding(
                    type=FindingType.PASS,
                    message=f"Has expected schema types: {', '.join(types)}",
                    page=page.path,
                ))
            else:
                findings.append(Finding(
                    type=FindingType.WARNING,
                    message=f"Expected {' or '.join(expected)} but found: {', '.join(types) or 'none'}",
                    page=page.path,
                ))

        if page_type != "home" and "BreadcrumbList" not in types:
            findings.append(Finding(
                type=FindingType.WARNING,
                message="Missing BreadcrumbList schema",
                page=page.path,
            ))
            page_score -= MISSING_BREADCRUMB_PENALTY

        if "WebPage" in types:
            page_score += WEBPAGE_BONUS

        page_scores.append(clamp_score(page_score))

    if not pages:
        summary = Finding(type=FindingType.FAIL, message="No pages available to check for JSON-LD")
    elif pages_with_schema == 0:
        summary = Finding(type=FindingType.FAIL, message="No JSON-LD structured data found on any page")
    elif pages_with_schema < len(pages):
        summary = Finding(
            type=FindingType.WARNING,
            message=f"JSON-LD found on {pages_with_schema}/{len(pages)} pages",
        )
    else:
        summary = Finding(type=FindingType.PASS, message=f"JSON-LD found on all {len(pages)} pages")
    findings.insert(0, summary)

    return dimension_result("schema", average(page_scores), findings)
