"""Check meta tags for AI search visibility."""

from ..constants import REQUIRED_META_TAGS
from ..models import DimensionResult, Finding, FindingType, PageData, clamp_score
from ..parsers import analyze
from ._base import average, dimension_result


TAG_LABELS = {
    "title": "Title tag",
    "description": "Meta description",
    "canonical": "Canonical link",
    "og:title": "og:title",
    "og:description": "og:description",
    "og:url": "og:url",
    "og:type": "og:type",
    "og:image": "og:image",
}

POINTS_PER_TAG = 100 / len(REQUIRED_META_TAGS)
GENERIC_TITLES = {"untitled"}


def check_meta_tags(pages: list[PageData]) -> DimensionResult:
    """Check meta tag coverage on every page.

    Key meta tags for LLM visibility:
    - title: Clear, descriptive
    - description: 50-160 characters
    - canonical: Avoid duplicate content
    - og:*: Preview and summary context
    """
    findings: list[Finding] = []
    page_scores: list[int] = []

    for page in pages:
        info = analyze(page.html, page.url)
        score = 0.0
        missing: list[str] = []

        for tag in REQUIRED_META_TAGS:
            if info.meta_value(tag).strip():
                score += POINTS_PER_TAG
            else:
                missing.append(TAG_LABELS[tag])

        description = info.meta_description
        if description:
            if len(description) < 50:
                findings.append(Finding(
                    type=FindingType.WARNING,
                    message=f"Meta description too short ({len(description)} chars)",
                    page=page.path,
                ))
                score -= 5
            elif len(description) > 160:
                findings.append(Finding(
                    type=FindingType.WARNING,
                    message=f"Meta description too long ({len(description)} chars)",
                    page=page.path,
                ))
                score -= 3

        title = info.title
        if title and (title.lower() in GENERIC_TITLES or len(title) < 5):
            findings.append(Finding(
                type=FindingType.WARNING,
                message=f'Generic or short title: "{title}"',
                page=page.path,
            ))
            score -= 5

        if not missing:
            findings.append(Finding(
                type=FindingType.PASS,
                message=f"All {len(REQUIRED_META_TAGS)} meta tags present",
                page=page.path,
            ))
        else:
            findings.append(Finding(
                type=FindingType.FAIL if len(missing) > 4 else FindingType.WARNING,
                message=f"Missing: {', '.join(missing)}",
                page=page.path,
            ))

        page_scores.append(clamp_score(score))

    if not pages:
        findings.append(Finding(type=FindingType.FAIL, message="No pages available to check meta tags"))

    return dimension_result("meta", average(page_scores), findings)
