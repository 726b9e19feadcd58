"""Check for llms.txt file presence and quality."""

import re
from typing import Optional

from ..models import DimensionResult, Finding, FindingType, PageData
from ._base import dimension_result


_H1 = re.compile(r"^# .+", re.M)
_BLOCKQUOTE = re.compile(r"^> .+", re.M)
_H2 = re.compile(r"^## .+", re.M)
_LINK_ENTRY = re.compile(r"^- \[.+\]\((.+?)\)", re.M)


def check_llms_txt(
    llms_txt: Optional[str],
    llms_full_txt: Optional[str],
    pages: list[PageData],
) -> DimensionResult:
    """Check llms.txt structure against the llmstxt.org format.

    The llms.txt specification: https://llmstxt.org/
    - /llms.txt - basic version
    - /llms-full.txt - extended version with more content
    """
    findings: list[Finding] = []

    if not llms_txt:
        findings.append(Finding(
            type=FindingType.FAIL,
            message="No llms.txt found",
            detail="Create an llms.txt file following the llmstxt.org spec",
        ))
        return dimension_result("llmsTxt", 0, findings)

    findings.append(Finding(type=FindingType.PASS, message="llms.txt exists"))
    score = 30

    if _H1.search(llms_txt):
        score += 10
        findings.append(Finding(type=FindingType.PASS, message="Has H1 title"))
    else:
        findings.append(Finding(type=FindingType.WARNING, message="Missing H1 title at top"))

    if _BLOCKQUOTE.search(llms_txt):
        score += 10
        findings.append(Finding(type=FindingType.PASS, message="Has summary blockquote"))
    else:
        findings.append(Finding(type=FindingType.WARNING, message="Missing summary blockquote after H1"))

    sections = _H2.findall(llms_txt)
    if sections:
        score += 10
        findings.append(Finding(type=FindingType.PASS, message=f"Has {len(sections)} sections"))
    else:
        findings.append(Finding(type=FindingType.WARNING, message="No H2 sections found"))

    linked_urls = [url for url in _LINK_ENTRY.findall(llms_txt) if url]
    if linked_urls:
        score += 10
        findings.append(Finding(type=FindingType.PASS, message=f"{len(linked_urls)} linked entries"))
    else:
        findings.append(Finding(type=FindingType.WARNING, message="No links in expected format"))

    if pages:
        covered = [
            page for page in pages
            if any(url in page.url or page.path in url for url in linked_urls)
        ]
        coverage = len(covered) / len(pages)
        ratio = f"{len(covered)}/{len(pages)}"
        if coverage >= 0.8:
            score += 15
            findings.append(Finding(type=FindingType.PASS, message=f"Good page coverage: {ratio}"))
        elif coverage >= 0.5:
            score += 8
            findings.append(Finding(type=FindingType.WARNING, message=f"Partial page coverage: {ratio}"))
        else:
            findings.append(Finding(type=FindingType.FAIL, message=f"Low page coverage: {ratio}"))

    if llms_full_txt:
        score += 15
        findings.append(Finding(type=FindingType.PASS, message="llms-full.txt exists"))
    else:
        findings.append(Finding(type=FindingType.WARNING, message="No llms-full.txt found"))

    return dimension_result("llmsTxt", score, findings)
