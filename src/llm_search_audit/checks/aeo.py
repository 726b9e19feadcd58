"""Check content structure for answer-engine extraction."""

import re

from ..models import DimensionResult, Finding, FindingType, PageData, clamp_score
from ._base import average, dimension_result


_SUMMARY_CLASS = re.compile(r"""class\s*=\s*["'][^"']*(?:summary|tldr|intro|excerpt)[^"']*["']""", re.I)
_SUMMARY_ID = re.compile(r"""id\s*=\s*["'][^"']*(?:summary|tldr)[^"']*["']""", re.I)
_DETAILS = re.compile(r"<details", re.I)
_FAQ_PAGE = re.compile(r"FAQPage", re.I)
_PARAGRAPH = re.compile(r"<p[^>]*>([\s\S]*?)</p>", re.I)
_TAG = re.compile(r"<[^>]+>")
_LIST = re.compile(r"<(?:ul|ol)[^>]*>", re.I)
_SENTENCE_END = re.compile(r"[.!?]")
_CITATION_WORD = re.compile(r"cite|source|reference|bibliography", re.I)
_CITATION_LINK = re.compile(r"<a[^>]*>.*?(?:\[\d+\]|source|citation)", re.I)


def _paragraph_texts(html: str) -> list[str]:
    texts = (_TAG.sub("", p).strip() for p in _PARAGRAPH.findall(html))
    return [t for t in texts if len(t) > 20]


def check_aeo_content(pages: list[PageData]) -> DimensionResult:
    """Deterministic answer-engine heuristics, averaged across pages.

    Answer engines prefer:
    - A short summary or TL;DR near the top
    - FAQ sections
    - Short paragraphs and lists
    - A direct answer in the opening paragraph
    - Cited sources
    """
    findings: list[Finding] = []
    page_scores: list[int] = []

    for page in pages:
        html = page.html
        score = 0

        has_summary = bool(_SUMMARY_CLASS.search(html) or _SUMMARY_ID.search(html))
        if has_summary:
            score += 20
            findings.append(Finding(type=FindingType.PASS, message="Has summary/TL;DR section", page=page.path))
        else:
            findings.append(Finding(
                type=FindingType.WARNING,
                message="No TL;DR or summary block found near page top",
                detail="Add a 2-sentence summary after the H1",
                page=page.path,
            ))

        if "faq" in html.lower() or _DETAILS.search(html) or _FAQ_PAGE.search(html):
            score += 15
            findings.append(Finding(type=FindingType.PASS, message="FAQ section detected", page=page.path))

        paragraphs = _paragraph_texts(html)
        if paragraphs:
            avg_words = sum(len(p.split()) for p in paragraphs) / len(paragraphs)
            if avg_words <= 50:
                score += 20
                findings.append(Finding(
                    type=FindingType.PASS,
                    message=f"Short paragraphs (avg {avg_words:.0f} words)",
                    page=page.path,
                ))
            elif avg_words <= 100:
                score += 10
                findings.append(Finding(
                    type=FindingType.WARNING,
                    message=f"Medium paragraph length (avg {avg_words:.0f} words)",
                    detail="Break into shorter paragraphs for better AI extraction",
                    page=page.path,
                ))
            else:
                findings.append(Finding(
                    type=FindingType.FAIL,
                    message=f"Long paragraphs (avg {avg_words:.0f} words)",
                    detail="Dense text walls reduce AI answer extraction quality",
                    page=page.path,
                ))

        list_count = len(_LIST.findall(html))
        if list_count:
            score += 15
            findings.append(Finding(
                type=FindingType.PASS,
                message=f"{list_count} lists for scannable content",
                page=page.path,
            ))

        # An opening paragraph of at most two sentences reads as a direct answer
        if has_summary or (paragraphs and len(_SENTENCE_END.split(paragraphs[0])) <= 3):
            score += 15

        if _CITATION_WORD.search(html) or _CITATION_LINK.search(html):
            score += 15
            findings.append(Finding(type=FindingType.PASS, message="Citations or references detected", page=page.path))

        page_scores.append(clamp_score(score))

    if not pages:
        findings.append(Finding(type=FindingType.FAIL, message="No pages available for content analysis"))

    return dimension_result("aeo", average(page_scores), findings)
