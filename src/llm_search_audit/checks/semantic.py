"""Check semantic HTML structure."""

from ..models import DimensionResult, Finding, FindingType, PageData, clamp_score, round_half_up
from ..parsers import analyze
from ._base import average, dimension_result


def check_semantic(pages: list[PageData]) -> DimensionResult:
    findings: list[Finding] = []
    page_scores: list[int] = []

    for page in pages:
        info = analyze(page.html, page.url)
        score = 0

        if len(info.h1s) == 1:
            score += 25
            findings.append(Finding(type=FindingType.PASS, message="Single H1 tag", page=page.path))
        elif not info.h1s:
            findings.append(Finding(type=FindingType.FAIL, message="No H1 tag found", page=page.path))
        else:
            score += 10
            findings.append(Finding(
                type=FindingType.WARNING,
                message=f"Multiple H1 tags ({len(info.h1s)})",
                page=page.path,
            ))

        hierarchy_ok = True
        for prev, current in zip(info.headings, info.headings[1:]):
            if current.level > prev.level + 1:
                hierarchy_ok = False
                findings.append(Finding(
                    type=FindingType.WARNING,
                    message=f"Skipped heading level: h{prev.level} → h{current.level}",
                    page=page.path,
                ))
                break
        if hierarchy_ok and len(info.headings) > 1:
            score += 20
            findings.append(Finding(type=FindingType.PASS, message="Correct heading hierarchy", page=page.path))

        landmarks = {
            "main": info.has_main,
            "nav": info.has_nav,
            "header": info.has_header,
            "footer": info.has_footer,
        }
        missing = [name for name, present in landmarks.items() if not present]
        if not missing:
            score += 30
            findings.append(Finding(type=FindingType.PASS, message="All semantic landmarks present", page=page.path))
        elif len(missing) < len(landmarks):
            score += (len(landmarks) - len(missing)) * 7
            findings.append(Finding(
                type=FindingType.WARNING,
                message=f"Missing semantic elements: {', '.join(f'<{m}>' for m in missing)}",
                page=page.path,
            ))
        else:
            findings.append(Finding(type=FindingType.FAIL, message="No semantic HTML landmarks found", page=page.path))

        if info.total_imgs:
            if info.imgs_without_alt == 0:
                score += 15
                findings.append(Finding(
                    type=FindingType.PASS,
                    message=f"All {info.total_imgs} images have alt text",
                    page=page.path,
                ))
            else:
                findings.append(Finding(
                    type=FindingType.WARNING,
                    message=f"{info.imgs_without_alt}/{info.total_imgs} images missing alt text",
                    page=page.path,
                ))
                score += round_half_up(15 * (1 - info.imgs_without_alt / info.total_imgs))
        else:
            score += 15

        if info.has_article or info.has_section:
            score += 10

        page_scores.append(clamp_score(score))

    if not pages:
        findings.append(Finding(type=FindingType.FAIL, message="No pages available to check HTML structure"))

    return dimension_result("semantic", average(page_scores), findings)
