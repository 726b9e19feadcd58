"""Main auditor that runs all checks."""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from urllib.parse import urlparse

from .ai.enhance import (
    STEP_REPORT,
    EnhancementResults,
    enhance_report,
    run_parallel_enhancements,
    run_task,
)
from .ai.providers import TextGenerator
from .checks import (
    check_aeo_content,
    check_llms_txt,
    check_meta_tags,
    check_rendering,
    check_robots,
    check_schema,
    check_semantic,
    check_sitemap,
)
from .constants import DIMENSION_NAMES, MAX_PAGES_TO_AUDIT, REPORT_FILENAME
from .generators import (
    generate_json_ld_files,
    generate_llms_full_txt,
    generate_llms_txt,
    generate_report,
    generate_robots_txt,
    generate_sitemap_xml,
)
from .models import (
    AiDiagnostic,
    AiMode,
    AuditResult,
    CrawlResult,
    DimensionResult,
    Finding,
    FindingType,
    PageData,
    ProgressEvent,
    ProgressStatus,
    round_half_up,
)
from .store import AuditStores, PageSnapshot


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]

AI_STEP = "AI analysis"
AI_UNAVAILABLE = "AI-enhanced AEO scoring unavailable - no AI provider configured"
AI_FAILED = "AI analysis failed - using deterministic score only"

# (dimension id, scorer taking the crawl and the audited pages)
SCORERS: tuple[tuple[str, Callable[[CrawlResult, list[PageData]], DimensionResult]], ...] = (
    ("schema", lambda crawl, pages: check_schema(pages)),
    ("robots", lambda crawl, pages: check_robots(crawl.robots_txt)),
    ("llmsTxt", lambda crawl, pages: check_llms_txt(crawl.llms_txt, crawl.llms_full_txt, pages)),
    ("aeo", lambda crawl, pages: check_aeo_content(pages)),
    ("meta", lambda crawl, pages: check_meta_tags(pages)),
    ("sitemap", lambda crawl, pages: check_sitemap(crawl.sitemap_xml, crawl.robots_txt, pages)),
    ("semantic", lambda crawl, pages: check_semantic(pages)),
    ("rendering", lambda crawl, pages: check_rendering(pages)),
)


def compute_overall_score(dimensions: list[DimensionResult]) -> int:
    """Weighted sum of dimension scores."""
    return round_half_up(sum(d.score * d.weight for d in dimensions))


def generate_priorities(dimensions: list[DimensionResult], limit: int = 3) -> list[str]:
    """Top dimensions by weighted impact, each with its most pressing finding.

    Ties keep dimension order.
    """
    ranked = sorted(dimensions, key=lambda d: d.impact, reverse=True)

    priorities = []
    for dim in ranked[:limit]:
        top = next((f for f in dim.findings if f.type == FindingType.FAIL), None) \
            or next((f for f in dim.findings if f.type == FindingType.WARNING), None)
        action = top.message if top else f"Improve {dim.name}"
        priorities.append(f"{dim.name} ({dim.score}/100): {action}")
    return priorities


def resolve_ai_mode(generator: Optional[TextGenerator], enhancements: Optional[EnhancementResults]) -> AiMode:
    if generator is None or enhancements is None:
        return AiMode.BASIC
    return AiMode.ENHANCED if enhancements.any_success else AiMode.FAILED


def site_name_for(pages: list[PageData], base_url: str) -> str:
    if pages and pages[0].title and pages[0].title != pages[0].url:
        return pages[0].title
    return urlparse(base_url).hostname or base_url


def report_summary(result: AuditResult) -> dict[str, Any]:
    """Compact view of a result handed to the report-enhancement prompt."""
    return {
        "url": result.url,
        "siteType": result.site_type,
        "overallScore": result.overall_score,
        "grade": result.grade,
        "priorities": result.priorities,
        "dimensions": [
            {
                "name": d.name,
                "score": d.score,
                "issues": [f.message for f in d.findings if f.is_issue][:5],
            }
            for d in result.dimensions
        ],
    }


def _with_info(dim: DimensionResult, message: str) -> DimensionResult:
    return replace(dim, findings=[*dim.findings, Finding(type=FindingType.INFO, message=message)])


def run_full_audit(
    crawl: CrawlResult,
    on_progress: Optional[ProgressCallback] = None,
    generator: Optional[TextGenerator] = None,
    stores: Optional[AuditStores] = None,
) -> AuditResult:
    """Score a crawled site and build its remediation files.

    Args:
        crawl: Output of the crawler or the archive parser
        on_progress: Called before and after each step, in order
        generator: AI text generator; None runs the deterministic audit only
        stores: Where to keep the generated files and page snapshot for later
            download; nothing is stored when omitted

    Returns:
        AuditResult with all eight dimensions and generated files
    """
    def emit(dimension: str, status: ProgressStatus, score: Optional[int] = None, detail: Optional[str] = None) -> None:
        if on_progress:
            on_progress(ProgressEvent(dimension, status, score, detail))

    pages = crawl.pages[:MAX_PAGES_TO_AUDIT]
    base_url = crawl.base_url
    site_name = site_name_for(pages, base_url)

    dimensions: list[DimensionResult] = []
    for dim_id, scorer in SCORERS:
        name = DIMENSION_NAMES[dim_id]
        emit(name, ProgressStatus.RUNNING)
        result = scorer(crawl, pages)
        dimensions.append(result)
        emit(name, ProgressStatus.COMPLETE, result.score)

    aeo_index = next(i for i, d in enumerate(dimensions) if d.id == "aeo")
    enhancements: Optional[EnhancementResults] = None

    if generator is None:
        emit(AI_STEP, ProgressStatus.SKIPPED, detail="No AI provider configured")
        dimensions[aeo_index] = _with_info(dimensions[aeo_index], AI_UNAVAILABLE)
    else:
        emit(AI_STEP, ProgressStatus.RUNNING, detail=f"Analyzing with {generator.name}")
        enhancements = run_parallel_enhancements(generator, dimensions[aeo_index], pages, base_url, site_name)
        if enhancements.aeo.success:
            dimensions[aeo_index] = enhancements.aeo.value
        else:
            dimensions[aeo_index] = _with_info(dimensions[aeo_index], AI_FAILED)
        succeeded = sum(o.success for o in enhancements.outcomes)
        emit(AI_STEP, ProgressStatus.COMPLETE, detail=f"{succeeded}/{len(enhancements.outcomes)} AI tasks succeeded")

    files: dict[str, str] = {
        "robots.txt": generate_robots_txt(base_url),
        "sitemap.xml": generate_sitemap_xml(crawl.pages, base_url),
    }
    if enhancements and enhancements.llms.success:
        files.update(enhancements.llms.value)
    else:
        files["llms.txt"] = generate_llms_txt(crawl.pages, base_url, site_name)
        files["llms-full.txt"] = generate_llms_full_txt(crawl.pages, base_url, site_name)

    if enhancements and enhancements.json_ld.success:
        schema_files = enhancements.json_ld.value
    else:
        schema_files = generate_json_ld_files(pages, base_url, site_name)
    files.update(schema_files)

    diagnostics: list[AiDiagnostic] = [o.diagnostic for o in enhancements.outcomes] if enhancements else []

    result = AuditResult(
        url=base_url,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        site_type=crawl.site_type,
        pages_audited=len(pages),
        total_pages=len(crawl.pages),
        overall_score=compute_overall_score(dimensions),
        dimensions=dimensions,
        priorities=generate_priorities(dimensions),
        generated_files=files,
        ai_mode=resolve_ai_mode(generator, enhancements),
        ai_diagnostics=diagnostics,
    )

    report = generate_report(result)
    if generator is not None and enhancements and enhancements.any_success:
        outcome = run_task(STEP_REPORT, generator, enhance_report, report, report_summary(result))
        diagnostics.append(outcome.diagnostic)
        if outcome.success:
            report = outcome.value
    files[REPORT_FILENAME] = report

    if stores is not None:
        result.download_id = stores.artifacts.put(dict(files))
        result.fix_pages_id = stores.pages.put(PageSnapshot(
            pages=list(pages),
            schema_files=dict(schema_files),
            base_url=base_url,
            site_name=site_name,
        ))

    logger.info(
        "Audited %s: %d/100 (%s), AI mode %s",
        base_url, result.overall_score, result.grade, result.ai_mode.value,
    )
    return result
