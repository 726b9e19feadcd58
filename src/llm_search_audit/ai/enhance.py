"""AI enhancement tasks with isolated, typed outcomes."""

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Optional, TypeVar

from ..constants import AI_SCORE_WEIGHT, DETERMINISTIC_SCORE_WEIGHT, MIN_ENHANCED_REPORT_LENGTH
from ..generators.schema import page_slugs, schema_filename
from ..models import AiDiagnostic, DimensionResult, Finding, FindingType, PageData, round_half_up
from ..parsers import guess_page_type
from .prompts import aeo_prompt, json_ld_prompt, llms_txt_prompt, report_prompt
from .providers import AiMalformedOutputError, TextGenerator, parse_json_response


logger = logging.getLogger(__name__)

T = TypeVar("T")

STEP_AEO = "aeo"
STEP_LLMS_TXT = "llms-txt"
STEP_JSON_LD = "json-ld"
STEP_REPORT = "report"

AI_FINDING_DETAIL = "(AI-analyzed)"


@dataclass
class TaskOutcome(Generic[T]):
    """Result of one AI sub-task. value is None on failure."""
    step: str
    value: Optional[T]
    diagnostic: AiDiagnostic

    @property
    def success(self) -> bool:
        return self.diagnostic.success


@dataclass
class EnhancementResults:
    aeo: TaskOutcome[DimensionResult]
    llms: TaskOutcome[dict[str, str]]
    json_ld: TaskOutcome[dict[str, str]]

    @property
    def outcomes(self) -> list[TaskOutcome[Any]]:
        return [self.aeo, self.llms, self.json_ld]

    @property
    def any_success(self) -> bool:
        return any(o.success for o in self.outcomes)


def run_task(step: str, generator: TextGenerator, task: Callable[..., T], *args: Any) -> TaskOutcome[T]:
    """Run one AI task, converting any failure into a diagnostic."""
    start = time.monotonic()
    try:
        value = task(generator, *args)
    except Exception as e:  # a crashed task is recorded like a failed one
        duration = int((time.monotonic() - start) * 1000)
        logger.warning("AI step %s failed: %s", step, e)
        return TaskOutcome(step, None, AiDiagnostic(
            step=step,
            success=False,
            duration_ms=duration,
            model=generator.model,
            error=f"{type(e).__name__}: {e}",
        ))

    duration = int((time.monotonic() - start) * 1000)
    logger.info("AI step %s succeeded in %dms", step, duration)
    return TaskOutcome(step, value, AiDiagnostic(
        step=step,
        success=True,
        duration_ms=duration,
        model=generator.model,
    ))


def _ai_finding(raw: Any) -> Optional[Finding]:
    if not isinstance(raw, dict) or not isinstance(raw.get("message"), str):
        return None
    try:
        finding_type = FindingType(raw.get("type", "info"))
    except ValueError:
        finding_type = FindingType.INFO
    return Finding(type=finding_type, message=raw["message"], detail=AI_FINDING_DETAIL, ai=True)


def blend_scores(ai_score: float, deterministic_score: int) -> int:
    return round_half_up(ai_score * AI_SCORE_WEIGHT + deterministic_score * DETERMINISTIC_SCORE_WEIGHT)


def enhance_aeo(generator: TextGenerator, basic: DimensionResult, pages: list[PageData]) -> DimensionResult:
    """Blend an AI content score into the deterministic AEO result."""
    data = parse_json_response(generator.generate(aeo_prompt(pages), max_tokens=1024), ("score",))

    ai_score = data["score"]
    if isinstance(ai_score, bool) or not isinstance(ai_score, (int, float)):
        raise AiMalformedOutputError(f"AEO score is not a number: {ai_score!r}")
    ai_score = max(0.0, min(100.0, float(ai_score)))

    raw_findings = data.get("findings") or []
    ai_findings = [f for f in map(_ai_finding, raw_findings if isinstance(raw_findings, list) else []) if f]

    return replace(
        basic,
        score=blend_scores(ai_score, basic.score),
        findings=[*basic.findings, *ai_findings],
    )


def _non_empty_string(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise AiMalformedOutputError(f"{key} is empty or not a string")
    return value


def generate_llms_files(
    generator: TextGenerator,
    pages: list[PageData],
    base_url: str,
    site_name: str,
) -> dict[str, str]:
    """AI-written llms.txt and llms-full.txt. Both must be present."""
    text = generator.generate(llms_txt_prompt(pages, base_url, site_name), max_tokens=4096)
    data = parse_json_response(text, ("llmsTxt", "llmsFullTxt"))
    return {
        "llms.txt": _non_empty_string(data, "llmsTxt"),
        "llms-full.txt": _non_empty_string(data, "llmsFullTxt"),
    }


def generate_json_ld(
    generator: TextGenerator,
    pages: list[PageData],
    base_url: str,
    site_name: str,
) -> dict[str, str]:
    """AI-written JSON-LD, one file per page. Every page must be covered.

    Pages are keyed by URL in both the prompt and the reply.
    """
    page_types = {p.url: guess_page_type(p.url) for p in pages}
    text = generator.generate(json_ld_prompt(pages, base_url, site_name, page_types), max_tokens=4096)
    schemas = parse_json_response(text, ("schemas",))["schemas"]
    if not isinstance(schemas, dict) or not schemas:
        raise AiMalformedOutputError("schemas is empty or not an object")

    slugs = page_slugs(pages)
    files: dict[str, str] = {}
    for page in pages:
        schema = schemas.get(page.url)
        if not isinstance(schema, dict) or not (schema.get("@type") or schema.get("@graph")):
            raise AiMalformedOutputError(f"No usable JSON-LD for {page.url}")
        schema.setdefault("@context", "https://schema.org")
        files[schema_filename(slugs[page.url])] = json.dumps(schema, indent=2, ensure_ascii=False)
    return files


def enhance_report(generator: TextGenerator, report: str, summary: dict[str, Any]) -> str:
    """AI-polished report. Short replies are rejected."""
    data = parse_json_response(generator.generate(report_prompt(report, summary), max_tokens=4096), ("report",))
    enhanced = _non_empty_string(data, "report")
    if len(enhanced) <= MIN_ENHANCED_REPORT_LENGTH:
        raise AiMalformedOutputError(f"Enhanced report too short ({len(enhanced)} chars)")
    return enhanced


def run_parallel_enhancements(
    generator: TextGenerator,
    aeo: DimensionResult,
    pages: list[PageData],
    base_url: str,
    site_name: str,
) -> EnhancementResults:
    """Run the three independent AI tasks concurrently and wait for all of them."""
    with ThreadPoolExecutor(max_workers=3) as executor:
        aeo_future = executor.submit(run_task, STEP_AEO, generator, enhance_aeo, aeo, pages)
        llms_future = executor.submit(run_task, STEP_LLMS_TXT, generator, generate_llms_files, pages, base_url, site_name)
        json_ld_future = executor.submit(run_task, STEP_JSON_LD, generator, generate_json_ld, pages, base_url, site_name)

        return EnhancementResults(
            aeo=aeo_future.result(),
            llms=llms_future.result(),
            json_ld=json_ld_future.result(),
        )
