"""Data models for audit results."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .constants import GRADE_THRESHOLDS


class FindingType(Enum):
    """Outcome of a single sub-check."""
    PASS = "pass"
    INFO = "info"
    WARNING = "warning"
    FAIL = "fail"


class ProgressStatus(Enum):
    RUNNING = "running"
    COMPLETE = "complete"
    SKIPPED = "skipped"


class AiMode(Enum):
    """Run-level outcome of AI enhancement."""
    ENHANCED = "ai-enhanced"
    BASIC = "basic"
    FAILED = "ai-failed"


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def grade_for(score: int) -> str:
    """Map a 0-100 score to a letter grade."""
    for minimum, grade, _label in GRADE_THRESHOLDS:
        if score >= minimum:
            return grade
    return "F"


def grade_label(grade: str) -> str:
    for _minimum, letter, label in GRADE_THRESHOLDS:
        if letter == grade:
            return label
    return ""


@dataclass
class Finding:
    """A single audit finding."""
    type: FindingType
    message: str
    detail: Optional[str] = None
    page: Optional[str] = None
    ai: bool = False

    @property
    def is_issue(self) -> bool:
        return self.type in (FindingType.FAIL, FindingType.WARNING)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value, "message": self.message}
        if self.detail is not None:
            data["detail"] = self.detail
        if self.page is not None:
            data["page"] = self.page
        if self.ai:
            data["ai"] = True
        return data


@dataclass(frozen=True)
class PageData:
    """One fetched or extracted page."""
    url: str
    path: str
    html: str
    title: str
    status_code: Optional[int] = None


@dataclass
class CrawlResult:
    """Everything the scorers need from one crawl or upload."""
    pages: list[PageData]
    base_url: str
    robots_txt: Optional[str] = None
    sitemap_xml: Optional[str] = None
    llms_txt: Optional[str] = None
    llms_full_txt: Optional[str] = None
    site_type: str = "Static HTML"


@dataclass
class DimensionResult:
    """Score for one of the eight visibility dimensions."""
    id: str
    name: str
    weight: float
    score: int  # 0-100
    findings: list[Finding] = field(default_factory=list)
    fixable: bool = False

    def __post_init__(self) -> None:
        self.score = clamp_score(self.score)

    @property
    def grade(self) -> str:
        return grade_for(self.score)

    @property
    def impact(self) -> float:
        """Weighted distance from a perfect score, used for prioritization."""
        return (100 - self.score) * self.weight

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "weight": self.weight,
            "score": self.score,
            "grade": self.grade,
            "findings": [f.to_dict() for f in self.findings],
            "fixable": self.fixable,
        }


@dataclass(frozen=True)
class AiDiagnostic:
    """Outcome record for one attempted AI sub-task."""
    step: str
    success: bool
    duration_ms: int
    model: str
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "step": self.step,
            "success": self.success,
            "durationMs": self.duration_ms,
            "model": self.model,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class AuditResult:
    """Complete audit result for a site."""
    url: str
    timestamp: str
    site_type: str
    pages_audited: int
    total_pages: int
    overall_score: int
    dimensions: list[DimensionResult] = field(default_factory=list)
    priorities: list[str] = field(default_factory=list)
    generated_files: dict[str, str] = field(default_factory=dict)
    ai_mode: AiMode = AiMode.BASIC
    ai_diagnostics: list[AiDiagnostic] = field(default_factory=list)
    download_id: Optional[str] = None
    fix_pages_id: Optional[str] = None

    @property
    def grade(self) -> str:
        return grade_for(self.overall_score)

    def dimension(self, dim_id: str) -> Optional[DimensionResult]:
        for dim in self.dimensions:
            if dim.id == dim_id:
                return dim
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "url": self.url,
            "timestamp": self.timestamp,
            "siteType": self.site_type,
            "pagesAudited": self.pages_audited,
            "totalPages": self.total_pages,
            "overallScore": self.overall_score,
            "grade": self.grade,
            "dimensions": [d.to_dict() for d in self.dimensions],
            "priorities": list(self.priorities),
            "downloadId": self.download_id,
            "aiMode": self.ai_mode.value,
            "generatedFiles": dict(self.generated_files),
        }
        if self.ai_diagnostics:
            data["aiDiagnostics"] = [d.to_dict() for d in self.ai_diagnostics]
        if self.fix_pages_id is not None:
            data["fixPagesId"] = self.fix_pages_id
        return data


@dataclass(frozen=True)
class ProgressEvent:
    """One line of the progress stream."""
    dimension: str
    status: ProgressStatus
    score: Optional[int] = None
    detail: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "progress",
            "dimension": self.dimension,
            "status": self.status.value,
        }
        if self.score is not None:
            data["score"] = self.score
        if self.detail is not None:
            data["detail"] = self.detail
        return data
