"""Shared helpers for dimension scorers."""

from ..constants import DIMENSION_FIXABLE, DIMENSION_NAMES, DIMENSION_WEIGHTS
from ..models import DimensionResult, Finding, round_half_up


def dimension_result(dim_id: str, score: float, findings: list[Finding]) -> DimensionResult:
    """Build a DimensionResult with the fixed name, weight and fixability for dim_id."""
    return DimensionResult(
        id=dim_id,
        name=DIMENSION_NAMES[dim_id],
        weight=DIMENSION_WEIGHTS[dim_id],
        score=score,
        findings=findings,
        fixable=DIMENSION_FIXABLE[dim_id],
    )


def average(page_scores: list[int]) -> int:
    """Mean of per-page scores; zero pages score zero."""
    if not page_scores:
        return 0
    return round_half_up(sum(page_scores) / len(page_scores))
