"""Generate the markdown remediation report."""

from ..constants import REPORT_FILENAME
from ..models import AuditResult, DimensionResult, FindingType, grade_label


ICONS = {
    FindingType.PASS: "✅",
    FindingType.INFO: "ℹ️",
    FindingType.WARNING: "⚠️",
    FindingType.FAIL: "❌",
}

FIX_HINTS = {
    "schema": "Add the generated `schema/*.json` blocks to each page's `<head>` inside `<script type=\"application/ld+json\">`.",
    "robots": "Upload the generated `robots.txt` to your site root.",
    "llmsTxt": "Upload the generated `llms.txt` and `llms-full.txt` to your site root.",
    "meta": "Use the fixed pages download to add the missing meta and Open Graph tags.",
    "sitemap": "Upload the generated `sitemap.xml` and reference it from robots.txt.",
}

MAX_FINDINGS_PER_SECTION = 15


def _dimension_section(dim: DimensionResult) -> list[str]:
    lines = [f"## {dim.name}: {dim.score}/100 ({dim.grade})", ""]
    lines.append(f"Weight: {dim.weight:.0%}")
    lines.append("")

    issues = [f for f in dim.findings if f.is_issue]
    passes = [f for f in dim.findings if not f.is_issue]
    for finding in (issues + passes)[:MAX_FINDINGS_PER_SECTION]:
        line = f"- {ICONS[finding.type]} {finding.message}"
        if finding.page:
            line += f" (`{finding.page}`)"
        if finding.detail:
            line += f": {finding.detail}"
        lines.append(line)

    hidden = len(dim.findings) - MAX_FINDINGS_PER_SECTION
    if hidden > 0:
        lines.append(f"- ...and {hidden} more")

    if dim.fixable and dim.id in FIX_HINTS and issues:
        lines.append("")
        lines.append(f"**Fix:** {FIX_HINTS[dim.id]}")

    lines.append("")
    return lines


def generate_report(result: AuditResult) -> str:
    """Markdown report: site header, priorities, one section per dimension."""
    lines = [
        "# AI Search Visibility Report",
        "",
        "| | |",
        "|---|---|",
        f"| **Site** | {result.url} |",
        f"| **Site type** | {result.site_type} |",
        f"| **Pages audited** | {result.pages_audited} of {result.total_pages} |",
        f"| **Overall score** | {result.overall_score}/100 ({result.grade}, {grade_label(result.grade)}) |",
        f"| **AI analysis** | {result.ai_mode.value} |",
        f"| **Generated** | {result.timestamp} |",
        "",
        "## Priority Actions",
        "",
    ]
    if result.priorities:
        lines.extend(f"{i}. {p}" for i, p in enumerate(result.priorities, 1))
    else:
        lines.append("No priority actions.")
    lines.append("")

    lines.append("## Score Breakdown")
    lines.append("")
    lines.append("| Dimension | Weight | Score | Grade |")
    lines.append("|---|---|---|---|")
    for dim in result.dimensions:
        lines.append(f"| {dim.name} | {dim.weight:.0%} | {dim.score} | {dim.grade} |")
    lines.append("")

    for dim in result.dimensions:
        lines.extend(_dimension_section(dim))

    files = sorted(name for name in result.generated_files if name != REPORT_FILENAME)
    if files:
        lines.append("## Generated Files")
        lines.append("")
        lines.extend(f"- `{name}`" for name in files)
        lines.append("")

    return "\n".join(lines)
