"""Prompt templates for AI enhancement."""

import json

from ..models import PageData
from ..parsers import page_text


def _page_digest(page: PageData, limit: int) -> str:
    return page_text(page.html, limit)


def aeo_prompt(pages: list[PageData]) -> str:
    summaries = "\n\n---\n\n".join(
        f"Page: {p.path}\nTitle: {p.title}\nContent (first 1000 chars): {_page_digest(p, 1000)}"
        for p in pages[:5]
    )
    return f"""Analyze these web pages for AI/LLM search optimization (AEO - Answer Engine Optimization). Score 0-100 and provide 3-5 specific findings. Be concise.

Consider:
- Does content directly answer likely user questions?
- Are there clear, extractable summary statements?
- Is content structured for AI consumption (short paragraphs, lists, Q&A)?
- Would an AI be able to cite this content confidently?

{summaries}

Respond in JSON only: {{"score": number, "findings": [{{"type": "pass"|"warning"|"fail", "message": "string"}}]}}"""


def llms_txt_prompt(pages: list[PageData], base_url: str, site_name: str) -> str:
    listing = "\n".join(f"- {p.title} ({p.url}): {_page_digest(p, 300)}" for p in pages)
    return f"""Generate llms.txt and llms-full.txt files following the llmstxt.org spec for this site.

Site: {site_name} ({base_url})

Pages:
{listing}

Format for llms.txt:
# {{Site Name}}
> {{1-2 sentence description}}
## {{Category}}
- [{{Title}}]({{URL}}): {{description}}

For llms-full.txt: same structure but include full page content under each entry.

Respond in JSON: {{"llmsTxt": "string", "llmsFullTxt": "string"}}"""


def json_ld_prompt(pages: list[PageData], base_url: str, site_name: str, page_types: dict[str, str]) -> str:
    listing = "\n".join(
        f"- {p.url} [{page_types[p.url]}] {p.title}: {_page_digest(p, 300)}"
        for p in pages
    )
    return f"""Generate Schema.org JSON-LD for each page of this site. Use the page type in brackets to choose schema types, include BreadcrumbList on every page except the home page, and only use facts present in the page content.

Site: {site_name} ({base_url})

Pages:
{listing}

Respond in JSON only: {{"schemas": {{"<page URL>": <JSON-LD object with @context and @type or @graph>}}}}"""


def report_prompt(report: str, summary: dict) -> str:
    return f"""Improve this AI search visibility remediation report. Keep every section and score, keep markdown with ## section headings, and add concrete, site-specific next steps for the weakest dimensions.

Audit summary:
{json.dumps(summary, indent=2)}

Current report:
{report}

Respond in JSON only: {{"report": "markdown string"}}"""
