"""Generators for remediation files."""

from .fixed_pages import generate_fixed_pages, fixed_pages_to_files
from .llms_txt import generate_llms_txt, generate_llms_full_txt
from .report import generate_report
from .robots_txt import generate_robots_txt
from .schema import generate_json_ld_files
from .sitemap import generate_sitemap_xml

__all__ = [
    "generate_fixed_pages",
    "fixed_pages_to_files",
    "generate_llms_txt",
    "generate_llms_full_txt",
    "generate_report",
    "generate_robots_txt",
    "generate_json_ld_files",
    "generate_sitemap_xml",
]
