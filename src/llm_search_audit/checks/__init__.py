"""Dimension scorers. Each is a pure function returning a DimensionResult."""

from .schema import check_schema
from .robots import check_robots
from .llms_txt import check_llms_txt
from .aeo import check_aeo_content
from .meta_tags import check_meta_tags
from .sitemap import check_sitemap
from .semantic import check_semantic
from .rendering import check_rendering

__all__ = [
    "check_schema",
    "check_robots",
    "check_llms_txt",
    "check_aeo_content",
    "check_meta_tags",
    "check_sitemap",
    "check_semantic",
    "check_rendering",
]
