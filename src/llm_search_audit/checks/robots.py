"""Check robots.txt rules for AI crawlers."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..constants import AI_CRAWLERS
from ..models import DimensionResult, Finding, FindingType
from ._base import dimension_result


BASE_SCORE = 40
SITEMAP_BONUS = 10
PER_CRAWLER_POINTS = 3
MAX_ALLOWED_BONUS = 50

_USER_AGENT = re.compile(r"^User-agent:\s*(.+)", re.I)
_ALLOW = re.compile(r"^Allow:\s*(.*)", re.I)
_DISALLOW = re.compile(r"^Disallow:\s*(.*)", re.I)
_SITEMAP = re.compile(r"^Sitemap:\s*.+", re.I | re.M)


class CrawlerAccess(Enum):
    BLOCKED = "blocked"
    ALLOWED = "allowed"
    UNLISTED = "unlisted"


@dataclass
class RobotsGroup:
    """Rules declared under one User-agent line."""
    user_agent: str
    allow: list[str] = field(default_factory=list)
    disallow: list[str] = field(default_factory=list)


def parse_robots_txt(content: str) -> list[RobotsGroup]:
    """Split robots.txt into per-user-agent rule groups."""
    groups: list[RobotsGroup] = []
    current: Optional[RobotsGroup] = None

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        match = _USER_AGENT.match(line)
        if match:
            current = RobotsGroup(user_agent=match.group(1).strip())
            groups.append(current)
            continue

        if current is None:
            continue

        match = _ALLOW.match(line)
        if match:
            current.allow.append(match.group(1).strip())
            continue

        match = _DISALLOW.match(line)
        if match:
            path = match.group(1).strip()
            # An empty Disallow allows everything
            if path:
                current.disallow.append(path)

    return groups


def _find_group(groups: list[RobotsGroup], user_agent: str) -> Optional[RobotsGroup]:
    for group in groups:
        if group.user_agent.lower() == user_agent.lower():
            return group
    return None


def is_crawler_blocked(groups: list[RobotsGroup], crawler: str) -> bool:
    """Specific rules first, then the wildcard group."""
    specific = _find_group(groups, crawler)
    if specific:
        disallow_all = "/" in specific.disallow
        allow_all = "/" in specific.allow
        if disallow_all and not allow_all:
            return True
        if allow_all:
            return False

    wildcard = _find_group(groups, "*")
    if wildcard and "/" in wildcard.disallow:
        return True

    return False


def classify_crawler(groups: list[RobotsGroup], crawler: str) -> CrawlerAccess:
    if is_crawler_blocked(groups, crawler):
        return CrawlerAccess.BLOCKED
    if _find_group(groups, crawler):
        return CrawlerAccess.ALLOWED
    return CrawlerAccess.UNLISTED


def check_robots(robots_txt: Optional[str]) -> DimensionResult:
    """Score robots.txt by how it treats the known AI crawlers."""
    findings: list[Finding] = []

    if not robots_txt:
        findings.append(Finding(
            type=FindingType.FAIL,
            message="No robots.txt found",
            detail="Create a robots.txt file that explicitly allows AI crawlers",
        ))
        return dimension_result("robots", 0, findings)

    findings.append(Finding(type=FindingType.PASS, message="robots.txt exists"))
    score = BASE_SCORE
    groups = parse_robots_txt(robots_txt)

    if _SITEMAP.search(robots_txt):
        score += SITEMAP_BONUS
        findings.append(Finding(type=FindingType.PASS, message="Sitemap directive present"))
    else:
        findings.append(Finding(type=FindingType.WARNING, message="No Sitemap directive in robots.txt"))

    access = {crawler: classify_crawler(groups, crawler) for crawler in AI_CRAWLERS}
    blocked = [c for c, a in access.items() if a is CrawlerAccess.BLOCKED]
    allowed = [c for c, a in access.items() if a is CrawlerAccess.ALLOWED]
    unlisted = [c for c, a in access.items() if a is CrawlerAccess.UNLISTED]

    if blocked:
        findings.append(Finding(
            type=FindingType.FAIL,
            message=f"{len(blocked)} AI crawlers blocked",
            detail=", ".join(blocked),
        ))
        score -= len(blocked) * PER_CRAWLER_POINTS

    if allowed:
        findings.append(Finding(
            type=FindingType.PASS,
            message=f"{len(allowed)} AI crawlers explicitly allowed",
            detail=", ".join(allowed),
        ))
        score += min(MAX_ALLOWED_BONUS, len(allowed) * PER_CRAWLER_POINTS)

    if 0 < len(unlisted) < len(AI_CRAWLERS):
        findings.append(Finding(
            type=FindingType.WARNING,
            message=f"{len(unlisted)} AI crawlers not explicitly listed",
            detail=", ".join(unlisted),
        ))

    return dimension_result("robots", score, findings)
