"""Generate a robots.txt that welcomes AI crawlers."""

from ..constants import AI_CRAWLERS


def generate_robots_txt(base_url: str) -> str:
    lines = [
        "# robots.txt - allows search engines and AI crawlers",
        "",
        "User-agent: *",
        "Allow: /",
        "",
        "# AI crawlers",
    ]
    for crawler in AI_CRAWLERS:
        lines.extend([f"User-agent: {crawler}", "Allow: /", ""])

    lines.append(f"Sitemap: {base_url}/sitemap.xml")
    lines.append("")
    return "\n".join(lines)
