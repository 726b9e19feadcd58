"""Fixed audit constants."""

AI_CRAWLERS = (
    "GPTBot",
    "OAI-SearchBot",
    "ChatGPT-User",
    "ClaudeBot",
    "Claude-SearchBot",
    "Google-Extended",
    "Gemini-Deep-Research",
    "PerplexityBot",
    "Applebot-Extended",
    "Amazonbot",
    "Bingbot",
    "DuckAssistBot",
    "YouBot",
    "meta-externalagent",
    "PhindBot",
    "cohere-ai",
    "ExaBot",
)

# (id, display name, weight, fixable) - heaviest first, which is also run order
DIMENSIONS = (
    ("schema", "Schema.org JSON-LD", 0.25, True),
    ("robots", "robots.txt", 0.20, True),
    ("llmsTxt", "llms.txt", 0.15, True),
    ("aeo", "AEO Content Quality", 0.15, False),
    ("meta", "Meta & OG Tags", 0.10, True),
    ("sitemap", "sitemap.xml", 0.05, True),
    ("semantic", "Semantic HTML", 0.05, False),
    ("rendering", "Rendering", 0.05, False),
)

DIMENSION_WEIGHTS = {dim_id: weight for dim_id, _, weight, _ in DIMENSIONS}
DIMENSION_NAMES = {dim_id: name for dim_id, name, _, _ in DIMENSIONS}
DIMENSION_FIXABLE = {dim_id: fixable for dim_id, _, _, fixable in DIMENSIONS}

GRADE_THRESHOLDS = (
    (90, "A", "Excellent"),
    (80, "B", "Good"),
    (70, "C", "Average"),
    (60, "D", "Below Average"),
    (0, "F", "Poor"),
)

REQUIRED_META_TAGS = (
    "title",
    "description",
    "canonical",
    "og:title",
    "og:description",
    "og:url",
    "og:type",
    "og:image",
)

MAX_PAGES_TO_AUDIT = 20
MAX_PAGES_TO_DISCOVER = 50

CRAWL_CONCURRENCY = 5
CRAWL_BATCH_PAUSE = 0.3  # seconds
PAGE_TIMEOUT = 15.0
TEXT_FILE_TIMEOUT = 10.0
USER_AGENT = "LLMSearch-Audit/1.0 (+https://github.com/llm-search-audit/llm-search-audit)"

UPLOAD_ORIGIN = "https://uploaded.local"
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ZIP_MAGIC = b"PK\x03\x04"

RATE_LIMIT_MAX = 5
RATE_LIMIT_WINDOW = 60 * 60  # seconds
STORE_TTL = 60 * 60  # seconds

AI_SCORE_WEIGHT = 0.6
DETERMINISTIC_SCORE_WEIGHT = 0.4
MIN_ENHANCED_REPORT_LENGTH = 500

REPORT_FILENAME = "remediation-report.md"
