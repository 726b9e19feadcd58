import json
from datetime import date

from llm_search_audit.checks import check_llms_txt, check_robots, check_sitemap
from llm_search_audit.constants import AI_CRAWLERS, REPORT_FILENAME
from llm_search_audit.generators import (
    fixed_pages_to_files,
    generate_fixed_pages,
    generate_json_ld_files,
    generate_llms_full_txt,
    generate_llms_txt,
    generate_report,
    generate_robots_txt,
    generate_sitemap_xml,
)
from llm_search_audit.generators.fixed_pages import fix_page
from llm_search_audit.generators.schema import build_page_schema, page_slug, page_slugs, schema_filename, schema_to_html
from llm_search_audit.models import AiMode, AuditResult, DimensionResult, Finding, FindingType, PageData

from helpers import BARE_HTML, BASE_URL, GOOD_HTML, make_page, page_url


# robots.txt

def test_robots_txt_lists_every_ai_crawler_and_sitemap():
    robots = generate_robots_txt(BASE_URL)
    for crawler in AI_CRAWLERS:
        assert f"User-agent: {crawler}\nAllow: /" in robots
    assert robots.rstrip().endswith("Sitemap: https://example.com/sitemap.xml")


# sitemap.xml

def test_sitemap_one_entry_per_unique_page():
    pages = [make_page("/"), make_page("/about"), make_page("/about")]
    xml = generate_sitemap_xml(pages, BASE_URL, lastmod=date(2024, 5, 1))

    assert 'xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"' in xml
    assert xml.count("<url>") == 2
    assert xml.count("<lastmod>2024-05-01</lastmod>") == 2
    assert "<loc>https://example.com</loc>\n    <lastmod>2024-05-01</lastmod>\n    <priority>1.0</priority>" in xml
    assert "<loc>https://example.com/about</loc>" in xml


def test_sitemap_escapes_urls():
    xml = generate_sitemap_xml([make_page("/search?a=1&b=2")], BASE_URL)
    assert "a=1&amp;b=2" in xml


def test_generated_sitemap_scores_well():
    pages = [make_page("/"), make_page("/about")]
    result = check_sitemap(generate_sitemap_xml(pages, BASE_URL), generate_robots_txt(BASE_URL), pages)
    assert result.score == 100


# llms.txt

def test_llms_txt_groups_pages_into_sections():
    pages = [
        make_page("/", GOOD_HTML, title="Home"),
        make_page("/about", BARE_HTML, title="About"),
        make_page("/blog/first-post", BARE_HTML, title="First Post"),
        make_page("/pricing", BARE_HTML, title="Pricing"),
    ]
    text = generate_llms_txt(pages, BASE_URL, "Example Co")

    assert text.startswith("# Example Co\n\n> Example Co builds durable widgets")
    assert "## Main Pages\n\n- [Home](https://example.com): Example Co builds" in text
    assert "- [About](https://example.com/about)\n" in text
    assert "## Blog\n\n- [First Post](https://example.com/blog/first-post)" in text
    assert "## Other Pages\n\n- [Pricing](https://example.com/pricing)" in text


def test_llms_txt_description_fallback():
    text = generate_llms_txt([make_page("/", BARE_HTML)], "https://www.example.com", "Example")
    assert "> Example - Visit example.com to learn more." in text


def test_llms_full_txt_inlines_page_text():
    text = generate_llms_full_txt([make_page("/about", BARE_HTML, title="About")], BASE_URL, "Example")
    assert "### About\n\nURL: https://example.com/about\n\nHello" in text


def test_generated_llms_files_score_well():
    pages = [make_page("/"), make_page("/about")]
    result = check_llms_txt(
        generate_llms_txt(pages, BASE_URL, "Example"),
        generate_llms_full_txt(pages, BASE_URL, "Example"),
        pages,
    )
    assert result.score == 100


def test_generated_robots_scores_full():
    assert check_robots(generate_robots_txt(BASE_URL)).score == 100


# JSON-LD

def test_page_slug():
    assert page_slug("/") == "home"
    assert page_slug("") == "home"
    assert page_slug("/docs/guide.html") == "docs--guide"
    assert page_slug("/a b/") == "a-b"
    assert schema_filename(page_slug("/about/")) == "schema/about.json"


def query_page(query: str, html: str = BARE_HTML) -> PageData:
    return PageData(url=page_url(f"/item?{query}"), path="/item", html=html, title=f"Item {query}")


def colliding_pages() -> list[PageData]:
    return [
        query_page("id=1"),
        query_page("id=2"),
        make_page("/a/b", BARE_HTML),
        make_page("/a--b", BARE_HTML),
    ]


def test_page_slugs_unique_per_page():
    slugs = page_slugs(colliding_pages())
    assert list(slugs.values()) == ["item", "item-2", "a--b", "a--b-2"]
    assert slugs[page_url("/item?id=2")] == "item-2"


def test_json_ld_files_keep_every_colliding_page():
    files = generate_json_ld_files(colliding_pages(), BASE_URL, "Example Co")

    assert len(files) == 4
    second = json.loads(files["schema/item-2.json"])["@graph"][0]
    assert second["url"] == "https://example.com/item?id=2"


def test_home_schema_has_website_and_organization():
    schema = build_page_schema(make_page("/", GOOD_HTML), BASE_URL, "Example Co")

    assert schema["@context"] == "https://schema.org"
    types = [node["@type"] for node in schema["@graph"]]
    assert types == ["WebSite", "Organization"]
    organization = schema["@graph"][1]
    assert organization["logo"] == "https://example.com/logo.png"


def test_post_schema_has_article_fields_and_breadcrumbs():
    html = '<html><head><title>First</title></head><body><time datetime="2024-02-03">Feb 3</time></body></html>'
    schema = build_page_schema(make_page("/blog/first-post", html, title="First"), BASE_URL, "Example Co")

    node, breadcrumbs = schema["@graph"]
    assert node["@type"] == "BlogPosting"
    assert node["datePublished"] == "2024-02-03"
    assert node["author"] == {"@type": "Organization", "name": "Example Co"}
    assert [item["item"] for item in breadcrumbs["itemListElement"]] == [
        "https://example.com/",
        "https://example.com/blog",
        "https://example.com/blog/first-post",
    ]
    assert breadcrumbs["itemListElement"][-1]["name"] == "First"


def test_faq_schema_uses_question_headings():
    html = "<h3>What is a widget?</h3><p>A widget is a small, durable gadget for the home.</p>"
    schema = build_page_schema(make_page("/faq", html), BASE_URL, "Example Co")
    question = schema["@graph"][0]["mainEntity"][0]
    assert question["name"] == "What is a widget?"
    assert question["acceptedAnswer"]["text"].startswith("A widget is")


def test_json_ld_files_keyed_by_slug():
    files = generate_json_ld_files([make_page("/"), make_page("/services")], BASE_URL, "Example Co")
    assert set(files) == {"schema/home.json", "schema/services.json"}
    service = json.loads(files["schema/services.json"])["@graph"][0]
    assert service["@type"] == "Service"
    assert service["provider"]["name"] == "Example Co"


# Report

def sample_result() -> AuditResult:
    dims = [
        DimensionResult("schema", "Schema.org JSON-LD", 0.25, 0, [
            Finding(FindingType.FAIL, "No JSON-LD found", page="/"),
        ], fixable=True),
        DimensionResult("semantic", "Semantic HTML", 0.05, 95, [
            Finding(FindingType.PASS, "Single H1 tag", page="/"),
        ]),
    ]
    return AuditResult(
        url=BASE_URL,
        timestamp="2024-05-01T00:00:00Z",
        site_type="Static HTML",
        pages_audited=1,
        total_pages=1,
        overall_score=5,
        dimensions=dims,
        priorities=["Schema.org JSON-LD (0/100): No JSON-LD found"],
        generated_files={"robots.txt": "x", "schema/home.json": "{}", REPORT_FILENAME: "old"},
        ai_mode=AiMode.BASIC,
    )


def test_report_sections():
    report = generate_report(sample_result())

    assert report.startswith("# AI Search Visibility Report")
    assert "| **Site** | https://example.com |" in report
    assert "| **Overall score** | 5/100 (F, Poor) |" in report
    assert "1. Schema.org JSON-LD (0/100): No JSON-LD found" in report
    assert "## Schema.org JSON-LD: 0/100 (F)" in report
    assert "- ❌ No JSON-LD found (`/`)" in report
    assert "**Fix:** Add the generated `schema/*.json`" in report
    assert "## Semantic HTML: 95/100 (A)" in report
    assert "- `robots.txt`" in report
    assert REPORT_FILENAME not in report


# Fixed pages

def test_fix_page_injects_missing_tags_before_head_close():
    page = make_page("/about", BARE_HTML, title="About & Us")
    stored = {"schema/about.json": json.dumps({"@context": "https://schema.org", "@type": "AboutPage", "name": "Stored"})}

    fixed = fix_page(page, stored, BASE_URL, "Example Co")

    assert fixed.filename == "pages/about.html"
    assert fixed.changes == [
        "title", "meta description", "canonical", "og:title",
        "og:description", "og:url", "og:type", "JSON-LD",
    ]
    assert "<title>About &amp; Us</title>" in fixed.content
    assert '<link rel="canonical" href="https://example.com/about">' in fixed.content
    assert '<meta name="description" content="Hello">' in fixed.content
    assert '"name": "Stored"' in fixed.content
    assert fixed.content.index("application/ld+json") < fixed.content.index("</head>")
    assert fixed.content.endswith("<body><div>Hello</div></body></html>")


def test_fix_page_without_gaps_returns_none():
    assert fix_page(make_page("/", GOOD_HTML), {}, BASE_URL, "Example Co") is None


def test_fix_page_adds_head_when_missing():
    fixed = fix_page(make_page("/x", "<html><body><p>Hi there</p></body></html>"), {}, BASE_URL, "Example")
    assert fixed.content.startswith("<html>\n<head>\n<title>")

    fragment = fix_page(make_page("/y", "<p>Hi</p>"), {}, BASE_URL, "Example")
    assert fragment.content.startswith("<head>\n")
    assert fragment.content.endswith("</head>\n<p>Hi</p>")


def test_fix_page_builds_schema_when_none_stored():
    fixed = fix_page(make_page("/contact", BARE_HTML), {}, BASE_URL, "Example Co")
    assert '"@type": "ContactPage"' in fixed.content


def test_fixed_pages_files_and_readme():
    pages = [make_page("/", GOOD_HTML), make_page("/about", BARE_HTML, title="About")]
    fixed = generate_fixed_pages(pages, {}, BASE_URL, "Example Co")

    assert [f.path for f in fixed] == ["/about"]
    files = fixed_pages_to_files(fixed)
    assert set(files) == {"pages/about.html", "pages/README.md"}
    assert "- **/about**: Added title, meta description" in files["pages/README.md"]


def test_no_gaps_gives_empty_result():
    assert generate_fixed_pages([make_page("/", GOOD_HTML)], {}, BASE_URL, "Example Co") == []
    assert fixed_pages_to_files([]) == {}


def test_fixed_pages_for_query_variants_do_not_overwrite():
    pages = [query_page("id=1"), query_page("id=2")]
    schema_files = generate_json_ld_files(pages, BASE_URL, "Example Co")

    fixed = generate_fixed_pages(pages, schema_files, BASE_URL, "Example Co")
    files = fixed_pages_to_files(fixed)

    assert set(files) == {"pages/item.html", "pages/item-2.html", "pages/README.md"}
    assert "https://example.com/item?id=2" in files["pages/item-2.html"]
    assert "https://example.com/item?id=1" not in files["pages/item-2.html"]
    assert "- **/item?id=1**: Added" in files["pages/README.md"]
    assert "- **/item?id=2**: Added" in files["pages/README.md"]


def test_json_ld_cannot_close_its_script_tag():
    html = schema_to_html({"@type": "WebPage", "name": "Tips </script><b>bold</b>"})

    assert html.count("</script>") == 1
    body = html.split(">", 1)[1].rsplit("</script>", 1)[0]
    assert json.loads(body)["name"] == "Tips </script><b>bold</b>"


def test_fix_page_with_script_in_title_keeps_one_json_ld_block():
    page = make_page("/tips", BARE_HTML, title="Tips </script><script>alert(1)</script>")

    fixed = fix_page(page, {}, BASE_URL, "Example Co")

    assert fixed.content.count("<script") == 1
    assert fixed.content.count("</script>") == 1
