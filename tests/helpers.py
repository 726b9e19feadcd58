"""Shared builders for the test suite."""

import io
import json
import zipfile
from typing import Optional, Union

import httpx

from llm_search_audit.ai.providers import TextGenerator
from llm_search_audit.models import PageData


BASE_URL = "https://example.com"

GOOD_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <title>Example Co - Widgets for Everyone</title>
  <meta name="description" content="Example Co builds durable widgets for homes and offices, shipped worldwide since 2010.">
  <link rel="canonical" href="https://example.com/">
  <meta property="og:title" content="Example Co">
  <meta property="og:description" content="Durable widgets for homes and offices.">
  <meta property="og:url" content="https://example.com/">
  <meta property="og:type" content="website">
  <meta property="og:image" content="https://example.com/logo.png">
  <script type="application/ld+json">
  {"@context": "https://schema.org", "@type": "Organization", "name": "Example Co", "logo": "https://example.com/logo.png"}
  </script>
</head>
<body>
  <header><nav><a href="/about">About</a> <a href="/blog/first-post">Blog</a></nav></header>
  <main>
    <article>
      <h1>Widgets for Everyone</h1>
      <div class="summary"><p>Example Co makes widgets. They last for decades.</p></div>
      <h2>Why our widgets</h2>
      <p>Every widget is tested for ten thousand cycles before it ships to you.</p>
      <ul><li>Durable</li><li>Affordable</li></ul>
      <h2>FAQ</h2>
      <details><summary>How long is shipping?</summary><p>Shipping takes three to five business days.</p></details>
      <p>Source: our own lab reports.</p>
    </article>
  </main>
  <footer>Example Co</footer>
</body>
</html>"""

BARE_HTML = "<html><head></head><body><div>Hello</div></body></html>"


def page_url(path: str, base_url: str = BASE_URL) -> str:
    return base_url + path if path != "/" else base_url


def make_page(path: str = "/", html: str = GOOD_HTML, title: Optional[str] = None, base_url: str = BASE_URL) -> PageData:
    return PageData(url=page_url(path, base_url), path=path, html=html, title=title or "Example Co", status_code=200)


def make_zip(files: dict[str, Union[str, bytes]]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def site_transport(routes: dict[str, Union[str, httpx.Response]], seen: Optional[list[str]] = None) -> httpx.MockTransport:
    """Serve routes by path; '.html'-less paths are HTML, known text files are plain text, the rest 404."""
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(str(request.url))
        path = request.url.path or "/"
        body = routes.get(path)
        if body is None:
            return httpx.Response(404, text="not found")
        if isinstance(body, httpx.Response):
            return body
        if path.endswith((".txt", ".xml")):
            return httpx.Response(200, text=body)
        return httpx.Response(200, html=body)

    return httpx.MockTransport(handler)


# Prompt fragments that identify each AI task; the report prompt embeds
# findings text, so it is matched first
STEP_MARKERS = {
    "report": "remediation report",
    "aeo": "Answer Engine Optimization",
    "llms-txt": "llmstxt.org",
    "json-ld": "Schema.org JSON-LD for each page",
}


class FakeGenerator(TextGenerator):
    """Replies per AI step; an Exception value is raised instead of returned."""

    name = "Fake"
    model = "fake-model"

    def __init__(self, replies: dict[str, Union[str, Exception]]):
        self.replies = replies
        self.calls: list[str] = []

    def is_configured(self) -> bool:
        return True

    def generate(self, prompt: str, max_tokens: int = 1024) -> str:
        for step, marker in STEP_MARKERS.items():
            if marker in prompt:
                self.calls.append(step)
                reply = self.replies.get(step, "")
                if isinstance(reply, Exception):
                    raise reply
                return reply
        raise AssertionError("Unrecognized prompt")


def aeo_reply(score: int = 80, findings: Optional[list[dict]] = None) -> str:
    return json.dumps({"score": score, "findings": findings or [{"type": "pass", "message": "Clear answers"}]})


def llms_reply() -> str:
    return json.dumps({
        "llmsTxt": "# AI Site\n\n> Written by a model.\n\n## Pages\n\n- [Home](https://example.com)\n",
        "llmsFullTxt": "# AI Site\n\n> Written by a model.\n\nFull text here.\n",
    })


def json_ld_reply(paths: list[str]) -> str:
    """Schemas keyed by page URL; paths may carry a query string."""
    return json.dumps({
        "schemas": {
            page_url(path): {"@context": "https://schema.org", "@type": "WebPage", "name": f"AI {path}"}
            for path in paths
        }
    })


def report_reply(length: int = 800) -> str:
    return json.dumps({"report": "# Enhanced Report\n\n" + "x" * length})
