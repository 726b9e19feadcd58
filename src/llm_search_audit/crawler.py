"""Discover and fetch a site's pages and well-known files."""

import io
import logging
import re
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from .constants import (
    CRAWL_BATCH_PAUSE,
    CRAWL_CONCURRENCY,
    MAX_PAGES_TO_DISCOVER,
    PAGE_TIMEOUT,
    TEXT_FILE_TIMEOUT,
    UPLOAD_ORIGIN,
    USER_AGENT,
)
from .exceptions import CrawlError
from .models import CrawlResult, PageData
from .parsers import detect_site_type, extract_internal_links, normalize_link, page_title


logger = logging.getLogger(__name__)

# Private, loopback and link-local hosts are never fetched
BLOCKED_HOSTS = (
    re.compile(r"^localhost$", re.I),
    re.compile(r"^127\."),
    re.compile(r"^10\."),
    re.compile(r"^172\.(1[6-9]|2[0-9]|3[01])\."),
    re.compile(r"^192\.168\."),
    re.compile(r"^0\."),
    re.compile(r"^169\.254\."),
    re.compile(r"^::1$"),
    re.compile(r"^f[cd][0-9a-f]*:", re.I),
    re.compile(r"^fe80:", re.I),
)

SPECIAL_FILES = ("robots.txt", "sitemap.xml", "llms.txt", "llms-full.txt")

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class BlockedUrlError(Exception):
    """Raised when a request targets a private or loopback host."""


def normalize_url(url: str) -> str:
    """Ensure URL has a scheme and no trailing slash."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    if url.endswith("/") and url not in ("https://", "http://"):
        url = url[:-1]
    return url


def is_blocked_url(url: str) -> bool:
    """True when the URL is unparseable or its host is private/loopback/link-local."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return True
    if not hostname:
        return True
    return any(pattern.search(hostname) for pattern in BLOCKED_HOSTS)


def _guard_request(request: httpx.Request) -> None:
    # Runs for every hop, so redirects into private space are refused too
    if is_blocked_url(str(request.url)):
        raise BlockedUrlError(f"Blocked request to {request.url.host}")


def build_client(
    user_agent: str = USER_AGENT,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """HTTP client used for crawling, with the SSRF guard installed."""
    headers = {**DEFAULT_HEADERS, "User-Agent": user_agent}
    return httpx.Client(
        headers=headers,
        timeout=PAGE_TIMEOUT,
        follow_redirects=True,
        transport=transport,
        event_hooks={"request": [_guard_request]},
    )


def fetch_page(client: httpx.Client, url: str) -> Optional[tuple[str, int]]:
    """Fetch an HTML page. Returns (html, status) or None when unusable."""
    if is_blocked_url(url):
        logger.debug("Skipping blocked URL %s", url)
        return None

    try:
        response = client.get(url, timeout=PAGE_TIMEOUT)
    except (httpx.HTTPError, BlockedUrlError) as e:
        logger.debug("Fetch failed for %s: %s", url, e)
        return None

    if not response.is_success:
        return ("", response.status_code)

    content_type = response.headers.get("content-type", "")
    if "text/html" not in content_type and "application/xhtml" not in content_type:
        logger.debug("Skipping non-HTML %s (%s)", url, content_type)
        return None

    return (response.text, response.status_code)


def fetch_text_file(client: httpx.Client, url: str) -> Optional[str]:
    """Fetch an auxiliary text file. Absence is None, not an error."""
    if is_blocked_url(url):
        return None

    try:
        response = client.get(url, timeout=TEXT_FILE_TIMEOUT)
    except (httpx.HTTPError, BlockedUrlError) as e:
        logger.debug("Could not fetch %s: %s", url, e)
        return None

    if not response.is_success:
        return None
    return response.text


def _origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def crawl_site(
    url: str,
    client: Optional[httpx.Client] = None,
    pause: Callable[[float], None] = time.sleep,
) -> CrawlResult:
    """Crawl a site from its seed URL.

    Args:
        url: Seed URL, scheme optional
        client: HTTP client to use (default: a fresh guarded client)
        pause: Sleep function used between fetch batches

    Raises:
        CrawlError: if the seed page cannot be fetched as HTML
    """
    base_url = normalize_url(url)
    origin = _origin(base_url)

    owns_client = client is None
    if client is None:
        client = build_client()

    try:
        root = fetch_page(client, base_url)
        if not root or not root[0]:
            raise CrawlError(f"Could not fetch {base_url} - site may be unreachable")

        root_html, root_status = root
        pages = [PageData(
            url=base_url,
            path=urlparse(base_url).path or "/",
            html=root_html,
            title=page_title(root_html, base_url),
            status_code=root_status,
        )]
        visited = {base_url, normalize_link(base_url)}

        soup = BeautifulSoup(root_html, "lxml")
        to_visit = [
            link for link in extract_internal_links(soup, base_url)
            if link not in visited
        ][:MAX_PAGES_TO_DISCOVER]

        logger.info("Discovered %d internal links on %s", len(to_visit), base_url)

        def crawl_one(page_url: str) -> Optional[PageData]:
            result = fetch_page(client, page_url)
            if not result or not result[0]:
                return None
            html, status = result
            return PageData(
                url=page_url,
                path=urlparse(page_url).path or "/",
                html=html,
                title=page_title(html, page_url),
                status_code=status,
            )

        with ThreadPoolExecutor(max_workers=CRAWL_CONCURRENCY) as executor:
            for start in range(0, len(to_visit), CRAWL_CONCURRENCY):
                batch = [u for u in to_visit[start:start + CRAWL_CONCURRENCY] if u not in visited]
                visited.update(batch)
                # map() keeps discovery order
                pages.extend(page for page in executor.map(crawl_one, batch) if page)

                if start + CRAWL_CONCURRENCY < len(to_visit):
                    pause(CRAWL_BATCH_PAUSE)

            special = list(executor.map(
                lambda name: fetch_text_file(client, f"{origin}/{name}"),
                SPECIAL_FILES,
            ))
    finally:
        if owns_client:
            client.close()

    robots_txt, sitemap_xml, llms_txt, llms_full_txt = special
    logger.info("Crawled %d pages from %s", len(pages), origin)

    return CrawlResult(
        pages=pages,
        base_url=origin,
        robots_txt=robots_txt,
        sitemap_xml=sitemap_xml,
        llms_txt=llms_txt,
        llms_full_txt=llms_full_txt,
        site_type=detect_site_type(pages),
    )


def _common_root(names: list[str]) -> str:
    """Return 'folder/' when every entry lives under one top-level folder."""
    first_parts = {name.split("/", 1)[0] for name in names}
    if len(first_parts) != 1:
        return ""
    root = first_parts.pop()
    if all(name.startswith(root + "/") for name in names):
        return root + "/"
    return ""


def parse_uploaded_zip(data: bytes) -> CrawlResult:
    """Turn an uploaded zip of a static site into a CrawlResult.

    Raises:
        CrawlError: if the archive is unreadable or has no HTML files
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise CrawlError(f"Could not read zip archive: {e}") from e

    with archive:
        entries = [
            info for info in archive.infolist()
            if not info.filename.startswith("__MACOSX/")
        ]
        root = _common_root([info.filename for info in entries])

        pages: list[PageData] = []
        special: dict[str, str] = {}

        for info in entries:
            if info.is_dir():
                continue

            path = info.filename[len(root):] if root else info.filename
            file_name = path.rsplit("/", 1)[-1]
            lowered = file_name.lower()

            if "/" not in path and lowered in SPECIAL_FILES:
                special[lowered] = archive.read(info).decode("utf-8", errors="replace")
                continue

            if lowered.endswith((".html", ".htm")):
                html = archive.read(info).decode("utf-8", errors="replace")
                page_path = "/" + path
                pages.append(PageData(
                    url=f"{UPLOAD_ORIGIN}{page_path}",
                    path=page_path,
                    html=html,
                    title=page_title(html, file_name),
                ))

    if not pages:
        raise CrawlError("No HTML files found in the zip archive.")

    logger.info("Extracted %d HTML files from upload", len(pages))

    return CrawlResult(
        pages=pages,
        base_url=UPLOAD_ORIGIN,
        robots_txt=special.get("robots.txt"),
        sitemap_xml=special.get("sitemap.xml"),
        llms_txt=special.get("llms.txt"),
        llms_full_txt=special.get("llms-full.txt"),
        site_type=detect_site_type(pages),
    )
