"""Request handling for audits, downloads and page fixes.

Framework-neutral: every operation takes plain values (URL, bytes, headers)
and returns plain values or an iterator of NDJSON lines, so any web layer or
the CLI can drive it.
"""

import io
import json
import logging
import math
import queue
import threading
import time
import zipfile
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping, Optional, Union
from urllib.parse import urlparse

import httpx

from .ai.providers import TextGenerator, get_configured_generator
from .auditor import run_full_audit
from .config import Settings
from .constants import MAX_UPLOAD_BYTES, ZIP_MAGIC
from .crawler import build_client, crawl_site, normalize_url, parse_uploaded_zip
from .exceptions import AuditError, InputValidationError, NotFoundError, RateLimitedError
from .generators import fixed_pages_to_files, generate_fixed_pages
from .models import AuditResult, CrawlResult, ProgressEvent, ProgressStatus
from .store import AuditStores, RateLimiter


logger = logging.getLogger(__name__)

BUNDLE_FILENAME = "llm-search-fixes.zip"
FIXED_PAGES_FILENAME = "fixed-pages.zip"
ZIP_MEDIA_TYPE = "application/zip"

_DONE = object()

Emit = Callable[[dict[str, Any]], None]


@dataclass(frozen=True)
class FileResponse:
    """A binary download."""
    content: bytes
    filename: str
    media_type: str = ZIP_MEDIA_TYPE


def client_ip(headers: Optional[Mapping[str, str]]) -> str:
    """Caller key for rate limiting: first forwarded-for hop, then real IP."""
    if not headers:
        return "unknown"
    lowered = {k.lower(): v for k, v in headers.items()}
    forwarded = lowered.get("x-forwarded-for", "").split(",")[0].strip()
    return forwarded or lowered.get("x-real-ip", "").strip() or "unknown"


def validate_url(url: str) -> str:
    """Normalize url, rejecting anything without a dotted hostname."""
    if not url or not url.strip():
        raise InputValidationError("URL is required")
    normalized = normalize_url(url.strip())
    try:
        hostname = urlparse(normalized).hostname
    except ValueError:
        hostname = None
    if not hostname or "." not in hostname:
        raise InputValidationError("Please enter a valid URL")
    return normalized


def validate_archive(data: bytes) -> bytes:
    if len(data) > MAX_UPLOAD_BYTES:
        raise InputValidationError(
            f"File is {len(data) / (1024 * 1024):.1f} MB. Maximum is {MAX_UPLOAD_BYTES // (1024 * 1024)} MB."
        )
    if not data:
        raise InputValidationError("The uploaded file is empty.")
    if not data.startswith(ZIP_MAGIC):
        raise InputValidationError(
            "Only .zip files are accepted. The uploaded file does not appear to be a valid zip archive."
        )
    return data


def zip_files(files: Mapping[str, str]) -> bytes:
    """Pack a filename to content map into zip bytes, skipping empty files."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for filename, content in files.items():
            if content:
                archive.writestr(filename, content)
    return buffer.getvalue()


def ndjson(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False) + "\n"


class AuditService:
    """Entry points for URL and archive audits plus their follow-up downloads."""

    def __init__(
        self,
        stores: Optional[AuditStores] = None,
        rate_limiter: Optional[RateLimiter] = None,
        generator: Optional[TextGenerator] = None,
        client_factory: Callable[[], httpx.Client] = build_client,
        pause: Callable[[float], None] = time.sleep,
    ):
        self.stores = stores if stores is not None else AuditStores.in_memory()
        self.rate_limiter = rate_limiter
        self.generator = generator
        self.client_factory = client_factory
        self.pause = pause

    @classmethod
    def from_settings(cls, settings: Settings, rate_limited: bool = True) -> "AuditService":
        generator = get_configured_generator(settings)
        if generator:
            logger.info("AI enhancement enabled via %s (%s)", generator.name, generator.model)
        return cls(
            rate_limiter=RateLimiter() if rate_limited else None,
            generator=generator,
            client_factory=lambda: build_client(user_agent=settings.user_agent),
        )

    def check_rate_limit(self, headers: Optional[Mapping[str, str]]) -> Optional[int]:
        """Count one request. Returns the remaining quota, None when unlimited.

        Raises:
            RateLimitedError: when the caller is over the limit
        """
        if self.rate_limiter is None:
            return None
        key = client_ip(headers)
        decision = self.rate_limiter.check(key)
        if not decision.allowed:
            minutes = math.ceil(decision.retry_after / 60)
            logger.warning("Rate limited %s for %ss", key, decision.retry_after)
            raise RateLimitedError(
                f"Too many requests. Try again in {minutes} minutes.",
                retry_after=decision.retry_after,
                reset_at=decision.reset_at,
            )
        return decision.remaining

    def audit(self, crawl: CrawlResult, on_progress: Optional[Callable[[ProgressEvent], None]] = None) -> AuditResult:
        return run_full_audit(crawl, on_progress=on_progress, generator=self.generator, stores=self.stores)

    def crawl(self, url: str) -> CrawlResult:
        with self.client_factory() as client:
            return crawl_site(url, client=client, pause=self.pause)

    def stream_url_audit(self, url: str, headers: Optional[Mapping[str, str]] = None) -> Iterator[str]:
        """Validate now, then stream the audit as NDJSON lines.

        Raises:
            RateLimitedError: before any line is produced
            InputValidationError: before any line is produced
        """
        self.check_rate_limit(headers)
        normalized = validate_url(url)

        def job(emit: Emit) -> AuditResult:
            hostname = urlparse(normalized).hostname
            step = "Crawling site"
            emit(ProgressEvent(step, ProgressStatus.RUNNING, detail=f"Discovering pages on {hostname}...").to_dict())
            crawl = self.crawl(normalized)
            emit(ProgressEvent(step, ProgressStatus.COMPLETE).to_dict())
            return self._audit_with_info(crawl, emit)

        return self._stream(job)

    def stream_archive_audit(self, data: bytes, headers: Optional[Mapping[str, str]] = None) -> Iterator[str]:
        """Archive counterpart of stream_url_audit."""
        self.check_rate_limit(headers)
        validate_archive(data)

        def job(emit: Emit) -> AuditResult:
            step = "Extracting files"
            emit(ProgressEvent(step, ProgressStatus.RUNNING).to_dict())
            crawl = parse_uploaded_zip(data)
            emit(ProgressEvent(step, ProgressStatus.COMPLETE).to_dict())
            return self._audit_with_info(crawl, emit)

        return self._stream(job)

    def _audit_with_info(self, crawl: CrawlResult, emit: Emit) -> AuditResult:
        emit({
            "type": "info",
            "siteType": crawl.site_type,
            "pagesFound": len(crawl.pages),
            "baseUrl": crawl.base_url,
        })
        return self.audit(crawl, on_progress=lambda event: emit(event.to_dict()))

    def _stream(self, job: Callable[[Emit], AuditResult]) -> Iterator[str]:
        lines: "queue.Queue[object]" = queue.Queue()

        def emit(payload: dict[str, Any]) -> None:
            lines.put(ndjson(payload))

        def worker() -> None:
            try:
                result = job(emit)
                emit({"type": "complete", "result": result.to_dict()})
            except AuditError as e:
                logger.warning("Audit failed: %s", e)
                emit({"type": "error", "message": str(e)})
            except Exception as e:  # ends this run only
                logger.exception("Audit crashed")
                emit({"type": "error", "message": str(e) or "Audit failed"})
            finally:
                lines.put(_DONE)

        threading.Thread(target=worker, name="audit-run", daemon=True).start()

        def consume() -> Iterator[str]:
            while True:
                item = lines.get()
                if item is _DONE:
                    return
                yield item

        return consume()

    def download_bundle(self, download_id: str) -> FileResponse:
        if not download_id:
            raise InputValidationError("Missing download ID")
        files = self.stores.artifacts.get(download_id)
        if files is None:
            raise NotFoundError("Download expired or not found. Please run a new audit.")
        return FileResponse(zip_files(files), BUNDLE_FILENAME)

    def fix_pages(self, fix_pages_id: str, accept: str = "application/json") -> Union[FileResponse, dict[str, Any]]:
        """Regenerate fixed HTML for a stored run.

        Returns a zip when accept asks for application/zip, otherwise a JSON
        listing of files with per-page size and changes.
        """
        if not fix_pages_id:
            raise InputValidationError("fixPagesId is required")
        snapshot = self.stores.pages.get(fix_pages_id)
        if snapshot is None:
            raise NotFoundError("Session expired or not found. Please run a new audit.")

        fixed = generate_fixed_pages(snapshot.pages, snapshot.schema_files, snapshot.base_url, snapshot.site_name)
        files = fixed_pages_to_files(fixed)
        if not files:
            return {
                "message": "No pages needed fixing - all pages already have the required meta tags and JSON-LD.",
                "files": {},
            }

        if ZIP_MEDIA_TYPE in (accept or ""):
            return FileResponse(zip_files(files), FIXED_PAGES_FILENAME)

        return {
            "files": files,
            "summary": {
                page.filename: {"size": len(page.content), "changes": ", ".join(page.changes)}
                for page in fixed
            },
            "pageCount": len(fixed),
        }
