"""Run-level errors."""

from typing import Optional


class AuditError(Exception):
    """Base class for errors that end a single audit run."""


class InputValidationError(AuditError):
    """Bad URL or upload, rejected before any streaming starts."""


class CrawlError(AuditError):
    """Seed site unreachable or archive without HTML."""


class NotFoundError(AuditError):
    """Stored result expired or never existed."""


class RateLimitedError(AuditError):
    """Caller exceeded the request quota."""

    def __init__(self, message: str, retry_after: int, reset_at: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after
        self.reset_at = reset_at
