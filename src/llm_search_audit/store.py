"""In-memory TTL stores and the per-caller rate limiter."""

import math
import secrets
import time
from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, TypeVar

from .constants import RATE_LIMIT_MAX, RATE_LIMIT_WINDOW, STORE_TTL
from .models import PageData


V = TypeVar("V")

Clock = Callable[[], float]


class TTLStore(Generic[V]):
    """Key/value map whose entries expire ttl seconds after being set.

    Expired entries are swept whenever the store is touched; there is no
    background thread.
    """

    def __init__(self, ttl: float = STORE_TTL, clock: Clock = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._items: dict[str, tuple[float, V]] = {}

    def _cleanup(self) -> None:
        now = self._clock()
        for key, (expires_at, _) in list(self._items.items()):
            if expires_at <= now:
                self._items.pop(key, None)

    def get(self, key: str) -> Optional[V]:
        self._cleanup()
        entry = self._items.get(key)
        return entry[1] if entry else None

    def set(self, key: str, value: V) -> None:
        self._cleanup()
        self._items[key] = (self._clock() + self.ttl, value)

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def put(self, value: V) -> str:
        """Store value under a fresh random id and return the id."""
        key = secrets.token_urlsafe(16)
        self.set(key, value)
        return key

    def __len__(self) -> int:
        self._cleanup()
        return len(self._items)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: float
    retry_after: int  # seconds, 0 when allowed


class RateLimiter:
    """Fixed-window request counter keyed by caller."""

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX,
        window: float = RATE_LIMIT_WINDOW,
        clock: Clock = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}

    def check(self, key: str) -> RateLimitDecision:
        """Count one request for key and say whether it is allowed."""
        now = self._clock()
        for other, (reset_at, _) in list(self._windows.items()):
            if reset_at <= now:
                self._windows.pop(other, None)

        reset_at, count = self._windows.get(key, (now + self.window, 0))
        if count >= self.max_requests:
            return RateLimitDecision(
                allowed=False,
                remaining=0,
                reset_at=reset_at,
                retry_after=max(1, math.ceil(reset_at - now)),
            )

        count += 1
        self._windows[key] = (reset_at, count)
        return RateLimitDecision(
            allowed=True,
            remaining=self.max_requests - count,
            reset_at=reset_at,
            retry_after=0,
        )


@dataclass
class PageSnapshot:
    """What the fix-pages endpoint needs to regenerate fixed HTML."""
    pages: list[PageData]
    schema_files: dict[str, str]
    base_url: str
    site_name: str


@dataclass
class AuditStores:
    """The two result caches shared by every run in a process."""
    artifacts: TTLStore[dict[str, str]] = field(default_factory=TTLStore)
    pages: TTLStore[PageSnapshot] = field(default_factory=TTLStore)

    @classmethod
    def in_memory(cls, ttl: float = STORE_TTL, clock: Clock = time.monotonic) -> "AuditStores":
        return cls(artifacts=TTLStore(ttl, clock), pages=TTLStore(ttl, clock))
