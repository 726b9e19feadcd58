"""Environment-driven settings."""

import os
from dataclasses import dataclass
from typing import Optional

from .constants import USER_AGENT


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    return value.strip() if value and value.strip() else None


@dataclass(frozen=True)
class Settings:
    """Runtime configuration. Algorithm constants live in constants.py."""
    ai_provider: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    ai_model: Optional[str] = None
    ai_timeout: float = 60.0
    user_agent: str = USER_AGENT
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        timeout = _env("AUDIT_AI_TIMEOUT")
        return cls(
            ai_provider=(_env("AUDIT_AI_PROVIDER") or "").lower() or None,
            anthropic_api_key=_env("ANTHROPIC_API_KEY"),
            openai_api_key=_env("OPENAI_API_KEY"),
            google_api_key=_env("GOOGLE_API_KEY") or _env("GEMINI_API_KEY"),
            ai_model=_env("AUDIT_AI_MODEL"),
            ai_timeout=float(timeout) if timeout else 60.0,
            user_agent=_env("AUDIT_USER_AGENT") or USER_AGENT,
            log_level=(_env("AUDIT_LOG_LEVEL") or "WARNING").upper(),
        )
