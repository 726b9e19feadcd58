"""Optional AI enhancement overlay."""

from .providers import (
    AiError,
    AiMalformedOutputError,
    AiProviderError,
    AiTimeoutError,
    TextGenerator,
    get_configured_generator,
)

__all__ = [
    "AiError",
    "AiMalformedOutputError",
    "AiProviderError",
    "AiTimeoutError",
    "TextGenerator",
    "get_configured_generator",
]
