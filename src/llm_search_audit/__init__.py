"""LLM Search Audit - AI crawler visibility audits for websites."""

__version__ = "0.1.0"
