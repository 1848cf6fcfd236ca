"""OpenAI-compatible chat completion access."""

from __future__ import annotations

from ZoteroReader.llm.client import LLMApiClient, normalize_endpoint
from ZoteroReader.llm.sse import SSEEvent, SSEParser, extract_delta_content

__all__ = [
    "LLMApiClient",
    "SSEEvent",
    "SSEParser",
    "extract_delta_content",
    "normalize_endpoint",
]
