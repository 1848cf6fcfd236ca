"""Paper context extraction for conversation prompts.

Fetches an item's metadata and full-text index from Zotero and bounds the
full text to a token budget.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Final, Mapping

from ZoteroReader.core.models import PaperContext
from ZoteroReader.translate.prompts import MISSING_VALUE, lang_name
from ZoteroReader.utils.log import log
from ZoteroReader.zotero.client import ZoteroApiClient
from ZoteroReader.zotero.items import format_creators, item_data

# Rough estimate for mixed CJK/Latin text
CHARS_PER_TOKEN: Final[float] = 1.5
DEFAULT_MAX_FULLTEXT_TOKENS: Final[int] = 6000
TRUNCATION_MARKER: Final[str] = "\n\n[...full text truncated...]"
UNKNOWN_TITLE: Final[str] = "Unknown title"
UNKNOWN_AUTHORS: Final[str] = "Unknown authors"
NO_FULLTEXT: Final[str] = "Full text unavailable"


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def truncate_to_budget(text: str, max_tokens: int) -> tuple[str, bool]:
    """Cut ``text`` to the token budget.

    Returns:
        ``(text, truncated)``. Over budget, the text is cut to
        ``floor(max_tokens * 1.5)`` characters and the marker is appended.
    """
    if not text or estimate_tokens(text) <= max_tokens:
        return text, False
    max_chars = math.floor(max_tokens * CHARS_PER_TOKEN)
    return text[:max_chars] + TRUNCATION_MARKER, True


class ContextBuilder:
    """Build :class:`PaperContext` values from Zotero items."""

    def __init__(self, client: ZoteroApiClient, max_fulltext_tokens: int = DEFAULT_MAX_FULLTEXT_TOKENS) -> None:
        self.client = client
        self.max_fulltext_tokens = max_fulltext_tokens

    def build(self, document_id: str, max_fulltext_tokens: int | None = None) -> PaperContext:
        """Fetch item metadata and full text in parallel and build the context.

        Args:
            document_id: Zotero item key.
            max_fulltext_tokens: Budget override for the full text.

        Raises:
            NotConfigured: If Zotero credentials are missing.
            RateLimited: If Zotero keeps rate limiting.
            UpstreamError: If either fetch fails.
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="paper-context") as pool:
            item_future = pool.submit(self.client.get_item, document_id)
            fulltext_future = pool.submit(self.client.get_fulltext, document_id)
            item = item_future.result()
            fulltext = fulltext_future.result()

        content = (fulltext or {}).get("content") or ""
        log.debug("Fetched context for %s: fulltext=%d chars", document_id, len(content))
        return self.from_metadata(
            item,
            content,
            self.max_fulltext_tokens if max_fulltext_tokens is None else max_fulltext_tokens,
        )

    @staticmethod
    def from_metadata(
        item: Mapping[str, Any] | None,
        fulltext: str = "",
        max_fulltext_tokens: int = DEFAULT_MAX_FULLTEXT_TOKENS,
    ) -> PaperContext:
        """Build a context from already fetched metadata, without network calls."""
        data = item_data(item)
        creators = data.get("creators") or []
        text, truncated = truncate_to_budget(fulltext or "", max_fulltext_tokens)
        return PaperContext(
            title=data.get("title") or UNKNOWN_TITLE,
            authors=format_creators(creators) or UNKNOWN_AUTHORS,
            journal=data.get("publicationTitle") or "",
            abstract=data.get("abstractNote") or "",
            fulltext=text,
            truncated=truncated,
        )


def fill_chat_system_prompt(template: str, context: PaperContext, target_lang: str = "zh") -> str:
    """Fill the conversation system prompt with the paper context."""
    replacements = {
        "{title}": context.title,
        "{authors}": context.authors,
        "{journal}": context.journal or MISSING_VALUE,
        "{abstract}": context.abstract or MISSING_VALUE,
        "{fulltext}": context.fulltext or NO_FULLTEXT,
        "{targetLang}": lang_name(target_lang),
    }
    result = template
    for placeholder, value in replacements.items():
        result = result.replace(placeholder, value)
    return result
