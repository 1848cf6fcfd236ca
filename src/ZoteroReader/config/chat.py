"""Conversation domain configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ZoteroReader.config.common import (
    check_non_empty,
    check_positive,
    get_section,
    read_float,
    read_int,
    read_str,
)


@dataclass(frozen=True, slots=True)
class ChatConfig:
    """Store validated conversation settings.

    Attributes:
        timeout: Overall deadline of one streamed turn, in seconds.
        temperature: Sampling temperature for conversation turns.
        history_window: Number of most recent messages replayed to the model.
        quote_max_chars: Selected excerpts are cut to this many characters.
        max_fulltext_tokens: Token budget for the paper's full text.
        target_lang: Default answer language code.
    """

    timeout: float
    temperature: float
    history_window: int
    quote_max_chars: int
    max_fulltext_tokens: int
    target_lang: str


def load_chat(raw: Mapping[str, Any]) -> ChatConfig:
    section = get_section(raw, "chat", required=False)
    return ChatConfig(
        timeout=read_float(section, "chat", "timeout", 120.0),
        temperature=read_float(section, "chat", "temperature", 0.7),
        history_window=read_int(section, "chat", "history_window", 20),
        quote_max_chars=read_int(section, "chat", "quote_max_chars", 500),
        max_fulltext_tokens=read_int(section, "chat", "max_fulltext_tokens", 6000),
        target_lang=read_str(section, "chat", "target_lang", "zh"),
    )


def check_chat(config: ChatConfig) -> None:
    """Validate chat constraints.

    Raises:
        ValueError: If values violate constraints.
    """
    check_positive(config.timeout, "chat.timeout")
    if not 0.0 <= config.temperature <= 2.0:
        raise ValueError("chat.temperature must be between 0.0 and 2.0")
    if config.history_window < 0:
        raise ValueError("chat.history_window must be >= 0")
    check_positive(config.quote_max_chars, "chat.quote_max_chars")
    check_positive(config.max_fulltext_tokens, "chat.max_fulltext_tokens")
    check_non_empty(config.target_lang, "chat.target_lang")
