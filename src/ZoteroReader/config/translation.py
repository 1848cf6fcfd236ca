"""Translation domain configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ZoteroReader.config.common import check_positive, get_section, read_float, read_str


@dataclass(frozen=True, slots=True)
class TranslationConfig:
    """Store validated settings for the translation adapters.

    Attributes:
        deeplx_endpoint: URL template of the REST translator, with a
            ``{token}`` placeholder.
        rest_timeout: Timeout for REST translator calls, in seconds.
        chat_timeout: Timeout for chat-completion translations, in seconds.
        temperature: Sampling temperature for chat-completion translations.
    """

    deeplx_endpoint: str
    rest_timeout: float
    chat_timeout: float
    temperature: float


def load_translation(raw: Mapping[str, Any]) -> TranslationConfig:
    section = get_section(raw, "translation", required=False)
    return TranslationConfig(
        deeplx_endpoint=read_str(
            section, "translation", "deeplx_endpoint", "https://api.deeplx.org/{token}/translate"
        ),
        rest_timeout=read_float(section, "translation", "rest_timeout", 10.0),
        chat_timeout=read_float(section, "translation", "chat_timeout", 30.0),
        temperature=read_float(section, "translation", "temperature", 0.2),
    )


def check_translation(config: TranslationConfig) -> None:
    if "{token}" not in config.deeplx_endpoint:
        raise ValueError("translation.deeplx_endpoint must contain a {token} placeholder")
    check_positive(config.rest_timeout, "translation.rest_timeout")
    check_positive(config.chat_timeout, "translation.chat_timeout")
    if not 0.0 <= config.temperature <= 2.0:
        raise ValueError("translation.temperature must be between 0.0 and 2.0")
