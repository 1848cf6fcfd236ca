"""Translator protocol and base types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from ZoteroReader.core.models import TranslationContext


@dataclass(frozen=True, slots=True)
class TranslatorOutput:
    """What one adapter call produced.

    Attributes:
        translation: Translated text.
        alternatives: Other candidate translations, if the provider offers them.
        detected_lang: Source language reported by the provider.
    """

    translation: str
    alternatives: Sequence[str] = ()
    detected_lang: Optional[str] = None


class Translator(Protocol):
    """Protocol for translation adapters.

    ``deterministic`` adapters return the same output for the same input, so
    their results may be cached.
    """

    name: str
    deterministic: bool

    def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
        context: TranslationContext | None = None,
    ) -> TranslatorOutput:
        """Translate text.

        Args:
            text: Source text.
            source_lang: ISO 639-1 code or ``auto``.
            target_lang: ISO 639-1 code.
            context: Paper context; adapters that cannot use it ignore it.

        Returns:
            Adapter output.

        Raises:
            RateLimited: If the provider answered HTTP 429.
            UpstreamError: On any other provider failure.
            EmptyResult: If the provider returned no text.
        """
        raise NotImplementedError
