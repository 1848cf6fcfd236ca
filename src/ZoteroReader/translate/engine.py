"""Translation service: provider dispatch with a write-through cache."""

from __future__ import annotations

from dataclasses import dataclass

from ZoteroReader.core.errors import ProviderMisconfigured, ProviderNotFound, ValidationError
from ZoteroReader.core.models import ProviderConfig, TranslateRequest, TranslationResult
from ZoteroReader.storage.providers import ProviderRegistry
from ZoteroReader.storage.translation_cache import TranslationCache
from ZoteroReader.translate.factory import TranslatorFactory
from ZoteroReader.utils.log import log


@dataclass(slots=True)
class TranslationEngine:
    """Execute translation requests against registered providers.

    Deterministic providers are served from :class:`TranslationCache` when
    possible and written through on a miss. Chat-completion providers never
    touch the cache.
    """

    registry: ProviderRegistry
    cache: TranslationCache
    factory: TranslatorFactory

    def translate(self, request: TranslateRequest) -> TranslationResult:
        """Translate one request.

        Args:
            request: Text, languages, provider id and optional paper context.

        Returns:
            Translation result; ``from_cache`` tells whether a provider was called.

        Raises:
            ValidationError: If text, target language or provider id is empty.
            ProviderNotFound: If the provider id is unknown.
            ProviderMisconfigured: If the provider is disabled or incomplete.
            RateLimited: If the provider is rate limiting.
            UpstreamError: On provider failure.
            EmptyResult: If the provider returned no text.
        """
        _validate(request)
        provider = self._resolve(request.provider_id)
        translator = self.factory.create(provider)

        if translator.deterministic:
            cached = self.cache.lookup(request.text, request.target_lang, provider.id)
            if cached is not None:
                log.debug("Translation cache hit: provider=%s", provider.id)
                return TranslationResult(
                    translation=cached.translation,
                    provider_id=provider.id,
                    alternatives=tuple(cached.alternatives),
                    from_cache=True,
                    detected_lang=_detected(request.source_lang, None),
                )

        output = translator.translate(
            request.text,
            request.source_lang or "auto",
            request.target_lang,
            request.context,
        )
        log.info("Translated %d chars with provider=%s", len(request.text), provider.name)

        if translator.deterministic:
            self.cache.store(
                request.text,
                request.target_lang,
                provider.id,
                output.translation,
                output.alternatives,
            )

        return TranslationResult(
            translation=output.translation,
            provider_id=provider.id,
            alternatives=tuple(output.alternatives),
            from_cache=False,
            detected_lang=_detected(request.source_lang, output.detected_lang),
        )

    def _resolve(self, provider_id: str) -> ProviderConfig:
        provider = self.registry.get(provider_id)
        if provider is None:
            raise ProviderNotFound(f"Provider {provider_id!r} does not exist")
        if not provider.enabled:
            raise ProviderMisconfigured(f"Provider {provider.name!r} is disabled")
        return provider


def _validate(request: TranslateRequest) -> None:
    if not (request.text or "").strip():
        raise ValidationError("Text to translate must not be empty")
    if not (request.target_lang or "").strip():
        raise ValidationError("Target language is required")
    if not (request.provider_id or "").strip():
        raise ValidationError("Provider id is required")


def _detected(source_lang: str | None, reported: str | None) -> str | None:
    if source_lang and source_lang != "auto":
        return source_lang
    return reported
