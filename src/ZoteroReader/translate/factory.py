"""Factory for building translator adapters from provider configs.

Centralizes adapter instantiation so the engine and the probe share the same
construction rules and tests can swap the HTTP session.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import requests

from ZoteroReader.config.translation import TranslationConfig
from ZoteroReader.core.errors import ProviderMisconfigured, UnsupportedProviderKind
from ZoteroReader.core.models import ProviderConfig, ProviderKind
from ZoteroReader.llm.client import LLMApiClient
from ZoteroReader.translate.base import Translator
from ZoteroReader.translate.deeplx import DEFAULT_ENDPOINT, DeepLXTranslator
from ZoteroReader.translate.openai_compat import ChatTranslator


@dataclass(slots=True)
class TranslatorFactory:
    """Create a :class:`Translator` for a provider.

    Attributes:
        deeplx_endpoint: REST translator URL template with ``{token}``.
        rest_timeout: Timeout for REST translator calls.
        chat_timeout: Timeout for chat-completion translations.
        temperature: Chat-completion sampling temperature.
        session: Shared HTTP session.
    """

    deeplx_endpoint: str = DEFAULT_ENDPOINT
    rest_timeout: float = 10.0
    chat_timeout: float = 30.0
    temperature: float = 0.2
    session: requests.Session = field(default_factory=requests.Session)

    @classmethod
    def from_config(cls, config: TranslationConfig, session: requests.Session | None = None) -> TranslatorFactory:
        return cls(
            deeplx_endpoint=config.deeplx_endpoint,
            rest_timeout=config.rest_timeout,
            chat_timeout=config.chat_timeout,
            temperature=config.temperature,
            session=session or requests.Session(),
        )

    def create(self, provider: ProviderConfig, *, timeout: float | None = None) -> Translator:
        """Build the adapter for ``provider``.

        Args:
            provider: Decrypted provider configuration.
            timeout: Override of the kind's default timeout.

        Raises:
            ProviderMisconfigured: If required fields for the kind are missing.
            UnsupportedProviderKind: If the kind has no adapter.
        """
        missing = provider.missing_fields()
        if missing:
            raise ProviderMisconfigured(
                f"Provider {provider.name!r} is missing required fields: {', '.join(missing)}"
            )

        if provider.kind is ProviderKind.REST_TRANSLATOR:
            return DeepLXTranslator(
                name=provider.name,
                token=provider.access_token or "",
                endpoint=self.deeplx_endpoint,
                timeout=timeout or self.rest_timeout,
                session=self.session,
            )
        if provider.kind is ProviderKind.CHAT_COMPLETION:
            effective_timeout = timeout or self.chat_timeout
            return ChatTranslator(
                name=provider.name,
                client=LLMApiClient(
                    base_url=provider.base_url or "",
                    api_key=provider.api_key or "",
                    timeout=effective_timeout,
                    session=self.session,
                ),
                model=provider.model or "",
                system_prompt=provider.system_prompt,
                user_prompt=provider.user_prompt,
                temperature=self.temperature,
                timeout=effective_timeout,
            )
        raise UnsupportedProviderKind(f"Unsupported provider type: {provider.kind}")

    def close(self) -> None:
        self.session.close()
