"""Provider connectivity probe."""

from __future__ import annotations

import time
from typing import Final

from ZoteroReader.core.errors import ReaderError
from ZoteroReader.core.models import ProbeResult, ProviderConfig, ProviderKind
from ZoteroReader.llm.client import LLMApiClient
from ZoteroReader.translate.factory import TranslatorFactory
from ZoteroReader.utils.log import log

REST_PROBE_TIMEOUT: Final[float] = 10.0
CHAT_PROBE_TIMEOUT: Final[float] = 15.0
CHAT_PROBE_PROMPT: Final[str] = "Say hello in one word."


def probe_provider(provider: ProviderConfig, factory: TranslatorFactory) -> ProbeResult:
    """Send a tiny request to a provider and time it.

    REST translators translate ``Hello`` from English to Chinese; chat
    providers answer a one-word prompt with ``max_tokens=10``. Failures are
    reported in the result instead of being raised.
    """
    started = time.monotonic()
    try:
        output = _run(provider, factory)
    except ReaderError as e:
        latency = _elapsed_ms(started)
        log.warning("Provider probe failed: provider=%s error=%s", provider.name, e.message)
        return ProbeResult(success=False, latency_ms=latency, error=e.message)

    latency = _elapsed_ms(started)
    log.info("Provider probe succeeded: provider=%s latency=%dms", provider.name, latency)
    return ProbeResult(success=True, latency_ms=latency, output=output)


def _run(provider: ProviderConfig, factory: TranslatorFactory) -> str:
    if provider.kind is ProviderKind.REST_TRANSLATOR:
        translator = factory.create(provider, timeout=REST_PROBE_TIMEOUT)
        return translator.translate("Hello", "en", "zh").translation

    # Validates required fields before any request is sent
    factory.create(provider, timeout=CHAT_PROBE_TIMEOUT)
    client = LLMApiClient(
        base_url=provider.base_url or "",
        api_key=provider.api_key or "",
        timeout=CHAT_PROBE_TIMEOUT,
        session=factory.session,
    )
    return client.chat_completion(
        messages=[{"role": "user", "content": CHAT_PROBE_PROMPT}],
        model=provider.model or "",
        max_tokens=10,
    )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
