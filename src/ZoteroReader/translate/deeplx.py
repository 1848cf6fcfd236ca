"""DeepLX REST translator adapter.

Sends only the source text; paper context is not used.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

import requests

from ZoteroReader.core.errors import EmptyResult, RateLimited, UpstreamError, snippet
from ZoteroReader.core.models import TranslationContext
from ZoteroReader.translate.base import TranslatorOutput
from ZoteroReader.utils.log import log

DEFAULT_ENDPOINT: Final[str] = "https://api.deeplx.org/{token}/translate"
TOO_MANY_REQUESTS: Final[int] = 429
SUCCESS_CODE: Final[int] = 200

# ISO 639-1 to DeepL language codes
LANG_MAP: Final[dict[str, str]] = {
    "zh": "ZH",
    "en": "EN",
    "ja": "JA",
    "ko": "KO",
    "fr": "FR",
    "de": "DE",
    "es": "ES",
    "pt": "PT",
    "ru": "RU",
    "it": "IT",
    "auto": "auto",
}


def map_lang(code: str) -> str:
    return LANG_MAP.get(code.lower(), code.upper())


@dataclass(slots=True)
class DeepLXTranslator:
    """Translator for the hosted DeepLX API (``{endpoint}/{token}/translate``)."""

    name: str
    token: str = field(repr=False)
    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = 10.0
    session: requests.Session = field(default_factory=requests.Session, repr=False)
    deterministic: bool = True

    def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
        context: TranslationContext | None = None,
    ) -> TranslatorOutput:
        """Translate text with DeepLX.

        Raises:
            RateLimited: On HTTP 429; no retry is attempted.
            UpstreamError: On transport failure, non-2xx, or ``code != 200``.
            EmptyResult: If the response carries no translation.
        """
        payload = {
            "text": text,
            "source_lang": map_lang(source_lang),
            "target_lang": map_lang(target_lang),
        }
        url = self.endpoint.replace("{token}", self.token)

        log.debug("DeepLX translate %s -> %s (%d chars)", payload["source_lang"], payload["target_lang"], len(text))
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"DeepLX request failed: {type(e).__name__}") from e

        status = response.status_code
        if status == TOO_MANY_REQUESTS:
            response.close()
            raise RateLimited("DeepLX is rate limiting requests, please retry later")
        if not 200 <= status < 300:
            body = snippet(response.text)
            response.close()
            raise UpstreamError(f"DeepLX translation failed: HTTP {status}", upstream_status=status, body=body)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError("DeepLX returned invalid JSON", upstream_status=status, body=snippet(response.text)) from e

        if not isinstance(data, dict) or data.get("code") != SUCCESS_CODE:
            message = data.get("message") if isinstance(data, dict) else None
            raise UpstreamError(f"DeepLX translation failed: {message or 'unknown error'}", upstream_status=status)

        translation = data.get("data")
        if not isinstance(translation, str) or not translation.strip():
            raise EmptyResult("DeepLX returned an empty translation")

        alternatives = tuple(a for a in data.get("alternatives") or () if isinstance(a, str))
        detected = data.get("source_lang")
        return TranslatorOutput(
            translation=translation,
            alternatives=alternatives,
            detected_lang=detected.lower() if isinstance(detected, str) and detected else None,
        )
