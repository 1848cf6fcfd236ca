"""Context-aware translator using an OpenAI-compatible chat completion API."""

from __future__ import annotations

from dataclasses import dataclass

from ZoteroReader.core.errors import EmptyResult
from ZoteroReader.core.models import TranslationContext
from ZoteroReader.llm.client import LLMApiClient
from ZoteroReader.translate.base import TranslatorOutput
from ZoteroReader.translate.prompts import (
    DEFAULT_TRANSLATE_SYSTEM_PROMPT,
    DEFAULT_TRANSLATE_USER_PROMPT,
    fill_template,
    lang_name,
)
from ZoteroReader.utils.log import log


@dataclass(slots=True)
class ChatTranslator:
    """Translator backed by chat completions.

    Supports any API following the OpenAI chat completion format:
    - OpenAI GPT models
    - DeepSeek
    - one-api / new-api relays
    - Local models via OpenAI-compatible servers

    The system prompt carries paper metadata, the user prompt the surrounding
    paragraph and the selected text. Output varies between calls, so results
    are never cached.
    """

    name: str
    client: LLMApiClient
    model: str
    system_prompt: str | None = None
    user_prompt: str | None = None
    temperature: float = 0.2
    timeout: float = 30.0
    deterministic: bool = False

    def translate(
        self,
        text: str,
        source_lang: str,
        target_lang: str,
        context: TranslationContext | None = None,
    ) -> TranslatorOutput:
        """Translate text with the paper context filled into the prompts.

        Raises:
            RateLimited: On HTTP 429.
            UpstreamError: On any other API failure.
            EmptyResult: If the model returned no content.
        """
        messages = self.build_messages(text, target_lang, context)
        log.debug("Chat translation to %s with model %s", target_lang, self.model)

        content = self.client.chat_completion(
            messages=messages,
            model=self.model,
            temperature=self.temperature,
            timeout=self.timeout,
        ).strip()
        if not content:
            raise EmptyResult("Chat completion returned an empty translation")

        return TranslatorOutput(
            translation=content,
            detected_lang=None if source_lang == "auto" else source_lang,
        )

    def build_messages(
        self, text: str, target_lang: str, context: TranslationContext | None
    ) -> list[dict[str, str]]:
        ctx = context or TranslationContext()
        target = lang_name(target_lang)

        system_content = fill_template(
            self.system_prompt or DEFAULT_TRANSLATE_SYSTEM_PROMPT,
            {
                "title": ctx.title,
                "authors": ctx.authors,
                "journal": ctx.journal,
                "abstract": ctx.abstract,
                "targetLang": target,
            },
        )
        user_content = fill_template(
            self.user_prompt or DEFAULT_TRANSLATE_USER_PROMPT,
            {
                "paragraphContext": ctx.paragraph_context,
                "selectedText": text,
                "targetLang": target,
            },
        )
        return [
            {"role": "system", "content": system_content},
            {"role": "user", "content": user_content},
        ]
