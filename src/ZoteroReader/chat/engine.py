"""Conversation service: streamed chat turns with durable history."""

from __future__ import annotations

import time
from typing import Callable, Iterator

import requests

from ZoteroReader.chat.context import ContextBuilder, fill_chat_system_prompt
from ZoteroReader.config.chat import ChatConfig
from ZoteroReader.core.errors import (
    ProviderMisconfigured,
    ProviderNotFound,
    UnsupportedProviderKind,
    UpstreamError,
    ValidationError,
)
from ZoteroReader.core.models import ConversationMessage, ProviderConfig, ProviderKind, Role
from ZoteroReader.llm.client import LLMApiClient
from ZoteroReader.llm.sse import SSEEvent, SSEParser, extract_delta_content
from ZoteroReader.storage.conversation import ConversationStore
from ZoteroReader.storage.providers import ProviderRegistry
from ZoteroReader.storage.settings import CHAT_SYSTEM_PROMPT, SettingsStore
from ZoteroReader.translate.prompts import DEFAULT_CHAT_SYSTEM_PROMPT
from ZoteroReader.utils.log import log


def quote_excerpt(user_text: str, selected_quote: str | None, max_chars: int) -> str:
    """Prefix the user's message with the selected excerpt, cut to ``max_chars``."""
    if not selected_quote:
        return user_text
    return f'[selected excerpt]\n"{selected_quote[:max_chars]}"\n\n{user_text}'


class ChatStream:
    """Relay of one upstream chat completion stream.

    Iterating yields the upstream bytes unmodified. The same bytes are decoded
    by a per-turn :class:`SSEParser` and the ``delta.content`` tokens are
    accumulated. When the stream ends for any reason (completion, ``close()``,
    deadline, upstream failure) the accumulated reply is handed to
    ``on_reply`` exactly once, unless it is blank.
    """

    def __init__(
        self,
        response: requests.Response,
        on_reply: Callable[[str], object],
        *,
        timeout: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._response = response
        self._on_reply = on_reply
        self._parser = SSEParser()
        self._tokens: list[str] = []
        self._clock = clock
        self._deadline = clock() + timeout
        self._finished = False
        self._chunks = self._relay()

    @property
    def reply(self) -> str:
        """Reply text accumulated so far."""
        return "".join(self._tokens)

    @property
    def finished(self) -> bool:
        return self._finished

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        return next(self._chunks)

    def close(self) -> None:
        """Cancel the turn: stop relaying and persist the partial reply."""
        self._chunks.close()
        self._finish()

    def _relay(self) -> Iterator[bytes]:
        try:
            for chunk in self._response.iter_content(chunk_size=None):
                if not chunk:
                    continue
                self._collect(self._parser.feed(chunk))
                yield chunk
                if self._clock() > self._deadline:
                    log.warning("Chat stream exceeded its deadline, stopping")
                    return
            self._collect(self._parser.close())
        except requests.RequestException as e:
            log.error("Chat stream failed mid-way: %s", type(e).__name__)
            raise UpstreamError(f"Chat stream interrupted: {type(e).__name__}") from e
        finally:
            self._finish()

    def _collect(self, events: list[SSEEvent]) -> None:
        for event in events:
            token = extract_delta_content(event)
            if token:
                self._tokens.append(token)

    def _finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._response.close()
        reply = self.reply
        if reply.strip():
            self._on_reply(reply)
        else:
            log.debug("Chat turn ended without content; nothing persisted")


class ConversationEngine:
    """Run chat turns about a paper and keep the per-document history."""

    def __init__(
        self,
        registry: ProviderRegistry,
        store: ConversationStore,
        contexts: ContextBuilder,
        settings: SettingsStore,
        config: ChatConfig,
        *,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = registry
        self.store = store
        self.contexts = contexts
        self.settings = settings
        self.config = config
        self.session = session or requests.Session()
        self.clock = clock

    def send(
        self,
        document_id: str,
        provider_id: str,
        user_text: str,
        selected_quote: str | None = None,
        target_lang: str | None = None,
    ) -> ChatStream:
        """Start one conversation turn.

        The user message is persisted before the provider is called and stays
        persisted if the call fails. The returned stream must be iterated or
        closed by the caller; the assistant reply is persisted when it ends.

        Args:
            document_id: Zotero item key.
            provider_id: Chat-completion provider id.
            user_text: The user's message.
            selected_quote: Passage the user selected in the paper.
            target_lang: Answer language code; defaults to ``chat.target_lang``.

        Returns:
            Byte stream of the upstream SSE response.

        Raises:
            ValidationError: If a required argument is empty.
            ProviderNotFound: If the provider id is unknown.
            UnsupportedProviderKind: If the provider is not a chat provider.
            ProviderMisconfigured: If the provider is disabled or incomplete.
            NotConfigured: If Zotero credentials are missing.
            RateLimited: If the provider answered HTTP 429.
            UpstreamError: On any other failure before streaming.
        """
        message = (user_text or "").strip()
        if not message:
            raise ValidationError("Message must not be empty")
        if not document_id:
            raise ValidationError("Document id is required")
        if not provider_id:
            raise ValidationError("Provider id is required")

        provider = self._resolve(provider_id)
        context = self.contexts.build(document_id)
        template = self.settings.get(CHAT_SYSTEM_PROMPT) or DEFAULT_CHAT_SYSTEM_PROMPT
        system_content = fill_chat_system_prompt(template, context, target_lang or self.config.target_lang)

        messages = [{"role": "system", "content": system_content}]
        for past in self.store.recent(document_id, self.config.history_window):
            messages.append({"role": past.role.value, "content": past.content})

        user_content = quote_excerpt(message, selected_quote, self.config.quote_max_chars)
        messages.append({"role": Role.USER.value, "content": user_content})
        self.store.append(document_id, Role.USER, user_content)

        client = LLMApiClient(
            base_url=provider.base_url or "",
            api_key=provider.api_key or "",
            timeout=self.config.timeout,
            session=self.session,
        )
        response = client.open_stream(
            messages,
            provider.model or "",
            temperature=self.config.temperature,
            timeout=self.config.timeout,
        )
        log.info("Chat turn started: document=%s provider=%s history=%d", document_id, provider.name, len(messages) - 2)

        return ChatStream(
            response,
            lambda reply: self.store.append(document_id, Role.ASSISTANT, reply),
            timeout=self.config.timeout,
            clock=self.clock,
        )

    def history(self, document_id: str, limit: int | None = None) -> list[ConversationMessage]:
        """Return messages of a document, oldest first."""
        return self.store.recent(document_id, limit)

    def clear(self, document_id: str) -> int:
        """Delete the whole history of a document."""
        removed = self.store.clear(document_id)
        log.info("Cleared %d chat messages for document=%s", removed, document_id)
        return removed

    def _resolve(self, provider_id: str) -> ProviderConfig:
        provider = self.registry.get(provider_id)
        if provider is None:
            raise ProviderNotFound(f"Provider {provider_id!r} does not exist")
        if provider.kind is not ProviderKind.CHAT_COMPLETION:
            raise UnsupportedProviderKind("Conversations require an OpenAI-compatible provider")
        if not provider.enabled:
            raise ProviderMisconfigured(f"Provider {provider.name!r} is disabled")
        missing = provider.missing_fields()
        if missing:
            raise ProviderMisconfigured(
                f"Provider {provider.name!r} is missing required fields: {', '.join(missing)}"
            )
        return provider
