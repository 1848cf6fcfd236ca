from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence


class ProviderKind(str, Enum):
    """Supported provider contracts.

    The values are the type strings stored in the ``providers`` table and
    exchanged with the HTTP API.
    """

    REST_TRANSLATOR = "deeplx"
    CHAT_COMPLETION = "openai"

    @classmethod
    def parse(cls, value: str) -> ProviderKind:
        """Parse a kind from its wire value or member name.

        Raises:
            ValueError: If value names no known kind.
        """
        normalized = (value or "").strip()
        for kind in cls:
            if normalized in (kind.value, kind.name):
                return kind
        raise ValueError(f"Unsupported provider type: {value!r}")


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Provider configuration with secrets in plaintext.

    Instances returned by the registry read path carry decrypted secrets and
    must only flow to outbound calls, never to display.

    Attributes:
        id: Opaque identifier, generated once on add.
        name: Display name.
        kind: Provider contract.
        enabled: Whether the provider may be dispatched to.
        priority: Ascending order of precedence.
        access_token: REST translator token.
        base_url: Chat-completion API base URL.
        api_key: Chat-completion API key.
        model: Chat-completion model identifier.
        system_prompt: Optional translation system prompt template override.
        user_prompt: Optional translation user prompt template override.
        updated_at: Unix timestamp of the last mutation.
    """

    id: str
    name: str
    kind: ProviderKind
    enabled: bool = True
    priority: int = 0
    access_token: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    model: Optional[str] = None
    system_prompt: Optional[str] = None
    user_prompt: Optional[str] = None
    updated_at: int = 0

    def missing_fields(self) -> list[str]:
        """Return required fields for this kind that are empty."""
        if self.kind is ProviderKind.REST_TRANSLATOR:
            required = {"access_token": self.access_token}
        else:
            required = {"base_url": self.base_url, "api_key": self.api_key, "model": self.model}
        return [name for name, value in required.items() if not (value or "").strip()]


@dataclass(frozen=True, slots=True)
class NewProvider:
    """Fields accepted when adding a provider."""

    name: str
    kind: ProviderKind
    enabled: bool = True
    access_token: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    model: Optional[str] = None
    system_prompt: Optional[str] = None
    user_prompt: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ProviderPatch:
    """Partial update for a provider.

    ``None`` means "not supplied". For optional plain strings an empty string
    clears the stored value; for secrets an empty or masked string is ignored.
    """

    name: Optional[str] = None
    enabled: Optional[bool] = None
    priority: Optional[int] = None
    access_token: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    model: Optional[str] = None
    system_prompt: Optional[str] = None
    user_prompt: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ProviderView:
    """Display-safe provider with masked secrets."""

    id: str
    name: str
    kind: ProviderKind
    enabled: bool
    priority: int
    access_token: str
    base_url: str
    api_key: str
    model: str
    system_prompt: str
    user_prompt: str

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.kind.value,
            "enabled": self.enabled,
            "priority": self.priority,
            "deeplxToken": self.access_token,
            "apiBaseUrl": self.base_url,
            "apiKey": self.api_key,
            "model": self.model,
            "systemPrompt": self.system_prompt,
            "userPrompt": self.user_prompt,
        }


@dataclass(frozen=True, slots=True)
class TranslationContext:
    """Paper context attached to an LLM translation request."""

    title: Optional[str] = None
    authors: Optional[str] = None
    journal: Optional[str] = None
    abstract: Optional[str] = None
    paragraph_context: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TranslateRequest:
    """One translation request.

    Attributes:
        text: Source text.
        source_lang: ISO 639-1 code, or ``auto``.
        target_lang: ISO 639-1 code.
        provider_id: Registry id of the provider to use.
        context: Optional paper context for LLM providers.
    """

    text: str
    source_lang: str
    target_lang: str
    provider_id: str
    context: Optional[TranslationContext] = None


@dataclass(frozen=True, slots=True)
class TranslationResult:
    translation: str
    provider_id: str
    alternatives: Sequence[str] = ()
    from_cache: bool = False
    detected_lang: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "translation": self.translation,
            "providerId": self.provider_id,
            "fromCache": self.from_cache,
        }
        if self.alternatives:
            data["alternatives"] = list(self.alternatives)
        if self.detected_lang:
            data["detectedLang"] = self.detected_lang
        return data


@dataclass(frozen=True, slots=True)
class CachedTranslation:
    """Value stored in the translation cache."""

    translation: str
    alternatives: Sequence[str] = ()


@dataclass(frozen=True, slots=True)
class HistoryRecord:
    """One row of the translation history listing."""

    id: int
    source_text: str
    target_lang: str
    provider_id: str
    translation: str
    created_at: int

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "sourceText": self.source_text,
            "targetLang": self.target_lang,
            "engine": self.provider_id,
            "translation": self.translation,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class HistoryPage:
    records: Sequence[HistoryRecord]
    total: int


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class ConversationMessage:
    """A persisted conversation message.

    Attributes:
        document_id: Zotero item key the conversation belongs to.
        role: Author of the message.
        content: Message text, immutable once written.
        created_at: Unix timestamp in milliseconds.
    """

    document_id: str
    role: Role
    content: str
    created_at: int

    def to_dict(self) -> dict[str, object]:
        return {"role": self.role.value, "content": self.content, "createdAt": self.created_at}


@dataclass(frozen=True, slots=True)
class PaperContext:
    """Prompt material derived from a Zotero item; never persisted."""

    title: str
    authors: str
    journal: str
    abstract: str
    fulltext: str
    truncated: bool = False


@dataclass(frozen=True, slots=True)
class ItemPage:
    """One page of Zotero items plus the ``Total-Results`` header value."""

    items: Sequence[dict] = field(default_factory=tuple)
    total_results: int = 0


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Outcome of a provider connectivity test."""

    success: bool
    latency_ms: int
    output: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"success": self.success, "latency": self.latency_ms}
        if self.output is not None:
            data["translation"] = self.output
        if self.error:
            data["error"] = self.error
        return data
