"""Service wiring for ZoteroReader.

Builds every component once from :class:`AppConfig`; the owner (the CLI
process or the Flask app) closes the container on shutdown.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import requests

from ZoteroReader.chat.context import ContextBuilder
from ZoteroReader.chat.engine import ConversationEngine
from ZoteroReader.config import AppConfig
from ZoteroReader.security.vault import CredentialVault
from ZoteroReader.storage.conversation import ConversationStore
from ZoteroReader.storage.db import DatabaseManager
from ZoteroReader.storage.providers import ProviderRegistry
from ZoteroReader.storage.settings import SettingsStore
from ZoteroReader.storage.translation_cache import TranslationCache
from ZoteroReader.translate.engine import TranslationEngine
from ZoteroReader.translate.factory import TranslatorFactory
from ZoteroReader.utils.log import log
from ZoteroReader.utils.retry import RetryPolicy
from ZoteroReader.zotero.client import ZoteroApiClient


@dataclass(slots=True)
class ReaderServices:
    """Container of the long-lived components."""

    config: AppConfig
    db_manager: DatabaseManager
    vault: CredentialVault
    providers: ProviderRegistry
    settings: SettingsStore
    cache: TranslationCache
    conversations: ConversationStore
    zotero: ZoteroApiClient
    translators: TranslatorFactory
    translation: TranslationEngine
    chat: ConversationEngine

    def close(self) -> None:
        """Release HTTP sessions and the database connection."""
        self.zotero.close()
        self.translators.close()
        self.chat.session.close()
        self.db_manager.close()
        log.debug("Services closed")

    def __enter__(self) -> ReaderServices:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def create_services(config: AppConfig, *, session: requests.Session | None = None) -> ReaderServices:
    """Create all components from configuration.

    Args:
        config: Application configuration.
        session: HTTP session shared by every outbound client; tests pass a fake.

    Returns:
        Wired service container.
    """
    db_path = Path(config.storage.db_path)
    db_manager = DatabaseManager(db_path)
    log.info("Database ready: %s", db_path)

    vault = CredentialVault(config.security.secret, salt=config.security.salt)
    providers = ProviderRegistry(db_manager, vault)
    settings = SettingsStore(db_manager, vault)
    cache = TranslationCache(db_manager)
    conversations = ConversationStore(db_manager)

    zotero = ZoteroApiClient(
        settings.zotero_credentials,
        base_url=config.zotero.base_url,
        api_version=config.zotero.api_version,
        timeout=config.zotero.timeout,
        retry=RetryPolicy(
            max_attempts=config.zotero.max_attempts,
            default_delay=config.zotero.default_retry_after,
        ),
        session=session or requests.Session(),
    )
    translators = TranslatorFactory.from_config(config.translation, session=session)
    translation = TranslationEngine(registry=providers, cache=cache, factory=translators)
    chat = ConversationEngine(
        providers,
        conversations,
        ContextBuilder(zotero, max_fulltext_tokens=config.chat.max_fulltext_tokens),
        settings,
        config.chat,
        session=session,
    )

    return ReaderServices(
        config=config,
        db_manager=db_manager,
        vault=vault,
        providers=providers,
        settings=settings,
        cache=cache,
        conversations=conversations,
        zotero=zotero,
        translators=translators,
        translation=translation,
        chat=chat,
    )


__all__ = ["ReaderServices", "create_services"]
