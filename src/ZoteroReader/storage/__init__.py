"""Storage layer for ZoteroReader.

Provides the database handle, schema migrations and the stores for
providers, settings, the translation cache and conversation history.
"""

from __future__ import annotations

from ZoteroReader.storage.conversation import ConversationStore
from ZoteroReader.storage.db import DatabaseManager
from ZoteroReader.storage.migration import run_migrations
from ZoteroReader.storage.providers import ProviderRegistry
from ZoteroReader.storage.settings import SettingsStore
from ZoteroReader.storage.translation_cache import TranslationCache

__all__ = [
    "ConversationStore",
    "DatabaseManager",
    "ProviderRegistry",
    "SettingsStore",
    "TranslationCache",
    "run_migrations",
]
