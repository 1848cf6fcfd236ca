from __future__ import annotations

"""Public configuration API for ZoteroReader."""

from ZoteroReader.config.app import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from ZoteroReader.config.chat import ChatConfig
from ZoteroReader.config.runtime import RuntimeConfig
from ZoteroReader.config.security import SecurityConfig
from ZoteroReader.config.server import ServerConfig
from ZoteroReader.config.storage import StorageConfig
from ZoteroReader.config.translation import TranslationConfig
from ZoteroReader.config.zotero import ZoteroConfig

__all__ = [
    "AppConfig",
    "ChatConfig",
    "DEFAULT_CONFIG_PATH",
    "RuntimeConfig",
    "SecurityConfig",
    "ServerConfig",
    "StorageConfig",
    "TranslationConfig",
    "ZoteroConfig",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
]
