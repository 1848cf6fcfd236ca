from __future__ import annotations

"""Application config orchestration and YAML loading entrypoints."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from ZoteroReader.config.chat import ChatConfig, check_chat, load_chat
from ZoteroReader.config.runtime import RuntimeConfig, check_runtime, load_runtime
from ZoteroReader.config.security import SecurityConfig, check_security, load_security
from ZoteroReader.config.server import ServerConfig, check_server, load_server
from ZoteroReader.config.storage import StorageConfig, check_storage, load_storage
from ZoteroReader.config.translation import TranslationConfig, check_translation, load_translation
from ZoteroReader.config.zotero import ZoteroConfig, check_zotero, load_zotero

DEFAULT_CONFIG_PATH = Path("config/default.yml")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application root configuration."""

    runtime: RuntimeConfig
    storage: StorageConfig
    security: SecurityConfig
    zotero: ZoteroConfig
    translation: TranslationConfig
    chat: ChatConfig
    server: ServerConfig


def parse_config_dict(raw: Mapping[str, Any]) -> AppConfig:
    """Parse normalized mapping into AppConfig."""
    runtime = load_runtime(raw)
    storage = load_storage(raw)
    security = load_security(raw)
    zotero = load_zotero(raw)
    translation = load_translation(raw)
    chat = load_chat(raw)
    server = load_server(raw)

    check_runtime(runtime)
    check_storage(storage)
    check_security(security)
    check_zotero(zotero)
    check_translation(translation)
    check_chat(chat)
    check_server(server)

    return AppConfig(
        runtime=runtime,
        storage=storage,
        security=security,
        zotero=zotero,
        translation=translation,
        chat=chat,
        server=server,
    )


def load_config_with_defaults(
    config_path: Path | None = None, default_path: Path = DEFAULT_CONFIG_PATH
) -> AppConfig:
    """Load config by merging defaults and an optional override file."""
    base = parse_yaml(default_path.read_text(encoding="utf-8"))
    if config_path is None or config_path == default_path:
        return parse_config_dict(base)
    override = parse_yaml(config_path.read_text(encoding="utf-8"))
    return parse_config_dict(merge_config_dicts(base, override))


def parse_yaml(text: str) -> dict[str, Any]:
    """Parse raw YAML text into a mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Config root must be a mapping/object")
    return dict(data)


def merge_config_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two config mappings; scalars and lists in ``override`` win."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config_dicts(current, value)
        else:
            merged[key] = value
    return merged
