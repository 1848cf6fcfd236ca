from __future__ import annotations

"""Storage domain configuration."""

from dataclasses import dataclass
from typing import Any, Mapping

from ZoteroReader.config.common import check_non_empty, get_section, read_str


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Storage configuration."""

    db_path: str


def load_storage(raw: Mapping[str, Any]) -> StorageConfig:
    section = get_section(raw, "storage", required=True)
    return StorageConfig(db_path=read_str(section, "storage", "db_path"))


def check_storage(config: StorageConfig) -> None:
    check_non_empty(config.db_path, "storage.db_path")
