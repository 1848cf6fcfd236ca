"""Zotero Web API configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ZoteroReader.config.common import (
    check_non_empty,
    check_positive,
    get_section,
    read_float,
    read_int,
    read_str,
)


@dataclass(frozen=True, slots=True)
class ZoteroConfig:
    """Store validated Zotero client settings."""

    base_url: str
    api_version: str
    timeout: float
    max_attempts: int
    default_retry_after: float


def load_zotero(raw: Mapping[str, Any]) -> ZoteroConfig:
    section = get_section(raw, "zotero", required=False)
    return ZoteroConfig(
        base_url=read_str(section, "zotero", "base_url", "https://api.zotero.org"),
        api_version=str(section.get("api_version", "3")),
        timeout=read_float(section, "zotero", "timeout", 30.0),
        max_attempts=read_int(section, "zotero", "max_attempts", 3),
        default_retry_after=read_float(section, "zotero", "default_retry_after", 5.0),
    )


def check_zotero(config: ZoteroConfig) -> None:
    """Validate Zotero constraints.

    Raises:
        ValueError: If values violate constraints.
    """
    check_non_empty(config.base_url, "zotero.base_url")
    check_non_empty(config.api_version, "zotero.api_version")
    check_positive(config.timeout, "zotero.timeout")
    check_positive(config.max_attempts, "zotero.max_attempts")
    if config.default_retry_after < 0:
        raise ValueError("zotero.default_retry_after must be >= 0")
