"""Security domain configuration: application secret and key-derivation salt."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from ZoteroReader.config.common import check_non_empty, get_section, read_str
from ZoteroReader.security.vault import DEFAULT_SALT


@dataclass(frozen=True, slots=True)
class SecurityConfig:
    """Store the settings used to derive the credential encryption key.

    Attributes:
        secret_env: Name of the environment variable holding the app secret.
        salt: Fixed salt fed to scrypt.
        secret: Value read from ``secret_env``; empty when unset.
    """

    secret_env: str
    salt: str
    secret: str = field(default="", repr=False)


def load_security(raw: Mapping[str, Any]) -> SecurityConfig:
    """Load the optional ``security`` section and read the secret from the environment."""
    section = get_section(raw, "security", required=False)
    secret_env = read_str(section, "security", "secret_env", "ZOTERO_READER_SECRET")
    return SecurityConfig(
        secret_env=secret_env,
        salt=read_str(section, "security", "salt", DEFAULT_SALT),
        secret=os.getenv(secret_env, "").strip(),
    )


def check_security(config: SecurityConfig) -> None:
    check_non_empty(config.secret_env, "security.secret_env")
    check_non_empty(config.salt, "security.salt")
