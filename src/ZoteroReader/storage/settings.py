"""Key-value application settings."""

from __future__ import annotations

from typing import Final

from ZoteroReader.core.errors import IntegrityError
from ZoteroReader.security.vault import CredentialVault, is_masked, mask_secret
from ZoteroReader.storage.db import DatabaseManager, now_s
from ZoteroReader.utils.log import log

ZOTERO_USER_ID: Final[str] = "zotero_user_id"
ZOTERO_API_KEY: Final[str] = "zotero_api_key"
CHAT_SYSTEM_PROMPT: Final[str] = "chat_system_prompt"

# Keys whose values are sealed with the vault and only ever shown masked.
ENCRYPTED_KEYS: Final[frozenset[str]] = frozenset({ZOTERO_API_KEY})


class SettingsStore:
    """Settings table access with transparent encryption for secret keys."""

    def __init__(self, db_manager: DatabaseManager, vault: CredentialVault) -> None:
        self.conn = db_manager.get_connection()
        self.vault = vault

    def get(self, key: str) -> str | None:
        """Return the raw stored value (an encrypted blob for secret keys)."""
        row = self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> bool:
        """Store a value, encrypting secret keys.

        Masked values for secret keys are ignored so a display value never
        overwrites the real secret.

        Returns:
            True if a value was written.
        """
        if key in ENCRYPTED_KEYS:
            if not value or is_masked(value):
                log.debug("Ignoring empty or masked value for setting %s", key)
                return False
            value = self.vault.encrypt(value)
        self.conn.execute(
            """
            INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, value, now_s()),
        )
        return True

    def get_secret(self, key: str) -> str | None:
        """Return a decrypted secret setting.

        Raises:
            IntegrityError: If the stored blob cannot be decrypted.
        """
        blob = self.get(key)
        return self.vault.decrypt(blob) if blob else None

    def get_display(self, key: str) -> str | None:
        """Return a value safe to show: secrets masked, others as stored."""
        if key not in ENCRYPTED_KEYS:
            return self.get(key)
        try:
            secret = self.get_secret(key)
        except IntegrityError as e:
            log.warning("Cannot decrypt setting %s: %s", key, e)
            return None
        return mask_secret(secret) if secret else None

    def zotero_credentials(self) -> tuple[str, str]:
        """Return ``(user_id, api_key)``; either may be empty when unset."""
        user_id = (self.get(ZOTERO_USER_ID) or "").strip()
        api_key = self.get_secret(ZOTERO_API_KEY) or ""
        return user_id, api_key
