"""Provider registry storage."""

from __future__ import annotations

import sqlite3
import uuid
from typing import Any, Callable

from ZoteroReader.core.errors import IntegrityError, NotFound, ProviderMisconfigured, ValidationError
from ZoteroReader.core.models import NewProvider, ProviderConfig, ProviderKind, ProviderPatch, ProviderView
from ZoteroReader.security.vault import CredentialVault, is_masked, mask_secret
from ZoteroReader.storage.db import DatabaseManager, now_s
from ZoteroReader.utils.log import log

_COLUMNS = (
    "id, name, kind, enabled, priority, access_token, base_url, api_key, "
    "model, system_prompt, user_prompt, updated_at"
)

# Patch fields stored as plaintext columns (name, enabled and priority are handled separately).
_PLAIN_TEXT_FIELDS = ("base_url", "model", "system_prompt", "user_prompt")
_SECRET_FIELDS = ("access_token", "api_key")


class ProviderRegistry:
    """CRUD store for translation and chat providers.

    Secret columns only ever hold vault blobs. The read paths either decrypt
    (``get``/``list_enabled``, for outbound calls) or mask (``list``, for
    display).
    """

    def __init__(self, db_manager: DatabaseManager, vault: CredentialVault) -> None:
        """Initialize registry.

        Args:
            db_manager: Database manager instance.
            vault: Vault used to seal and open secret columns.
        """
        self.conn = db_manager.get_connection()
        self.vault = vault

    def list(self) -> list[ProviderView]:
        """List all providers ordered by priority, with masked secrets."""
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM providers ORDER BY priority ASC, id ASC"
        ).fetchall()
        return [self._to_view(row) for row in rows]

    def list_enabled(self) -> list[ProviderConfig]:
        """List enabled providers with decrypted secrets, for dispatch."""
        rows = self.conn.execute(
            f"SELECT {_COLUMNS} FROM providers WHERE enabled = 1 ORDER BY priority ASC, id ASC"
        ).fetchall()
        return [self._to_config(row) for row in rows]

    def get(self, provider_id: str) -> ProviderConfig | None:
        """Return one provider with decrypted secrets, or None if absent.

        Raises:
            ProviderMisconfigured: If a stored secret cannot be decrypted.
        """
        row = self.conn.execute(
            f"SELECT {_COLUMNS} FROM providers WHERE id = ?",
            (provider_id,),
        ).fetchone()
        return self._to_config(row) if row else None

    def add(self, provider: NewProvider) -> str:
        """Insert a provider in the next priority slot.

        Args:
            provider: Fields of the new provider.

        Returns:
            Generated provider id.

        Raises:
            ValidationError: If the name is empty.
        """
        if not (provider.name or "").strip():
            raise ValidationError("Provider name is required")

        provider_id = str(uuid.uuid4())
        now = now_s()
        self.conn.execute(
            """
            INSERT INTO providers (
                id, name, kind, enabled, priority, access_token, base_url, api_key,
                model, system_prompt, user_prompt, created_at, updated_at
            ) VALUES (
                ?, ?, ?, ?, (SELECT COALESCE(MAX(priority), -1) + 1 FROM providers),
                ?, ?, ?, ?, ?, ?, ?, ?
            )
            """,
            (
                provider_id,
                provider.name.strip(),
                provider.kind.value,
                1 if provider.enabled else 0,
                self._seal(provider.access_token),
                provider.base_url or None,
                self._seal(provider.api_key),
                provider.model or None,
                provider.system_prompt or None,
                provider.user_prompt or None,
                now,
                now,
            ),
        )
        log.info("Provider added: id=%s kind=%s name=%s", provider_id, provider.kind.value, provider.name)
        return provider_id

    def update(self, provider_id: str, patch: ProviderPatch) -> None:
        """Apply a partial update.

        Secret fields change only when the supplied value is non-empty and
        not a masked display value.

        Raises:
            NotFound: If no provider has ``provider_id``.
            ValidationError: If the patch empties the name.
        """
        exists = self.conn.execute("SELECT 1 FROM providers WHERE id = ?", (provider_id,)).fetchone()
        if not exists:
            raise NotFound(f"Provider {provider_id!r} does not exist")

        assignments: list[str] = []
        values: list[Any] = []

        if patch.name is not None:
            if not patch.name.strip():
                raise ValidationError("Provider name must not be empty")
            assignments.append("name = ?")
            values.append(patch.name.strip())
        if patch.enabled is not None:
            assignments.append("enabled = ?")
            values.append(1 if patch.enabled else 0)
        if patch.priority is not None:
            assignments.append("priority = ?")
            values.append(int(patch.priority))

        for field_name in _PLAIN_TEXT_FIELDS:
            value = getattr(patch, field_name)
            if value is not None:
                assignments.append(f"{field_name} = ?")
                values.append(value or None)

        for field_name in _SECRET_FIELDS:
            value = getattr(patch, field_name)
            if value and not is_masked(value):
                assignments.append(f"{field_name} = ?")
                values.append(self.vault.encrypt(value))
            elif value:
                log.debug("Ignoring masked value for %s on provider %s", field_name, provider_id)

        assignments.append("updated_at = ?")
        values.append(now_s())
        values.append(provider_id)
        self.conn.execute(f"UPDATE providers SET {', '.join(assignments)} WHERE id = ?", values)
        log.info("Provider updated: id=%s fields=%d", provider_id, len(assignments) - 1)

    def remove(self, provider_id: str) -> None:
        """Delete a provider; removing an absent id is a no-op."""
        cursor = self.conn.execute("DELETE FROM providers WHERE id = ?", (provider_id,))
        if cursor.rowcount:
            log.info("Provider removed: id=%s", provider_id)

    def _seal(self, secret: str | None) -> str | None:
        if not secret:
            return None
        if is_masked(secret):
            raise ValidationError("Masked value cannot be stored as a secret")
        return self.vault.encrypt(secret)

    def _open(self, blob: str | None, on_error: Callable[[IntegrityError], str | None]) -> str | None:
        if not blob:
            return None
        try:
            return self.vault.decrypt(blob)
        except IntegrityError as e:
            return on_error(e)

    def _to_config(self, row: sqlite3.Row | tuple) -> ProviderConfig:
        provider_id = row[0]

        def fail(error: IntegrityError) -> str | None:
            raise ProviderMisconfigured(
                f"Stored credentials for provider {provider_id!r} cannot be decrypted"
            ) from error

        return ProviderConfig(
            id=provider_id,
            name=row[1],
            kind=ProviderKind.parse(row[2]),
            enabled=bool(row[3]),
            priority=row[4],
            access_token=self._open(row[5], fail),
            base_url=row[6],
            api_key=self._open(row[7], fail),
            model=row[8],
            system_prompt=row[9],
            user_prompt=row[10],
            updated_at=row[11],
        )

    def _to_view(self, row: sqlite3.Row | tuple) -> ProviderView:
        provider_id = row[0]

        def warn(error: IntegrityError) -> str | None:
            log.warning("Cannot decrypt secret of provider %s: %s", provider_id, error)
            return None

        return ProviderView(
            id=provider_id,
            name=row[1],
            kind=ProviderKind.parse(row[2]),
            enabled=bool(row[3]),
            priority=row[4],
            access_token=mask_secret(self._open(row[5], warn)),
            base_url=row[6] or "",
            api_key=mask_secret(self._open(row[7], warn)),
            model=row[8] or "",
            system_prompt=row[9] or "",
            user_prompt=row[10] or "",
        )
