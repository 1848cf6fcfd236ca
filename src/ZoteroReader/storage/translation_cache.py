"""Content-addressed translation cache."""

from __future__ import annotations

import hashlib
import json
import unicodedata
from typing import Sequence

from ZoteroReader.core.models import CachedTranslation, HistoryPage, HistoryRecord
from ZoteroReader.storage.db import DatabaseManager, now_s
from ZoteroReader.utils.log import log


def normalize_text(text: str) -> str:
    """Normalize source text before hashing: NFC plus outer whitespace strip."""
    return unicodedata.normalize("NFC", text or "").strip()


def cache_key(text: str, target_lang: str, provider_id: str) -> str:
    """Compute the cache key for a translation.

    Each field is length-prefixed so no choice of field contents can make two
    different triples encode to the same byte string.

    Args:
        text: Source text (normalized by this function).
        target_lang: Target language code.
        provider_id: Registry id of the provider.

    Returns:
        Hex SHA-256 digest.
    """
    digest = hashlib.sha256()
    for part in (normalize_text(text), target_lang.strip().lower(), provider_id):
        encoded = part.encode("utf-8")
        digest.update(f"{len(encoded)}:".encode("ascii"))
        digest.update(encoded)
    return digest.hexdigest()


class TranslationCache:
    """Durable cache of deterministic translations.

    Entries never expire; operators remove them through the history API.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.conn = db_manager.get_connection()

    def lookup(self, text: str, target_lang: str, provider_id: str) -> CachedTranslation | None:
        """Return the cached translation, or None on miss."""
        row = self.conn.execute(
            "SELECT translation, alternatives FROM translation_cache WHERE text_hash = ?",
            (cache_key(text, target_lang, provider_id),),
        ).fetchone()
        if not row:
            return None
        return CachedTranslation(translation=row[0], alternatives=_load_alternatives(row[1]))

    def store(
        self,
        text: str,
        target_lang: str,
        provider_id: str,
        translation: str,
        alternatives: Sequence[str] = (),
    ) -> None:
        """Upsert a translation; the last writer wins."""
        self.conn.execute(
            """
            INSERT INTO translation_cache (
                text_hash, source_text, target_lang, provider_id, translation, alternatives, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(text_hash) DO UPDATE SET
                translation = excluded.translation,
                alternatives = excluded.alternatives
            """,
            (
                cache_key(text, target_lang, provider_id),
                normalize_text(text),
                target_lang,
                provider_id,
                translation,
                json.dumps(list(alternatives), ensure_ascii=False) if alternatives else None,
                now_s(),
            ),
        )
        log.debug("Translation cached: provider=%s lang=%s chars=%d", provider_id, target_lang, len(text))

    def list_history(self, offset: int = 0, limit: int = 30, search: str | None = None) -> HistoryPage:
        """Page through cached translations, newest first.

        Args:
            offset: Number of records to skip.
            limit: Page size.
            search: Optional case-insensitive substring matched against the
                source and translated text.

        Returns:
            The page plus the total number of matching records.
        """
        where = ""
        params: list[object] = []
        needle = (search or "").strip()
        if needle:
            where = "WHERE instr(casefold(source_text), casefold(?)) > 0 OR instr(casefold(translation), casefold(?)) > 0"
            params = [needle, needle]

        total = self.conn.execute(f"SELECT COUNT(*) FROM translation_cache {where}", params).fetchone()[0]
        rows = self.conn.execute(
            f"""
            SELECT id, source_text, target_lang, provider_id, translation, created_at
            FROM translation_cache {where}
            ORDER BY created_at DESC, id DESC
            LIMIT ? OFFSET ?
            """,
            [*params, max(0, limit), max(0, offset)],
        ).fetchall()
        records = [
            HistoryRecord(
                id=row[0],
                source_text=row[1],
                target_lang=row[2],
                provider_id=row[3],
                translation=row[4],
                created_at=row[5],
            )
            for row in rows
        ]
        return HistoryPage(records=records, total=total)

    def delete_record(self, record_id: int) -> None:
        self.conn.execute("DELETE FROM translation_cache WHERE id = ?", (record_id,))

    def clear(self) -> None:
        cursor = self.conn.execute("DELETE FROM translation_cache")
        log.info("Translation cache cleared: %d records", cursor.rowcount)


def _load_alternatives(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        log.warning("Discarding unreadable alternatives in translation cache")
        return ()
    return tuple(str(item) for item in data) if isinstance(data, list) else ()
