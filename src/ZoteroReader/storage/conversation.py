"""Per-document conversation history storage."""

from __future__ import annotations

from ZoteroReader.core.models import ConversationMessage, Role
from ZoteroReader.storage.db import DatabaseManager, now_ms


class ConversationStore:
    """Append-only message log keyed by document id.

    Messages are ordered by insertion id, which follows creation order even
    when the wall clock steps backwards.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.conn = db_manager.get_connection()

    def append(self, document_id: str, role: Role, content: str) -> ConversationMessage:
        """Append one message and return it as stored."""
        created_at = now_ms()
        self.conn.execute(
            "INSERT INTO chat_history (document_id, role, content, created_at) VALUES (?, ?, ?, ?)",
            (document_id, role.value, content, created_at),
        )
        return ConversationMessage(document_id=document_id, role=role, content=content, created_at=created_at)

    def recent(self, document_id: str, limit: int | None = None) -> list[ConversationMessage]:
        """Return the most recent ``limit`` messages, oldest first.

        Args:
            document_id: Document key.
            limit: Maximum number of messages; None returns the whole log.
        """
        if limit is not None and limit <= 0:
            return []
        rows = self.conn.execute(
            """
            SELECT role, content, created_at FROM chat_history
            WHERE document_id = ?
            ORDER BY id DESC
            LIMIT ?
            """,
            (document_id, -1 if limit is None else limit),
        ).fetchall()
        return [
            ConversationMessage(document_id=document_id, role=Role(row[0]), content=row[1], created_at=row[2])
            for row in reversed(rows)
        ]

    def clear(self, document_id: str) -> int:
        """Delete every message of a document in one statement.

        Returns:
            Number of deleted messages.
        """
        cursor = self.conn.execute("DELETE FROM chat_history WHERE document_id = ?", (document_id,))
        return cursor.rowcount
