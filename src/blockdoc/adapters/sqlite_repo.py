"""SQLite-backed document repository."""

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.ports import DocumentRecord, DocumentRepository
from .memory_repo import apply_changes, utcnow

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "2"


@dataclass
class SqliteRepository(DocumentRepository):
    """
    Documents table with the block list stored as a JSON column.

    Serial id, title defaulting to "Untitled", content defaulting to an empty
    list, created and updated timestamps, optional owning user and the
    sequential block id high-water mark.
    """

    db_path: Path

    def __post_init__(self) -> None:
        self._ensure_schema()

    def _conn(self) -> sqlite3.Connection:
        """Get a connection to the SQLite database."""
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _ensure_schema(self) -> None:
        """Create the database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._conn()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL DEFAULT 'Untitled',
                    content TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    user_id INTEGER,
                    next_block_id INTEGER NOT NULL DEFAULT 1
                )
            """)
            columns = {row[1] for row in conn.execute("PRAGMA table_info(documents)")}
            if "next_block_id" not in columns:
                conn.execute(
                    "ALTER TABLE documents ADD COLUMN next_block_id INTEGER NOT NULL DEFAULT 1"
                )
            conn.execute("CREATE INDEX IF NOT EXISTS documents_user_idx ON documents(user_id)")
            conn.execute("""
                INSERT INTO meta(key, value) VALUES('schema_version', ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """, (SCHEMA_VERSION,))
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_record(row: tuple) -> DocumentRecord:
        id_, title, content, created_at, updated_at, user_id, next_block_id = row
        return DocumentRecord(
            id=id_,
            title=title,
            content=json.loads(content) if content else [],
            created_at=datetime.fromisoformat(created_at),
            updated_at=datetime.fromisoformat(updated_at),
            owner_id=user_id,
            next_block_id=next_block_id or 1,
        )

    def create(
        self, title: str, content: list[dict[str, Any]], owner_id: int | None = None
    ) -> DocumentRecord:
        now = utcnow().isoformat()
        conn = self._conn()
        try:
            cur = conn.execute(
                "INSERT INTO documents(title, content, created_at, updated_at, user_id) "
                "VALUES (?, ?, ?, ?, ?)",
                (title, json.dumps(list(content)), now, now, owner_id),
            )
            conn.commit()
            new_id = cur.lastrowid
        finally:
            conn.close()
        logger.debug("created document %s in %s", new_id, self.db_path)
        record = self.get(new_id)
        assert record is not None
        return record

    def get(self, id: int) -> DocumentRecord | None:
        conn = self._conn()
        try:
            row = conn.execute(
                "SELECT id, title, content, created_at, updated_at, user_id, next_block_id "
                "FROM documents WHERE id = ?",
                (id,),
            ).fetchone()
        finally:
            conn.close()
        return self._row_to_record(row) if row else None

    def update(self, id: int, changes: dict[str, Any]) -> DocumentRecord | None:
        current = self.get(id)
        if current is None:
            return None
        updated = apply_changes(current, changes)
        conn = self._conn()
        try:
            conn.execute(
                "UPDATE documents SET title = ?, content = ?, updated_at = ?, next_block_id = ? "
                "WHERE id = ?",
                (
                    updated.title,
                    json.dumps(updated.content),
                    updated.updated_at.isoformat(),
                    updated.next_block_id,
                    id,
                ),
            )
            conn.commit()
        finally:
            conn.close()
        return updated

    def delete(self, id: int) -> bool:
        conn = self._conn()
        try:
            cur = conn.execute("DELETE FROM documents WHERE id = ?", (id,))
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def list(self, owner_id: int | None = None) -> list[DocumentRecord]:
        query = (
            "SELECT id, title, content, created_at, updated_at, user_id, next_block_id "
            "FROM documents"
        )
        params: tuple = ()
        if owner_id is not None:
            query += " WHERE user_id = ?"
            params = (owner_id,)
        conn = self._conn()
        try:
            rows = conn.execute(query + " ORDER BY id", params).fetchall()
        finally:
            conn.close()
        return [self._row_to_record(row) for row in rows]
