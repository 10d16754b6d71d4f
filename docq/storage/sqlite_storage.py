import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from docq.errors import StorageError
from docq.models import Record

logger = logging.getLogger(__name__)


class SQLiteDocumentStorage:
    """SQLite-based document storage; fields are kept as JSON text"""

    def __init__(self, db_path: Path = None):
        self.db_path = db_path or (Path.home() / ".docq" / "documents.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open {self.db_path}: {exc}") from exc
        self.conn.row_factory = sqlite3.Row
        self._init_db()

    def _init_db(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                entity TEXT NOT NULL,
                fields TEXT,
                parent_id INTEGER,
                created_at TEXT
            )
        """)
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_entity ON documents (entity)")
        self.conn.commit()

    def _query(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self.conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise StorageError(f"SQLite query failed: {exc}") from exc

    def add_document(self, entity: str, fields: Dict[str, Any] = None,
                     parent_id: Optional[int] = None) -> Record:
        record = Record(id=0, entity=entity, fields=dict(fields or {}), parent_id=parent_id)
        cur = self._query(
            "INSERT INTO documents (entity, fields, parent_id, created_at) VALUES (?, ?, ?, ?)",
            record.to_row()
        )
        self.conn.commit()
        record.id = cur.lastrowid
        logger.debug("Added %s #%d", entity, record.id)
        return record

    def get_document(self, document_id: int) -> Optional[Record]:
        cur = self._query("SELECT * FROM documents WHERE id=?", (document_id,))
        row = cur.fetchone()
        return Record.from_row(row) if row else None

    def delete_document(self, document_id: int) -> bool:
        cur = self._query("DELETE FROM documents WHERE id=?", (document_id,))
        self.conn.commit()
        return cur.rowcount > 0

    def iter_documents(self, entity: str) -> Iterator[Record]:
        cur = self._query("SELECT * FROM documents WHERE entity=? ORDER BY id", (entity,))
        for row in cur.fetchall():
            yield Record.from_row(row)

    def list_entities(self) -> List[str]:
        cur = self._query("SELECT DISTINCT entity FROM documents ORDER BY entity")
        return [row["entity"] for row in cur.fetchall()]

    def close(self):
        self.conn.close()
