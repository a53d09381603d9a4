"""SQLite-backed document-id to vector-id index.

Persists which vector ids were written for which document to a local
SQLite database at ``data/document_vectors.db``.  Uses ``aiosqlite`` for
async I/O.
"""

from __future__ import annotations

from pathlib import Path

import aiosqlite
import structlog

from chunkwise.interfaces.document_vector_index import IDocumentVectorIndex

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/document_vectors.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS document_vectors (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    doc_id      TEXT    NOT NULL,
    vector_id   TEXT    NOT NULL,
    created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_document_vectors_doc ON document_vectors(doc_id);",
]

_INSERT_SQL = "INSERT INTO document_vectors (doc_id, vector_id) VALUES (?, ?);"

_SELECT_FOR_DOC_SQL = """\
SELECT vector_id FROM document_vectors
WHERE doc_id = ?
ORDER BY id;
"""

_DELETE_FOR_DOC_SQL = "DELETE FROM document_vectors WHERE doc_id = ?;"


class SQLiteDocumentVectorIndex(IDocumentVectorIndex):
    """SQLite persistence for the document to vector id mapping.

    The schema is created by :meth:`initialize`, which every operation also
    runs once on first use.
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)
        self._initialized = False

    async def initialize(self) -> None:
        """Create the document_vectors table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        self._initialized = True
        logger.info("document_vectors_db_initialized", path=str(self._db_path))

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    async def bulk_insert(self, rows: list[tuple[str, str]]) -> int:
        if not rows:
            return 0
        await self._ensure_initialized()
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.executemany(_INSERT_SQL, rows)
            await db.commit()
        logger.debug("document_vectors_inserted", rows=len(rows))
        return len(rows)

    async def vector_ids_for(self, doc_id: str) -> list[str]:
        await self._ensure_initialized()
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_SELECT_FOR_DOC_SQL, (doc_id,))
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def delete_for_document(self, doc_id: str) -> int:
        await self._ensure_initialized()
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_DELETE_FOR_DOC_SQL, (doc_id,))
            await db.commit()
            removed = cursor.rowcount
        logger.info("document_vectors_deleted", doc_id=doc_id, removed=removed)
        return removed

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""
        return "sqlite_document_vectors"
