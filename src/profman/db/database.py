"""SQLite-backed document store.

Documents are JSON objects grouped in collections, mirroring the
collection/document model of the managed document database used in
production. One connection is opened per operation.
"""

from __future__ import annotations

import json
import re
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator

import structlog

from profman.core.errors import DuplicateKeyError, InvalidIdError, NotFoundError

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/profman.db")

DOC_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class _DeleteField:
    """Sentinel: remove the key in update()."""

    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD = _DeleteField()


def validate_doc_id(doc_id: str) -> str:
    """Return doc_id unchanged or raise InvalidIdError."""
    if not isinstance(doc_id, str) or not DOC_ID_RE.match(doc_id):
        raise InvalidIdError()
    return doc_id


def _validate_field(name: str) -> str:
    if not FIELD_RE.match(name):
        raise ValueError(f"Invalid field name: {name!r}")
    return name


def _to_sql_value(value: Any) -> Any:
    # json_extract returns 1/0 for JSON booleans
    if isinstance(value, bool):
        return int(value)
    return value


class SqliteDocumentStore:
    """Collection/document store on a single SQLite table."""

    backend = "sqlite"

    def __init__(self, db_path: Path | str | None = None):
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.init_db()

    def init_db(self) -> None:
        """Create the documents table if it doesn't exist."""
        with self.get_db() as conn:
            _create_schema(conn)
        logger.info("database.initialized", path=str(self.db_path))

    @contextmanager
    def get_db(self) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection as context manager.

        Yields:
            SQLite connection with row factory set to sqlite3.Row
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row

        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def new_id(self) -> str:
        """Generate a new document ID."""
        return uuid.uuid4().hex[:20]

    def insert(
        self, collection: str, data: dict[str, Any], doc_id: str | None = None
    ) -> dict[str, Any]:
        """Insert a new document.

        Raises:
            DuplicateKeyError: If a document with this ID already exists
        """
        doc_id = validate_doc_id(doc_id or data.get("id") or self.new_id())
        document = {**data, "id": doc_id}
        try:
            with self.get_db() as conn:
                conn.execute(
                    "INSERT INTO documents (collection, doc_id, data, created_at) VALUES (?, ?, ?, ?)",
                    (
                        collection,
                        doc_id,
                        json.dumps(document, ensure_ascii=False),
                        datetime.now(timezone.utc).isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateKeyError(f"Document {collection}/{doc_id} already exists") from e

        logger.debug("documents.inserted", collection=collection, doc_id=doc_id)
        return document

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Get a document by ID, or None if it doesn't exist."""
        validate_doc_id(doc_id)
        with self.get_db() as conn:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            ).fetchone()

        if row is None:
            return None
        return json.loads(row["data"])

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Create or overwrite a document."""
        validate_doc_id(doc_id)
        document = {**data, "id": doc_id}
        with self.get_db() as conn:
            conn.execute(
                """
                INSERT INTO documents (collection, doc_id, data, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(collection, doc_id) DO UPDATE SET data = excluded.data
                """,
                (
                    collection,
                    doc_id,
                    json.dumps(document, ensure_ascii=False),
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
        return document

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Merge top-level fields into an existing document.

        Keys whose value is DELETE_FIELD are removed.

        Raises:
            NotFoundError: If the document doesn't exist
        """
        validate_doc_id(doc_id)
        with self.get_db() as conn:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            ).fetchone()
            if row is None:
                raise NotFoundError(f"Document {collection}/{doc_id} not found")

            document = json.loads(row["data"])
            for key, value in fields.items():
                if value is DELETE_FIELD:
                    document.pop(key, None)
                else:
                    document[key] = value
            document["id"] = doc_id

            conn.execute(
                "UPDATE documents SET data = ? WHERE collection = ? AND doc_id = ?",
                (json.dumps(document, ensure_ascii=False), collection, doc_id),
            )

        logger.debug("documents.updated", collection=collection, doc_id=doc_id)
        return document

    def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns True if it existed."""
        validate_doc_id(doc_id)
        with self.get_db() as conn:
            cursor = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            )

        deleted = cursor.rowcount > 0
        if deleted:
            logger.debug("documents.deleted", collection=collection, doc_id=doc_id)
        return deleted

    def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Query documents by top-level field equality.

        A filter value of None matches documents where the field is missing
        or null.
        """
        sql = "SELECT data FROM documents WHERE collection = ?"
        params: list[Any] = [collection]

        for name, value in (filters or {}).items():
            path = f"$.{_validate_field(name)}"
            if value is None:
                sql += " AND json_extract(data, ?) IS NULL"
                params.append(path)
            else:
                sql += " AND json_extract(data, ?) = ?"
                params.extend([path, _to_sql_value(value)])

        if order_by:
            sql += f" ORDER BY json_extract(data, ?) {'DESC' if descending else 'ASC'}, created_at"
            params.append(f"$.{_validate_field(order_by)}")
        else:
            sql += " ORDER BY created_at, doc_id"

        with self.get_db() as conn:
            rows = conn.execute(sql, params).fetchall()

        return [json.loads(row["data"]) for row in rows]


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS documents (
            collection TEXT NOT NULL,
            doc_id TEXT NOT NULL,
            data TEXT NOT NULL,
            created_at TEXT NOT NULL,
            PRIMARY KEY (collection, doc_id)
        );

        CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection);
        """
    )
