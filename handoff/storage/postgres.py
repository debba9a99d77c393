"""PostgreSQL implementation of :class:`~handoff.storage.base.DocumentStore`."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from .base import Document, Filter, StorageError

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
    collection text NOT NULL,
    body jsonb NOT NULL DEFAULT '{}'::jsonb,
    created_at timestamptz NOT NULL DEFAULT now(),
    updated_at timestamptz NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS documents_collection_created_idx
    ON documents (collection, created_at);
CREATE INDEX IF NOT EXISTS documents_body_gin_idx
    ON documents USING gin (body jsonb_path_ops);
"""


def _as_text(value: Any) -> str:
    # ``#>>`` yields the JSON scalar rendered as text.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _compile_filter(filter: Optional[Filter]) -> Tuple[str, List[Any]]:
    clauses: List[str] = []
    params: List[Any] = []
    for path, expected in (filter or {}).items():
        parts = path.split(".")
        if expected is None:
            clauses.append("body #>> %s IS NULL")
            params.append(parts)
        else:
            clauses.append("body #>> %s = %s")
            params.extend((parts, _as_text(expected)))
    if not clauses:
        return "", params
    return " AND " + " AND ".join(clauses), params


class PostgresDocumentStore:
    """Stores every collection in a single ``documents`` table as JSONB.

    Each operation runs inside ``conn.transaction()`` so a failed statement
    rolls back to its own savepoint and leaves the connection usable; the
    outer transaction is committed by whoever owns the connection.
    """

    def __init__(self, conn: psycopg.Connection) -> None:
        self._conn = conn

    # Utility -----------------------------------------------------------------
    def _cursor(self):
        return self._conn.cursor(row_factory=dict_row)

    @staticmethod
    def _hydrate(row: Dict[str, Any]) -> Document:
        document = dict(row["body"] or {})
        document["id"] = str(row["id"])
        return document

    def ensure_schema(self) -> None:
        """Create the ``documents`` table and indexes if they do not exist."""

        try:
            with self._conn.transaction(), self._conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
        except psycopg.Error as exc:
            raise StorageError(f"Failed to create document schema: {exc}") from exc

    # Queries -----------------------------------------------------------------
    def find_one(self, collection: str, filter: Filter) -> Optional[Document]:
        where, params = _compile_filter(filter)
        query = (
            "SELECT id, body FROM documents WHERE collection = %s"
            f"{where} ORDER BY created_at, id LIMIT 1"
        )
        try:
            with self._conn.transaction(), self._cursor() as cur:
                cur.execute(query, [collection, *params])
                row = cur.fetchone()
        except psycopg.Error as exc:
            raise StorageError(f"Failed to query {collection}: {exc}") from exc
        if not row:
            return None
        return self._hydrate(row)

    def find(self, collection: str, filter: Optional[Filter] = None) -> List[Document]:
        where, params = _compile_filter(filter)
        query = (
            "SELECT id, body FROM documents WHERE collection = %s"
            f"{where} ORDER BY created_at, id"
        )
        try:
            with self._conn.transaction(), self._cursor() as cur:
                cur.execute(query, [collection, *params])
                rows = cur.fetchall()
        except psycopg.Error as exc:
            raise StorageError(f"Failed to query {collection}: {exc}") from exc
        return [self._hydrate(row) for row in rows]

    # Mutations ---------------------------------------------------------------
    def create(self, collection: str, data: Document) -> Document:
        body = {key: value for key, value in data.items() if key != "id"}
        try:
            with self._conn.transaction(), self._cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO documents (collection, body)
                    VALUES (%s, %s)
                    RETURNING id, body
                    """,
                    (collection, Jsonb(body)),
                )
                row = cur.fetchone()
        except psycopg.Error as exc:
            raise StorageError(f"Failed to create {collection} document: {exc}") from exc
        if not row:
            raise StorageError(f"Insert into {collection} returned no row")
        return self._hydrate(row)

    def update_by_id(self, collection: str, document_id: str, patch: Document) -> bool:
        body = {key: value for key, value in patch.items() if key != "id"}
        try:
            with self._conn.transaction(), self._conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET body = body || %s, updated_at = now()
                    WHERE collection = %s AND id = %s
                    """,
                    (Jsonb(body), collection, document_id),
                )
                return cur.rowcount > 0
        except psycopg.Error as exc:
            raise StorageError(
                f"Failed to update {collection} document {document_id}: {exc}"
            ) from exc

    def delete_by_id(self, collection: str, document_id: str) -> bool:
        try:
            with self._conn.transaction(), self._conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM documents WHERE collection = %s AND id = %s",
                    (collection, document_id),
                )
                return cur.rowcount > 0
        except psycopg.Error as exc:
            raise StorageError(
                f"Failed to delete {collection} document {document_id}: {exc}"
            ) from exc
