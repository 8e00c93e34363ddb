"""PostgreSQL document store backed by a single JSONB table."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from plaza_billing.exceptions import RecordNotFoundError, StoreError
from plaza_billing.store.base import (
    MAINTENANCE_COLLECTIONS,
    RENT_RECORDS,
    Document,
    DocumentStore,
)

logger = logging.getLogger(__name__)


class PostgresDocumentStore(DocumentStore):
    """Document store on PostgreSQL.

    Documents live in one ``plaza_documents`` table keyed by
    ``(collection, id)``. Billing collections carry a partial unique index on
    ``(shopId, month)``. ``insert_unique`` serializes competing inserts with a
    transaction-scoped advisory lock, and ``transact`` locks the row with
    ``SELECT ... FOR UPDATE``.

    Snapshot listeners are notified of writes made through this instance;
    call :meth:`refresh` to pick up writes made by other processes.
    """

    TABLE = "plaza_documents"
    PERIOD_UNIQUE_COLLECTIONS = (RENT_RECORDS, MAINTENANCE_COLLECTIONS)

    DDL = [
        f"""
        CREATE TABLE IF NOT EXISTS {TABLE} (
            collection TEXT NOT NULL,
            id TEXT NOT NULL,
            doc JSONB NOT NULL,
            PRIMARY KEY (collection, id)
        )
        """,
        f"""
        CREATE UNIQUE INDEX IF NOT EXISTS {TABLE}_period_uq
            ON {TABLE} (collection, (doc->>'shopId'), (doc->>'month'))
            WHERE collection IN ('{RENT_RECORDS}', '{MAINTENANCE_COLLECTIONS}')
        """,
    ]

    def __init__(self, connection_string: str) -> None:
        """Connect and ensure the schema exists.

        Parameters
        ----------
        connection_string : str
            PostgreSQL connection string.
        """
        try:
            import psycopg
        except ImportError as e:
            raise ImportError(
                "psycopg is required for PostgresDocumentStore. Install with: pip install 'psycopg[binary]'"
            ) from e

        super().__init__()
        self._psycopg = psycopg
        try:
            self.conn = psycopg.connect(connection_string, autocommit=True)
        except psycopg.Error as e:
            raise StoreError(f"Could not connect to PostgreSQL: {e}") from e
        self.create_tables()

    @contextmanager
    def _errors(self, action: str) -> Iterator[None]:
        """Translate driver errors into :class:`StoreError`."""
        try:
            yield
        except self._psycopg.Error as e:
            raise StoreError(f"PostgreSQL {action} failed: {e}") from e

    def create_tables(self) -> None:
        """Create the document table and its indexes if missing."""
        with self._errors("schema setup"), self.conn.cursor() as cur:
            for statement in self.DDL:
                cur.execute(statement)
        logger.debug("Ensured %s schema", self.TABLE)

    def list(self, collection: str) -> list[Document]:
        with self._errors("list"), self.conn.cursor() as cur:
            cur.execute(
                f"SELECT doc FROM {self.TABLE} WHERE collection = %s ORDER BY id",
                (collection,),
            )
            return [row[0] for row in cur.fetchall()]

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._errors("get"), self.conn.cursor() as cur:
            cur.execute(
                f"SELECT doc FROM {self.TABLE} WHERE collection = %s AND id = %s",
                (collection, doc_id),
            )
            row = cur.fetchone()
        return row[0] if row is not None else None

    def add(self, collection: str, data: Document) -> str:
        doc_id = self.new_id()
        with self._errors("insert"), self.conn.cursor() as cur:
            cur.execute(
                f"INSERT INTO {self.TABLE} (collection, id, doc) VALUES (%s, %s, %s::jsonb)",
                (collection, doc_id, json.dumps({**data, "id": doc_id})),
            )
        self._publish(collection)
        return doc_id

    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        on_conflict = f"{self.TABLE}.doc || EXCLUDED.doc" if merge else "EXCLUDED.doc"
        with self._errors("upsert"), self.conn.cursor() as cur:
            cur.execute(
                f"INSERT INTO {self.TABLE} (collection, id, doc) VALUES (%s, %s, %s::jsonb) "
                f"ON CONFLICT (collection, id) DO UPDATE SET doc = {on_conflict}",
                (collection, doc_id, json.dumps({**data, "id": doc_id})),
            )
        self._publish(collection)

    def update(self, collection: str, doc_id: str, changes: Document) -> None:
        with self._errors("update"), self.conn.cursor() as cur:
            cur.execute(
                f"UPDATE {self.TABLE} SET doc = doc || %s::jsonb WHERE collection = %s AND id = %s",
                (json.dumps({**changes, "id": doc_id}), collection, doc_id),
            )
            if cur.rowcount == 0:
                raise RecordNotFoundError(f"{collection}/{doc_id} not found")
        self._publish(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._errors("delete"), self.conn.cursor() as cur:
            cur.execute(
                f"DELETE FROM {self.TABLE} WHERE collection = %s AND id = %s",
                (collection, doc_id),
            )
        self._publish(collection)

    def query(self, collection: str, field: str, value: Any) -> list[Document]:
        with self._errors("query"), self.conn.cursor() as cur:
            cur.execute(
                f"SELECT doc FROM {self.TABLE} WHERE collection = %s AND doc @> %s::jsonb ORDER BY id",
                (collection, json.dumps({field: value})),
            )
            return [row[0] for row in cur.fetchall()]

    def insert_unique(self, collection: str, data: Document, keys: tuple[str, ...]) -> str | None:
        match = {k: data.get(k) for k in keys}
        lock_key = f"{collection}:{json.dumps(match, sort_keys=True)}"
        doc_id = self.new_id()
        inserted = False

        with self._errors("unique insert"), self.conn.transaction(), self.conn.cursor() as cur:
            cur.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (lock_key,))
            cur.execute(
                f"SELECT id FROM {self.TABLE} WHERE collection = %s AND doc @> %s::jsonb LIMIT 1",
                (collection, json.dumps(match)),
            )
            if cur.fetchone() is None:
                cur.execute(
                    f"INSERT INTO {self.TABLE} (collection, id, doc) VALUES (%s, %s, %s::jsonb) "
                    "ON CONFLICT DO NOTHING RETURNING id",
                    (collection, doc_id, json.dumps({**data, "id": doc_id})),
                )
                inserted = cur.fetchone() is not None

        if not inserted:
            logger.debug("Skipped insert into %s: %s already present", collection, match)
            return None
        self._publish(collection)
        return doc_id

    def transact(
        self,
        collection: str,
        doc_id: str,
        fn: Callable[[Document], Document],
    ) -> Document:
        with self._errors("transaction"), self.conn.transaction(), self.conn.cursor() as cur:
            cur.execute(
                f"SELECT doc FROM {self.TABLE} WHERE collection = %s AND id = %s FOR UPDATE",
                (collection, doc_id),
            )
            row = cur.fetchone()
            if row is None:
                raise RecordNotFoundError(f"{collection}/{doc_id} not found")
            current = row[0]
            updated = {**current, **fn(dict(current)), "id": doc_id}
            cur.execute(
                f"UPDATE {self.TABLE} SET doc = %s::jsonb WHERE collection = %s AND id = %s",
                (json.dumps(updated), collection, doc_id),
            )
        self._publish(collection)
        return updated

    def refresh(self, collection: str | None = None) -> None:
        """Re-publish snapshots so listeners see writes from other processes."""
        for name in [collection] if collection else list(self._subscribers):
            self._publish(name)

    def truncate(self) -> None:
        """Delete every document (test and demo resets)."""
        with self._errors("truncate"), self.conn.cursor() as cur:
            cur.execute(f"TRUNCATE {self.TABLE}")
        logger.info("Truncated %s", self.TABLE)

    def close(self) -> None:
        """Close the connection."""
        self.conn.close()
