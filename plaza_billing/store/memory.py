"""In-memory document store with atomic check-and-insert."""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from plaza_billing.exceptions import RecordNotFoundError
from plaza_billing.store.base import Document, DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class _Collection:
    """Documents of one collection keyed by identifier, in insertion order."""

    docs: dict[str, Document] = field(default_factory=dict)


class MemoryDocumentStore(DocumentStore):
    """Thread-safe in-memory store.

    All mutations run under a single re-entrant lock, so ``insert_unique`` and
    ``transact`` cannot interleave with other writes. Snapshots are published
    after the lock is released.
    """

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.RLock()
        self._collections: dict[str, _Collection] = {}

    def _docs(self, collection: str) -> dict[str, Document]:
        return self._collections.setdefault(collection, _Collection()).docs

    def list(self, collection: str) -> list[Document]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._docs(collection).values()]

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._lock:
            doc = self._docs(collection).get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def add(self, collection: str, data: Document) -> str:
        doc_id = self.new_id()
        with self._lock:
            self._docs(collection)[doc_id] = {**copy.deepcopy(data), "id": doc_id}
        logger.debug("Added %s/%s", collection, doc_id)
        self._publish(collection)
        return doc_id

    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        with self._lock:
            docs = self._docs(collection)
            base = docs.get(doc_id, {}) if merge else {}
            docs[doc_id] = {**base, **copy.deepcopy(data), "id": doc_id}
        self._publish(collection)

    def update(self, collection: str, doc_id: str, changes: Document) -> None:
        with self._lock:
            docs = self._docs(collection)
            if doc_id not in docs:
                raise RecordNotFoundError(f"{collection}/{doc_id} not found")
            docs[doc_id].update(copy.deepcopy(changes))
            docs[doc_id]["id"] = doc_id
        self._publish(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            removed = self._docs(collection).pop(doc_id, None)
        if removed is not None:
            self._publish(collection)

    def query(self, collection: str, field: str, value: Any) -> list[Document]:
        with self._lock:
            return [
                copy.deepcopy(doc)
                for doc in self._docs(collection).values()
                if doc.get(field) == value
            ]

    def insert_unique(self, collection: str, data: Document, keys: tuple[str, ...]) -> str | None:
        with self._lock:
            docs = self._docs(collection)
            for doc in docs.values():
                if all(doc.get(k) == data.get(k) for k in keys):
                    return None
            doc_id = self.new_id()
            docs[doc_id] = {**copy.deepcopy(data), "id": doc_id}
        self._publish(collection)
        return doc_id

    def transact(
        self,
        collection: str,
        doc_id: str,
        fn: Callable[[Document], Document],
    ) -> Document:
        with self._lock:
            docs = self._docs(collection)
            if doc_id not in docs:
                raise RecordNotFoundError(f"{collection}/{doc_id} not found")
            changes = fn(copy.deepcopy(docs[doc_id]))
            docs[doc_id] = {**docs[doc_id], **copy.deepcopy(changes), "id": doc_id}
            updated = copy.deepcopy(docs[doc_id])
        self._publish(collection)
        return updated

    def summary(self) -> dict[str, int]:
        """Return document counts per collection."""
        with self._lock:
            return {name: len(c.docs) for name, c in self._collections.items()}
