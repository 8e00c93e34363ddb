"""Document store interface shared by all backends."""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable

logger = logging.getLogger(__name__)

Document = dict[str, Any]
SnapshotCallback = Callable[[list[Document]], None]

# Collection names
SHOPS = "shops"
RENT_RECORDS = "rentRecords"
MAINTENANCE_COLLECTIONS = "maintenanceCollections"
REPAIR_RECORDS = "repairRecords"
USERS = "users"
SETTINGS = "settings"

COLLECTIONS = (SHOPS, RENT_RECORDS, MAINTENANCE_COLLECTIONS, REPAIR_RECORDS, USERS, SETTINGS)

# Identifier of the singleton settings document
SETTINGS_DOC_ID = "plaza"

# Billing documents are unique per shop and period within their collection
PERIOD_KEYS = ("shopId", "month")


class DocumentStore(ABC):
    """Collection-oriented document store with live snapshot subscriptions.

    Every document carries its identifier under the ``id`` key. Subscribers
    receive the complete collection after every write and must treat each
    snapshot as authoritative.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[SnapshotCallback]] = {}

    def subscribe(self, collection: str, callback: SnapshotCallback) -> Callable[[], None]:
        """Register a snapshot listener and push the current snapshot to it.

        Returns
        -------
        Callable[[], None]
            Function that removes the listener.
        """
        self._subscribers.setdefault(collection, []).append(callback)
        callback(self.list(collection))

        def unsubscribe() -> None:
            listeners = self._subscribers.get(collection, [])
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def _publish(self, collection: str) -> None:
        """Push a fresh snapshot of ``collection`` to its listeners."""
        listeners = list(self._subscribers.get(collection, []))
        if not listeners:
            return
        snapshot = self.list(collection)
        for callback in listeners:
            try:
                callback(snapshot)
            except Exception:
                # The write is already durable; one failing view must not hide it from others
                logger.exception("Snapshot listener for %s failed", collection)

    @staticmethod
    def new_id() -> str:
        """Generate a document identifier."""
        return uuid.uuid4().hex

    @abstractmethod
    def list(self, collection: str) -> list[Document]:
        """Return every document in a collection."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Document | None:
        """Return one document, or ``None`` if it does not exist."""

    @abstractmethod
    def add(self, collection: str, data: Document) -> str:
        """Insert a document under a new identifier and return it."""

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Document, merge: bool = False) -> None:
        """Create or replace a document; ``merge`` keeps fields absent from ``data``."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, changes: Document) -> None:
        """Update fields of an existing document.

        Raises
        ------
        RecordNotFoundError
            If the document does not exist.
        """

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""

    @abstractmethod
    def query(self, collection: str, field: str, value: Any) -> list[Document]:
        """Return documents whose ``field`` equals ``value``."""

    @abstractmethod
    def insert_unique(self, collection: str, data: Document, keys: tuple[str, ...]) -> str | None:
        """Atomically insert ``data`` unless a document matches it on ``keys``.

        Returns
        -------
        str | None
            New document identifier, or ``None`` if a match already existed.
        """

    @abstractmethod
    def transact(
        self,
        collection: str,
        doc_id: str,
        fn: Callable[[Document], Document],
    ) -> Document:
        """Atomically read a document, apply ``fn`` and write back its changes.

        ``fn`` receives a copy of the current document and returns the fields to
        change. No other write to the document can interleave.

        Returns
        -------
        Document
            The updated document.

        Raises
        ------
        RecordNotFoundError
            If the document does not exist.
        """

    def close(self) -> None:
        """Release backend resources."""
