"""Document stores holding the plaza collections."""

from plaza_billing.config import PlazaConfig
from plaza_billing.store.base import DocumentStore
from plaza_billing.store.memory import MemoryDocumentStore

__all__ = ["DocumentStore", "MemoryDocumentStore", "open_store"]


def open_store(config: PlazaConfig) -> DocumentStore:
    """Open the backend selected by ``config.backend``."""
    if config.backend == "postgres":
        from plaza_billing.store.postgres import PostgresDocumentStore

        return PostgresDocumentStore(config.postgres.connection_string)
    return MemoryDocumentStore()
