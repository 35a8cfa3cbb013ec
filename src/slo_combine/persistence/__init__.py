"""Persistence of the combined SLO selection."""

from slo_combine.persistence.errors import (
    LoadFailure,
    PersistenceError,
    SaveFailure,
    StoreUnavailable,
)
from slo_combine.persistence.gateway import (
    SLO_COLLECTION_KEY,
    SLO_DOCUMENT_ID,
    PersistenceGateway,
    SelectionDocument,
    UserStorageGateway,
)
from slo_combine.persistence.stores import (
    DocumentStore,
    InMemoryDocumentStore,
    SQLiteDocumentStore,
)

__all__ = [
    "SLO_COLLECTION_KEY",
    "SLO_DOCUMENT_ID",
    "LoadFailure",
    "PersistenceError",
    "PersistenceGateway",
    "SaveFailure",
    "StoreUnavailable",
    "SelectionDocument",
    "UserStorageGateway",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
]
