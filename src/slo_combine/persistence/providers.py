"""
Document store discovery.

An installed package can supply its own selection store (for example a
remote per-user storage service) through the ``slo_combine.document_stores``
entry point group. Without one, the local SQLite store is used.
"""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from typing import Any

from slo_combine.persistence.stores import DocumentStore, SQLiteDocumentStore

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "slo_combine.document_stores"

_UNSET = object()
_store_class: Any = _UNSET


def discover_store_class() -> type[DocumentStore] | None:
    """First store class advertised under the entry point group, cached."""
    global _store_class
    if _store_class is not _UNSET:
        return _store_class

    _store_class = None
    try:
        ep = next(iter(entry_points(group=ENTRY_POINT_GROUP)), None)
        if ep is not None:
            _store_class = ep.load()
            logger.info("Document store provider loaded: %s from %s", ep.name, ep.value)
    except Exception:
        logger.debug("Store discovery failed for %s", ENTRY_POINT_GROUP, exc_info=True)
    return _store_class


def get_document_store(**kwargs: Any) -> DocumentStore:
    """Instantiate the discovered store, or :class:`SQLiteDocumentStore`."""
    store_class = discover_store_class()
    if store_class is None:
        store_class = SQLiteDocumentStore
    return store_class(**kwargs)


def clear_cache() -> None:
    """Forget the discovered store class."""
    global _store_class
    _store_class = _UNSET
