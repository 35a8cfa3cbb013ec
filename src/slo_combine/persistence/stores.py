"""Per-user document stores backing the persisted SLO selection.

Documents are JSON-compatible dicts addressed by ``(collection, document_id)``.
"""

from __future__ import annotations

import asyncio
import copy
import json
import sqlite3
import time
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from slo_combine.persistence.errors import StoreUnavailable


@runtime_checkable
class DocumentStore(Protocol):
    """Asynchronous key/document store."""

    async def read_document(self, collection: str, document_id: str) -> dict[str, Any] | None: ...

    async def write_document(
        self, collection: str, document_id: str, document: dict[str, Any]
    ) -> None: ...

    async def delete_document(self, collection: str, document_id: str) -> bool: ...


class InMemoryDocumentStore:
    """Dict-backed store. Documents are deep-copied in and out."""

    def __init__(self) -> None:
        self._documents: dict[tuple[str, str], dict[str, Any]] = {}

    async def read_document(self, collection: str, document_id: str) -> dict[str, Any] | None:
        doc = self._documents.get((collection, document_id))
        return copy.deepcopy(doc) if doc is not None else None

    async def write_document(
        self, collection: str, document_id: str, document: dict[str, Any]
    ) -> None:
        self._documents[(collection, document_id)] = copy.deepcopy(document)

    async def delete_document(self, collection: str, document_id: str) -> bool:
        return self._documents.pop((collection, document_id), None) is not None

    def __len__(self) -> int:
        return len(self._documents)


class SQLiteDocumentStore:
    """Document store persisted in a local SQLite database.

    Blocking sqlite calls run in a worker thread; each call opens its own
    connection so the store can be shared across event loops.
    """

    def __init__(self, path: str | Path = "slo_combine.db") -> None:
        self._db_path = str(Path(path).expanduser())
        try:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            self._init_db()
        except (OSError, sqlite3.Error) as exc:
            raise StoreUnavailable(f"Cannot open document store {self._db_path}: {exc}") from exc

    @property
    def path(self) -> str:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _init_db(self) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    document_id TEXT NOT NULL,
                    body TEXT NOT NULL,
                    updated_at REAL NOT NULL,
                    PRIMARY KEY (collection, document_id)
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _read(self, collection: str, document_id: str) -> dict[str, Any] | None:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT body FROM documents WHERE collection = ? AND document_id = ?",
                (collection, document_id),
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return json.loads(row[0])

    def _write(self, collection: str, document_id: str, document: dict[str, Any]) -> None:
        body = json.dumps(document)
        conn = self._connect()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO documents (collection, document_id, body, updated_at) "
                "VALUES (?, ?, ?, ?)",
                (collection, document_id, body, time.time()),
            )
            conn.commit()
        finally:
            conn.close()

    def _delete(self, collection: str, document_id: str) -> bool:
        conn = self._connect()
        try:
            cur = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND document_id = ?",
                (collection, document_id),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    async def read_document(self, collection: str, document_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._read, collection, document_id)

    async def write_document(
        self, collection: str, document_id: str, document: dict[str, Any]
    ) -> None:
        await asyncio.to_thread(self._write, collection, document_id, document)

    async def delete_document(self, collection: str, document_id: str) -> bool:
        return await asyncio.to_thread(self._delete, collection, document_id)

    def document_count(self) -> int:
        conn = self._connect()
        try:
            return conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
        finally:
            conn.close()
