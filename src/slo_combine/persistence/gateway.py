"""Gateway between the combination engine and the persisted selection document."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from slo_combine.persistence.errors import LoadFailure, SaveFailure
from slo_combine.persistence.stores import DocumentStore

logger = logging.getLogger(__name__)

SLO_COLLECTION_KEY = "slo_collection_v1"
SLO_DOCUMENT_ID = "slo_document"


class SelectionDocument(BaseModel):
    """Persisted selection, stored on the wire as ``{"selectedIds": [...]}``."""

    model_config = ConfigDict(populate_by_name=True)

    selected_ids: list[str] = Field(default_factory=list, alias="selectedIds")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


@runtime_checkable
class PersistenceGateway(Protocol):
    """What the controller needs from persistence."""

    async def load(self) -> SelectionDocument: ...

    async def save(self, selected_ids: Sequence[str]) -> None: ...


class UserStorageGateway:
    """Reads and writes the selection document in a :class:`DocumentStore`.

    The collection and document id are fixed per gateway; the document is
    always rewritten as a whole.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str = SLO_COLLECTION_KEY,
        document_id: str = SLO_DOCUMENT_ID,
    ) -> None:
        self.store = store
        self.collection = collection
        self.document_id = document_id

    async def load(self) -> SelectionDocument:
        try:
            data = await self.store.read_document(self.collection, self.document_id)
        except Exception as exc:
            raise LoadFailure(
                f"Failed to read {self.collection}/{self.document_id}: {exc}"
            ) from exc

        if data is None:
            logger.debug("No persisted selection in %s/%s", self.collection, self.document_id)
            return SelectionDocument()

        try:
            return SelectionDocument.model_validate(data)
        except ValidationError as exc:
            raise LoadFailure(
                f"Malformed selection document {self.collection}/{self.document_id}: {exc}"
            ) from exc

    async def save(self, selected_ids: Sequence[str]) -> None:
        document = SelectionDocument(selected_ids=list(selected_ids)).to_document()
        try:
            await self.store.write_document(self.collection, self.document_id, document)
        except Exception as exc:
            raise SaveFailure(
                f"Failed to write {self.collection}/{self.document_id}: {exc}"
            ) from exc
        logger.info("Saved %d selected SLO(s) to %s/%s", len(selected_ids), self.collection, self.document_id)

    async def clear(self) -> bool:
        """Delete the persisted selection document."""
        try:
            return await self.store.delete_document(self.collection, self.document_id)
        except Exception as exc:
            raise SaveFailure(
                f"Failed to delete {self.collection}/{self.document_id}: {exc}"
            ) from exc
